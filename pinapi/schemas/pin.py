from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from pinapi.models.pin import PinVerificationStatus


class PinCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    category_id: int = Field(..., gt=0)
    location_name: Optional[str] = Field(None, max_length=200)
    city_id: Optional[int] = Field(None, gt=0)
    shoe_model: Optional[str] = Field(None, max_length=100)
    image_urls: List[str] = Field(default_factory=list)
    video_url: Optional[str] = None
    used_tresesenta: bool = Field(False, description="TRESESENTA 구매 연동 여부")

    @field_validator("title", "description")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class PinResponse(BaseModel):
    id: int
    user_id: int
    category_id: int
    city_id: Optional[int] = None
    title: str
    description: str
    location_name: Optional[str] = None
    latitude: float
    longitude: float
    shoe_model: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    video_url: Optional[str] = None
    points_awarded: int
    likes_count: int = 0
    comments_count: int = 0
    is_hidden: bool = False
    used_tresesenta: bool = False
    verification_status: PinVerificationStatus
    created_at: Optional[datetime] = None
    # 조회한 사용자가 좋아요를 눌렀는지 (피드 조회에서만 채움)
    liked_by_user: bool = False

    class Config:
        from_attributes = True


class PinCreateResponse(BaseModel):
    message: str
    pin: PinResponse
    points_earned: int
    verification_request_id: Optional[int] = None


class LikeResponse(BaseModel):
    message: str
    pin_id: int
    points_earned: int
    owner_points_credited: bool = False


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)

    @field_validator("content")
    @classmethod
    def content_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Comment cannot be empty")
        return v.strip()


class CommentResponse(BaseModel):
    id: int
    pin_id: int
    user_id: int
    content: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CommentCreateResponse(BaseModel):
    message: str
    comment: CommentResponse
    points_earned: int


class PinListResponse(BaseModel):
    pins: List[PinResponse]
    total_count: int
    has_next: bool


class CommentListResponse(BaseModel):
    pin_id: int
    comments: List[CommentResponse]
