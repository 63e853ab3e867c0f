from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from pinapi.models.verification import VerificationStatus
from pinapi.schemas.points import PointTransactionEntry


class VerificationRequestResponse(BaseModel):
    """구매 인증 요청"""

    id: int
    pin_id: int
    user_id: int
    bonus_points: int = Field(..., description="요청 시점에 고정된 보너스")
    status: VerificationStatus
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    verification_images: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VerificationListResponse(BaseModel):
    requests: List[VerificationRequestResponse]
    total_count: int
    has_next: bool


class ApproveVerificationRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)


class RejectVerificationRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000, description="거절 사유 (필수)")
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("reason")
    @classmethod
    def reason_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Rejection reason cannot be empty")
        return v.strip()


class EvidenceImagesRequest(BaseModel):
    images: List[str] = Field(..., min_length=1, description="추가 인증 이미지 URL")


class VerificationDecisionResponse(BaseModel):
    """승인/거절 결과"""

    request: VerificationRequestResponse
    bonus_points_awarded: int = 0
    transaction: Optional[PointTransactionEntry] = None
