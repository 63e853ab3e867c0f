from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class User(BaseModel):
    id: int
    username: str
    email: str
    full_name: Optional[str] = None
    total_points: int = 0
    level: str = "Local"
    is_verified_buyer: bool = False
    is_admin: bool = False
    is_active: bool = True
    is_banned: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserCityResponse(BaseModel):
    user_id: int
    city_id: int
    pins_count: int = 0
    points_earned: int = 0
    last_visit: Optional[datetime] = None

    class Config:
        from_attributes = True


class BanUserRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class VerifyBuyerRequest(BaseModel):
    is_verified: bool = True


class HidePinRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
