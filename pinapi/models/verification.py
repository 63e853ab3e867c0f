from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column

from pinapi.models.base import BaseModel, BigIntPK


class VerificationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VerificationRequest(BaseModel):
    """구매 인증 요청

    bonus_points 는 요청 생성 시점의 카탈로그 값으로 고정됩니다.
    status 가 pending 을 벗어나면 더 이상 전이할 수 없습니다 (재신청은 새 요청).
    """

    __tablename__ = "verification_requests"
    __table_args__ = (
        Index("idx_verification_status", "status", "created_at"),
        Index("idx_verification_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    pin_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("pins.id"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    bonus_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=VerificationStatus.PENDING.value
    )

    reviewed_by: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=True
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    review_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    verification_images: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
