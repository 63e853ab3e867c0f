from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    JSON,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import UniqueConstraint

from pinapi.models.base import BaseModel, BigIntPK


class PinVerificationStatus(str, Enum):
    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Pin(BaseModel):
    """지도 핀 - 코어는 verification_status 와 points_awarded 만 관리"""

    __tablename__ = "pins"
    __table_args__ = (
        Index("idx_pins_user_id", "user_id"),
        Index("idx_pins_verification_status", "verification_status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    category_id: Mapped[int] = mapped_column(Integer, nullable=False)
    city_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    shoe_model: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    image_urls: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    video_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # 생성 시점에 확정된 지급 포인트 (자동 승인 시 보너스 포함)
    points_awarded: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    likes_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    comments_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    hidden_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # TRESESENTA 구매 인증 (VerificationRequest 상태를 미러링)
    used_tresesenta: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    verification_status: Mapped[str] = mapped_column(
        String(20), default=PinVerificationStatus.NONE.value, nullable=False
    )
    verified_by: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=True
    )
    verified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    verification_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Like(BaseModel):
    __tablename__ = "likes"
    __table_args__ = (UniqueConstraint("user_id", "pin_id", name="uq_likes_user_pin"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    pin_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("pins.id"), nullable=False
    )


class Comment(BaseModel):
    __tablename__ = "comments"
    __table_args__ = (Index("idx_comments_pin_id", "pin_id"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    pin_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("pins.id"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
