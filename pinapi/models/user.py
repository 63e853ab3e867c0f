from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import UniqueConstraint

from pinapi.models.base import BaseModel, BigIntPK


class User(BaseModel):
    """사용자 - 신원 정보는 인증 서비스 소유, 포인트 관련 필드만 코어가 갱신

    total_points 는 포인트 원장의 캐시입니다. 원장 기록과 같은 트랜잭션 안에서만
    갱신되며, 항상 마지막 거래의 balance_after 와 같아야 합니다.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_total_points", "total_points"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    total_points: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    level: Mapped[str] = mapped_column(String(50), default="Local", nullable=False)

    is_verified_buyer: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_banned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    ban_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, points={self.total_points})>"


class UserCity(BaseModel):
    """사용자별 도시 활동 집계 - 도시가 지정된 핀 생성 시 upsert"""

    __tablename__ = "user_cities"
    __table_args__ = (
        UniqueConstraint("user_id", "city_id", name="uq_user_cities_user_city"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    city_id: Mapped[int] = mapped_column(Integer, nullable=False)
    pins_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    points_earned: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    last_visit: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
