from datetime import date, datetime
from typing import Optional

from sqlalchemy import BigInteger, Date, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import PrimaryKeyConstraint

from pinapi.models.base import BaseModel


class UserDailyStats(BaseModel):
    """사용자 일일 활동 통계 - (user_id, stat_date) 당 한 행

    그날 첫 활동에서 생성되고 삭제되지 않습니다. 다음 날은 새 행을 쓰므로
    과거 일자의 통계가 그대로 남습니다.
    """

    __tablename__ = "user_daily_stats"
    __table_args__ = (PrimaryKeyConstraint("user_id", "stat_date"),)

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    stat_date: Mapped[date] = mapped_column(Date, nullable=False)

    pins_created: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    likes_given: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    comments_made: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    points_earned: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    last_pin_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_like_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_comment_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    login_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # 일일 로그인 보상 수령 표시 (같은 날 중복 수령 방지)
    login_claimed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
