"""
포인트 시스템 데이터 모델

point_actions: 액션 카탈로그 (관리자만 수정, 요청마다 새로 읽음)
point_transactions: 사용자별 포인트 원장 - 추가만 가능, 수정/삭제 없음
"""

from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from pinapi.models.base import BaseModel, BigIntPK


class PointAction(BaseModel):
    """액션 카탈로그 행

    비활성화된 액션은 새 거래를 거부하지만, 이미 기록된 원장 행에는 영향을 주지 않습니다.
    """

    __tablename__ = "point_actions"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    action_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(30), nullable=False)

    # 음수 가능 (패널티)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # NULL = 무제한
    daily_limit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cooldown_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    # TRESESENTA 구매 인증 시 추가 지급 포인트
    bonus_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class PointTransaction(BaseModel):
    """
    포인트 원장 테이블 - 모든 포인트 거래 내역을 저장

    이 테이블은 다음 원칙을 따릅니다:
    1. 불변성(Immutable): 한번 생성된 레코드는 수정되지 않음 (정정은 상계 거래로)
    2. 완전성(Complete): 모든 포인트 변동사항이 기록됨
    3. 정합성(Integrity): 사용자별로 balance_after(n) = balance_after(n-1) + points(n)
    """

    __tablename__ = "point_transactions"
    __table_args__ = (
        Index("idx_point_tx_user_id", "user_id", "id"),
        Index("idx_point_tx_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )

    # 거래 시점의 카탈로그 행 참조 (코드도 함께 보관하여 감사 추적)
    action_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("point_actions.id"), nullable=False
    )
    action_code: Mapped[str] = mapped_column(String(50), nullable=False)

    # 포인트 변동량 - 양수면 증가, 음수면 감소
    points: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # 거래 후 잔액
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)

    related_pin_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("pins.id"), nullable=True
    )
    # 소셜 상호작용의 상대방 (좋아요를 누른 사람 등)
    related_user_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=True
    )
    used_tresesenta_bonus: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    # 상계 거래인 경우 원 거래 ID
    reverses_transaction_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("point_transactions.id"), nullable=True, unique=True
    )
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
