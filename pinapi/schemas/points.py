from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum


class PointsBalanceResponse(BaseModel):
    """포인트 잔액 응답"""

    user_id: int = Field(..., description="사용자 ID")
    balance: int = Field(..., description="현재 포인트 잔액")
    level: str = Field(..., description="포인트 기반 레벨")

    class Config:
        from_attributes = True


class PointTransactionEntry(BaseModel):
    """포인트 원장 항목"""

    id: int = Field(..., description="원장 항목 ID")
    user_id: int = Field(..., description="사용자 ID")
    action_code: str = Field(..., description="액션 코드")
    points: int = Field(..., description="포인트 변화량")
    balance_after: int = Field(..., description="트랜잭션 후 잔액")
    related_pin_id: Optional[int] = Field(None, description="관련 핀 ID")
    related_user_id: Optional[int] = Field(None, description="상대방 사용자 ID")
    used_tresesenta_bonus: bool = Field(False, description="인증 보너스 포함 여부")
    reverses_transaction_id: Optional[int] = Field(None, description="상계 대상 거래 ID")
    description: str = Field("", description="거래 설명")
    created_at: Optional[datetime] = Field(None, description="생성 시간")

    class Config:
        from_attributes = True

    @property
    def transaction_type(self) -> str:
        return "CREDIT" if self.points > 0 else "DEBIT"


class PointsLedgerResponse(BaseModel):
    """포인트 원장 조회 응답"""

    balance: int = Field(..., description="현재 잔액")
    entries: List[PointTransactionEntry] = Field(..., description="원장 항목 목록 (최신순)")
    total_count: int = Field(..., description="전체 항목 수")
    has_next: bool = Field(..., description="다음 페이지 존재 여부")


class AdminPointsAdjustmentRequest(BaseModel):
    """관리자 포인트 조정 요청"""

    user_id: int = Field(..., gt=0, description="사용자 ID")
    amount: int = Field(..., description="조정할 포인트 (양수: 추가, 음수: 차감)")
    reason: str = Field(..., min_length=1, max_length=255, description="조정 사유")

    @field_validator("amount")
    @classmethod
    def amount_must_not_be_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("Adjustment amount cannot be zero")
        return v


class ReverseTransactionRequest(BaseModel):
    """거래 상계 요청"""

    reason: str = Field(..., min_length=1, max_length=255, description="상계 사유")


class PointsIntegrityCheckResponse(BaseModel):
    """포인트 정합성 검증 응답"""

    status: str = Field(..., description="검증 상태 (OK, MISMATCH)")
    user_id: Optional[int] = Field(None, description="사용자 ID (단일 사용자 검증 시)")
    calculated_balance: Optional[int] = Field(None, description="델타 합계로 계산한 잔액")
    recorded_balance: Optional[int] = Field(None, description="마지막 거래의 balance_after")
    cached_balance: Optional[int] = Field(None, description="users.total_points")
    entry_count: Optional[int] = Field(None, description="항목 수")
    user_count: Optional[int] = Field(None, description="검증한 사용자 수")
    mismatched_user_ids: List[int] = Field(default_factory=list, description="불일치 사용자")
    error: Optional[str] = Field(None, description="오류 메시지")
    entry_id: Optional[int] = Field(None, description="체인이 끊긴 첫 항목 ID")
    verified_at: datetime = Field(..., description="검증 시간")


class LeaderboardPeriod(str, Enum):
    ALL = "all"
    WEEK = "week"
    MONTH = "month"


class LeaderboardEntry(BaseModel):
    position: int
    user_id: int
    username: str
    level: str
    total_points: int
    period_points: int


class LeaderboardResponse(BaseModel):
    period: LeaderboardPeriod
    leaderboard: List[LeaderboardEntry]
