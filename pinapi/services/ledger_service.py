"""
포인트 원장 서비스

핵심 규칙:
- 모든 포인트 변동은 point_transactions 에 한 행으로 추가됨 (수정/삭제 없음)
- balance_after = 직전 잔액 + delta, 사용자 행을 FOR UPDATE 로 잠근 상태에서 계산
- users.total_points / level 은 같은 트랜잭션 안에서만 갱신되는 캐시
- 정정은 음수 delta 의 상계 거래 (reverses_transaction_id 로 원 거래 연결)
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from pinapi.config import Settings, get_settings
from pinapi.core.actions import ActionKind, level_for_points
from pinapi.core.exceptions import ConflictError, FeatureDisabledError, NotFoundError
from pinapi.database.session import transaction
from pinapi.repositories.admin_repository import ModerationLogRepository
from pinapi.repositories.catalog_repository import ActionCatalogRepository
from pinapi.repositories.daily_stats_repository import UserDailyStatsRepository
from pinapi.repositories.points_repository import PointsRepository
from pinapi.repositories.user_repository import UserRepository
from pinapi.schemas.points import (
    LeaderboardEntry,
    LeaderboardPeriod,
    LeaderboardResponse,
    PointsBalanceResponse,
    PointsIntegrityCheckResponse,
    PointsLedgerResponse,
    PointTransactionEntry,
)
from pinapi.utils.timezone_utils import get_local_today, get_utc_now

logger = logging.getLogger(__name__)

LEADERBOARD_WINDOWS = {
    LeaderboardPeriod.WEEK: timedelta(days=7),
    LeaderboardPeriod.MONTH: timedelta(days=30),
}


class LedgerService:
    """포인트 원장 관련 비즈니스 로직을 담당하는 서비스"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.points_repo = PointsRepository(db)
        self.user_repo = UserRepository(db)
        self.catalog_repo = ActionCatalogRepository(db)
        self.stats_repo = UserDailyStatsRepository(db)
        self.moderation_repo = ModerationLogRepository(db)

    def record_transaction(
        self,
        user_id: int,
        kind: ActionKind,
        delta: int,
        *,
        description: str = "",
        related_pin_id: Optional[int] = None,
        related_user_id: Optional[int] = None,
        includes_bonus: bool = False,
        reverses_transaction_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> PointTransactionEntry:
        """원장에 거래 한 건 기록

        호출자가 연 트랜잭션 안에서 실행되며 commit 하지 않습니다. delta 가 카탈로그 값과
        같은지는 검사하지 않지만, 카탈로그에 없는 액션 코드는 거부합니다.
        비활성 액션은 새 거래를 받지 않으며, 기존 거래의 상계만 허용됩니다.

        Args:
            user_id: 사용자 ID
            kind: 액션 코드
            delta: 포인트 변화량 (부호는 호출자가 결정)

        Raises:
            NotFoundError: 카탈로그에 없는 액션이거나 사용자가 없음
            FeatureDisabledError: 비활성 액션 (상계 거래 제외)
        """
        action = self.catalog_repo.get_model_by_code(kind)
        if action is None:
            raise NotFoundError(
                f"Action '{kind.value}' does not exist in the catalog",
                details={"action_code": kind.value},
            )
        if not action.is_active and reverses_transaction_id is None:
            raise FeatureDisabledError(
                f"Action '{kind.value}' is currently disabled",
                details={"action_code": kind.value},
            )

        user = self.user_repo.lock_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", details={"user_id": user_id})

        balance_after = user.total_points + delta
        entry = self.points_repo.append(
            user_id=user_id,
            action_id=action.id,
            action_code=kind.value,
            points=delta,
            balance_after=balance_after,
            description=description,
            related_pin_id=related_pin_id,
            related_user_id=related_user_id,
            used_tresesenta_bonus=includes_bonus,
            reverses_transaction_id=reverses_transaction_id,
        )
        self.user_repo.apply(
            user, total_points=balance_after, level=level_for_points(balance_after)
        )
        if delta:
            self.stats_repo.add_points_earned(user_id, get_local_today(now), delta)

        logger.info(
            f"Ledger entry {entry.id}: user {user_id} {kind.value} {delta:+d} -> {balance_after}"
        )
        return entry

    def get_balance(self, user_id: int) -> PointsBalanceResponse:
        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", details={"user_id": user_id})
        return PointsBalanceResponse(
            user_id=user.id, balance=user.total_points, level=user.level
        )

    def get_ledger(
        self, user_id: int, limit: int = 50, offset: int = 0
    ) -> PointsLedgerResponse:
        """사용자 원장 조회 (최신순, limit 는 설정 상한으로 제한)"""
        limit = min(limit, self.settings.LEDGER_PAGE_MAX)
        balance = self.get_balance(user_id)
        entries = self.points_repo.get_user_ledger(user_id, limit=limit, offset=offset)
        total_count = self.points_repo.count_for_user(user_id)
        return PointsLedgerResponse(
            balance=balance.balance,
            entries=entries,
            total_count=total_count,
            has_next=offset + len(entries) < total_count,
        )

    def admin_adjust(
        self, admin_id: int, user_id: int, amount: int, reason: str
    ) -> PointTransactionEntry:
        """관리자 수동 조정 - 원장 기록과 감사 로그를 한 트랜잭션으로"""
        with transaction(self.db):
            entry = self.record_transaction(
                user_id,
                ActionKind.ADMIN_ADJUSTMENT,
                amount,
                description=f"Admin adjustment: {reason}",
                related_user_id=admin_id,
            )
            self.moderation_repo.write(
                admin_id=admin_id,
                action_type="adjust_points",
                target_type="user",
                target_id=user_id,
                reason=reason,
                metadata={"amount": amount, "transaction_id": entry.id},
            )
        return entry

    def reverse_transaction(
        self, admin_id: int, transaction_id: int, reason: str
    ) -> PointTransactionEntry:
        """거래 상계

        원 거래와 같은 액션 코드로 부호를 뒤집은 거래를 추가합니다. 이미 상계된 거래나
        상계 거래 자체는 다시 상계할 수 없습니다.
        """
        with transaction(self.db):
            original = self.points_repo.get_by_id(transaction_id)
            if original is None:
                raise NotFoundError(
                    f"Transaction {transaction_id} not found",
                    details={"transaction_id": transaction_id},
                )
            if original.reverses_transaction_id is not None:
                raise ConflictError(
                    "A reversal entry cannot be reversed",
                    details={"transaction_id": transaction_id},
                )

            # 사용자 행을 먼저 잠가 같은 거래에 대한 동시 상계를 직렬화
            self.user_repo.lock_user(original.user_id)
            existing = self.points_repo.find_reversal_of(transaction_id)
            if existing is not None:
                raise ConflictError(
                    "Transaction already reversed",
                    details={
                        "transaction_id": transaction_id,
                        "reversal_id": existing.id,
                    },
                )

            entry = self.record_transaction(
                original.user_id,
                ActionKind(original.action_code),
                -original.points,
                description=f"Reversal of #{transaction_id}: {reason}",
                related_pin_id=original.related_pin_id,
                related_user_id=original.related_user_id,
                includes_bonus=original.used_tresesenta_bonus,
                reverses_transaction_id=transaction_id,
            )
            self.moderation_repo.write(
                admin_id=admin_id,
                action_type="reverse_transaction",
                target_type="point_transaction",
                target_id=transaction_id,
                reason=reason,
                metadata={"reversal_id": entry.id, "points": entry.points},
            )
        return entry

    def leaderboard(
        self, period: LeaderboardPeriod = LeaderboardPeriod.ALL, limit: int = 20
    ) -> LeaderboardResponse:
        limit = min(limit, self.settings.LEADERBOARD_MAX)
        if period == LeaderboardPeriod.ALL:
            rows = [
                (user, user.total_points)
                for user in self.user_repo.top_by_total_points(limit)
            ]
        else:
            since = get_utc_now() - LEADERBOARD_WINDOWS[period]
            rows = self.user_repo.top_by_period_points(since, limit)

        entries = [
            LeaderboardEntry(
                position=position,
                user_id=user.id,
                username=user.username,
                level=user.level,
                total_points=user.total_points,
                period_points=period_points,
            )
            for position, (user, period_points) in enumerate(rows, start=1)
        ]
        return LeaderboardResponse(period=period, leaderboard=entries)

    def verify_integrity_for_user(self, user_id: int) -> PointsIntegrityCheckResponse:
        """사용자 원장 체인과 캐시 잔액 검증"""
        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", details={"user_id": user_id})

        chain = self.points_repo.get_chain(user_id)
        running = 0
        for entry in chain:
            running += entry.points
            if entry.balance_after != running:
                logger.error(
                    f"Ledger chain broken for user {user_id} at entry {entry.id}: "
                    f"expected {running}, recorded {entry.balance_after}"
                )
                return PointsIntegrityCheckResponse(
                    status="MISMATCH",
                    user_id=user_id,
                    calculated_balance=running,
                    recorded_balance=entry.balance_after,
                    cached_balance=user.total_points,
                    entry_count=len(chain),
                    error="balance_after does not follow the running sum",
                    entry_id=entry.id,
                    verified_at=get_utc_now(),
                )

        recorded = chain[-1].balance_after if chain else 0
        status = "OK" if user.total_points == running == recorded else "MISMATCH"
        if status != "OK":
            logger.error(
                f"Cached balance mismatch for user {user_id}: cached {user.total_points}, ledger {running}"
            )
        return PointsIntegrityCheckResponse(
            status=status,
            user_id=user_id,
            calculated_balance=running,
            recorded_balance=recorded,
            cached_balance=user.total_points,
            entry_count=len(chain),
            error=None if status == "OK" else "users.total_points differs from ledger",
            verified_at=get_utc_now(),
        )

    def verify_global_integrity(self) -> PointsIntegrityCheckResponse:
        """전체 사용자 정합성 검증"""
        user_ids = self.user_repo.all_ids()
        mismatched: List[int] = []
        for user_id in user_ids:
            if self.verify_integrity_for_user(user_id).status != "OK":
                mismatched.append(user_id)

        return PointsIntegrityCheckResponse(
            status="OK" if not mismatched else "MISMATCH",
            user_count=len(user_ids),
            mismatched_user_ids=mismatched,
            verified_at=get_utc_now(),
        )
