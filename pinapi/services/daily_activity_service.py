"""
일일 활동 카운터 서비스

- 일일 한도 / 쿨다운 검사 (읽기 전용)
- 액션 발생 기록 (upsert 로 카운터 +1)
- 일일 로그인 보상과 연속 로그인 보너스

한도 검사와 기록 사이에는 잠금이 없어서, 같은 사용자의 동시 요청이 한도를 1회 초과할 수
있습니다. 잔액과 달리 하루 단위로 자연 복구되는 값이라 허용합니다.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from pinapi.config import Settings, get_settings
from pinapi.core.actions import (
    ActionKind,
    CounterSpec,
    counter_spec_for,
    streak_bonus_for,
)
from pinapi.core.exceptions import NotFoundError, RateLimitError, ValidationError
from pinapi.database.session import transaction
from pinapi.repositories.catalog_repository import ActionCatalogRepository
from pinapi.repositories.daily_stats_repository import UserDailyStatsRepository
from pinapi.repositories.user_repository import UserRepository
from pinapi.schemas.catalog import ActionDefinition
from pinapi.schemas.daily_stats import (
    ActionUsage,
    DailyLoginResult,
    DailySummaryResponse,
    UserDailyStatsResponse,
)
from pinapi.schemas.settings import PlatformSettings
from pinapi.services.catalog_service import CatalogService
from pinapi.services.ledger_service import LedgerService
from pinapi.services.settings_service import SettingsService
from pinapi.utils.timezone_utils import (
    ensure_aware,
    get_local_today,
    get_next_day_start,
    get_utc_now,
)

logger = logging.getLogger(__name__)


class DailyActivityService:
    """사용자 일일 활동 관리 서비스"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.stats_repo = UserDailyStatsRepository(db)
        self.user_repo = UserRepository(db)
        self.catalog_repo = ActionCatalogRepository(db)
        self.catalog_service = CatalogService(db, self.settings)
        self.settings_service = SettingsService(db, self.settings)
        self.ledger_service = LedgerService(db, self.settings)

    # ------------------------------------------------------------------
    # 한도 / 쿨다운
    # ------------------------------------------------------------------

    def _counter_spec(self, kind: ActionKind) -> CounterSpec:
        counter = counter_spec_for(kind)
        if counter is None:
            raise ValidationError(
                f"Action '{kind.value}' has no daily counter",
                details={"action_code": kind.value},
            )
        return counter

    def _cooldown_for(
        self,
        kind: ActionKind,
        definition: ActionDefinition,
        platform: Optional[PlatformSettings],
    ) -> int:
        if definition.cooldown_seconds is not None:
            return definition.cooldown_seconds
        if kind == ActionKind.COMMENT_PIN:
            platform = platform or self.settings_service.get_snapshot()
            return platform.comment_cooldown_seconds
        return 0

    def _used_today(
        self, stats: Optional[UserDailyStatsResponse], counter: CounterSpec
    ) -> int:
        return getattr(stats, counter.count_column) if stats else 0

    def _remaining_cooldown(
        self,
        stats: Optional[UserDailyStatsResponse],
        counter: CounterSpec,
        cooldown: int,
        now: datetime,
    ) -> int:
        if not cooldown or stats is None:
            return 0
        last_at = getattr(stats, counter.last_at_column)
        if last_at is None:
            return 0
        elapsed = (now - ensure_aware(last_at)).total_seconds()
        if elapsed >= cooldown:
            return 0
        return math.ceil(cooldown - elapsed)

    def check_limit(
        self,
        user_id: int,
        kind: ActionKind,
        definition: Optional[ActionDefinition] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """오늘 카운트가 일일 한도 미만이면 True (한도 없음 = 항상 True)"""
        counter = self._counter_spec(kind)
        definition = definition or self.catalog_service.lookup(kind)
        if definition.daily_limit is None:
            return True
        stats = self.stats_repo.get_stats(user_id, get_local_today(now))
        return self._used_today(stats, counter) < definition.daily_limit

    def check_cooldown(
        self,
        user_id: int,
        kind: ActionKind,
        definition: Optional[ActionDefinition] = None,
        platform: Optional[PlatformSettings] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """남은 쿨다운 (초). 오늘 기록이 없거나 충족했으면 0"""
        now = now or get_utc_now()
        counter = self._counter_spec(kind)
        definition = definition or self.catalog_service.lookup(kind)
        cooldown = self._cooldown_for(kind, definition, platform)
        stats = self.stats_repo.get_stats(user_id, get_local_today(now))
        return self._remaining_cooldown(stats, counter, cooldown, now)

    def ensure_allowed(
        self,
        user_id: int,
        kind: ActionKind,
        definition: Optional[ActionDefinition] = None,
        platform: Optional[PlatformSettings] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """한도/쿨다운 위반 시 RateLimitError (남은 횟수/시간 포함)"""
        now = now or get_utc_now()
        today = get_local_today(now)
        counter = self._counter_spec(kind)
        definition = definition or self.catalog_service.lookup(kind)
        stats = self.stats_repo.get_stats(user_id, today)

        used = self._used_today(stats, counter)
        if definition.daily_limit is not None and used >= definition.daily_limit:
            raise RateLimitError(
                f"Daily limit reached for {kind.value}",
                details={
                    "action_code": kind.value,
                    "limit": definition.daily_limit,
                    "used": used,
                    "remaining": 0,
                    "resets_at": get_next_day_start(today).isoformat(),
                },
            )

        cooldown = self._cooldown_for(kind, definition, platform)
        remaining_seconds = self._remaining_cooldown(stats, counter, cooldown, now)
        if remaining_seconds > 0:
            raise RateLimitError(
                f"Please wait {remaining_seconds} seconds before {kind.value} again",
                details={
                    "action_code": kind.value,
                    "remaining_seconds": remaining_seconds,
                },
            )

    def record_occurrence(
        self, user_id: int, kind: ActionKind, now: Optional[datetime] = None
    ) -> UserDailyStatsResponse:
        """오늘 카운터 +1 (호출자 트랜잭션 안에서, 호출마다 증가)"""
        now = now or get_utc_now()
        counter = self._counter_spec(kind)
        return self.stats_repo.increment_action(
            user_id, get_local_today(now), counter, occurred_at=now
        )

    # ------------------------------------------------------------------
    # 일일 로그인
    # ------------------------------------------------------------------

    def claim_daily_login(
        self, user_id: int, now: Optional[datetime] = None
    ) -> DailyLoginResult:
        """일일 로그인 보상 수령

        어제 행이 있으면 연속 일수 +1, 없으면 1 로 시작합니다. 연속 일수가 정확히
        7 또는 30 이 되는 날 보너스를 지급합니다. 같은 날 두 번째 요청은 아무것도
        기록하지 않고 already_claimed_today=True 를 반환합니다.
        """
        now = now or get_utc_now()
        today = get_local_today(now)

        with transaction(self.db):
            # 사용자 행 잠금으로 같은 사용자의 동시 수령을 직렬화
            if self.user_repo.lock_user(user_id) is None:
                raise NotFoundError(f"User {user_id} not found", details={"user_id": user_id})

            today_stats = self.stats_repo.get_stats(user_id, today)
            if today_stats is not None and today_stats.login_claimed_at is not None:
                return DailyLoginResult(
                    streak=today_stats.login_streak, already_claimed_today=True
                )

            definition = self.catalog_service.lookup(ActionKind.DAILY_LOGIN)
            yesterday_stats = self.stats_repo.get_stats(user_id, today - timedelta(days=1))
            streak = (yesterday_stats.login_streak if yesterday_stats else 0) + 1

            self.ledger_service.record_transaction(
                user_id,
                ActionKind.DAILY_LOGIN,
                definition.points,
                description=f"Daily login (day {streak})",
                now=now,
            )
            points_awarded = definition.points

            bonus_kind = streak_bonus_for(streak)
            bonus_awarded = False
            if bonus_kind is not None:
                bonus = self.catalog_repo.get_by_code(bonus_kind)
                if bonus is None or not bonus.is_active:
                    logger.warning(
                        f"Streak bonus {bonus_kind.value} unavailable for user {user_id} at day {streak}"
                    )
                else:
                    self.ledger_service.record_transaction(
                        user_id,
                        bonus_kind,
                        bonus.points,
                        description=f"{streak}-day login streak bonus",
                        now=now,
                    )
                    points_awarded += bonus.points
                    bonus_awarded = True

            self.stats_repo.mark_login(user_id, today, streak, now)

        logger.info(
            f"User {user_id} claimed daily login: streak={streak}, points={points_awarded}"
        )
        return DailyLoginResult(
            streak=streak,
            already_claimed_today=False,
            bonus_awarded=bonus_awarded,
            points_awarded=points_awarded,
            bonus_action=bonus_kind.value if bonus_awarded else None,
        )

    def get_today_summary(
        self, user_id: int, now: Optional[datetime] = None
    ) -> DailySummaryResponse:
        """오늘 사용량 / 한도 / 쿨다운 요약"""
        now = now or get_utc_now()
        today = get_local_today(now)
        stats = self.stats_repo.get_stats(user_id, today)
        platform = self.settings_service.get_snapshot()

        def usage(kind: ActionKind) -> ActionUsage:
            counter = self._counter_spec(kind)
            used = self._used_today(stats, counter)
            definition = self.catalog_repo.get_by_code(kind)
            if definition is None:
                return ActionUsage(used=used)
            limit = definition.daily_limit
            cooldown = self._cooldown_for(kind, definition, platform)
            return ActionUsage(
                used=used,
                limit=limit,
                remaining=max(limit - used, 0) if limit is not None else None,
                cooldown_remaining_seconds=self._remaining_cooldown(
                    stats, counter, cooldown, now
                ),
            )

        return DailySummaryResponse(
            stat_date=today,
            pins=usage(ActionKind.CREATE_PIN),
            likes=usage(ActionKind.LIKE_PIN),
            comments=usage(ActionKind.COMMENT_PIN),
            points_earned=stats.points_earned if stats else 0,
            login_streak=stats.login_streak if stats else 0,
            login_claimed_today=bool(stats and stats.login_claimed_at),
        )
