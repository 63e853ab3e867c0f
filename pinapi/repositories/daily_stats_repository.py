from datetime import date, datetime
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session

from pinapi.core.actions import CounterSpec
from pinapi.models.daily_stats import UserDailyStats as UserDailyStatsModel
from pinapi.repositories.base import BaseRepository
from pinapi.schemas.daily_stats import UserDailyStatsResponse


class UserDailyStatsRepository(
    BaseRepository[UserDailyStatsModel, UserDailyStatsResponse]
):
    """사용자 일일 통계 리포지토리

    카운터 증가는 INSERT ... ON CONFLICT DO UPDATE 로 처리합니다. 동시에 같은 날의
    첫 행을 만들려는 두 요청이 있어도 한 행으로 병합되고 증가분이 모두 반영됩니다.
    """

    def __init__(self, db: Session):
        super().__init__(UserDailyStatsModel, UserDailyStatsResponse, db)

    def _get_model(self, user_id: int, stat_date: date) -> Optional[UserDailyStatsModel]:
        return (
            self.db.query(self.model_class)
            .filter(
                and_(
                    self.model_class.user_id == user_id,
                    self.model_class.stat_date == stat_date,
                )
            )
            .populate_existing()
            .first()
        )

    def get_stats(
        self, user_id: int, stat_date: date
    ) -> Optional[UserDailyStatsResponse]:
        """특정일 통계 조회 (없으면 None - 읽기만 하고 생성하지 않음)"""
        return self._to_schema(self._get_model(user_id, stat_date))

    def increment_action(
        self,
        user_id: int,
        stat_date: date,
        counter: Optional[CounterSpec],
        occurred_at: Optional[datetime] = None,
        points: int = 0,
    ) -> UserDailyStatsResponse:
        """오늘 행 upsert: 액션 카운터 +1, last_*_at 갱신, 획득 포인트 누적"""
        values = {"user_id": user_id, "stat_date": stat_date, "points_earned": points}
        table = self.model_class.__table__
        stmt = self._insert()
        update_set = {
            "points_earned": table.c.points_earned + stmt.excluded.points_earned,
        }
        if counter is not None:
            values[counter.count_column] = 1
            values[counter.last_at_column] = occurred_at
            update_set[counter.count_column] = table.c[counter.count_column] + 1
            update_set[counter.last_at_column] = stmt.excluded[counter.last_at_column]

        stmt = stmt.values(**values).on_conflict_do_update(
            index_elements=["user_id", "stat_date"],
            set_=update_set,
        )
        self.db.execute(stmt)
        self.db.flush()
        return self._to_schema(self._get_model(user_id, stat_date))

    def add_points_earned(
        self, user_id: int, stat_date: date, points: int
    ) -> UserDailyStatsResponse:
        return self.increment_action(
            user_id, stat_date, None, points=points
        )

    def mark_login(
        self, user_id: int, stat_date: date, streak: int, claimed_at: datetime
    ) -> UserDailyStatsResponse:
        """오늘 행에 연속 로그인 값과 수령 표시 기록"""
        stmt = self._insert()
        stmt = stmt.values(
            user_id=user_id,
            stat_date=stat_date,
            login_streak=streak,
            login_claimed_at=claimed_at,
        ).on_conflict_do_update(
            index_elements=["user_id", "stat_date"],
            set_={
                "login_streak": stmt.excluded.login_streak,
                "login_claimed_at": stmt.excluded.login_claimed_at,
            },
        )
        self.db.execute(stmt)
        self.db.flush()
        return self._to_schema(self._get_model(user_id, stat_date))
