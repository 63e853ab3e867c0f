from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from pinapi.models.user import UserCity
from pinapi.repositories.base import BaseRepository
from pinapi.schemas.user import UserCityResponse


class UserCityRepository(BaseRepository[UserCity, UserCityResponse]):
    """사용자-도시 집계 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(UserCity, UserCityResponse, db)

    def _get_model(self, user_id: int, city_id: int) -> Optional[UserCity]:
        return (
            self.db.query(self.model_class)
            .filter(
                self.model_class.user_id == user_id,
                self.model_class.city_id == city_id,
            )
            .populate_existing()
            .first()
        )

    def record_pin(
        self, user_id: int, city_id: int, points: int, visited_at: datetime
    ) -> UserCityResponse:
        """핀 1건 반영: pins_count +1, points_earned 누적, last_visit 갱신"""
        table = self.model_class.__table__
        stmt = self._insert()
        stmt = stmt.values(
            user_id=user_id,
            city_id=city_id,
            pins_count=1,
            points_earned=points,
            last_visit=visited_at,
        ).on_conflict_do_update(
            index_elements=["user_id", "city_id"],
            set_={
                "pins_count": table.c.pins_count + 1,
                "points_earned": table.c.points_earned + stmt.excluded.points_earned,
                "last_visit": stmt.excluded.last_visit,
            },
        )
        self.db.execute(stmt)
        self.db.flush()
        return self._to_schema(self._get_model(user_id, city_id))

    def list_for_user(self, user_id: int) -> List[UserCityResponse]:
        rows = (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .order_by(self.model_class.pins_count.desc(), self.model_class.city_id.asc())
            .all()
        )
        return self._to_schemas(rows)
