from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from pinapi.models.points import PointTransaction
from pinapi.models.user import User as UserModel
from pinapi.repositories.base import BaseRepository
from pinapi.schemas.user import User as UserSchema


class UserRepository(BaseRepository[UserModel, UserSchema]):
    """사용자 리포지토리 - 포인트 캐시/권한 플래그만 다룸"""

    def __init__(self, db: Session):
        super().__init__(UserModel, UserSchema, db)

    def lock_user(self, user_id: int) -> Optional[UserModel]:
        """사용자 행 배타 잠금 - 잔액 read-modify-write 직렬화 지점"""
        return self.lock_by_id(user_id)

    def top_by_total_points(self, limit: int) -> List[UserModel]:
        """누적 포인트 순위 (밴 사용자 제외)"""
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.is_banned.is_(False))
            .order_by(self.model_class.total_points.desc(), self.model_class.id.asc())
            .limit(limit)
            .all()
        )

    def top_by_period_points(
        self, since: datetime, limit: int
    ) -> List[Tuple[UserModel, int]]:
        """기간 내 획득 포인트 순위 (밴 사용자 제외)"""
        period_points = func.coalesce(func.sum(PointTransaction.points), 0).label(
            "period_points"
        )
        rows = (
            self.db.query(self.model_class, period_points)
            .outerjoin(
                PointTransaction,
                (PointTransaction.user_id == self.model_class.id)
                & (PointTransaction.created_at >= since),
            )
            .filter(self.model_class.is_banned.is_(False))
            .group_by(self.model_class.id)
            .order_by(period_points.desc(), self.model_class.id.asc())
            .limit(limit)
            .all()
        )
        return [(user, int(points or 0)) for user, points in rows]

    def all_ids(self) -> List[int]:
        return [row[0] for row in self.db.query(self.model_class.id).all()]
