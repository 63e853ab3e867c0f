"""
포인트 리포지토리 - 원장 테이블 데이터 접근

핵심 특징:
- 원장 행은 append 만 가능 (update/delete 메서드를 제공하지 않음)
- 사용자별 순서는 id 오름차순이 곧 발생 순서
- 잔액 계산/잠금은 LedgerService 가 사용자 행 잠금 하에서 수행
"""

from typing import List, Optional

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from pinapi.models.points import PointTransaction
from pinapi.repositories.base import BaseRepository
from pinapi.schemas.points import PointTransactionEntry


class PointsRepository(BaseRepository[PointTransaction, PointTransactionEntry]):
    """
    포인트 리포지토리 - 포인트 원장 관련 데이터베이스 작업 처리

    주요 기능:
    1. 원장 행 추가 (불변)
    2. 페이징 조회
    3. 정합성 검증용 체인 조회
    """

    def __init__(self, db: Session):
        super().__init__(PointTransaction, PointTransactionEntry, db)

    def append(
        self,
        *,
        user_id: int,
        action_id: int,
        action_code: str,
        points: int,
        balance_after: int,
        description: str,
        related_pin_id: Optional[int] = None,
        related_user_id: Optional[int] = None,
        used_tresesenta_bonus: bool = False,
        reverses_transaction_id: Optional[int] = None,
    ) -> PointTransactionEntry:
        """원장에 거래 한 건 추가 (flush 만 수행)"""
        return self.create(
            user_id=user_id,
            action_id=action_id,
            action_code=action_code,
            points=points,
            balance_after=balance_after,
            description=description,
            related_pin_id=related_pin_id,
            related_user_id=related_user_id,
            used_tresesenta_bonus=used_tresesenta_bonus,
            reverses_transaction_id=reverses_transaction_id,
        )

    def get_user_ledger(
        self, user_id: int, limit: int = 50, offset: int = 0
    ) -> List[PointTransactionEntry]:
        """사용자 원장 (최신순)"""
        model_instances = (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .order_by(desc(self.model_class.id))
            .limit(limit)
            .offset(offset)
            .all()
        )
        return self._to_schemas(model_instances)

    def count_for_user(self, user_id: int) -> int:
        return self.count({"user_id": user_id})

    def get_chain(self, user_id: int) -> List[PointTransactionEntry]:
        """사용자 원장 전체 (발생순) - 정합성 검증용"""
        model_instances = (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .order_by(asc(self.model_class.id))
            .all()
        )
        return self._to_schemas(model_instances)

    def find_reversal_of(self, transaction_id: int) -> Optional[PointTransactionEntry]:
        model_instance = (
            self.db.query(self.model_class)
            .filter(self.model_class.reverses_transaction_id == transaction_id)
            .first()
        )
        return self._to_schema(model_instance)
