from typing import List, Optional

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from pinapi.models.verification import VerificationRequest, VerificationStatus
from pinapi.repositories.base import BaseRepository
from pinapi.schemas.verification import VerificationRequestResponse


class VerificationRepository(
    BaseRepository[VerificationRequest, VerificationRequestResponse]
):
    """구매 인증 요청 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(VerificationRequest, VerificationRequestResponse, db)

    def lock_request(self, request_id: int) -> Optional[VerificationRequest]:
        """상태 확인 전에 요청 행 잠금 - 동시 승인으로 인한 이중 지급 방지"""
        return self.lock_by_id(request_id)

    def find_pending_for_pin(
        self, pin_id: int, user_id: int
    ) -> Optional[VerificationRequest]:
        return (
            self.db.query(self.model_class)
            .filter(
                self.model_class.pin_id == pin_id,
                self.model_class.user_id == user_id,
                self.model_class.status == VerificationStatus.PENDING.value,
            )
            .with_for_update()
            .first()
        )

    def list_by_status(
        self,
        status: Optional[VerificationStatus],
        limit: int = 50,
        offset: int = 0,
    ) -> List[VerificationRequestResponse]:
        """pending 은 오래된 순 (처리 대기열), 그 외는 최신순"""
        query = self.db.query(self.model_class)
        if status is not None:
            query = query.filter(self.model_class.status == status.value)
        if status == VerificationStatus.PENDING:
            query = query.order_by(asc(self.model_class.id))
        else:
            query = query.order_by(desc(self.model_class.id))
        return self._to_schemas(query.limit(limit).offset(offset).all())

    def count_by_status(self, status: Optional[VerificationStatus]) -> int:
        if status is None:
            return self.count()
        return self.count({"status": status.value})

    def list_for_user(self, user_id: int) -> List[VerificationRequestResponse]:
        model_instances = (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .order_by(desc(self.model_class.id))
            .all()
        )
        return self._to_schemas(model_instances)
