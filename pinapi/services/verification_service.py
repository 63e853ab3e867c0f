"""
구매 인증 워크플로

상태 전이: none -> pending -> {approved, rejected}, 자동 승인 시 none -> approved.
approved / rejected 는 종료 상태이며 다시 전이할 수 없습니다.

보너스 포인트는 요청 생성 시점의 카탈로그 값으로 고정되고, 승인 시 그 값만 지급합니다.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from pinapi.config import Settings, get_settings
from pinapi.core.actions import ActionKind
from pinapi.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from pinapi.database.session import transaction
from pinapi.models.pin import PinVerificationStatus
from pinapi.models.verification import VerificationStatus
from pinapi.repositories.admin_repository import ModerationLogRepository
from pinapi.repositories.pin_repository import PinRepository
from pinapi.repositories.verification_repository import VerificationRepository
from pinapi.schemas.verification import (
    VerificationDecisionResponse,
    VerificationListResponse,
    VerificationRequestResponse,
)
from pinapi.services.ledger_service import LedgerService
from pinapi.utils.timezone_utils import get_utc_now

logger = logging.getLogger(__name__)


class VerificationService:
    """구매 인증 요청 처리 서비스"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.verification_repo = VerificationRepository(db)
        self.pin_repo = PinRepository(db)
        self.moderation_repo = ModerationLogRepository(db)
        self.ledger_service = LedgerService(db, self.settings)

    def submit(self, pin_id: int, user_id: int, bonus_points: int) -> VerificationRequestResponse:
        """pending 요청 생성 (핀 생성 트랜잭션 안에서 호출)"""
        request = self.verification_repo.create(
            pin_id=pin_id,
            user_id=user_id,
            bonus_points=bonus_points,
            status=VerificationStatus.PENDING.value,
            verification_images=[],
        )
        logger.info(
            f"Verification request {request.id} created for pin {pin_id} (bonus {bonus_points})"
        )
        return request

    def _lock_pending(self, request_id: int):
        """요청 행을 잠근 뒤 pending 여부 확인"""
        request = self.verification_repo.lock_request(request_id)
        if request is None:
            raise NotFoundError(
                f"Verification request {request_id} not found",
                details={"request_id": request_id},
            )
        if request.status != VerificationStatus.PENDING.value:
            raise ConflictError(
                "Verification request already processed",
                details={"request_id": request_id, "status": request.status},
            )
        return request

    def approve(
        self, admin_id: int, request_id: int, notes: Optional[str] = None
    ) -> VerificationDecisionResponse:
        """승인 - 고정된 보너스가 있으면 원장 거래 한 건 추가"""
        now = get_utc_now()
        with transaction(self.db):
            request = self._lock_pending(request_id)
            self.verification_repo.apply(
                request,
                status=VerificationStatus.APPROVED.value,
                reviewed_by=admin_id,
                reviewed_at=now,
                review_notes=notes,
            )
            pin = self.pin_repo.get_model(request.pin_id)
            if pin is not None:
                self.pin_repo.apply(
                    pin,
                    verification_status=PinVerificationStatus.APPROVED.value,
                    verified_by=admin_id,
                    verified_at=now,
                    verification_notes=notes,
                )

            entry = None
            if request.bonus_points > 0:
                entry = self.ledger_service.record_transaction(
                    request.user_id,
                    ActionKind.VERIFIED_PURCHASE,
                    request.bonus_points,
                    description=f"TRESESENTA purchase verified for pin #{request.pin_id}",
                    related_pin_id=request.pin_id,
                    includes_bonus=True,
                    now=now,
                )

            self.moderation_repo.write(
                admin_id=admin_id,
                action_type="approve_verification",
                target_type="verification_request",
                target_id=request.id,
                reason=notes,
                metadata={"pin_id": request.pin_id, "bonus_points": request.bonus_points},
            )
            decided = VerificationRequestResponse.model_validate(request)

        logger.info(f"Admin {admin_id} approved verification {request_id}")
        return VerificationDecisionResponse(
            request=decided,
            bonus_points_awarded=request.bonus_points if entry else 0,
            transaction=entry,
        )

    def reject(
        self,
        admin_id: int,
        request_id: int,
        reason: str,
        notes: Optional[str] = None,
    ) -> VerificationDecisionResponse:
        """거절 - 사유 필수, 포인트 변동 없음

        상태 검사가 사유 검사보다 먼저입니다. 이미 처리된 요청은 사유와 무관하게 409.
        """
        now = get_utc_now()
        with transaction(self.db):
            request = self._lock_pending(request_id)
            if not reason or not reason.strip():
                raise ValidationError("Rejection reason is required")
            self.verification_repo.apply(
                request,
                status=VerificationStatus.REJECTED.value,
                reviewed_by=admin_id,
                reviewed_at=now,
                review_notes=notes,
                rejection_reason=reason.strip(),
            )
            pin = self.pin_repo.get_model(request.pin_id)
            if pin is not None:
                self.pin_repo.apply(
                    pin,
                    verification_status=PinVerificationStatus.REJECTED.value,
                    verified_by=admin_id,
                    verified_at=now,
                    verification_notes=reason.strip(),
                )
            self.moderation_repo.write(
                admin_id=admin_id,
                action_type="reject_verification",
                target_type="verification_request",
                target_id=request.id,
                reason=reason.strip(),
                metadata={"pin_id": request.pin_id},
            )
            decided = VerificationRequestResponse.model_validate(request)

        logger.info(f"Admin {admin_id} rejected verification {request_id}")
        return VerificationDecisionResponse(request=decided)

    def add_evidence_images(
        self, user_id: int, request_id: int, images: List[str]
    ) -> VerificationRequestResponse:
        """pending 요청에 인증 이미지 추가 (요청 소유자만)"""
        with transaction(self.db):
            request = self._lock_pending(request_id)
            if request.user_id != user_id:
                raise AuthorizationError("Not the owner of this verification request")
            self.verification_repo.apply(
                request, verification_images=list(request.verification_images or []) + images
            )
            updated = VerificationRequestResponse.model_validate(request)
        return updated

    def list_pending(self, limit: int = 50, offset: int = 0) -> VerificationListResponse:
        return self.list_all(VerificationStatus.PENDING, limit=limit, offset=offset)

    def list_all(
        self,
        status: Optional[VerificationStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> VerificationListResponse:
        requests = self.verification_repo.list_by_status(status, limit=limit, offset=offset)
        total_count = self.verification_repo.count_by_status(status)
        return VerificationListResponse(
            requests=requests,
            total_count=total_count,
            has_next=offset + len(requests) < total_count,
        )

    def list_for_user(self, user_id: int) -> List[VerificationRequestResponse]:
        return self.verification_repo.list_for_user(user_id)

    def get_request(self, request_id: int) -> VerificationRequestResponse:
        request = self.verification_repo.get_by_id(request_id)
        if request is None:
            raise NotFoundError(
                f"Verification request {request_id} not found",
                details={"request_id": request_id},
            )
        return request
