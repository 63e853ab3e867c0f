"""
구매 인증 API 라우터

- GET /verifications/my: 내 인증 요청 목록
- POST /verifications/{request_id}/images: pending 요청에 인증 이미지 추가
- GET /verifications/admin/pending: 처리 대기열 (오래된 순)
- GET /verifications/admin: 상태별 목록
- POST /verifications/admin/{request_id}/approve | reject
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from pinapi.core.security import get_current_user, require_admin
from pinapi.deps import get_verification_service
from pinapi.models.verification import VerificationStatus
from pinapi.schemas.pagination import PaginationLimits
from pinapi.schemas.user import User as UserSchema
from pinapi.schemas.verification import (
    ApproveVerificationRequest,
    EvidenceImagesRequest,
    RejectVerificationRequest,
    VerificationDecisionResponse,
    VerificationListResponse,
    VerificationRequestResponse,
)
from pinapi.services.verification_service import VerificationService

router = APIRouter(prefix="/verifications", tags=["verifications"])

QUEUE = PaginationLimits.VERIFICATION_QUEUE


@router.get("/my", response_model=List[VerificationRequestResponse])
def list_my_verifications(
    current_user: UserSchema = Depends(get_current_user),
    verification_service: VerificationService = Depends(get_verification_service),
) -> List[VerificationRequestResponse]:
    return verification_service.list_for_user(current_user.id)


@router.post("/{request_id}/images", response_model=VerificationRequestResponse)
def add_verification_images(
    body: EvidenceImagesRequest,
    request_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(get_current_user),
    verification_service: VerificationService = Depends(get_verification_service),
) -> VerificationRequestResponse:
    return verification_service.add_evidence_images(
        current_user.id, request_id, body.images
    )


@router.get("/admin/pending", response_model=VerificationListResponse)
def list_pending_verifications(
    limit: int = Query(QUEUE["default"], ge=QUEUE["min"], le=QUEUE["max"]),
    offset: int = Query(0, ge=0),
    admin_user: UserSchema = Depends(require_admin),
    verification_service: VerificationService = Depends(get_verification_service),
) -> VerificationListResponse:
    return verification_service.list_pending(limit=limit, offset=offset)


@router.get("/admin", response_model=VerificationListResponse)
def list_verifications(
    status: Optional[VerificationStatus] = Query(None),
    limit: int = Query(QUEUE["default"], ge=QUEUE["min"], le=QUEUE["max"]),
    offset: int = Query(0, ge=0),
    admin_user: UserSchema = Depends(require_admin),
    verification_service: VerificationService = Depends(get_verification_service),
) -> VerificationListResponse:
    return verification_service.list_all(status, limit=limit, offset=offset)


@router.get("/admin/{request_id}", response_model=VerificationRequestResponse)
def get_verification(
    request_id: int = Path(..., gt=0),
    admin_user: UserSchema = Depends(require_admin),
    verification_service: VerificationService = Depends(get_verification_service),
) -> VerificationRequestResponse:
    return verification_service.get_request(request_id)


@router.post(
    "/admin/{request_id}/approve", response_model=VerificationDecisionResponse
)
def approve_verification(
    body: ApproveVerificationRequest,
    request_id: int = Path(..., gt=0),
    admin_user: UserSchema = Depends(require_admin),
    verification_service: VerificationService = Depends(get_verification_service),
) -> VerificationDecisionResponse:
    """승인 - 이미 처리된 요청은 409"""
    return verification_service.approve(admin_user.id, request_id, notes=body.notes)


@router.post("/admin/{request_id}/reject", response_model=VerificationDecisionResponse)
def reject_verification(
    body: RejectVerificationRequest,
    request_id: int = Path(..., gt=0),
    admin_user: UserSchema = Depends(require_admin),
    verification_service: VerificationService = Depends(get_verification_service),
) -> VerificationDecisionResponse:
    return verification_service.reject(
        admin_user.id, request_id, reason=body.reason, notes=body.notes
    )
