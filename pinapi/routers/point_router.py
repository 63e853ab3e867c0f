"""
포인트 API 라우터

사용자용 엔드포인트:
- GET /points/balance: 내 포인트 잔액 / 레벨
- GET /points/ledger: 내 포인트 거래 내역 (최신순)
- GET /points/leaderboard: 순위 (전체 / 주간 / 월간)
- GET /points/actions: 활성 액션과 지급 포인트
- POST /points/daily-login: 일일 로그인 보상 수령
- GET /points/daily-summary: 오늘 사용량 / 한도
- GET /points/integrity/my: 내 원장 정합성 검증

관리자용 엔드포인트:
- POST /points/admin/adjust: 포인트 수동 조정
- POST /points/admin/transactions/{transaction_id}/reverse: 거래 상계
- GET /points/admin/balance/{user_id}, /points/admin/ledger/{user_id}
- GET /points/admin/integrity/user/{user_id}, /points/admin/integrity/all

모든 엔드포인트는 Bearer 토큰 인증이 필요하며, 오류는 등록된 예외 핸들러가
{"success": false, "error": {...}} 형태로 변환합니다.
"""

from fastapi import APIRouter, Depends, Path, Query

from pinapi.core.security import get_current_user, require_admin
from pinapi.deps import (
    get_catalog_service,
    get_daily_activity_service,
    get_ledger_service,
)
from pinapi.schemas.catalog import ActionCatalogResponse
from pinapi.schemas.daily_stats import DailyLoginResult, DailySummaryResponse
from pinapi.schemas.pagination import PaginationLimits
from pinapi.schemas.points import (
    AdminPointsAdjustmentRequest,
    LeaderboardPeriod,
    LeaderboardResponse,
    PointsBalanceResponse,
    PointsIntegrityCheckResponse,
    PointsLedgerResponse,
    PointTransactionEntry,
    ReverseTransactionRequest,
)
from pinapi.schemas.user import User as UserSchema
from pinapi.services.catalog_service import CatalogService
from pinapi.services.daily_activity_service import DailyActivityService
from pinapi.services.ledger_service import LedgerService

router = APIRouter(prefix="/points", tags=["points"])

LEDGER = PaginationLimits.POINTS_LEDGER
LEADERBOARD = PaginationLimits.LEADERBOARD


@router.get("/balance", response_model=PointsBalanceResponse)
def get_my_balance(
    current_user: UserSchema = Depends(get_current_user),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> PointsBalanceResponse:
    """내 포인트 잔액 조회 (users.total_points 캐시)"""
    return ledger_service.get_balance(current_user.id)


@router.get("/ledger", response_model=PointsLedgerResponse)
def get_my_ledger(
    limit: int = Query(LEDGER["default"], ge=LEDGER["min"], le=LEDGER["max"]),
    offset: int = Query(0, ge=0),
    current_user: UserSchema = Depends(get_current_user),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> PointsLedgerResponse:
    """
    내 포인트 거래 내역 조회

    사용 예시:
        GET /points/ledger?limit=20&offset=0  # 처음 20개 항목
        GET /points/ledger?limit=10&offset=20 # 21-30번째 항목
    """
    return ledger_service.get_ledger(current_user.id, limit=limit, offset=offset)


@router.get("/leaderboard", response_model=LeaderboardResponse)
def get_leaderboard(
    period: LeaderboardPeriod = Query(LeaderboardPeriod.ALL),
    limit: int = Query(LEADERBOARD["default"], ge=LEADERBOARD["min"], le=LEADERBOARD["max"]),
    current_user: UserSchema = Depends(get_current_user),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> LeaderboardResponse:
    return ledger_service.leaderboard(period=period, limit=limit)


@router.get("/actions", response_model=ActionCatalogResponse)
def list_point_actions(
    current_user: UserSchema = Depends(get_current_user),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ActionCatalogResponse:
    """활성 액션 목록"""
    return ActionCatalogResponse(actions=catalog_service.list_active())


@router.post("/daily-login", response_model=DailyLoginResult)
def claim_daily_login(
    current_user: UserSchema = Depends(get_current_user),
    activity_service: DailyActivityService = Depends(get_daily_activity_service),
) -> DailyLoginResult:
    """일일 로그인 보상 - 같은 날 두 번째 호출은 already_claimed_today=true"""
    return activity_service.claim_daily_login(current_user.id)


@router.get("/daily-summary", response_model=DailySummaryResponse)
def get_daily_summary(
    current_user: UserSchema = Depends(get_current_user),
    activity_service: DailyActivityService = Depends(get_daily_activity_service),
) -> DailySummaryResponse:
    return activity_service.get_today_summary(current_user.id)


@router.get("/integrity/my", response_model=PointsIntegrityCheckResponse)
def verify_my_integrity(
    current_user: UserSchema = Depends(get_current_user),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> PointsIntegrityCheckResponse:
    return ledger_service.verify_integrity_for_user(current_user.id)


# ============================================================================
# Admin
# ============================================================================


@router.post("/admin/adjust", response_model=PointTransactionEntry)
def admin_adjust_points(
    request: AdminPointsAdjustmentRequest,
    admin_user: UserSchema = Depends(require_admin),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> PointTransactionEntry:
    """포인트 수동 조정 (양수: 추가, 음수: 차감)"""
    return ledger_service.admin_adjust(
        admin_id=admin_user.id,
        user_id=request.user_id,
        amount=request.amount,
        reason=request.reason,
    )


@router.post(
    "/admin/transactions/{transaction_id}/reverse",
    response_model=PointTransactionEntry,
)
def admin_reverse_transaction(
    request: ReverseTransactionRequest,
    transaction_id: int = Path(..., gt=0),
    admin_user: UserSchema = Depends(require_admin),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> PointTransactionEntry:
    """거래 상계 - 이미 상계된 거래는 409"""
    return ledger_service.reverse_transaction(
        admin_id=admin_user.id, transaction_id=transaction_id, reason=request.reason
    )


@router.get("/admin/balance/{user_id}", response_model=PointsBalanceResponse)
def admin_get_user_balance(
    user_id: int = Path(..., gt=0),
    admin_user: UserSchema = Depends(require_admin),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> PointsBalanceResponse:
    return ledger_service.get_balance(user_id)


@router.get("/admin/ledger/{user_id}", response_model=PointsLedgerResponse)
def admin_get_user_ledger(
    user_id: int = Path(..., gt=0),
    limit: int = Query(LEDGER["default"], ge=LEDGER["min"], le=LEDGER["max"]),
    offset: int = Query(0, ge=0),
    admin_user: UserSchema = Depends(require_admin),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> PointsLedgerResponse:
    return ledger_service.get_ledger(user_id, limit=limit, offset=offset)


@router.get(
    "/admin/integrity/user/{user_id}", response_model=PointsIntegrityCheckResponse
)
def admin_verify_user_integrity(
    user_id: int = Path(..., gt=0),
    admin_user: UserSchema = Depends(require_admin),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> PointsIntegrityCheckResponse:
    return ledger_service.verify_integrity_for_user(user_id)


@router.get("/admin/integrity/all", response_model=PointsIntegrityCheckResponse)
def admin_verify_global_integrity(
    admin_user: UserSchema = Depends(require_admin),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> PointsIntegrityCheckResponse:
    """전체 사용자 원장 검증 - 사용자 수에 비례해 느릴 수 있음"""
    return ledger_service.verify_global_integrity()
