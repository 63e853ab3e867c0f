"""
Admin Router

관리자 전용 API 엔드포인트
- 사용자 밴 / 인증 구매자 지정
- 핀 숨김 처리
- 액션 카탈로그 / 플랫폼 설정 수정
- 모더레이션 로그 조회
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from pinapi.core.actions import ActionKind
from pinapi.core.security import require_admin
from pinapi.deps import get_admin_service, get_catalog_service, get_settings_service
from pinapi.schemas.catalog import (
    ActionCatalogResponse,
    ActionDefinition,
    ActionDefinitionUpdate,
)
from pinapi.schemas.moderation import ModerationLogListResponse
from pinapi.schemas.pagination import PaginationLimits
from pinapi.schemas.pin import PinResponse
from pinapi.schemas.settings import (
    AdminSettingResponse,
    AdminSettingsResponse,
    SettingUpdateRequest,
)
from pinapi.schemas.user import (
    BanUserRequest,
    HidePinRequest,
    User as UserSchema,
    VerifyBuyerRequest,
)
from pinapi.services.admin_service import AdminService
from pinapi.services.catalog_service import CatalogService
from pinapi.services.settings_service import SettingsService

router = APIRouter(prefix="/admin", tags=["admin"])

LOGS = PaginationLimits.MODERATION_LOGS


@router.get("/users/{user_id}", response_model=UserSchema)
def get_user(
    user_id: int = Path(..., gt=0),
    admin_user: UserSchema = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> UserSchema:
    return admin_service.get_user(user_id)


@router.post("/users/{user_id}/ban", response_model=UserSchema)
def ban_user(
    body: BanUserRequest,
    user_id: int = Path(..., gt=0),
    admin_user: UserSchema = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> UserSchema:
    """사용자 밴 - 자기 자신은 밴할 수 없음 (409)"""
    return admin_service.ban_user(admin_user.id, user_id, body.reason)


@router.post("/users/{user_id}/unban", response_model=UserSchema)
def unban_user(
    user_id: int = Path(..., gt=0),
    admin_user: UserSchema = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> UserSchema:
    return admin_service.unban_user(admin_user.id, user_id)


@router.post("/users/{user_id}/verified-buyer", response_model=UserSchema)
def set_verified_buyer(
    body: VerifyBuyerRequest,
    user_id: int = Path(..., gt=0),
    admin_user: UserSchema = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> UserSchema:
    return admin_service.set_verified_buyer(admin_user.id, user_id, body.is_verified)


@router.post("/pins/{pin_id}/hide", response_model=PinResponse)
def hide_pin(
    body: HidePinRequest,
    pin_id: int = Path(..., gt=0),
    admin_user: UserSchema = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> PinResponse:
    return admin_service.hide_pin(admin_user.id, pin_id, body.reason)


@router.post("/pins/{pin_id}/unhide", response_model=PinResponse)
def unhide_pin(
    pin_id: int = Path(..., gt=0),
    admin_user: UserSchema = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> PinResponse:
    return admin_service.unhide_pin(admin_user.id, pin_id)


@router.get("/moderation-logs", response_model=ModerationLogListResponse)
def list_moderation_logs(
    action_type: Optional[str] = Query(None, description="작업 유형 필터"),
    limit: int = Query(LOGS["default"], ge=LOGS["min"], le=LOGS["max"]),
    offset: int = Query(0, ge=0),
    admin_user: UserSchema = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> ModerationLogListResponse:
    return admin_service.list_moderation_logs(
        limit=limit, offset=offset, action_type=action_type
    )


@router.get("/actions", response_model=ActionCatalogResponse)
def list_all_actions(
    admin_user: UserSchema = Depends(require_admin),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ActionCatalogResponse:
    """비활성 액션 포함 전체 카탈로그"""
    return ActionCatalogResponse(actions=catalog_service.list_all())


@router.patch("/actions/{action_code}", response_model=ActionDefinition)
def update_action(
    body: ActionDefinitionUpdate,
    action_code: ActionKind = Path(...),
    admin_user: UserSchema = Depends(require_admin),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ActionDefinition:
    return catalog_service.update_action(admin_user.id, action_code, body)


@router.get("/settings", response_model=AdminSettingsResponse)
def list_settings(
    admin_user: UserSchema = Depends(require_admin),
    settings_service: SettingsService = Depends(get_settings_service),
) -> AdminSettingsResponse:
    return settings_service.list_settings()


@router.put("/settings/{setting_key}", response_model=AdminSettingResponse)
def update_setting(
    body: SettingUpdateRequest,
    setting_key: str = Path(...),
    admin_user: UserSchema = Depends(require_admin),
    settings_service: SettingsService = Depends(get_settings_service),
) -> AdminSettingResponse:
    """설정 변경 - 알 수 없는 키나 타입이 맞지 않는 값은 422"""
    return settings_service.update_setting(admin_user.id, setting_key, body.value)
