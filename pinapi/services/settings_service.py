import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from pinapi.config import Settings, get_settings
from pinapi.core.exceptions import ValidationError
from pinapi.database.session import transaction
from pinapi.repositories.admin_repository import (
    AdminSettingsRepository,
    ModerationLogRepository,
)
from pinapi.schemas.settings import (
    SETTING_METADATA,
    AdminSettingResponse,
    AdminSettingsResponse,
    PlatformSettings,
    SettingKey,
)

logger = logging.getLogger(__name__)


class SettingsService:
    """플랫폼 설정 스냅샷 서비스"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.settings_repo = AdminSettingsRepository(db)
        self.moderation_repo = ModerationLogRepository(db)

    def get_snapshot(self) -> PlatformSettings:
        """요청 시점의 설정 스냅샷 (행이 없는 키는 기본값)"""
        return PlatformSettings.from_rows(self.settings_repo.load_values())

    def list_settings(self) -> AdminSettingsResponse:
        return AdminSettingsResponse(
            effective=self.get_snapshot(),
            settings=self.settings_repo.list_rows([key.value for key in SettingKey]),
        )

    def update_setting(self, admin_id: int, key: str, value: Any) -> AdminSettingResponse:
        """설정 값 변경

        인식하지 않는 키와 타입이 맞지 않는 값은 저장 전에 거부합니다.
        """
        try:
            setting_key = SettingKey(key)
        except ValueError:
            raise ValidationError(
                f"Unknown setting key: {key}",
                details={"allowed_keys": [k.value for k in SettingKey]},
            )

        current = self.get_snapshot().model_dump()
        try:
            candidate = PlatformSettings.model_validate(
                {**current, setting_key.value: value}
            )
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid value for setting {setting_key.value}",
                details={"errors": e.errors(include_url=False, include_context=False)},
            )
        coerced = getattr(candidate, setting_key.value)

        metadata = SETTING_METADATA[setting_key]
        with transaction(self.db):
            saved = self.settings_repo.upsert_value(
                key=setting_key.value,
                value=coerced,
                category=metadata["category"],
                description=metadata["description"],
                updated_by=admin_id,
            )
            self.moderation_repo.write(
                admin_id=admin_id,
                action_type="update_setting",
                target_type="admin_setting",
                target_id=saved.id,
                metadata={
                    "setting_key": setting_key.value,
                    "before": current[setting_key.value],
                    "after": coerced,
                },
            )

        logger.info(f"Admin {admin_id} set {setting_key.value}={coerced!r}")
        return saved
