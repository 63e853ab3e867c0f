"""
플랫폼 전역 설정 스냅샷

admin_settings 테이블의 키-값을 요청마다 한 번 읽어 타입이 있는 PlatformSettings 로
변환합니다. 인식하는 키는 SettingKey 로 열거되며, 행이 없으면 기본값을 사용합니다.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SettingKey(str, Enum):
    AUTO_APPROVE_VERIFIED_BUYERS = "auto_approve_verified_buyers"
    COMMENT_COOLDOWN_SECONDS = "comment_cooldown_seconds"


class PlatformSettings(BaseModel):
    """요청 단위 설정 스냅샷"""

    auto_approve_verified_buyers: bool = Field(
        False, description="인증 구매자의 TRESESENTA 핀 자동 승인"
    )
    comment_cooldown_seconds: int = Field(
        30, ge=0, description="카탈로그에 쿨다운이 없을 때 댓글 간 최소 간격"
    )

    @classmethod
    def from_rows(cls, values: Dict[str, Any]) -> "PlatformSettings":
        """{setting_key: value} 에서 인식하는 키만 골라 스냅샷 생성"""
        known = {key.value for key in SettingKey}
        return cls.model_validate({k: v for k, v in values.items() if k in known})


SETTING_METADATA: Dict[SettingKey, Dict[str, str]] = {
    SettingKey.AUTO_APPROVE_VERIFIED_BUYERS: {
        "category": "verification",
        "description": "Auto-approve purchase-tagged pins from verified buyers",
    },
    SettingKey.COMMENT_COOLDOWN_SECONDS: {
        "category": "limits",
        "description": "Minimum seconds between two comments by one user",
    },
}


class SettingUpdateRequest(BaseModel):
    value: Any = Field(..., description="새 값 (키의 타입으로 검증)")


class AdminSettingResponse(BaseModel):
    id: int
    setting_key: SettingKey
    value: Any
    category: str
    description: Optional[str] = None
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None


class AdminSettingsResponse(BaseModel):
    effective: PlatformSettings
    settings: List[AdminSettingResponse]
