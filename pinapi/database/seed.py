"""
기본 카탈로그 / 설정 시드 데이터

이미 존재하는 행은 건드리지 않으므로 여러 번 실행해도 안전합니다.
"""

import logging
from typing import Dict, List, Union

from sqlalchemy.orm import Session

from pinapi.core.actions import ACTION_CATEGORIES, ActionKind
from pinapi.models.admin import AdminSetting
from pinapi.models.points import PointAction
from pinapi.schemas.settings import SETTING_METADATA, PlatformSettings, SettingKey

logger = logging.getLogger(__name__)

# 운영 초기값 - 이후 변경은 관리자 API 로
DEFAULT_ACTIONS: List[Dict[str, Union[ActionKind, str, int, None]]] = [
    {"kind": ActionKind.CREATE_PIN, "name": "Crear pin", "points": 20,
     "daily_limit": 5, "cooldown_seconds": None, "bonus_points": 30},
    {"kind": ActionKind.LIKE_PIN, "name": "Dar like", "points": 5,
     "daily_limit": 3, "cooldown_seconds": None, "bonus_points": 0},
    {"kind": ActionKind.RECEIVE_LIKE, "name": "Recibir like", "points": 10,
     "daily_limit": None, "cooldown_seconds": None, "bonus_points": 0},
    {"kind": ActionKind.COMMENT_PIN, "name": "Comentar pin", "points": 3,
     "daily_limit": 10, "cooldown_seconds": None, "bonus_points": 0},
    {"kind": ActionKind.DAILY_LOGIN, "name": "Login diario", "points": 5,
     "daily_limit": None, "cooldown_seconds": None, "bonus_points": 0},
    {"kind": ActionKind.STREAK_7_DAYS, "name": "Racha de 7 dias", "points": 50,
     "daily_limit": None, "cooldown_seconds": None, "bonus_points": 0},
    {"kind": ActionKind.STREAK_30_DAYS, "name": "Racha de 30 dias", "points": 200,
     "daily_limit": None, "cooldown_seconds": None, "bonus_points": 0},
    {"kind": ActionKind.VERIFIED_PURCHASE, "name": "Compra verificada", "points": 50,
     "daily_limit": None, "cooldown_seconds": None, "bonus_points": 0},
    {"kind": ActionKind.ADMIN_ADJUSTMENT, "name": "Ajuste administrativo", "points": 0,
     "daily_limit": None, "cooldown_seconds": None, "bonus_points": 0},
]


def seed_catalog(db: Session) -> int:
    """카탈로그 기본 행 추가 - 추가된 행 수 반환"""
    existing = {code for (code,) in db.query(PointAction.action_code).all()}
    added = 0
    for row in DEFAULT_ACTIONS:
        kind = row["kind"]
        if kind.value in existing:
            continue
        db.add(
            PointAction(
                action_code=kind.value,
                name=row["name"],
                category=ACTION_CATEGORIES[kind].value,
                points=row["points"],
                daily_limit=row["daily_limit"],
                cooldown_seconds=row["cooldown_seconds"],
                bonus_points=row["bonus_points"],
                is_active=True,
            )
        )
        added += 1
    db.flush()
    logger.info(f"Seeded {added} catalog actions")
    return added


def seed_settings(db: Session) -> int:
    """설정 기본값 행 추가 (PlatformSettings 기본값과 동일)"""
    defaults = PlatformSettings().model_dump()
    existing = {key for (key,) in db.query(AdminSetting.setting_key).all()}
    added = 0
    for key in SettingKey:
        if key.value in existing:
            continue
        metadata = SETTING_METADATA[key]
        db.add(
            AdminSetting(
                setting_key=key.value,
                setting_value={"value": defaults[key.value]},
                category=metadata["category"],
                description=metadata["description"],
            )
        )
        added += 1
    db.flush()
    logger.info(f"Seeded {added} platform settings")
    return added
