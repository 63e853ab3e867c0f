from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from pinapi.models.admin import AdminSetting, ModerationLog
from pinapi.repositories.base import BaseRepository
from pinapi.schemas.moderation import ModerationLogEntry
from pinapi.schemas.settings import AdminSettingResponse


class AdminSettingsRepository(BaseRepository[AdminSetting, AdminSettingResponse]):
    """admin_settings 키-값 저장소"""

    def __init__(self, db: Session):
        super().__init__(AdminSetting, AdminSettingResponse, db)

    def _to_schema(self, model_instance: Any) -> Optional[AdminSettingResponse]:
        if model_instance is None:
            return None
        stored = model_instance.setting_value
        return AdminSettingResponse(
            id=model_instance.id,
            setting_key=model_instance.setting_key,
            value=stored.get("value") if isinstance(stored, dict) else stored,
            category=model_instance.category,
            description=model_instance.description,
            updated_by=model_instance.updated_by,
            updated_at=model_instance.updated_at,
        )

    def load_values(self) -> Dict[str, Any]:
        """{setting_key: value} - 인식 여부와 무관하게 전체 행"""
        values = {}
        for row in self.db.query(self.model_class).all():
            stored = row.setting_value
            values[row.setting_key] = stored.get("value") if isinstance(stored, dict) else stored
        return values

    def list_rows(self, keys: List[str]) -> List[AdminSettingResponse]:
        model_instances = (
            self.db.query(self.model_class)
            .filter(self.model_class.setting_key.in_(keys))
            .order_by(self.model_class.category, self.model_class.setting_key)
            .all()
        )
        return [self._to_schema(instance) for instance in model_instances]

    def upsert_value(
        self,
        key: str,
        value: Any,
        category: str,
        description: Optional[str],
        updated_by: Optional[int],
    ) -> AdminSettingResponse:
        instance = (
            self.db.query(self.model_class)
            .filter(self.model_class.setting_key == key)
            .with_for_update()
            .first()
        )
        if instance is None:
            instance = self.add(
                setting_key=key,
                setting_value={"value": value},
                category=category,
                description=description,
                updated_by=updated_by,
            )
        else:
            self.apply(instance, setting_value={"value": value}, updated_by=updated_by)
        self.db.refresh(instance)
        return self._to_schema(instance)


class ModerationLogRepository(BaseRepository[ModerationLog, ModerationLogEntry]):
    """관리자 감사 로그 - 쓰기 전용 싱크 (조회는 관리자 화면용)"""

    def __init__(self, db: Session):
        super().__init__(ModerationLog, ModerationLogEntry, db)

    def write(
        self,
        admin_id: int,
        action_type: str,
        target_type: str,
        target_id: int,
        reason: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ModerationLogEntry:
        """주 변경과 같은 트랜잭션에서 호출해야 함 (commit 은 호출자 경계에서)"""
        return self.create(
            admin_id=admin_id,
            action_type=action_type,
            target_type=target_type,
            target_id=target_id,
            reason=reason,
            log_metadata=metadata,
        )

    def list_recent(
        self,
        limit: int = 50,
        offset: int = 0,
        action_type: Optional[str] = None,
    ) -> List[ModerationLogEntry]:
        query = self.db.query(self.model_class)
        if action_type:
            query = query.filter(self.model_class.action_type == action_type)
        model_instances = (
            query.order_by(desc(self.model_class.id)).limit(limit).offset(offset).all()
        )
        return self._to_schemas(model_instances)

    def count_filtered(self, action_type: Optional[str] = None) -> int:
        if action_type:
            return self.count({"action_type": action_type})
        return self.count()
