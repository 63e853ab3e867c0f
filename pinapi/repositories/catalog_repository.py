from typing import List, Optional

from sqlalchemy.orm import Session

from pinapi.core.actions import ActionKind
from pinapi.models.points import PointAction
from pinapi.repositories.base import BaseRepository
from pinapi.schemas.catalog import ActionDefinition


class ActionCatalogRepository(BaseRepository[PointAction, ActionDefinition]):
    """액션 카탈로그 리포지토리 - 캐시 없이 매번 DB 에서 읽음"""

    def __init__(self, db: Session):
        super().__init__(PointAction, ActionDefinition, db)

    def get_model_by_code(self, kind: ActionKind) -> Optional[PointAction]:
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.action_code == kind.value)
            .first()
        )

    def get_by_code(self, kind: ActionKind) -> Optional[ActionDefinition]:
        return self._to_schema(self.get_model_by_code(kind))

    def list_all(self) -> List[ActionDefinition]:
        model_instances = (
            self.db.query(self.model_class)
            .order_by(self.model_class.category, self.model_class.action_code)
            .all()
        )
        return self._to_schemas(model_instances)

    def list_active(self) -> List[ActionDefinition]:
        model_instances = (
            self.db.query(self.model_class)
            .filter(self.model_class.is_active.is_(True))
            .order_by(self.model_class.category, self.model_class.points.desc())
            .all()
        )
        return self._to_schemas(model_instances)
