import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from pinapi.config import Settings, get_settings
from pinapi.core.actions import ACTION_CATEGORIES, ActionKind
from pinapi.core.exceptions import (
    FeatureDisabledError,
    NotFoundError,
    ValidationError,
)
from pinapi.database.session import transaction
from pinapi.repositories.admin_repository import ModerationLogRepository
from pinapi.repositories.catalog_repository import ActionCatalogRepository
from pinapi.schemas.catalog import ActionDefinition, ActionDefinitionUpdate

logger = logging.getLogger(__name__)

# null 로 보내면 "제한 없음"으로 해석되는 필드
NULLABLE_FIELDS = {"daily_limit", "cooldown_seconds", "description"}


class CatalogService:
    """액션 카탈로그 조회/관리

    카탈로그 행은 캐시하지 않고 호출마다 DB 에서 다시 읽습니다.
    관리자가 값을 바꾸면 다음 요청부터 바로 반영됩니다.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.catalog_repo = ActionCatalogRepository(db)
        self.moderation_repo = ModerationLogRepository(db)

    def lookup(self, kind: ActionKind) -> ActionDefinition:
        """활성 액션 정의 조회 - 기본값으로 대체하지 않음

        Raises:
            NotFoundError: 카탈로그에 행이 없음
            FeatureDisabledError: 관리자가 비활성화한 액션
        """
        definition = self.catalog_repo.get_by_code(kind)
        if definition is None:
            raise NotFoundError(
                f"Action '{kind.value}' is not configured",
                details={"action_code": kind.value},
            )
        if not definition.is_active:
            raise FeatureDisabledError(
                f"Action '{kind.value}' is currently disabled",
                details={"action_code": kind.value},
            )
        return definition

    def lookup_or_bootstrap(self, kind: ActionKind, default_points: int) -> ActionDefinition:
        """행이 없을 때 기본값으로 카탈로그 행을 만든 뒤 반환 (핀 생성 전용)

        호출자의 트랜잭션 안에서 실행되며, 만들어진 행은 이후 일반 행과 같이 관리됩니다.
        """
        definition = self.catalog_repo.get_by_code(kind)
        if definition is None:
            logger.warning(
                f"Catalog row for '{kind.value}' missing, bootstrapping with {default_points} points"
            )
            definition = self.catalog_repo.create(
                action_code=kind.value,
                name=kind.value.replace("_", " ").title(),
                category=ACTION_CATEGORIES[kind].value,
                points=default_points,
                bonus_points=0,
                is_active=True,
            )
        if not definition.is_active:
            raise FeatureDisabledError(
                f"Action '{kind.value}' is currently disabled",
                details={"action_code": kind.value},
            )
        return definition

    def list_active(self) -> List[ActionDefinition]:
        return self.catalog_repo.list_active()

    def list_all(self) -> List[ActionDefinition]:
        return self.catalog_repo.list_all()

    def update_action(
        self, admin_id: int, kind: ActionKind, update: ActionDefinitionUpdate
    ) -> ActionDefinition:
        """관리자 카탈로그 수정 - 보낸 필드만 반영, 감사 로그와 함께 커밋"""
        changes = {
            key: value
            for key, value in update.model_dump(exclude_unset=True).items()
            if value is not None or key in NULLABLE_FIELDS
        }
        if not changes:
            raise ValidationError("No catalog fields to update")

        with transaction(self.db):
            action = self.catalog_repo.get_model_by_code(kind)
            if action is None:
                raise NotFoundError(
                    f"Action '{kind.value}' is not configured",
                    details={"action_code": kind.value},
                )
            before = {key: getattr(action, key) for key in changes}
            self.catalog_repo.apply(action, **changes)
            self.moderation_repo.write(
                admin_id=admin_id,
                action_type="update_point_action",
                target_type="point_action",
                target_id=action.id,
                metadata={"action_code": kind.value, "before": before, "after": changes},
            )
            updated = ActionDefinition.model_validate(action)

        logger.info(f"Admin {admin_id} updated catalog action {kind.value}: {changes}")
        return updated
