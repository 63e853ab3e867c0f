import logging
from typing import Optional

from sqlalchemy.orm import Session

from pinapi.config import Settings, get_settings
from pinapi.core.actions import ActionKind
from pinapi.core.exceptions import ConflictError, NotFoundError
from pinapi.database.session import transaction
from pinapi.repositories.admin_repository import ModerationLogRepository
from pinapi.repositories.catalog_repository import ActionCatalogRepository
from pinapi.repositories.pin_repository import PinRepository
from pinapi.repositories.user_repository import UserRepository
from pinapi.schemas.moderation import ModerationLogListResponse
from pinapi.schemas.pin import PinResponse
from pinapi.schemas.user import User as UserSchema
from pinapi.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)


class AdminService:
    """관리자 모더레이션 서비스

    모든 상태 변경은 감사 로그(moderation_logs)와 같은 트랜잭션에서 커밋됩니다.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.user_repo = UserRepository(db)
        self.pin_repo = PinRepository(db)
        self.catalog_repo = ActionCatalogRepository(db)
        self.moderation_repo = ModerationLogRepository(db)
        self.ledger_service = LedgerService(db, self.settings)

    def _lock_target_user(self, user_id: int):
        user = self.user_repo.lock_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", details={"user_id": user_id})
        return user

    def ban_user(self, admin_id: int, user_id: int, reason: str) -> UserSchema:
        if admin_id == user_id:
            raise ConflictError("Administrators cannot ban themselves")

        with transaction(self.db):
            user = self._lock_target_user(user_id)
            if user.is_banned:
                raise ConflictError("User is already banned", details={"user_id": user_id})
            self.user_repo.apply(user, is_banned=True, ban_reason=reason)
            self.moderation_repo.write(
                admin_id=admin_id,
                action_type="ban_user",
                target_type="user",
                target_id=user_id,
                reason=reason,
            )
            banned = UserSchema.model_validate(user)

        logger.warning(f"Admin {admin_id} banned user {user_id}: {reason}")
        return banned

    def unban_user(self, admin_id: int, user_id: int) -> UserSchema:
        with transaction(self.db):
            user = self._lock_target_user(user_id)
            if not user.is_banned:
                raise ConflictError("User is not banned", details={"user_id": user_id})
            previous_reason = user.ban_reason
            self.user_repo.apply(user, is_banned=False, ban_reason=None)
            self.moderation_repo.write(
                admin_id=admin_id,
                action_type="unban_user",
                target_type="user",
                target_id=user_id,
                metadata={"previous_reason": previous_reason},
            )
            unbanned = UserSchema.model_validate(user)

        logger.info(f"Admin {admin_id} unbanned user {user_id}")
        return unbanned

    def set_verified_buyer(
        self, admin_id: int, user_id: int, is_verified: bool = True
    ) -> UserSchema:
        """인증 구매자 지정/해제 - 새로 지정될 때 verified_purchase 포인트 지급"""
        with transaction(self.db):
            user = self._lock_target_user(user_id)
            if user.is_verified_buyer == is_verified:
                raise ConflictError(
                    "Verified buyer flag already set to this value",
                    details={"user_id": user_id, "is_verified_buyer": is_verified},
                )
            self.user_repo.apply(user, is_verified_buyer=is_verified)

            awarded = 0
            if is_verified:
                reward = self.catalog_repo.get_by_code(ActionKind.VERIFIED_PURCHASE)
                if reward is not None and reward.is_active and reward.points:
                    self.ledger_service.record_transaction(
                        user_id,
                        ActionKind.VERIFIED_PURCHASE,
                        reward.points,
                        description="Verified TRESESENTA buyer",
                        related_user_id=admin_id,
                    )
                    awarded = reward.points

            self.moderation_repo.write(
                admin_id=admin_id,
                action_type="verify_buyer" if is_verified else "unverify_buyer",
                target_type="user",
                target_id=user_id,
                metadata={"points_awarded": awarded},
            )
            updated = UserSchema.model_validate(user)

        logger.info(f"Admin {admin_id} set verified buyer={is_verified} for user {user_id}")
        return updated

    def _set_pin_hidden(
        self, admin_id: int, pin_id: int, hidden: bool, reason: Optional[str]
    ) -> PinResponse:
        with transaction(self.db):
            pin = self.pin_repo.lock_by_id(pin_id)
            if pin is None:
                raise NotFoundError(f"Pin {pin_id} not found", details={"pin_id": pin_id})
            if pin.is_hidden == hidden:
                raise ConflictError(
                    "Pin is already hidden" if hidden else "Pin is not hidden",
                    details={"pin_id": pin_id},
                )
            self.pin_repo.apply(pin, is_hidden=hidden, hidden_reason=reason if hidden else None)
            self.moderation_repo.write(
                admin_id=admin_id,
                action_type="hide_pin" if hidden else "unhide_pin",
                target_type="pin",
                target_id=pin_id,
                reason=reason,
            )
            updated = PinResponse.model_validate(pin)
        return updated

    def hide_pin(self, admin_id: int, pin_id: int, reason: str) -> PinResponse:
        return self._set_pin_hidden(admin_id, pin_id, True, reason)

    def unhide_pin(self, admin_id: int, pin_id: int) -> PinResponse:
        return self._set_pin_hidden(admin_id, pin_id, False, None)

    def list_moderation_logs(
        self, limit: int = 50, offset: int = 0, action_type: Optional[str] = None
    ) -> ModerationLogListResponse:
        logs = self.moderation_repo.list_recent(
            limit=limit, offset=offset, action_type=action_type
        )
        total_count = self.moderation_repo.count_filtered(action_type)
        return ModerationLogListResponse(
            logs=logs,
            total_count=total_count,
            has_next=offset + len(logs) < total_count,
        )

    def get_user(self, user_id: int) -> UserSchema:
        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", details={"user_id": user_id})
        return user
