"""
핀 활동 서비스 - 포인트가 오가는 사용자 행동 파이프라인

한 액션의 처리 순서:
    카운터 검사 -> 카탈로그 조회 -> (구매 연동 핀) 인증 분기 -> 원장 기록 -> 카운터 증가

위 단계는 하나의 DB 트랜잭션에서 실행되어 중간 실패 시 전부 롤백됩니다.
도시가 지정된 핀은 같은 트랜잭션에서 user_cities 집계도 갱신합니다.
좋아요는 누른 사람과 핀 주인의 포인트를 각각 별도 트랜잭션으로 기록합니다.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from pinapi.config import Settings, get_settings
from pinapi.core.actions import ActionKind
from pinapi.core.exceptions import BaseAPIException, ConflictError, NotFoundError
from pinapi.database.session import transaction
from pinapi.models.pin import PinVerificationStatus
from pinapi.repositories.city_repository import UserCityRepository
from pinapi.repositories.pin_repository import PinRepository
from pinapi.repositories.user_repository import UserRepository
from pinapi.schemas.pin import (
    CommentCreate,
    CommentCreateResponse,
    CommentListResponse,
    LikeResponse,
    PinCreate,
    PinCreateResponse,
    PinListResponse,
    PinResponse,
)
from pinapi.schemas.user import UserCityResponse
from pinapi.services.catalog_service import CatalogService
from pinapi.services.daily_activity_service import DailyActivityService
from pinapi.services.ledger_service import LedgerService
from pinapi.services.settings_service import SettingsService
from pinapi.services.verification_service import VerificationService
from pinapi.utils.timezone_utils import get_utc_now

logger = logging.getLogger(__name__)


class PinActivityService:
    """핀 생성 / 좋아요 / 댓글 처리"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.pin_repo = PinRepository(db)
        self.city_repo = UserCityRepository(db)
        self.user_repo = UserRepository(db)
        self.catalog_service = CatalogService(db, self.settings)
        self.settings_service = SettingsService(db, self.settings)
        self.activity_service = DailyActivityService(db, self.settings)
        self.ledger_service = LedgerService(db, self.settings)
        self.verification_service = VerificationService(db, self.settings)

    def _get_visible_pin(self, pin_id: int):
        pin = self.pin_repo.get_visible_model(pin_id)
        if pin is None:
            raise NotFoundError(f"Pin {pin_id} not found", details={"pin_id": pin_id})
        return pin

    def get_pin(self, pin_id: int) -> PinResponse:
        return PinResponse.model_validate(self._get_visible_pin(pin_id))

    def list_pins(
        self,
        viewer_id: int,
        category_id: Optional[int] = None,
        city_id: Optional[int] = None,
        user_id: Optional[int] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> PinListResponse:
        """핀 피드 - 숨김 핀 제외, 조회자의 좋아요 여부 표시"""
        pins = self.pin_repo.list_visible(
            category_id=category_id,
            city_id=city_id,
            user_id=user_id,
            limit=limit,
            offset=offset,
        )
        liked = self.pin_repo.liked_pin_ids(viewer_id, [pin.id for pin in pins])
        pins = [pin.model_copy(update={"liked_by_user": pin.id in liked}) for pin in pins]
        total_count = self.pin_repo.count_visible(category_id, city_id, user_id)
        return PinListResponse(
            pins=pins,
            total_count=total_count,
            has_next=offset + len(pins) < total_count,
        )

    def list_comments(self, pin_id: int) -> CommentListResponse:
        self._get_visible_pin(pin_id)
        return CommentListResponse(
            pin_id=pin_id, comments=self.pin_repo.list_comments(pin_id)
        )

    def list_cities(self, user_id: int) -> List[UserCityResponse]:
        return self.city_repo.list_for_user(user_id)

    def create_pin(
        self, user_id: int, pin_in: PinCreate, now: Optional[datetime] = None
    ) -> PinCreateResponse:
        """핀 생성 및 포인트 지급

        구매 연동 핀(used_tresesenta)은 인증 구매자이면서 자동 승인 설정이 켜져 있으면
        바로 approved 가 되고 보너스가 합산된 거래 한 건이 기록됩니다. 그 외에는
        보너스를 고정한 pending 요청을 만들고 기본 포인트만 먼저 지급합니다.
        """
        now = now or get_utc_now()
        with transaction(self.db):
            user = self.user_repo.get_model(user_id)
            if user is None:
                raise NotFoundError(f"User {user_id} not found", details={"user_id": user_id})

            definition = self.catalog_service.lookup_or_bootstrap(
                ActionKind.CREATE_PIN, self.settings.DEFAULT_PIN_POINTS
            )
            platform = self.settings_service.get_snapshot()
            self.activity_service.ensure_allowed(
                user_id, ActionKind.CREATE_PIN, definition, platform, now
            )

            bonus_points = definition.bonus_points if pin_in.used_tresesenta else 0
            auto_approved = (
                pin_in.used_tresesenta
                and user.is_verified_buyer
                and platform.auto_approve_verified_buyers
            )
            if auto_approved:
                status = PinVerificationStatus.APPROVED
                points_awarded = definition.points + bonus_points
            elif pin_in.used_tresesenta:
                status = PinVerificationStatus.PENDING
                points_awarded = definition.points
            else:
                status = PinVerificationStatus.NONE
                points_awarded = definition.points

            pin = self.pin_repo.create(
                user_id=user_id,
                **pin_in.model_dump(),
                points_awarded=points_awarded,
                verification_status=status.value,
                verified_at=now if auto_approved else None,
            )

            verification_request_id = None
            if status == PinVerificationStatus.PENDING:
                request = self.verification_service.submit(pin.id, user_id, bonus_points)
                verification_request_id = request.id

            self.ledger_service.record_transaction(
                user_id,
                ActionKind.CREATE_PIN,
                points_awarded,
                description=f"Pin created: {pin.title}",
                related_pin_id=pin.id,
                includes_bonus=bool(auto_approved and bonus_points > 0),
                now=now,
            )
            if pin_in.city_id is not None:
                self.city_repo.record_pin(user_id, pin_in.city_id, points_awarded, now)
            self.activity_service.record_occurrence(user_id, ActionKind.CREATE_PIN, now)

        logger.info(
            f"User {user_id} created pin {pin.id} ({status.value}, {points_awarded} points)"
        )
        return PinCreateResponse(
            message="Pin created successfully",
            pin=pin,
            points_earned=points_awarded,
            verification_request_id=verification_request_id,
        )

    def like_pin(
        self, user_id: int, pin_id: int, now: Optional[datetime] = None
    ) -> LikeResponse:
        """좋아요 - 누른 사람 기록 후 핀 주인 적립 (두 번의 커밋)"""
        now = now or get_utc_now()
        with transaction(self.db):
            pin = self._get_visible_pin(pin_id)
            owner_id = pin.user_id
            definition = self.catalog_service.lookup(ActionKind.LIKE_PIN)
            self.activity_service.ensure_allowed(
                user_id, ActionKind.LIKE_PIN, definition, now=now
            )
            if self.pin_repo.find_like(user_id, pin_id) is not None:
                raise ConflictError("Pin already liked", details={"pin_id": pin_id})

            self.pin_repo.add_like(user_id, pin_id)
            self.ledger_service.record_transaction(
                user_id,
                ActionKind.LIKE_PIN,
                definition.points,
                description=f"Liked pin #{pin_id}",
                related_pin_id=pin_id,
                related_user_id=owner_id,
                now=now,
            )
            self.activity_service.record_occurrence(user_id, ActionKind.LIKE_PIN, now)

        owner_credited = False
        if owner_id != user_id:
            owner_credited = self._credit_like_owner(owner_id, user_id, pin_id, now)

        return LikeResponse(
            message="Pin liked",
            pin_id=pin_id,
            points_earned=definition.points,
            owner_points_credited=owner_credited,
        )

    def _credit_like_owner(
        self, owner_id: int, liker_id: int, pin_id: int, now: datetime
    ) -> bool:
        """핀 주인 적립 - 실패해도 좋아요는 이미 커밋된 상태로 남음"""
        try:
            with transaction(self.db):
                definition = self.catalog_service.lookup(ActionKind.RECEIVE_LIKE)
                self.ledger_service.record_transaction(
                    owner_id,
                    ActionKind.RECEIVE_LIKE,
                    definition.points,
                    description=f"Like received on pin #{pin_id}",
                    related_pin_id=pin_id,
                    related_user_id=liker_id,
                    now=now,
                )
            return True
        except BaseAPIException as e:
            logger.error(
                f"Like {liker_id}->{pin_id} committed but owner {owner_id} was not credited: {e}"
            )
            return False

    def unlike_pin(self, user_id: int, pin_id: int) -> LikeResponse:
        """좋아요 취소 - 이미 지급된 포인트는 회수하지 않음"""
        with transaction(self.db):
            like = self.pin_repo.find_like(user_id, pin_id)
            if like is None:
                raise NotFoundError("Like not found", details={"pin_id": pin_id})
            self.pin_repo.remove_like(like)

        return LikeResponse(message="Like removed", pin_id=pin_id, points_earned=0)

    def comment_pin(
        self,
        user_id: int,
        pin_id: int,
        comment_in: CommentCreate,
        now: Optional[datetime] = None,
    ) -> CommentCreateResponse:
        now = now or get_utc_now()
        with transaction(self.db):
            pin = self._get_visible_pin(pin_id)
            definition = self.catalog_service.lookup(ActionKind.COMMENT_PIN)
            platform = self.settings_service.get_snapshot()
            self.activity_service.ensure_allowed(
                user_id, ActionKind.COMMENT_PIN, definition, platform, now
            )

            comment = self.pin_repo.add_comment(user_id, pin_id, comment_in.content)
            self.ledger_service.record_transaction(
                user_id,
                ActionKind.COMMENT_PIN,
                definition.points,
                description=f"Commented on pin #{pin_id}",
                related_pin_id=pin_id,
                related_user_id=pin.user_id,
                now=now,
            )
            self.activity_service.record_occurrence(user_id, ActionKind.COMMENT_PIN, now)

        return CommentCreateResponse(
            message="Comment added",
            comment=comment,
            points_earned=definition.points,
        )
