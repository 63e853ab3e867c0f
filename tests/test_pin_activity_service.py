from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from factories import NOW, delete_action, make_user, set_action
from pinapi.core.actions import ActionKind
from pinapi.core.exceptions import (
    ConflictError,
    FeatureDisabledError,
    NotFoundError,
    PersistenceError,
    RateLimitError,
)
from pinapi.database.session import transaction
from pinapi.models.daily_stats import UserDailyStats
from pinapi.models.pin import Pin
from pinapi.models.points import PointAction, PointTransaction
from pinapi.models.user import UserCity
from pinapi.models.verification import VerificationRequest
from pinapi.schemas.pin import CommentCreate, PinCreate
from pinapi.services.ledger_service import LedgerService
from pinapi.services.pin_activity_service import PinActivityService
from pinapi.services.settings_service import SettingsService
from pinapi.services.verification_service import VerificationService


@pytest.fixture
def pins(seeded_db):
    return PinActivityService(seeded_db)


def pin_payload(**overrides) -> PinCreate:
    data = {
        "title": "Mural en la Roma",
        "description": "Caminando con mis tenis nuevos",
        "latitude": 19.4194,
        "longitude": -99.1617,
        "category_id": 1,
    }
    data.update(overrides)
    return PinCreate(**data)


def transactions_for(db, user_id):
    return (
        db.query(PointTransaction)
        .filter(PointTransaction.user_id == user_id)
        .order_by(PointTransaction.id)
        .all()
    )


def give_points(db, user_id, amount):
    ledger = LedgerService(db)
    with transaction(db):
        ledger.record_transaction(user_id, ActionKind.ADMIN_ADJUSTMENT, amount)


class TestCreatePin:
    def test_plain_pin(self, pins, alice):
        result = pins.create_pin(alice.id, pin_payload(), now=NOW)

        assert result.points_earned == 20
        assert result.pin.verification_status.value == "none"
        assert result.verification_request_id is None
        [entry] = transactions_for(pins.db, alice.id)
        assert entry.points == 20
        assert entry.related_pin_id == result.pin.id
        assert entry.used_tresesenta_bonus is False

    def test_purchase_pin_goes_to_pending(self, pins, alice):
        """인증 구매자가 아니면 보너스를 고정한 pending 요청 생성"""
        result = pins.create_pin(alice.id, pin_payload(used_tresesenta=True), now=NOW)

        assert result.pin.verification_status.value == "pending"
        assert result.pin.points_awarded == 20
        request = pins.db.get(VerificationRequest, result.verification_request_id)
        assert request.bonus_points == 30
        assert request.status == "pending"
        assert [t.points for t in transactions_for(pins.db, alice.id)] == [20]

    def test_verified_buyer_without_auto_approve_setting(self, pins, seeded_db):
        buyer = make_user(seeded_db, "buyer", is_verified_buyer=True)

        result = pins.create_pin(buyer.id, pin_payload(used_tresesenta=True), now=NOW)

        assert result.pin.verification_status.value == "pending"
        assert result.verification_request_id is not None

    def test_auto_approval_fast_path(self, pins, seeded_db, admin):
        buyer = make_user(seeded_db, "buyer", is_verified_buyer=True)
        SettingsService(seeded_db).update_setting(
            admin.id, "auto_approve_verified_buyers", True
        )

        result = pins.create_pin(buyer.id, pin_payload(used_tresesenta=True), now=NOW)

        assert result.pin.verification_status.value == "approved"
        assert result.pin.points_awarded == 50
        assert result.verification_request_id is None
        assert seeded_db.query(VerificationRequest).count() == 0
        [entry] = transactions_for(seeded_db, buyer.id)
        assert entry.points == 50
        assert entry.used_tresesenta_bonus is True

    def test_daily_limit_rolls_back_nothing_created(self, pins, alice):
        for minute in range(5):
            pins.create_pin(alice.id, pin_payload(), now=NOW + timedelta(minutes=minute))

        with pytest.raises(RateLimitError) as exc_info:
            pins.create_pin(alice.id, pin_payload(), now=NOW + timedelta(minutes=10))

        assert exc_info.value.details["limit"] == 5
        assert pins.db.query(Pin).count() == 5
        assert len(transactions_for(pins.db, alice.id)) == 5
        assert pins.ledger_service.get_balance(alice.id).balance == 100

    def test_missing_catalog_row_is_bootstrapped(self, pins, alice):
        delete_action(pins.db, ActionKind.CREATE_PIN.value)

        result = pins.create_pin(alice.id, pin_payload(), now=NOW)

        assert result.points_earned == 20
        row = (
            pins.db.query(PointAction)
            .filter(PointAction.action_code == ActionKind.CREATE_PIN.value)
            .one()
        )
        assert row.points == 20
        assert row.daily_limit is None

    def test_disabled_action(self, pins, alice):
        set_action(pins.db, ActionKind.CREATE_PIN.value, is_active=False)

        with pytest.raises(FeatureDisabledError):
            pins.create_pin(alice.id, pin_payload(), now=NOW)

        assert pins.db.query(Pin).count() == 0


    def test_failure_after_writes_rolls_back_everything(self, pins, alice):
        """마지막 단계(카운터 증가)에서 실패하면 앞선 쓰기도 모두 취소"""
        timeout = OperationalError("UPDATE user_daily_stats", {}, Exception("lock timeout"))

        with patch.object(
            pins.activity_service, "record_occurrence", side_effect=timeout
        ):
            with pytest.raises(PersistenceError):
                pins.create_pin(
                    alice.id, pin_payload(used_tresesenta=True, city_id=3), now=NOW
                )

        db = pins.db
        assert db.query(Pin).count() == 0
        assert db.query(VerificationRequest).count() == 0
        assert db.query(PointTransaction).count() == 0
        assert db.query(UserCity).count() == 0
        assert db.query(UserDailyStats).count() == 0
        assert pins.ledger_service.get_balance(alice.id).balance == 0

    def test_city_totals_accumulate(self, pins, alice):
        pins.create_pin(alice.id, pin_payload(city_id=3), now=NOW)
        pins.create_pin(
            alice.id,
            pin_payload(city_id=3, used_tresesenta=True),
            now=NOW + timedelta(minutes=1),
        )
        pins.create_pin(alice.id, pin_payload(city_id=9), now=NOW + timedelta(minutes=2))
        pins.create_pin(alice.id, pin_payload(), now=NOW + timedelta(minutes=3))

        cities = pins.list_cities(alice.id)

        assert [(c.city_id, c.pins_count, c.points_earned) for c in cities] == [
            (3, 2, 40),
            (9, 1, 20),
        ]


class TestLikes:
    @pytest.fixture
    def bobs_pin(self, pins, bob):
        return pins.create_pin(bob.id, pin_payload(), now=NOW).pin

    def test_like_credits_both_sides(self, pins, alice, bob, bobs_pin):
        """누른 사람 +5 (100 -> 105), 핀 주인 +10"""
        give_points(pins.db, alice.id, 100)
        owner_before = pins.ledger_service.get_balance(bob.id).balance

        result = pins.like_pin(alice.id, bobs_pin.id, now=NOW)

        assert result.points_earned == 5
        assert result.owner_points_credited is True
        liker_entry = transactions_for(pins.db, alice.id)[-1]
        assert liker_entry.points == 5
        assert liker_entry.balance_after == 105
        assert liker_entry.related_user_id == bob.id
        owner_entry = transactions_for(pins.db, bob.id)[-1]
        assert owner_entry.action_code == ActionKind.RECEIVE_LIKE.value
        assert owner_entry.balance_after == owner_before + 10
        assert pins.get_pin(bobs_pin.id).likes_count == 1

    def test_duplicate_like_conflicts(self, pins, alice, bobs_pin):
        pins.like_pin(alice.id, bobs_pin.id, now=NOW)

        with pytest.raises(ConflictError):
            pins.like_pin(alice.id, bobs_pin.id, now=NOW + timedelta(minutes=1))

        assert len(transactions_for(pins.db, alice.id)) == 1

    def test_own_pin_pays_no_receive_like(self, pins, bob, bobs_pin):
        result = pins.like_pin(bob.id, bobs_pin.id, now=NOW)

        assert result.owner_points_credited is False
        codes = [t.action_code for t in transactions_for(pins.db, bob.id)]
        assert ActionKind.RECEIVE_LIKE.value not in codes

    def test_owner_credit_failure_keeps_like(self, pins, alice, bob, bobs_pin):
        set_action(pins.db, ActionKind.RECEIVE_LIKE.value, is_active=False)

        result = pins.like_pin(alice.id, bobs_pin.id, now=NOW)

        assert result.owner_points_credited is False
        assert len(transactions_for(pins.db, alice.id)) == 1
        assert pins.get_pin(bobs_pin.id).likes_count == 1

    def test_unlike_keeps_points(self, pins, alice, bobs_pin):
        pins.like_pin(alice.id, bobs_pin.id, now=NOW)

        pins.unlike_pin(alice.id, bobs_pin.id)

        assert pins.get_pin(bobs_pin.id).likes_count == 0
        assert pins.ledger_service.get_balance(alice.id).balance == 5
        with pytest.raises(NotFoundError):
            pins.unlike_pin(alice.id, bobs_pin.id)

    def test_hidden_pin_cannot_be_liked(self, pins, alice, bobs_pin):
        pins.db.query(Pin).filter(Pin.id == bobs_pin.id).update({"is_hidden": True})
        pins.db.commit()

        with pytest.raises(NotFoundError):
            pins.like_pin(alice.id, bobs_pin.id, now=NOW)


class TestComments:
    def test_comment_and_cooldown(self, pins, alice, bob):
        pin = pins.create_pin(bob.id, pin_payload(), now=NOW).pin

        result = pins.comment_pin(alice.id, pin.id, CommentCreate(content="  Qué chido  "), now=NOW)

        assert result.points_earned == 3
        assert result.comment.content == "Qué chido"
        assert pins.get_pin(pin.id).comments_count == 1

        with pytest.raises(RateLimitError) as exc_info:
            pins.comment_pin(
                alice.id, pin.id, CommentCreate(content="otra vez"), now=NOW + timedelta(seconds=5)
            )
        assert exc_info.value.details["remaining_seconds"] == 25
        assert pins.get_pin(pin.id).comments_count == 1


class TestPurchaseVerificationScenario:
    def test_pending_then_approved_with_frozen_bonus(self, pins, alice, admin):
        created = pins.create_pin(alice.id, pin_payload(used_tresesenta=True), now=NOW)
        # 이후 카탈로그 보너스가 바뀌어도 고정된 값으로 지급
        set_action(pins.db, ActionKind.CREATE_PIN.value, bonus_points=99)

        verification = VerificationService(pins.db)
        decision = verification.approve(admin.id, created.verification_request_id, notes="ok")

        assert decision.request.status.value == "approved"
        assert decision.request.review_notes == "ok"
        assert decision.bonus_points_awarded == 30
        assert pins.get_pin(created.pin.id).verification_status.value == "approved"
        entries = transactions_for(pins.db, alice.id)
        assert [e.points for e in entries] == [20, 30]
        assert entries[-1].used_tresesenta_bonus is True
        assert entries[-1].action_code == ActionKind.VERIFIED_PURCHASE.value

        with pytest.raises(ConflictError):
            verification.approve(admin.id, created.verification_request_id, notes="again")
        assert len(transactions_for(pins.db, alice.id)) == 2


class TestFeed:
    @pytest.fixture
    def feed_pins(self, pins, alice, bob):
        made = [
            pins.create_pin(alice.id, pin_payload(city_id=3), now=NOW).pin,
            pins.create_pin(
                alice.id, pin_payload(category_id=2), now=NOW + timedelta(minutes=1)
            ).pin,
            pins.create_pin(bob.id, pin_payload(city_id=3), now=NOW).pin,
        ]
        return made

    def test_filters_and_newest_first(self, pins, alice, bob, feed_pins):
        everything = pins.list_pins(bob.id)
        assert everything.total_count == 3
        assert [p.id for p in everything.pins] == sorted(
            (p.id for p in feed_pins), reverse=True
        )

        by_city = pins.list_pins(bob.id, city_id=3)
        assert {p.id for p in by_city.pins} == {feed_pins[0].id, feed_pins[2].id}
        assert pins.list_pins(bob.id, category_id=2).total_count == 1
        assert pins.list_pins(bob.id, user_id=alice.id).total_count == 2

    def test_paging(self, pins, bob, feed_pins):
        page = pins.list_pins(bob.id, limit=2)
        assert len(page.pins) == 2
        assert page.has_next is True
        assert pins.list_pins(bob.id, limit=2, offset=2).has_next is False

    def test_hidden_pins_excluded(self, pins, bob, feed_pins):
        hidden = pins.db.get(Pin, feed_pins[0].id)
        hidden.is_hidden = True
        pins.db.commit()

        feed = pins.list_pins(bob.id)

        assert feed.total_count == 2
        assert feed_pins[0].id not in [p.id for p in feed.pins]

    def test_liked_by_viewer(self, pins, alice, bob, feed_pins):
        pins.like_pin(bob.id, feed_pins[0].id, now=NOW)

        feed = {p.id: p.liked_by_user for p in pins.list_pins(bob.id).pins}

        assert feed[feed_pins[0].id] is True
        assert feed[feed_pins[1].id] is False
        assert not any(p.liked_by_user for p in pins.list_pins(alice.id).pins)

    def test_comments_newest_first(self, pins, alice, bob, feed_pins):
        pin_id = feed_pins[0].id
        pins.comment_pin(bob.id, pin_id, CommentCreate(content="primero"), now=NOW)
        pins.comment_pin(
            alice.id,
            pin_id,
            CommentCreate(content="segundo"),
            now=NOW + timedelta(minutes=5),
        )

        listing = pins.list_comments(pin_id)

        assert listing.pin_id == pin_id
        assert [c.content for c in listing.comments] == ["segundo", "primero"]

    def test_comments_of_missing_pin(self, pins):
        with pytest.raises(NotFoundError):
            pins.list_comments(404)
