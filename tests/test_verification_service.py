import pytest

from factories import NOW, set_action
from pinapi.core.actions import ActionKind
from pinapi.core.exceptions import (
    AuthorizationError,
    ConflictError,
    FeatureDisabledError,
    NotFoundError,
    ValidationError,
)
from pinapi.models.admin import ModerationLog
from pinapi.models.points import PointTransaction
from pinapi.models.verification import VerificationStatus
from pinapi.schemas.pin import PinCreate
from pinapi.services.pin_activity_service import PinActivityService
from pinapi.services.verification_service import VerificationService


@pytest.fixture
def verification(seeded_db):
    return VerificationService(seeded_db)


@pytest.fixture
def pending(seeded_db, alice):
    """alice 의 구매 연동 핀 -> pending 요청"""
    created = PinActivityService(seeded_db).create_pin(
        alice.id,
        PinCreate(
            title="Tenis nuevos",
            description="Estreno en Coyoacán",
            latitude=19.35,
            longitude=-99.16,
            category_id=2,
            used_tresesenta=True,
        ),
        now=NOW,
    )
    return created


def ledger_count(db):
    return db.query(PointTransaction).count()


class TestReject:
    def test_reject_requires_reason(self, verification, pending, admin):
        with pytest.raises(ValidationError):
            verification.reject(admin.id, pending.verification_request_id, reason="   ")

        request = verification.get_request(pending.verification_request_id)
        assert request.status == VerificationStatus.PENDING

    def test_blank_reason_on_processed_request_conflicts(
        self, verification, pending, admin
    ):
        verification.approve(admin.id, pending.verification_request_id)

        with pytest.raises(ConflictError):
            verification.reject(admin.id, pending.verification_request_id, reason="")

    def test_reject_pays_nothing(self, verification, pending, admin, seeded_db):
        before = ledger_count(seeded_db)

        decision = verification.reject(
            admin.id, pending.verification_request_id, reason="Ticket ilegible"
        )

        assert decision.request.status == VerificationStatus.REJECTED
        assert decision.request.rejection_reason == "Ticket ilegible"
        assert decision.transaction is None
        assert ledger_count(seeded_db) == before
        log = seeded_db.query(ModerationLog).one()
        assert log.action_type == "reject_verification"

    def test_terminal_states_conflict(self, verification, pending, admin, seeded_db):
        verification.reject(admin.id, pending.verification_request_id, reason="no")
        before = ledger_count(seeded_db)

        with pytest.raises(ConflictError):
            verification.approve(admin.id, pending.verification_request_id)
        with pytest.raises(ConflictError):
            verification.reject(admin.id, pending.verification_request_id, reason="again")

        request = verification.get_request(pending.verification_request_id)
        assert request.status == VerificationStatus.REJECTED
        assert ledger_count(seeded_db) == before
        assert seeded_db.query(ModerationLog).count() == 1


class TestApprove:
    def test_unknown_request(self, verification, admin):
        with pytest.raises(NotFoundError):
            verification.approve(admin.id, 404)

    def test_disabled_bonus_action_blocks_approval(
        self, verification, pending, admin, seeded_db
    ):
        set_action(seeded_db, ActionKind.VERIFIED_PURCHASE.value, is_active=False)
        before = ledger_count(seeded_db)

        with pytest.raises(FeatureDisabledError):
            verification.approve(admin.id, pending.verification_request_id)

        request = verification.get_request(pending.verification_request_id)
        assert request.status == VerificationStatus.PENDING
        assert ledger_count(seeded_db) == before
        assert seeded_db.query(ModerationLog).count() == 0

    def test_zero_bonus_adds_no_transaction(self, verification, pending, admin, seeded_db):
        request = verification.verification_repo.get_model(pending.verification_request_id)
        request.bonus_points = 0
        seeded_db.commit()
        before = ledger_count(seeded_db)

        decision = verification.approve(admin.id, pending.verification_request_id)

        assert decision.bonus_points_awarded == 0
        assert decision.transaction is None
        assert ledger_count(seeded_db) == before


class TestEvidenceAndListing:
    def test_owner_adds_images(self, verification, pending, alice):
        updated = verification.add_evidence_images(
            alice.id, pending.verification_request_id, ["https://cdn.example.com/t1.jpg"]
        )
        updated = verification.add_evidence_images(
            alice.id, pending.verification_request_id, ["https://cdn.example.com/t2.jpg"]
        )

        assert updated.verification_images == [
            "https://cdn.example.com/t1.jpg",
            "https://cdn.example.com/t2.jpg",
        ]

    def test_other_user_cannot_add_images(self, verification, pending, bob):
        with pytest.raises(AuthorizationError):
            verification.add_evidence_images(
                bob.id, pending.verification_request_id, ["https://cdn.example.com/x.jpg"]
            )

    def test_pending_queue(self, verification, pending, admin, alice):
        queue = verification.list_pending()
        assert queue.total_count == 1
        assert queue.requests[0].id == pending.verification_request_id

        verification.approve(admin.id, pending.verification_request_id)

        assert verification.list_pending().total_count == 0
        assert verification.list_all(VerificationStatus.APPROVED).total_count == 1
        assert len(verification.list_for_user(alice.id)) == 1
