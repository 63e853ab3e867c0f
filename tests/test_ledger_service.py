import pytest

from factories import delete_action, make_user, set_action
from pinapi.core.actions import ActionKind
from pinapi.core.exceptions import ConflictError, FeatureDisabledError, NotFoundError
from pinapi.database.session import transaction
from pinapi.models.admin import ModerationLog
from pinapi.models.points import PointTransaction
from pinapi.schemas.points import LeaderboardPeriod
from pinapi.services.ledger_service import LedgerService
from pinapi.utils.timezone_utils import get_local_today


@pytest.fixture
def ledger(seeded_db):
    return LedgerService(seeded_db)


def record(ledger, user_id, kind, delta):
    with transaction(ledger.db):
        return ledger.record_transaction(user_id, kind, delta, description="test")


class TestRecordTransaction:
    """원장 기록 테스트"""

    def test_balance_after_chain(self, ledger, alice):
        first = record(ledger, alice.id, ActionKind.CREATE_PIN, 20)
        second = record(ledger, alice.id, ActionKind.LIKE_PIN, 5)
        third = record(ledger, alice.id, ActionKind.ADMIN_ADJUSTMENT, -7)

        assert [e.balance_after for e in (first, second, third)] == [20, 25, 18]
        assert ledger.get_balance(alice.id).balance == 18

    def test_level_follows_total_points(self, ledger, alice):
        record(ledger, alice.id, ActionKind.ADMIN_ADJUSTMENT, 199)
        assert ledger.get_balance(alice.id).level == "Local"

        record(ledger, alice.id, ActionKind.ADMIN_ADJUSTMENT, 1)
        assert ledger.get_balance(alice.id).level == "Explorador Urbano"

        record(ledger, alice.id, ActionKind.ADMIN_ADJUSTMENT, 300)
        assert ledger.get_balance(alice.id).level == "Trotamundos"

    def test_rejects_action_missing_from_catalog(self, ledger, alice):
        delete_action(ledger.db, ActionKind.ADMIN_ADJUSTMENT.value)

        with pytest.raises(NotFoundError):
            record(ledger, alice.id, ActionKind.ADMIN_ADJUSTMENT, 10)

        assert ledger.db.query(PointTransaction).count() == 0
        assert ledger.get_balance(alice.id).balance == 0

    def test_rejects_disabled_action(self, ledger, alice):
        set_action(ledger.db, ActionKind.LIKE_PIN.value, is_active=False)

        with pytest.raises(FeatureDisabledError):
            record(ledger, alice.id, ActionKind.LIKE_PIN, 5)

        assert ledger.db.query(PointTransaction).count() == 0
        assert ledger.get_balance(alice.id).balance == 0

    def test_unknown_user(self, ledger):
        with pytest.raises(NotFoundError):
            record(ledger, 999, ActionKind.CREATE_PIN, 20)

    def test_points_earned_accumulates_in_daily_stats(self, ledger, alice):
        record(ledger, alice.id, ActionKind.CREATE_PIN, 20)
        record(ledger, alice.id, ActionKind.LIKE_PIN, 5)

        stats = ledger.stats_repo.get_stats(alice.id, get_local_today())
        assert stats.points_earned == 25


class TestLedgerQueries:
    def test_ledger_is_newest_first_and_paged(self, ledger, alice):
        for delta in (1, 2, 3):
            record(ledger, alice.id, ActionKind.ADMIN_ADJUSTMENT, delta)

        page = ledger.get_ledger(alice.id, limit=2, offset=0)

        assert page.balance == 6
        assert page.total_count == 3
        assert page.has_next is True
        assert [e.points for e in page.entries] == [3, 2]

        last_page = ledger.get_ledger(alice.id, limit=2, offset=2)
        assert last_page.has_next is False
        assert [e.points for e in last_page.entries] == [1]

    def test_leaderboard_excludes_banned_users(self, ledger, alice, bob):
        carol = make_user(ledger.db, "carol", is_banned=True)
        record(ledger, alice.id, ActionKind.ADMIN_ADJUSTMENT, 50)
        record(ledger, bob.id, ActionKind.ADMIN_ADJUSTMENT, 80)
        record(ledger, carol.id, ActionKind.ADMIN_ADJUSTMENT, 500)

        board = ledger.leaderboard(LeaderboardPeriod.ALL, limit=10)

        assert [e.username for e in board.leaderboard] == ["bob", "alice"]
        assert board.leaderboard[0].position == 1
        assert board.leaderboard[0].period_points == 80


class TestAdminCorrections:
    def test_admin_adjust_writes_moderation_log(self, ledger, alice, admin):
        entry = ledger.admin_adjust(admin.id, alice.id, -15, "duplicate pin")

        assert entry.points == -15
        assert entry.balance_after == -15
        log = ledger.db.query(ModerationLog).one()
        assert log.action_type == "adjust_points"
        assert log.target_id == alice.id
        assert log.log_metadata["transaction_id"] == entry.id

    def test_admin_adjust_with_action_disabled(self, ledger, alice, admin):
        set_action(ledger.db, ActionKind.ADMIN_ADJUSTMENT.value, is_active=False)

        with pytest.raises(FeatureDisabledError):
            ledger.admin_adjust(admin.id, alice.id, 10, "goodwill")

        assert ledger.db.query(PointTransaction).count() == 0
        assert ledger.db.query(ModerationLog).count() == 0

    def test_reversal_allowed_after_action_disabled(self, ledger, alice, admin):
        original = record(ledger, alice.id, ActionKind.CREATE_PIN, 20)
        set_action(ledger.db, ActionKind.CREATE_PIN.value, is_active=False)

        reversal = ledger.reverse_transaction(admin.id, original.id, "spam pin")

        assert reversal.points == -20
        assert ledger.get_balance(alice.id).balance == 0

    def test_reverse_transaction(self, ledger, alice, admin):
        original = record(ledger, alice.id, ActionKind.CREATE_PIN, 20)
        record(ledger, alice.id, ActionKind.LIKE_PIN, 5)

        reversal = ledger.reverse_transaction(admin.id, original.id, "spam pin")

        assert reversal.points == -20
        assert reversal.balance_after == 5
        assert reversal.reverses_transaction_id == original.id
        assert reversal.action_code == ActionKind.CREATE_PIN.value
        assert ledger.get_balance(alice.id).balance == 5

    def test_reverse_twice_conflicts(self, ledger, alice, admin):
        original = record(ledger, alice.id, ActionKind.CREATE_PIN, 20)
        ledger.reverse_transaction(admin.id, original.id, "spam")

        with pytest.raises(ConflictError):
            ledger.reverse_transaction(admin.id, original.id, "again")

        assert ledger.db.query(PointTransaction).count() == 2

    def test_reversal_cannot_be_reversed(self, ledger, alice, admin):
        original = record(ledger, alice.id, ActionKind.CREATE_PIN, 20)
        reversal = ledger.reverse_transaction(admin.id, original.id, "spam")

        with pytest.raises(ConflictError):
            ledger.reverse_transaction(admin.id, reversal.id, "undo")

    def test_reverse_unknown_transaction(self, ledger, admin):
        with pytest.raises(NotFoundError):
            ledger.reverse_transaction(admin.id, 12345, "missing")


class TestIntegrity:
    def test_consistent_ledger(self, ledger, alice, admin):
        original = record(ledger, alice.id, ActionKind.CREATE_PIN, 20)
        record(ledger, alice.id, ActionKind.LIKE_PIN, 5)
        ledger.reverse_transaction(admin.id, original.id, "spam")

        result = ledger.verify_integrity_for_user(alice.id)

        assert result.status == "OK"
        assert result.calculated_balance == 5
        assert result.recorded_balance == 5
        assert result.cached_balance == 5
        assert result.entry_count == 3

    def test_detects_cache_drift(self, ledger, alice, bob):
        record(ledger, alice.id, ActionKind.CREATE_PIN, 20)
        record(ledger, bob.id, ActionKind.CREATE_PIN, 20)
        alice_row = ledger.user_repo.get_model(alice.id)
        alice_row.total_points = 999
        ledger.db.commit()

        assert ledger.verify_integrity_for_user(alice.id).status == "MISMATCH"

        summary = ledger.verify_global_integrity()
        assert summary.status == "MISMATCH"
        assert summary.mismatched_user_ids == [alice.id]

    def test_detects_broken_chain(self, ledger, alice):
        record(ledger, alice.id, ActionKind.CREATE_PIN, 20)
        second = record(ledger, alice.id, ActionKind.LIKE_PIN, 5)
        ledger.db.query(PointTransaction).filter(
            PointTransaction.id == second.id
        ).update({"balance_after": 40})
        ledger.db.commit()

        result = ledger.verify_integrity_for_user(alice.id)

        assert result.status == "MISMATCH"
        assert result.entry_id == second.id
