from datetime import timedelta

import pytest

from factories import NOW, delete_action, set_action
from pinapi.core.actions import ActionKind
from pinapi.core.exceptions import RateLimitError, ValidationError
from pinapi.database.session import transaction
from pinapi.models.points import PointTransaction
from pinapi.services.daily_activity_service import DailyActivityService


@pytest.fixture
def activity(seeded_db):
    return DailyActivityService(seeded_db)


def occur(activity, user_id, kind, now=NOW):
    with transaction(activity.db):
        return activity.record_occurrence(user_id, kind, now=now)


def ledger_codes(db, user_id):
    rows = (
        db.query(PointTransaction)
        .filter(PointTransaction.user_id == user_id)
        .order_by(PointTransaction.id)
        .all()
    )
    return [row.action_code for row in rows]


class TestDailyLimit:
    """일일 한도 테스트 (like_pin 한도 = 3)"""

    def test_nth_accepted_next_rejected(self, activity, alice):
        for _ in range(2):
            occur(activity, alice.id, ActionKind.LIKE_PIN)

        # 3번째는 허용
        activity.ensure_allowed(alice.id, ActionKind.LIKE_PIN, now=NOW)
        occur(activity, alice.id, ActionKind.LIKE_PIN)

        assert activity.check_limit(alice.id, ActionKind.LIKE_PIN, now=NOW) is False
        with pytest.raises(RateLimitError) as exc_info:
            activity.ensure_allowed(alice.id, ActionKind.LIKE_PIN, now=NOW)

        details = exc_info.value.details
        assert exc_info.value.status_code == 429
        assert details["limit"] == 3
        assert details["used"] == 3
        assert details["remaining"] == 0
        assert details["resets_at"].startswith("2026-03-11T06:00:00")

    def test_limit_resets_next_day(self, activity, alice):
        for _ in range(3):
            occur(activity, alice.id, ActionKind.LIKE_PIN)

        tomorrow = NOW + timedelta(days=1)
        assert activity.check_limit(alice.id, ActionKind.LIKE_PIN, now=tomorrow) is True

    def test_unlimited_action(self, activity, alice):
        set_action(activity.db, ActionKind.LIKE_PIN.value, daily_limit=None)
        for _ in range(10):
            occur(activity, alice.id, ActionKind.LIKE_PIN)

        assert activity.check_limit(alice.id, ActionKind.LIKE_PIN, now=NOW) is True

    def test_record_occurrence_counts_every_call(self, activity, alice):
        occur(activity, alice.id, ActionKind.CREATE_PIN)
        stats = occur(activity, alice.id, ActionKind.CREATE_PIN, now=NOW + timedelta(minutes=5))

        assert stats.pins_created == 2
        assert stats.likes_given == 0

    def test_action_without_counter(self, activity, alice):
        with pytest.raises(ValidationError):
            activity.record_occurrence(alice.id, ActionKind.DAILY_LOGIN, now=NOW)


class TestCooldown:
    def test_comment_uses_platform_setting_when_catalog_empty(self, activity, alice):
        occur(activity, alice.id, ActionKind.COMMENT_PIN)

        later = NOW + timedelta(seconds=10)
        assert activity.check_cooldown(alice.id, ActionKind.COMMENT_PIN, now=later) == 20
        with pytest.raises(RateLimitError) as exc_info:
            activity.ensure_allowed(alice.id, ActionKind.COMMENT_PIN, now=later)
        assert exc_info.value.details["remaining_seconds"] == 20

        after = NOW + timedelta(seconds=30)
        assert activity.check_cooldown(alice.id, ActionKind.COMMENT_PIN, now=after) == 0

    def test_catalog_cooldown_wins(self, activity, alice):
        set_action(activity.db, ActionKind.COMMENT_PIN.value, cooldown_seconds=5)
        occur(activity, alice.id, ActionKind.COMMENT_PIN)

        assert (
            activity.check_cooldown(
                alice.id, ActionKind.COMMENT_PIN, now=NOW + timedelta(seconds=2)
            )
            == 3
        )

    def test_no_activity_today(self, activity, alice):
        assert activity.check_cooldown(alice.id, ActionKind.COMMENT_PIN, now=NOW) == 0


class TestDailyLogin:
    def test_consecutive_days_build_streak(self, activity, alice):
        streaks = [
            activity.claim_daily_login(alice.id, now=NOW + timedelta(days=day)).streak
            for day in range(3)
        ]
        assert streaks == [1, 2, 3]

    def test_second_claim_same_day(self, activity, alice):
        first = activity.claim_daily_login(alice.id, now=NOW)
        second = activity.claim_daily_login(alice.id, now=NOW + timedelta(hours=2))

        assert first.already_claimed_today is False
        assert second.already_claimed_today is True
        assert second.streak == 1
        assert second.points_awarded == 0
        assert ledger_codes(activity.db, alice.id) == [ActionKind.DAILY_LOGIN.value]

    def test_streak_resets_after_gap(self, activity, alice):
        activity.claim_daily_login(alice.id, now=NOW)
        activity.claim_daily_login(alice.id, now=NOW + timedelta(days=1))

        result = activity.claim_daily_login(alice.id, now=NOW + timedelta(days=3))

        assert result.streak == 1

    def test_seven_day_bonus_paid_once(self, activity, alice):
        results = [
            activity.claim_daily_login(alice.id, now=NOW + timedelta(days=day))
            for day in range(8)
        ]

        assert [r.bonus_awarded for r in results] == [False] * 6 + [True, False]
        assert results[6].bonus_action == ActionKind.STREAK_7_DAYS.value
        assert results[6].points_awarded == 5 + 50
        codes = ledger_codes(activity.db, alice.id)
        assert codes.count(ActionKind.STREAK_7_DAYS.value) == 1
        assert codes.count(ActionKind.DAILY_LOGIN.value) == 8

    def test_thirty_day_bonus(self, activity, alice):
        results = [
            activity.claim_daily_login(alice.id, now=NOW + timedelta(days=day))
            for day in range(31)
        ]

        assert results[29].streak == 30
        assert results[29].bonus_action == ActionKind.STREAK_30_DAYS.value
        assert results[29].points_awarded == 5 + 200
        assert results[30].bonus_awarded is False
        bonus_days = [r.streak for r in results if r.bonus_awarded]
        assert bonus_days == [7, 30]
        codes = ledger_codes(activity.db, alice.id)
        assert codes.count(ActionKind.STREAK_30_DAYS.value) == 1
        assert codes.count(ActionKind.STREAK_7_DAYS.value) == 1

    def test_seven_day_bonus_again_after_reset(self, activity, alice):
        first_run = [NOW + timedelta(days=day) for day in range(7)]
        # 하루 건너뛰고 다시 7일
        second_run = [NOW + timedelta(days=8 + day) for day in range(7)]

        results = [
            activity.claim_daily_login(alice.id, now=moment)
            for moment in first_run + second_run
        ]

        assert results[7].streak == 1
        assert results[-1].streak == 7
        assert results[-1].bonus_awarded is True
        codes = ledger_codes(activity.db, alice.id)
        assert codes.count(ActionKind.STREAK_7_DAYS.value) == 2

    def test_missing_bonus_row_skips_bonus(self, activity, alice):
        delete_action(activity.db, ActionKind.STREAK_7_DAYS.value)

        results = [
            activity.claim_daily_login(alice.id, now=NOW + timedelta(days=day))
            for day in range(7)
        ]

        assert results[-1].streak == 7
        assert results[-1].bonus_awarded is False
        assert ActionKind.STREAK_7_DAYS.value not in ledger_codes(activity.db, alice.id)

    def test_pin_activity_yesterday_does_not_extend_streak(self, activity, alice):
        occur(activity, alice.id, ActionKind.CREATE_PIN, now=NOW)

        result = activity.claim_daily_login(alice.id, now=NOW + timedelta(days=1))

        assert result.streak == 1


class TestTodaySummary:
    def test_summary_reports_usage(self, activity, alice):
        occur(activity, alice.id, ActionKind.LIKE_PIN)
        activity.claim_daily_login(alice.id, now=NOW)

        summary = activity.get_today_summary(alice.id, now=NOW + timedelta(seconds=1))

        assert summary.likes.used == 1
        assert summary.likes.limit == 3
        assert summary.likes.remaining == 2
        assert summary.pins.used == 0
        assert summary.login_claimed_today is True
        assert summary.login_streak == 1
        assert summary.points_earned == 5
