import pytest

from factories import NOW
from pinapi.core.actions import ActionKind
from pinapi.core.exceptions import ConflictError, NotFoundError, ValidationError
from pinapi.models.admin import ModerationLog
from pinapi.schemas.catalog import ActionDefinitionUpdate
from pinapi.schemas.pin import PinCreate
from pinapi.services.admin_service import AdminService
from pinapi.services.catalog_service import CatalogService
from pinapi.services.pin_activity_service import PinActivityService
from pinapi.services.settings_service import SettingsService


@pytest.fixture
def admin_service(seeded_db):
    return AdminService(seeded_db)


def logs(db, action_type):
    return db.query(ModerationLog).filter(ModerationLog.action_type == action_type).all()


class TestUserModeration:
    def test_self_ban_conflicts(self, admin_service, admin):
        with pytest.raises(ConflictError):
            admin_service.ban_user(admin.id, admin.id, "oops")

        assert admin_service.get_user(admin.id).is_banned is False

    def test_ban_and_unban(self, admin_service, admin, alice, seeded_db):
        banned = admin_service.ban_user(admin.id, alice.id, "spam")
        assert banned.is_banned is True

        with pytest.raises(ConflictError):
            admin_service.ban_user(admin.id, alice.id, "spam again")

        unbanned = admin_service.unban_user(admin.id, alice.id)
        assert unbanned.is_banned is False
        assert len(logs(seeded_db, "ban_user")) == 1
        assert len(logs(seeded_db, "unban_user")) == 1

    def test_ban_unknown_user(self, admin_service, admin):
        with pytest.raises(NotFoundError):
            admin_service.ban_user(admin.id, 999, "ghost")

    def test_verified_buyer_grant_pays_reward(self, admin_service, admin, alice):
        updated = admin_service.set_verified_buyer(admin.id, alice.id, True)

        assert updated.is_verified_buyer is True
        assert updated.total_points == 50
        [log] = logs(admin_service.db, "verify_buyer")
        assert log.log_metadata == {"points_awarded": 50}

        with pytest.raises(ConflictError):
            admin_service.set_verified_buyer(admin.id, alice.id, True)

    def test_revoking_verified_buyer_pays_nothing(self, admin_service, admin, alice):
        admin_service.set_verified_buyer(admin.id, alice.id, True)

        updated = admin_service.set_verified_buyer(admin.id, alice.id, False)

        assert updated.is_verified_buyer is False
        assert updated.total_points == 50


class TestPinModeration:
    def test_hide_and_unhide(self, admin_service, admin, alice):
        pin = PinActivityService(admin_service.db).create_pin(
            alice.id,
            PinCreate(
                title="Zócalo",
                description="Centro histórico",
                latitude=19.43,
                longitude=-99.13,
                category_id=3,
            ),
            now=NOW,
        ).pin

        hidden = admin_service.hide_pin(admin.id, pin.id, "contenido inapropiado")
        assert hidden.is_hidden is True
        with pytest.raises(ConflictError):
            admin_service.hide_pin(admin.id, pin.id, "again")

        visible = admin_service.unhide_pin(admin.id, pin.id)
        assert visible.is_hidden is False

        listing = admin_service.list_moderation_logs(action_type="hide_pin")
        assert listing.total_count == 1
        assert listing.logs[0].target_id == pin.id
        assert listing.logs[0].reason == "contenido inapropiado"


class TestSettings:
    def test_defaults(self, seeded_db):
        snapshot = SettingsService(seeded_db).get_snapshot()

        assert snapshot.auto_approve_verified_buyers is False
        assert snapshot.comment_cooldown_seconds == 30

    def test_unknown_key_rejected(self, seeded_db, admin):
        with pytest.raises(ValidationError):
            SettingsService(seeded_db).update_setting(admin.id, "max_pins", 3)

    def test_wrong_type_rejected(self, seeded_db, admin):
        with pytest.raises(ValidationError):
            SettingsService(seeded_db).update_setting(
                admin.id, "comment_cooldown_seconds", "soon"
            )

    def test_update_is_logged_and_effective(self, seeded_db, admin):
        service = SettingsService(seeded_db)

        saved = service.update_setting(admin.id, "comment_cooldown_seconds", 45)

        assert saved.value == 45
        assert saved.updated_by == admin.id
        assert service.get_snapshot().comment_cooldown_seconds == 45
        [log] = logs(seeded_db, "update_setting")
        assert log.log_metadata == {
            "setting_key": "comment_cooldown_seconds",
            "before": 30,
            "after": 45,
        }

    def test_missing_rows_fall_back_to_defaults(self, db):
        snapshot = SettingsService(db).get_snapshot()

        assert snapshot.comment_cooldown_seconds == 30


class TestCatalogAdmin:
    def test_partial_update(self, seeded_db, admin):
        catalog = CatalogService(seeded_db)

        updated = catalog.update_action(
            admin.id, ActionKind.LIKE_PIN, ActionDefinitionUpdate(points=7, daily_limit=None)
        )

        assert updated.points == 7
        assert updated.daily_limit is None
        assert updated.name == "Dar like"
        [log] = logs(seeded_db, "update_point_action")
        assert log.log_metadata["before"] == {"points": 5, "daily_limit": 3}

    def test_empty_update_rejected(self, seeded_db, admin):
        with pytest.raises(ValidationError):
            CatalogService(seeded_db).update_action(
                admin.id, ActionKind.LIKE_PIN, ActionDefinitionUpdate()
            )

    def test_disabled_actions_hidden_from_active_list(self, seeded_db, admin):
        catalog = CatalogService(seeded_db)
        catalog.update_action(
            admin.id, ActionKind.COMMENT_PIN, ActionDefinitionUpdate(is_active=False)
        )

        active_codes = {a.action_code for a in catalog.list_active()}
        all_codes = {a.action_code for a in catalog.list_all()}

        assert ActionKind.COMMENT_PIN not in active_codes
        assert ActionKind.COMMENT_PIN in all_codes
