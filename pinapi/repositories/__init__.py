# Repository layer - Data access with Pydantic responses

from .base import BaseRepository
from .user_repository import UserRepository
from .catalog_repository import ActionCatalogRepository
from .points_repository import PointsRepository
from .daily_stats_repository import UserDailyStatsRepository
from .pin_repository import PinRepository
from .city_repository import UserCityRepository
from .verification_repository import VerificationRepository
from .admin_repository import AdminSettingsRepository, ModerationLogRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "ActionCatalogRepository",
    "PointsRepository",
    "UserDailyStatsRepository",
    "PinRepository",
    "UserCityRepository",
    "VerificationRepository",
    "AdminSettingsRepository",
    "ModerationLogRepository",
]
