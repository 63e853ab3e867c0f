from dependency_injector import containers, providers

from pinapi.config import get_settings
from pinapi.services.admin_service import AdminService
from pinapi.services.catalog_service import CatalogService
from pinapi.services.daily_activity_service import DailyActivityService
from pinapi.services.ledger_service import LedgerService
from pinapi.services.pin_activity_service import PinActivityService
from pinapi.services.settings_service import SettingsService
from pinapi.services.verification_service import VerificationService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(get_settings)


class ServiceModule(containers.DeclarativeContainer):
    """Service layer dependencies.

    세션은 요청마다 deps.py 에서 만들어 db= 키워드로 넘깁니다.
    """

    config = providers.DependenciesContainer()

    catalog_service = providers.Factory(CatalogService, settings=config.config)
    settings_service = providers.Factory(SettingsService, settings=config.config)
    ledger_service = providers.Factory(LedgerService, settings=config.config)
    daily_activity_service = providers.Factory(
        DailyActivityService, settings=config.config
    )
    verification_service = providers.Factory(
        VerificationService, settings=config.config
    )
    pin_activity_service = providers.Factory(PinActivityService, settings=config.config)
    admin_service = providers.Factory(AdminService, settings=config.config)


class Container(containers.DeclarativeContainer):
    """Application container."""

    config = providers.Container(ConfigModule)
    services = providers.Container(ServiceModule, config=config)
