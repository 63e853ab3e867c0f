from fastapi import Depends, Request
from sqlalchemy.orm import Session

from pinapi.database.session import get_db

# Services
from pinapi.services.admin_service import AdminService
from pinapi.services.catalog_service import CatalogService
from pinapi.services.daily_activity_service import DailyActivityService
from pinapi.services.ledger_service import LedgerService
from pinapi.services.pin_activity_service import PinActivityService
from pinapi.services.settings_service import SettingsService
from pinapi.services.verification_service import VerificationService


def get_catalog_service(
    request: Request, db: Session = Depends(get_db)
) -> CatalogService:
    return request.app.container.services.catalog_service(db=db)


def get_settings_service(
    request: Request, db: Session = Depends(get_db)
) -> SettingsService:
    return request.app.container.services.settings_service(db=db)


def get_ledger_service(request: Request, db: Session = Depends(get_db)) -> LedgerService:
    return request.app.container.services.ledger_service(db=db)


def get_daily_activity_service(
    request: Request, db: Session = Depends(get_db)
) -> DailyActivityService:
    return request.app.container.services.daily_activity_service(db=db)


def get_verification_service(
    request: Request, db: Session = Depends(get_db)
) -> VerificationService:
    return request.app.container.services.verification_service(db=db)


def get_pin_activity_service(
    request: Request, db: Session = Depends(get_db)
) -> PinActivityService:
    return request.app.container.services.pin_activity_service(db=db)


def get_admin_service(request: Request, db: Session = Depends(get_db)) -> AdminService:
    return request.app.container.services.admin_service(db=db)
