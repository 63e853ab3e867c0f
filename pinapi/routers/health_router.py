import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pinapi.database.session import get_db
from pinapi.schemas.health import HealthCheckResponse
from pinapi.utils.timezone_utils import get_utc_now

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
def health_check(db: Session = Depends(get_db)) -> HealthCheckResponse:
    """Health check endpoint (DB 연결 포함)."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check query failed: {e}")
        return HealthCheckResponse(
            status="degraded",
            database="unavailable",
            checked_at=get_utc_now(),
            error=type(e).__name__,
        )
    return HealthCheckResponse(checked_at=get_utc_now())
