import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from pinapi.core.exceptions import ConflictError, PersistenceError
from pinapi.database.connection import SessionLocal

logger = logging.getLogger(__name__)


def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        if db.in_transaction():
            db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """하나의 논리적 작업을 원자적으로 실행하는 트랜잭션 경계

    블록이 정상 종료되면 commit, 어떤 예외든 발생하면 rollback 후 재전파합니다.
    유니크 제약 위반은 ConflictError, 그 밖의 드라이버 레벨 오류(타임아웃, 락 대기 초과, 연결 끊김)는 PersistenceError로 변환됩니다.
    도메인 예외(RateLimitError, ConflictError 등)는 그대로 전파됩니다.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Transaction rolled back on constraint violation: {e.orig}")
        raise ConflictError(
            "Conflicting write", details={"reason": "constraint_violation"}
        ) from e
    except (OperationalError, DBAPIError) as e:
        db.rollback()
        logger.error(f"Transaction rolled back after database error: {e}")
        raise PersistenceError(
            "Database operation failed", details={"reason": type(e).__name__}
        ) from e
    except Exception:
        db.rollback()
        raise
