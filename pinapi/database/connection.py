from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pinapi.config import Settings, settings


def build_engine(app_settings: Settings) -> Engine:
    """설정으로부터 엔진 생성 (PostgreSQL 운영 / SQLite 테스트)"""
    url = app_settings.database_url

    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={
                "check_same_thread": False,
                "timeout": app_settings.DB_LOCK_TIMEOUT_MS / 1000,
            },
            poolclass=StaticPool,
            echo=app_settings.DEBUG,
        )

    # statement_timeout / lock_timeout: 초과 시 드라이버가 OperationalError를 던지고
    # 트랜잭션 경계에서 전체 작업이 롤백됨
    options = (
        f"-csearch_path={app_settings.POSTGRES_SCHEMA}"
        f" -cstatement_timeout={app_settings.DB_STATEMENT_TIMEOUT_MS}"
        f" -clock_timeout={app_settings.DB_LOCK_TIMEOUT_MS}"
    )
    return create_engine(
        url,
        pool_size=app_settings.DB_POOL_SIZE,
        max_overflow=app_settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,  # 연결 유효성 검사
        pool_recycle=3600,  # 1시간마다 연결 재생성
        pool_timeout=app_settings.DB_LOCK_TIMEOUT_MS / 1000,
        echo=app_settings.DEBUG,  # 디버그 모드에서 SQL 로깅
        connect_args={"options": options},
    )


engine = build_engine(settings)

# Use expire_on_commit=False to avoid DetachedInstanceError when accessing
# attributes after commit within the same request scope (common FastAPI pattern).
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)
