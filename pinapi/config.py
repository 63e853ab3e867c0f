from functools import lru_cache
from typing import Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="pinapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Tresesenta Pins API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DATABASE: str = "tresesenta"
    POSTGRES_SCHEMA: str = "public"

    # Explicit URL wins over the POSTGRES_* parts (tests use sqlite://)
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # 모든 DB 작업은 제한 시간 내에 끝나야 함 (초과 시 전체 롤백)
    DB_STATEMENT_TIMEOUT_MS: int = 5000
    DB_LOCK_TIMEOUT_MS: int = 3000

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Security (tokens are issued by the identity service, verified here)
    SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"

    # Business Rules
    DEFAULT_PIN_POINTS: int = 20  # create_pin 카탈로그 행이 없을 때 사용하는 기본값
    LEDGER_PAGE_MAX: int = 100
    LEADERBOARD_MAX: int = 100

    # Timezone (calendar days for daily stats are counted in this zone)
    TIMEZONE: str = "America/Mexico_City"

    # CORS
    ALLOWED_ORIGINS: list[str] = ["*"]


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


settings = get_settings()
