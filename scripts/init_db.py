import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text

# 모든 모델 등록 (외래키 해석용)
import pinapi.repositories  # noqa: F401
from pinapi.config import settings
from pinapi.database.connection import engine
from pinapi.models.base import Base


def init_db():
    """데이터베이스 초기화"""
    try:
        # 스키마 생성 (PostgreSQL 전용)
        if engine.dialect.name == "postgresql":
            with engine.connect() as conn:
                conn.execute(
                    text(f"CREATE SCHEMA IF NOT EXISTS {settings.POSTGRES_SCHEMA}")
                )
                conn.commit()

        # 테이블 생성
        Base.metadata.create_all(bind=engine)
        print(
            f"Database initialized successfully with schema: {settings.POSTGRES_SCHEMA}"
        )

    except Exception as e:
        print(f"Database initialization failed: {str(e)}")
        raise


if __name__ == "__main__":
    init_db()
