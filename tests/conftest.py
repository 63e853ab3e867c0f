import os

# pinapi 모듈이 엔진을 만들기 전에 테스트 DB 지정
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("ENVIRONMENT", "test")

import pytest

import pinapi.repositories  # noqa: F401  (모든 모델 등록)
from pinapi.config import get_settings
from pinapi.database.connection import SessionLocal, engine
from pinapi.database.seed import seed_catalog, seed_settings
from pinapi.models.base import Base
from factories import make_user


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def db():
    """테스트마다 빈 인메모리 DB"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def seeded_db(db):
    """카탈로그 / 설정 기본값이 들어간 DB"""
    seed_catalog(db)
    seed_settings(db)
    db.commit()
    return db


@pytest.fixture
def alice(seeded_db):
    return make_user(seeded_db, "alice")


@pytest.fixture
def bob(seeded_db):
    return make_user(seeded_db, "bob")


@pytest.fixture
def admin(seeded_db):
    return make_user(seeded_db, "admin", is_admin=True)

