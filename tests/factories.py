"""테스트 데이터 준비 헬퍼"""

from datetime import datetime, timezone

from pinapi.models.points import PointAction
from pinapi.models.user import User

# 멕시코시티 기준 2026-03-10 12:00
NOW = datetime(2026, 3, 10, 18, 0, 0, tzinfo=timezone.utc)


def make_user(db, username, **kwargs) -> User:
    user = User(username=username, email=f"{username}@example.com", **kwargs)
    db.add(user)
    db.commit()
    return user


def set_action(db, code: str, **fields) -> None:
    """카탈로그 행 직접 수정"""
    db.query(PointAction).filter(PointAction.action_code == code).update(fields)
    db.commit()


def delete_action(db, code: str) -> None:
    db.query(PointAction).filter(PointAction.action_code == code).delete()
    db.commit()
