"""
타임존 유틸리티

일일 통계(하루 단위 카운터, 로그인 연속 기록)는 서비스 타임존의 달력 날짜를 기준으로
계산하고, 타임스탬프는 항상 UTC aware datetime으로 저장합니다.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional

import pytz

from pinapi.config import settings


def get_service_tz():
    """설정된 서비스 타임존을 반환합니다."""
    return pytz.timezone(settings.TIMEZONE)


def get_utc_now() -> datetime:
    """현재 UTC 시간을 반환합니다."""
    return datetime.now(timezone.utc)


def get_local_today(now: Optional[datetime] = None) -> date:
    """서비스 타임존 기준 오늘 날짜를 반환합니다."""
    now = ensure_aware(now) if now else get_utc_now()
    return now.astimezone(get_service_tz()).date()


def get_next_day_start(day: date) -> datetime:
    """다음 날 00:00 (서비스 타임존)을 UTC datetime으로 반환합니다."""
    tz = get_service_tz()
    next_midnight = tz.localize(datetime.combine(day + timedelta(days=1), datetime.min.time()))
    return next_midnight.astimezone(timezone.utc)


def ensure_aware(dt: datetime) -> datetime:
    """naive datetime은 UTC로 간주합니다 (SQLite는 tzinfo를 보존하지 않음)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt
