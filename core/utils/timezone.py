"""
타임존 유틸리티

모든 시각은 UTC 단일 시계로 처리 (연체 계산 포함).
"""

from datetime import date, datetime, time, timezone
from typing import Callable

# 시계 타입 (테스트에서 고정 시각 주입용)
Clock = Callable[[], datetime]


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """naive datetime은 UTC로 간주하여 tzinfo 부여"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def start_of_day_utc(day: date) -> datetime:
    """날짜의 00:00 UTC 시각

    Example:
        >>> start_of_day_utc(date(2026, 2, 20))
        datetime(2026, 2, 20, 0, 0, tzinfo=timezone.utc)
    """
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def parse_utc(value: str) -> datetime:
    """ISO 문자열 → UTC datetime"""
    return ensure_utc(datetime.fromisoformat(value))
