"""
유틸리티 패키지

타임존 처리 등 공통 유틸리티
"""

from core.utils.timezone import (
    Clock,
    ensure_utc,
    now_utc,
    parse_utc,
    start_of_day_utc,
)

__all__ = [
    "Clock",
    "ensure_utc",
    "now_utc",
    "parse_utc",
    "start_of_day_utc",
]
