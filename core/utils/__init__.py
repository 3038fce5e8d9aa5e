"""
유틸리티 패키지

타임존 처리 등 공통 유틸리티
"""

from core.utils.timezone import (
    ensure_utc,
    now_utc,
    parse_datetime,
    to_iso,
)

__all__ = [
    "ensure_utc",
    "now_utc",
    "parse_datetime",
    "to_iso",
]
