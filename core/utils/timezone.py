"""
타임존 유틸리티

내부 저장/전송: UTC ISO-8601 원칙 준수를 위한 헬퍼 함수
"""

from datetime import date, datetime, timezone


def ensure_utc(dt: datetime) -> datetime:
    """datetime을 UTC로 정규화

    Args:
        dt: datetime 객체 (naive면 UTC로 간주)

    Returns:
        UTC 타임존의 datetime
    """
    if dt.tzinfo is None:
        # naive datetime은 UTC로 간주
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def parse_datetime(value: str | datetime | date | None) -> datetime | None:
    """와이어 타임스탬프를 UTC datetime으로 변환

    "Z" 접미사, 날짜만 있는 문자열("2026-10-17") 모두 허용.

    Example:
        >>> parse_datetime("2026-10-17T09:30:00Z")
        datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc)
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def to_iso(dt: datetime | None) -> str | None:
    """datetime을 UTC ISO-8601 문자열로 변환 (None은 None)"""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()
