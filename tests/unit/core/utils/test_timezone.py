"""
core/utils/timezone.py 테스트
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from core.utils.timezone import ensure_utc, now_utc, parse_datetime, to_iso


KST = timezone(timedelta(hours=9))


class TestEnsureUtc:
    def test_naive_is_utc(self) -> None:
        """naive datetime은 UTC로 간주"""
        result = ensure_utc(datetime(2026, 10, 17, 9, 0))
        assert result.tzinfo == timezone.utc
        assert result.hour == 9

    def test_converts_offset(self) -> None:
        result = ensure_utc(datetime(2026, 10, 17, 9, 0, tzinfo=KST))
        assert result == datetime(2026, 10, 17, 0, 0, tzinfo=timezone.utc)


class TestNowUtc:
    def test_timezone_aware(self) -> None:
        assert now_utc().tzinfo == timezone.utc


class TestParseDatetime:
    """와이어 타임스탬프 파싱"""

    @pytest.mark.parametrize(
        "value",
        [
            "2026-10-17T09:30:00Z",
            "2026-10-17T09:30:00+00:00",
            "2026-10-17T18:30:00+09:00",
        ],
    )
    def test_iso_strings(self, value: str) -> None:
        assert parse_datetime(value) == datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc)

    def test_date_only(self) -> None:
        assert parse_datetime("2026-10-17") == datetime(2026, 10, 17, tzinfo=timezone.utc)
        assert parse_datetime(date(2026, 10, 17)) == datetime(2026, 10, 17, tzinfo=timezone.utc)

    def test_empty(self) -> None:
        assert parse_datetime(None) is None
        assert parse_datetime("") is None

    def test_invalid(self) -> None:
        with pytest.raises(ValueError):
            parse_datetime("yesterday")


class TestToIso:
    def test_round_trip_format(self) -> None:
        assert to_iso(datetime(2026, 10, 17, 18, 30, tzinfo=KST)) == "2026-10-17T09:30:00+00:00"

    def test_none(self) -> None:
        assert to_iso(None) is None
