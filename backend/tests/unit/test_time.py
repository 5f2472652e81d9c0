"""Tests for UTC helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from orderdesk.utils.time import format_timestamp, parse_timestamp, utc_now


class TestUtcHelpers:
    def test_utc_now_is_utc(self) -> None:
        dt = utc_now()
        assert dt.tzinfo == UTC

    def test_format_timestamp_z_suffix(self) -> None:
        dt = datetime(2026, 2, 14, 12, 30, 45, 123456, tzinfo=UTC)
        assert format_timestamp(dt) == "2026-02-14T12:30:45.123456Z"

    def test_format_timestamp_converts_to_utc(self) -> None:
        dt = datetime(2026, 2, 14, 14, 30, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(dt) == "2026-02-14T12:30:00.000000Z"

    def test_naive_datetime_treated_as_utc(self) -> None:
        assert format_timestamp(datetime(2026, 2, 14)) == "2026-02-14T00:00:00.000000Z"

    def test_parse_timestamp_roundtrip(self) -> None:
        dt = datetime(2026, 2, 14, 12, 30, 45, 123456, tzinfo=UTC)
        parsed = parse_timestamp(format_timestamp(dt))
        assert parsed == dt
        assert parsed.tzinfo == UTC

    def test_fixed_width_sorts_chronologically(self) -> None:
        early = datetime(2026, 2, 14, 9, 5, 1, tzinfo=UTC)
        late = datetime(2026, 2, 14, 10, 0, 0, 500, tzinfo=UTC)
        assert format_timestamp(early) < format_timestamp(late)
