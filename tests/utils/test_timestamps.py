"""Tests for timestamp helpers."""

from datetime import UTC, datetime, timedelta, timezone

from reception_workflow.utils import as_utc, as_utc_or_none, utcnow


class TestTimestamps:
    def test_utcnow_is_aware(self):
        assert utcnow().utcoffset() == timedelta(0)

    def test_naive_is_treated_as_utc(self):
        assert as_utc(datetime(2025, 3, 1, 8, 0)) == datetime(2025, 3, 1, 8, 0, tzinfo=UTC)

    def test_offset_is_converted(self):
        local = datetime(2025, 3, 1, 10, 0, tzinfo=timezone(timedelta(hours=2)))

        converted = as_utc(local)

        assert converted.hour == 8
        assert converted.utcoffset() == timedelta(0)

    def test_iso_string(self):
        assert as_utc("2025-03-01T08:00:00+00:00") == datetime(2025, 3, 1, 8, 0, tzinfo=UTC)

    def test_none_passthrough(self):
        assert as_utc_or_none(None) is None
