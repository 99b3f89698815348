"""Tests for TimeService - hour buckets and clock-time deadlines across DST."""

from __future__ import annotations

from datetime import UTC, datetime, time, timedelta
from zoneinfo import ZoneInfo

from custom_components.energi_data_service.coordinator.time_service import (
    EnergiDataServiceTimeService,
)

CET = ZoneInfo("CET")
COPENHAGEN = ZoneInfo("Europe/Copenhagen")


def _time_service(reference_time: datetime) -> EnergiDataServiceTimeService:
    return EnergiDataServiceTimeService(reference_time=reference_time, local_timezone=COPENHAGEN)


# =============================================================================
# Hour buckets
# =============================================================================


def test_truncate_to_hour_converts_to_utc() -> None:
    """Test buckets are UTC regardless of input timezone."""
    local = datetime(2024, 1, 15, 11, 45, 12, tzinfo=COPENHAGEN)
    assert EnergiDataServiceTimeService.truncate_to_hour(local) == datetime(2024, 1, 15, 10, tzinfo=UTC)


def test_current_and_historic_hours() -> None:
    """Test the current bucket and the earliest historic bucket."""
    time_service = _time_service(datetime(2024, 1, 15, 10, 30, tzinfo=UTC))

    assert time_service.current_hour_start() == datetime(2024, 1, 15, 10, tzinfo=UTC)
    assert time_service.first_historic_hour_start() == datetime(2024, 1, 14, 10, tzinfo=UTC)
    assert time_service.next_hour_start() == datetime(2024, 1, 15, 11, tzinfo=UTC)


def test_delay_until_next_hour_lands_after_boundary() -> None:
    """Test the publish delay ends just past the next boundary."""
    time_service = _time_service(datetime(2024, 1, 15, 10, 30, tzinfo=UTC))
    delay = time_service.delay_until_next_hour()

    assert timedelta(minutes=30) < delay < timedelta(minutes=30, seconds=1)


def test_delay_on_exact_boundary_is_full_hour() -> None:
    """Test a tick exactly on a boundary schedules the following boundary."""
    time_service = _time_service(datetime(2024, 1, 15, 11, 0, tzinfo=UTC))
    assert time_service.delay_until_next_hour() > timedelta(hours=1)


# =============================================================================
# Clock-time deadlines
# =============================================================================


def test_next_occurrence_later_today() -> None:
    """Test 13:00 CET is today when it has not passed yet."""
    time_service = _time_service(datetime(2024, 1, 15, 10, 0, tzinfo=UTC))
    assert time_service.next_occurrence(time(13, 0), CET) == datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


def test_next_occurrence_is_strictly_after_now() -> None:
    """Test exactly at 13:00 CET the next occurrence is tomorrow."""
    time_service = _time_service(datetime(2024, 1, 15, 12, 0, tzinfo=UTC))
    assert time_service.next_occurrence(time(13, 0), CET) == datetime(2024, 1, 16, 12, 0, tzinfo=UTC)


def test_next_local_midnight_across_dst_change() -> None:
    """Test midnight after the spring DST switch is 22:00 UTC."""
    # 2024-03-31 02:00 local clocks jump to 03:00
    time_service = _time_service(datetime(2024, 3, 31, 10, 0, tzinfo=UTC))
    assert time_service.next_occurrence(time(0, 0), COPENHAGEN) == datetime(2024, 3, 31, 22, 0, tzinfo=UTC)


def test_is_at_or_after() -> None:
    """Test the publication cutoff check."""
    assert not _time_service(datetime(2024, 1, 15, 11, 59, tzinfo=UTC)).is_at_or_after(time(13, 0), CET)
    assert _time_service(datetime(2024, 1, 15, 12, 0, tzinfo=UTC)).is_at_or_after(time(13, 0), CET)


def test_last_hour_of_day() -> None:
    """Test 23:00 local is converted to a UTC bucket."""
    time_service = _time_service(datetime(2024, 1, 15, 10, 0, tzinfo=UTC))

    assert time_service.last_hour_of_day(COPENHAGEN) == datetime(2024, 1, 15, 22, tzinfo=UTC)
    assert time_service.last_hour_of_day(COPENHAGEN, days_ahead=1) == datetime(2024, 1, 16, 22, tzinfo=UTC)



# =============================================================================
# Parsing
# =============================================================================


def test_parse_utc_treats_naive_as_utc() -> None:
    """Test HourUTC values without offset are UTC."""
    time_service = _time_service(datetime(2024, 1, 15, 10, 0, tzinfo=UTC))

    assert time_service.parse_utc("2024-01-15T10:00:00") == datetime(2024, 1, 15, 10, tzinfo=UTC)
    assert time_service.parse_utc("2024-01-15T11:00:00+01:00") == datetime(2024, 1, 15, 10, tzinfo=UTC)
    assert time_service.parse_utc("not a date") is None


def test_parse_naive_keeps_wall_clock() -> None:
    """Test price list timestamps stay naive local times."""
    time_service = _time_service(datetime(2024, 1, 15, 10, 0, tzinfo=UTC))
    assert time_service.parse_naive("2024-01-01T00:00:00") == datetime(2024, 1, 1)
