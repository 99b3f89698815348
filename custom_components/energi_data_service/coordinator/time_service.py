"""
TimeService - Centralized time management for the Energi Data Service integration.

This service provides:
1. Single source of truth for current time per refresh/publish cycle
2. Hour bucket arithmetic (cache keys are UTC instants truncated to the hour)
3. Clock-time deadlines in fixed provider timezones (publication cutoff, local midnight)
4. Time-travel capability (inject simulated time for testing)

All datetime operations of the core MUST go through TimeService so a whole
cycle sees one consistent "now".
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from homeassistant.util import dt as dt_util

from custom_components.energi_data_service.const import NUMBER_OF_HISTORIC_HOURS

if TYPE_CHECKING:
    from datetime import time, tzinfo

# Fire publish ticks just after the boundary so the new hour is current
_HOUR_BOUNDARY_MARGIN = timedelta(milliseconds=1)


class EnergiDataServiceTimeService:
    """
    Centralized time service for the Energi Data Service integration.

    Usage:
        time_service = EnergiDataServiceTimeService()
        bucket = time_service.current_hour_start()
        deadline = time_service.next_occurrence(time(13, 0), ZoneInfo("CET"))
    """

    def __init__(self, reference_time: datetime | None = None, local_timezone: tzinfo | None = None) -> None:
        """
        Initialize TimeService with reference time.

        Args:
            reference_time: Optional fixed time for this context (timezone-aware).
                          If None, uses actual current time.
            local_timezone: Optional timezone used for "local midnight".
                          If None, uses Home Assistant's configured timezone.

        """
        self._reference_time = dt_util.as_utc(reference_time) if reference_time else dt_util.utcnow()
        self._local_timezone = local_timezone

    # =========================================================================
    # Low-Level API
    # =========================================================================

    def now(self) -> datetime:
        """Return the reference time of this cycle (UTC)."""
        return self._reference_time

    @property
    def local_timezone(self) -> tzinfo:
        """Return the timezone used for local midnight."""
        return self._local_timezone or dt_util.get_default_time_zone()

    def parse_utc(self, dt_str: str) -> datetime | None:
        """Parse an ISO timestamp; naive values are interpreted as UTC."""
        parsed = dt_util.parse_datetime(dt_str)
        if parsed is None:
            return None
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return dt_util.as_utc(parsed)

    def parse_naive(self, dt_str: str) -> datetime | None:
        """Parse an ISO timestamp keeping it naive (wall clock of the provider)."""
        parsed = dt_util.parse_datetime(dt_str)
        if parsed is None:
            return None
        return parsed.replace(tzinfo=None)

    # =========================================================================
    # Hour buckets
    # =========================================================================

    @staticmethod
    def truncate_to_hour(dt: datetime) -> datetime:
        """Return the hour bucket (UTC) containing dt."""
        return dt_util.as_utc(dt).replace(minute=0, second=0, microsecond=0)

    def current_hour_start(self) -> datetime:
        """Return the bucket of the current hour."""
        return self.truncate_to_hour(self._reference_time)

    def first_historic_hour_start(self) -> datetime:
        """Return the earliest bucket kept in the cache."""
        return self.current_hour_start() - timedelta(hours=NUMBER_OF_HISTORIC_HOURS)

    def next_hour_start(self) -> datetime:
        """Return the start of the next clock hour."""
        return self.current_hour_start() + timedelta(hours=1)

    def delay_until_next_hour(self) -> timedelta:
        """
        Return the delay until just after the next hour boundary.

        Computed from the current time on every call so scheduling drift
        never accumulates.
        """
        return self.next_hour_start() - self._reference_time + _HOUR_BOUNDARY_MARGIN

    # =========================================================================
    # Clock-time deadlines
    # =========================================================================

    def next_occurrence(self, at: time, timezone: tzinfo) -> datetime:
        """
        Return the next instant (UTC) strictly after now where the clock in timezone shows at.

        Examples (timezone=CET, at=13:00):
            now 10:00 CET → today 13:00 CET
            now 13:00 CET → tomorrow 13:00 CET
        """
        local_now = self._reference_time.astimezone(timezone)
        candidate = datetime.combine(local_now.date(), at, tzinfo=timezone)
        if candidate <= local_now:
            candidate = datetime.combine(local_now.date() + timedelta(days=1), at, tzinfo=timezone)
        return dt_util.as_utc(candidate)

    def is_at_or_after(self, at: time, timezone: tzinfo) -> bool:
        """Return True if the clock in timezone has reached at today."""
        local_now = self._reference_time.astimezone(timezone)
        return local_now.time() >= at

    def last_hour_of_day(self, timezone: tzinfo, days_ahead: int = 0) -> datetime:
        """Return the 23:00 bucket (UTC) of today + days_ahead in timezone."""
        local_date = self._reference_time.astimezone(timezone).date() + timedelta(days=days_ahead)
        local_last_hour = datetime(local_date.year, local_date.month, local_date.day, 23, tzinfo=timezone)
        return self.truncate_to_hour(local_last_hour)
