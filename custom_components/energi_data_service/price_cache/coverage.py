"""Coverage windows: ranges of hour buckets that must be cached for a series."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from custom_components.energi_data_service.const import (
    DAILY_REFRESH_TIME_CET,
    DATAHUB_TIMEZONE,
    NORD_POOL_TIMEZONE,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from custom_components.energi_data_service.coordinator.time_service import (
        EnergiDataServiceTimeService,
    )

BUCKET_SIZE = timedelta(hours=1)


@dataclass(frozen=True, slots=True)
class CoverageWindow:
    """Contiguous range of hour buckets, both ends inclusive."""

    first: datetime
    last: datetime

    def __post_init__(self) -> None:
        """Validate bucket alignment."""
        if self.first.minute or self.first.second or self.first.microsecond:
            msg = f"Window start {self.first} is not aligned to an hour"
            raise ValueError(msg)

    @property
    def is_empty(self) -> bool:
        """Return True if the window contains no bucket."""
        return self.last < self.first

    def __len__(self) -> int:
        """Return number of buckets in the window."""
        if self.is_empty:
            return 0
        return int((self.last - self.first) / BUCKET_SIZE) + 1

    def __iter__(self) -> Iterator[datetime]:
        """Iterate buckets in chronological order."""
        bucket = self.first
        while bucket <= self.last:
            yield bucket
            bucket += BUCKET_SIZE

    def __contains__(self, bucket: object) -> bool:
        """Return True if bucket lies within the window."""
        return isinstance(bucket, datetime) and self.first <= bucket <= self.last


def spot_price_window(time: EnergiDataServiceTimeService) -> CoverageWindow:
    """
    Return the spot price buckets required for full coverage.

    From the first historic hour through 23:00 CET today. Once tomorrow's
    prices are due (13:00 CET), the window extends through 23:00 CET tomorrow.
    """
    days_ahead = 1 if time.is_at_or_after(DAILY_REFRESH_TIME_CET, NORD_POOL_TIMEZONE) else 0
    return CoverageWindow(
        first=time.first_historic_hour_start(),
        last=time.last_hour_of_day(NORD_POOL_TIMEZONE, days_ahead=days_ahead),
    )


def tariff_window(time: EnergiDataServiceTimeService) -> CoverageWindow:
    """Return the tariff buckets required for full coverage (through 23:00 tomorrow, Danish time)."""
    return CoverageWindow(
        first=time.first_historic_hour_start(),
        last=time.last_hour_of_day(DATAHUB_TIMEZONE, days_ahead=1),
    )
