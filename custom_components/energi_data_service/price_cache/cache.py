"""Hourly price cache for spot prices and tariffs."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from custom_components.energi_data_service.const import DATAHUB_TIMEZONE, Series

from .tariffs import compute_hourly_tariffs

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from decimal import Decimal

    from custom_components.energi_data_service.api.models import (
        DatahubPricelistRecord,
        SpotPriceRecord,
    )
    from custom_components.energi_data_service.coordinator.time_service import (
        EnergiDataServiceTimeService,
    )

    from .coverage import CoverageWindow

_LOGGER = logging.getLogger(__name__)
_LOGGER_DETAILS = logging.getLogger(__name__ + ".details")


class EnergiDataServicePriceCache:
    """
    Memory-resident cache of hourly values per series.

    Structure:
        {
            Series.SPOT_PRICE: {
                datetime(2024, 1, 1, 11, tzinfo=UTC): Decimal("0.85"),  # bucket → value per kWh
                ...
            },
            Series.GRID_TARIFF: {...},
        }

    Buckets are UTC instants truncated to the hour; there is at most one
    value per series and bucket. Tariff series additionally keep the raw
    price list records they were computed from, so a new day can usually
    be served without downloading again.

    Concurrency:
        Writers of one series are serialized by a per-series lock. Readers
        take the same lock and receive copies, so the publish tick never
        observes a half-applied merge or cleanup. Different series never
        block each other.
    """

    def __init__(self) -> None:
        """Initialize empty cache."""
        self._buckets: dict[Series, dict[datetime, Decimal]] = {series: {} for series in Series}
        self._tariff_records: dict[Series, list[DatahubPricelistRecord]] = {
            series: [] for series in Series if series.is_tariff
        }
        self._locks: dict[Series, threading.Lock] = {series: threading.Lock() for series in Series}

    # =========================================================================
    # Writes
    # =========================================================================

    def put(self, series: Series, records: Iterable[tuple[datetime, Decimal]]) -> None:
        """
        Merge (bucket, value) pairs into the series.

        Later values overwrite earlier ones for the same bucket, so a revised
        value from the provider replaces the cached one. Empty input is a no-op.
        """
        with self._locks[series]:
            buckets = self._buckets[series]
            count = 0
            for bucket, value in records:
                buckets[bucket] = value
                count += 1
            total = len(buckets)

        _LOGGER_DETAILS.debug("Merged %d values into %s (now %d buckets)", count, series, total)

    def put_spot_prices(self, records: Iterable[SpotPriceRecord]) -> None:
        """Merge downloaded spot price records."""
        self.put(Series.SPOT_PRICE, ((record.hour_start, record.price) for record in records))

    def put_tariff_records(
        self,
        series: Series,
        records: Iterable[DatahubPricelistRecord],
        window: CoverageWindow,
    ) -> None:
        """Replace the stored price list records of a tariff series and recompute its buckets."""
        if not series.is_tariff:
            msg = f"{series} is not a tariff series"
            raise ValueError(msg)

        with self._locks[series]:
            self._tariff_records[series] = list(records)

        self.update_tariffs(series, window)

    def update_tariffs(self, series: Series, window: CoverageWindow) -> None:
        """Recompute hourly buckets of a tariff series from its stored records."""
        with self._locks[series]:
            records = list(self._tariff_records[series])

        if not records:
            return

        tariffs = compute_hourly_tariffs(records, window)
        self.put(series, tariffs.items())

    def cleanup(self, horizon: datetime) -> None:
        """
        Remove buckets strictly before horizon from every series.

        Price list records that expired at or before the horizon are dropped too.
        """
        for series in Series:
            with self._locks[series]:
                buckets = self._buckets[series]
                expired = [bucket for bucket in buckets if bucket < horizon]
                for bucket in expired:
                    del buckets[bucket]

                if series.is_tariff:
                    self._tariff_records[series] = [
                        record
                        for record in self._tariff_records[series]
                        if record.valid_to is None or not _expired_at(record.valid_to, horizon)
                    ]

            if expired:
                _LOGGER_DETAILS.debug("Removed %d expired buckets from %s", len(expired), series)

    def clear(self) -> None:
        """Drop all cached values and records."""
        for series in Series:
            with self._locks[series]:
                self._buckets[series].clear()
                if series.is_tariff:
                    self._tariff_records[series].clear()
        _LOGGER.debug("Price cache cleared")

    # =========================================================================
    # Coverage queries
    # =========================================================================

    def is_fully_covered(self, series: Series, window: CoverageWindow) -> bool:
        """Return True if every bucket in window has a value."""
        if window.is_empty:
            return True
        with self._locks[series]:
            buckets = self._buckets[series]
            return all(bucket in buckets for bucket in window)

    def has_historic_coverage(self, series: Series, time: EnergiDataServiceTimeService) -> bool:
        """Return True if the earliest required historic bucket is cached."""
        with self._locks[series]:
            return time.first_historic_hour_start() in self._buckets[series]

    def has_tariff_records(self, series: Series) -> bool:
        """Return True if price list records are stored for a tariff series."""
        with self._locks[series]:
            return bool(self._tariff_records.get(series))

    def count_future_buckets(self, series: Series, from_time: datetime) -> int:
        """Return number of cached buckets at or after from_time."""
        with self._locks[series]:
            return sum(1 for bucket in self._buckets[series] if bucket >= from_time)

    # =========================================================================
    # Reads
    # =========================================================================

    def value_at(self, series: Series, bucket: datetime) -> Decimal | None:
        """Return the value of a bucket, or None if not cached."""
        with self._locks[series]:
            return self._buckets[series].get(bucket)

    def values_from(self, series: Series, from_time: datetime) -> list[tuple[datetime, Decimal]]:
        """Return cached (bucket, value) pairs at or after from_time, ascending."""
        with self._locks[series]:
            entries = [(bucket, value) for bucket, value in self._buckets[series].items() if bucket >= from_time]
        entries.sort(key=lambda entry: entry[0])
        return entries

    def bucket_count(self, series: Series) -> int:
        """Return number of cached buckets of a series."""
        with self._locks[series]:
            return len(self._buckets[series])


def _expired_at(naive_local_valid_to: datetime, horizon: datetime) -> bool:
    """Return True if a record ending at naive_local_valid_to (Danish time) ended at or before horizon."""
    return naive_local_valid_to.replace(tzinfo=DATAHUB_TIMEZONE) <= horizon
