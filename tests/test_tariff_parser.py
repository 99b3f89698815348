"""
Tests for converting DataHub price list records into hourly tariffs.

Price list hours are Danish local time; cache buckets are UTC. In January
Danish time is UTC+1, so the 16:00 UTC bucket reads Price18 (17:00-18:00).
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from custom_components.energi_data_service.api.models import DatahubPricelistRecord
from custom_components.energi_data_service.price_cache import CoverageWindow
from custom_components.energi_data_service.price_cache.tariffs import (
    active_records,
    compute_hourly_tariffs,
    tariff_at,
)


def _daily(
    price: str,
    valid_from: datetime,
    valid_to: datetime | None = None,
    code: str = "41000",
) -> DatahubPricelistRecord:
    return DatahubPricelistRecord(
        valid_from=valid_from,
        valid_to=valid_to,
        charge_type_code=code,
        note="",
        prices=(Decimal(price), *([None] * 23)),
    )


def _hourly(base: str, peak: str, valid_from: datetime, code: str = "DT_C_01") -> DatahubPricelistRecord:
    # Peak 17:00-21:00 local (Price18..Price21)
    prices = [Decimal(peak) if 17 <= hour < 21 else Decimal(base) for hour in range(24)]
    return DatahubPricelistRecord(
        valid_from=valid_from,
        valid_to=None,
        charge_type_code=code,
        note="Nettarif C time",
        prices=tuple(prices),
    )


@pytest.mark.unit
def test_daily_record_is_flat() -> None:
    """Test a record with only Price1 applies to every hour."""
    record = _daily("0.054", datetime(2024, 1, 1))

    assert record.is_daily
    assert tariff_at([record], datetime(2024, 1, 15, 3, tzinfo=UTC)) == Decimal("0.054")
    assert tariff_at([record], datetime(2024, 1, 15, 18, tzinfo=UTC)) == Decimal("0.054")


@pytest.mark.unit
def test_hourly_record_uses_local_hour() -> None:
    """Test the bucket is mapped to the Danish local hour."""
    record = _hourly("0.20", "0.60", datetime(2024, 1, 1))

    # 16:00 UTC = 17:00 local → peak
    assert tariff_at([record], datetime(2024, 1, 15, 16, tzinfo=UTC)) == Decimal("0.60")
    # 15:00 UTC = 16:00 local → base
    assert tariff_at([record], datetime(2024, 1, 15, 15, tzinfo=UTC)) == Decimal("0.20")


@pytest.mark.unit
def test_newest_valid_from_wins() -> None:
    """Test a newer record of the same charge type code supersedes an older open-ended one."""
    old = _daily("0.050", datetime(2023, 1, 1))
    new = _daily("0.054", datetime(2024, 1, 1))

    assert active_records([old, new], datetime(2024, 1, 15, 12)) == [new]
    assert tariff_at([new, old], datetime(2024, 1, 15, 12, tzinfo=UTC)) == Decimal("0.054")
    # Before the new record starts the old one applies
    assert tariff_at([old, new], datetime(2023, 12, 31, 12, tzinfo=UTC)) == Decimal("0.050")


@pytest.mark.unit
def test_distinct_codes_are_summed() -> None:
    """Test components published under different codes add up."""
    records = [
        _daily("0.10", datetime(2024, 1, 1), code="CD"),
        _daily("0.05", datetime(2024, 1, 1), code="CD R"),
    ]
    assert tariff_at(records, datetime(2024, 1, 15, 12, tzinfo=UTC)) == Decimal("0.15")


@pytest.mark.unit
def test_valid_to_is_exclusive() -> None:
    """Test a record no longer applies at its valid_to."""
    record = _daily("0.054", datetime(2024, 1, 1), valid_to=datetime(2024, 1, 15))

    # 22:00 UTC = 23:00 local on the 14th
    assert tariff_at([record], datetime(2024, 1, 14, 22, tzinfo=UTC)) == Decimal("0.054")
    # 23:00 UTC = 00:00 local on the 15th
    assert tariff_at([record], datetime(2024, 1, 14, 23, tzinfo=UTC)) is None


@pytest.mark.unit
def test_compute_hourly_tariffs_skips_uncovered_buckets() -> None:
    """Test only buckets covered by a record get a value."""
    # Starts 2024-01-15 00:00 local = 2024-01-14 23:00 UTC
    record = _daily("0.054", datetime(2024, 1, 15))
    window = CoverageWindow(
        first=datetime(2024, 1, 14, 20, tzinfo=UTC),
        last=datetime(2024, 1, 15, 1, tzinfo=UTC),
    )

    tariffs = compute_hourly_tariffs([record], window)

    assert sorted(tariffs) == [
        datetime(2024, 1, 14, 23, tzinfo=UTC),
        datetime(2024, 1, 15, 0, tzinfo=UTC),
        datetime(2024, 1, 15, 1, tzinfo=UTC),
    ]


@pytest.mark.unit
def test_no_records() -> None:
    """Test no records means no tariff."""
    assert tariff_at([], datetime(2024, 1, 15, 12, tzinfo=UTC)) is None
