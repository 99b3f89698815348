"""Conversion of DataHub price list records into hourly tariff values."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from custom_components.energi_data_service.const import DATAHUB_TIMEZONE

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from custom_components.energi_data_service.api.models import DatahubPricelistRecord

    from .coverage import CoverageWindow

_LOGGER_DETAILS = logging.getLogger(__name__ + ".details")


def _is_valid_at(record: DatahubPricelistRecord, local_time: datetime) -> bool:
    if record.valid_from > local_time:
        return False
    return record.valid_to is None or local_time < record.valid_to


def active_records(records: Iterable[DatahubPricelistRecord], local_time: datetime) -> list[DatahubPricelistRecord]:
    """
    Return the record in effect for each charge type code at a naive Danish local time.

    When several records of the same charge type code are valid, the one
    with the most recent valid_from wins.
    """
    by_code: dict[str, DatahubPricelistRecord] = {}
    for record in records:
        if not _is_valid_at(record, local_time):
            continue
        current = by_code.get(record.charge_type_code)
        if current is None or record.valid_from > current.valid_from:
            by_code[record.charge_type_code] = record
    return list(by_code.values())


def tariff_at(records: Iterable[DatahubPricelistRecord], bucket: datetime) -> Decimal | None:
    """
    Return the tariff for one hour bucket, or None if no record covers it.

    Values of distinct charge type codes are summed (e.g. a grid company
    publishing its tariff as two components).
    """
    local_bucket = bucket.astimezone(DATAHUB_TIMEZONE)
    naive_local = local_bucket.replace(tzinfo=None)

    prices = [
        price
        for record in active_records(records, naive_local)
        if (price := record.price_at_hour(local_bucket.hour)) is not None
    ]
    if not prices:
        return None
    return sum(prices, Decimal(0))


def compute_hourly_tariffs(
    records: Iterable[DatahubPricelistRecord],
    window: CoverageWindow,
) -> dict[datetime, Decimal]:
    """Compute hourly tariffs for every bucket of window covered by records."""
    records = list(records)
    tariffs: dict[datetime, Decimal] = {}
    for bucket in window:
        value = tariff_at(records, bucket)
        if value is not None:
            tariffs[bucket] = value

    _LOGGER_DETAILS.debug(
        "Computed %d/%d hourly tariffs from %d price list records",
        len(tariffs),
        len(window),
        len(records),
    )
    return tariffs
