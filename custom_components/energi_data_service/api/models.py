"""Records returned by the Energi Data Service datasets."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from .exceptions import EnergiDataServiceApiClientError

if TYPE_CHECKING:
    from datetime import datetime

    from custom_components.energi_data_service.coordinator.time_service import (
        EnergiDataServiceTimeService,
    )

# Spot prices are quoted per MWh
MWH_TO_KWH = Decimal(1000)
PRICES_PER_DAY = 24


@dataclass(frozen=True, slots=True)
class SpotPriceRecord:
    """One hourly spot price (per kWh)."""

    hour_start: datetime
    price: Decimal


@dataclass(frozen=True, slots=True)
class DatahubPricelistRecord:
    """
    One price list record from the DataHub price list.

    valid_from/valid_to are naive Danish local times. valid_to is None for
    open-ended records. prices holds Price1..Price24 (index 0 = 00:00-01:00).
    """

    valid_from: datetime
    valid_to: datetime | None
    charge_type_code: str
    note: str
    prices: tuple[Decimal | None, ...]

    @property
    def is_daily(self) -> bool:
        """Return True when only Price1 is set (flat price for all hours)."""
        return all(price is None for price in self.prices[1:])

    def price_at_hour(self, hour: int) -> Decimal | None:
        """Return price for a local hour (0-23)."""
        if self.is_daily:
            return self.prices[0]
        price = self.prices[hour]
        return price if price is not None else self.prices[0]


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def parse_spot_price_record(
    raw: dict[str, Any],
    currency_code: str,
    *,
    time: EnergiDataServiceTimeService,
) -> SpotPriceRecord | None:
    """Parse an Elspotprices record; returns None when the price is not yet known."""
    hour_utc = raw.get("HourUTC")
    price = _to_decimal(raw.get(f"SpotPrice{currency_code}"))
    if hour_utc is None or price is None:
        return None

    hour_start = time.parse_utc(hour_utc)
    if hour_start is None:
        msg = EnergiDataServiceApiClientError.MALFORMED_RESPONSE_ERROR.format(
            dataset="Elspotprices", error=f"invalid HourUTC {hour_utc!r}"
        )
        raise EnergiDataServiceApiClientError(msg)

    return SpotPriceRecord(hour_start=hour_start, price=price / MWH_TO_KWH)


def parse_pricelist_record(
    raw: dict[str, Any],
    *,
    time: EnergiDataServiceTimeService,
) -> DatahubPricelistRecord:
    """Parse a DatahubPricelist record."""
    valid_from = time.parse_naive(raw.get("ValidFrom") or "")
    if valid_from is None:
        msg = EnergiDataServiceApiClientError.MALFORMED_RESPONSE_ERROR.format(
            dataset="DatahubPricelist", error=f"invalid ValidFrom {raw.get('ValidFrom')!r}"
        )
        raise EnergiDataServiceApiClientError(msg)

    valid_to_raw = raw.get("ValidTo")
    valid_to = time.parse_naive(valid_to_raw) if valid_to_raw else None

    return DatahubPricelistRecord(
        valid_from=valid_from,
        valid_to=valid_to,
        charge_type_code=str(raw.get("ChargeTypeCode", "")),
        note=str(raw.get("Note", "")),
        prices=tuple(_to_decimal(raw.get(f"Price{index}")) for index in range(1, PRICES_PER_DAY + 1)),
    )
