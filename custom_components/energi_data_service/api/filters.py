"""
Tariff filters for the DataHub price list.

A filter narrows a DatahubPricelist download to the charge type codes and
notes of one tariff component, starting at a given date. Filters for the
Energinet tariffs are fixed; grid tariff filters depend on the grid
company's Global Location Number (GLN) and may be overridden by the user.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from custom_components.energi_data_service.const import NUMBER_OF_HISTORIC_HOURS

from .queries import DateQueryParameter, DateQueryParameterType

if TYPE_CHECKING:
    from custom_components.energi_data_service.data import DatahubPriceOverrides

_LOGGER = logging.getLogger(__name__)

# DataHub charge type for tariffs (D01 = subscription, D02 = fee)
CHARGE_TYPE_TARIFF = "D03"

GLN_LENGTH = 13

_HISTORIC_OFFSET = timedelta(hours=-NUMBER_OF_HISTORIC_HOURS)


@dataclass(frozen=True, slots=True)
class GlobalLocationNumber:
    """13 digit GS1 Global Location Number identifying a grid company."""

    value: str

    @property
    def is_empty(self) -> bool:
        """Return True when no GLN is configured."""
        return not self.value.strip()

    def is_valid(self) -> bool:
        """
        Return True if the value has 13 digits and a correct GS1 check digit.

        Weights 3 and 1 alternate from the right, starting with 3 for the
        digit left of the check digit.
        """
        if len(self.value) != GLN_LENGTH or not self.value.isdigit():
            return False

        digits = [int(char) for char in self.value]
        total = sum(digit * (3 if index % 2 == 0 else 1) for index, digit in enumerate(reversed(digits[:-1])))
        return (10 - total % 10) % 10 == digits[-1]

    def __str__(self) -> str:
        """Return the raw GLN."""
        return self.value


@dataclass(frozen=True, slots=True)
class DatahubTariffFilter:
    """Charge type codes and notes to request from the price list, plus the date range."""

    charge_type_codes: tuple[str, ...]
    notes: tuple[str, ...]
    start: DateQueryParameter
    end: DateQueryParameter | None = None

    def with_start(self, start: DateQueryParameter) -> DatahubTariffFilter:
        """Return a copy with a different start."""
        return replace(self, start=start)

    def as_query_filter(self, global_location_number: GlobalLocationNumber) -> dict[str, Any]:
        """Build the JSON filter expected by the DatahubPricelist dataset."""
        query_filter: dict[str, Any] = {
            "GLN_Number": [str(global_location_number)],
            "ChargeType": [CHARGE_TYPE_TARIFF],
        }
        if self.charge_type_codes:
            query_filter["ChargeTypeCode"] = list(self.charge_type_codes)
        if self.notes:
            query_filter["Note"] = list(self.notes)
        return query_filter


def _start_of_day_with_history() -> DateQueryParameter:
    return DateQueryParameter.of_type(DateQueryParameterType.START_OF_DAY, _HISTORIC_OFFSET)


# Grid tariff charge type codes of known grid companies, keyed by GLN.
# Unknown grid companies are queried by GLN only.
GRID_TARIFF_CHARGE_TYPE_CODES: dict[str, tuple[str, ...]] = {
    "5790000705689": ("DT_C_01",),  # Radius
    "5790001089030": ("CD", "CD R"),  # N1
    "5790000705184": ("30TR_C_ET",),  # Cerius
    "5790000392261": ("C",),  # Trefor
    "5790000704842": ("151-NT01T", "151-NRA04T"),  # Konstant
    "5790000610877": ("TAC",),  # Nord Energi Net
}


class DatahubTariffFilterFactory:
    """Default filters for each tariff series."""

    @staticmethod
    def grid_tariff_by_gln(global_location_number: GlobalLocationNumber) -> DatahubTariffFilter:
        """Return the default grid tariff filter for a grid company."""
        codes = GRID_TARIFF_CHARGE_TYPE_CODES.get(str(global_location_number))
        if codes is None:
            _LOGGER.debug(
                "No known grid tariff charge type codes for GLN %s, filtering by GLN only",
                global_location_number,
            )
            codes = ()
        return DatahubTariffFilter(charge_type_codes=codes, notes=(), start=_start_of_day_with_history())

    @staticmethod
    def system_tariff() -> DatahubTariffFilter:
        """Return the Energinet system tariff filter."""
        return DatahubTariffFilter(
            charge_type_codes=("41000",),
            notes=("Systemtarif",),
            start=_start_of_day_with_history(),
        )

    @staticmethod
    def transmission_grid_tariff() -> DatahubTariffFilter:
        """Return the Energinet transmission grid tariff filter."""
        return DatahubTariffFilter(
            charge_type_codes=("40000",),
            notes=("Transmissions nettarif",),
            start=_start_of_day_with_history(),
        )

    @staticmethod
    def electricity_tax() -> DatahubTariffFilter:
        """Return the electricity tax filter."""
        return DatahubTariffFilter(
            charge_type_codes=("EA-001",),
            notes=("Elafgift",),
            start=_start_of_day_with_history(),
        )

    @staticmethod
    def reduced_electricity_tax() -> DatahubTariffFilter:
        """Return the reduced electricity tax filter (electric heating)."""
        return DatahubTariffFilter(
            charge_type_codes=("EA-001",),
            notes=("Reduceret elafgift",),
            start=_start_of_day_with_history(),
        )


def build_grid_tariff_filter(
    global_location_number: GlobalLocationNumber,
    overrides: DatahubPriceOverrides | None,
) -> DatahubTariffFilter:
    """
    Build the grid tariff filter, applying user overrides.

    Override handling:
    - No overrides: default filter of the grid company.
    - Charge type codes or notes given: the override replaces the default
      filter completely (start defaults to StartOfDay).
    - Only start and/or offset given: the default filter is kept and only
      its start is replaced.

    Overridden starts are shifted back by the historic lookback so the
    records valid for the earliest cached hour are included.

    Raises:
        InvalidDateQueryError: If the start or offset override is malformed.

    """
    default_filter = DatahubTariffFilterFactory.grid_tariff_by_gln(global_location_number)
    if overrides is None or overrides.is_empty:
        return default_filter

    if overrides.start or overrides.offset:
        start = DateQueryParameter.parse(
            overrides.start or DateQueryParameterType.START_OF_DAY,
            overrides.offset,
        )
    else:
        start = DateQueryParameter.of_type(DateQueryParameterType.START_OF_DAY)
    start = start.with_offset(_HISTORIC_OFFSET)

    if overrides.charge_type_codes or overrides.notes:
        return DatahubTariffFilter(
            charge_type_codes=tuple(overrides.charge_type_codes),
            notes=tuple(overrides.notes),
            start=start,
        )

    return default_filter.with_start(start)
