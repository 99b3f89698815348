"""Custom types for energi_data_service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .api.filters import GlobalLocationNumber

if TYPE_CHECKING:
    from homeassistant.loader import Integration

    from .api import EnergiDataServiceApiClient
    from .coordinator import EnergiDataServiceRefreshScheduler


@dataclass(frozen=True, slots=True)
class DatahubPriceOverrides:
    """User overrides of the grid tariff filter."""

    charge_type_codes: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()
    start: str = ""
    offset: str = ""

    @property
    def is_empty(self) -> bool:
        """Return True if nothing is overridden."""
        return not (self.charge_type_codes or self.notes or self.start or self.offset)


@dataclass(frozen=True, slots=True)
class EnergiDataServiceConfig:
    """Static parameters of one Energi Data Service session."""

    price_area: str
    currency_code: str
    grid_company_gln: GlobalLocationNumber
    energinet_gln: GlobalLocationNumber
    reduced_electricity_tax: bool = False
    grid_tariff_overrides: DatahubPriceOverrides = DatahubPriceOverrides()


@dataclass
class EnergiDataServiceData:
    """Data for the energi_data_service integration."""

    client: EnergiDataServiceApiClient
    scheduler: EnergiDataServiceRefreshScheduler
    config: EnergiDataServiceConfig
    integration: Integration
