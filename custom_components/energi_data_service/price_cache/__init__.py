"""Price cache - hourly values per series with coverage tracking."""

from .cache import EnergiDataServicePriceCache
from .coverage import CoverageWindow, spot_price_window, tariff_window

__all__ = [
    "CoverageWindow",
    "EnergiDataServicePriceCache",
    "spot_price_window",
    "tariff_window",
]
