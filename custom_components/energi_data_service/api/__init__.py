"""
Energi Data Service API client package.

This package handles all communication with the Energi Data Service REST API:
- Dataset requests (Elspotprices, DatahubPricelist)
- Date query parameters and tariff filters
- Error translation (HTTP status kept for retry decisions)
- Record parsing

Main components:
- client.py: EnergiDataServiceApiClient (aiohttp-based dataset client)
- queries.py: Date query parameters and series queries
- filters.py: DataHub tariff filters and GLN handling
- models.py: Parsed dataset records
- exceptions.py: API-specific error classes
- helpers.py: Response verification utilities
"""

from .client import EnergiDataServiceApiClient
from .exceptions import (
    EnergiDataServiceApiClientCommunicationError,
    EnergiDataServiceApiClientError,
    InvalidDateQueryError,
)
from .filters import DatahubTariffFilter, DatahubTariffFilterFactory, GlobalLocationNumber
from .queries import DateQueryParameter, DateQueryParameterType, SeriesQuery

__all__ = [
    "DatahubTariffFilter",
    "DatahubTariffFilterFactory",
    "DateQueryParameter",
    "DateQueryParameterType",
    "EnergiDataServiceApiClient",
    "EnergiDataServiceApiClientCommunicationError",
    "EnergiDataServiceApiClientError",
    "GlobalLocationNumber",
    "InvalidDateQueryError",
    "SeriesQuery",
]
