"""Constants for the Energi Data Service integration."""

import logging
from datetime import time
from enum import StrEnum
from zoneinfo import ZoneInfo

DOMAIN = "energi_data_service"
LOGGER = logging.getLogger(__package__)

ATTRIBUTION = "Data provided by Energi Data Service"

CONF_PRICE_AREA = "price_area"
CONF_CURRENCY_CODE = "currency_code"
CONF_GRID_COMPANY_GLN = "grid_company_gln"
CONF_ENERGINET_GLN = "energinet_gln"
CONF_REDUCED_ELECTRICITY_TAX = "reduced_electricity_tax"
CONF_GRID_TARIFF = "grid_tariff"
CONF_CHARGE_TYPE_CODES = "charge_type_codes"
CONF_NOTES = "notes"
CONF_START = "start"
CONF_OFFSET = "offset"

PRICE_AREAS = ("DK1", "DK2", "NO2", "SE3", "SE4", "SYSTEM")
CURRENCY_DKK = "DKK"
CURRENCY_EUR = "EUR"
CURRENCIES = (CURRENCY_DKK, CURRENCY_EUR)

DEFAULT_CURRENCY_CODE = CURRENCY_DKK
DEFAULT_ENERGINET_GLN = "5790000432752"
DEFAULT_REDUCED_ELECTRICITY_TAX = False

# Day-ahead prices are published by Nord Pool around 13:00 CET
DAILY_REFRESH_TIME_CET = time(13, 0)
NORD_POOL_TIMEZONE = ZoneInfo("CET")

# Price list hours (Price1..Price24) are expressed in Danish local time
DATAHUB_TIMEZONE = ZoneInfo("Europe/Copenhagen")

# Hours of history kept in the cache and requested on cold start
NUMBER_OF_HISTORIC_HOURS = 24

# Fewer future spot prices than this means tomorrow's prices are still missing
SPOT_PRICE_FUTURE_HOURS_THRESHOLD = 13

# Key under which consumers subscribe to the combined hourly snapshot
HOURLY_PRICES = "hourly_prices"


class Series(StrEnum):
    """Time series tracked by the price cache."""

    SPOT_PRICE = "spot_price"
    GRID_TARIFF = "grid_tariff"
    SYSTEM_TARIFF = "system_tariff"
    TRANSMISSION_GRID_TARIFF = "transmission_grid_tariff"
    ELECTRICITY_TAX = "electricity_tax"
    REDUCED_ELECTRICITY_TAX = "reduced_electricity_tax"

    @property
    def is_tariff(self) -> bool:
        """Return True for series downloaded from the DataHub price list."""
        return self is not Series.SPOT_PRICE

