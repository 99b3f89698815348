"""
Service handler for get_prices service.

Returns all cached hourly values of one series. If nothing is cached for
the series yet, it is downloaded once before answering.

Functions:
    handle_get_prices: Service handler returning hourly prices

"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

import voluptuous as vol

from custom_components.energi_data_service.const import CURRENCY_DKK, Series
from homeassistant.exceptions import ServiceValidationError

from .helpers import get_scheduler

if TYPE_CHECKING:
    from homeassistant.core import ServiceCall, ServiceResponse

_LOGGER = logging.getLogger(__name__)

GET_PRICES_SERVICE_NAME: Final = "get_prices"
ATTR_SERIES: Final = "series"

GET_PRICES_SERVICE_SCHEMA: Final = vol.Schema(
    {
        vol.Optional(ATTR_SERIES, default=Series.SPOT_PRICE.value): vol.In([series.value for series in Series]),
    }
)


async def handle_get_prices(call: ServiceCall) -> ServiceResponse:
    """
    Handle get_prices service call.

    Args:
        call: Service call with optional series (default spot_price)

    Returns:
        Dict with series, currency and ascending list of {hour, price}

    Raises:
        ServiceValidationError: If the integration is not set up or the series is not configured

    """
    scheduler = get_scheduler(call.hass)
    series = Series(call.data[ATTR_SERIES])

    if series not in scheduler.active_series:
        msg = f"Series {series} is not configured"
        raise ServiceValidationError(msg)

    _LOGGER.debug("get_prices service called for %s", series)
    entries = await scheduler.async_get_prices(series)

    currency = CURRENCY_DKK if series.is_tariff else scheduler.config.currency_code
    return {
        "series": series.value,
        "currency": currency,
        "prices": [{"hour": bucket.isoformat(), "price": float(value)} for bucket, value in entries],
    }
