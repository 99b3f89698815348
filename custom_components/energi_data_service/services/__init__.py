"""
Service handlers for Energi Data Service integration.

This package provides service endpoints:
- Cached hourly prices of one series (get_prices)
- Manual refresh request (refresh)

Architecture:
- helpers.py: Common utilities (get_scheduler)
- get_prices.py: Price export handler
- refresh.py: Manual refresh handler

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from custom_components.energi_data_service.const import DOMAIN
from homeassistant.core import SupportsResponse, callback

from .get_prices import GET_PRICES_SERVICE_NAME, GET_PRICES_SERVICE_SCHEMA, handle_get_prices
from .refresh import REFRESH_SERVICE_NAME, REFRESH_SERVICE_SCHEMA, handle_refresh

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

__all__ = [
    "async_setup_services",
]


@callback
def async_setup_services(hass: HomeAssistant) -> None:
    """Set up services for Energi Data Service integration."""
    hass.services.async_register(
        DOMAIN,
        GET_PRICES_SERVICE_NAME,
        handle_get_prices,
        schema=GET_PRICES_SERVICE_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )
    hass.services.async_register(
        DOMAIN,
        REFRESH_SERVICE_NAME,
        handle_refresh,
        schema=REFRESH_SERVICE_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
