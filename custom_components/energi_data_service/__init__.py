"""
Custom integration to integrate Energi Data Service prices with Home Assistant.

Configured in configuration.yaml:

    energi_data_service:
      price_area: DK1
      grid_company_gln: "5790000705689"
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.const import EVENT_HOMEASSISTANT_STOP, Platform
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.discovery import async_load_platform
from homeassistant.loader import async_get_loaded_integration

from .api import EnergiDataServiceApiClient
from .config import CONFIG_SCHEMA, config_from_yaml
from .const import DOMAIN, LOGGER
from .coordinator import EnergiDataServiceRefreshScheduler
from .data import EnergiDataServiceData
from .services import async_setup_services

if TYPE_CHECKING:
    from homeassistant.core import Event, HomeAssistant

__all__ = ["CONFIG_SCHEMA", "async_setup"]

PLATFORMS: list[Platform] = [
    Platform.SENSOR,
]


async def async_setup(hass: HomeAssistant, config: dict[str, Any]) -> bool:
    """Set up the Energi Data Service component from configuration.yaml."""
    if DOMAIN not in config:
        LOGGER.debug("No energi_data_service configuration found in configuration.yaml")
        return True

    eds_config = config_from_yaml(config[DOMAIN])
    integration = async_get_loaded_integration(hass, DOMAIN)

    api_client = EnergiDataServiceApiClient(
        session=async_get_clientsession(hass),
        price_area=eds_config.price_area,
        currency_code=eds_config.currency_code,
        version=str(integration.version) if integration.version else "unknown",
    )
    scheduler = EnergiDataServiceRefreshScheduler(hass, api_client, eds_config)

    hass.data[DOMAIN] = EnergiDataServiceData(
        client=api_client,
        scheduler=scheduler,
        config=eds_config,
        integration=integration,
    )

    async_setup_services(hass)

    for platform in PLATFORMS:
        hass.async_create_task(async_load_platform(hass, platform, DOMAIN, {}, config))

    async def _async_shutdown(_event: Event) -> None:
        await scheduler.async_shutdown()

    hass.bus.async_listen_once(EVENT_HOMEASSISTANT_STOP, _async_shutdown)

    scheduler.async_start()
    LOGGER.debug(
        "Energi Data Service set up for %s (%s, series: %s)",
        eds_config.price_area,
        eds_config.currency_code,
        ", ".join(scheduler.active_series),
    )
    return True
