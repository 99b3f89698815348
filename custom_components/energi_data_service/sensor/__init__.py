"""
Sensor platform for Energi Data Service integration.

Provides one sensor per configured price series (spot price, grid tariff,
Energinet tariffs, electricity tax) plus a combined hourly prices sensor.

See definitions.py for the sensor catalog.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from custom_components.energi_data_service.const import DOMAIN

from .core import EnergiDataServiceSensor
from .definitions import ENTITY_DESCRIPTIONS

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback
    from homeassistant.helpers.typing import ConfigType, DiscoveryInfoType


async def async_setup_platform(
    hass: HomeAssistant,
    _config: ConfigType,
    async_add_entities: AddEntitiesCallback,
    discovery_info: DiscoveryInfoType | None = None,
) -> None:
    """Set up Energi Data Service sensors (loaded by the integration via discovery)."""
    if discovery_info is None or DOMAIN not in hass.data:
        return

    scheduler = hass.data[DOMAIN].scheduler
    active_series = scheduler.active_series

    # Only series this session downloads get a sensor
    entities_to_create = [
        entity_description
        for entity_description in ENTITY_DESCRIPTIONS
        if entity_description.series is None or entity_description.series in active_series
    ]

    async_add_entities(
        EnergiDataServiceSensor(
            scheduler=scheduler,
            entity_description=entity_description,
        )
        for entity_description in entities_to_create
    )
