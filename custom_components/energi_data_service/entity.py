"""EnergiDataServiceEntity class."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.entity import Entity

from .const import ATTRIBUTION, DOMAIN

if TYPE_CHECKING:
    from .coordinator import EnergiDataServiceRefreshScheduler


class EnergiDataServiceEntity(Entity):
    """
    EnergiDataServiceEntity class.

    Entities are pushed to by the refresh scheduler and never poll.
    """

    _attr_has_entity_name = True
    _attr_should_poll = False
    _attr_attribution = ATTRIBUTION

    def __init__(self, scheduler: EnergiDataServiceRefreshScheduler) -> None:
        """Initialize."""
        self.scheduler = scheduler
        price_area = scheduler.config.price_area

        self._attr_device_info = DeviceInfo(
            entry_type=DeviceEntryType.SERVICE,
            identifiers={(DOMAIN, price_area)},
            name=f"Energi Data Service {price_area}",
            manufacturer="Energinet",
            model=f"Price area {price_area}",
            configuration_url="https://www.energidataservice.dk/",
        )
