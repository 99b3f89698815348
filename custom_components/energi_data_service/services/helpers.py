"""
Shared utilities for service handlers.

Functions:
    get_scheduler: Return the refresh scheduler of the loaded integration

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from custom_components.energi_data_service.const import DOMAIN
from homeassistant.exceptions import ServiceValidationError

if TYPE_CHECKING:
    from custom_components.energi_data_service.coordinator import EnergiDataServiceRefreshScheduler
    from homeassistant.core import HomeAssistant


def get_scheduler(hass: HomeAssistant) -> EnergiDataServiceRefreshScheduler:
    """
    Return the refresh scheduler.

    Raises:
        ServiceValidationError: If the integration is not set up

    """
    data = hass.data.get(DOMAIN)
    if data is None:
        msg = "Energi Data Service is not set up"
        raise ServiceValidationError(msg)
    return data.scheduler
