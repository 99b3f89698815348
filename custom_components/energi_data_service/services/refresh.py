"""
Service handler for refresh service.

Requests an immediate refresh cycle. The request is ignored while a cycle
is already running.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

import voluptuous as vol

from .helpers import get_scheduler

if TYPE_CHECKING:
    from homeassistant.core import ServiceCall, ServiceResponse

REFRESH_SERVICE_NAME: Final = "refresh"

REFRESH_SERVICE_SCHEMA: Final = vol.Schema({})


async def handle_refresh(call: ServiceCall) -> ServiceResponse:
    """Handle refresh service call."""
    scheduler = get_scheduler(call.hass)
    started = scheduler.async_request_refresh()
    return {
        "started": started,
        "next_refresh": scheduler.next_refresh.isoformat() if scheduler.next_refresh else None,
    }
