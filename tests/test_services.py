"""Tests for the get_prices and refresh services."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import voluptuous as vol

from custom_components.energi_data_service import async_setup
from custom_components.energi_data_service.const import DOMAIN, Series
from custom_components.energi_data_service.services import async_setup_services
from custom_components.energi_data_service.services.get_prices import (
    GET_PRICES_SERVICE_SCHEMA,
    handle_get_prices,
)
from custom_components.energi_data_service.services.refresh import handle_refresh
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ServiceValidationError

CURRENT_HOUR = datetime(2024, 1, 15, 10, 0, tzinfo=UTC)


@pytest.fixture
def scheduler_mock() -> MagicMock:
    """Create a scheduler serving spot prices in EUR."""
    scheduler = MagicMock()
    scheduler.active_series = [Series.SPOT_PRICE, Series.SYSTEM_TARIFF]
    scheduler.config.currency_code = "EUR"
    scheduler.async_get_prices = AsyncMock(return_value=[(CURRENT_HOUR, Decimal("0.85"))])
    scheduler.next_refresh = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)
    return scheduler


def _call(scheduler: MagicMock | None, data: dict) -> MagicMock:
    call = MagicMock()
    call.hass.data = {DOMAIN: MagicMock(scheduler=scheduler)} if scheduler is not None else {}
    call.data = data
    return call


@pytest.mark.asyncio
async def test_get_prices(scheduler_mock: MagicMock) -> None:
    """Test cached prices are returned with their currency."""
    response = await handle_get_prices(_call(scheduler_mock, {"series": "spot_price"}))

    scheduler_mock.async_get_prices.assert_awaited_once_with(Series.SPOT_PRICE)
    assert response == {
        "series": "spot_price",
        "currency": "EUR",
        "prices": [{"hour": "2024-01-15T10:00:00+00:00", "price": 0.85}],
    }


@pytest.mark.asyncio
async def test_get_prices_tariffs_are_dkk(scheduler_mock: MagicMock) -> None:
    """Test tariffs are reported in DKK regardless of the spot price currency."""
    response = await handle_get_prices(_call(scheduler_mock, {"series": "system_tariff"}))
    assert response["currency"] == "DKK"


@pytest.mark.asyncio
async def test_get_prices_unconfigured_series(scheduler_mock: MagicMock) -> None:
    """Test series without a configured GLN are rejected."""
    with pytest.raises(ServiceValidationError):
        await handle_get_prices(_call(scheduler_mock, {"series": "grid_tariff"}))
    scheduler_mock.async_get_prices.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_prices_not_set_up() -> None:
    """Test calling the service without the integration loaded."""
    with pytest.raises(ServiceValidationError):
        await handle_get_prices(_call(None, {"series": "spot_price"}))


def test_get_prices_schema() -> None:
    """Test the series defaults to spot prices and must be known."""
    assert GET_PRICES_SERVICE_SCHEMA({}) == {"series": "spot_price"}
    with pytest.raises(vol.Invalid):
        GET_PRICES_SERVICE_SCHEMA({"series": "heating_oil"})


@pytest.mark.asyncio
async def test_refresh(scheduler_mock: MagicMock) -> None:
    """Test the refresh service reports whether a cycle was started."""
    scheduler_mock.async_request_refresh = MagicMock(return_value=False)

    response = await handle_refresh(_call(scheduler_mock, {}))

    assert response == {"started": False, "next_refresh": "2024-01-15T12:00:00+00:00"}


def test_services_registered() -> None:
    """Test both services are registered."""
    hass = MagicMock()
    async_setup_services(hass)

    registered = [call.args[1] for call in hass.services.async_register.call_args_list]
    assert registered == ["get_prices", "refresh"]


@pytest.mark.asyncio
async def test_setup_without_configuration() -> None:
    """Test the integration does nothing without a configuration.yaml entry."""
    hass = MagicMock(spec=HomeAssistant)
    assert await async_setup(hass, {})
