"""Core sensor class for Energi Data Service integration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from custom_components.energi_data_service.const import (
    CURRENCY_DKK,
    DOMAIN,
    HOURLY_PRICES,
)
from custom_components.energi_data_service.entity import EnergiDataServiceEntity
from homeassistant.components.sensor import SensorEntity
from homeassistant.core import callback

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal

    from custom_components.energi_data_service.const import Series
    from custom_components.energi_data_service.coordinator import (
        EnergiDataServiceRefreshScheduler,
    )

    from .definitions import EnergiDataServiceSensorEntityDescription


class EnergiDataServiceSensor(EnergiDataServiceEntity, SensorEntity):
    """
    energi_data_service Sensor class.

    Implements the price consumer interface: the scheduler pushes the
    current-hour value and the forward prices at every hour boundary and
    after every refresh.
    """

    entity_description: EnergiDataServiceSensorEntityDescription

    # Attributes excluded from recorder history
    _unrecorded_attributes = frozenset(
        {
            "forecast",
            "prices",
            "next_refresh",
            "last_call",
        }
    )

    def __init__(
        self,
        scheduler: EnergiDataServiceRefreshScheduler,
        entity_description: EnergiDataServiceSensorEntityDescription,
    ) -> None:
        """Initialize the sensor."""
        super().__init__(scheduler)
        self.entity_description = entity_description
        self._attr_unique_id = f"{DOMAIN}_{scheduler.config.price_area}_{entity_description.key}"

        self._forecast: list[dict[str, Any]] = []
        self._hourly_prices: list[dict[str, Any]] = []

        series = entity_description.series
        if series is not None:
            # Tariffs are always published in DKK
            currency = CURRENCY_DKK if series.is_tariff else scheduler.config.currency_code
            self._attr_native_unit_of_measurement = f"{currency}/kWh"

    @property
    def subscription_key(self) -> str:
        """Return the consumer key: the series, or HOURLY_PRICES."""
        series = self.entity_description.series
        return series.value if series is not None else HOURLY_PRICES

    async def async_added_to_hass(self) -> None:
        """Register as price consumer."""
        await super().async_added_to_hass()
        self.async_on_remove(self.scheduler.async_add_consumer(self.subscription_key, self))

    # =========================================================================
    # Price consumer interface
    # =========================================================================

    @callback
    def publish_value(self, series: Series, bucket: datetime, value: Decimal | None) -> None:
        """Receive the current-hour value."""
        del series, bucket  # Sensor is bound to one series; state is the current hour
        self._attr_native_value = float(value) if value is not None else None
        self._async_write_state()

    @callback
    def publish_time_series(self, series: Series, entries: list[tuple[datetime, Decimal]]) -> None:
        """Receive all known values from the current hour on."""
        del series
        self._forecast = [{"hour": bucket.isoformat(), "price": float(value)} for bucket, value in entries]
        self._async_write_state()

    @callback
    def publish_hourly_prices(self, hourly_prices: list[dict[str, Any]]) -> None:
        """Receive the combined snapshot (hourly prices sensor only)."""
        self._hourly_prices = hourly_prices
        self._attr_native_value = len(hourly_prices)
        self._async_write_state()

    @callback
    def _async_write_state(self) -> None:
        # Consumers may be called before the entity is fully added
        if self.hass is not None:
            self.async_write_ha_state()

    # =========================================================================
    # Attributes
    # =========================================================================

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return forward prices and refresh diagnostics."""
        attributes: dict[str, Any] = {}
        if self.entity_description.series is None:
            attributes["prices"] = self._hourly_prices
        else:
            attributes["forecast"] = self._forecast

        next_refresh = self.scheduler.next_refresh
        last_call = self.scheduler.last_call
        attributes["next_refresh"] = next_refresh.isoformat() if next_refresh else None
        attributes["last_call"] = last_call.isoformat() if last_call else None
        return attributes
