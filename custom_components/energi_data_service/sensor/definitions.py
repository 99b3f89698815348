"""
Sensor entity definitions for Energi Data Service.

One sensor per price series (current hour value, with the known forward
prices as attribute) plus one combined hourly prices sensor.
"""

from __future__ import annotations

from dataclasses import dataclass

from custom_components.energi_data_service.const import HOURLY_PRICES, Series
from homeassistant.components.sensor import (
    SensorEntityDescription,
    SensorStateClass,
)


@dataclass(frozen=True, kw_only=True)
class EnergiDataServiceSensorEntityDescription(SensorEntityDescription):
    """Describes an Energi Data Service sensor; series is None for the hourly prices sensor."""

    series: Series | None = None


# ----------------------------------------------------------------------------
# PRICE SENSORS (one per series, value of the current hour)
# ----------------------------------------------------------------------------

PRICE_SENSORS = (
    EnergiDataServiceSensorEntityDescription(
        key=Series.SPOT_PRICE.value,
        translation_key=Series.SPOT_PRICE.value,
        name="Spot price",
        icon="mdi:flash",
        state_class=SensorStateClass.MEASUREMENT,
        suggested_display_precision=4,
        series=Series.SPOT_PRICE,
    ),
    EnergiDataServiceSensorEntityDescription(
        key=Series.GRID_TARIFF.value,
        translation_key=Series.GRID_TARIFF.value,
        name="Grid tariff",
        icon="mdi:transmission-tower",
        state_class=SensorStateClass.MEASUREMENT,
        suggested_display_precision=4,
        series=Series.GRID_TARIFF,
    ),
    EnergiDataServiceSensorEntityDescription(
        key=Series.SYSTEM_TARIFF.value,
        translation_key=Series.SYSTEM_TARIFF.value,
        name="System tariff",
        icon="mdi:transmission-tower",
        state_class=SensorStateClass.MEASUREMENT,
        suggested_display_precision=4,
        series=Series.SYSTEM_TARIFF,
    ),
    EnergiDataServiceSensorEntityDescription(
        key=Series.TRANSMISSION_GRID_TARIFF.value,
        translation_key=Series.TRANSMISSION_GRID_TARIFF.value,
        name="Transmission grid tariff",
        icon="mdi:transmission-tower",
        state_class=SensorStateClass.MEASUREMENT,
        suggested_display_precision=4,
        series=Series.TRANSMISSION_GRID_TARIFF,
    ),
    EnergiDataServiceSensorEntityDescription(
        key=Series.ELECTRICITY_TAX.value,
        translation_key=Series.ELECTRICITY_TAX.value,
        name="Electricity tax",
        icon="mdi:cash",
        state_class=SensorStateClass.MEASUREMENT,
        suggested_display_precision=4,
        series=Series.ELECTRICITY_TAX,
    ),
    EnergiDataServiceSensorEntityDescription(
        key=Series.REDUCED_ELECTRICITY_TAX.value,
        translation_key=Series.REDUCED_ELECTRICITY_TAX.value,
        name="Reduced electricity tax",
        icon="mdi:cash-minus",
        state_class=SensorStateClass.MEASUREMENT,
        suggested_display_precision=4,
        series=Series.REDUCED_ELECTRICITY_TAX,
    ),
)

# ----------------------------------------------------------------------------
# HOURLY PRICES (all series per hour, as attribute)
# ----------------------------------------------------------------------------

HOURLY_PRICES_SENSOR = EnergiDataServiceSensorEntityDescription(
    key=HOURLY_PRICES,
    translation_key=HOURLY_PRICES,
    name="Hourly prices",
    icon="mdi:table-clock",
)

ENTITY_DESCRIPTIONS = (*PRICE_SENSORS, HOURLY_PRICES_SENSOR)
