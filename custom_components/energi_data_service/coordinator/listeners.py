"""Consumer registry and timer handles for the refresh scheduler."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from homeassistant.core import CALLBACK_TYPE, callback
from homeassistant.helpers.event import async_call_later, async_track_point_in_utc_time

from custom_components.energi_data_service.const import HOURLY_PRICES, Series

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime, timedelta
    from decimal import Decimal

    from homeassistant.core import HomeAssistant

_LOGGER = logging.getLogger(__name__)


class EnergiDataServicePriceConsumer(Protocol):
    """Receiver of published prices (implemented by the sensor entities)."""

    def publish_value(self, series: Series, bucket: datetime, value: Decimal | None) -> None:
        """Receive the value of the current hour (None = not available)."""

    def publish_time_series(self, series: Series, entries: list[tuple[datetime, Decimal]]) -> None:
        """Receive all known values from the current hour on."""

    def publish_hourly_prices(self, hourly_prices: list[dict[str, Any]]) -> None:
        """Receive the combined per-hour snapshot of all series."""


class EnergiDataServiceListenerManager:
    """
    Manages consumers and the two timers of the refresh scheduler.

    Each timer role owns at most one cancel handle. Arming a timer always
    cancels the previous handle of the same role first, so a role is never
    armed twice.
    """

    def __init__(self, hass: HomeAssistant, log_prefix: str) -> None:
        """Initialize the listener manager."""
        self.hass = hass
        self._log_prefix = log_prefix

        # Consumers keyed by Series or HOURLY_PRICES
        self._consumers: dict[str, list[EnergiDataServicePriceConsumer]] = {}

        # Timer cancellation callbacks
        self._refresh_timer_cancel: CALLBACK_TYPE | None = None
        self._publish_timer_cancel: CALLBACK_TYPE | None = None

    def _log(self, level: str, message: str, *args: object, **kwargs: object) -> None:
        """Log with scheduler-specific prefix."""
        prefixed_message = f"{self._log_prefix} {message}"
        getattr(_LOGGER, level)(prefixed_message, *args, **kwargs)

    # =========================================================================
    # Consumers
    # =========================================================================

    @callback
    def async_add_consumer(self, key: str, consumer: EnergiDataServicePriceConsumer) -> CALLBACK_TYPE:
        """
        Register a consumer for a series (or HOURLY_PRICES for all series).

        Returns:
            Callback that can be used to remove the consumer

        """
        self._consumers.setdefault(key, []).append(consumer)

        def remove_consumer() -> None:
            """Remove consumer."""
            consumers = self._consumers.get(key, [])
            if consumer in consumers:
                consumers.remove(consumer)
            if not consumers:
                self._consumers.pop(key, None)

        return remove_consumer

    def has_consumer(self, series: Series) -> bool:
        """Return True if any consumer needs values of series."""
        return bool(self._consumers.get(series)) or bool(self._consumers.get(HOURLY_PRICES))

    def consumers_for(self, key: str) -> list[EnergiDataServicePriceConsumer]:
        """Return a copy of the consumers registered for key."""
        return list(self._consumers.get(key, []))

    @callback
    def async_publish_value(self, series: Series, bucket: datetime, value: Decimal | None) -> None:
        """Send the current-hour value of series to its consumers."""
        for consumer in self.consumers_for(series):
            try:
                consumer.publish_value(series, bucket, value)
            except Exception:
                self._log("exception", "Consumer %s failed to handle %s value", consumer, series)

    @callback
    def async_publish_time_series(self, series: Series, entries: list[tuple[datetime, Decimal]]) -> None:
        """Send the forward time series of series to its consumers."""
        for consumer in self.consumers_for(series):
            try:
                consumer.publish_time_series(series, entries)
            except Exception:
                self._log("exception", "Consumer %s failed to handle %s time series", consumer, series)

    @callback
    def async_publish_hourly_prices(self, hourly_prices: list[dict[str, Any]]) -> None:
        """Send the combined hourly snapshot to its consumers."""
        for consumer in self.consumers_for(HOURLY_PRICES):
            try:
                consumer.publish_hourly_prices(hourly_prices)
            except Exception:
                self._log("exception", "Consumer %s failed to handle hourly prices", consumer)

    # =========================================================================
    # Timers
    # =========================================================================

    @property
    def refresh_timer_armed(self) -> bool:
        """Return True while a refresh timer is pending."""
        return self._refresh_timer_cancel is not None

    @property
    def publish_timer_armed(self) -> bool:
        """Return True while a publish timer is pending."""
        return self._publish_timer_cancel is not None

    def schedule_refresh(self, point_in_time: datetime, handler_callback: Callable[[datetime], None]) -> None:
        """Arm the refresh timer for an absolute instant, replacing any pending one."""
        self.cancel_refresh_timer()

        @callback
        def _fire(now: datetime) -> None:
            self._refresh_timer_cancel = None
            handler_callback(now)

        self._refresh_timer_cancel = async_track_point_in_utc_time(self.hass, _fire, point_in_time)
        self._log("debug", "Scheduled next refresh at %s", point_in_time.isoformat())

    def schedule_publish(self, delay: timedelta, handler_callback: Callable[[datetime], None]) -> None:
        """Arm the publish timer after delay, replacing any pending one."""
        self.cancel_publish_timer()

        @callback
        def _fire(now: datetime) -> None:
            self._publish_timer_cancel = None
            handler_callback(now)

        self._publish_timer_cancel = async_call_later(self.hass, delay, _fire)
        self._log("debug", "Scheduled next publish in %.3f seconds", delay.total_seconds())

    def cancel_refresh_timer(self) -> None:
        """Cancel the refresh timer if armed."""
        if self._refresh_timer_cancel:
            self._refresh_timer_cancel()
            self._refresh_timer_cancel = None

    def cancel_publish_timer(self) -> None:
        """Cancel the publish timer if armed."""
        if self._publish_timer_cancel:
            self._publish_timer_cancel()
            self._publish_timer_cancel = None

    def cancel_timers(self) -> None:
        """Cancel all scheduled timers."""
        self.cancel_refresh_timer()
        self.cancel_publish_timer()
