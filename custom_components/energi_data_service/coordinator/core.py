"""Refresh scheduler: keeps the price cache filled and publishes current prices."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback

from custom_components.energi_data_service.api import (
    EnergiDataServiceApiClient,
    EnergiDataServiceApiClientError,
    InvalidDateQueryError,
)
from custom_components.energi_data_service.api.filters import (
    DatahubTariffFilter,
    DatahubTariffFilterFactory,
    GlobalLocationNumber,
    build_grid_tariff_filter,
)
from custom_components.energi_data_service.api.queries import (
    build_spot_price_query,
    build_tariff_query,
)
from custom_components.energi_data_service.const import DATAHUB_TIMEZONE, HOURLY_PRICES, Series
from custom_components.energi_data_service.price_cache import (
    EnergiDataServicePriceCache,
    spot_price_window,
    tariff_window,
)

from .listeners import EnergiDataServiceListenerManager
from .retry_policy import OutcomeKind, RefreshOutcome, RetryPolicy, RetryState
from .time_service import EnergiDataServiceTimeService

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from decimal import Decimal

    from custom_components.energi_data_service.data import EnergiDataServiceConfig

    from .listeners import EnergiDataServicePriceConsumer

_LOGGER = logging.getLogger(__name__)
_LOGGER_DETAILS = logging.getLogger(__name__ + ".details")


# =============================================================================
# TIMER SYSTEM - Two independent timers:
# =============================================================================
#
# Refresh timer (absolute instant from the retry policy)
#   - Trigger: _handle_refresh_timer() → background task _async_refresh_cycle()
#   - Downloads only series that are not fully covered by the cache
#   - Armed ONLY from the completion of a cycle, so at most one cycle runs
#   - A cancelled cycle records nothing and arms nothing
#   - A consumer registering while running starts a cycle, or exactly one
#     follow-up cycle after the one in flight
#
# Publish timer (just after every clock-hour boundary)
#   - Trigger: _handle_publish_timer() → async_publish()
#   - Cleans up expired buckets, emits current-hour values and snapshots
#   - Re-armed with the delay to the NEXT boundary computed from the current
#     time, so drift never accumulates
#   - Never waits for a download; reads the cache directly
#
# =============================================================================


class EnergiDataServiceRefreshScheduler:
    """Owns the price cache, the retry state and both timers of one session."""

    def __init__(
        self,
        hass: HomeAssistant,
        api_client: EnergiDataServiceApiClient,
        config: EnergiDataServiceConfig,
        *,
        cache: EnergiDataServicePriceCache | None = None,
        retry_policy: RetryPolicy | None = None,
        time_service_factory: Callable[[], EnergiDataServiceTimeService] = EnergiDataServiceTimeService,
    ) -> None:
        """Initialize the scheduler."""
        self.hass = hass
        self.api = api_client
        self.config = config
        self.cache = cache or EnergiDataServicePriceCache()
        self._retry_policy = retry_policy or RetryPolicy()
        self._time_service_factory = time_service_factory

        # Log prefix for identifying this scheduler instance
        self._log_prefix = f"[{config.price_area}]"

        # Initialize time service (single source of truth for all time operations)
        self.time = time_service_factory()
        self.api.time = self.time

        self._listener_manager = EnergiDataServiceListenerManager(hass, self._log_prefix)

        self.retry_state: RetryState | None = None
        self._refresh_task: asyncio.Task[None] | None = None
        self._refresh_pending = False
        self._running = False

        self._tariff_targets = self._build_tariff_targets()

    def _log(self, level: str, message: str, *args: Any, **kwargs: Any) -> None:
        """Log with scheduler-specific prefix."""
        prefixed_message = f"{self._log_prefix} {message}"
        getattr(_LOGGER, level)(prefixed_message, *args, **kwargs)

    def _build_tariff_targets(self) -> dict[Series, tuple[GlobalLocationNumber, DatahubTariffFilter]]:
        """Return GLN and filter per tariff series; series without a GLN are not downloaded."""
        targets: dict[Series, tuple[GlobalLocationNumber, DatahubTariffFilter]] = {}

        grid_gln = self.config.grid_company_gln
        if not grid_gln.is_empty:
            try:
                grid_filter = build_grid_tariff_filter(grid_gln, self.config.grid_tariff_overrides)
            except InvalidDateQueryError as error:
                self._log(
                    "warning",
                    "Invalid grid tariff override (%s), using default filter for GLN %s",
                    error,
                    grid_gln,
                )
                grid_filter = DatahubTariffFilterFactory.grid_tariff_by_gln(grid_gln)
            targets[Series.GRID_TARIFF] = (grid_gln, grid_filter)

        energinet_gln = self.config.energinet_gln
        if not energinet_gln.is_empty:
            targets[Series.SYSTEM_TARIFF] = (energinet_gln, DatahubTariffFilterFactory.system_tariff())
            targets[Series.TRANSMISSION_GRID_TARIFF] = (
                energinet_gln,
                DatahubTariffFilterFactory.transmission_grid_tariff(),
            )
            if self.config.reduced_electricity_tax:
                targets[Series.REDUCED_ELECTRICITY_TAX] = (
                    energinet_gln,
                    DatahubTariffFilterFactory.reduced_electricity_tax(),
                )
            else:
                targets[Series.ELECTRICITY_TAX] = (energinet_gln, DatahubTariffFilterFactory.electricity_tax())

        return targets

    def _set_time(self, time_service: EnergiDataServiceTimeService) -> None:
        self.time = time_service
        self.api.time = time_service

    # =========================================================================
    # Series and consumers
    # =========================================================================

    @property
    def active_series(self) -> list[Series]:
        """Return series this session can provide."""
        return [series for series in Series if series is Series.SPOT_PRICE or series in self._tariff_targets]

    def interested_series(self) -> list[Series]:
        """Return active series with at least one interested consumer."""
        return [series for series in self.active_series if self._listener_manager.has_consumer(series)]

    @callback
    def async_add_consumer(self, key: str, consumer: EnergiDataServicePriceConsumer) -> CALLBACK_TYPE:
        """
        Register a consumer for a series, or HOURLY_PRICES for all series.

        While the scheduler runs, the consumer immediately receives what is
        cached and a refresh is requested, so series nobody was interested in
        before are downloaded without waiting for the armed refresh timer.

        Returns:
            Callback that can be used to remove the consumer

        """
        remove_consumer = self._listener_manager.async_add_consumer(key, consumer)

        if self._running:
            self._async_publish_to(key, consumer, self._time_service_factory())
            self._request_refresh_or_follow_up()

        return remove_consumer

    @callback
    def _async_publish_to(
        self,
        key: str,
        consumer: EnergiDataServicePriceConsumer,
        time_service: EnergiDataServiceTimeService,
    ) -> None:
        """Send the cached values for key to a single consumer."""
        current_hour = time_service.current_hour_start()
        try:
            if key == HOURLY_PRICES:
                consumer.publish_hourly_prices(self.hourly_prices(time_service))
            elif key in self.active_series:
                series = Series(key)
                consumer.publish_value(series, current_hour, self.cache.value_at(series, current_hour))
                consumer.publish_time_series(series, self.cache.values_from(series, current_hour))
        except Exception:
            self._log("exception", "Consumer %s failed to handle cached %s values", consumer, key)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def is_refreshing(self) -> bool:
        """Return True while a refresh cycle is in flight."""
        return self._refresh_task is not None and not self._refresh_task.done()

    @property
    def next_refresh(self) -> datetime | None:
        """Return when the next refresh is due."""
        return self.retry_state.next_attempt_at if self.retry_state else None

    @property
    def last_call(self) -> datetime | None:
        """Return when the API was last called."""
        return self.api.last_call

    @callback
    def async_start(self) -> None:
        """Start the scheduler: refresh immediately, then follow the retry policy."""
        if self._running:
            return
        self._running = True

        time_service = self._time_service_factory()
        self._set_time(time_service)
        self.retry_state = RetryState.initial(time_service)

        self._log("debug", "Starting refresh scheduler (series: %s)", ", ".join(self.active_series))
        self._listener_manager.schedule_publish(time_service.delay_until_next_hour(), self._handle_publish_timer)
        self._start_refresh_task()

    async def async_shutdown(self) -> None:
        """
        Stop the scheduler.

        Cancels both timers, interrupts an in-flight download and clears the cache.
        """
        self._running = False
        self._listener_manager.cancel_timers()

        task = self._refresh_task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._refresh_task = None

        self.cache.clear()
        self._log("debug", "Refresh scheduler stopped")

    @callback
    def async_request_refresh(self) -> bool:
        """
        Run a refresh cycle now.

        Ignored while a cycle is in flight. The armed refresh timer stays in
        place until the new cycle completes and replaces it.

        Returns:
            True if a cycle was started

        """
        if not self._running:
            self._log("debug", "Refresh requested while stopped, ignoring")
            return False
        if self.is_refreshing:
            self._log("debug", "Refresh already in progress, ignoring request")
            return False
        self._start_refresh_task()
        return True

    def _request_refresh_or_follow_up(self) -> None:
        """Start a cycle now, or run one more as soon as the current cycle completes."""
        if self.is_refreshing:
            self._refresh_pending = True
            return
        self._start_refresh_task()

    @callback
    def _handle_refresh_timer(self, _now: datetime | None = None) -> None:
        """Handle the refresh timer."""
        if self.is_refreshing:
            self._log("debug", "Refresh timer fired during running cycle, ignoring")
            return
        self._start_refresh_task()

    def _start_refresh_task(self) -> None:
        self._refresh_pending = False
        self._refresh_task = self.hass.async_create_background_task(
            self._async_refresh_cycle(),
            name=f"energi_data_service refresh {self.config.price_area}",
        )

    # =========================================================================
    # Refresh cycle
    # =========================================================================

    async def _async_refresh_cycle(self) -> None:
        """
        Run one refresh cycle and arm the next refresh.

        Cancellation aborts the cycle: nothing is merged for the interrupted
        download, no outcome is recorded and no timer is armed.
        """
        time_service = self._time_service_factory()
        self._set_time(time_service)

        try:
            outcome = await self.async_download_missing(time_service)
        except asyncio.CancelledError:
            self._log("debug", "Refresh cycle cancelled, keeping previous schedule")
            raise
        except Exception:
            self._log("exception", "Unexpected error during refresh cycle")
            outcome = RefreshOutcome.unexpected_error()

        self._complete_cycle(outcome)

        if self._refresh_pending and self._running:
            self._log("debug", "Consumers were added during the cycle, refreshing again")
            self._start_refresh_task()

    async def async_download_missing(self, time_service: EnergiDataServiceTimeService) -> RefreshOutcome:
        """
        Download every interesting series that is not fully covered.

        A failing series does not stop the others. The cycle outcome is the
        first transient failure, otherwise the first failure, otherwise success.
        """
        failure: RefreshOutcome | None = None

        for series in self.interested_series():
            try:
                if series is Series.SPOT_PRICE:
                    await self._async_refresh_spot_prices(time_service)
                else:
                    await self._async_refresh_tariff(series, time_service)
            except EnergiDataServiceApiClientError as error:
                self._log("warning", "Failed to download %s: %s", series, error)
                series_failure = RefreshOutcome.transport_failure(error.http_status)
                if failure is None or (series_failure.is_transient and not failure.is_transient):
                    failure = series_failure

        if failure is not None:
            return failure

        future_spot_buckets = None
        if self._listener_manager.has_consumer(Series.SPOT_PRICE):
            future_spot_buckets = self.cache.count_future_buckets(Series.SPOT_PRICE, time_service.current_hour_start())
        return RefreshOutcome.success(future_spot_buckets)

    async def _async_refresh_spot_prices(self, time_service: EnergiDataServiceTimeService) -> None:
        window = spot_price_window(time_service)
        if self.cache.is_fully_covered(Series.SPOT_PRICE, window):
            _LOGGER_DETAILS.debug("%s Spot prices cached through %s, skipping download", self._log_prefix, window.last)
            return

        query = build_spot_price_query(
            historic_prices_cached=self.cache.has_historic_coverage(Series.SPOT_PRICE, time_service),
        )
        self._log(
            "debug",
            "Downloading spot prices from %s (%s)",
            query.start,
            query.start.resolve(time_service.now(), DATAHUB_TIMEZONE).isoformat(),
        )
        records = await self.api.async_fetch(query)
        self.cache.put_spot_prices(records)

    async def _async_refresh_tariff(self, series: Series, time_service: EnergiDataServiceTimeService) -> None:
        gln, tariff_filter = self._tariff_targets[series]
        window = tariff_window(time_service)

        # A new day can usually be served from the price list records already held
        self.cache.update_tariffs(series, window)
        if self.cache.is_fully_covered(series, window):
            _LOGGER_DETAILS.debug("%s %s cached through %s, skipping download", self._log_prefix, series, window.last)
            return

        query = build_tariff_query(series, gln, tariff_filter)
        self._log(
            "debug",
            "Downloading %s from %s (%s)",
            series,
            query.start,
            query.start.resolve(time_service.now(), DATAHUB_TIMEZONE).isoformat(),
        )
        records = await self.api.async_fetch(query)
        self.cache.put_tariff_records(series, records, window)

    def _complete_cycle(self, outcome: RefreshOutcome) -> None:
        """
        Install the next retry state and re-arm the refresh timer.

        Decisions and publishing use the time at completion, not the time the
        cycle started.
        """
        time_service = self._time_service_factory()
        self._set_time(time_service)

        previous = self.retry_state or RetryState.initial(time_service)
        self.retry_state = self._retry_policy.advance(previous, outcome, time_service)

        self._log(
            "debug",
            "Refresh finished (%s), next refresh at %s (cause: %s, attempt %d)",
            outcome.kind,
            self.retry_state.next_attempt_at.isoformat(),
            self.retry_state.cause,
            self.retry_state.attempts,
        )

        if not self._running:
            return

        self._listener_manager.schedule_refresh(self.retry_state.next_attempt_at, self._handle_refresh_timer)
        if outcome.kind is OutcomeKind.SUCCESS:
            self.async_publish(time_service)

    # =========================================================================
    # Publishing
    # =========================================================================

    @callback
    def _handle_publish_timer(self, _now: datetime | None = None) -> None:
        """Handle the hour-boundary publish timer."""
        time_service = self._time_service_factory()
        self._set_time(time_service)
        self._log("debug", "Publish tick at %s", time_service.now().isoformat())
        self.async_publish(time_service)

    @callback
    def async_publish(self, time_service: EnergiDataServiceTimeService) -> None:
        """
        Publish current values and re-arm the publish timer.

        Expired buckets are removed first. Consumers receive None when the
        current hour is not cached, never a stale value.
        """
        self.cache.cleanup(time_service.first_historic_hour_start())

        current_hour = time_service.current_hour_start()
        for series in self.interested_series():
            self._listener_manager.async_publish_value(series, current_hour, self.cache.value_at(series, current_hour))
            self._listener_manager.async_publish_time_series(series, self.cache.values_from(series, current_hour))

        if self._listener_manager.consumers_for(HOURLY_PRICES):
            self._listener_manager.async_publish_hourly_prices(self.hourly_prices(time_service))

        if self._running:
            self._listener_manager.schedule_publish(time_service.delay_until_next_hour(), self._handle_publish_timer)

    def hourly_prices(self, time_service: EnergiDataServiceTimeService) -> list[dict[str, Any]]:
        """
        Return one record per cached spot price hour with all tariffs of that hour.

        Example:
            {"hour": "2024-01-01T11:00:00+00:00", "spot_price": 0.85, "system_tariff": 0.054, ...}

        """
        tariff_series = [series for series in self.active_series if series.is_tariff]
        records = []
        for bucket, spot_price in self.cache.values_from(Series.SPOT_PRICE, time_service.first_historic_hour_start()):
            record: dict[str, Any] = {"hour": bucket.isoformat(), Series.SPOT_PRICE.value: float(spot_price)}
            for series in tariff_series:
                value = self.cache.value_at(series, bucket)
                record[series.value] = float(value) if value is not None else None
            records.append(record)
        return records

    # =========================================================================
    # Service support
    # =========================================================================

    async def async_get_prices(self, series: Series) -> list[tuple[datetime, Decimal]]:
        """
        Return cached values of series, downloading once if nothing is cached.

        Download errors are logged; whatever is cached is returned.
        """
        if series not in self.active_series:
            return []

        time_service = self._time_service_factory()
        from_time = time_service.first_historic_hour_start()

        if not self.cache.values_from(series, from_time):
            try:
                if series is Series.SPOT_PRICE:
                    await self._async_refresh_spot_prices(time_service)
                else:
                    await self._async_refresh_tariff(series, time_service)
            except EnergiDataServiceApiClientError as error:
                self._log("warning", "Failed to download %s on demand: %s", series, error)

        return self.cache.values_from(series, from_time)
