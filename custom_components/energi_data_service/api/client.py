"""Energi Data Service API Client."""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import TYPE_CHECKING, Any

import aiohttp

from custom_components.energi_data_service.const import Series

from .exceptions import (
    EnergiDataServiceApiClientCommunicationError,
    EnergiDataServiceApiClientError,
)
from .helpers import (
    DATAHUB_PRICELIST_COLUMNS,
    DATASET_DATAHUB_PRICELIST,
    DATASET_SPOT_PRICES,
    encode_filter,
    extract_records,
    prepare_headers,
    verify_response_or_raise,
)
from .models import (
    DatahubPricelistRecord,
    SpotPriceRecord,
    parse_pricelist_record,
    parse_spot_price_record,
)

if TYPE_CHECKING:
    from datetime import datetime

    from custom_components.energi_data_service.coordinator.time_service import (
        EnergiDataServiceTimeService,
    )

    from .filters import DatahubTariffFilter, GlobalLocationNumber
    from .queries import DateQueryParameter, SeriesQuery

_LOGGER = logging.getLogger(__name__)
_LOGGER_API_DETAILS = logging.getLogger(__name__ + ".details")

BASE_URL = "https://api.energidataservice.dk/dataset"


class EnergiDataServiceApiClient:
    """
    Energi Data Service API Client.

    Performs exactly one HTTP request per download. Retries are decided by
    the refresh scheduler, so errors are translated and raised immediately.
    Downloads run as asyncio tasks; cancelling the task aborts the request.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        price_area: str,
        currency_code: str,
        version: str = "",
    ) -> None:
        """Energi Data Service API Client."""
        self._session = session
        self._price_area = price_area
        self._currency_code = currency_code
        self._version = version
        self._request_semaphore = asyncio.Semaphore(1)  # Downloads of one session never overlap
        self.time: EnergiDataServiceTimeService | None = None  # Set externally by the scheduler
        self.last_call: datetime | None = None

        # Timeout configuration
        self._connect_timeout = 10
        self._request_timeout = 30
        self._socket_connect_timeout = 5

    @property
    def currency_code(self) -> str:
        """Return the currency used for spot prices."""
        return self._currency_code

    async def async_fetch(self, query: SeriesQuery) -> list[SpotPriceRecord] | list[DatahubPricelistRecord]:
        """
        Download the records described by a series query.

        Raises:
            EnergiDataServiceApiClientError: On any HTTP or response error (http_status set when known).
            EnergiDataServiceApiClientCommunicationError: On network errors and timeouts (http_status 0).

        """
        if query.series is Series.SPOT_PRICE:
            return await self.async_get_spot_prices(query.start, query.end)

        if query.tariff_filter is None or query.global_location_number is None:
            msg = f"Tariff query for {query.series} requires a filter and a GLN"
            raise EnergiDataServiceApiClientError(msg)

        return await self.async_get_datahub_pricelist(query.global_location_number, query.tariff_filter)

    async def async_get_spot_prices(
        self,
        start: DateQueryParameter,
        end: DateQueryParameter | None = None,
    ) -> list[SpotPriceRecord]:
        """Get hourly spot prices for the configured price area (per kWh, ascending)."""
        params: dict[str, str] = {
            "start": str(start),
            "filter": encode_filter({"PriceArea": [self._price_area]}),
            "columns": f"HourUTC,SpotPrice{self._currency_code}",
            "sort": "HourUTC ASC",
        }
        if end is not None:
            params["end"] = str(end)

        raw_records = await self._handle_request(DATASET_SPOT_PRICES, params)

        records = []
        for raw in raw_records:
            record = parse_spot_price_record(raw, self._currency_code, time=self._require_time())
            if record is None:
                _LOGGER_API_DETAILS.debug("Skipping spot price record without price: %s", raw)
                continue
            records.append(record)
        return records

    async def async_get_datahub_pricelist(
        self,
        global_location_number: GlobalLocationNumber,
        tariff_filter: DatahubTariffFilter,
    ) -> list[DatahubPricelistRecord]:
        """Get price list records of one tariff component."""
        params: dict[str, str] = {
            "start": str(tariff_filter.start),
            "filter": encode_filter(tariff_filter.as_query_filter(global_location_number)),
            "columns": ",".join(DATAHUB_PRICELIST_COLUMNS),
        }
        if tariff_filter.end is not None:
            params["end"] = str(tariff_filter.end)

        raw_records = await self._handle_request(DATASET_DATAHUB_PRICELIST, params)
        return [parse_pricelist_record(raw, time=self._require_time()) for raw in raw_records]

    def _require_time(self) -> EnergiDataServiceTimeService:
        if self.time is None:
            msg = "TimeService not initialized - required for parsing timestamps"
            raise EnergiDataServiceApiClientError(msg)
        return self.time

    async def _handle_request(self, dataset: str, params: dict[str, str]) -> list[dict[str, Any]]:
        """Handle a single API request, one at a time."""
        async with self._request_semaphore:
            if self.time:
                self.last_call = self.time.now()
            return await self._make_request(dataset, params)

    async def _make_request(self, dataset: str, params: dict[str, str]) -> list[dict[str, Any]]:
        """Make an API request with comprehensive error handling for network issues."""
        _LOGGER_API_DETAILS.debug("Requesting dataset %s with params: %s", dataset, params)

        try:
            timeout = aiohttp.ClientTimeout(
                total=self._request_timeout,
                connect=self._connect_timeout,
                sock_connect=self._socket_connect_timeout,
            )

            response = await self._session.request(
                method="GET",
                url=f"{BASE_URL}/{dataset}",
                headers=prepare_headers(self._version),
                params=params,
                timeout=timeout,
            )

            verify_response_or_raise(response)
            response_json = await response.json()
            _LOGGER_API_DETAILS.debug("Received API response: %s", response_json)

            return extract_records(response_json, dataset)

        except aiohttp.ContentTypeError as error:
            raise EnergiDataServiceApiClientError(
                EnergiDataServiceApiClientError.MALFORMED_RESPONSE_ERROR.format(dataset=dataset, error=str(error))
            ) from error

        except aiohttp.ClientConnectorError as error:
            _LOGGER.exception("Cannot connect to api.energidataservice.dk for %s", dataset)
            raise self._communication_error(dataset, error) from error

        except aiohttp.ServerDisconnectedError as error:
            _LOGGER.exception("Energi Data Service closed the connection during the %s download", dataset)
            raise self._communication_error(dataset, error) from error

        except aiohttp.ClientError as error:
            _LOGGER.exception("HTTP error while downloading %s", dataset)
            raise self._communication_error(dataset, error) from error

        except TimeoutError as error:
            _LOGGER.exception(
                "No answer for %s within %d seconds - Energi Data Service may be overloaded",
                dataset,
                self._request_timeout,
            )
            raise EnergiDataServiceApiClientCommunicationError(
                EnergiDataServiceApiClientCommunicationError.TIMEOUT_ERROR.format(
                    dataset=dataset,
                    exception=str(error),
                )
            ) from error

        except socket.gaierror as error:
            self._handle_dns_error(dataset, error)
            raise  # Ensure type checker knows this path always raises

        except OSError as error:
            self._handle_network_error(dataset, error)
            raise  # Ensure type checker knows this path always raises

    @staticmethod
    def _communication_error(dataset: str, error: Exception) -> EnergiDataServiceApiClientCommunicationError:
        return EnergiDataServiceApiClientCommunicationError(
            EnergiDataServiceApiClientCommunicationError.CONNECTION_ERROR.format(dataset=dataset, exception=str(error))
        )

    def _handle_dns_error(self, dataset: str, error: socket.gaierror) -> None:
        """Handle DNS resolution errors."""
        error_msg = str(error)

        if "Name or service not known" in error_msg:
            _LOGGER.exception("DNS lookup of api.energidataservice.dk failed - host name not found")
        elif "Temporary failure in name resolution" in error_msg:
            _LOGGER.exception("DNS lookup of api.energidataservice.dk temporarily failed - check the DNS server")
        else:
            _LOGGER.exception("DNS lookup of api.energidataservice.dk failed: %s", error_msg)

        raise self._communication_error(dataset, error) from error

    def _handle_network_error(self, dataset: str, error: OSError) -> None:
        """Handle network-level errors."""
        errno = getattr(error, "errno", None)

        errno_network_unreachable = 101  # ENETUNREACH
        errno_connection_refused = 111  # ECONNREFUSED
        errno_host_unreachable = 113  # EHOSTUNREACH

        if errno == errno_network_unreachable:
            _LOGGER.exception("Network unreachable while downloading %s - no internet connection", dataset)
        elif errno == errno_host_unreachable:
            _LOGGER.exception("api.energidataservice.dk unreachable while downloading %s", dataset)
        elif errno == errno_connection_refused:
            _LOGGER.exception("api.energidataservice.dk refused the connection for %s", dataset)
        else:
            _LOGGER.exception("Network error while downloading %s: %s", dataset, error)

        raise self._communication_error(dataset, error) from error
