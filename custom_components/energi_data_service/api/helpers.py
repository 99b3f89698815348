"""Helper functions for API request construction and response processing."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from homeassistant.const import __version__ as ha_version

from .exceptions import EnergiDataServiceApiClientError

if TYPE_CHECKING:
    import aiohttp

_LOGGER = logging.getLogger(__name__)
_LOGGER_DETAILS = logging.getLogger(__name__ + ".details")

HTTP_BAD_REQUEST = 400
HTTP_TOO_MANY_REQUESTS = 429
HTTP_INTERNAL_SERVER_ERROR = 500

DATASET_SPOT_PRICES = "Elspotprices"
DATASET_DATAHUB_PRICELIST = "DatahubPricelist"

DATAHUB_PRICELIST_COLUMNS = (
    "ValidFrom",
    "ValidTo",
    "ChargeTypeCode",
    "Note",
    *(f"Price{index}" for index in range(1, 25)),
)


def verify_response_or_raise(response: aiohttp.ClientResponse) -> None:
    """
    Verify HTTP response and map to API errors carrying the HTTP status.

    The status is kept on the exception so the refresh scheduler can tell
    transient failures (408, 429, 5xx) from permanent ones (other 4xx).
    """
    if response.status < HTTP_BAD_REQUEST:
        return

    if response.status == HTTP_TOO_MANY_REQUESTS:
        retry_after = response.headers.get("Retry-After", "unknown")
        _LOGGER.warning("Energi Data Service rate limit exceeded - retry after %s seconds", retry_after)
        raise EnergiDataServiceApiClientError(
            EnergiDataServiceApiClientError.RATE_LIMIT_ERROR.format(retry_after=retry_after),
            http_status=response.status,
        )

    if response.status >= HTTP_INTERNAL_SERVER_ERROR:
        _LOGGER.warning("Energi Data Service server error %d - temporary issue", response.status)
    else:
        _LOGGER.error("Energi Data Service rejected request with status %d", response.status)

    raise EnergiDataServiceApiClientError(
        EnergiDataServiceApiClientError.HTTP_ERROR.format(status=response.status, reason=response.reason),
        http_status=response.status,
    )


def extract_records(response_json: Any, dataset: str) -> list[dict[str, Any]]:
    """Return the records array of a dataset response."""
    if not isinstance(response_json, dict) or not isinstance(response_json.get("records"), list):
        raise EnergiDataServiceApiClientError(
            EnergiDataServiceApiClientError.MALFORMED_RESPONSE_ERROR.format(
                dataset=dataset, error="missing records array"
            )
        )

    records = response_json["records"]
    _LOGGER_DETAILS.debug("Dataset %s returned %d records", dataset, len(records))
    return records


def prepare_headers(version: str) -> dict[str, str]:
    """Prepare headers for API request."""
    return {
        "Accept": "application/json",
        "User-Agent": f"HomeAssistant/{ha_version} energi_data_service/{version}",
    }


def encode_filter(query_filter: dict[str, Any]) -> str:
    """Encode a dataset filter as compact JSON for the query string."""
    return json.dumps(query_filter, separators=(",", ":"))
