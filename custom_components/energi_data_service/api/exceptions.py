"""Custom exceptions for API client."""

from __future__ import annotations


class EnergiDataServiceApiClientError(Exception):
    """Exception to indicate a general API error."""

    HTTP_ERROR = "HTTP error {status}: {reason}"
    MALFORMED_RESPONSE_ERROR = "Malformed response for dataset {dataset}: {error}"
    RATE_LIMIT_ERROR = "Rate limit exceeded. Please wait {retry_after} seconds before retrying"

    def __init__(self, message: str, http_status: int = 0) -> None:
        """Initialize with an optional HTTP status (0 when no response was received)."""
        super().__init__(message)
        self.http_status = http_status


class EnergiDataServiceApiClientCommunicationError(EnergiDataServiceApiClientError):
    """Exception to indicate a communication error."""

    TIMEOUT_ERROR = "Energi Data Service did not answer the {dataset} request in time - {exception}"
    CONNECTION_ERROR = "Energi Data Service is unreachable for dataset {dataset} - {exception}"


class InvalidDateQueryError(ValueError):
    """Exception to indicate a date query parameter that cannot be resolved."""

    INVALID_OFFSET = "Invalid offset '{offset}': expected an ISO 8601 duration"
    INVALID_START = "Invalid start '{start}': expected YYYY-MM-DD, StartOfDay, StartOfMonth or StartOfYear"
