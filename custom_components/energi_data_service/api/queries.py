"""Query parameters for Energi Data Service dataset requests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING

from homeassistant.util import dt as dt_util

from custom_components.energi_data_service.const import NUMBER_OF_HISTORIC_HOURS, Series

from .exceptions import InvalidDateQueryError

if TYPE_CHECKING:
    from datetime import tzinfo

    from .filters import DatahubTariffFilter, GlobalLocationNumber


class DateQueryParameterType(StrEnum):
    """Dynamic date values understood by the dataset API."""

    NOW = "now"
    UTC_NOW = "utcnow"
    START_OF_DAY = "StartOfDay"
    START_OF_MONTH = "StartOfMonth"
    START_OF_YEAR = "StartOfYear"


def format_duration(duration: timedelta) -> str:
    """Format a duration as ISO 8601 (PT24H, PT1H30M, PT0S)."""
    total_seconds = int(abs(duration).total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)

    parts = ""
    if hours:
        parts += f"{hours}H"
    if minutes:
        parts += f"{minutes}M"
    if seconds or not parts:
        parts += f"{seconds}S"
    return f"PT{parts}"


def parse_duration(value: str) -> timedelta:
    """Parse an ISO 8601 duration, raising InvalidDateQueryError when malformed."""
    duration = dt_util.parse_duration(value.strip()) if value.strip() else None
    if duration is None:
        raise InvalidDateQueryError(InvalidDateQueryError.INVALID_OFFSET.format(offset=value))
    return duration


@dataclass(frozen=True, slots=True)
class DateQueryParameter:
    """
    Start or end boundary of a dataset query.

    Either an absolute date or a dynamic type with an optional offset,
    rendered as the API expects it:
        utcnow            → "utcnow"
        utcnow, -24 hours → "utcnow-PT24H"
        2024-01-01        → "2024-01-01"
    """

    date: date | None = None
    date_type: DateQueryParameterType | None = None
    offset: timedelta | None = None

    @classmethod
    def of_type(cls, date_type: DateQueryParameterType, offset: timedelta | None = None) -> DateQueryParameter:
        """Create a dynamic parameter."""
        return cls(date_type=date_type, offset=offset or None)

    @classmethod
    def of_date(cls, value: date) -> DateQueryParameter:
        """Create an absolute parameter."""
        return cls(date=value)

    @classmethod
    def parse(cls, start: str, offset: str = "") -> DateQueryParameter:
        """
        Build a parameter from user configuration.

        Args:
            start: StartOfDay, StartOfMonth, StartOfYear or YYYY-MM-DD.
            offset: Optional ISO 8601 duration, e.g. -P1D.

        Raises:
            InvalidDateQueryError: If start or offset cannot be resolved.

        """
        duration = parse_duration(offset) if offset else timedelta()

        for date_type in (
            DateQueryParameterType.START_OF_DAY,
            DateQueryParameterType.START_OF_MONTH,
            DateQueryParameterType.START_OF_YEAR,
        ):
            if start == date_type:
                return cls.of_type(date_type, duration)

        try:
            absolute = date.fromisoformat(start)
        except ValueError as error:
            raise InvalidDateQueryError(InvalidDateQueryError.INVALID_START.format(start=start)) from error
        return cls.of_date(absolute).with_offset(duration)

    def with_offset(self, offset: timedelta) -> DateQueryParameter:
        """Return a copy shifted by offset (offsets of dynamic types are added up)."""
        if not offset:
            return self
        if self.date is not None:
            shifted = datetime(self.date.year, self.date.month, self.date.day) + offset
            return DateQueryParameter.of_date(shifted.date())
        if self.date_type is None:
            return self
        return DateQueryParameter.of_type(self.date_type, (self.offset or timedelta()) + offset)

    def resolve(self, now: datetime, timezone: tzinfo) -> datetime:
        """
        Resolve to an absolute instant.

        Args:
            now: Current time (timezone-aware).
            timezone: Timezone in which StartOf* and absolute dates are interpreted.

        """
        offset = self.offset or timedelta()
        if self.date is not None:
            return datetime(self.date.year, self.date.month, self.date.day, tzinfo=timezone)

        local_now = now.astimezone(timezone)
        match self.date_type:
            case DateQueryParameterType.NOW | DateQueryParameterType.UTC_NOW:
                base = now
            case DateQueryParameterType.START_OF_DAY:
                base = datetime(local_now.year, local_now.month, local_now.day, tzinfo=timezone)
            case DateQueryParameterType.START_OF_MONTH:
                base = datetime(local_now.year, local_now.month, 1, tzinfo=timezone)
            case DateQueryParameterType.START_OF_YEAR:
                base = datetime(local_now.year, 1, 1, tzinfo=timezone)
            case _:
                base = now
        return base + offset

    def __str__(self) -> str:
        """Render for the query string."""
        if self.date is not None:
            return self.date.isoformat()
        if self.date_type is None:
            return ""
        if not self.offset:
            return str(self.date_type)
        sign = "-" if self.offset < timedelta() else "+"
        return f"{self.date_type}{sign}{format_duration(self.offset)}"


@dataclass(frozen=True, slots=True)
class SeriesQuery:
    """Immutable description of one download: series, date range and optional tariff filter."""

    series: Series
    start: DateQueryParameter
    end: DateQueryParameter | None = None
    tariff_filter: DatahubTariffFilter | None = None
    global_location_number: GlobalLocationNumber | None = None


def build_spot_price_query(*, historic_prices_cached: bool) -> SeriesQuery:
    """
    Build the spot price query.

    History is requested only until it has been captured once; after that
    only prices from now on are downloaded.
    """
    if historic_prices_cached:
        start = DateQueryParameter.of_type(DateQueryParameterType.UTC_NOW)
    else:
        start = DateQueryParameter.of_type(
            DateQueryParameterType.UTC_NOW,
            timedelta(hours=-NUMBER_OF_HISTORIC_HOURS),
        )
    return SeriesQuery(series=Series.SPOT_PRICE, start=start)


def build_tariff_query(
    series: Series,
    global_location_number: GlobalLocationNumber,
    tariff_filter: DatahubTariffFilter,
) -> SeriesQuery:
    """Build a price list query for a tariff series."""
    return SeriesQuery(
        series=series,
        start=tariff_filter.start,
        end=tariff_filter.end,
        tariff_filter=tariff_filter,
        global_location_number=global_location_number,
    )
