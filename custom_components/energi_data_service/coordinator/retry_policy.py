"""
Retry policy: decides when the next refresh should run.

The policy is a pure function of the refresh outcome, the current time and
the number of consecutive attempts with the same cause. It never touches
the cache or the network; the scheduler feeds it facts and arms a timer
for whatever it returns.

Decision table (first match wins):
    1. Transient transport failure (no response, 408, 429, 5xx)
       → exponential backoff, capped
    2. Permanent transport failure (other HTTP status)
       → next local midnight
    3. Success, fewer than 13 future spot price hours
       → 13:00 CET (or backoff once 13:00 CET has passed)
    4. Success, enough future spot price hours
       → next 13:00 CET
    5. Success without spot price consumers
       → next local midnight
    Unexpected error → next local midnight (the timer is never left unarmed)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import StrEnum
from typing import TYPE_CHECKING

from custom_components.energi_data_service.const import (
    DAILY_REFRESH_TIME_CET,
    NORD_POOL_TIMEZONE,
    SPOT_PRICE_FUTURE_HOURS_THRESHOLD,
)

from .constants import (
    HTTP_RATE_LIMITED,
    HTTP_SERVER_ERROR_MIN,
    LOCAL_MIDNIGHT,
    MAX_RETRY_DELAY,
    OVERDUE_DATA_MIN_DELAY,
    RATE_LIMITED_MIN_DELAY,
    TRANSIENT_FAILURE_MIN_DELAY,
    TRANSIENT_HTTP_STATUSES,
)

if TYPE_CHECKING:
    from datetime import datetime, time, tzinfo

    from .time_service import EnergiDataServiceTimeService


class OutcomeKind(StrEnum):
    """Result of one refresh cycle."""

    SUCCESS = "success"
    TRANSPORT_FAILURE = "transport_failure"
    UNEXPECTED_ERROR = "unexpected_error"


class RetryCause(StrEnum):
    """Cause that determined the next refresh; consecutive equal causes raise the attempt count."""

    INITIAL = "initial"
    TRANSIENT_FAILURE = "transient_failure"
    RATE_LIMITED = "rate_limited"
    PERMANENT_FAILURE = "permanent_failure"
    DATA_INCOMPLETE = "data_incomplete"
    DATA_OVERDUE = "data_overdue"
    DATA_SUFFICIENT = "data_sufficient"
    NO_CONSUMER = "no_consumer"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True, slots=True)
class RefreshOutcome:
    """
    Aggregated outcome of a refresh cycle.

    future_spot_buckets is None when no consumer is interested in spot prices.
    """

    kind: OutcomeKind
    http_status: int = 0
    future_spot_buckets: int | None = None

    @classmethod
    def success(cls, future_spot_buckets: int | None) -> RefreshOutcome:
        """Create a success outcome."""
        return cls(OutcomeKind.SUCCESS, future_spot_buckets=future_spot_buckets)

    @classmethod
    def transport_failure(cls, http_status: int) -> RefreshOutcome:
        """Create a transport failure outcome (http_status 0 when no response was received)."""
        return cls(OutcomeKind.TRANSPORT_FAILURE, http_status=http_status)

    @classmethod
    def unexpected_error(cls) -> RefreshOutcome:
        """Create an outcome for faults that are not classified."""
        return cls(OutcomeKind.UNEXPECTED_ERROR)

    @property
    def is_transient(self) -> bool:
        """Return True for transport failures expected to resolve soon."""
        return self.kind is OutcomeKind.TRANSPORT_FAILURE and (
            self.http_status in TRANSIENT_HTTP_STATUSES or self.http_status >= HTTP_SERVER_ERROR_MIN
        )


@dataclass(frozen=True, slots=True)
class NextAttempt:
    """Either a delay from now or a fixed clock time in a timezone."""

    delay: timedelta | None = None
    clock_time: time | None = None
    timezone: tzinfo | None = None

    @classmethod
    def after(cls, delay: timedelta) -> NextAttempt:
        """Retry after a delay."""
        return cls(delay=delay)

    @classmethod
    def at(cls, clock_time: time, timezone: tzinfo) -> NextAttempt:
        """Retry at the next occurrence of a clock time."""
        return cls(clock_time=clock_time, timezone=timezone)

    def resolve(self, time: EnergiDataServiceTimeService) -> datetime:
        """Return the absolute instant (UTC) of this attempt."""
        if self.delay is not None:
            return time.now() + self.delay
        if self.clock_time is None or self.timezone is None:
            msg = "NextAttempt needs either a delay or a clock time with timezone"
            raise ValueError(msg)
        return time.next_occurrence(self.clock_time, self.timezone)


@dataclass(frozen=True, slots=True)
class RetryState:
    """Next refresh time, what caused it and how often that cause repeated."""

    next_attempt_at: datetime
    cause: RetryCause
    attempts: int = 0
    http_status: int = 0

    @classmethod
    def initial(cls, time: EnergiDataServiceTimeService) -> RetryState:
        """Return the state of a new scheduler: refresh immediately."""
        return cls(next_attempt_at=time.now(), cause=RetryCause.INITIAL)


def exponential_backoff(attempt: int, minimum: timedelta, maximum: timedelta = MAX_RETRY_DELAY) -> timedelta:
    """Return minimum * 2**attempt, capped at maximum."""
    # Cap the exponent so the multiplication stays small for long outages
    exponent = min(attempt, 16)
    return min(minimum * (2**exponent), maximum)


class RetryPolicy:
    """Maps refresh outcomes to the next attempt."""

    def classify(self, outcome: RefreshOutcome, time: EnergiDataServiceTimeService) -> RetryCause:
        """Return the decision table row that applies to outcome."""
        if outcome.kind is OutcomeKind.TRANSPORT_FAILURE:
            if outcome.http_status == HTTP_RATE_LIMITED:
                return RetryCause.RATE_LIMITED
            if outcome.is_transient:
                return RetryCause.TRANSIENT_FAILURE
            return RetryCause.PERMANENT_FAILURE

        if outcome.kind is OutcomeKind.UNEXPECTED_ERROR:
            return RetryCause.UNEXPECTED_ERROR

        if outcome.future_spot_buckets is None:
            return RetryCause.NO_CONSUMER

        if outcome.future_spot_buckets < SPOT_PRICE_FUTURE_HOURS_THRESHOLD:
            if time.is_at_or_after(DAILY_REFRESH_TIME_CET, NORD_POOL_TIMEZONE):
                return RetryCause.DATA_OVERDUE
            return RetryCause.DATA_INCOMPLETE

        return RetryCause.DATA_SUFFICIENT

    def decide(self, outcome: RefreshOutcome, time: EnergiDataServiceTimeService, attempt: int = 0) -> NextAttempt:
        """
        Decide when to refresh next.

        Args:
            outcome: Aggregated outcome of the refresh cycle.
            time: Time service of the cycle (current time, local timezone).
            attempt: Number of directly preceding refreshes with the same cause (0 = first).

        """
        return self._decide_for_cause(self.classify(outcome, time), time, attempt)

    def advance(
        self,
        previous: RetryState,
        outcome: RefreshOutcome,
        time: EnergiDataServiceTimeService,
    ) -> RetryState:
        """Return the state replacing previous after a completed refresh."""
        cause = self.classify(outcome, time)
        attempts = previous.attempts + 1 if cause is previous.cause else 0
        next_attempt = self._decide_for_cause(cause, time, attempts)
        return RetryState(
            next_attempt_at=next_attempt.resolve(time),
            cause=cause,
            attempts=attempts,
            http_status=outcome.http_status,
        )

    def _decide_for_cause(self, cause: RetryCause, time: EnergiDataServiceTimeService, attempt: int) -> NextAttempt:
        match cause:
            case RetryCause.TRANSIENT_FAILURE:
                return NextAttempt.after(exponential_backoff(attempt, TRANSIENT_FAILURE_MIN_DELAY))
            case RetryCause.RATE_LIMITED:
                return NextAttempt.after(exponential_backoff(attempt, RATE_LIMITED_MIN_DELAY))
            case RetryCause.DATA_OVERDUE:
                return NextAttempt.after(exponential_backoff(attempt, OVERDUE_DATA_MIN_DELAY))
            case RetryCause.DATA_INCOMPLETE | RetryCause.DATA_SUFFICIENT:
                return NextAttempt.at(DAILY_REFRESH_TIME_CET, NORD_POOL_TIMEZONE)
            case _:
                return NextAttempt.at(LOCAL_MIDNIGHT, time.local_timezone)
