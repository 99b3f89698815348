"""
Refresh coordination package.

This package keeps the price cache filled and publishes prices:
- Refresh cycles that download only what the cache is missing
- Retry policy deciding when to refresh next
- Hour-aligned publishing of current values to consumers
- Centralized time handling per cycle

Main components:
- core.py: EnergiDataServiceRefreshScheduler (owns cache, retry state and timers)
- retry_policy.py: Outcome → next attempt decision table
- listeners.py: Consumer registry and timer handles
- time_service.py: EnergiDataServiceTimeService
"""

from .core import EnergiDataServiceRefreshScheduler
from .retry_policy import NextAttempt, RefreshOutcome, RetryCause, RetryPolicy, RetryState
from .time_service import EnergiDataServiceTimeService

__all__ = [
    "EnergiDataServiceRefreshScheduler",
    "EnergiDataServiceTimeService",
    "NextAttempt",
    "RefreshOutcome",
    "RetryCause",
    "RetryPolicy",
    "RetryState",
]
