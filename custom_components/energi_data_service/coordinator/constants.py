"""Constants for coordinator module."""

from datetime import time, timedelta

# Backoff for transient transport failures (no response, 408, 5xx): 1, 2, 4, ... minutes
TRANSIENT_FAILURE_MIN_DELAY = timedelta(minutes=1)

# Rate limited (429): start much later to give the provider room
RATE_LIMITED_MIN_DELAY = timedelta(minutes=30)

# Spot prices still missing after the publication cutoff: 10, 20, 40, ... minutes
OVERDUE_DATA_MIN_DELAY = timedelta(minutes=10)

# Upper bound for every backoff
MAX_RETRY_DELAY = timedelta(hours=1)

# Daily heartbeat for permanent failures and sessions without spot price consumers
LOCAL_MIDNIGHT = time(0, 0)

# HTTP statuses worth retrying soon (0 = no response received)
TRANSIENT_HTTP_STATUSES = frozenset({0, 408, 429})
HTTP_RATE_LIMITED = 429
HTTP_SERVER_ERROR_MIN = 500
