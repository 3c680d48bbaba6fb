"""Global constants for the rpx application."""

# Firestore collections
TOURNAMENTS_COLLECTION = "tournaments"
USERS_COLLECTION = "users"

# Pagination
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Accepted input formats for timestamps in JSON payloads, including the
# ISO 8601 strings the API returns
DATETIME_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d",
]
