from enum import Enum


class HTTPStatusCode(int, Enum):
    """HTTP status codes"""
    OK = 200
    CREATED = 201
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503


class ErrorMessage(str, Enum):
    INVALID_CONTENT_TYPE = "Content-Type must be application/json"
    INVALID_CHECKIN = "Invalid check-in data"
    INVALID_FILTER = "Invalid filter parameters"
    INVALID_PASSCODE = "Invalid passcode"
    STAFF_ONLY = "Staff passcode required"
    STORE_UNAVAILABLE = "Visit store is unavailable"


class VisitorCategory(str, Enum):
    """Who is checking in. GROUP covers school tours checked in as one record."""
    STUDENT = "Student"
    VISITOR = "Visitor"
    GROUP = "Group"


class LocationType(str, Enum):
    MUSEUM = "Museum"
    ARTS_GALLERY = "Arts Gallery"


class Period(str, Enum):
    """Ticket numbering periods, each with its own counter."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# Keys of the records in the key-value store
VISITS_KEY = 'artemis_visits_v2'
RESET_STATE_KEY = 'artemis_reset_state_v2'
# Copy of an unreadable visit log, kept before it is overwritten
CORRUPTED_VISITS_KEY = 'artemis_visits_v2_corrupted'

SUPPORTED_LANGUAGES = ('en', 'ms')
