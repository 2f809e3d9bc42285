"""Enums shared by the price list and booking services."""

from enum import Enum


class VehicleType(str, Enum):
    """Vehicle class a tire size belongs to."""

    CAR = "car"
    TRUCK = "truck"

    @classmethod
    def from_string(cls, value: str | None) -> "VehicleType | None":
        """Convert string to enum, returning None if invalid."""
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class NotificationChannel(str, Enum):
    """How booking confirmations are delivered."""

    NONE = "none"
    SMTP = "smtp"
    SMTP_TEMPLATE = "smtp_template"
    WHATSAPP = "whatsapp"


class NotificationStatus(str, Enum):
    """Outcome reported to the caller after a booking is stored."""

    SENT = "enviada"
    FAILED = "fallida"
    SKIPPED = "omitida"


# Tire search result limits
DEFAULT_TIRE_LIMIT = 10
MIN_TIRE_LIMIT = 1
MAX_TIRE_LIMIT = 100

# Fuzzy aspect ratio tolerance (percentage points, inclusive)
ASPECT_RATIO_TOLERANCE = 5
