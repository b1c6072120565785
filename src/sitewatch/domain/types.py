"""Type definitions and constants for the domain model."""

from enum import Enum
from typing import Optional

MIN_INTERVAL_SECONDS = 30
MAX_INTERVAL_SECONDS = 86400
DEFAULT_INTERVAL_SECONDS = 300
DEFAULT_CATEGORY_COLOR = "#F3F4F6"


class SiteWatchError(Exception):
    """Base exception for every SiteWatch error."""

    pass


class InvalidConfiguration(SiteWatchError):
    """Input rejected by client-side validation; nothing was sent."""

    def __init__(self, errors: dict[str, str], subject: Optional[str] = None):
        self.errors = dict(errors)
        self.subject = subject
        details = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        prefix = f"Invalid {subject}" if subject else "Invalid configuration"
        super().__init__(f"{prefix}: {details}")


class CollectionKind(str, Enum):
    """The four independently fetched collections of a snapshot."""

    CATEGORIES = "categories"
    WEBSITES = "websites"
    CHECKS = "checks"
    SUMMARY = "summary"
