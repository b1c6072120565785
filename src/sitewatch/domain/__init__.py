"""Domain model: entities, snapshot and validation."""

from .models import (
    UNKNOWN_CATEGORY,
    Category,
    CheckResult,
    Snapshot,
    Summary,
    Website,
)
from .types import (
    DEFAULT_CATEGORY_COLOR,
    MAX_INTERVAL_SECONDS,
    MIN_INTERVAL_SECONDS,
    CollectionKind,
    InvalidConfiguration,
    SiteWatchError,
)
from .validation import (
    CategoryDraft,
    WebsiteDraft,
    normalize_color,
    parse_keywords,
    validate_category,
    validate_url,
    validate_website,
)

__all__ = [
    # Entities
    "Category",
    "Website",
    "CheckResult",
    "Summary",
    "Snapshot",
    "UNKNOWN_CATEGORY",
    # Types
    "SiteWatchError",
    "InvalidConfiguration",
    "CollectionKind",
    "DEFAULT_CATEGORY_COLOR",
    "MIN_INTERVAL_SECONDS",
    "MAX_INTERVAL_SECONDS",
    # Validation
    "CategoryDraft",
    "WebsiteDraft",
    "validate_category",
    "validate_website",
    "validate_url",
    "normalize_color",
    "parse_keywords",
]
