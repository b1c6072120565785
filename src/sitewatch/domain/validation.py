"""Validation predicates applied before any command reaches the network."""

import re
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urlparse

from .types import (
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_INTERVAL_SECONDS,
    MAX_INTERVAL_SECONDS,
    MIN_INTERVAL_SECONDS,
    InvalidConfiguration,
)

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


@dataclass(frozen=True)
class CategoryDraft:
    """A category as the user asked for it, before the service assigns an id."""

    name: str
    color: str = DEFAULT_CATEGORY_COLOR

    def to_payload(self) -> dict[str, Any]:
        return {"name": self.name, "color": self.color}


@dataclass(frozen=True)
class WebsiteDraft:
    """A website as the user asked for it, before the service assigns an id."""

    name: str
    url: str
    category_id: Optional[str] = None
    keywords: tuple[str, ...] = field(default_factory=tuple)
    interval_seconds: int = DEFAULT_INTERVAL_SECONDS
    is_active: bool = True

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "category_id": self.category_id or None,
            "keywords": list(self.keywords),
            "interval_seconds": self.interval_seconds,
            "is_active": self.is_active,
        }


def validate_url(url: str) -> Optional[str]:
    """Return an error message for anything but an absolute http(s) URL."""
    if not url or not url.strip():
        return "URL cannot be empty"

    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https"):
        return "URL must start with http:// or https://"
    if not parsed.hostname:
        return "URL must include a host"
    if parsed.hostname.startswith(".") or parsed.hostname.endswith("."):
        return "Invalid host format"
    if any(ch.isspace() for ch in url.strip()):
        return "URL cannot contain whitespace"
    try:
        parsed.port
    except ValueError:
        return "Invalid port"
    return None


def normalize_color(color: Optional[str]) -> str:
    """Keep a valid hex color, otherwise fall back to the neutral default."""
    if color and _HEX_COLOR.match(color.strip()):
        return color.strip()
    return DEFAULT_CATEGORY_COLOR


def parse_keywords(text: Optional[str]) -> tuple[str, ...]:
    """Split comma-separated keyword input, dropping blanks and repeats."""
    if not text:
        return ()
    seen: list[str] = []
    for part in text.split(","):
        keyword = part.strip()
        if keyword and keyword not in seen:
            seen.append(keyword)
    return tuple(seen)


def validate_category(name: str, color: Optional[str] = None) -> CategoryDraft:
    """Build a category draft or raise InvalidConfiguration."""
    if not name or not name.strip():
        raise InvalidConfiguration({"name": "Name cannot be empty"}, subject="category")
    return CategoryDraft(name=name.strip(), color=normalize_color(color))


def validate_website(draft: WebsiteDraft) -> WebsiteDraft:
    """Check every field of a website draft and return a cleaned copy.

    All problems are collected so the caller can report them at once.
    """
    errors: dict[str, str] = {}

    if not draft.name or not draft.name.strip():
        errors["name"] = "Name cannot be empty"

    url_error = validate_url(draft.url)
    if url_error:
        errors["url"] = url_error

    interval = draft.interval_seconds
    if isinstance(interval, bool) or not isinstance(interval, int):
        errors["interval_seconds"] = "Interval must be a whole number of seconds"
    elif interval < MIN_INTERVAL_SECONDS:
        errors["interval_seconds"] = (
            f"Interval must be at least {MIN_INTERVAL_SECONDS} seconds"
        )
    elif interval > MAX_INTERVAL_SECONDS:
        errors["interval_seconds"] = (
            f"Interval must be at most {MAX_INTERVAL_SECONDS} seconds"
        )

    if errors:
        raise InvalidConfiguration(errors, subject="website")

    keywords = tuple(k.strip() for k in draft.keywords if k and k.strip())
    return WebsiteDraft(
        name=draft.name.strip(),
        url=draft.url.strip(),
        category_id=(draft.category_id or "").strip() or None,
        keywords=tuple(dict.fromkeys(keywords)),
        interval_seconds=interval,
        is_active=draft.is_active,
    )
