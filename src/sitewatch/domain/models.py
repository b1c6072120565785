"""Domain entities as served by the monitor API, and the snapshot that groups them."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .types import DEFAULT_CATEGORY_COLOR, DEFAULT_INTERVAL_SECONDS


class _Entity(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Category(_Entity):
    """A named, colored group of websites."""

    id: str
    name: str
    color: Optional[str] = None

    @property
    def display_color(self) -> str:
        return self.color or DEFAULT_CATEGORY_COLOR


class Website(_Entity):
    """A monitored website and its check configuration."""

    id: str
    name: str
    url: str
    category_id: Optional[str] = None
    keywords: tuple[str, ...] = ()
    interval_seconds: int = Field(DEFAULT_INTERVAL_SECONDS, gt=0)
    is_active: bool = True


class CheckResult(_Entity):
    """Outcome of one probe run against a website."""

    id: str
    website_id: str
    is_up: bool = False
    status_code: Optional[int] = None
    response_time_ms: Optional[int] = Field(None, ge=0)
    keyword_matches: tuple[str, ...] = ()
    error: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v):
        # The service stores naive UTC timestamps
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class Summary(_Entity):
    """Aggregate counters computed by the service."""

    total_sites: int = 0
    total_categories: int = 0
    up: int = 0
    down: int = 0
    recent_checks: int = 0
    avg_response_time_ms: Optional[int] = None


UNKNOWN_CATEGORY = Category(id="", name="Unknown", color=DEFAULT_CATEGORY_COLOR)


@dataclass(frozen=True)
class Snapshot:
    """One converged copy of all four collections, tagged with its epoch."""

    epoch: int = 0
    categories: tuple[Category, ...] = ()
    websites: tuple[Website, ...] = ()
    checks: tuple[CheckResult, ...] = ()
    summary: Summary = field(default_factory=Summary)
    refreshed_at: Optional[datetime] = None

    def find_website(self, website_id: str) -> Optional[Website]:
        for website in self.websites:
            if website.id == website_id:
                return website
        return None

    def find_category(self, category_id: Optional[str]) -> Optional[Category]:
        if not category_id:
            return None
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def checks_for(self, website_id: str) -> list[CheckResult]:
        """Checks of one website, newest first (service order is kept)."""
        return [c for c in self.checks if c.website_id == website_id]

    def latest_check(self, website_id: str) -> Optional[CheckResult]:
        checks = self.checks_for(website_id)
        return checks[0] if checks else None
