"""Presentation adapter: turns a snapshot into renderable view models."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional

from ..domain.models import UNKNOWN_CATEGORY, Category, CheckResult, Snapshot, Website

SHORT_ID_LENGTH = 6
NO_VALUE = "-"


@dataclass(frozen=True)
class StatTile:
    label: str
    value: str


@dataclass(frozen=True)
class CategoryChip:
    id: str
    name: str
    color: str


@dataclass(frozen=True)
class WebsiteRow:
    id: str
    name: str
    url: str
    category_label: str
    category_color: str
    keywords: tuple[str, ...]
    interval_label: str
    is_active: bool
    status: str  # "up", "down" or "unknown"


@dataclass(frozen=True)
class CheckRow:
    id: str
    website_label: str
    is_up: bool
    badge: str
    status_code: str
    response_time: str
    keyword_text: str
    error: Optional[str] = None


@dataclass(frozen=True)
class DashboardView:
    epoch: int
    stats: tuple[StatTile, ...]
    categories: tuple[CategoryChip, ...]
    websites: tuple[WebsiteRow, ...]
    checks: tuple[CheckRow, ...]
    warnings: tuple[str, ...] = field(default_factory=tuple)


def short_id(identifier: Optional[str]) -> str:
    return identifier[:SHORT_ID_LENGTH] if identifier else NO_VALUE


def build_stats(snapshot: Snapshot) -> tuple[StatTile, ...]:
    summary = snapshot.summary
    return (
        StatTile("Total Websites", str(summary.total_sites)),
        StatTile("Categories", str(summary.total_categories)),
        StatTile("Up", str(summary.up)),
        StatTile("Avg Response", f"{summary.avg_response_time_ms or 0} ms"),
    )


def build_website_row(
    website: Website,
    snapshot: Snapshot,
    resolve_category: Callable[[str], Category],
) -> WebsiteRow:
    category = resolve_category(website.id)
    if not website.category_id:
        label, color = NO_VALUE, UNKNOWN_CATEGORY.display_color
    elif category is UNKNOWN_CATEGORY:
        # Dangling reference: show what we know
        label, color = short_id(website.category_id), UNKNOWN_CATEGORY.display_color
    else:
        label, color = category.name, category.display_color

    latest = snapshot.latest_check(website.id)
    if latest is None:
        status = "unknown"
    else:
        status = "up" if latest.is_up else "down"

    return WebsiteRow(
        id=website.id,
        name=website.name,
        url=website.url,
        category_label=label,
        category_color=color,
        keywords=website.keywords,
        interval_label=f"{website.interval_seconds}s",
        is_active=website.is_active,
        status=status,
    )


def build_check_row(check: CheckResult, snapshot: Snapshot) -> CheckRow:
    website = snapshot.find_website(check.website_id)
    if check.keyword_matches:
        keyword_text = "Keyword: " + ", ".join(check.keyword_matches)
    else:
        keyword_text = "No keyword matched"

    return CheckRow(
        id=check.id,
        website_label=website.name if website else short_id(check.website_id),
        is_up=check.is_up,
        badge="UP" if check.is_up else "DOWN",
        status_code=str(check.status_code) if check.status_code else NO_VALUE,
        response_time=f"{check.response_time_ms or 0}ms",
        keyword_text=keyword_text,
        error=check.error,
    )


def build_dashboard(
    snapshot: Snapshot,
    resolve_category: Callable[[str], Category],
    warnings: tuple[str, ...] = (),
) -> DashboardView:
    """Map the snapshot into one view model for the whole dashboard."""
    return DashboardView(
        epoch=snapshot.epoch,
        stats=build_stats(snapshot),
        categories=tuple(
            CategoryChip(id=c.id, name=c.name, color=c.display_color)
            for c in snapshot.categories
        ),
        websites=tuple(
            build_website_row(w, snapshot, resolve_category) for w in snapshot.websites
        ),
        checks=tuple(build_check_row(c, snapshot) for c in snapshot.checks),
        warnings=tuple(warnings),
    )
