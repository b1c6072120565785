"""View models built from snapshots."""

from .views import (
    CategoryChip,
    CheckRow,
    DashboardView,
    StatTile,
    WebsiteRow,
    build_check_row,
    build_dashboard,
    build_stats,
    build_website_row,
    short_id,
)

__all__ = [
    "DashboardView",
    "StatTile",
    "CategoryChip",
    "WebsiteRow",
    "CheckRow",
    "build_dashboard",
    "build_stats",
    "build_website_row",
    "build_check_row",
    "short_id",
]
