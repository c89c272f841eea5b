# core/progress.py
"""
Reading progress arithmetic.

A ``ReadingProgress`` is an immutable value; every function here returns a
new instance. Favorites store it through a SQLAlchemy composite, so the
percentage is always derived here rather than in storage hooks.
"""

from dataclasses import dataclass, replace
from datetime import datetime, UTC
from typing import Optional

# Total used when a book's page count is entirely unknown
UNKNOWN_TOTAL_PAGES = 1


@dataclass(frozen=True)
class ReadingProgress:
    current_page: int
    total_pages: int
    progress_percentage: int
    last_updated: Optional[datetime] = None


def calculate_percentage(current_page: int, total_pages: int) -> int:
    """round(current / total * 100), rounding halves up. 0 when the total is unknown."""
    if not total_pages or total_pages <= 0:
        return 0
    return (current_page * 200 + total_pages) // (2 * total_pages)


def pick_total_pages(page_count: Optional[int], legacy_pages: Optional[int] = None) -> Optional[int]:
    """First positive page count, preferring the book's own page_count."""
    for value in (page_count, legacy_pages):
        if value and value > 0:
            return value
    return None


def initialize(total_pages: int, now: Optional[datetime] = None) -> ReadingProgress:
    return ReadingProgress(
        current_page=0,
        total_pages=total_pages,
        progress_percentage=0,
        last_updated=now or datetime.now(UTC),
    )


def resync_total(progress: ReadingProgress, new_total: Optional[int]) -> ReadingProgress:
    """Adopt a new authoritative total. No-op unless it is positive and different."""
    if not new_total or new_total <= 0 or new_total == progress.total_pages:
        return progress
    return replace(
        progress,
        total_pages=new_total,
        progress_percentage=calculate_percentage(progress.current_page, new_total),
    )


def refresh_percentage(progress: ReadingProgress) -> ReadingProgress:
    percentage = calculate_percentage(progress.current_page, progress.total_pages)
    if percentage == progress.progress_percentage:
        return progress
    return replace(progress, progress_percentage=percentage)


def set_current_page(progress: ReadingProgress, page: int, now: Optional[datetime] = None) -> ReadingProgress:
    return replace(
        progress,
        current_page=page,
        progress_percentage=calculate_percentage(page, progress.total_pages),
        last_updated=now or datetime.now(UTC),
    )
