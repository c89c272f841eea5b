# core/services/statistics.py

from collections import Counter
from typing import Any, Dict, Iterable

from core.sa.models import Favorite, ReadingStatus


def calculate_statistics(favorites: Iterable[Favorite]) -> Dict[str, Any]:
    """Reduce a user's favorites to reading statistics.

    Args:
        favorites: Favorites with their books loaded

    Returns:
        Dictionary of counts per status, average rating over rated favorites,
        pages read across completed books and a genre distribution
    """
    favorites = list(favorites)
    status_counts = Counter(f.status for f in favorites)

    ratings = [f.rating for f in favorites if f.rating]
    average_rating = sum(ratings) / len(ratings) if ratings else 0

    total_pages_read = sum(
        f.reading_progress.current_page
        for f in favorites
        if f.status == ReadingStatus.COMPLETED.value
    )

    genre_distribution: Counter = Counter()
    for favorite in favorites:
        if favorite.book is not None:
            genre_distribution.update(favorite.book.genres or [])

    return {
        "total": len(favorites),
        "want_to_read": status_counts[ReadingStatus.WANT_TO_READ.value],
        "reading": status_counts[ReadingStatus.READING.value],
        "completed": status_counts[ReadingStatus.COMPLETED.value],
        "dropped": status_counts[ReadingStatus.DROPPED.value],
        "average_rating": average_rating,
        "total_pages_read": total_pages_read,
        "genre_distribution": dict(genre_distribution),
    }
