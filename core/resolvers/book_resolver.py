# core/resolvers/book_resolver.py

import logging
import re
from statistics import median_high
from typing import Any, Dict, Optional

from core.clients.open_library import OpenLibraryClient
from core.errors import ExternalSourceError, NotFound

logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_AUTHOR = "Unknown Author"
MAX_SUBJECTS = 10

_NAMESPACE_PREFIX = re.compile(r"^/?(works|subjects)/")
_INTERNAL_ID = re.compile(r"^[0-9a-f]{32}$")


def normalize_open_library_id(ref: str) -> str:
    """Strip a leading ``/works/`` or ``/subjects/`` segment."""
    return _NAMESPACE_PREFIX.sub("", ref.strip())


def is_internal_id(ref: str) -> bool:
    return bool(_INTERNAL_ID.match(ref))


def _text_value(value: Any) -> Optional[str]:
    """Open Library text fields are either a string or {"type": ..., "value": ...}."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        return value.get("value") or None
    return None


class BookResolver:
    def __init__(self, client: OpenLibraryClient):
        self.client = client

    async def resolve_book(self, work_id: str) -> Dict[str, Any]:
        """
        Resolves the bibliographic detail of an Open Library work by:
          1. Fetching the work record.
          2. Resolving the first author reference to a name (falls back to a
             placeholder when the reference is missing or the lookup fails).
          3. Resolving the page count from the work record, falling back to
             the median of a sample of edition records.

        Returns:
            A dictionary of resolved fields; unknown optional fields are None.

        Raises:
            NotFound: The work does not exist in Open Library.
            ExternalSourceError: Open Library could not be reached, or sent a
                work record that cannot be read.
        """
        work_id = normalize_open_library_id(work_id)
        logger.info(f"Fetching work details for Open Library ID {work_id}")
        work = await self.client.get_work_details(work_id)
        if not isinstance(work, dict):
            raise ExternalSourceError(f"Malformed work record for {work_id}", external_id=work_id)

        try:
            book_data = self._parse_work(work_id, work)
        except (AttributeError, TypeError, ValueError) as e:
            raise ExternalSourceError(f"Malformed work record for {work_id}: {e}", external_id=work_id) from e

        book_data["author"], book_data["author_bio"] = await self._resolve_author(work)
        book_data["page_count"] = await self._resolve_page_count(work_id, work)
        return book_data

    def _parse_work(self, work_id: str, work: Dict[str, Any]) -> Dict[str, Any]:
        title = work.get("title")
        covers = work.get("covers") if isinstance(work.get("covers"), list) else []
        covers = [c for c in covers if isinstance(c, int) and c > 0]
        subjects = work.get("subjects") if isinstance(work.get("subjects"), list) else []
        first_publish_date = work.get("first_publish_date")

        return {
            "open_library_id": work_id,
            "title": title if isinstance(title, str) and title else UNKNOWN_TITLE,
            "description": _text_value(work.get("description")),
            "cover_image": self.client.get_cover_url(covers[0], "L") if covers else None,
            "subjects": [s for s in subjects if isinstance(s, str)][:MAX_SUBJECTS],
            "first_publish_date": first_publish_date if isinstance(first_publish_date, str) else None,
        }

    async def _resolve_author(self, work: Dict[str, Any]) -> tuple[str, Optional[str]]:
        authors = work.get("authors")
        if not isinstance(authors, list) or not authors or not isinstance(authors[0], dict):
            return UNKNOWN_AUTHOR, None

        # {"author": {"key": "/authors/OL...A"}}; anything else is unusable
        author_ref = authors[0].get("author")
        key = author_ref.get("key") if isinstance(author_ref, dict) else None
        author_id = key.replace("/authors/", "") if isinstance(key, str) else ""
        if not author_id:
            return UNKNOWN_AUTHOR, None

        try:
            author = await self.client.get_author_details(author_id)
        except (ExternalSourceError, NotFound) as e:
            logger.warning(f"Author lookup for {author_id} failed, using placeholder: {e}")
            return UNKNOWN_AUTHOR, None

        if not isinstance(author, dict):
            logger.warning(f"Author record for {author_id} is malformed, using placeholder")
            return UNKNOWN_AUTHOR, None
        name = author.get("name")
        return name if isinstance(name, str) and name else UNKNOWN_AUTHOR, _text_value(author.get("bio"))

    async def _resolve_page_count(self, work_id: str, work: Dict[str, Any]) -> Optional[int]:
        for field in ("number_of_pages", "number_of_pages_median"):
            value = work.get(field)
            if isinstance(value, int) and not isinstance(value, bool) and value > 0:
                return value

        try:
            counts = await self.client.get_edition_page_counts(work_id)
        except (ExternalSourceError, NotFound) as e:
            logger.warning(f"Edition lookup for {work_id} failed: {e}")
            return None

        if not counts:
            logger.info(f"No page count found for {work_id}")
            return None
        return median_high(counts)
