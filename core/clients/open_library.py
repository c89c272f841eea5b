"""
Async Open Library API client using aiohttp
"""

import asyncio
import logging
import random
from typing import Any, Dict, List, Optional

import aiohttp
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from core.config import get_settings
from core.errors import ExternalSourceError, NotFound

logger = logging.getLogger(__name__)

SEARCH_FIELDS = (
    "key,title,author_name,author_key,first_publish_year,isbn,cover_i,subject,"
    "language,publisher,number_of_pages_median,ratings_average"
)
TRENDING_SUBJECTS = ["fiction", "fantasy", "science_fiction", "mystery", "romance"]
EDITION_SAMPLE_SIZE = 10

JSONDict = Dict[str, Any]


class OpenLibraryClient:
    """Async client for the Open Library catalog."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        covers_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.open_library_url).rstrip("/")
        self.covers_url = (covers_url or settings.covers_url).rstrip("/")
        self.timeout = timeout or settings.open_library_timeout

        # Session will be created lazily when first needed
        self.session: aiohttp.ClientSession | None = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session exists, creating it if necessary."""
        if self.session is None or self.session.closed:
            timeout_config = aiohttp.ClientTimeout(total=self.timeout, connect=min(self.timeout, 5))
            self.session = aiohttp.ClientSession(
                timeout=timeout_config,
                headers={"Accept": "application/json"},
            )
        return self.session

    async def close(self):
        """Close the session. Must be called when done with client."""
        if self.session is not None:
            await self.session.close()
            self.session = None

    async def __aenter__(self) -> "OpenLibraryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # self.timeout bounds each attempt, not the whole retried call
    @retry(
        retry=retry_if_exception_type((aiohttp.ClientConnectionError, asyncio.TimeoutError)),
        stop=stop_after_attempt(3),
        wait=wait_fixed(1),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _fetch_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> JSONDict:
        session = await self._ensure_session()
        async with session.get(f"{self.base_url}{path}", params=params) as response:
            if response.status == 404:
                raise NotFound(f"Open Library has no resource at {path}")
            response.raise_for_status()
            return await response.json(content_type=None)

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None, ref: Optional[str] = None) -> JSONDict:
        """GET a JSON document, mapping transport failures to ExternalSourceError."""
        try:
            data = await self._fetch_json(path, params)
        except NotFound:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Open Library request {path} failed: {e!r}")
            raise ExternalSourceError(f"Open Library request failed for {ref or path}: {e}", external_id=ref) from e

        if not isinstance(data, dict):
            raise ExternalSourceError(f"Open Library sent a non-object document for {ref or path}", external_id=ref)
        return data

    async def search_books(self, query: str, page: int = 1, limit: int = 20) -> JSONDict:
        """
        Search for books by free text.

        Returns:
            dict with ``docs`` (raw search documents) and ``numFound``
        """
        offset = (page - 1) * limit
        data = await self._get_json(
            "/search.json",
            params={"q": query, "limit": limit, "offset": offset, "fields": SEARCH_FIELDS},
            ref=query,
        )
        return {"docs": data.get("docs", []), "numFound": data.get("numFound", 0), "start": offset}

    async def get_books_by_subject(self, subject: str, page: int = 1, limit: int = 20) -> JSONDict:
        """Get works filed under a subject, in the same shape as search_books."""
        offset = (page - 1) * limit
        data = await self._get_json(
            f"/subjects/{subject}.json",
            params={"limit": limit, "offset": offset},
            ref=subject,
        )
        return {"docs": data.get("works", []), "numFound": data.get("work_count", 0), "start": offset}

    async def get_trending_books(self, limit: int = 20, page: int = 1) -> JSONDict:
        """Books from one randomly chosen popular subject."""
        return await self.get_books_by_subject(random.choice(TRENDING_SUBJECTS), page, limit)

    async def get_work_details(self, work_id: str) -> JSONDict:
        return await self._get_json(f"/works/{work_id}.json", ref=work_id)

    async def get_author_details(self, author_id: str) -> JSONDict:
        return await self._get_json(f"/authors/{author_id}.json", ref=author_id)

    async def get_edition_page_counts(self, work_id: str, sample_size: int = EDITION_SAMPLE_SIZE) -> List[int]:
        """Positive page counts from the first ``sample_size`` editions of a work."""
        data = await self._get_json(
            f"/works/{work_id}/editions.json",
            params={"limit": sample_size, "fields": "number_of_pages"},
            ref=work_id,
        )
        counts = []
        entries = data.get("entries") if isinstance(data.get("entries"), list) else []
        for edition in entries[:sample_size]:
            pages = edition.get("number_of_pages") if isinstance(edition, dict) else None
            if isinstance(pages, int) and not isinstance(pages, bool) and pages > 0:
                counts.append(pages)
        return counts

    def get_cover_url(self, cover_id: int, size: str = "M") -> str:
        return f"{self.covers_url}/b/id/{cover_id}-{size}.jpg"

    def get_cover_url_by_isbn(self, isbn: str, size: str = "M") -> str:
        return f"{self.covers_url}/b/isbn/{isbn}-{size}.jpg"

    def get_author_photo_url(self, photo_id: int, size: str = "M") -> str:
        return f"{self.covers_url}/a/id/{photo_id}-{size}.jpg"

    def transform_book(self, doc: JSONDict) -> JSONDict:
        """
        Flatten a search or subject document into a catalog-shaped dict.

        Search results carry ``cover_i``/``author_name``; subject works carry
        ``cover_id`` and an ``authors`` list of ``{key, name}`` objects.
        """
        cover_image = None
        cover_id = doc.get("cover_i") or doc.get("cover_id")
        isbns = doc.get("isbn") or []
        if cover_id:
            cover_image = self.get_cover_url(cover_id, "M")
        elif isbns:
            cover_image = self.get_cover_url_by_isbn(isbns[0], "M")

        author = "Unknown Author"
        author_key = None
        authors = doc.get("authors") or []
        if doc.get("author_name"):
            author = doc["author_name"][0]
        elif authors and isinstance(authors[0], dict) and authors[0].get("name"):
            author = authors[0]["name"]

        if doc.get("author_key"):
            author_key = doc["author_key"][0]
        elif authors and isinstance(authors[0], dict) and isinstance(authors[0].get("key"), str):
            author_key = authors[0]["key"].replace("/authors/", "")

        key = doc.get("key") or ""
        return {
            "open_library_id": key.replace("/works/", "").replace("/subjects/", "") or None,
            "title": doc.get("title") or "Unknown Title",
            "author": author,
            "author_key": author_key,
            "published_year": doc.get("first_publish_year"),
            "isbn": isbns[0] if isbns else None,
            "cover_image": cover_image,
            "genres": (doc.get("subject") or [])[:5],
            "language": (doc.get("language") or ["en"])[0],
            "publisher": (doc.get("publisher") or [None])[0],
            "pages": doc.get("number_of_pages_median"),
            "average_rating": doc.get("ratings_average"),
        }
