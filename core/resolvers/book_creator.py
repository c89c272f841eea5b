# core/resolvers/book_creator.py

import logging
from typing import Optional, Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession

from core.clients.open_library import OpenLibraryClient
from core.errors import NotFound, UniqueConstraintViolation, ValidationError
from core.sa.models import Book
from core.sa.repositories.book import BookRepository
from .book_resolver import BookResolver, is_internal_id, normalize_open_library_id

logger = logging.getLogger(__name__)


class BookCreator:
    """Turns a book reference into a catalog Book, materializing it from Open Library on first use."""

    def __init__(self, session: AsyncSession, client: OpenLibraryClient):
        """
        Initialize the book creator.

        Args:
            session: SQLAlchemy async session
            client: Open Library client used for materialization
        """
        self.session = session
        self.book_repository = BookRepository(session)
        self.resolver = BookResolver(client)

    async def resolve(self, book_ref: str) -> Book:
        """
        Resolve an internal book ID or an Open Library work ID to a catalog Book.

        Unknown Open Library IDs are fetched and inserted. When a concurrent
        caller inserts the same work first, the unique index rejects our
        insert and the existing row is read back instead.

        Raises:
            ValidationError: Empty reference
            NotFound: Unknown internal ID, or the work does not exist upstream
            ExternalSourceError: Open Library could not be reached
        """
        book_ref = (book_ref or "").strip()
        if not book_ref:
            raise ValidationError("Book ID is required")

        if is_internal_id(book_ref):
            book = await self.book_repository.get_by_id(book_ref)
            if not book:
                raise NotFound(f"Book {book_ref} not found")
            return book

        work_id = normalize_open_library_id(book_ref)
        if not work_id:
            raise ValidationError(f"Invalid book reference '{book_ref}'")

        book = await self.book_repository.get_by_open_library_id(work_id)
        if book:
            return book

        book_data = await self.resolver.resolve_book(work_id)
        try:
            return await self.create_book(book_data)
        except UniqueConstraintViolation:
            logger.info(f"Book {work_id} was materialized concurrently, reading it back")
            book = await self.book_repository.get_by_open_library_id(work_id)
            if book is None:
                raise
            return book

    async def create_book(self, book_data: Dict[str, Any]) -> Book:
        """
        Insert a catalog Book from resolved Open Library data.

        Optional fields are only set when known, so a later resync can tell
        "unknown" from "known".
        """
        fields: Dict[str, Any] = {
            'title': book_data.get('title'),
            'author': book_data.get('author'),
            'open_library_id': book_data['open_library_id'],
            'genres': list(book_data.get('subjects') or []),
            'language': 'en',
        }
        if not fields['title'] or not fields['author']:
            raise ValidationError(f"Refusing to store {book_data['open_library_id']} without title and author")

        year = self._parse_year(book_data.get('first_publish_date'))
        if year is not None:
            fields['published_year'] = year
        if book_data.get('description'):
            fields['description'] = book_data['description']
        if book_data.get('cover_image'):
            fields['cover_image'] = book_data['cover_image']
        page_count = book_data.get('page_count')
        if page_count and page_count > 0:
            fields['page_count'] = page_count

        book = await self.book_repository.create_book(fields)
        logger.info(f"Created book {book.open_library_id} with page_count {book.page_count or 'not set'}")
        return book

    async def refresh_page_count(self, book: Book) -> Optional[int]:
        """
        Re-fetch a book's page count from Open Library and persist it when it changed.

        Returns:
            The book's page count after the refresh (None when still unknown)
        """
        if not book.open_library_id:
            return book.page_count

        book_data = await self.resolver.resolve_book(book.open_library_id)
        page_count = book_data.get('page_count')
        if page_count and page_count > 0 and page_count != book.page_count:
            book.page_count = page_count
            await self.book_repository.save(book)
            logger.info(f"Backfilled page_count {page_count} for book {book.open_library_id}")
        return book.page_count

    def _parse_year(self, date_str: Optional[str]) -> Optional[int]:
        """Leading year of an Open Library date such as '1965', '1965-08-01' or 'August 1965'."""
        if not date_str:
            return None
        head = str(date_str).split('-')[0].strip()
        if head.isdigit():
            return int(head)
        for token in str(date_str).replace(',', ' ').split():
            if token.isdigit() and len(token) == 4:
                return int(token)
        return None
