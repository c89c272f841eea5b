# core/services/book_service.py

import logging
from math import ceil
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.clients.open_library import OpenLibraryClient
from core.errors import AlreadyExists, NotFound, UniqueConstraintViolation, ValidationError
from core.resolvers.book_resolver import BookResolver
from core.sa.models import Book
from core.sa.repositories.book import BookRepository

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    'title', 'author', 'isbn', 'open_library_id', 'genres', 'published_year',
    'description', 'cover_image', 'page_count', 'language'
}


class BookService:
    """Catalog browsing against Open Library plus administration of the local catalog."""

    def __init__(self, session: AsyncSession, client: OpenLibraryClient):
        self.client = client
        self.books = BookRepository(session)
        self.resolver = BookResolver(client)

    async def search_books_from_api(
        self,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        page: int = 1,
        limit: int = 20
    ) -> Dict[str, Any]:
        """Search Open Library by text, by subject, or fall back to trending books."""
        if search:
            result = await self.client.search_books(search, page, limit)
        elif genre:
            result = await self.client.get_books_by_subject(genre, page, limit)
        else:
            result = await self.client.get_trending_books(limit, page)

        total = result.get('numFound', 0)
        return {
            'books': [self.client.transform_book(doc) for doc in result.get('docs', [])],
            'total': total,
            'page': page,
            'pages': ceil(total / limit) if limit else 0,
        }

    async def get_book_details_from_api(self, work_id: str) -> Dict[str, Any]:
        return await self.resolver.resolve_book(work_id)

    async def get_all_books(
        self,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        author: Optional[str] = None,
        page: int = 1,
        limit: int = 20
    ) -> Dict[str, Any]:
        total = await self.books.count_books(search, genre, author)
        books = await self.books.search_books(search, genre, author, limit=limit, offset=(page - 1) * limit)
        return {
            'books': books,
            'total': total,
            'page': page,
            'pages': ceil(total / limit) if limit else 0,
        }

    async def get_book(self, book_id: str) -> Book:
        book = await self.books.get_by_id(book_id)
        if book is None:
            raise NotFound("Book not found")
        return book

    async def create_book(self, data: Dict[str, Any]) -> Book:
        fields = self._clean(data)
        if not fields.get('title') or not fields.get('author'):
            raise ValidationError("Title and author are required")
        try:
            return await self.books.create_book(fields)
        except UniqueConstraintViolation as e:
            raise AlreadyExists(f"A book with this ISBN or Open Library ID already exists ({e.constraint})")

    async def update_book(self, book_id: str, data: Dict[str, Any]) -> Book:
        book = await self.get_book(book_id)
        fields = self._clean(data)
        for required in ('title', 'author'):
            if required in fields and not fields[required]:
                raise ValidationError(f"{required.capitalize()} cannot be empty")
        try:
            return await self.books.update_book(book, fields)
        except UniqueConstraintViolation as e:
            raise AlreadyExists(f"A book with this ISBN or Open Library ID already exists ({e.constraint})")

    async def delete_book(self, book_id: str) -> bool:
        return await self.books.delete_book(book_id)

    def _clean(self, data: Dict[str, Any]) -> Dict[str, Any]:
        unknown = set(data) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown book fields: {', '.join(sorted(unknown))}")
        page_count = data.get('page_count')
        if page_count is not None and page_count < 0:
            raise ValidationError("Page count cannot be negative")
        return dict(data)
