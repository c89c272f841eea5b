# core/sa/repositories/book.py
from typing import Optional, List, Dict, Any
from sqlalchemy import select, func, or_, String, cast
from sqlalchemy.sql import Select

from ..models import Book
from .base import BaseRepository


class BookRepository(BaseRepository):
    """Repository for catalog books."""

    async def get_by_id(self, book_id: str) -> Optional[Book]:
        """Get a book by its internal ID"""
        return await self.session.get(Book, book_id)

    async def get_by_open_library_id(self, open_library_id: str) -> Optional[Book]:
        """Get a book by its normalized Open Library work ID"""
        result = await self.session.execute(
            select(Book).where(Book.open_library_id == open_library_id)
        )
        return result.scalar_one_or_none()

    async def get_by_isbn(self, isbn: str) -> Optional[Book]:
        """Get a book by ISBN"""
        result = await self.session.execute(select(Book).where(Book.isbn == isbn))
        return result.scalar_one_or_none()

    def _filtered(
        self,
        stmt: Select,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        author: Optional[str] = None
    ) -> Select:
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(
                Book.title.ilike(pattern),
                Book.author.ilike(pattern),
                Book.description.ilike(pattern)
            ))
        if genre:
            # genres is a JSON array of strings; match one element exactly
            stmt = stmt.where(cast(Book.genres, String).like(f'%"{genre}"%'))
        if author:
            stmt = stmt.where(Book.author.ilike(f"%{author}%"))
        return stmt

    async def search_books(
        self,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        author: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[Book]:
        """Search the local catalog, newest first.

        Args:
            search: Free text matched against title, author and description
            genre: Exact genre tag
            author: Substring of the author name
            limit: Maximum number of results to return
            offset: Number of records to skip

        Returns:
            List of matching Book objects
        """
        stmt = self._filtered(select(Book), search, genre, author)
        stmt = stmt.order_by(Book.created_at.desc(), Book.id).limit(limit).offset(offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_books(
        self,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        author: Optional[str] = None
    ) -> int:
        stmt = self._filtered(select(func.count(Book.id)), search, genre, author)
        return (await self.session.execute(stmt)).scalar_one()

    async def create_book(self, book_data: Dict[str, Any]) -> Book:
        """Insert a book.

        Raises:
            UniqueConstraintViolation: If the ISBN or Open Library ID is already taken
        """
        book = Book(**book_data)
        self.session.add(book)
        await self.commit()
        return book

    async def update_book(self, book: Book, changes: Dict[str, Any]) -> Book:
        for field, value in changes.items():
            setattr(book, field, value)
        await self.commit()
        return book

    async def save(self, book: Book) -> Book:
        self.session.add(book)
        await self.commit()
        return book

    async def delete_book(self, book_id: str) -> bool:
        """Delete a book and the favorites that reference it.

        Returns:
            True if the book was deleted, False if not found
        """
        book = await self.get_by_id(book_id)
        if not book:
            return False
        await self.session.delete(book)
        await self.commit()
        return True
