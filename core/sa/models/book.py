# core/sa/models/book.py
from typing import List
from sqlalchemy import String, Integer, JSON, Text
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin, new_id


class Book(Base, TimestampMixin):
    """A book in the local catalog, authored locally or materialized from Open Library."""
    __tablename__ = 'book'

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    author: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    # NULLs never collide, so both identifiers are unique only when present
    isbn: Mapped[str | None] = mapped_column(String(32), unique=True, nullable=True)
    open_library_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    genres: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    published_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    page_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pages: Mapped[int | None] = mapped_column(Integer, nullable=True)  # legacy, from search results
    language: Mapped[str] = mapped_column(String(10), nullable=False, default='en')

    # Relationships
    favorites = relationship('Favorite', back_populates='book', cascade='all, delete-orphan', passive_deletes=True)
