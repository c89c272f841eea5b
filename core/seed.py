# core/seed.py
"""Sample catalog used to populate a fresh database."""

import logging
from typing import Any, Dict, List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import UniqueConstraintViolation
from core.sa.repositories.book import BookRepository

logger = logging.getLogger(__name__)

SAMPLE_BOOKS: List[Dict[str, Any]] = [
    {
        "title": "Harry Potter and the Philosopher's Stone",
        "author": "J.K. Rowling",
        "isbn": "978-0-7475-3269-9",
        "genres": ["Fantasy", "Young Adult"],
        "published_year": 1997,
        "description": "An orphaned boy discovers on his eleventh birthday that he is a wizard.",
        "page_count": 223,
    },
    {
        "title": "The Lord of the Rings",
        "author": "J.R.R. Tolkien",
        "isbn": "978-0-618-34399-6",
        "genres": ["Fantasy", "Adventure"],
        "published_year": 1954,
        "description": "A hobbit sets out to destroy the One Ring before its maker can reclaim it.",
        "page_count": 1178,
    },
    {
        "title": "1984",
        "author": "George Orwell",
        "isbn": "978-0-452-28423-4",
        "genres": ["Fiction", "Dystopian", "Political"],
        "published_year": 1949,
        "description": "A clerk in a surveillance state begins a forbidden affair and a quiet rebellion.",
        "page_count": 328,
    },
    {
        "title": "To Kill a Mockingbird",
        "author": "Harper Lee",
        "isbn": "978-0-06-112008-4",
        "genres": ["Fiction", "Classic"],
        "published_year": 1960,
        "description": "A childhood in a sleepy Southern town and the trial that divided it.",
        "page_count": 324,
    },
    {
        "title": "The Great Gatsby",
        "author": "F. Scott Fitzgerald",
        "isbn": "978-0-7432-7356-5",
        "genres": ["Fiction", "Classic"],
        "published_year": 1925,
        "description": "The mysteriously wealthy Jay Gatsby and his love for Daisy Buchanan.",
        "page_count": 180,
    },
    {
        "title": "Dune",
        "author": "Frank Herbert",
        "isbn": "978-0-441-17271-9",
        "genres": ["Science Fiction", "Adventure"],
        "published_year": 1965,
        "description": "Paul Atreides comes of age on the desert planet Arrakis.",
        "page_count": 688,
    },
    {
        "title": "Atomic Habits",
        "author": "James Clear",
        "isbn": "978-0-7352-1129-2",
        "genres": ["Self-Help", "Psychology", "Business"],
        "published_year": 2018,
        "description": "A framework for building good habits and breaking bad ones.",
        "page_count": 320,
    },
    {
        "title": "Educated",
        "author": "Tara Westover",
        "isbn": "978-0-399-59050-4",
        "genres": ["Biography", "Memoir"],
        "published_year": 2018,
        "description": "Raised by survivalists in Idaho, the author first enters a classroom at seventeen.",
        "page_count": 334,
    },
    {
        "title": "The Midnight Library",
        "author": "Matt Haig",
        "isbn": "978-0-525-55948-1",
        "genres": ["Fiction", "Fantasy", "Philosophy"],
        "published_year": 2020,
        "description": "Between life and death there is a library of lives you could have lived.",
        "page_count": 304,
    },
    {
        "title": "Project Hail Mary",
        "author": "Andy Weir",
        "isbn": "978-0-593-13520-1",
        "genres": ["Science Fiction", "Adventure"],
        "published_year": 2021,
        "description": "The sole survivor of a last-chance mission must save the Earth.",
        "page_count": 476,
    },
]


async def seed_catalog(session: AsyncSession, books: List[Dict[str, Any]] = SAMPLE_BOOKS) -> Tuple[int, int]:
    """Insert sample books, skipping any whose ISBN is already in the catalog.

    Returns:
        (created, skipped)
    """
    repo = BookRepository(session)
    created = skipped = 0
    for data in books:
        if data.get("isbn") and await repo.get_by_isbn(data["isbn"]):
            skipped += 1
            continue
        try:
            await repo.create_book(dict(data))
            created += 1
        except UniqueConstraintViolation:
            logger.info(f"Skipping {data['title']}: already in catalog")
            skipped += 1
    return created, skipped
