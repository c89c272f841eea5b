# tests/conftest.py
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock

from core.clients.open_library import OpenLibraryClient
from core.sa.database import Database
from core.sa.models import Book, User


@pytest.fixture
def test_db_url(tmp_path):
    """A fresh SQLite file per test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'test_reading_tracker.db'}"


@pytest_asyncio.fixture
async def database(test_db_url):
    """Create a test database instance with the schema in place"""
    db = Database(test_db_url)
    await db.init_db()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    """Create a new database session for a test"""
    session = database.get_session()
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture
def dune_work():
    """An Open Library work record without a page count of its own."""
    return {
        "key": "/works/OL893415W",
        "title": "Dune",
        "authors": [{"author": {"key": "/authors/OL79034A"}, "type": {"key": "/type/author_role"}}],
        "description": {"type": "/type/text", "value": "Set on the desert planet Arrakis."},
        "covers": [11481354],
        "subjects": ["Science Fiction", "Dune (Imaginary place)", "Fiction"],
        "first_publish_date": "1965",
    }


@pytest.fixture
def mock_client(dune_work):
    """Open Library client whose network calls are replaced with AsyncMocks."""
    client = OpenLibraryClient(
        base_url="https://openlibrary.test",
        covers_url="https://covers.openlibrary.test",
        timeout=1
    )
    client.get_work_details = AsyncMock(return_value=dune_work)
    client.get_author_details = AsyncMock(return_value={"name": "Frank Herbert", "bio": "American author."})
    client.get_edition_page_counts = AsyncMock(return_value=[])
    client.search_books = AsyncMock(return_value={"docs": [], "numFound": 0, "start": 0})
    client.get_books_by_subject = AsyncMock(return_value={"docs": [], "numFound": 0, "start": 0})
    client.get_trending_books = AsyncMock(return_value={"docs": [], "numFound": 0, "start": 0})
    return client


@pytest_asyncio.fixture
async def sample_user(db_session):
    """Create a sample user for testing."""
    user = User(name="test_reader", email="reader@example.com", favorite_genres=["Fantasy"])
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def other_user(db_session):
    user = User(name="other_reader")
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def sample_book(db_session):
    """Create a catalog book with a known page count."""
    book = Book(
        title="Atomic Habits",
        author="James Clear",
        isbn="978-0-7352-1129-2",
        genres=["Self-Help", "Psychology"],
        published_year=2018,
        page_count=320,
    )
    db_session.add(book)
    await db_session.commit()
    return book


@pytest_asyncio.fixture
async def unpaged_book(db_session):
    """Create a catalog book whose page count is entirely unknown."""
    book = Book(title="Mystery Pamphlet", author="Anonymous", genres=["Mystery"])
    db_session.add(book)
    await db_session.commit()
    return book
