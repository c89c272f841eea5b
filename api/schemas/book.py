# api/schemas/book.py
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


class BookBase(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    author: str = Field(min_length=1, max_length=100)
    isbn: Optional[str] = None
    open_library_id: Optional[str] = None
    genres: List[str] = []
    published_year: Optional[int] = Field(default=None, ge=1000)
    description: Optional[str] = Field(default=None, max_length=5000)
    cover_image: Optional[str] = None
    page_count: Optional[int] = Field(default=None, ge=0)
    language: str = "en"


class BookCreate(BookBase):
    pass


class BookUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    author: Optional[str] = Field(default=None, min_length=1, max_length=100)
    isbn: Optional[str] = None
    open_library_id: Optional[str] = None
    genres: Optional[List[str]] = None
    published_year: Optional[int] = Field(default=None, ge=1000)
    description: Optional[str] = Field(default=None, max_length=5000)
    cover_image: Optional[str] = None
    page_count: Optional[int] = Field(default=None, ge=0)
    language: Optional[str] = None

    model_config = ConfigDict(extra='forbid')


class Book(BookBase):
    id: str
    pages: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BookList(BaseModel):
    books: List[Book]
    total: int
    page: int
    pages: int


class ExternalBook(BaseModel):
    """A search result from Open Library, not yet in the local catalog."""
    open_library_id: Optional[str] = None
    title: str
    author: str
    author_key: Optional[str] = None
    published_year: Optional[int] = None
    isbn: Optional[str] = None
    cover_image: Optional[str] = None
    genres: List[str] = []
    language: Optional[str] = None
    publisher: Optional[str] = None
    pages: Optional[int] = None
    average_rating: Optional[float] = None


class ExternalBookList(BaseModel):
    books: List[ExternalBook]
    total: int
    page: int
    pages: int


class ExternalBookDetail(BaseModel):
    open_library_id: str
    title: str
    author: str
    author_bio: Optional[str] = None
    description: Optional[str] = None
    cover_image: Optional[str] = None
    subjects: List[str] = []
    first_publish_date: Optional[str] = None
    page_count: Optional[int] = None
