# api/schemas/favorite.py
from datetime import datetime
from typing import Optional, Dict
from pydantic import BaseModel, ConfigDict, Field

from core.sa.models import ReadingStatus
from .book import Book


class ReadingProgress(BaseModel):
    current_page: int
    total_pages: int
    progress_percentage: int
    last_updated: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FavoriteCreate(BaseModel):
    book_id: str = Field(min_length=1, description="Catalog book ID or Open Library work ID")
    status: Optional[ReadingStatus] = None
    rating: Optional[int] = None
    notes: Optional[str] = None
    review: Optional[str] = None


class FavoriteUpdate(BaseModel):
    """Partial update; total pages always follow the book and cannot be set here."""
    status: Optional[ReadingStatus] = None
    rating: Optional[int] = None
    notes: Optional[str] = None
    review: Optional[str] = None

    model_config = ConfigDict(extra='forbid')


class ProgressUpdate(BaseModel):
    current_page: int


class Favorite(BaseModel):
    id: str
    user_id: str
    book_id: str
    status: ReadingStatus
    rating: Optional[int] = None
    notes: Optional[str] = None
    review: Optional[str] = None
    added_at: datetime
    completed_at: Optional[datetime] = None
    reading_progress: ReadingProgress
    book: Book

    model_config = ConfigDict(from_attributes=True)


class FavoriteStatistics(BaseModel):
    total: int
    want_to_read: int
    reading: int
    completed: int
    dropped: int
    average_rating: float
    total_pages_read: int
    genre_distribution: Dict[str, int] = {}
