from .base import Base, TimestampMixin, new_id
from .book import Book
from .favorite import Favorite, ReadingStatus
from .user import User

__all__ = [
    'Base',
    'TimestampMixin',
    'new_id',
    'Book',
    'Favorite',
    'ReadingStatus',
    'User',
]
