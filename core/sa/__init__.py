from .database import Database, get_database, get_db
from .models import Base, Book, Favorite, ReadingStatus, User

__all__ = [
    'Database',
    'get_database',
    'get_db',
    'Base',
    'Book',
    'Favorite',
    'ReadingStatus',
    'User',
]
