from .base import BaseRepository
from .book import BookRepository
from .favorite import FavoriteRepository
from .user import UserRepository

__all__ = ['BaseRepository', 'BookRepository', 'FavoriteRepository', 'UserRepository']
