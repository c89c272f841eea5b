# core/sa/repositories/favorite.py
from typing import Optional, List
from sqlalchemy import select, delete
from sqlalchemy.orm import joinedload

from ..models import Favorite
from .base import BaseRepository


class FavoriteRepository(BaseRepository):
    """Repository for favorites. Every read is scoped to the owning user."""

    async def get_for_user(self, favorite_id: str, user_id: str) -> Optional[Favorite]:
        """Get a favorite with its book, only if it belongs to the user.

        Args:
            favorite_id: The ID of the favorite
            user_id: The ID of the owning user

        Returns:
            The Favorite with its book loaded, or None when missing or owned by someone else
        """
        result = await self.session.execute(
            select(Favorite)
            .options(joinedload(Favorite.book))
            .where(Favorite.id == favorite_id, Favorite.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_user_and_book(self, user_id: str, book_id: str) -> Optional[Favorite]:
        result = await self.session.execute(
            select(Favorite).where(Favorite.user_id == user_id, Favorite.book_id == book_id)
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str, status: Optional[str] = None) -> List[Favorite]:
        """Get a user's favorites with their books, most recently added first."""
        stmt = (
            select(Favorite)
            .options(joinedload(Favorite.book))
            .where(Favorite.user_id == user_id)
        )
        if status:
            stmt = stmt.where(Favorite.status == status)
        stmt = stmt.order_by(Favorite.added_at.desc(), Favorite.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def add(self, favorite: Favorite) -> Favorite:
        """Insert a favorite.

        Raises:
            UniqueConstraintViolation: If the user already has a favorite for the book
        """
        self.session.add(favorite)
        await self.commit()
        return favorite

    async def save(self, favorite: Favorite) -> Favorite:
        self.session.add(favorite)
        await self.commit()
        return favorite

    async def delete_for_user(self, favorite_id: str, user_id: str) -> bool:
        """Delete a favorite owned by the user.

        Returns:
            True if a row was removed, False if nothing matched
        """
        result = await self.session.execute(
            delete(Favorite).where(Favorite.id == favorite_id, Favorite.user_id == user_id)
        )
        await self.commit()
        return result.rowcount > 0
