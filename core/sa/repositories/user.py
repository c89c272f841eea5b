# core/sa/repositories/user.py
from typing import Optional, List
from sqlalchemy import select

from core.errors import AlreadyExists, UniqueConstraintViolation
from ..models import User
from .base import BaseRepository


class UserRepository(BaseRepository):
    """Repository for managing User entities."""

    async def create_user(
        self,
        name: str,
        email: Optional[str] = None,
        favorite_genres: Optional[List[str]] = None,
        favorite_authors: Optional[List[str]] = None
    ) -> User:
        """Create a new user.

        Args:
            name: The unique name of the user
            email: Optional unique email address
            favorite_genres: Genres the user declared interest in
            favorite_authors: Authors the user declared interest in

        Returns:
            The created User object

        Raises:
            AlreadyExists: If a user with the given name or email already exists
        """
        user = User(
            name=name,
            email=email,
            favorite_genres=favorite_genres or [],
            favorite_authors=favorite_authors or []
        )
        self.session.add(user)
        try:
            await self.commit()
        except UniqueConstraintViolation:
            raise AlreadyExists(f"User with name '{name}' or the same email already exists")
        return user

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by their ID."""
        return await self.session.get(User, user_id)

    async def get_by_name(self, name: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.name == name))
        return result.scalar_one_or_none()
