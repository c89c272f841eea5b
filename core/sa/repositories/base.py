# core/sa/repositories/base.py
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import UniqueConstraintViolation


class BaseRepository:
    """Shared session handling for the async repositories."""

    def __init__(self, session: AsyncSession):
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def commit(self) -> None:
        """Commit the unit of work, translating unique index collisions.

        Raises:
            UniqueConstraintViolation: If the flush hit a unique constraint.
                The session is rolled back before raising.
        """
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise UniqueConstraintViolation(str(e.orig), constraint=_constraint_name(e)) from e


def _constraint_name(error: IntegrityError) -> str | None:
    diag = getattr(error.orig, 'diag', None)
    if diag is not None and getattr(diag, 'constraint_name', None):
        return diag.constraint_name
    # SQLite: "UNIQUE constraint failed: book.open_library_id"
    message = str(error.orig)
    if 'constraint failed:' in message:
        return message.split('constraint failed:', 1)[1].strip()
    return None
