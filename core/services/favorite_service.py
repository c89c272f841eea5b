# core/services/favorite_service.py

import logging
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core import progress
from core.clients.open_library import OpenLibraryClient
from core.errors import (
    AlreadyExists, ExternalSourceError, NotFound, UniqueConstraintViolation, ValidationError
)
from core.resolvers.book_creator import BookCreator
from core.sa.models import Book, Favorite, ReadingStatus
from core.sa.repositories.favorite import FavoriteRepository
from core.sa.repositories.user import UserRepository
from core.services.statistics import calculate_statistics

logger = logging.getLogger(__name__)

STATUSES = {s.value for s in ReadingStatus}
UPDATABLE_FIELDS = {'status', 'rating', 'notes', 'review'}
MAX_NOTES_LENGTH = 1000
MAX_REVIEW_LENGTH = 2000


def validate_status(status: Any) -> str:
    value = status.value if isinstance(status, ReadingStatus) else status
    if not isinstance(value, str) or value not in STATUSES:
        raise ValidationError(f"{status!r} is not a valid status")
    return value


def validate_rating(rating: Any) -> Optional[int]:
    if rating is None:
        return None
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be an integer")
    if not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")
    return rating


def validate_text(value: Any, field: str, max_length: int) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field.capitalize()} must be text")
    if len(value) > max_length:
        raise ValidationError(f"{field.capitalize()} cannot exceed {max_length} characters")
    return value


def validate_page(page: Any) -> int:
    if isinstance(page, bool) or not isinstance(page, int):
        raise ValidationError("Current page must be an integer")
    if page < 0:
        raise ValidationError("Current page cannot be negative")
    return page


def book_total_pages(book: Optional[Book]) -> Optional[int]:
    """Authoritative total for a favorite: the book's page count, else its legacy pages field."""
    if book is None:
        return None
    return progress.pick_total_pages(book.page_count, book.pages)


class FavoriteService:
    """Keeps a user's favorites and their reading progress consistent with the catalog."""

    def __init__(self, session: AsyncSession, client: OpenLibraryClient, creator: Optional[BookCreator] = None):
        self.session = session
        self.favorites = FavoriteRepository(session)
        self.users = UserRepository(session)
        self.creator = creator or BookCreator(session, client)

    async def create_favorite(
        self,
        user_id: str,
        book_id: str,
        status: Optional[str] = None,
        rating: Optional[int] = None,
        notes: Optional[str] = None,
        review: Optional[str] = None
    ) -> Favorite:
        """
        Add a book to a user's favorites.

        ``book_id`` is an internal catalog ID or an Open Library work ID; the
        latter is materialized into the catalog on first reference.

        Raises:
            ValidationError, NotFound, AlreadyExists, ExternalSourceError
        """
        status = validate_status(status) if status is not None else ReadingStatus.WANT_TO_READ.value
        rating = validate_rating(rating)
        notes = validate_text(notes, 'notes', MAX_NOTES_LENGTH)
        review = validate_text(review, 'review', MAX_REVIEW_LENGTH)

        if await self.users.get_by_id(user_id) is None:
            raise NotFound("User not found")

        book = await self.creator.resolve(book_id)

        if await self.favorites.get_by_user_and_book(user_id, book.id):
            raise AlreadyExists("Book already in favorites")

        total_pages = book_total_pages(book)
        if total_pages is None:
            logger.debug(f"No page count for book {book.id}, using placeholder total")
            total_pages = progress.UNKNOWN_TOTAL_PAGES

        now = datetime.now(UTC)
        favorite = Favorite(
            user_id=user_id,
            book_id=book.id,
            status=status,
            rating=rating,
            notes=notes,
            review=review,
            added_at=now,
            reading_progress=progress.initialize(total_pages, now),
        )
        self._stamp_completion(favorite, now)

        try:
            await self.favorites.add(favorite)
        except UniqueConstraintViolation:
            raise AlreadyExists("Book already in favorites")

        return await self.favorites.get_for_user(favorite.id, user_id)

    async def get_favorites(self, user_id: str, status: Optional[str] = None) -> List[Favorite]:
        """
        List a user's favorites, most recently added first.

        Books without a page count are looked up again in Open Library; a
        newly found count is stored on the book and the favorite's total and
        percentage follow it. Lookup failures are logged and skipped.
        """
        if status is not None:
            status = validate_status(status)

        favorites = await self.favorites.list_for_user(user_id, status)
        for favorite in favorites:
            book = favorite.book
            if book is None:
                continue

            page_count = book.page_count
            if not page_count and book.open_library_id:
                try:
                    page_count = await self.creator.refresh_page_count(book)
                except (ExternalSourceError, NotFound, UniqueConstraintViolation) as e:
                    logger.warning(f"Could not backfill page count for book {book.open_library_id}: {e}")
                    continue

            synced = progress.resync_total(favorite.reading_progress, page_count)
            if synced != favorite.reading_progress:
                favorite.reading_progress = synced
                await self.favorites.save(favorite)

        return favorites

    async def get_favorite(self, favorite_id: str, user_id: str) -> Favorite:
        favorite = await self.favorites.get_for_user(favorite_id, user_id)
        if favorite is None:
            raise NotFound("Favorite not found")
        return favorite

    async def update_favorite(self, favorite_id: str, user_id: str, data: Dict[str, Any]) -> Favorite:
        """
        Partially update status, rating, notes and review.

        Keys missing from ``data`` are left untouched. The total page count
        is always resynchronized from the book, whatever was changed.
        """
        unknown = set(data) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update {', '.join(sorted(unknown))}")

        changes: Dict[str, Any] = {}
        if 'status' in data:
            changes['status'] = validate_status(data['status'])
        if 'rating' in data:
            changes['rating'] = validate_rating(data['rating'])
        if 'notes' in data:
            changes['notes'] = validate_text(data['notes'], 'notes', MAX_NOTES_LENGTH)
        if 'review' in data:
            changes['review'] = validate_text(data['review'], 'review', MAX_REVIEW_LENGTH)

        favorite = await self.get_favorite(favorite_id, user_id)
        for field, value in changes.items():
            setattr(favorite, field, value)

        favorite.reading_progress = self._synced_progress(favorite)
        self._stamp_completion(favorite, datetime.now(UTC))

        await self.favorites.save(favorite)
        return await self.favorites.get_for_user(favorite.id, user_id)

    async def update_progress(self, favorite_id: str, user_id: str, current_page: int) -> Favorite:
        """
        Record the page the user has reached.

        Moves want_to_read to reading once any page is read, and reading to
        completed once the last page of a book with a known page count is reached.
        Neither transition ever runs backwards.
        """
        current_page = validate_page(current_page)
        favorite = await self.get_favorite(favorite_id, user_id)

        now = datetime.now(UTC)
        synced = self._synced_progress(favorite)
        updated = progress.set_current_page(synced, current_page, now)
        favorite.reading_progress = updated

        if current_page > 0 and favorite.status == ReadingStatus.WANT_TO_READ.value:
            favorite.status = ReadingStatus.READING.value

        # A placeholder total is not a real last page
        total_known = book_total_pages(favorite.book) is not None
        if (total_known and updated.total_pages > 0
                and current_page >= updated.total_pages
                and favorite.status == ReadingStatus.READING.value):
            favorite.status = ReadingStatus.COMPLETED.value

        self._stamp_completion(favorite, now)

        await self.favorites.save(favorite)
        return await self.favorites.get_for_user(favorite.id, user_id)

    async def delete_favorite(self, favorite_id: str, user_id: str) -> bool:
        return await self.favorites.delete_for_user(favorite_id, user_id)

    async def get_statistics(self, user_id: str) -> Dict[str, Any]:
        favorites = await self.favorites.list_for_user(user_id)
        return calculate_statistics(favorites)

    def _synced_progress(self, favorite: Favorite) -> progress.ReadingProgress:
        synced = progress.resync_total(favorite.reading_progress, book_total_pages(favorite.book))
        return progress.refresh_percentage(synced)

    def _stamp_completion(self, favorite: Favorite, now: datetime) -> None:
        if favorite.status == ReadingStatus.COMPLETED.value and favorite.completed_at is None:
            favorite.completed_at = now
