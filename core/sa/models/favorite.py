# core/sa/models/favorite.py
from datetime import datetime, UTC
from enum import Enum
from sqlalchemy import String, Integer, Text, ForeignKey, DateTime, UniqueConstraint, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column, composite
from .base import Base, TimestampMixin, new_id
from core.progress import ReadingProgress


class ReadingStatus(str, Enum):
    WANT_TO_READ = "want_to_read"
    READING = "reading"
    COMPLETED = "completed"
    DROPPED = "dropped"


class Favorite(Base, TimestampMixin):
    """One user's relationship to one catalog book."""
    __tablename__ = 'favorite'

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    book_id: Mapped[str] = mapped_column(ForeignKey('book.id', ondelete='CASCADE'), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ReadingStatus.WANT_TO_READ.value)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    review: Mapped[str | None] = mapped_column(Text, nullable=True)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Embedded reading progress
    reading_progress: Mapped[ReadingProgress] = composite(
        mapped_column('current_page', Integer, nullable=False, default=0),
        mapped_column('total_pages', Integer, nullable=False, default=1),
        mapped_column('progress_percentage', Integer, nullable=False, default=0),
        mapped_column('progress_updated_at', DateTime(timezone=True), nullable=True),
    )

    # Relationships
    user = relationship('User', back_populates='favorites')
    book = relationship('Book', back_populates='favorites')

    __table_args__ = (
        UniqueConstraint('user_id', 'book_id', name='uix_favorite_user_book'),
        Index('ix_favorite_user_status', 'user_id', 'status'),
    )
