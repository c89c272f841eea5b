# core/sa/models/user.py
from typing import List
from sqlalchemy import String, JSON
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin, new_id


class User(Base, TimestampMixin):
    __tablename__ = 'user'

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    favorite_genres: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    favorite_authors: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Relationships
    favorites = relationship('Favorite', back_populates='user', cascade='all, delete-orphan', passive_deletes=True)
