# api/dependencies.py
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.clients.open_library import OpenLibraryClient
from core.sa.database import get_db
from core.services.book_service import BookService
from core.services.favorite_service import FavoriteService
from core.services.recommendation_service import RecommendationService, Recommender


def get_open_library(request: Request) -> OpenLibraryClient:
    """The Open Library client created at startup."""
    return request.app.state.open_library


def get_recommender(request: Request) -> Recommender:
    """The recommendation strategy selected at startup."""
    return request.app.state.recommender


def get_favorite_service(
    db: AsyncSession = Depends(get_db),
    client: OpenLibraryClient = Depends(get_open_library)
) -> FavoriteService:
    return FavoriteService(db, client)


def get_book_service(
    db: AsyncSession = Depends(get_db),
    client: OpenLibraryClient = Depends(get_open_library)
) -> BookService:
    return BookService(db, client)


def get_recommendation_service(
    db: AsyncSession = Depends(get_db),
    client: OpenLibraryClient = Depends(get_open_library),
    recommender: Recommender = Depends(get_recommender)
) -> RecommendationService:
    return RecommendationService(db, recommender, client)
