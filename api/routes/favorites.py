# api/routes/favorites.py

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import get_favorite_service
from api.schemas.favorite import (
    Favorite, FavoriteCreate, FavoriteUpdate, ProgressUpdate, FavoriteStatistics
)
from core.sa.models import ReadingStatus
from core.services.favorite_service import FavoriteService

router = APIRouter(prefix="/users/{user_id}/favorites", tags=["favorites"])


@router.post("", response_model=Favorite, status_code=status.HTTP_201_CREATED)
async def create_favorite(
    user_id: str,
    favorite: FavoriteCreate,
    service: FavoriteService = Depends(get_favorite_service)
):
    """
    Add a book to the user's favorites.

    ``book_id`` may be a catalog ID or an Open Library work ID such as
    ``OL45883W`` or ``/works/OL45883W``; unknown works are added to the catalog.
    """
    return await service.create_favorite(
        user_id=user_id,
        book_id=favorite.book_id,
        status=favorite.status.value if favorite.status else None,
        rating=favorite.rating,
        notes=favorite.notes,
        review=favorite.review
    )


@router.get("", response_model=List[Favorite])
async def get_favorites(
    user_id: str,
    status: Optional[ReadingStatus] = Query(None, description="Only favorites with this status"),
    service: FavoriteService = Depends(get_favorite_service)
):
    return await service.get_favorites(user_id, status.value if status else None)


@router.get("/statistics", response_model=FavoriteStatistics)
async def get_statistics(user_id: str, service: FavoriteService = Depends(get_favorite_service)):
    return await service.get_statistics(user_id)


@router.get("/{favorite_id}", response_model=Favorite)
async def get_favorite(user_id: str, favorite_id: str, service: FavoriteService = Depends(get_favorite_service)):
    return await service.get_favorite(favorite_id, user_id)


@router.put("/{favorite_id}", response_model=Favorite)
async def update_favorite(
    user_id: str,
    favorite_id: str,
    favorite: FavoriteUpdate,
    service: FavoriteService = Depends(get_favorite_service)
):
    data = favorite.model_dump(exclude_unset=True, mode="json")
    return await service.update_favorite(favorite_id, user_id, data)


@router.patch("/{favorite_id}/progress", response_model=Favorite)
async def update_progress(
    user_id: str,
    favorite_id: str,
    body: ProgressUpdate,
    service: FavoriteService = Depends(get_favorite_service)
):
    return await service.update_progress(favorite_id, user_id, body.current_page)


@router.delete("/{favorite_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_favorite(user_id: str, favorite_id: str, service: FavoriteService = Depends(get_favorite_service)):
    if not await service.delete_favorite(favorite_id, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Favorite not found")
