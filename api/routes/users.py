# api/routes/users.py

from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_recommendation_service
from api.schemas.user import User, UserCreate, Recommendation
from core.sa.database import get_db
from core.sa.repositories.user import UserRepository
from core.services.recommendation_service import RecommendationService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(user: UserCreate, db: AsyncSession = Depends(get_db)):
    repo = UserRepository(db)
    return await repo.create_user(
        name=user.name,
        email=user.email,
        favorite_genres=user.favorite_genres,
        favorite_authors=user.favorite_authors
    )


@router.get("/{user_id}", response_model=User)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    repo = UserRepository(db)
    db_user = await repo.get_by_id(user_id)
    if db_user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return db_user


@router.get("/{user_id}/recommendations", response_model=List[Recommendation])
async def get_recommendations(
    user_id: str,
    service: RecommendationService = Depends(get_recommendation_service)
):
    """Books the user may enjoy, based on what they are reading and have completed."""
    return [r.to_dict() for r in await service.get_recommendations(user_id)]
