# api/schemas/user.py
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


class UserBase(BaseModel):
    name: str = Field(min_length=3, max_length=20, pattern=r'^[a-zA-Z0-9_]+$')
    email: Optional[str] = Field(default=None, pattern=r'^\S+@\S+\.\S+$')
    favorite_genres: List[str] = []
    favorite_authors: List[str] = []


class UserCreate(UserBase):
    pass


class User(UserBase):
    id: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Recommendation(BaseModel):
    title: str
    author: str
    genre: List[str] = []
    reason: str
    match_score: int

    model_config = ConfigDict(from_attributes=True)
