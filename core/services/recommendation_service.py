# core/services/recommendation_service.py
"""
Book recommendations derived from a user's reading history.

One ``Recommender`` strategy is chosen at startup from configuration. When
it fails, the Open Library strategy is tried, and the static list is the
last resort, so a recommendation request never fails on upstream errors.
"""

import asyncio
import json
import logging
import random
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Set

import aiohttp
from sqlalchemy.ext.asyncio import AsyncSession

from core.clients.open_library import OpenLibraryClient
from core.config import Settings
from core.errors import ExternalSourceError, NotFound, ReadingTrackerError
from core.sa.models import ReadingStatus
from core.sa.repositories.favorite import FavoriteRepository
from core.sa.repositories.user import UserRepository

logger = logging.getLogger(__name__)

RECOMMENDATION_COUNT = 5
HUGGINGFACE_API = "https://api-inference.huggingface.co/models"


@dataclass
class Recommendation:
    title: str
    author: str
    genre: List[str]
    reason: str
    match_score: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReadingProfile:
    """What a recommender may know about a user."""
    read_books: List[Dict[str, Any]] = field(default_factory=list)
    favorite_genres: List[str] = field(default_factory=list)
    favorite_authors: List[str] = field(default_factory=list)
    owned_open_library_ids: Set[str] = field(default_factory=set)


GENERIC_RECOMMENDATIONS = [
    Recommendation(
        title="The Midnight Library",
        author="Matt Haig",
        genre=["Fiction", "Philosophy"],
        reason="A thought-provoking novel about life choices and infinite possibilities.",
        match_score=85,
    ),
    Recommendation(
        title="Project Hail Mary",
        author="Andy Weir",
        genre=["Science Fiction", "Adventure"],
        reason="A thrilling space adventure with humor and hard science.",
        match_score=90,
    ),
    Recommendation(
        title="Educated",
        author="Tara Westover",
        genre=["Biography", "Memoir"],
        reason="An inspiring memoir about the transformative power of education.",
        match_score=88,
    ),
    Recommendation(
        title="The Seven Husbands of Evelyn Hugo",
        author="Taylor Jenkins Reid",
        genre=["Historical Fiction", "Romance"],
        reason="A captivating, character-driven story about a Hollywood icon's secrets.",
        match_score=87,
    ),
    Recommendation(
        title="Atomic Habits",
        author="James Clear",
        genre=["Self-Help", "Psychology"],
        reason="A practical guide to building good habits and breaking bad ones.",
        match_score=82,
    ),
]


class Recommender(ABC):
    name: str = "base"

    @abstractmethod
    async def recommend(self, profile: ReadingProfile) -> List[Recommendation]:
        """Return up to RECOMMENDATION_COUNT recommendations, raising on upstream failure."""


class StaticRecommender(Recommender):
    name = "static"

    async def recommend(self, profile: ReadingProfile) -> List[Recommendation]:
        return list(GENERIC_RECOMMENDATIONS[:RECOMMENDATION_COUNT])


class OpenLibraryRecommender(Recommender):
    """Subject queries on the genres the user reads, topped up with trending books."""
    name = "openlibrary"

    def __init__(self, client: OpenLibraryClient, per_genre: int = 2, max_genres: int = 3):
        self.client = client
        self.per_genre = per_genre
        self.max_genres = max_genres

    async def recommend(self, profile: ReadingProfile) -> List[Recommendation]:
        genres: List[str] = []
        for book in profile.read_books:
            for genre in book.get('genre') or []:
                if genre.lower() not in genres:
                    genres.append(genre.lower())
        for genre in profile.favorite_genres:
            if genre.lower() not in genres:
                genres.append(genre.lower())

        recommendations: List[Recommendation] = []
        for genre in genres[:self.max_genres]:
            subject = re.sub(r"\s+", "_", genre)
            try:
                result = await self.client.get_books_by_subject(subject, 1, 5)
            except (ExternalSourceError, NotFound) as e:
                logger.warning(f"Subject lookup for {subject} failed: {e}")
                continue

            books = [self.client.transform_book(doc) for doc in result.get('docs', [])]
            books = [b for b in books if b['open_library_id'] not in profile.owned_open_library_ids]
            for book in books[:self.per_genre]:
                recommendations.append(Recommendation(
                    title=book['title'],
                    author=book['author'],
                    genre=book['genres'],
                    reason=f"Recommended based on your interest in {genre}.",
                    match_score=75 + random.randint(0, 19),
                ))

        if len(recommendations) < RECOMMENDATION_COUNT:
            trending = await self.client.get_trending_books(RECOMMENDATION_COUNT - len(recommendations), 1)
            for doc in trending.get('docs', []):
                if len(recommendations) >= RECOMMENDATION_COUNT:
                    break
                book = self.client.transform_book(doc)
                if book['open_library_id'] in profile.owned_open_library_ids:
                    continue
                recommendations.append(Recommendation(
                    title=book['title'],
                    author=book['author'],
                    genre=book['genres'],
                    reason="Popular trending book that many readers are enjoying right now.",
                    match_score=70,
                ))

        if len(recommendations) < RECOMMENDATION_COUNT:
            recommendations.extend(GENERIC_RECOMMENDATIONS[:RECOMMENDATION_COUNT - len(recommendations)])

        return recommendations[:RECOMMENDATION_COUNT]


class HuggingFaceRecommender(Recommender):
    """Asks a hosted instruction model for a JSON array of recommendations."""
    name = "huggingface"

    def __init__(self, api_key: str, model: str, timeout: float = 30.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def build_prompt(self, profile: ReadingProfile) -> str:
        book_list = "\n".join(
            f'- "{b["title"]}" by {b["author"]} (Genre: {", ".join(b.get("genre") or [])}, '
            f'Rating: {b.get("rating") or "N/A"})'
            for b in profile.read_books
        )
        return (
            "Based on the following books that the user has read and enjoyed:\n\n"
            f"{book_list}\n\n"
            f"User's favorite genres: {', '.join(profile.favorite_genres) or 'Not specified'}\n"
            f"User's favorite authors: {', '.join(profile.favorite_authors) or 'Not specified'}\n\n"
            f"Please recommend {RECOMMENDATION_COUNT} books that this user would likely enjoy. "
            "Format your response as a JSON array of objects with the keys "
            '"title", "author", "genre" (list of strings), "reason" and "matchScore" (1-100).'
        )

    async def recommend(self, profile: ReadingProfile) -> List[Recommendation]:
        payload = {
            "inputs": self.build_prompt(profile),
            "parameters": {"max_new_tokens": 500, "temperature": 0.7, "return_full_text": False},
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.post(f"{HUGGINGFACE_API}/{self.model}", json=payload, headers=headers) as response:
                    response.raise_for_status()
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ExternalSourceError(f"Hugging Face request failed: {e}") from e

        text = data[0].get("generated_text", "") if isinstance(data, list) and data else ""
        if not text:
            raise ExternalSourceError("No response from Hugging Face")
        return parse_recommendations(text)


def parse_recommendations(text: str) -> List[Recommendation]:
    """Extract the first JSON array from model output.

    Raises:
        ValueError: If no usable array is present
    """
    match = re.search(r"\[[\s\S]*\]", text)
    if not match:
        raise ValueError("Could not parse recommendations")
    items = json.loads(match.group(0))
    recommendations = []
    for item in items:
        if not isinstance(item, dict) or not item.get("title"):
            continue
        genre = item.get("genre") or []
        recommendations.append(Recommendation(
            title=str(item["title"]),
            author=str(item.get("author") or "Unknown Author"),
            genre=[genre] if isinstance(genre, str) else [str(g) for g in genre],
            reason=str(item.get("reason") or ""),
            match_score=int(item.get("matchScore") or item.get("match_score") or 0),
        ))
    if not recommendations:
        raise ValueError("Model returned no recommendations")
    return recommendations[:RECOMMENDATION_COUNT]


def build_recommender(settings: Settings, client: OpenLibraryClient) -> Recommender:
    """Pick the configured strategy once, at process start."""
    if settings.recommender == "huggingface":
        if settings.huggingface_api_key:
            return HuggingFaceRecommender(settings.huggingface_api_key, settings.huggingface_model)
        logger.warning("HUGGINGFACE_API_KEY is not set, using Open Library recommendations")
    elif settings.recommender == "static":
        return StaticRecommender()
    elif settings.recommender != "openlibrary":
        logger.warning(f"Unknown recommender '{settings.recommender}', using Open Library recommendations")
    return OpenLibraryRecommender(client)


class RecommendationService:
    def __init__(self, session: AsyncSession, recommender: Recommender, client: OpenLibraryClient):
        self.users = UserRepository(session)
        self.favorites = FavoriteRepository(session)
        self.chain: List[Recommender] = [recommender]
        if not isinstance(recommender, (OpenLibraryRecommender, StaticRecommender)):
            self.chain.append(OpenLibraryRecommender(client))
        if not isinstance(recommender, StaticRecommender):
            self.chain.append(StaticRecommender())

    async def build_profile(self, user_id: str) -> ReadingProfile:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFound("User not found")

        favorites = await self.favorites.list_for_user(user_id)
        read_books = [
            {
                'title': f.book.title,
                'author': f.book.author,
                'genre': list(f.book.genres or []),
                'rating': f.rating,
            }
            for f in favorites
            if f.book is not None and f.status in (ReadingStatus.COMPLETED.value, ReadingStatus.READING.value)
        ]
        return ReadingProfile(
            read_books=read_books,
            favorite_genres=list(user.favorite_genres or []),
            favorite_authors=list(user.favorite_authors or []),
            owned_open_library_ids={f.book.open_library_id for f in favorites if f.book and f.book.open_library_id},
        )

    async def get_recommendations(self, user_id: str) -> List[Recommendation]:
        profile = await self.build_profile(user_id)
        for recommender in self.chain:
            try:
                return await recommender.recommend(profile)
            except (ReadingTrackerError, ValueError) as e:
                logger.warning(f"{recommender.name} recommendations failed: {e}")
        # The static strategy cannot fail
        return list(GENERIC_RECOMMENDATIONS)
