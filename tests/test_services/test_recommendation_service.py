import pytest
from unittest.mock import AsyncMock, patch

from core.config import Settings
from core.errors import ExternalSourceError, NotFound
from core.sa.models import Favorite, ReadingStatus
from core.progress import initialize
from core.services.recommendation_service import (
    GENERIC_RECOMMENDATIONS,
    HuggingFaceRecommender,
    OpenLibraryRecommender,
    ReadingProfile,
    Recommendation,
    RecommendationService,
    StaticRecommender,
    build_recommender,
    parse_recommendations,
)


def subject_doc(key, title, author="Someone"):
    return {"key": f"/works/{key}", "title": title, "authors": [{"key": "/authors/OL1A", "name": author}],
            "subject": ["Fantasy"]}


def test_parse_recommendations():
    text = (
        'Here are some picks:\n'
        '[{"title": "Piranesi", "author": "Susanna Clarke", "genre": "Fantasy", '
        '"reason": "Dreamlike.", "matchScore": 91}, {"author": "No title"}]'
    )

    recommendations = parse_recommendations(text)

    assert recommendations == [
        Recommendation(title="Piranesi", author="Susanna Clarke", genre=["Fantasy"], reason="Dreamlike.", match_score=91)
    ]


def test_parse_recommendations_without_array():
    with pytest.raises(ValueError):
        parse_recommendations("I cannot help with that.")


def test_build_recommender(mock_client):
    assert isinstance(build_recommender(Settings(recommender="static"), mock_client), StaticRecommender)
    assert isinstance(build_recommender(Settings(recommender="openlibrary"), mock_client), OpenLibraryRecommender)
    # No key configured
    assert isinstance(build_recommender(Settings(recommender="huggingface"), mock_client), OpenLibraryRecommender)
    hf = build_recommender(Settings(recommender="huggingface", huggingface_api_key="hf_test"), mock_client)
    assert isinstance(hf, HuggingFaceRecommender)


def test_huggingface_prompt_lists_read_books():
    recommender = HuggingFaceRecommender("hf_test", "some/model")
    profile = ReadingProfile(
        read_books=[{"title": "Dune", "author": "Frank Herbert", "genre": ["Science Fiction"], "rating": 5}],
        favorite_genres=["Fantasy"],
    )

    prompt = recommender.build_prompt(profile)

    assert '"Dune" by Frank Herbert' in prompt
    assert "Rating: 5" in prompt
    assert "User's favorite genres: Fantasy" in prompt
    assert "User's favorite authors: Not specified" in prompt


@pytest.mark.asyncio
async def test_static_recommender():
    assert await StaticRecommender().recommend(ReadingProfile()) == GENERIC_RECOMMENDATIONS


@pytest.mark.asyncio
async def test_open_library_recommender_skips_owned_books(mock_client):
    mock_client.get_books_by_subject.return_value = {
        "docs": [subject_doc("OL1W", "Owned"), subject_doc("OL2W", "Fresh"), subject_doc("OL3W", "Also fresh")],
        "numFound": 3,
    }
    mock_client.get_trending_books.return_value = {"docs": [subject_doc("OL4W", "Trending")], "numFound": 1}
    profile = ReadingProfile(
        read_books=[{"title": "Owned", "author": "Someone", "genre": ["Fantasy"], "rating": None}],
        owned_open_library_ids={"OL1W"},
    )

    recommendations = await OpenLibraryRecommender(mock_client).recommend(profile)

    titles = [r.title for r in recommendations]
    assert titles[:3] == ["Fresh", "Also fresh", "Trending"]
    assert "Owned" not in titles
    assert len(recommendations) == 5
    mock_client.get_books_by_subject.assert_awaited_once_with("fantasy", 1, 5)


@pytest.mark.asyncio
async def test_service_requires_known_user(db_session, mock_client):
    service = RecommendationService(db_session, StaticRecommender(), mock_client)

    with pytest.raises(NotFound):
        await service.get_recommendations("f" * 32)


@pytest.mark.asyncio
async def test_service_profile_uses_read_books(db_session, mock_client, sample_user, sample_book, unpaged_book):
    db_session.add_all([
        Favorite(user_id=sample_user.id, book_id=sample_book.id, status=ReadingStatus.COMPLETED.value,
                 rating=5, reading_progress=initialize(320)),
        Favorite(user_id=sample_user.id, book_id=unpaged_book.id, reading_progress=initialize(1)),
    ])
    await db_session.commit()
    service = RecommendationService(db_session, StaticRecommender(), mock_client)

    profile = await service.build_profile(sample_user.id)

    assert [b['title'] for b in profile.read_books] == ["Atomic Habits"]
    assert profile.read_books[0]['rating'] == 5
    assert profile.favorite_genres == ["Fantasy"]


@pytest.mark.asyncio
async def test_service_falls_back_when_upstream_fails(db_session, mock_client, sample_user):
    failing = HuggingFaceRecommender("hf_test", "some/model")
    mock_client.get_trending_books.side_effect = ExternalSourceError("down")
    service = RecommendationService(db_session, failing, mock_client)

    with patch.object(HuggingFaceRecommender, 'recommend', AsyncMock(side_effect=ExternalSourceError("down"))):
        recommendations = await service.get_recommendations(sample_user.id)

    assert recommendations == GENERIC_RECOMMENDATIONS
