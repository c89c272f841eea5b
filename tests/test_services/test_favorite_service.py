import asyncio
import pytest
from sqlalchemy import select, func

from core.errors import AlreadyExists, ExternalSourceError, NotFound, ValidationError
from core.sa.models import Book, Favorite, ReadingStatus
from core.services.favorite_service import FavoriteService


@pytest.fixture
def service(db_session, mock_client):
    return FavoriteService(db_session, mock_client)


@pytest.mark.asyncio
async def test_create_favorite_defaults(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id)

    assert favorite.status == ReadingStatus.WANT_TO_READ.value
    assert favorite.rating is None
    assert favorite.completed_at is None
    assert favorite.reading_progress.current_page == 0
    assert favorite.reading_progress.total_pages == 320
    assert favorite.reading_progress.progress_percentage == 0
    assert favorite.book.title == "Atomic Habits"


@pytest.mark.asyncio
async def test_create_favorite_from_open_library(service, mock_client, sample_user, other_user, db_session):
    mock_client.get_edition_page_counts.return_value = [688]

    first = await service.create_favorite(sample_user.id, "OL893415W", rating=5)
    second = await service.create_favorite(other_user.id, "/works/OL893415W")

    assert first.book.open_library_id == "OL893415W"
    assert first.book_id == second.book_id
    assert first.reading_progress.total_pages == 688
    assert (await db_session.execute(select(func.count(Book.id)))).scalar_one() == 1


@pytest.mark.asyncio
async def test_create_favorite_for_unknown_user(service, sample_book):
    with pytest.raises(NotFound):
        await service.create_favorite("f" * 32, sample_book.id)


@pytest.mark.asyncio
async def test_create_favorite_for_unknown_book(service, sample_user):
    with pytest.raises(NotFound):
        await service.create_favorite(sample_user.id, "a" * 32)


@pytest.mark.asyncio
async def test_create_favorite_twice(service, sample_user, sample_book):
    await service.create_favorite(sample_user.id, sample_book.id)

    with pytest.raises(AlreadyExists):
        await service.create_favorite(sample_user.id, sample_book.id)


@pytest.mark.asyncio
@pytest.mark.parametrize("kwargs", [
    {"rating": 6},
    {"rating": 0},
    {"rating": 4.5},
    {"status": "finished"},
    {"status": ["reading"]},
    {"status": {"reading": True}},
    {"status": 1},
    {"notes": "x" * 1001},
    {"review": "x" * 2001},
])
async def test_create_favorite_rejects_bad_input(service, sample_user, sample_book, kwargs):
    with pytest.raises(ValidationError):
        await service.create_favorite(sample_user.id, sample_book.id, **kwargs)


@pytest.mark.asyncio
async def test_create_completed_favorite_stamps_completion(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id, status="completed", rating=4)

    assert favorite.status == ReadingStatus.COMPLETED.value
    assert favorite.completed_at is not None


@pytest.mark.asyncio
async def test_unknown_page_count_uses_placeholder_total(service, sample_user, unpaged_book):
    favorite = await service.create_favorite(sample_user.id, unpaged_book.id)

    assert favorite.reading_progress.total_pages == 1
    assert favorite.reading_progress.progress_percentage == 0


@pytest.mark.asyncio
async def test_legacy_pages_used_when_page_count_missing(service, db_session, sample_user):
    book = Book(title="Old Record", author="Someone", pages=250)
    db_session.add(book)
    await db_session.commit()

    favorite = await service.create_favorite(sample_user.id, book.id)

    assert favorite.reading_progress.total_pages == 250


@pytest.mark.asyncio
async def test_progress_moves_want_to_read_to_reading(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id)

    updated = await service.update_progress(favorite.id, sample_user.id, 160)

    assert updated.status == ReadingStatus.READING.value
    assert updated.reading_progress.current_page == 160
    assert updated.reading_progress.progress_percentage == 50
    assert updated.reading_progress.last_updated is not None
    assert updated.completed_at is None


@pytest.mark.asyncio
async def test_page_zero_does_not_start_reading(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id)

    updated = await service.update_progress(favorite.id, sample_user.id, 0)

    assert updated.status == ReadingStatus.WANT_TO_READ.value


@pytest.mark.asyncio
async def test_reaching_last_page_completes(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id, status="reading")

    updated = await service.update_progress(favorite.id, sample_user.id, 320)

    assert updated.status == ReadingStatus.COMPLETED.value
    assert updated.reading_progress.progress_percentage == 100
    assert updated.completed_at is not None


@pytest.mark.asyncio
async def test_completion_is_never_undone(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id, status="reading")
    completed = await service.update_progress(favorite.id, sample_user.id, 320)

    rewound = await service.update_progress(favorite.id, sample_user.id, 10)

    assert rewound.status == ReadingStatus.COMPLETED.value
    assert rewound.reading_progress.progress_percentage == 3
    assert rewound.completed_at == completed.completed_at


@pytest.mark.asyncio
async def test_dropped_favorite_is_not_completed_by_progress(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id, status="dropped")

    updated = await service.update_progress(favorite.id, sample_user.id, 320)

    assert updated.status == ReadingStatus.DROPPED.value
    assert updated.completed_at is None


@pytest.mark.asyncio
async def test_update_progress_is_idempotent(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id)

    first = await service.update_progress(favorite.id, sample_user.id, 107)
    first_state = (first.status, first.reading_progress.progress_percentage)
    second = await service.update_progress(favorite.id, sample_user.id, 107)

    assert (second.status, second.reading_progress.progress_percentage) == first_state
    assert first_state == (ReadingStatus.READING.value, 33)


@pytest.mark.asyncio
async def test_placeholder_total_does_not_complete(service, sample_user, unpaged_book):
    favorite = await service.create_favorite(sample_user.id, unpaged_book.id)

    updated = await service.update_progress(favorite.id, sample_user.id, 1)

    assert updated.reading_progress.progress_percentage == 100
    assert updated.status == ReadingStatus.READING.value
    assert updated.completed_at is None


@pytest.mark.asyncio
async def test_progress_follows_later_page_count(service, db_session, sample_user, unpaged_book):
    favorite = await service.create_favorite(sample_user.id, unpaged_book.id)
    await service.update_progress(favorite.id, sample_user.id, 1)

    unpaged_book.page_count = 320
    await db_session.commit()

    updated = await service.update_progress(favorite.id, sample_user.id, 160)

    assert updated.reading_progress.total_pages == 320
    assert updated.reading_progress.progress_percentage == 50


@pytest.mark.asyncio
async def test_update_progress_rejects_negative_page(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id)

    with pytest.raises(ValidationError):
        await service.update_progress(favorite.id, sample_user.id, -1)


@pytest.mark.asyncio
async def test_favorites_are_private(service, sample_user, other_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id)

    with pytest.raises(NotFound):
        await service.get_favorite(favorite.id, other_user.id)
    with pytest.raises(NotFound):
        await service.update_progress(favorite.id, other_user.id, 10)
    with pytest.raises(NotFound):
        await service.update_favorite(favorite.id, other_user.id, {"rating": 2})
    assert await service.delete_favorite(favorite.id, other_user.id) is False


@pytest.mark.asyncio
async def test_invalid_rating_leaves_favorite_unchanged(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id, rating=3)

    with pytest.raises(ValidationError):
        await service.update_favorite(favorite.id, sample_user.id, {"rating": 6})

    reloaded = await service.get_favorite(favorite.id, sample_user.id)
    assert reloaded.rating == 3


@pytest.mark.asyncio
async def test_update_favorite_is_partial(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id, rating=3, notes="Chapter 2 stands out")

    updated = await service.update_favorite(favorite.id, sample_user.id, {"review": "Practical."})

    assert updated.review == "Practical."
    assert updated.rating == 3
    assert updated.notes == "Chapter 2 stands out"


@pytest.mark.asyncio
async def test_update_favorite_can_clear_rating(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id, rating=3)

    updated = await service.update_favorite(favorite.id, sample_user.id, {"rating": None})

    assert updated.rating is None


@pytest.mark.asyncio
async def test_update_favorite_rejects_progress_fields(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id)

    with pytest.raises(ValidationError):
        await service.update_favorite(favorite.id, sample_user.id, {"total_pages": 10})


@pytest.mark.asyncio
async def test_update_favorite_resyncs_total(service, db_session, sample_user, unpaged_book):
    favorite = await service.create_favorite(sample_user.id, unpaged_book.id)
    unpaged_book.page_count = 200
    await db_session.commit()

    updated = await service.update_favorite(favorite.id, sample_user.id, {"notes": "Short read"})

    assert updated.reading_progress.total_pages == 200


@pytest.mark.asyncio
async def test_completed_at_is_set_once(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id)

    completed = await service.update_favorite(favorite.id, sample_user.id, {"status": "completed"})
    assert completed.completed_at is not None

    await service.update_favorite(favorite.id, sample_user.id, {"status": "reading"})
    again = await service.update_favorite(favorite.id, sample_user.id, {"status": "completed"})

    assert again.completed_at == completed.completed_at


@pytest.mark.asyncio
async def test_delete_favorite_twice(service, sample_user, sample_book):
    favorite = await service.create_favorite(sample_user.id, sample_book.id)

    assert await service.delete_favorite(favorite.id, sample_user.id) is True
    assert await service.delete_favorite(favorite.id, sample_user.id) is False


@pytest.mark.asyncio
async def test_get_favorites_filters_by_status(service, sample_user, sample_book, unpaged_book):
    await service.create_favorite(sample_user.id, sample_book.id, status="reading")
    await service.create_favorite(sample_user.id, unpaged_book.id)

    assert len(await service.get_favorites(sample_user.id)) == 2
    reading = await service.get_favorites(sample_user.id, "reading")
    assert [f.book_id for f in reading] == [sample_book.id]

    with pytest.raises(ValidationError):
        await service.get_favorites(sample_user.id, "finished")


@pytest.mark.asyncio
async def test_get_favorites_backfills_page_count(service, mock_client, sample_user):
    favorite = await service.create_favorite(sample_user.id, "OL893415W")
    assert favorite.reading_progress.total_pages == 1

    mock_client.get_edition_page_counts.return_value = [320]
    favorites = await service.get_favorites(sample_user.id)

    assert favorites[0].book.page_count == 320
    assert favorites[0].reading_progress.total_pages == 320
    stored = await service.get_favorite(favorite.id, sample_user.id)
    assert stored.reading_progress.total_pages == 320


@pytest.mark.asyncio
async def test_get_favorites_ignores_backfill_failures(service, mock_client, sample_user):
    await service.create_favorite(sample_user.id, "OL893415W")

    mock_client.get_work_details.side_effect = ExternalSourceError("timed out", external_id="OL893415W")
    favorites = await service.get_favorites(sample_user.id)

    assert len(favorites) == 1
    assert favorites[0].reading_progress.total_pages == 1


@pytest.mark.asyncio
async def test_get_favorites_backfills_despite_malformed_author_reference(service, mock_client, sample_user, dune_work):
    # Setup
    await service.create_favorite(sample_user.id, "OL893415W")
    mock_client.get_work_details.return_value = {
        **dune_work,
        "authors": [{"author": "/authors/OL79034A"}],
        "number_of_pages_median": 604,
    }

    # Execute
    favorites = await service.get_favorites(sample_user.id)

    # Verify
    assert len(favorites) == 1
    assert favorites[0].book.page_count == 604
    assert favorites[0].reading_progress.total_pages == 604


@pytest.mark.asyncio
async def test_get_favorites_ignores_non_object_work_record(service, mock_client, sample_user):
    await service.create_favorite(sample_user.id, "OL893415W")

    mock_client.get_work_details.return_value = ["not", "a", "work"]
    favorites = await service.get_favorites(sample_user.id)

    assert len(favorites) == 1
    assert favorites[0].reading_progress.total_pages == 1


@pytest.mark.asyncio
async def test_get_favorites_skips_lookup_for_local_books(service, mock_client, sample_user, unpaged_book):
    await service.create_favorite(sample_user.id, unpaged_book.id)

    await service.get_favorites(sample_user.id)

    mock_client.get_work_details.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_statistics(service, db_session, sample_user, sample_book, unpaged_book):
    dune = Book(title="Dune", author="Frank Herbert", genres=["Science Fiction"], page_count=688)
    db_session.add(dune)
    await db_session.commit()

    habits = await service.create_favorite(sample_user.id, sample_book.id, status="reading", rating=5)
    await service.update_progress(habits.id, sample_user.id, 320)
    await service.create_favorite(sample_user.id, unpaged_book.id, status="reading", rating=4)
    await service.create_favorite(sample_user.id, dune.id)

    stats = await service.get_statistics(sample_user.id)

    assert stats['total'] == 3
    assert stats['completed'] == 1
    assert stats['reading'] == 1
    assert stats['want_to_read'] == 1
    assert stats['dropped'] == 0
    assert stats['average_rating'] == 4.5
    assert stats['total_pages_read'] == 320
    assert stats['genre_distribution'] == {"Self-Help": 1, "Psychology": 1, "Mystery": 1, "Science Fiction": 1}


def _gated_work_details(dune_work):
    """Hold every caller until two have asked for the work."""
    arrived = []
    both_arrived = asyncio.Event()

    async def work_details(work_id):
        arrived.append(work_id)
        if len(arrived) == 2:
            both_arrived.set()
        await asyncio.wait_for(both_arrived.wait(), timeout=5)
        return dict(dune_work)

    return work_details


@pytest.mark.asyncio
async def test_concurrent_creates_share_one_book(database, mock_client, dune_work, sample_user, other_user):
    mock_client.get_work_details.side_effect = _gated_work_details(dune_work)

    async def create(user_id):
        async with database.get_db() as session:
            favorite = await FavoriteService(session, mock_client).create_favorite(user_id, "OL893415W")
            return favorite.book_id

    first, second = await asyncio.gather(create(sample_user.id), create(other_user.id))

    assert first == second
    async with database.get_db() as session:
        assert (await session.execute(select(func.count(Book.id)))).scalar_one() == 1
        assert (await session.execute(select(func.count(Favorite.id)))).scalar_one() == 2


@pytest.mark.asyncio
async def test_concurrent_duplicate_create(database, mock_client, dune_work, sample_user):
    mock_client.get_work_details.side_effect = _gated_work_details(dune_work)

    async def create():
        async with database.get_db() as session:
            return await FavoriteService(session, mock_client).create_favorite(sample_user.id, "OL893415W")

    results = await asyncio.gather(create(), create(), return_exceptions=True)

    errors = [r for r in results if isinstance(r, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], AlreadyExists)
    async with database.get_db() as session:
        assert (await session.execute(select(func.count(Favorite.id)))).scalar_one() == 1
