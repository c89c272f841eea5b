import click
from typing import Optional
from core.errors import ReadingTrackerError
from core.sa.models import ReadingStatus
from core.services.favorite_service import FavoriteService
from ..utils import echo_error, open_workspace, print_favorite, run_async

STATUS_CHOICES = click.Choice([s.value for s in ReadingStatus])

@click.group()
def favorite():
    """Favorites and reading progress"""
    pass

@favorite.command()
@click.argument('book_ref')
@click.option('--user-id', required=True, help='Owner of the favorite')
@click.option('--status', type=STATUS_CHOICES, default=None, help='Initial reading status')
@click.option('--rating', type=click.IntRange(1, 5), default=None, help='Rating from 1 to 5')
def add(book_ref: str, user_id: str, status: Optional[str], rating: Optional[int]):
    """Add a book to a user's favorites

    Example:
        reading-tracker favorite add OL893415W --user-id <id>
    """
    async def _add():
        async with open_workspace() as (_, session, client):
            return await FavoriteService(session, client).create_favorite(user_id, book_ref, status=status, rating=rating)

    try:
        created = run_async(_add())
    except ReadingTrackerError as e:
        echo_error(str(e))
        raise SystemExit(1)

    print_favorite(created)

@favorite.command('list')
@click.option('--user-id', required=True, help='Owner of the favorites')
@click.option('--status', type=STATUS_CHOICES, default=None, help='Only favorites with this status')
def list_favorites(user_id: str, status: Optional[str]):
    """List a user's favorites, most recently added first"""
    async def _list():
        async with open_workspace() as (_, session, client):
            return await FavoriteService(session, client).get_favorites(user_id, status)

    try:
        favorites = run_async(_list())
    except ReadingTrackerError as e:
        echo_error(str(e))
        raise SystemExit(1)

    if not favorites:
        click.echo(click.style("No favorites found", fg='yellow'))
        return
    for item in favorites:
        print_favorite(item)

@favorite.command()
@click.argument('favorite_id')
@click.option('--user-id', required=True, help='Owner of the favorite')
@click.option('--page', type=int, required=True, help='Page the user has reached')
def progress(favorite_id: str, user_id: str, page: int):
    """Record reading progress for a favorite"""
    async def _progress():
        async with open_workspace() as (_, session, client):
            return await FavoriteService(session, client).update_progress(favorite_id, user_id, page)

    try:
        updated = run_async(_progress())
    except ReadingTrackerError as e:
        echo_error(str(e))
        raise SystemExit(1)

    print_favorite(updated)
