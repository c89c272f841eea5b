import asyncio
import click
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from core.clients.open_library import OpenLibraryClient
from core.config import get_settings
from core.sa.database import Database
from core.sa.models import Book, Favorite
from core.utils.logging import setup_logging


def run_async(coro: Awaitable[Any]) -> Any:
    """Run a coroutine to completion from a synchronous Click command"""
    setup_logging(get_settings().log_level)
    return asyncio.run(coro)


@asynccontextmanager
async def open_workspace() -> AsyncIterator[Tuple[Database, AsyncSession, OpenLibraryClient]]:
    """Database, session and Open Library client for the duration of a command"""
    db = Database()
    await db.init_db()
    client = OpenLibraryClient()
    try:
        async with db.get_db() as session:
            yield db, session, client
    finally:
        await client.close()
        await db.dispose()


def print_book(book: Book) -> None:
    """Print the catalog fields of a book"""
    click.echo(click.style(book.title, fg='green', bold=True) +
              click.style(f" by {book.author}", fg='blue'))
    click.echo(click.style("  ID: ", fg='blue') + click.style(book.id, fg='cyan'))
    if book.open_library_id:
        click.echo(click.style("  Open Library: ", fg='blue') + click.style(book.open_library_id, fg='cyan'))
    if book.isbn:
        click.echo(click.style("  ISBN: ", fg='blue') + book.isbn)
    if book.published_year:
        click.echo(click.style("  Published: ", fg='blue') + str(book.published_year))
    click.echo(click.style("  Pages: ", fg='blue') + (str(book.page_count) if book.page_count else 'unknown'))
    if book.genres:
        click.echo(click.style("  Genre(s): ", fg='blue') + ', '.join(book.genres))


def print_favorite(favorite: Favorite) -> None:
    """Print one line per favorite with its reading progress"""
    progress = favorite.reading_progress
    colors = {'completed': 'green', 'reading': 'yellow', 'dropped': 'red'}
    title = favorite.book.title if favorite.book is not None else favorite.book_id
    click.echo(click.style(f"[{favorite.status}]", fg=colors.get(favorite.status, 'blue')) + " " +
              click.style(title, bold=True) + " " +
              click.style(f"{progress.current_page}/{progress.total_pages} ({progress.progress_percentage}%)", fg='cyan') +
              click.style(f"  {favorite.id}", dim=True))


def echo_error(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg='red'), err=True)
