import click
from core.errors import ReadingTrackerError
from core.resolvers.book_creator import BookCreator
from ..utils import echo_error, open_workspace, print_book, run_async

@click.group()
def book():
    """Book related commands"""
    pass

@book.command('import')
@click.argument('book_ref')
def import_book(book_ref: str):
    """Materialize a book from Open Library into the catalog

    Example:
        reading-tracker book import OL893415W  # Dune
        reading-tracker book import /works/OL27448W
    """
    async def _import():
        async with open_workspace() as (_, session, client):
            return await BookCreator(session, client).resolve(book_ref)

    try:
        book_obj = run_async(_import())
    except ReadingTrackerError as e:
        echo_error(str(e))
        raise SystemExit(1)

    click.echo("Book in catalog:")
    print_book(book_obj)

@book.command()
@click.argument('book_ref')
@click.option('--refresh/--no-refresh', default=False, help='Look the page count up again in Open Library')
def show(book_ref: str, refresh: bool):
    """Show a catalog book by internal ID or Open Library work ID"""
    async def _show():
        async with open_workspace() as (_, session, client):
            creator = BookCreator(session, client)
            book_obj = await creator.resolve(book_ref)
            if refresh:
                await creator.refresh_page_count(book_obj)
            return book_obj

    try:
        book_obj = run_async(_show())
    except ReadingTrackerError as e:
        echo_error(str(e))
        raise SystemExit(1)

    print_book(book_obj)
