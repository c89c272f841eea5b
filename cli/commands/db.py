import click
from core.config import get_settings
from core.sa.database import Database
from core.seed import seed_catalog
from ..utils import run_async

@click.group()
def db():
    """Database commands"""
    pass

@db.command('init')
@click.option('--drop/--no-drop', default=False, help='Drop all tables before creating them')
def init_db(drop: bool):
    """Create the database schema

    Example:
        reading-tracker db init
        reading-tracker db init --drop  # Start from an empty database
    """
    async def _init():
        database = Database()
        try:
            if drop:
                await database.drop_db()
            await database.init_db()
        finally:
            await database.dispose()

    run_async(_init())
    click.echo(click.style("Initialized database at ", fg='blue') +
              click.style(get_settings().database_url, fg='cyan'))

@db.command()
def seed():
    """Insert the sample catalog, skipping books whose ISBN is already present"""
    async def _seed():
        database = Database()
        try:
            await database.init_db()
            async with database.get_db() as session:
                return await seed_catalog(session)
        finally:
            await database.dispose()

    created, skipped = run_async(_seed())
    click.echo(click.style("Created: ", fg='blue') + click.style(str(created), fg='green') +
              click.style(" books", fg='blue'))
    if skipped:
        click.echo(click.style("Skipped: ", fg='blue') + click.style(str(skipped), fg='yellow') +
                  click.style(" books already in the catalog", fg='blue'))
