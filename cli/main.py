# cli/main.py
import click
from .commands.db import db
from .commands.book import book
from .commands.favorite import favorite

@click.group()
def cli():
    """Reading Tracker CLI"""
    pass

cli.add_command(db)
cli.add_command(book)
cli.add_command(favorite)

def main():
    """Entry point for the CLI"""
    cli()

if __name__ == '__main__':
    main()
