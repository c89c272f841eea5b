import pytest
from click.testing import CliRunner

from cli.main import cli
from core.config import get_settings


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at a throwaway database"""
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test_cli.db'}")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_init_db(runner, cli_env):
    result = runner.invoke(cli, ['db', 'init', '--drop'])

    assert result.exit_code == 0
    assert "Initialized database" in result.output


def test_seed_is_repeatable(runner, cli_env):
    first = runner.invoke(cli, ['db', 'seed'])
    assert first.exit_code == 0
    assert "Created: 10 books" in first.output

    second = runner.invoke(cli, ['db', 'seed'])
    assert "Created: 0 books" in second.output
    assert "Skipped: 10 books already in the catalog" in second.output


def test_favorite_list_empty(runner, cli_env):
    result = runner.invoke(cli, ['favorite', 'list', '--user-id', 'f' * 32])

    assert result.exit_code == 0
    assert "No favorites found" in result.output


def test_progress_for_missing_favorite(runner, cli_env):
    result = runner.invoke(cli, ['favorite', 'progress', 'a' * 32, '--user-id', 'f' * 32, '--page', '10'])

    assert result.exit_code == 1


def test_show_missing_book(runner, cli_env):
    result = runner.invoke(cli, ['book', 'show', '0' * 32])

    assert result.exit_code == 1
