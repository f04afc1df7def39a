"""Tests for the command-line entry point."""
import asyncio
import pytest
from unittest.mock import patch

from bookmark_search.bookmarks_store import SqliteBookmarkStore
from bookmark_search.config import Config, HttpConfig
from bookmark_search.main import main


@pytest.fixture
def config(db_path, monkeypatch):
    config = Config(http=HttpConfig(), db_path=db_path)
    monkeypatch.setattr("bookmark_search.config._config", config)
    return config


def test_import_command(config, sample_bookmarks_path):
    main(["import", "--bookmarks", str(sample_bookmarks_path)])

    async def hostnames():
        store = SqliteBookmarkStore(config.db_path)
        await store.initialize()
        try:
            return await store.distinct_hostnames()
        finally:
            await store.close()

    assert len(asyncio.run(hostnames())) == 5


def test_http_command(config):
    with patch("bookmark_search.http_app.run") as run:
        main(["http"])
    run.assert_called_once_with(config)


def test_rejects_unknown_command(config):
    with pytest.raises(SystemExit):
        main(["serve"])
