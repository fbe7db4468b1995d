"""Shared fixtures."""

from collections.abc import Iterator
from pathlib import Path

import pytest

from epubspoon.config import AppConfig
from epubspoon.library import Library
from epubspoon.storage.database import initialize_database


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "db" / "test.db"
    initialize_database(path)
    return path


@pytest.fixture
def config(db_path: Path) -> AppConfig:
    config = AppConfig()
    config.storage.sqlite_path = str(db_path)
    config.sync.enabled = False
    return config


@pytest.fixture
def library(config: AppConfig) -> Iterator[Library]:
    lib = Library(config)
    yield lib
    lib.close()
