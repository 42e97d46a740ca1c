"""Shared pytest fixtures and configuration."""

from collections.abc import Generator
from pathlib import Path

import pytest

from ticketboard.client import LocalStore
from ticketboard.store import Database, TicketStore


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


# Shared fixtures


@pytest.fixture
def database() -> Generator[Database, None, None]:
    """In-memory SQLite database."""
    db = Database()
    yield db
    db.close()


@pytest.fixture
def store(database: Database) -> TicketStore:
    """TicketStore over the in-memory database."""
    return TicketStore(database)


@pytest.fixture
def local_store(tmp_path: Path) -> LocalStore:
    """LocalStore in a temporary directory."""
    return LocalStore(tmp_path / "cache")
