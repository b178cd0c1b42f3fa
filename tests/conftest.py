"""Pytest configuration and shared fixtures.

This module provides fixtures for testing the libraryhub application:
an in-memory database, managers bound to it, and sample catalog data.
"""

import logging
from datetime import date
from pathlib import Path

import pytest

from libraryhub.catalog import CatalogManager
from libraryhub.config import reset_config
from libraryhub.db.models import Author, Book, Reader
from libraryhub.db.schemas import AuthorCreate, BookCreate, BookType, ReaderCreate
from libraryhub.db.sqlite import Database, reset_db
from libraryhub.lending import LendingManager

LIBRARYHUB_ENV_VARS = [
    "LIBRARYHUB_DB_PATH",
    "LIBRARYHUB_SWEEP_INTERVAL",
    "LIBRARYHUB_BORROW_DAYS",
    "LIBRARYHUB_MAX_BORROWED_BOOKS",
    "LIBRARYHUB_BLOCK_ON_OPEN_NOTIFICATION",
    "LIBRARYHUB_LOG_LEVEL",
]


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path: Path):
    """Give every test a clean config and a throwaway database path."""
    for name in LIBRARYHUB_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LIBRARYHUB_DB_PATH", str(tmp_path / "library.db"))
    reset_config()
    reset_db()

    yield

    reset_config()
    reset_db()
    # The CLI installs a stream handler bound to the runner's output
    package_logger = logging.getLogger("libraryhub")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def db() -> Database:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    return database


@pytest.fixture
def catalog(db: Database) -> CatalogManager:
    """Create a CatalogManager with test database."""
    return CatalogManager(db)


@pytest.fixture
def lending(db: Database) -> LendingManager:
    """Create a LendingManager with test database and default rules."""
    return LendingManager(db)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def author(catalog: CatalogManager) -> Author:
    """Create and return an author."""
    return catalog.create_author(
        AuthorCreate(first_name="Frank", last_name="Herbert", biography="Wrote Dune.")
    )


@pytest.fixture
def make_book(catalog: CatalogManager, author: Author):
    """Factory creating books with unique ISBNs."""
    counter = {"n": 0}

    def _make_book(title: str = "Dune", book_type: BookType = BookType.NOVEL) -> Book:
        counter["n"] += 1
        return catalog.create_book(
            BookCreate(
                title=title,
                isbn=f"978000000{counter['n']:04d}",
                book_type=book_type,
                published_date=date(1965, 8, 1),
                author_id=author.id,
            )
        )

    return _make_book


@pytest.fixture
def book(make_book) -> Book:
    """Create and return an available book."""
    return make_book("Dune")


@pytest.fixture
def make_reader(catalog: CatalogManager):
    """Factory creating readers with unique emails."""
    counter = {"n": 0}

    def _make_reader(first_name: str = "Ada", last_name: str = "Lovelace") -> Reader:
        counter["n"] += 1
        return catalog.create_reader(
            ReaderCreate(
                first_name=first_name,
                last_name=last_name,
                email=f"reader{counter['n']}@example.com",
                phone="555-0100",
            )
        )

    return _make_reader


@pytest.fixture
def reader(make_reader) -> Reader:
    """Create and return a reader."""
    return make_reader()
