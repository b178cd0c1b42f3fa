"""Tests for the repositories and optimistic concurrency on books."""

from datetime import datetime, timedelta

import pytest

from libraryhub.catalog import CatalogManager
from libraryhub.db.models import Notification
from libraryhub.db.repository import (
    AuthorRepository,
    BookRepository,
    NotificationRepository,
)
from libraryhub.db.schemas import AuthorCreate, BookCreate, ReaderCreate
from libraryhub.db.sqlite import Database
from libraryhub.errors import ConcurrencyConflictError

NOW = datetime(2025, 3, 10, 12, 0, 0)


class TestBookRepository:
    """Tests for book queries."""

    def test_get_by_isbn(self, db, book):
        with db.get_session() as session:
            found = BookRepository(session).get_by_isbn(book.isbn)
            assert found.id == book.id

    def test_get_missing_returns_none(self, db):
        with db.get_session() as session:
            assert BookRepository(session).get("nonexistent-id") is None

    def test_available_and_borrowed(self, db, make_book, reader, lending):
        on_loan = make_book("On Loan")
        on_shelf = make_book("On Shelf")
        lending.borrow_book(on_loan.id, reader.id, now=NOW)

        with db.get_session() as session:
            repo = BookRepository(session)
            assert [b.id for b in repo.get_available_books()] == [on_shelf.id]
            assert [b.id for b in repo.get_borrowed_by(reader.id)] == [on_loan.id]

    def test_overdue_query_uses_strict_comparison(self, db, make_book, reader, lending):
        late = make_book("Late")
        due_now = make_book("Due Now")
        on_time = make_book("On Time")
        lending.borrow_book(late.id, reader.id, duration_days=1, now=NOW - timedelta(days=5))
        lending.borrow_book(due_now.id, reader.id, duration_days=1, now=NOW - timedelta(days=1))
        lending.borrow_book(on_time.id, reader.id, duration_days=7, now=NOW)

        with db.get_session() as session:
            overdue = BookRepository(session).get_overdue_books(NOW)
            assert [b.id for b in overdue] == [late.id]

    def test_overdue_ordered_by_due_date(self, db, make_book, make_reader, lending):
        first_reader = make_reader()
        second_reader = make_reader("Grace", "Hopper")
        newer = make_book("Newer")
        older = make_book("Older")
        lending.borrow_book(newer.id, first_reader.id, duration_days=1, now=NOW - timedelta(days=3))
        lending.borrow_book(older.id, second_reader.id, duration_days=1, now=NOW - timedelta(days=9))

        with db.get_session() as session:
            overdue = BookRepository(session).get_overdue_books(NOW)
            assert [b.title for b in overdue] == ["Older", "Newer"]

    def test_returned_book_is_not_overdue(self, db, book, reader, lending):
        lending.borrow_book(book.id, reader.id, duration_days=1, now=NOW - timedelta(days=5))
        lending.return_book(book.id)

        with db.get_session() as session:
            assert BookRepository(session).get_overdue_books(NOW) == []


class TestNotificationRepository:
    """Tests for notification lookups."""

    def _add(self, db, book, reader, status=None):
        with db.get_session() as session:
            notification = Notification(
                reader_id=reader.id, book_id=book.id, message="Please return it"
            )
            if status == "sent":
                notification.mark_as_sent(now=NOW)
            elif status == "dismissed":
                notification.dismiss(now=NOW)
            return NotificationRepository(session).add(notification)

    def test_find_for_loan_matches_any_status(self, db, book, reader):
        self._add(db, book, reader, status="dismissed")

        with db.get_session() as session:
            found = NotificationRepository(session).find_for_loan(book.id, reader.id)
            assert len(found) == 1

    def test_find_for_loan_is_per_reader(self, db, book, make_reader):
        first = make_reader()
        second = make_reader("Grace", "Hopper")
        self._add(db, book, first)

        with db.get_session() as session:
            repo = NotificationRepository(session)
            assert repo.find_for_loan(book.id, second.id) == []

    @pytest.mark.parametrize(
        "status,expected",
        [(None, True), ("sent", True), ("dismissed", False)],
    )
    def test_has_open_for_book(self, db, book, reader, status, expected):
        self._add(db, book, reader, status=status)

        with db.get_session() as session:
            assert NotificationRepository(session).has_open_for_book(book.id) is expected


class TestAuthorRepository:
    """Tests for author lookups."""

    def test_get_by_name_is_case_insensitive(self, db, author):
        with db.get_session() as session:
            found = AuthorRepository(session).get_by_name("frank", "HERBERT")
            assert found.id == author.id

    def test_exists_any(self, db):
        with db.get_session() as session:
            assert not AuthorRepository(session).exists_any()


class TestConcurrentBorrow:
    """Two writers borrowing the same book from stale reads."""

    @pytest.fixture
    def file_db(self, tmp_path) -> Database:
        database = Database(str(tmp_path / "concurrent.db"))
        database.create_tables()
        return database

    def test_second_writer_gets_conflict(self, file_db):
        catalog = CatalogManager(file_db)
        author = catalog.create_author(AuthorCreate(first_name="Frank", last_name="Herbert"))
        book = catalog.create_book(
            BookCreate(
                title="Dune",
                isbn="9780441172719",
                published_date="1965-08-01",
                author_id=author.id,
            )
        )
        first_reader = catalog.create_reader(
            ReaderCreate(first_name="Ada", last_name="Lovelace", email="ada@example.com")
        )
        second_reader = catalog.create_reader(
            ReaderCreate(first_name="Grace", last_name="Hopper", email="grace@example.com")
        )

        first = file_db.SessionLocal()
        second = file_db.SessionLocal()
        try:
            first_copy = BookRepository(first).get(book.id)
            second_copy = BookRepository(second).get(book.id)

            first_copy.borrow(first_reader.id, now=NOW)
            BookRepository(first).update(first_copy)
            first.commit()

            second_copy.borrow(second_reader.id, now=NOW)
            with pytest.raises(ConcurrencyConflictError) as exc_info:
                BookRepository(second).update(second_copy)
            assert book.id in str(exc_info.value)
            second.rollback()
        finally:
            first.close()
            second.close()

        stored = catalog.get_book(book.id)
        assert stored.borrower_id == first_reader.id
