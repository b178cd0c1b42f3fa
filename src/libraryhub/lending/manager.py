"""Lending manager for borrow and return operations.

Borrowing follows a fixed order: existence checks, then the reader's capacity,
then the optional open-notification rule, and only then the book's own state
change. Every step runs inside one session, so any failure rolls back and
leaves storage untouched.

Two concurrent borrows of the same book can both see it available. The book
row carries a version counter, so the second write fails with
``ConcurrencyConflictError`` instead of silently overwriting the first.
"""

import logging
from datetime import datetime
from typing import Optional

from ..config import get_config
from ..db.models import Book, utcnow
from ..db.repository import BookRepository, NotificationRepository, ReaderRepository
from ..db.schemas import OverdueBook
from ..db.sqlite import Database, get_db
from ..errors import CapacityExceededError, NotFoundError, NotificationPendingError

logger = logging.getLogger(__name__)


class LendingManager:
    """Manages book loans to readers."""

    def __init__(
        self,
        db: Optional[Database] = None,
        max_borrowed_books: Optional[int] = None,
        borrow_days: Optional[int] = None,
        block_on_open_notification: Optional[bool] = None,
    ):
        """Initialize lending manager.

        Args:
            db: Database instance
            max_borrowed_books: Loan limit per reader (default: from config)
            borrow_days: Default loan length in days (default: from config)
            block_on_open_notification: Refuse to lend a book that still has a
                pending or sent notification (default: from config)
        """
        self.db = db or get_db()
        config = get_config()
        self.max_borrowed_books = (
            config.max_borrowed_books if max_borrowed_books is None else max_borrowed_books
        )
        self.borrow_days = config.borrow_days if borrow_days is None else borrow_days
        self.block_on_open_notification = (
            config.block_borrow_on_open_notification
            if block_on_open_notification is None
            else block_on_open_notification
        )

    def borrow_book(
        self,
        book_id: str,
        reader_id: str,
        duration_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Book:
        """Lend a book to a reader.

        Args:
            book_id: Book to lend
            reader_id: Borrowing reader
            duration_days: Loan length (default: manager's borrow_days)
            now: Borrow time (default: current UTC time)

        Returns:
            The updated book

        Raises:
            NotFoundError: Book or reader does not exist
            CapacityExceededError: Reader is at the loan limit
            NotificationPendingError: Book has an open notification and the
                blocking rule is enabled
            AlreadyBorrowedError: Book is already on loan
            ConcurrencyConflictError: Book was changed by another writer
        """
        with self.db.get_session() as session:
            books = BookRepository(session)
            book = books.get(book_id)
            if not book:
                raise NotFoundError("Book", book_id)

            reader = ReaderRepository(session).get(reader_id)
            if not reader:
                raise NotFoundError("Reader", reader_id)

            if not reader.can_borrow_more_books(self.max_borrowed_books):
                raise CapacityExceededError(reader_id, self.max_borrowed_books)

            if self.block_on_open_notification and NotificationRepository(
                session
            ).has_open_for_book(book_id):
                raise NotificationPendingError(
                    f"Book '{book.title}' has an outstanding return notification"
                )

            book.borrow(
                reader_id,
                duration_days=self.borrow_days if duration_days is None else duration_days,
                now=now,
            )
            books.update(book)

            logger.info(
                "Book '%s' borrowed by reader %s, due %s",
                book.title,
                reader_id,
                book.due_date.isoformat(),
            )
            return book

    def return_book(self, book_id: str, now: Optional[datetime] = None) -> Book:
        """Return a borrowed book.

        Raises:
            NotFoundError: Book does not exist
            NotBorrowedError: Book is not on loan
            ConcurrencyConflictError: Book was changed by another writer
        """
        with self.db.get_session() as session:
            books = BookRepository(session)
            book = books.get(book_id)
            if not book:
                raise NotFoundError("Book", book_id)

            reader_id = book.borrower_id
            book.return_book(now=now)
            books.update(book)

            logger.info("Book '%s' returned by reader %s", book.title, reader_id)
            return book

    def list_overdue_books(self, now: Optional[datetime] = None) -> list[OverdueBook]:
        """Summaries of all overdue loans, oldest due date first."""
        now = now or utcnow()
        with self.db.get_session() as session:
            return [
                OverdueBook(
                    book_id=book.id,
                    title=book.title,
                    reader_id=book.borrower_id,
                    due_date=book.due_date,
                    days_overdue=book.days_overdue(now),
                )
                for book in BookRepository(session).get_overdue_books(now)
            ]
