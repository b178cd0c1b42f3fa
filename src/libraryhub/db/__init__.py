"""Database module for local SQLite storage."""

from .models import (
    DEFAULT_BORROW_DAYS,
    MAX_BORROWED_BOOKS,
    Author,
    Book,
    Notification,
    Reader,
)
from .repository import (
    AuthorRepository,
    BookRepository,
    NotificationRepository,
    ReaderRepository,
)
from .schemas import BookType, NotificationStatus
from .sqlite import Database, get_db, reset_db

__all__ = [
    "DEFAULT_BORROW_DAYS",
    "MAX_BORROWED_BOOKS",
    "Author",
    "Book",
    "Notification",
    "Reader",
    "AuthorRepository",
    "BookRepository",
    "NotificationRepository",
    "ReaderRepository",
    "BookType",
    "NotificationStatus",
    "Database",
    "get_db",
    "reset_db",
]
