"""SQLAlchemy ORM models for the library database.

Tables:
- authors: Book authors
- books: Catalog entries; a book row also carries its current loan
- readers: Library members
- notifications: Overdue-return notifications sent to readers

The entity methods enforce the borrowing invariants in memory and never touch
the session; persisting a change is the caller's job.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union
from uuid import uuid4

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, validates

from ..errors import (
    AlreadyBorrowedError,
    AlreadySentError,
    DomainStateError,
    NotBorrowedError,
    ValidationError,
)
from .schemas import BookType, NotificationStatus

# Business rules
MAX_BORROWED_BOOKS = 3
DEFAULT_BORROW_DAYS = 14


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


def utcnow() -> datetime:
    """Current UTC time as a naive datetime.

    All timestamps are stored as naive UTC so that SQLite comparisons and
    in-memory comparisons agree.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _require_text(field: str, value: Optional[str]) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(field)
    return value


class Author(Base):
    """Author model - writers of catalog books."""

    __tablename__ = "authors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    biography: Mapped[Optional[str]] = mapped_column(Text)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    books: Mapped[list["Book"]] = relationship("Book", back_populates="author")

    def __init__(
        self,
        first_name: str,
        last_name: str,
        biography: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(
            first_name=first_name, last_name=last_name, biography=biography, **kwargs
        )

    def __repr__(self) -> str:
        return f"<Author(id={self.id}, name='{self.full_name}')>"

    @validates("first_name", "last_name")
    def _validate_name(self, key: str, value: str) -> str:
        return _require_text(key, value)

    @property
    def full_name(self) -> str:
        """First and last name joined."""
        return f"{self.first_name} {self.last_name}"

    def update_details(
        self, first_name: str, last_name: str, biography: Optional[str]
    ) -> None:
        """Replace the author's descriptive fields."""
        self.first_name = first_name
        self.last_name = last_name
        self.biography = biography
        self.updated_at = utcnow()


class Book(Base):
    """Book model - a catalog entry and its current loan.

    ``borrower_id``, ``borrowed_at`` and ``due_date`` are either all set
    (the book is on loan) or all None (the book is available).
    """

    __tablename__ = "books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # Core fields
    title: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    isbn: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    book_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookType.NOVEL.value
    )
    published_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(1000))

    author_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("authors.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Current loan
    borrower_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("readers.id", ondelete="RESTRICT"),
        index=True,
    )
    borrowed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime, index=True)

    # Optimistic concurrency: a write against a stale row raises StaleDataError
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    author: Mapped["Author"] = relationship("Author", back_populates="books")
    notifications: Mapped[list["Notification"]] = relationship(
        "Notification", back_populates="book", cascade="all, delete-orphan"
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __init__(
        self,
        title: str,
        isbn: str,
        book_type: Union[BookType, str],
        published_date: date,
        author_id: str,
        description: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(
            title=title,
            isbn=isbn,
            book_type=BookType(book_type).value,
            published_date=published_date,
            author_id=author_id,
            description=description,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', borrower={self.borrower_id})>"

    @validates("title", "isbn")
    def _validate_text(self, key: str, value: str) -> str:
        return _require_text(key, value)

    # -------------------------------------------------------------------------
    # Borrowing
    # -------------------------------------------------------------------------

    def is_available(self) -> bool:
        """A book is available when nobody has borrowed it."""
        return self.borrower_id is None

    def borrow(
        self,
        reader_id: str,
        duration_days: int = DEFAULT_BORROW_DAYS,
        now: Optional[datetime] = None,
    ) -> None:
        """Lend the book to a reader.

        Args:
            reader_id: Borrowing reader's ID
            duration_days: Loan length; the due date is ``now + duration_days``
            now: Borrow time (default: current UTC time)

        Raises:
            AlreadyBorrowedError: The book is already on loan
            ValidationError: Empty reader ID or non-positive duration
        """
        if not self.is_available():
            raise AlreadyBorrowedError(f"Book '{self.title}' is already borrowed")
        _require_text("reader_id", reader_id)
        if duration_days < 1:
            raise ValidationError("duration_days", "Borrow duration must be at least 1 day")

        now = now or utcnow()
        self.borrower_id = reader_id
        self.borrowed_at = now
        self.due_date = now + timedelta(days=duration_days)
        self.updated_at = now

    def return_book(self, now: Optional[datetime] = None) -> None:
        """Bring a borrowed book back into circulation.

        Raises:
            NotBorrowedError: The book is not on loan
        """
        if self.is_available():
            raise NotBorrowedError(f"Book '{self.title}' is not currently borrowed")

        self.borrower_id = None
        self.borrowed_at = None
        self.due_date = None
        self.updated_at = now or utcnow()

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        """True when the due date has strictly passed."""
        if self.due_date is None:
            return False
        return self.due_date < (now or utcnow())

    def days_overdue(self, now: Optional[datetime] = None) -> int:
        """Whole days past the due date (0 if not overdue)."""
        now = now or utcnow()
        if not self.is_overdue(now):
            return 0
        return (now - self.due_date).days

    def update_details(
        self,
        title: str,
        description: Optional[str],
        book_type: Union[BookType, str],
        published_date: date,
    ) -> None:
        """Replace descriptive fields. The loan state is left alone."""
        self.title = title
        self.description = description
        self.book_type = BookType(book_type).value
        self.published_date = published_date
        self.updated_at = utcnow()


class Reader(Base):
    """Reader model - library members who borrow books.

    ``borrowed_books`` is derived from ``Book.borrower_id``; it is a read-only
    view and is never written through.
    """

    __tablename__ = "readers"

    MAX_BORROWED_BOOKS = MAX_BORROWED_BOOKS

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    borrowed_books: Mapped[list["Book"]] = relationship(
        "Book", viewonly=True, order_by="Book.borrowed_at"
    )
    notifications: Mapped[list["Notification"]] = relationship(
        "Notification", back_populates="reader", cascade="all, delete-orphan"
    )

    def __init__(
        self,
        first_name: str,
        last_name: str,
        email: str,
        phone: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(
            first_name=first_name, last_name=last_name, email=email, phone=phone, **kwargs
        )

    def __repr__(self) -> str:
        return f"<Reader(id={self.id}, name='{self.full_name}')>"

    @validates("first_name", "last_name", "email")
    def _validate_text(self, key: str, value: str) -> str:
        return _require_text(key, value)

    @property
    def full_name(self) -> str:
        """First and last name joined."""
        return f"{self.first_name} {self.last_name}"

    @property
    def borrowed_count(self) -> int:
        """Number of books currently on loan to this reader."""
        return len(self.borrowed_books)

    def can_borrow_more_books(self, max_borrowed: int = MAX_BORROWED_BOOKS) -> bool:
        """Check whether the reader is below the loan limit."""
        return self.borrowed_count < max_borrowed

    def available_borrow_slots(self, max_borrowed: int = MAX_BORROWED_BOOKS) -> int:
        """Remaining loans before the limit is reached."""
        return max(0, max_borrowed - self.borrowed_count)

    def update_details(
        self, first_name: str, last_name: str, email: str, phone: Optional[str]
    ) -> None:
        """Replace the reader's contact details."""
        self.first_name = first_name
        self.last_name = last_name
        self.email = email
        self.phone = phone
        self.updated_at = utcnow()


class Notification(Base):
    """Notification model - an overdue-return reminder for one loan.

    ``sent_at`` is set exactly while the status is ``sent``.
    """

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    reader_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("readers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    book_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=NotificationStatus.PENDING.value, index=True
    )
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    book: Mapped["Book"] = relationship("Book", back_populates="notifications")
    reader: Mapped["Reader"] = relationship("Reader", back_populates="notifications")

    def __init__(self, reader_id: str, book_id: str, message: str, **kwargs):
        super().__init__(
            reader_id=reader_id,
            book_id=book_id,
            message=message,
            status=NotificationStatus.PENDING.value,
            sent_at=None,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, book_id={self.book_id}, status={self.status})>"

    @validates("message")
    def _validate_message(self, key: str, value: str) -> str:
        return _require_text(key, value)

    @property
    def is_pending(self) -> bool:
        return self.status == NotificationStatus.PENDING.value

    @property
    def is_open(self) -> bool:
        """Pending or sent: the reminder still stands."""
        return self.status in (
            NotificationStatus.PENDING.value,
            NotificationStatus.SENT.value,
        )

    def mark_as_sent(self, now: Optional[datetime] = None) -> None:
        """Record delivery of the notification.

        Raises:
            AlreadySentError: The notification was already sent
            DomainStateError: The notification was dismissed
        """
        if self.status == NotificationStatus.SENT.value:
            raise AlreadySentError("Notification has already been sent")
        if self.status == NotificationStatus.DISMISSED.value:
            raise DomainStateError("A dismissed notification cannot be sent")

        now = now or utcnow()
        self.status = NotificationStatus.SENT.value
        self.sent_at = now
        self.updated_at = now

    def dismiss(self, now: Optional[datetime] = None) -> None:
        """Dismiss the notification. Safe to call in any state."""
        self.status = NotificationStatus.DISMISSED.value
        self.sent_at = None
        self.updated_at = now or utcnow()
