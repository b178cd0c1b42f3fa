"""Repositories: the narrow storage contract used by the managers.

A repository is bound to one session. The caller owns the session (and so the
transaction); repositories only stage and flush changes.
"""

from datetime import datetime
from typing import Generic, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConcurrencyConflictError
from .models import Author, Base, Book, Notification, Reader, utcnow
from .schemas import NotificationStatus

T = TypeVar("T", bound=Base)


class Repository(Generic[T]):
    """Generic CRUD operations for one model."""

    model: type[T]

    def __init__(self, session: Session):
        self.session = session

    def get(self, entity_id: str) -> Optional[T]:
        """Get an entity by primary key."""
        return self.session.get(self.model, entity_id)

    def get_all(self) -> list[T]:
        """Get every entity of this type."""
        stmt = select(self.model)
        return list(self.session.execute(stmt).scalars().all())

    def find(self, *criteria, order_by=None) -> list[T]:
        """Get entities matching all SQLAlchemy criteria.

        Example:
            repo.find(Notification.book_id == book_id)
        """
        stmt = select(self.model).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        return list(self.session.execute(stmt).scalars().all())

    def add(self, entity: T) -> T:
        """Stage a new entity and flush it so constraint errors surface here."""
        self.session.add(entity)
        self.session.flush()
        return entity

    def add_all(self, entities: list[T]) -> list[T]:
        """Stage several new entities with a single flush."""
        self.session.add_all(entities)
        self.session.flush()
        return entities

    def update(self, entity: T) -> T:
        """Flush changes to an entity.

        Raises:
            ConcurrencyConflictError: Another writer changed the row first
        """
        # A failed flush leaves the session unusable, so read the id first
        entity_id = entity.id
        self.session.add(entity)
        try:
            self.session.flush()
        except StaleDataError as e:
            raise ConcurrencyConflictError(
                f"{self.model.__name__} {entity_id} was modified concurrently"
            ) from e
        return entity

    def delete(self, entity: T) -> None:
        """Delete an entity."""
        self.session.delete(entity)
        self.session.flush()


class AuthorRepository(Repository[Author]):
    model = Author

    def get_all(self) -> list[Author]:
        stmt = select(Author).order_by(Author.last_name, Author.first_name)
        return list(self.session.execute(stmt).scalars().all())

    def get_by_name(self, first_name: str, last_name: str) -> Optional[Author]:
        """Case-insensitive lookup by full name."""
        stmt = select(Author).where(
            func.lower(Author.first_name) == first_name.lower(),
            func.lower(Author.last_name) == last_name.lower(),
        )
        return self.session.execute(stmt).scalars().first()

    def exists_any(self) -> bool:
        return self.session.execute(select(Author.id).limit(1)).first() is not None


class BookRepository(Repository[Book]):
    model = Book

    def get_all(self) -> list[Book]:
        stmt = select(Book).order_by(Book.title)
        return list(self.session.execute(stmt).scalars().all())

    def get_by_isbn(self, isbn: str) -> Optional[Book]:
        stmt = select(Book).where(Book.isbn == isbn)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_available_books(self) -> list[Book]:
        """Books nobody has borrowed."""
        stmt = select(Book).where(Book.borrower_id.is_(None)).order_by(Book.title)
        return list(self.session.execute(stmt).scalars().all())

    def get_borrowed_by(self, reader_id: str) -> list[Book]:
        """Books currently on loan to a reader."""
        stmt = (
            select(Book)
            .where(Book.borrower_id == reader_id)
            .order_by(Book.borrowed_at)
        )
        return list(self.session.execute(stmt).scalars().all())

    def get_overdue_books(self, now: Optional[datetime] = None) -> list[Book]:
        """Books on loan whose due date is strictly before ``now``."""
        now = now or utcnow()
        stmt = (
            select(Book)
            .where(
                Book.borrower_id.isnot(None),
                Book.due_date.isnot(None),
                Book.due_date < now,
            )
            .order_by(Book.due_date)
        )
        return list(self.session.execute(stmt).scalars().all())


class ReaderRepository(Repository[Reader]):
    model = Reader

    def get_all(self) -> list[Reader]:
        stmt = select(Reader).order_by(Reader.last_name, Reader.first_name)
        return list(self.session.execute(stmt).scalars().all())

    def get_by_email(self, email: str) -> Optional[Reader]:
        stmt = select(Reader).where(func.lower(Reader.email) == email.lower())
        return self.session.execute(stmt).scalars().first()


class NotificationRepository(Repository[Notification]):
    model = Notification

    def get_all(self) -> list[Notification]:
        stmt = select(Notification).order_by(Notification.created_at)
        return list(self.session.execute(stmt).scalars().all())

    def find_for_loan(self, book_id: str, reader_id: str) -> list[Notification]:
        """Notifications for a (book, reader) pair, in any status."""
        return self.find(
            Notification.book_id == book_id,
            Notification.reader_id == reader_id,
        )

    def has_open_for_book(self, book_id: str) -> bool:
        """True if a pending or sent notification references the book."""
        stmt = (
            select(Notification.id)
            .where(
                Notification.book_id == book_id,
                Notification.status.in_(
                    [NotificationStatus.PENDING.value, NotificationStatus.SENT.value]
                ),
            )
            .limit(1)
        )
        return self.session.execute(stmt).first() is not None
