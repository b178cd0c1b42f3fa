"""Catalog manager for authors, books and readers."""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from ..db.models import Author, Book, Reader
from ..db.repository import AuthorRepository, BookRepository, ReaderRepository
from ..db.schemas import (
    AuthorCreate,
    AuthorUpdate,
    BookCreate,
    BookUpdate,
    ReaderCreate,
    ReaderUpdate,
)
from ..db.sqlite import Database, get_db
from ..errors import DuplicateError, NotFoundError

logger = logging.getLogger(__name__)


class CatalogManager:
    """Manages the catalog: authors, books and readers."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize catalog manager.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    # -------------------------------------------------------------------------
    # Authors
    # -------------------------------------------------------------------------

    def create_author(self, data: AuthorCreate) -> Author:
        """Create a new author.

        Args:
            data: Author creation data

        Returns:
            Created author
        """
        with self.db.get_session() as session:
            author = Author(
                first_name=data.first_name,
                last_name=data.last_name,
                biography=data.biography,
            )
            AuthorRepository(session).add(author)
            logger.info("Created author %s (%s)", author.full_name, author.id)
            return author

    def get_author(self, author_id: str) -> Optional[Author]:
        """Get an author by ID."""
        with self.db.get_session() as session:
            return AuthorRepository(session).get(author_id)

    def list_authors(self) -> list[Author]:
        """List all authors by last name."""
        with self.db.get_session() as session:
            return AuthorRepository(session).get_all()

    def update_author(self, author_id: str, data: AuthorUpdate) -> Author:
        """Update an author's details.

        Raises:
            NotFoundError: No author with that ID
        """
        with self.db.get_session() as session:
            repo = AuthorRepository(session)
            author = repo.get(author_id)
            if not author:
                raise NotFoundError("Author", author_id)

            changes = data.model_dump(exclude_unset=True)
            author.update_details(
                first_name=changes.get("first_name", author.first_name),
                last_name=changes.get("last_name", author.last_name),
                biography=changes.get("biography", author.biography),
            )
            return repo.update(author)

    # -------------------------------------------------------------------------
    # Books
    # -------------------------------------------------------------------------

    def create_book(self, data: BookCreate) -> Book:
        """Add a book to the catalog.

        Args:
            data: Book creation data

        Returns:
            Created book (available)

        Raises:
            NotFoundError: The author does not exist
            DuplicateError: Another book already has this ISBN
        """
        with self.db.get_session() as session:
            if not AuthorRepository(session).get(data.author_id):
                raise NotFoundError("Author", data.author_id)

            books = BookRepository(session)
            if books.get_by_isbn(data.isbn):
                raise DuplicateError(f"A book with ISBN {data.isbn} already exists")

            book = Book(
                title=data.title,
                isbn=data.isbn,
                book_type=data.book_type,
                published_date=data.published_date,
                author_id=data.author_id,
                description=data.description,
            )
            try:
                books.add(book)
            except IntegrityError as e:
                raise DuplicateError(f"A book with ISBN {data.isbn} already exists") from e

            logger.info("Created book '%s' (%s)", book.title, book.id)
            return book

    def get_book(self, book_id: str) -> Optional[Book]:
        """Get a book by ID."""
        with self.db.get_session() as session:
            return BookRepository(session).get(book_id)

    def get_book_by_isbn(self, isbn: str) -> Optional[Book]:
        """Get a book by ISBN."""
        with self.db.get_session() as session:
            return BookRepository(session).get_by_isbn(isbn)

    def list_books(self) -> list[Book]:
        """List all books by title."""
        with self.db.get_session() as session:
            return BookRepository(session).get_all()

    def list_available_books(self) -> list[Book]:
        """List books that are not on loan."""
        with self.db.get_session() as session:
            return BookRepository(session).get_available_books()

    def update_book(self, book_id: str, data: BookUpdate) -> Book:
        """Update a book's descriptive details.

        Raises:
            NotFoundError: No book with that ID
        """
        with self.db.get_session() as session:
            repo = BookRepository(session)
            book = repo.get(book_id)
            if not book:
                raise NotFoundError("Book", book_id)

            changes = data.model_dump(exclude_unset=True)
            book.update_details(
                title=changes.get("title", book.title),
                description=changes.get("description", book.description),
                book_type=changes.get("book_type") or book.book_type,
                published_date=changes.get("published_date") or book.published_date,
            )
            return repo.update(book)

    # -------------------------------------------------------------------------
    # Readers
    # -------------------------------------------------------------------------

    def create_reader(self, data: ReaderCreate) -> Reader:
        """Register a new reader.

        Raises:
            DuplicateError: The email is already registered
        """
        with self.db.get_session() as session:
            readers = ReaderRepository(session)
            if readers.get_by_email(data.email):
                raise DuplicateError(f"A reader with email {data.email} already exists")

            reader = Reader(
                first_name=data.first_name,
                last_name=data.last_name,
                email=data.email,
                phone=data.phone,
            )
            try:
                readers.add(reader)
            except IntegrityError as e:
                raise DuplicateError(
                    f"A reader with email {data.email} already exists"
                ) from e

            logger.info("Registered reader %s (%s)", reader.full_name, reader.id)
            return reader

    def get_reader(self, reader_id: str) -> Optional[Reader]:
        """Get a reader by ID."""
        with self.db.get_session() as session:
            return ReaderRepository(session).get(reader_id)

    def list_readers(self) -> list[Reader]:
        """List all readers by last name."""
        with self.db.get_session() as session:
            return ReaderRepository(session).get_all()

    def update_reader(self, reader_id: str, data: ReaderUpdate) -> Reader:
        """Update a reader's contact details.

        Raises:
            NotFoundError: No reader with that ID
            DuplicateError: The new email belongs to another reader
        """
        with self.db.get_session() as session:
            repo = ReaderRepository(session)
            reader = repo.get(reader_id)
            if not reader:
                raise NotFoundError("Reader", reader_id)

            changes = data.model_dump(exclude_unset=True)
            new_email = changes.get("email")
            if new_email:
                other = repo.get_by_email(new_email)
                if other and other.id != reader.id:
                    raise DuplicateError(f"A reader with email {new_email} already exists")

            reader.update_details(
                first_name=changes.get("first_name", reader.first_name),
                last_name=changes.get("last_name", reader.last_name),
                email=new_email or reader.email,
                phone=changes.get("phone", reader.phone),
            )
            return repo.update(reader)

    def list_borrowed_books(self, reader_id: str) -> list[Book]:
        """Books currently on loan to a reader.

        Raises:
            NotFoundError: No reader with that ID
        """
        with self.db.get_session() as session:
            if not ReaderRepository(session).get(reader_id):
                raise NotFoundError("Reader", reader_id)
            return BookRepository(session).get_borrowed_by(reader_id)
