"""CSV seeder for an empty library.

Reads three files from one directory:

- ``authors.csv``: first_name, last_name, biography
- ``readers.csv``: first_name, last_name, email, phone
- ``books.csv``: title, isbn, book_type, published_date, author, description

Books name their author by full name ("First Last"), matched case-insensitively
against the authors seeded (or already stored). Seeding only runs against a
database with no authors; otherwise it is skipped entirely.
"""

import csv
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import ValidationError as SchemaValidationError

from ..db.models import Author, Book, Reader
from ..db.repository import AuthorRepository, BookRepository, ReaderRepository
from ..db.schemas import AuthorCreate, BookCreate, ReaderCreate
from ..db.sqlite import Database, get_db
from ..errors import LibraryError

logger = logging.getLogger(__name__)

AUTHORS_FILE = "authors.csv"
READERS_FILE = "readers.csv"
BOOKS_FILE = "books.csv"

REQUIRED_COLUMNS = {
    AUTHORS_FILE: ["first_name", "last_name"],
    READERS_FILE: ["first_name", "last_name", "email"],
    BOOKS_FILE: ["title", "isbn", "published_date", "author"],
}


@dataclass
class SeedResult:
    """Result of a seeding run."""

    success: bool = False
    source_dir: Optional[Path] = None
    already_seeded: bool = False
    authors: int = 0
    readers: int = 0
    books: int = 0
    errors: int = 0
    error_messages: list[str] = field(default_factory=list)

    @property
    def summary(self) -> str:
        """Get summary string."""
        if self.already_seeded:
            return "Database already seeded, nothing imported"
        return (
            f"Authors: {self.authors}, "
            f"Readers: {self.readers}, "
            f"Books: {self.books}, "
            f"Errors: {self.errors}"
        )

    def add_error(self, message: str) -> None:
        self.errors += 1
        self.error_messages.append(message)


class CsvSeeder:
    """Seeds the catalog from a directory of CSV files."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize seeder.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    def validate_directory(self, directory: Path) -> tuple[bool, Optional[str]]:
        """Check that the directory holds the expected files and columns.

        Args:
            directory: Directory containing the CSV files

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not directory.exists():
            return False, f"Directory not found: {directory}"
        if not directory.is_dir():
            return False, f"Not a directory: {directory}"

        for filename, required in REQUIRED_COLUMNS.items():
            file_path = directory / filename
            if not file_path.exists():
                return False, f"{filename} not found in {directory}"
            try:
                with open(file_path, "r", encoding="utf-8-sig") as f:
                    columns = csv.DictReader(f).fieldnames or []
            except (OSError, csv.Error) as e:
                return False, f"Error reading {filename}: {e}"

            missing = [c for c in required if c not in columns]
            if missing:
                return False, f"{filename} is missing columns: {', '.join(missing)}"

        return True, None

    def seed_directory(self, directory: Path) -> SeedResult:
        """Seed authors, readers and books from ``directory``.

        Rows that fail validation are reported in the result and skipped;
        the remaining rows are still imported.

        Args:
            directory: Directory containing the CSV files

        Returns:
            SeedResult with counts and error messages
        """
        directory = Path(directory)
        result = SeedResult(source_dir=directory)

        is_valid, error = self.validate_directory(directory)
        if not is_valid:
            result.error_messages.append(f"Invalid seed directory: {error}")
            return result

        with self.db.get_session() as session:
            authors = AuthorRepository(session)
            if authors.exists_any():
                logger.info("Database already seeded. Skipping...")
                result.already_seeded = True
                result.success = True
                return result

            self._seed_authors(authors, directory / AUTHORS_FILE, result)
            logger.info("Seeded %d authors", result.authors)

            self._seed_readers(
                ReaderRepository(session), directory / READERS_FILE, result
            )
            logger.info("Seeded %d readers", result.readers)

            self._seed_books(
                BookRepository(session), authors, directory / BOOKS_FILE, result
            )
            logger.info("Seeded %d books", result.books)

        result.success = True
        logger.info("Database seeding completed. %s", result.summary)
        return result

    # -------------------------------------------------------------------------
    # Per-file seeding
    # -------------------------------------------------------------------------

    def _seed_authors(
        self, repo: AuthorRepository, file_path: Path, result: SeedResult
    ) -> None:
        for line, row in self._read_rows(file_path):
            try:
                data = AuthorCreate(
                    first_name=self._get_field(row, "first_name", ""),
                    last_name=self._get_field(row, "last_name", ""),
                    biography=self._get_field(row, "biography"),
                )
            except SchemaValidationError as e:
                result.add_error(self._row_error(file_path, line, e))
                continue

            repo.add(
                Author(
                    first_name=data.first_name,
                    last_name=data.last_name,
                    biography=data.biography,
                )
            )
            result.authors += 1

    def _seed_readers(
        self, repo: ReaderRepository, file_path: Path, result: SeedResult
    ) -> None:
        for line, row in self._read_rows(file_path):
            try:
                data = ReaderCreate(
                    first_name=self._get_field(row, "first_name", ""),
                    last_name=self._get_field(row, "last_name", ""),
                    email=self._get_field(row, "email", ""),
                    phone=self._get_field(row, "phone"),
                )
            except SchemaValidationError as e:
                result.add_error(self._row_error(file_path, line, e))
                continue

            if repo.get_by_email(data.email):
                result.add_error(
                    self._row_error(file_path, line, f"duplicate email {data.email}")
                )
                continue

            repo.add(
                Reader(
                    first_name=data.first_name,
                    last_name=data.last_name,
                    email=data.email,
                    phone=data.phone,
                )
            )
            result.readers += 1

    def _seed_books(
        self,
        repo: BookRepository,
        authors: AuthorRepository,
        file_path: Path,
        result: SeedResult,
    ) -> None:
        authors_by_name = {a.full_name.lower(): a for a in authors.get_all()}

        for line, row in self._read_rows(file_path):
            author_name = self._get_field(row, "author", "")
            author = authors_by_name.get(author_name.lower())
            if author is None:
                result.add_error(
                    self._row_error(file_path, line, f"unknown author '{author_name}'")
                )
                continue

            try:
                data = BookCreate(
                    title=self._get_field(row, "title", ""),
                    isbn=self._get_field(row, "isbn", ""),
                    book_type=(self._get_field(row, "book_type") or "novel").lower(),
                    published_date=self._parse_date(
                        self._get_field(row, "published_date")
                    ),
                    author_id=author.id,
                    description=self._get_field(row, "description"),
                )
            except (SchemaValidationError, ValueError) as e:
                result.add_error(self._row_error(file_path, line, e))
                continue

            if repo.get_by_isbn(data.isbn):
                result.add_error(
                    self._row_error(file_path, line, f"duplicate ISBN {data.isbn}")
                )
                continue

            try:
                repo.add(
                    Book(
                        title=data.title,
                        isbn=data.isbn,
                        book_type=data.book_type,
                        published_date=data.published_date,
                        author_id=data.author_id,
                        description=data.description,
                    )
                )
            except LibraryError as e:
                result.add_error(self._row_error(file_path, line, e))
                continue
            result.books += 1

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _read_rows(self, file_path: Path) -> list[tuple[int, dict]]:
        """Read a CSV file into (line number, row) pairs."""
        with open(file_path, "r", encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            # Line 1 is the header
            return [(index, row) for index, row in enumerate(reader, start=2)]

    def _get_field(
        self,
        row: dict,
        field_name: str,
        default: Optional[str] = None,
    ) -> Optional[str]:
        """Get a stripped field value from a row."""
        value = row.get(field_name, default)
        if value is not None:
            value = str(value).strip()
            return value if value else default
        return default

    def _parse_date(self, value: Optional[str]) -> date:
        """Parse an ISO date (YYYY-MM-DD)."""
        if not value:
            raise ValueError("published_date is required")
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise ValueError(f"invalid published_date '{value}'") from None

    def _row_error(self, file_path: Path, line: int, error) -> str:
        return f"{file_path.name} line {line}: {error}"
