"""Tests for CatalogManager."""

from datetime import date

import pytest
from pydantic import ValidationError as SchemaValidationError

from libraryhub.catalog import CatalogManager
from libraryhub.db.schemas import (
    AuthorCreate,
    AuthorUpdate,
    BookCreate,
    BookType,
    BookUpdate,
    ReaderCreate,
    ReaderUpdate,
)
from libraryhub.errors import DuplicateError, NotFoundError


class TestAuthors:
    """Tests for author management."""

    def test_create_author(self, catalog: CatalogManager):
        author = catalog.create_author(
            AuthorCreate(first_name="Ursula", last_name="Le Guin")
        )

        assert author.id is not None
        assert author.full_name == "Ursula Le Guin"
        assert catalog.get_author(author.id).last_name == "Le Guin"

    def test_list_authors_sorted_by_last_name(self, catalog: CatalogManager):
        catalog.create_author(AuthorCreate(first_name="Isaac", last_name="Asimov"))
        catalog.create_author(AuthorCreate(first_name="Octavia", last_name="Butler"))
        catalog.create_author(AuthorCreate(first_name="Arthur", last_name="Clarke"))

        assert [a.last_name for a in catalog.list_authors()] == [
            "Asimov",
            "Butler",
            "Clarke",
        ]

    def test_update_author_partial(self, catalog: CatalogManager, author):
        updated = catalog.update_author(author.id, AuthorUpdate(biography="Updated"))

        assert updated.biography == "Updated"
        assert updated.first_name == "Frank"

    def test_update_missing_author(self, catalog: CatalogManager):
        with pytest.raises(NotFoundError):
            catalog.update_author("missing", AuthorUpdate(biography="x"))

    def test_blank_name_rejected_by_schema(self):
        with pytest.raises(SchemaValidationError):
            AuthorCreate(first_name="   ", last_name="Le Guin")


class TestBooks:
    """Tests for book management."""

    def test_create_book_is_available(self, catalog: CatalogManager, author):
        book = catalog.create_book(
            BookCreate(
                title="Dune",
                isbn="9780441172719",
                book_type=BookType.NOVEL,
                published_date=date(1965, 8, 1),
                author_id=author.id,
                description="Desert planet.",
            )
        )

        stored = catalog.get_book(book.id)
        assert stored.title == "Dune"
        assert stored.book_type == "novel"
        assert stored.is_available()
        assert stored.version_id == 1

    def test_create_book_unknown_author(self, catalog: CatalogManager):
        with pytest.raises(NotFoundError) as exc_info:
            catalog.create_book(
                BookCreate(
                    title="Dune",
                    isbn="9780441172719",
                    published_date=date(1965, 8, 1),
                    author_id="missing",
                )
            )
        assert exc_info.value.entity == "Author"

    def test_duplicate_isbn(self, catalog: CatalogManager, author, book):
        with pytest.raises(DuplicateError):
            catalog.create_book(
                BookCreate(
                    title="Dune Again",
                    isbn=book.isbn,
                    published_date=date(1965, 8, 1),
                    author_id=author.id,
                )
            )
        assert len(catalog.list_books()) == 1

    def test_get_book_by_isbn(self, catalog: CatalogManager, book):
        assert catalog.get_book_by_isbn(book.isbn).id == book.id
        assert catalog.get_book_by_isbn("0000") is None

    def test_list_available_books(self, catalog, make_book, reader, lending):
        lent = make_book("Lent")
        make_book("Shelved")
        lending.borrow_book(lent.id, reader.id)

        assert [b.title for b in catalog.list_books()] == ["Lent", "Shelved"]
        assert [b.title for b in catalog.list_available_books()] == ["Shelved"]

    def test_update_book_keeps_loan(self, catalog, book, reader, lending):
        lending.borrow_book(book.id, reader.id)

        updated = catalog.update_book(
            book.id, BookUpdate(title="Dune Messiah", book_type=BookType.COMIC)
        )

        assert updated.title == "Dune Messiah"
        assert updated.book_type == "comic"
        assert updated.borrower_id == reader.id
        assert updated.published_date == date(1965, 8, 1)

    def test_update_missing_book(self, catalog: CatalogManager):
        with pytest.raises(NotFoundError):
            catalog.update_book("missing", BookUpdate(title="x"))

    def test_description_length_limit(self, author):
        with pytest.raises(SchemaValidationError):
            BookCreate(
                title="Dune",
                isbn="9780441172719",
                published_date=date(1965, 8, 1),
                author_id=author.id,
                description="x" * 1001,
            )


class TestReaders:
    """Tests for reader management."""

    def test_create_reader(self, catalog: CatalogManager):
        reader = catalog.create_reader(
            ReaderCreate(
                first_name="Ada", last_name="Lovelace", email="ada@example.com"
            )
        )

        assert reader.full_name == "Ada Lovelace"
        assert catalog.get_reader(reader.id).email == "ada@example.com"

    def test_duplicate_email_case_insensitive(self, catalog: CatalogManager):
        catalog.create_reader(
            ReaderCreate(first_name="Ada", last_name="Lovelace", email="ada@example.com")
        )

        with pytest.raises(DuplicateError):
            catalog.create_reader(
                ReaderCreate(first_name="A", last_name="L", email="ADA@example.com")
            )

    def test_update_reader(self, catalog: CatalogManager, reader):
        updated = catalog.update_reader(reader.id, ReaderUpdate(phone="555-0199"))

        assert updated.phone == "555-0199"
        assert updated.email == reader.email

    def test_update_reader_email_taken(self, catalog: CatalogManager, make_reader):
        first = make_reader()
        second = make_reader("Grace", "Hopper")

        with pytest.raises(DuplicateError):
            catalog.update_reader(second.id, ReaderUpdate(email=first.email))

    def test_update_reader_same_email(self, catalog: CatalogManager, reader):
        updated = catalog.update_reader(
            reader.id, ReaderUpdate(email=reader.email, last_name="King")
        )
        assert updated.last_name == "King"

    def test_list_borrowed_books(self, catalog, make_book, reader, lending):
        first = make_book("First")
        make_book("Second")
        lending.borrow_book(first.id, reader.id)

        assert [b.title for b in catalog.list_borrowed_books(reader.id)] == ["First"]

    def test_list_borrowed_books_unknown_reader(self, catalog: CatalogManager):
        with pytest.raises(NotFoundError):
            catalog.list_borrowed_books("missing")

    def test_list_readers(self, catalog: CatalogManager, make_reader):
        make_reader("Grace", "Hopper")
        make_reader("Ada", "Lovelace")

        assert [r.last_name for r in catalog.list_readers()] == ["Hopper", "Lovelace"]
