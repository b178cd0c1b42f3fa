"""Pydantic schemas for data validation.

These schemas define the payloads accepted by the catalog, lending and
notification managers and the shapes they report back.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class BookType(str, Enum):
    """Kind of publication."""

    NOVEL = "novel"
    COMIC = "comic"
    MANGA = "manga"
    NEWSPAPER = "newspaper"


class NotificationStatus(str, Enum):
    """Lifecycle state of a return notification."""

    PENDING = "pending"
    SENT = "sent"
    DISMISSED = "dismissed"


def _not_blank(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("must not be blank")
    return value


# ============================================================================
# Author Schemas
# ============================================================================


class AuthorCreate(BaseModel):
    """Schema for creating an author."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    biography: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def names_not_blank(cls, v):
        """Reject whitespace-only names."""
        return _not_blank(v)


class AuthorUpdate(BaseModel):
    """Schema for updating an author. Only set fields are applied."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    biography: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def names_not_blank(cls, v):
        """Reject whitespace-only names."""
        return _not_blank(v)


# ============================================================================
# Book Schemas
# ============================================================================


class BookCreate(BaseModel):
    """Schema for creating a book."""

    title: str = Field(..., min_length=1, max_length=200)
    isbn: str = Field(..., min_length=1, max_length=20)
    book_type: BookType = BookType.NOVEL
    published_date: date
    author_id: str
    description: Optional[str] = Field(None, max_length=1000)

    @field_validator("title", "isbn")
    @classmethod
    def text_not_blank(cls, v):
        """Reject whitespace-only values."""
        return _not_blank(v)


class BookUpdate(BaseModel):
    """Schema for updating book details (never the loan state)."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    book_type: Optional[BookType] = None
    published_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v):
        """Reject a whitespace-only title."""
        return _not_blank(v)


class OverdueBook(BaseModel):
    """Summary of an overdue loan for reporting."""

    book_id: str
    title: str
    reader_id: str
    due_date: datetime
    days_overdue: int


# ============================================================================
# Reader Schemas
# ============================================================================


class ReaderCreate(BaseModel):
    """Schema for creating a reader."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)

    @field_validator("first_name", "last_name", "email")
    @classmethod
    def text_not_blank(cls, v):
        """Reject whitespace-only values."""
        return _not_blank(v)


class ReaderUpdate(BaseModel):
    """Schema for updating a reader."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)

    @field_validator("first_name", "last_name", "email")
    @classmethod
    def text_not_blank(cls, v):
        """Reject whitespace-only values."""
        return _not_blank(v)

