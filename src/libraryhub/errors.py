"""Error taxonomy for library operations.

Entity methods and managers raise these at the point of violation. Callers
(the CLI, request handlers) decide how to present them.
"""

from typing import Optional


class LibraryError(Exception):
    """Base class for all library errors."""

    pass


class ValidationError(LibraryError, ValueError):
    """A required field is empty or otherwise invalid."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"{field} cannot be empty")


class NotFoundError(LibraryError):
    """A referenced entity does not exist in storage."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with ID {entity_id} not found")


class DuplicateError(LibraryError):
    """A unique field (ISBN, email) is already taken."""

    pass


class DomainStateError(LibraryError):
    """An operation is illegal in the entity's current state."""

    pass


class AlreadyBorrowedError(DomainStateError):
    """Borrow was called on a book that is not available."""

    pass


class NotBorrowedError(DomainStateError):
    """Return was called on a book that is available."""

    pass


class AlreadySentError(DomainStateError):
    """A notification was marked as sent twice."""

    pass


class CapacityExceededError(DomainStateError):
    """The reader already holds the maximum number of books."""

    def __init__(self, reader_id: str, limit: int):
        self.reader_id = reader_id
        self.limit = limit
        super().__init__(
            f"Reader has reached the maximum limit of {limit} borrowed books"
        )


class NotificationPendingError(DomainStateError):
    """The book still has an open return notification."""

    pass


class ConcurrencyConflictError(LibraryError):
    """The row was changed by another writer since it was loaded."""

    pass
