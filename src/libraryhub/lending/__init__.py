"""Book lending module.

Provides functionality for:
- Lending books to readers within their loan limit
- Returning borrowed books
- Reporting overdue loans
"""

from .manager import LendingManager

__all__ = ["LendingManager"]
