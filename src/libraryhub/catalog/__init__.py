"""Catalog module.

Provides functionality for:
- Registering and updating authors
- Adding books and editing their details
- Registering readers and listing their current loans
"""

from .manager import CatalogManager

__all__ = ["CatalogManager"]
