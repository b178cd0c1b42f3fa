"""Data seeding module.

Provides functionality for:
- Seeding an empty database with authors, readers and books from CSV files
"""

from .csv_import import CsvSeeder, SeedResult

__all__ = ["CsvSeeder", "SeedResult"]
