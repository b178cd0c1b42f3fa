"""libraryhub - library catalog, lending and overdue notifications."""

__version__ = "0.1.0"
