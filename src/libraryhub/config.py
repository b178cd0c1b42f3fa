"""Configuration management for libraryhub.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Borrowing rules
    borrow_days: int
    max_borrowed_books: int
    block_borrow_on_open_notification: bool

    # Overdue sweep
    sweep_interval: float  # seconds

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "LIBRARYHUB_DB_PATH",
            str(Path.home() / ".libraryhub" / "library.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            borrow_days=int(os.environ.get("LIBRARYHUB_BORROW_DAYS", "14")),
            max_borrowed_books=int(
                os.environ.get("LIBRARYHUB_MAX_BORROWED_BOOKS", "3")
            ),
            block_borrow_on_open_notification=(
                os.environ.get("LIBRARYHUB_BLOCK_ON_OPEN_NOTIFICATION", "false")
                .strip()
                .lower()
                in _TRUTHY
            ),
            sweep_interval=float(os.environ.get("LIBRARYHUB_SWEEP_INTERVAL", "3600")),
            log_level=os.environ.get("LIBRARYHUB_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        if self.borrow_days < 1:
            errors.append("LIBRARYHUB_BORROW_DAYS must be at least 1")
        if self.max_borrowed_books < 0:
            errors.append("LIBRARYHUB_MAX_BORROWED_BOOKS cannot be negative")
        if self.sweep_interval <= 0:
            errors.append("LIBRARYHUB_SWEEP_INTERVAL must be positive")
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"Unknown log level: {self.log_level}")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
