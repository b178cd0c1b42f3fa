"""Overdue-return notifications module.

Provides functionality for:
- Periodic detection of overdue loans
- One notification per overdue (book, reader) pair
- Marking notifications as sent, dismissing and deleting them
"""

from .manager import NotificationManager
from .sweep import (
    OverdueSweep,
    OverdueSweepScheduler,
    SweepResult,
    build_overdue_message,
)

__all__ = [
    "NotificationManager",
    "OverdueSweep",
    "OverdueSweepScheduler",
    "SweepResult",
    "build_overdue_message",
]
