"""Overdue sweep: periodic detection of overdue loans.

``OverdueSweep.run_once`` performs one pass: it finds every book whose due
date has passed and creates a pending notification for each (book, reader)
pair that has none yet, in any status. New notifications are committed
together at the end of the pass.

``OverdueSweepScheduler`` repeats the pass on a background thread at a fixed
interval. A failing pass is logged and skipped; the next one still runs.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from ..config import get_config
from ..db.models import Notification, utcnow
from ..db.repository import BookRepository, NotificationRepository
from ..db.sqlite import Database, get_db

logger = logging.getLogger(__name__)

OVERDUE_MESSAGE = (
    "The book '{title}' is {days} day(s) overdue. Please return it to the library."
)


def build_overdue_message(title: str, days_overdue: int) -> str:
    """Text of the reminder sent to a reader."""
    return OVERDUE_MESSAGE.format(title=title, days=days_overdue)


@dataclass
class SweepResult:
    """Result of one sweep pass."""

    started_at: datetime
    overdue: int = 0
    created: int = 0
    skipped: int = 0
    notifications: list[Notification] = field(default_factory=list)

    @property
    def summary(self) -> str:
        """Get summary string."""
        return (
            f"Overdue: {self.overdue}, "
            f"Created: {self.created}, "
            f"Already notified: {self.skipped}"
        )


class OverdueSweep:
    """Creates notifications for overdue loans."""

    def __init__(
        self,
        db: Optional[Database] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize the sweep.

        Args:
            db: Database instance
            clock: Source of the current naive-UTC time
        """
        self.db = db or get_db()
        self.clock = clock

    def run_once(self, now: Optional[datetime] = None) -> SweepResult:
        """Run a single pass.

        Args:
            now: Reference time (default: the sweep's clock)

        Returns:
            What the pass found and created
        """
        now = now or self.clock()
        result = SweepResult(started_at=now)

        with self.db.get_session() as session:
            overdue_books = BookRepository(session).get_overdue_books(now)
            if not overdue_books:
                logger.info("No overdue books found.")
                return result

            logger.info("Found %d overdue books.", len(overdue_books))
            notifications = NotificationRepository(session)
            staged: list[Notification] = []

            for book in overdue_books:
                if book.borrower_id is None or book.due_date is None:
                    continue
                result.overdue += 1

                if notifications.find_for_loan(book.id, book.borrower_id):
                    logger.debug("Notification already exists for book %s", book.id)
                    result.skipped += 1
                    continue

                days_overdue = (now - book.due_date).days
                staged.append(
                    Notification(
                        reader_id=book.borrower_id,
                        book_id=book.id,
                        message=build_overdue_message(book.title, days_overdue),
                    )
                )
                logger.info(
                    "Created notification for overdue book: %s (reader: %s)",
                    book.title,
                    book.borrower_id,
                )

            if staged:
                notifications.add_all(staged)

        result.notifications = staged
        result.created = len(staged)
        return result


class OverdueSweepScheduler:
    """Runs an ``OverdueSweep`` repeatedly on a background thread.

    The scheduler owns a ``threading.Event`` used as its cancellation signal.
    It is checked before every pass and waited on between passes, so
    ``stop()`` takes effect as soon as the current pass (if any) finishes.
    A pass that has started always runs to completion.
    """

    def __init__(self, sweep: OverdueSweep, interval: Optional[float] = None):
        """Initialize the scheduler.

        Args:
            sweep: The pass to repeat
            interval: Seconds between passes (default: from config, 1 hour)
        """
        self.sweep = sweep
        self.interval = get_config().sweep_interval if interval is None else interval
        self.iterations = 0
        self.failures = 0
        self.last_result: Optional[SweepResult] = None

        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> None:
        """Start the background thread. A running scheduler is left alone.

        If a stopped thread is still finishing its last pass, waits for it
        before starting a new one.
        """
        with self._lock:
            if self.is_running and not self._stop_event.is_set():
                return
            previous = self._thread
            if previous is not None and previous is not threading.current_thread():
                previous.join()
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run_loop, name="overdue-sweep", daemon=True
            )
            self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Request cancellation and wait for the thread to finish.

        Args:
            timeout: Max seconds to wait for an in-flight pass
        """
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def run_forever(self) -> None:
        """Run the loop in the calling thread until ``stop()`` or Ctrl+C.

        If ``stop()`` was called beforehand, returns without running a pass.
        """
        try:
            self._run_loop()
        except KeyboardInterrupt:
            self._stop_event.set()
            logger.info("Overdue sweep interrupted.")

    def run_iteration(self) -> Optional[SweepResult]:
        """Run one pass, logging and swallowing any error.

        Returns:
            The pass result, or None if it failed
        """
        self.iterations += 1
        try:
            result = self.sweep.run_once()
        except Exception:
            self.failures += 1
            logger.exception("An error occurred while checking for overdue books.")
            return None

        self.last_result = result
        logger.info("Overdue sweep finished. %s", result.summary)
        return result

    def _run_loop(self) -> None:
        logger.info(
            "Overdue sweep scheduler is starting (interval: %ss).", self.interval
        )
        while not self._stop_event.is_set():
            self.run_iteration()
            if self._stop_event.wait(self.interval):
                break
        logger.info("Overdue sweep scheduler is stopping.")
