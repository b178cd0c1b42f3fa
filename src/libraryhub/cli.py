"""Command-line interface for libraryhub.

Built with Typer for commands and Rich for output.
"""

from datetime import date
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError as SchemaValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import get_config
from .db import get_db
from .db.schemas import AuthorCreate, BookCreate, BookType, ReaderCreate
from .errors import LibraryError
from .logging_setup import setup_logging

# Create the main app
app = typer.Typer(
    name="libraryhub",
    help="Manage a library catalog, loans and overdue notifications.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
author_app = typer.Typer(help="Manage authors.")
app.add_typer(author_app, name="author")

book_app = typer.Typer(help="Manage books and loans.")
app.add_typer(book_app, name="book")

reader_app = typer.Typer(help="Manage readers.")
app.add_typer(reader_app, name="reader")

notification_app = typer.Typer(help="Manage overdue notifications.")
app.add_typer(notification_app, name="notification")

sweep_app = typer.Typer(help="Detect overdue books.")
app.add_typer(sweep_app, name="sweep")

# Rich console for pretty output
console = Console()


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level (default: LIBRARYHUB_LOG_LEVEL or INFO)"
    ),
) -> None:
    """Manage a library catalog, loans and overdue notifications."""
    setup_logging(log_level or get_config().log_level)


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def fail(error: Exception) -> None:
    """Report an error and exit with status 1."""
    if isinstance(error, SchemaValidationError):
        for item in error.errors():
            field = ".".join(str(part) for part in item["loc"]) or "input"
            print_error(f"{field}: {item['msg']}")
    else:
        print_error(str(error))
    raise typer.Exit(1)


def format_book_table(books: list, title: str = "Books") -> Table:
    """Create a rich table for displaying books."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("ISBN")
    table.add_column("Type", style="yellow")
    table.add_column("Borrower")
    table.add_column("Due", justify="center")

    for book in books:
        table.add_row(
            book.id,
            book.title,
            book.isbn,
            book.book_type,
            book.borrower_id or "-",
            book.due_date.strftime("%Y-%m-%d") if book.due_date else "-",
        )

    return table


# ============================================================================
# Setup Commands
# ============================================================================


@app.command()
def init() -> None:
    """Create the database and its tables."""
    config = get_config()
    errors = config.validate()
    if errors:
        for error in errors:
            print_error(error)
        raise typer.Exit(1)

    db = get_db()
    db.create_tables()
    print_success(f"Database ready at {db.db_path}")


@app.command()
def seed(
    directory: Path = typer.Argument(..., help="Directory with authors.csv, readers.csv and books.csv"),
) -> None:
    """Seed an empty database from CSV files."""
    from .imports import CsvSeeder

    result = CsvSeeder(get_db()).seed_directory(directory)

    for message in result.error_messages:
        print_error(message)
    if not result.success:
        raise typer.Exit(1)

    if result.already_seeded:
        print_info("Database already seeded. Skipping.")
        return
    print_success(result.summary)


# ============================================================================
# Author Commands
# ============================================================================


@author_app.command("add")
def author_add(
    first_name: str = typer.Argument(..., help="First name"),
    last_name: str = typer.Argument(..., help="Last name"),
    biography: Optional[str] = typer.Option(None, "--bio", "-b", help="Short biography"),
) -> None:
    """Add an author."""
    from .catalog import CatalogManager

    try:
        data = AuthorCreate(first_name=first_name, last_name=last_name, biography=biography)
        author = CatalogManager(get_db()).create_author(data)
    except (SchemaValidationError, LibraryError) as e:
        fail(e)

    print_success(f"Added author: {author.full_name}")
    print_info(f"ID: {author.id}")


@author_app.command("list")
def author_list() -> None:
    """List authors."""
    from .catalog import CatalogManager

    authors = CatalogManager(get_db()).list_authors()
    if not authors:
        print_info("No authors yet.")
        return

    table = Table(title="Authors", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Biography", max_width=50)
    for author in authors:
        table.add_row(author.id, author.full_name, author.biography or "-")
    console.print(table)


# ============================================================================
# Book Commands
# ============================================================================


@book_app.command("add")
def book_add(
    title: str = typer.Argument(..., help="Book title"),
    isbn: str = typer.Option(..., "--isbn", "-i", help="ISBN"),
    author_id: str = typer.Option(..., "--author-id", "-a", help="Author ID"),
    published: str = typer.Option(..., "--published", "-p", help="Publication date (YYYY-MM-DD)"),
    book_type: BookType = typer.Option(BookType.NOVEL, "--type", "-t", help="Publication type"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Description"),
) -> None:
    """Add a book to the catalog."""
    from .catalog import CatalogManager

    try:
        published_date = date.fromisoformat(published)
    except ValueError:
        print_error(f"Invalid date: {published}. Use YYYY-MM-DD.")
        raise typer.Exit(1)

    try:
        data = BookCreate(
            title=title,
            isbn=isbn,
            book_type=book_type,
            published_date=published_date,
            author_id=author_id,
            description=description,
        )
        book = CatalogManager(get_db()).create_book(data)
    except (SchemaValidationError, LibraryError) as e:
        fail(e)

    print_success(f"Added book: {book.title}")
    print_info(f"ID: {book.id}")


@book_app.command("list")
def book_list() -> None:
    """List all books."""
    from .catalog import CatalogManager

    books = CatalogManager(get_db()).list_books()
    if not books:
        print_info("No books yet.")
        return
    console.print(format_book_table(books))


@book_app.command("available")
def book_available() -> None:
    """List books that can be borrowed."""
    from .catalog import CatalogManager

    books = CatalogManager(get_db()).list_available_books()
    if not books:
        print_info("No books available.")
        return
    console.print(format_book_table(books, title="Available Books"))


@book_app.command("borrow")
def book_borrow(
    book_id: str = typer.Argument(..., help="Book ID"),
    reader_id: str = typer.Argument(..., help="Reader ID"),
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Loan length in days"),
) -> None:
    """Lend a book to a reader."""
    from .lending import LendingManager

    try:
        book = LendingManager(get_db()).borrow_book(book_id, reader_id, duration_days=days)
    except LibraryError as e:
        fail(e)

    print_success(f"'{book.title}' borrowed")
    print_info(f"Due: {book.due_date.strftime('%Y-%m-%d %H:%M')} UTC")


@book_app.command("return")
def book_return(
    book_id: str = typer.Argument(..., help="Book ID"),
) -> None:
    """Return a borrowed book."""
    from .lending import LendingManager

    try:
        book = LendingManager(get_db()).return_book(book_id)
    except LibraryError as e:
        fail(e)

    print_success(f"'{book.title}' returned")


@book_app.command("overdue")
def book_overdue() -> None:
    """Show overdue loans."""
    from .lending import LendingManager

    overdue = LendingManager(get_db()).list_overdue_books()
    if not overdue:
        print_success("No overdue books!")
        return

    console.print(Panel(
        f"[bold red]Overdue Books: {len(overdue)}[/bold red]\n"
        f"Oldest: {max(o.days_overdue for o in overdue)} days overdue",
        style="red",
    ))

    table = Table(show_header=True, header_style="bold red")
    table.add_column("Book", style="cyan")
    table.add_column("Reader")
    table.add_column("Due Date")
    table.add_column("Days Overdue", justify="right")
    for item in overdue:
        table.add_row(
            item.title,
            item.reader_id,
            item.due_date.strftime("%Y-%m-%d"),
            f"[bold red]{item.days_overdue}[/bold red]",
        )
    console.print(table)


# ============================================================================
# Reader Commands
# ============================================================================


@reader_app.command("add")
def reader_add(
    first_name: str = typer.Argument(..., help="First name"),
    last_name: str = typer.Argument(..., help="Last name"),
    email: str = typer.Argument(..., help="Email address"),
    phone: Optional[str] = typer.Option(None, "--phone", "-p", help="Phone number"),
) -> None:
    """Register a reader."""
    from .catalog import CatalogManager

    try:
        data = ReaderCreate(
            first_name=first_name, last_name=last_name, email=email, phone=phone
        )
        reader = CatalogManager(get_db()).create_reader(data)
    except (SchemaValidationError, LibraryError) as e:
        fail(e)

    print_success(f"Registered reader: {reader.full_name}")
    print_info(f"ID: {reader.id}")


@reader_app.command("list")
def reader_list() -> None:
    """List readers."""
    from .catalog import CatalogManager

    readers = CatalogManager(get_db()).list_readers()
    if not readers:
        print_info("No readers yet.")
        return

    table = Table(title="Readers", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Email")
    table.add_column("Phone")
    for reader in readers:
        table.add_row(reader.id, reader.full_name, reader.email, reader.phone or "-")
    console.print(table)


@reader_app.command("loans")
def reader_loans(
    reader_id: str = typer.Argument(..., help="Reader ID"),
) -> None:
    """Show the books a reader has borrowed."""
    from .catalog import CatalogManager

    config = get_config()
    try:
        books = CatalogManager(get_db()).list_borrowed_books(reader_id)
    except LibraryError as e:
        fail(e)

    console.print(
        f"Borrowed: {len(books)} of {config.max_borrowed_books} "
        f"({max(0, config.max_borrowed_books - len(books))} slots left)"
    )
    if books:
        console.print(format_book_table(books, title="Loans"))


# ============================================================================
# Notification Commands
# ============================================================================


@notification_app.command("list")
def notification_list() -> None:
    """List notifications."""
    from .notifications import NotificationManager

    notifications = NotificationManager(get_db()).list_notifications()
    if not notifications:
        print_info("No notifications.")
        return

    status_styles = {"pending": "yellow", "sent": "green", "dismissed": "dim"}
    table = Table(title="Notifications", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Status")
    table.add_column("Book")
    table.add_column("Reader")
    table.add_column("Message", max_width=60)
    for notification in notifications:
        style = status_styles.get(notification.status, "white")
        table.add_row(
            notification.id,
            f"[{style}]{notification.status}[/{style}]",
            notification.book_id,
            notification.reader_id,
            notification.message,
        )
    console.print(table)


@notification_app.command("send")
def notification_send(
    notification_id: str = typer.Argument(..., help="Notification ID"),
) -> None:
    """Mark a notification as sent."""
    from .notifications import NotificationManager

    try:
        NotificationManager(get_db()).mark_as_sent(notification_id)
    except LibraryError as e:
        fail(e)
    print_success("Notification marked as sent")


@notification_app.command("dismiss")
def notification_dismiss(
    notification_id: str = typer.Argument(..., help="Notification ID"),
) -> None:
    """Dismiss a notification."""
    from .notifications import NotificationManager

    try:
        NotificationManager(get_db()).dismiss(notification_id)
    except LibraryError as e:
        fail(e)
    print_success("Notification dismissed")


@notification_app.command("delete")
def notification_delete(
    notification_id: str = typer.Argument(..., help="Notification ID"),
) -> None:
    """Delete a notification."""
    from .notifications import NotificationManager

    try:
        NotificationManager(get_db()).delete_notification(notification_id)
    except LibraryError as e:
        fail(e)
    print_success("Notification deleted")


# ============================================================================
# Sweep Commands
# ============================================================================


@sweep_app.command("run")
def sweep_run() -> None:
    """Run one overdue sweep now."""
    from .notifications import OverdueSweep

    result = OverdueSweep(get_db()).run_once()
    print_success(result.summary)


@sweep_app.command("start")
def sweep_start(
    interval: Optional[float] = typer.Option(
        None, "--interval", "-i", help="Seconds between sweeps (default: LIBRARYHUB_SWEEP_INTERVAL)"
    ),
) -> None:
    """Run the overdue sweep periodically until interrupted."""
    from .notifications import OverdueSweep, OverdueSweepScheduler

    scheduler = OverdueSweepScheduler(OverdueSweep(get_db()), interval=interval)
    print_info(f"Sweeping every {scheduler.interval:g}s. Press Ctrl+C to stop.")
    scheduler.run_forever()
    console.print(
        f"Stopped after {scheduler.iterations} sweeps ({scheduler.failures} failed)."
    )


# ============================================================================
# Version
# ============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"libraryhub version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
