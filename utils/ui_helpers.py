import os
import json
from datetime import datetime, timezone
from typing import List, Any
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()

def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode

def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()

def format_due_date(due_date: int) -> str:
    if not due_date:
        return "-"
    return datetime.fromtimestamp(due_date, tz=timezone.utc).strftime("%Y-%m-%d")

def _status(book: Any) -> str:
    if book.is_available:
        return "available"
    return f"borrowed by {book.borrowed_by} until {format_due_date(book.due_date)}"

def print_list_result(books: List[Any]) -> None:
    """Print the catalog in the current output mode.
    - plain: 'ID - Title by Author [status]' lines, or 'No books in library.'
    - json: JSON array of the wire form of each book
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print("No books in library.")
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Genre", style="white")
        table.add_column("Status", style="white")
        table.add_column("Rating", style="yellow", justify="right")
        for b in books:
            table.add_row(str(b.id), b.title, b.author, b.genre, _status(b), f"{b.rating:.1f} ({b.rating_count})")
        _console.print(table)
    else:
        for b in books:
            print(f"{b.id} - {b.title} by {b.author} [{_status(b)}]")

def print_book_result(book: Any) -> None:
    """Print a single book in the current output mode."""
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
    elif mode == "rich":
        content = (
            f"[bold]Title:[/] {book.title}\n"
            f"[bold]Author:[/] {book.author}\n"
            f"[bold]Genre:[/] {book.genre}\n"
            f"[bold]Status:[/] {_status(book)}\n"
            f"[bold]Rating:[/] {book.rating:.2f} from {book.rating_count} ratings"
        )
        _console.print(Panel.fit(content, title=f"📖 Book {book.id}", border_style="blue"))
    else:
        print("Book Found")
        print(f"ID: {book.id}")
        print(f"Title: {book.title}")
        print(f"Author: {book.author}")
        print(f"Genre: {book.genre}")
        print(f"Status: {_status(book)}")
        print(f"Rating: {book.rating:.2f} ({book.rating_count})")
