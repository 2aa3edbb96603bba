import logging
import subprocess
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from config import settings
from library import LendingEngine, LendingError
from storage import PersistenceFailure, UserStore
from user import ROLE_MEMBER
from users import UserDirectory, hash_password
from utils.ui_helpers import set_output_mode, print_list_result, print_book_result
from utils.validators import TextValidator

APP_NAME = "Lending Library CLI"

console = Console()
logger = logging.getLogger(__name__)

FAILURE_MESSAGES = {
    LendingError.NOT_FOUND: "Book with ID {id} not found.",
    LendingError.UNAVAILABLE: "Book with ID {id} is already borrowed.",
    LendingError.LIMIT_EXCEEDED: "{username} has reached the borrow limit.",
    LendingError.ALREADY_AVAILABLE: "Book with ID {id} is not borrowed.",
    LendingError.INVALID_CREDENTIALS: "Invalid username or password.",
}


def get_library() -> LendingEngine:
    """Build an engine over the configured books file."""
    return LendingEngine.from_file(
        settings.books_file, borrow_limit=settings.borrow_limit, loan_days=settings.loan_days
    )


def get_directory() -> UserDirectory:
    return UserDirectory(UserStore(settings.users_file))


def _fail(error: LendingError, **fields) -> None:
    print(FAILURE_MESSAGES[error].format(**fields))
    raise typer.Exit(code=1)


# --- Typer CLI Application ---
app = typer.Typer(help=APP_NAME)

@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    )
):
    """Global CLI options (e.g. output mode)."""
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    if output:
        set_output_mode(output)

@app.command("list")
def cli_list():
    """List every book in the catalog."""
    print_list_result(get_library().list_books())

@app.command("add")
def cli_add(
    title: str,
    author: str,
    genre: str = typer.Option("", help="Genre (defaults to General)"),
    cover_url: str = typer.Option("", "--cover-url", help="Cover image URL"),
):
    """Add a book to the catalog."""
    if not TextValidator.validate_title(title) or not TextValidator.validate_author(author):
        print("Error: title and author are required and may not contain '|' or line breaks.")
        raise typer.Exit(code=1)
    if not (TextValidator.is_storable(genre) and TextValidator.validate_cover_url(cover_url)):
        print("Error: genre and cover URL may not contain '|' or line breaks, and the cover URL may not be NONE.")
        raise typer.Exit(code=1)
    book = get_library().add_book(
        title=TextValidator.sanitize_text(title),
        author=TextValidator.sanitize_text(author),
        genre=TextValidator.sanitize_text(genre),
        cover_url=TextValidator.sanitize_text(cover_url),
    )
    print(f"Successfully added: {book.title} by {book.author} (ID: {book.id})")

@app.command("remove")
def cli_remove(book_id: int):
    """Remove a book by ID."""
    outcome = get_library().delete_book(book_id)
    if not outcome:
        _fail(outcome.error, id=book_id)
    print(f"Book with ID {book_id} has been removed.")

@app.command("find")
def cli_find(book_id: int):
    """Find a book by ID and show its details."""
    book = get_library().find_book(book_id)
    if book is None:
        _fail(LendingError.NOT_FOUND, id=book_id)
    print_book_result(book)

@app.command("borrow")
def cli_borrow(book_id: int, username: str):
    """Lend a book to a user."""
    if not TextValidator.validate_username(username):
        print("Error: username may not be empty, contain spaces or be NONE.")
        raise typer.Exit(code=1)
    outcome = get_library().borrow(book_id, username)
    if not outcome:
        _fail(outcome.error, id=book_id, username=username)
    print(f"Book with ID {book_id} borrowed by {username}.")

@app.command("return")
def cli_return(book_id: int):
    """Return a borrowed book."""
    outcome = get_library().return_book(book_id)
    if not outcome:
        _fail(outcome.error, id=book_id)
    print(f"Book with ID {book_id} has been returned.")

@app.command("rate")
def cli_rate(book_id: int, stars: int):
    """Add a star rating to a book."""
    try:
        outcome = get_library().rate(book_id, stars)
    except OverflowError:
        print("Error: rating is too large to average.")
        raise typer.Exit(code=1)
    if not outcome:
        _fail(outcome.error, id=book_id)
    book = outcome.book
    print(f"Rating for book {book_id} is now {book.rating:.2f} ({book.rating_count} ratings).")

@app.command("login")
def cli_login(username: str, password: str = typer.Option(..., prompt=True, hide_input=True)):
    """Check a username and password against the users file."""
    outcome = get_directory().login(username, password)
    if not outcome:
        _fail(outcome.error)
    print(f"Login successful. Role: {outcome.role}")

@app.command("add-user")
def cli_add_user(
    username: str,
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
    role: str = typer.Option(ROLE_MEMBER, help="admin or member"),
):
    """Add a user with a hashed password to the users file."""
    if not TextValidator.validate_username(username) or not password or any(ch.isspace() for ch in password):
        print("Error: username and password may not be empty or contain spaces.")
        raise typer.Exit(code=1)
    try:
        get_directory().add_user(username, password, role)
    except ValueError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)
    print(f"User {username} added with role {role}.")

@app.command("hash-password")
def cli_hash_password(password: str = typer.Option(..., prompt=True, hide_input=True)):
    """Print a password hash suitable for the users file."""
    print(hash_password(password))

@app.command("serve")
def serve(host: Optional[str] = None, port: Optional[int] = None):
    """Start the HTTP API with Uvicorn."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    url = f"http://{host}:{port}/"
    console.print(f"[green]Starting API on [link={url}]{url}[/link][/]")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
    ]
    try:
        subprocess.run(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped.[/]")


def run() -> None:
    try:
        app()
    except PersistenceFailure as e:
        logger.error(f"Command failed, change not saved: {e}")
        console.print(f"[bold red]Storage error: {escape(str(e))}[/]")
        sys.exit(2)


if __name__ == "__main__":
    run()
