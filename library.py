import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from threading import RLock
from typing import Callable, Iterator, List, Optional

from book import Book
from catalog import BookCatalog
from codec import NONE_TOKEN
from config import settings
from storage import BookStore, PersistenceFailure

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class LendingError(str, Enum):
    """Expected, caller-recoverable reasons an operation did not happen."""

    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    LIMIT_EXCEEDED = "limit_exceeded"
    ALREADY_AVAILABLE = "already_available"
    INVALID_CREDENTIALS = "invalid_credentials"


@dataclass(frozen=True)
class Outcome:
    """Result of an engine operation. Truthy on success."""

    error: Optional[LendingError] = None
    book: Optional[Book] = None
    role: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, book: Optional[Book] = None, role: Optional[str] = None) -> "Outcome":
        return cls(book=book, role=role)

    @classmethod
    def failure(cls, error: LendingError) -> "Outcome":
        return cls(error=error)


class LendingEngine:
    """Borrow, return, rating and catalog maintenance over a BookCatalog.

    Every operation runs under one lock, so the borrow-limit count and the
    loan it guards (and the read-modify-write of a rating) cannot interleave
    with another request. Each successful mutation is written through to the
    store before the call returns; if that write fails the in-memory catalog
    is rolled back and ``PersistenceFailure`` propagates.
    """

    def __init__(
        self,
        store: BookStore,
        catalog: Optional[BookCatalog] = None,
        *,
        borrow_limit: Optional[int] = None,
        loan_days: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.catalog = catalog if catalog is not None else BookCatalog()
        self.borrow_limit = settings.borrow_limit if borrow_limit is None else borrow_limit
        self.loan_days = settings.loan_days if loan_days is None else loan_days
        self._clock = clock
        self._lock = RLock()

    @classmethod
    def from_file(cls, path: str, **kwargs) -> "LendingEngine":
        """Build an engine over ``path`` and load whatever it already holds."""
        engine = cls(BookStore(path), **kwargs)
        engine.load()
        return engine

    # ------------------------- Persistence ------------------------- #
    def load(self) -> None:
        """Replace the catalog with the store's contents."""
        books = self.store.load()
        with self._lock:
            self.catalog.replace(books)

    @contextmanager
    def _write_through(self) -> Iterator[None]:
        """Run a mutation, then persist; restore the previous catalog if either step fails."""
        snapshot = self.catalog.all()
        try:
            yield
        except BaseException:
            self.catalog.replace(snapshot)
            raise
        try:
            self.store.save(self.catalog)
        except PersistenceFailure:
            self.catalog.replace(snapshot)
            logger.error("Catalog change rolled back; storage is not writable")
            raise

    # ------------------------- Queries ------------------------- #
    def list_books(self) -> List[Book]:
        with self._lock:
            return self.catalog.all()

    def find_book(self, book_id: int) -> Optional[Book]:
        with self._lock:
            book = self.catalog.find(book_id)
            return book.copy() if book else None

    def active_loans(self, username: str) -> int:
        with self._lock:
            return sum(1 for b in self.catalog if not b.is_available and b.borrowed_by == username)

    # ------------------------- Catalog maintenance ------------------------- #
    def add_book(self, title: str, author: str, genre: str = "", cover_url: str = "",
                 book_id: Optional[int] = None) -> Book:
        """Create an available, unrated book and return a copy of it."""
        with self._lock:
            if book_id is None:
                book_id = self.catalog.next_id()
            book = Book(id=book_id, title=title, author=author, genre=genre, cover_url=cover_url)
            with self._write_through():
                self.catalog.add(book)
            logger.info(f"Added book {book.id}: {book.title} by {book.author}")
            return book.copy()

    def delete_book(self, book_id: int) -> Outcome:
        with self._lock:
            if self.catalog.find(book_id) is None:
                return Outcome.failure(LendingError.NOT_FOUND)
            with self._write_through():
                self.catalog.remove(book_id)
            logger.info(f"Deleted book {book_id}")
            return Outcome.success()

    # ------------------------- Lending ------------------------- #
    def _missing_or(self, book_id: int, error: LendingError) -> LendingError:
        # Duplicate ids are possible in older files; NOT_FOUND only when no copy exists at all.
        return LendingError.NOT_FOUND if self.catalog.find(book_id) is None else error

    def borrow(self, book_id: int, username: str) -> Outcome:
        """Lend the first available copy of ``book_id`` to ``username``.

        Raises ValueError for an empty borrower name or the file's ``NONE``
        placeholder, neither of which can be stored as a borrower.
        """
        if not username or username == NONE_TOKEN:
            raise ValueError(f"Invalid borrower name: {username!r}")
        with self._lock:
            if self.active_loans(username) >= self.borrow_limit:
                logger.info(f"Borrow refused: {username} already holds {self.borrow_limit} books")
                return Outcome.failure(LendingError.LIMIT_EXCEEDED)

            book = self.catalog.find(book_id, available=True)
            if book is None:
                return Outcome.failure(self._missing_or(book_id, LendingError.UNAVAILABLE))

            due_date = int(self._clock()) + self.loan_days * SECONDS_PER_DAY
            with self._write_through():
                book.lend_to(username, due_date)
            logger.info(f"Book {book_id} borrowed by {username}, due {due_date}")
            return Outcome.success(book=book.copy())

    def return_book(self, book_id: int) -> Outcome:
        with self._lock:
            book = self.catalog.find(book_id, available=False)
            if book is None:
                return Outcome.failure(self._missing_or(book_id, LendingError.ALREADY_AVAILABLE))

            borrower = book.borrowed_by
            with self._write_through():
                book.mark_returned()
            logger.info(f"Book {book_id} returned by {borrower}")
            return Outcome.success(book=book.copy())

    def rate(self, book_id: int, stars: int) -> Outcome:
        """Fold ``stars`` into the running mean. The value is not range-checked."""
        with self._lock:
            book = self.catalog.find(book_id)
            if book is None:
                return Outcome.failure(LendingError.NOT_FOUND)

            with self._write_through():
                book.add_rating(stars)
            logger.info(f"Book {book_id} rated {stars}; mean {book.rating:.2f} over {book.rating_count}")
            return Outcome.success(book=book.copy())
