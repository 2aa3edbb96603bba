from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from book import Book


class BookCatalog:
    """The in-memory collection of books, in insertion order.

    The catalog does no locking and no persistence; ``LendingEngine`` owns both.
    """

    def __init__(self, books: Optional[Iterable[Book]] = None) -> None:
        self._books: List[Book] = []
        self._last_id = 0
        if books:
            self.replace(books)

    def __len__(self) -> int:
        return len(self._books)

    def __iter__(self) -> Iterator[Book]:
        # Live records; callers that hand books out should use all() instead.
        return iter(self._books)

    def add(self, book: Book) -> None:
        """Append a book. Id uniqueness is the caller's job (see next_id)."""
        self._books.append(book)
        self._last_id = max(self._last_id, book.id)

    def all(self) -> List[Book]:
        return [book.copy() for book in self._books]

    def find(self, book_id: int, available: Optional[bool] = None) -> Optional[Book]:
        """First book with ``book_id``, optionally also in the given availability state."""
        for book in self._books:
            if book.id == book_id and (available is None or book.is_available == available):
                return book
        return None

    def remove(self, book_id: int) -> bool:
        for i, book in enumerate(self._books):
            if book.id == book_id:
                del self._books[i]
                return True
        return False

    def replace(self, books: Iterable[Book]) -> None:
        """Swap in a whole new collection (used on load and rollback)."""
        self._books = list(books)
        self._last_id = max([self._last_id] + [b.id for b in self._books])

    def next_id(self) -> int:
        """Allocate an id larger than any id seen so far; ids are never reused."""
        self._last_id = max([self._last_id] + [b.id for b in self._books]) + 1
        return self._last_id
