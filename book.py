from __future__ import annotations

from dataclasses import dataclass, replace

DEFAULT_GENRE = "General"


@dataclass
class Book:
    """A single lendable item in the catalog.

    A book is available exactly when nobody holds it: ``borrowed_by`` is empty
    and ``due_date`` is 0. Loan transitions live in ``library.LendingEngine``.
    """

    id: int
    title: str
    author: str
    genre: str = DEFAULT_GENRE
    cover_url: str = ""
    is_available: bool = True
    borrowed_by: str = ""
    due_date: int = 0
    rating: float = 0.0
    rating_count: int = 0

    def __post_init__(self) -> None:
        # An unset genre and the "General" category are the same thing on disk.
        if not self.genre:
            self.genre = DEFAULT_GENRE

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ID: {self.id})"

    def copy(self) -> "Book":
        return replace(self)

    def is_consistent(self) -> bool:
        """True when availability agrees with the borrower and with the due date."""
        return self.is_available == (self.borrowed_by == "") == (self.due_date == 0)

    def lend_to(self, username: str, due_date: int) -> None:
        self.is_available = False
        self.borrowed_by = username
        self.due_date = due_date

    def mark_returned(self) -> None:
        self.is_available = True
        self.borrowed_by = ""
        self.due_date = 0

    def add_rating(self, stars: int) -> None:
        count = self.rating_count + 1
        rating = (self.rating * self.rating_count + stars) / count
        self.rating, self.rating_count = rating, count

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "isAvailable": self.is_available,
            "borrowedBy": self.borrowed_by,
            "genre": self.genre,
            "coverUrl": self.cover_url,
            "dueDate": self.due_date,
            "rating": self.rating,
            "ratingCount": self.rating_count,
        }
