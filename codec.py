"""Line formats for the books and users files.

Books are stored one per line, ten fields separated by ``|``::

    id|title|author|isAvailable|borrowedBy|genre|coverUrl|dueDate|rating|ratingCount

Empty optional fields are written as sentinel tokens (``NONE`` for borrower and
cover URL, ``General`` for genre). Lines written by older versions may stop
after the fourth field; the remaining fields then take their defaults.

Users are stored one per line as ``username password role``. Tokens cannot
contain whitespace, so usernames and passwords must not either.
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from book import Book, DEFAULT_GENRE
from user import User

logger = logging.getLogger(__name__)

DELIMITER = "|"
NONE_TOKEN = "NONE"
MIN_BOOK_FIELDS = 4
BOOK_FIELDS = 10


class CodecError(ValueError):
    """Raised when a record cannot be encoded to, or decoded from, a line."""


def _check_text(name: str, value: str) -> str:
    if DELIMITER in value or "\n" in value or "\r" in value:
        raise CodecError(f"{name} may not contain '|' or line breaks: {value!r}")
    return value


def _or_sentinel(name: str, value: str, sentinel: str) -> str:
    # A literal sentinel would decode back as the empty value.
    if value == sentinel and sentinel == NONE_TOKEN:
        raise CodecError(f"{name} may not be the reserved token {NONE_TOKEN!r}")
    return value if value else sentinel


def _from_sentinel(token: str) -> str:
    return "" if token == NONE_TOKEN else token


def encode_book(book: Book) -> str:
    """Encode a book as a single line (without trailing newline)."""
    fields = [
        str(book.id),
        _check_text("title", book.title),
        _check_text("author", book.author),
        "1" if book.is_available else "0",
        _or_sentinel("borrowed_by", _check_text("borrowed_by", book.borrowed_by), NONE_TOKEN),
        _or_sentinel("genre", _check_text("genre", book.genre), DEFAULT_GENRE),
        _or_sentinel("cover_url", _check_text("cover_url", book.cover_url), NONE_TOKEN),
        str(book.due_date),
        repr(float(book.rating)),
        str(book.rating_count),
    ]
    return DELIMITER.join(fields)


def decode_book(line: str) -> Book:
    """Decode one line into a Book, filling defaults for missing trailing fields."""
    tokens = line.rstrip("\r\n").split(DELIMITER)
    if len(tokens) < MIN_BOOK_FIELDS:
        raise CodecError(f"Expected at least {MIN_BOOK_FIELDS} fields, got {len(tokens)}: {line!r}")

    # Pad short lines so every optional field has a token to default from.
    tokens += [""] * (BOOK_FIELDS - len(tokens))

    try:
        return Book(
            id=int(tokens[0]),
            title=tokens[1],
            author=tokens[2],
            is_available=tokens[3] == "1",
            borrowed_by=_from_sentinel(tokens[4]),
            genre=tokens[5] or DEFAULT_GENRE,
            cover_url=_from_sentinel(tokens[6]),
            due_date=int(tokens[7]) if tokens[7] else 0,
            rating=float(tokens[8]) if tokens[8] else 0.0,
            rating_count=int(tokens[9]) if tokens[9] else 0,
        )
    except ValueError as exc:
        raise CodecError(f"Invalid numeric field in line {line!r}") from exc


def encode_catalog(books: Iterable[Book]) -> str:
    return "".join(encode_book(book) + "\n" for book in books)


def decode_catalog(text: str) -> List[Book]:
    """Decode a whole books file. Blank lines are skipped, malformed lines are logged and skipped."""
    books: List[Book] = []
    for lineno, line in enumerate(text.split("\n"), 1):
        if not line.strip():
            continue
        try:
            books.append(decode_book(line))
        except CodecError as e:
            logger.warning(f"Skipping books line {lineno}: {e}")
    return books


def encode_user(user: User) -> str:
    for name, value in (("username", user.username), ("password", user.password), ("role", user.role)):
        if not value or any(ch.isspace() for ch in value):
            raise CodecError(f"{name} must be a non-empty token without whitespace: {value!r}")
    return f"{user.username} {user.password} {user.role}"


def decode_user(line: str) -> User:
    tokens = line.split()
    if len(tokens) < 3:
        raise CodecError(f"Expected 'username password role', got {line!r}")
    username, password, role = tokens[:3]
    return User(username=username, password=password, role=role)


def encode_users(users: Iterable[User]) -> str:
    return "".join(encode_user(user) + "\n" for user in users)


def decode_users(text: str) -> List[User]:
    users: List[User] = []
    for lineno, line in enumerate(text.split("\n"), 1):
        if not line.strip():
            continue
        try:
            users.append(decode_user(line))
        except CodecError as e:
            logger.warning(f"Skipping users line {lineno}: {e}")
    return users
