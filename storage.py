"""File-backed storage for the catalog and the user directory.

Both stores read and write whole files. Writes go to a temporary sibling and
are moved into place with ``os.replace`` so a crash mid-write leaves the
previous file intact. Any I/O problem is raised as ``PersistenceFailure``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Union

from book import Book
from user import User
import codec

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class PersistenceFailure(Exception):
    """Raised when a storage file cannot be read or written."""

    def __init__(self, path: PathLike, action: str, cause: Exception) -> None:
        super().__init__(f"Could not {action} {path}: {cause}")
        self.path = Path(path)
        self.action = action


def _read_text(path: Path) -> str:
    """Return the file contents, or an empty string when the file does not exist."""
    if not path.exists():
        return ""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        logger.error(f"Failed to read {path}: {e}")
        raise PersistenceFailure(path, "read", e) from e


def _write_text(path: Path, text: str) -> None:
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        if path.parent and not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        logger.error(f"Failed to write {path}: {e}")
        raise PersistenceFailure(path, "write", e) from e


class BookStore:
    """Reads and writes the pipe-delimited books file."""

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)

    def load(self) -> List[Book]:
        books = codec.decode_catalog(_read_text(self.path))
        logger.info(f"Loaded {len(books)} books from {self.path}")
        return books

    def save(self, books: Iterable[Book]) -> None:
        try:
            text = codec.encode_catalog(books)
        except codec.CodecError as e:
            raise PersistenceFailure(self.path, "encode", e) from e
        _write_text(self.path, text)


class UserStore:
    """Reads and writes the whitespace-delimited users file."""

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)

    def load(self) -> List[User]:
        return codec.decode_users(_read_text(self.path))

    def save(self, users: Iterable[User]) -> None:
        _write_text(self.path, codec.encode_users(users))
