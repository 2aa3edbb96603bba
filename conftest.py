import pytest

from config import Settings
from library import LendingEngine
from storage import BookStore, UserStore
from users import UserDirectory

FIXED_NOW = 1_700_000_000


@pytest.fixture
def books_file(tmp_path):
    return tmp_path / "books.txt"


@pytest.fixture
def users_file(tmp_path):
    return tmp_path / "users.txt"


@pytest.fixture
def lib(books_file):
    # Each test gets its own books file and a frozen clock
    return LendingEngine(BookStore(books_file), borrow_limit=3, loan_days=14, clock=lambda: FIXED_NOW)


@pytest.fixture
def directory(users_file):
    return UserDirectory(UserStore(users_file))


@pytest.fixture
def test_settings(books_file, users_file):
    return Settings(books_file=str(books_file), users_file=str(users_file), borrow_limit=3, loan_days=14)


@pytest.fixture
def now():
    return FIXED_NOW
