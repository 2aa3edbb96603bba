import pytest

from book import Book
from user import User
import codec
from codec import CodecError


def test_encode_uses_sentinels_for_empty_fields():
    book = Book(id=7, title="Dune", author="Frank Herbert")
    assert codec.encode_book(book) == "7|Dune|Frank Herbert|1|NONE|General|NONE|0|0.0|0"


def test_encode_borrowed_book():
    book = Book(id=3, title="Emma", author="Jane Austen", genre="Classic",
                cover_url="http://img/emma.png", is_available=False,
                borrowed_by="alice", due_date=1700000000, rating=4.5, rating_count=2)
    assert codec.encode_book(book) == "3|Emma|Jane Austen|0|alice|Classic|http://img/emma.png|1700000000|4.5|2"


def test_decode_full_line():
    book = codec.decode_book("3|Emma|Jane Austen|0|alice|Classic|http://img/emma.png|1700000000|4.5|2")
    assert book == Book(id=3, title="Emma", author="Jane Austen", genre="Classic",
                        cover_url="http://img/emma.png", is_available=False,
                        borrowed_by="alice", due_date=1700000000, rating=4.5, rating_count=2)


def test_decode_short_line_fills_defaults():
    book = codec.decode_book("12|Old Book|Someone|1")
    assert book.id == 12
    assert book.is_available is True
    assert book.borrowed_by == ""
    assert book.genre == "General"
    assert book.cover_url == ""
    assert book.due_date == 0
    assert book.rating == 0.0
    assert book.rating_count == 0


def test_decode_rejects_too_few_fields():
    with pytest.raises(CodecError):
        codec.decode_book("12|Old Book|Someone")


def test_decode_rejects_bad_number():
    with pytest.raises(CodecError):
        codec.decode_book("abc|Title|Author|1")


def test_encode_rejects_delimiter_in_text():
    with pytest.raises(CodecError):
        codec.encode_book(Book(id=1, title="A|B", author="C"))


def test_round_trip_preserves_every_field():
    books = [
        Book(id=1, title="Dune", author="Frank Herbert"),
        Book(id=2, title="Emma", author="Jane Austen", genre="", cover_url="",
             is_available=False, borrowed_by="bob", due_date=1701209600,
             rating=11 / 3, rating_count=3),
        Book(id=3, title="Ulysses", author="James Joyce", genre="Modernist",
             cover_url="https://covers.example/u.jpg", rating=0.1 + 0.2, rating_count=1),
    ]
    assert codec.decode_catalog(codec.encode_catalog(books)) == books


def test_decode_catalog_skips_blank_and_malformed_lines():
    text = "1|Dune|Frank Herbert|1\n\n   \nbroken line\n2|Emma|Jane Austen|1|NONE|General|NONE|0|0.0|0\n"
    books = codec.decode_catalog(text)
    assert [b.id for b in books] == [1, 2]


def test_user_line_format():
    user = User("alice", "secret", "member")
    assert codec.encode_user(user) == "alice secret member"
    assert codec.decode_user("alice   secret\tmember") == user


def test_user_with_whitespace_cannot_be_encoded():
    with pytest.raises(CodecError):
        codec.encode_user(User("alice smith", "secret", "member"))


def test_decode_users_skips_incomplete_lines():
    users = codec.decode_users("alice secret member\nbob onlytwo\n\ncarol pw admin\n")
    assert [u.username for u in users] == ["alice", "carol"]


def test_reserved_none_token_cannot_be_stored():
    borrowed_by_none = Book(id=1, title="Dune", author="Frank Herbert",
                            is_available=False, borrowed_by="NONE", due_date=1700000000)
    with pytest.raises(CodecError):
        codec.encode_book(borrowed_by_none)

    with pytest.raises(CodecError):
        codec.encode_book(Book(id=1, title="Dune", author="Frank Herbert", cover_url="NONE"))
