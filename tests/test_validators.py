from utils.validators import TextValidator


def test_title_and_author_must_be_non_empty():
    assert TextValidator.validate_title("Dune")
    assert not TextValidator.validate_title("")
    assert not TextValidator.validate_title("   ")
    assert not TextValidator.validate_author(None)


def test_reserved_characters_are_rejected():
    assert not TextValidator.validate_title("A|B")
    assert not TextValidator.validate_author("Line\nBreak")
    assert not TextValidator.is_storable("http://x/a|b")
    assert TextValidator.is_storable("")


def test_username_cannot_contain_whitespace():
    assert TextValidator.validate_username("alice")
    assert not TextValidator.validate_username("alice smith")
    assert not TextValidator.validate_username("")


def test_sanitize_strips_whitespace():
    assert TextValidator.sanitize_text("  Dune ") == "Dune"
    assert TextValidator.sanitize_text(None) == ""


def test_none_token_is_reserved():
    assert not TextValidator.validate_username("NONE")
    assert TextValidator.validate_username("none")
    assert not TextValidator.validate_cover_url("NONE")
    assert TextValidator.validate_cover_url("")
    assert TextValidator.validate_cover_url("http://img/dune.png")
