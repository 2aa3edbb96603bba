import re
from typing import Optional

from codec import NONE_TOKEN

# Characters that would break a line in the books file.
_RESERVED = re.compile(r"[|\r\n]")


class TextValidator:
    """Checks applied to user input before it reaches the lending engine."""

    @staticmethod
    def _is_non_empty(text: Optional[str]) -> bool:
        return text is not None and bool(text.strip())

    @staticmethod
    def is_storable(text: Optional[str]) -> bool:
        """True when the text can be written to the books file unchanged."""
        if text is None:
            return True
        return _RESERVED.search(text) is None

    @staticmethod
    def validate_cover_url(cover_url: Optional[str]) -> bool:
        # "NONE" marks an empty cover URL in the books file.
        return TextValidator.is_storable(cover_url) and (cover_url or "").strip() != NONE_TOKEN

    @staticmethod
    def validate_title(title: Optional[str]) -> bool:
        return TextValidator._is_non_empty(title) and TextValidator.is_storable(title)

    @staticmethod
    def validate_author(author: Optional[str]) -> bool:
        return TextValidator._is_non_empty(author) and TextValidator.is_storable(author)

    @staticmethod
    def validate_username(username: Optional[str]) -> bool:
        # Usernames are stored as whitespace-separated tokens and as borrower names.
        if not TextValidator._is_non_empty(username):
            return False
        if username.strip() == NONE_TOKEN:
            return False
        return not any(ch.isspace() for ch in username) and TextValidator.is_storable(username)

    @staticmethod
    def sanitize_text(text: Optional[str]) -> str:
        if text is None:
            return ""
        return text.strip()
