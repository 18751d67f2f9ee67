"""Reusable field validators."""

import re
from typing import Optional

_LETTER = re.compile(r"[a-zA-Z]")
_DIGIT = re.compile(r"\d")


def normalize_email(value: Optional[str]) -> Optional[str]:
    """Lower-case an email address; emails are compared case-sensitively in storage."""
    if value is None:
        return None
    return value.strip().lower()


def check_password_strength(value: str) -> str:
    """Require at least 8 characters with at least one letter and one number."""
    if len(value) < 8:
        raise ValueError("password must be at least 8 characters")
    if not _LETTER.search(value) or not _DIGIT.search(value):
        raise ValueError("password must contain at least 1 letter and 1 number")
    return value
