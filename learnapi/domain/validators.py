"""Field-level validation for user profile values."""
from __future__ import annotations

import re

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[A-Za-z]{2,}")
# letters (any script), spaces, apostrophes and hyphens
NAME_PATTERN = re.compile(r"[^\W\d_](?:[^\W\d_]|[ '\-])*")
NAME_MAX_LENGTH = 50


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def is_valid_email(value: str | None) -> bool:
    if not value or not isinstance(value, str):
        return False
    return bool(EMAIL_PATTERN.fullmatch(value.strip()))


def is_valid_name(value: str | None) -> bool:
    """Return True for 1-50 chars made of letters, spaces, apostrophes or hyphens."""
    if not value or not isinstance(value, str):
        return False
    candidate = value.strip()
    if not candidate or len(candidate) > NAME_MAX_LENGTH:
        return False
    return bool(NAME_PATTERN.fullmatch(candidate))
