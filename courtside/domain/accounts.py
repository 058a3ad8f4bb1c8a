"""Domain helpers for account field validation."""
from __future__ import annotations

import re

USERNAME_PATTERN = re.compile(r"[A-Za-z0-9_.-]{3,32}")
EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[A-Za-z]{2,}")


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def is_valid_username(value: str | None) -> bool:
    if not value:
        return False
    return bool(USERNAME_PATTERN.fullmatch(value))


def is_valid_email(value: str | None) -> bool:
    if not value:
        return False
    return len(value) <= 255 and bool(EMAIL_PATTERN.fullmatch(value))
