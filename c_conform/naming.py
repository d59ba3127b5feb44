"""Identifier casing classification shared by every naming rule."""

from __future__ import annotations

import re
from typing import Literal

NamingStyle = Literal["camelCase", "PascalCase", "UPPER_SNAKE", "other"]

_UPPER_SNAKE_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")
_PASCAL_RE = re.compile(r"^[A-Z][A-Za-z0-9]*$")
_CAMEL_RE = re.compile(r"^[a-z][A-Za-z0-9]*$")
_UPPER_WORD_RE = re.compile(r"[A-Z][^A-Z]*")
_FIRST_WORD_RE = re.compile(r"^[A-Za-z][a-z0-9]*")
_HUNGARIAN_RE = re.compile(r"^(?:p+|[a-z])[A-Z]")


def classify_name(name: str) -> NamingStyle:
    """Classify an identifier's casing.

    - ``UPPER_SNAKE``: uppercase letters, digits and underscores, starting uppercase.
    - ``PascalCase``: starts uppercase, no underscores, and every word that
      starts with an uppercase letter contains a lowercase letter.
    - ``camelCase``: starts lowercase, letters and digits only.
    - ``other``: anything else.
    """
    if _UPPER_SNAKE_RE.match(name):
        return "UPPER_SNAKE"
    if _PASCAL_RE.match(name) and all(
        any(char.islower() for char in word) for word in _UPPER_WORD_RE.findall(name)
    ):
        return "PascalCase"
    if _CAMEL_RE.match(name):
        return "camelCase"
    return "other"


def first_word(name: str) -> str:
    """Return the leading word of a camelCase or PascalCase identifier."""
    match = _FIRST_WORD_RE.match(name)
    return match.group() if match else ""


def has_hungarian_prefix(name: str) -> bool:
    """True for names such as ``pBuffer`` or ``bReady``."""
    return bool(_HUNGARIAN_RE.match(name))
