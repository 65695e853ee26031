"""
Normalization primitives shared by the decoder, repair and dedup stages.

Every normalizer returns an empty string for input it cannot make sense of;
callers simply skip empty results.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

MIN_PHONE_DIGITS = 7

EMAIL_PATTERN = r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"
_EMAIL_EXACT_RE = re.compile(rf"^{EMAIL_PATTERN}$")


def normalize_phone(raw: str) -> str:
    """Reduce a phone number to its digits, keeping a leading '+'.

    "+1 (555) 867-5309" → "+15558675309"
    "555-12"            → ""  (fewer than 7 digits)
    """
    value = raw.strip()
    digits = re.sub(r"\D", "", value)
    if len(digits) < MIN_PHONE_DIGITS:
        return ""
    return f"+{digits}" if value.startswith("+") else digits


def normalize_email(raw: str) -> str:
    return raw.strip().lower()


def is_email(value: str) -> bool:
    """True when the whole string is one email address."""
    return bool(_EMAIL_EXACT_RE.match(value))


def normalize_name(name: str) -> str:
    """Lowercase, drop everything but letters and spaces, collapse whitespace.

    Used only for identity comparison, never for display.
    """
    lowered = re.sub(r"[^a-z\s]", "", name.lower())
    return re.sub(r"\s+", " ", lowered).strip()


def append_unique(target: list[str], values: Iterable[str]) -> None:
    """Append non-empty values not already present, preserving order."""
    for value in values:
        if value and value not in target:
            target.append(value)
