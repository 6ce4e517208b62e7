"""ULID generation and validation."""

from __future__ import annotations

import re

from ulid import ULID

# Crockford Base32 alphabet: 0-9 A-Z excluding I, L, O, U
_CROCKFORD_B32_RE = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$", re.IGNORECASE)


def generate_key_prefix() -> str:
    """Generate the unique part of a storage key (a bare ULID)."""
    return str(ULID())


def generate_draft_id() -> str:
    """Generate a local ID for an uncommitted draft, with the draft_ prefix."""
    return f"draft_{ULID()}"


def is_ulid(value: str) -> bool:
    """Return ``True`` if *value* is 26 characters of Crockford Base32."""
    return isinstance(value, str) and bool(_CROCKFORD_B32_RE.match(value))


def validate_id(id_str: str, expected_prefix: str) -> bool:
    """Validate a ``<prefix>_<ulid>`` identifier.

    The ULID portion must be exactly 26 characters of valid Crockford
    Base32 (0-9, A-Z excluding I, L, O, U -- case insensitive).
    """
    if not isinstance(id_str, str) or not isinstance(expected_prefix, str):
        return False

    parts = id_str.split("_", maxsplit=1)
    if len(parts) != 2:
        return False

    prefix, ulid_part = parts
    if prefix != expected_prefix:
        return False

    return is_ulid(ulid_part)
