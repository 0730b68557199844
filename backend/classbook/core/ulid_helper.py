"""ULID generation helper utilities."""

import re

import ulid

_ULID_RE = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$")


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ulid.ULID())


def is_valid_ulid(ulid_str: str) -> bool:
    """Check if a string is a valid ULID."""
    return bool(ulid_str) and _ULID_RE.match(ulid_str.upper()) is not None
