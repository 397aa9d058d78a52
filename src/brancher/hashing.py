"""Digest helpers for content addressing."""

import hashlib

from brancher.constants import HASH_ALGORITHM, HASH_LENGTH

HEX_DIGITS = frozenset("0123456789abcdef")


def compute_digest(content: bytes) -> str:
    """Return the hex digest identifying ``content``.

    Example:
        >>> compute_digest(b"hello")
        'aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d'
    """
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(content)
    return hasher.hexdigest()


def is_digest(value: object) -> bool:
    """Check whether ``value`` is a full, lowercase hex digest."""
    return (
        isinstance(value, str)
        and len(value) == HASH_LENGTH
        and all(c in HEX_DIGITS for c in value)
    )
