"""
odoo-uigen — hashing utilities

Purpose
- Deterministic SHA-256 helpers for rendered artifacts and schema snapshots.

Functional requirements
- Text is normalized to ``\\n`` line endings before hashing so a checkout
  with CRLF conversion does not look like drift.

Non-functional requirements
- Standard library only; behavior is cross-platform deterministic.
"""

from __future__ import annotations

import hashlib
import string

_SHA256_HEX_LENGTH = 64
_HEX_DIGITS = frozenset(string.hexdigits.lower())

__all__ = [
    "is_sha256_hex",
    "normalize_newlines",
    "sha256_bytes",
    "sha256_text",
]


def sha256_bytes(data: bytes) -> str:
    """Return SHA-256 hex digest for raw bytes."""

    return hashlib.sha256(data).hexdigest()


def sha256_text(text: str, *, encoding: str = "utf-8") -> str:
    """Return SHA-256 hex digest for ``text`` after newline normalization."""

    return sha256_bytes(normalize_newlines(text).encode(encoding))


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def is_sha256_hex(value: object) -> bool:
    return (
        isinstance(value, str)
        and len(value) == _SHA256_HEX_LENGTH
        and set(value).issubset(_HEX_DIGITS)
    )
