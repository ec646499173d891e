"""Utility exports for filesystem, hashing, and concurrency helpers."""

from odoo_uigen.utils.concurrency import (
    BoundedSemaphore,
    CancellationToken,
    PoolSlot,
    WorkerPool,
    run_with_timeout,
)
from odoo_uigen.utils.fs import atomic_write, is_within, read_text_if_exists
from odoo_uigen.utils.hashing import is_sha256_hex, normalize_newlines, sha256_bytes, sha256_text

__all__ = [
    "BoundedSemaphore",
    "CancellationToken",
    "PoolSlot",
    "WorkerPool",
    "atomic_write",
    "is_sha256_hex",
    "is_within",
    "normalize_newlines",
    "read_text_if_exists",
    "run_with_timeout",
    "sha256_bytes",
    "sha256_text",
]
