"""Unit tests for atomic writes, text reads and path containment."""

from __future__ import annotations

from pathlib import Path

from odoo_uigen.utils.fs import atomic_write, is_within, read_text_if_exists
from odoo_uigen.utils.hashing import is_sha256_hex, normalize_newlines, sha256_text


def test_atomic_write_creates_parents_and_leaves_no_temp_files(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b" / "file.ts"

    atomic_write(target, "export {};\n")
    atomic_write(target, b"export const x = 1;\n")

    assert target.read_bytes() == b"export const x = 1;\n"
    assert [path.name for path in target.parent.iterdir()] == ["file.ts"]


def test_atomic_write_keeps_lf_line_endings(tmp_path: Path) -> None:
    target = tmp_path / "file.ts"

    atomic_write(target, "a\nb\n")

    assert target.read_bytes() == b"a\nb\n"


def test_read_text_if_exists(tmp_path: Path) -> None:
    target = tmp_path / "file.ts"

    assert read_text_if_exists(target) is None
    target.write_bytes("café\r\n".encode())
    assert read_text_if_exists(target) == "café\r\n"


def test_is_within(tmp_path: Path) -> None:
    assert is_within(tmp_path / "out" / "x.ts", tmp_path)
    assert not is_within(tmp_path / ".." / "elsewhere", tmp_path)


def test_hashing_ignores_line_ending_style() -> None:
    assert normalize_newlines("a\r\nb\rc\n") == "a\nb\nc\n"
    assert sha256_text("a\r\nb\n") == sha256_text("a\nb\n")
    assert is_sha256_hex(sha256_text(""))
    assert not is_sha256_hex("A" * 64)
    assert not is_sha256_hex(None)
