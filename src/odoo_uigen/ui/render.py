"""Output rendering for the uigen CLI.

Purpose
- Keep every human-readable line the CLI prints in one place so commands stay
  focused on data, and ``--json`` output never mixes with decorated text.
- Respect the ``NO_COLOR`` environment variable and the ``--no-color`` flag.

Functional requirements
- Plain-text rendering always works; color is limited to status labels and
  only used on a TTY.
- Diagnostics go to stdout with the summary so one redirect captures a run.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Sequence

_GREEN: Final[str] = "\033[32m"
_YELLOW: Final[str] = "\033[33m"
_RED: Final[str] = "\033[31m"
_RESET: Final[str] = "\033[0m"


def _color_allowed(no_color_flag: bool) -> bool:
    if no_color_flag:
        return False
    if os.environ.get("NO_COLOR", ""):
        return False
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


class CLIRenderer:
    """Deterministic plain-text renderer with optional ANSI status colors."""

    def __init__(self, *, no_color: bool = False, verbose: bool = False) -> None:
        self.verbose = verbose
        self._color = _color_allowed(no_color)

    @property
    def color(self) -> bool:
        return self._color

    def kv(self, key: str, value: object) -> None:
        print(f"{key}: {value}")

    def text(self, line: str) -> None:
        print(line)

    def detail(self, line: str) -> None:
        """Print an indented line only in verbose mode."""

        if self.verbose:
            print(f"    {line}")

    def section(self, title: str) -> None:
        print(f"\n{title}")

    def warning(self, text: str) -> None:
        print(f"  {self._paint('warning', _YELLOW)}: {text}")

    def error(self, text: str) -> None:
        print(f"  {self._paint('error', _RED)}: {text}")

    def items(self, entries: Sequence[str], *, prefix: str = "- ") -> None:
        for entry in entries:
            print(f"  {prefix}{entry}")

    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        *,
        title: str | None = None,
    ) -> None:
        """Print an aligned ASCII table; nothing is printed for zero rows."""

        if not rows:
            return

        col_count = len(headers)
        widths = [len(h) for h in headers]
        for row in rows:
            for i in range(min(len(row), col_count)):
                widths[i] = max(widths[i], len(str(row[i])))

        def _pad(cells: Sequence[str]) -> str:
            parts = [
                (str(cells[i]) if i < len(cells) else "").ljust(widths[i])
                for i in range(col_count)
            ]
            return "  ".join(parts).rstrip()

        if title:
            self.section(title)
        print(f"  {_pad(list(headers))}")
        print(f"  {'  '.join('-' * w for w in widths)}")
        for row in rows:
            print(f"  {_pad(list(row))}")

    def next_steps(self, steps: Sequence[str]) -> None:
        if not steps:
            return
        self.section("Next steps:")
        for step in steps:
            print(f"  $ {step}")

    def ok(self, label: str) -> None:
        print(f"{self._paint('OK', _GREEN)}    {label}")

    def fail(self, label: str) -> None:
        print(f"{self._paint('FAIL', _RED)}  {label}")

    def _paint(self, label: str, color: str) -> str:
        if not self._color:
            return label
        return f"{color}{label}{_RESET}"


def create_renderer(*, no_color: bool = False, verbose: bool = False) -> CLIRenderer:
    return CLIRenderer(no_color=no_color, verbose=verbose)


__all__ = ["CLIRenderer", "create_renderer"]
