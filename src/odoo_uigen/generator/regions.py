"""
odoo-uigen — custom-code region markers

Purpose
- Locate, extract and splice the user-editable regions of generated files.

A region is delimited by two whole-line comment markers::

    // @uigen-custom-begin <name>
    ...user code...
    // @uigen-custom-end <name>

Functional requirements
- Bodies are preserved byte-for-byte, including their line endings.
- Unbalanced, nested, renamed, duplicated or malformed markers raise
  ``RegionParseError``; callers treat that as a conflict and leave the file alone.

Non-functional requirements
- Pure string functions; no I/O.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Final

from odoo_uigen.constants import REGION_BEGIN_TOKEN, REGION_END_TOKEN

_MARKER_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"[ \t]*//[ \t]*@uigen-custom-(?P<edge>begin|end)[ \t]+(?P<name>[A-Za-z][A-Za-z0-9_.-]*)[ \t]*"
)
_TOKEN_PREFIX: Final[str] = REGION_BEGIN_TOKEN.rsplit("-", 1)[0]


class RegionParseError(ValueError):
    """Raised when custom-region markers are missing, unbalanced or malformed."""

    def __init__(self, message: str, *, line: int | None = None) -> None:
        self.line = line
        super().__init__(f"line {line}: {message}" if line is not None else message)


@dataclass(frozen=True, slots=True)
class Region:
    """One parsed region; ``body`` excludes both marker lines."""

    name: str
    begin_line: int
    end_line: int
    body: str

    @property
    def has_content(self) -> bool:
        return bool(self.body.strip())


def begin_marker(name: str, indent: str = "") -> str:
    return f"{indent}// {REGION_BEGIN_TOKEN} {name}"


def end_marker(name: str, indent: str = "") -> str:
    return f"{indent}// {REGION_END_TOKEN} {name}"


def parse_regions(content: str) -> tuple[Region, ...]:
    """Parse every region of ``content`` in file order."""

    regions: list[Region] = []
    seen: set[str] = set()
    open_name: str | None = None
    open_line = 0
    body_parts: list[str] = []

    for index, line in enumerate(content.splitlines(keepends=True), start=1):
        marker = _classify(line, index)
        if marker is None:
            if open_name is not None:
                body_parts.append(line)
            continue
        edge, name = marker
        if edge == "begin":
            if open_name is not None:
                raise RegionParseError(
                    f"region {name!r} begins inside unterminated region {open_name!r}", line=index
                )
            if name in seen:
                raise RegionParseError(f"duplicate region {name!r}", line=index)
            open_name, open_line, body_parts = name, index, []
            continue
        if open_name is None:
            raise RegionParseError(f"end marker for {name!r} without begin", line=index)
        if name != open_name:
            raise RegionParseError(
                f"end marker {name!r} does not match open region {open_name!r}", line=index
            )
        regions.append(
            Region(name=name, begin_line=open_line, end_line=index, body="".join(body_parts))
        )
        seen.add(name)
        open_name = None

    if open_name is not None:
        raise RegionParseError(f"region {open_name!r} is never closed", line=open_line)
    return tuple(regions)


def region_names(content: str) -> tuple[str, ...]:
    return tuple(region.name for region in parse_regions(content))


def extract_regions(content: str) -> dict[str, str]:
    """Map region name to body, in file order."""

    return {region.name: region.body for region in parse_regions(content)}


def strip_region_bodies(content: str) -> str:
    """Return ``content`` with every region emptied; marker lines are kept."""

    return _rewrite(content, lambda _name, _body: "")


def splice_regions(rendered: str, bodies: Mapping[str, str]) -> str:
    """Fill the regions of ``rendered`` with ``bodies``; unknown names are ignored."""

    return _rewrite(rendered, lambda name, body: bodies.get(name, body))


def _rewrite(content: str, replace: Callable[[str, str], str]) -> str:
    parse_regions(content)
    output: list[str] = []
    open_name: str | None = None
    body_parts: list[str] = []
    for index, line in enumerate(content.splitlines(keepends=True), start=1):
        marker = _classify(line, index)
        if marker is None:
            if open_name is None:
                output.append(line)
            else:
                body_parts.append(line)
            continue
        edge, name = marker
        if edge == "begin":
            output.append(line)
            open_name, body_parts = name, []
            continue
        body = replace(name, "".join(body_parts))
        if body and not body.endswith(("\n", "\r")):
            body += "\n"
        output.append(body)
        output.append(line)
        open_name = None
    return "".join(output)


def _classify(line: str, index: int) -> tuple[str, str] | None:
    text = line.rstrip("\r\n")
    match = _MARKER_PATTERN.fullmatch(text)
    if match is not None:
        return match.group("edge"), match.group("name")
    if _TOKEN_PREFIX in text:
        raise RegionParseError(f"malformed region marker {text.strip()!r}", line=index)
    return None


__all__ = [
    "Region",
    "RegionParseError",
    "begin_marker",
    "end_marker",
    "extract_regions",
    "parse_regions",
    "region_names",
    "splice_regions",
    "strip_region_bodies",
]
