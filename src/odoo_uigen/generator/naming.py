"""Stable file, module and identifier names for generated artifacts."""

from __future__ import annotations

import re
from typing import Final

from odoo_uigen.constants import ARTIFACT_SUFFIXES, GENERATOR_NAME, HEADER_TOKEN
from odoo_uigen.domain.models import ArtifactKind

_WORD_SPLIT: Final[re.Pattern[str]] = re.compile(r"[^A-Za-z0-9]+")
_TS_IDENTIFIER: Final[re.Pattern[str]] = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
HEADER_PREFIX: Final[str] = f"// {HEADER_TOKEN} {GENERATOR_NAME}"


def pascal_case(text: str) -> str:
    """``res.partner`` -> ``ResPartner``; ``company_id`` -> ``CompanyId``."""

    return "".join(word[:1].upper() + word[1:] for word in _WORD_SPLIT.split(text) if word)


def is_ts_identifier(text: str) -> bool:
    return _TS_IDENTIFIER.fullmatch(text) is not None


def module_name(model_name: str, kind: ArtifactKind, field_name: str | None = None) -> str:
    if kind is ArtifactKind.FIELD:
        if not field_name:
            raise ValueError("field artifacts require a field name")
        return f"{model_name}.fields.{field_name}"
    return f"{model_name}.{kind.value}"


def file_name(model_name: str, kind: ArtifactKind, field_name: str | None = None) -> str:
    return module_name(model_name, kind, field_name) + ARTIFACT_SUFFIXES[kind.value]


def import_path(model_name: str, kind: ArtifactKind, field_name: str | None = None) -> str:
    """Relative import specifier between sibling generated modules."""

    return "./" + module_name(model_name, kind, field_name)


def type_name(model_name: str) -> str:
    return pascal_case(model_name)


def component_name(model_name: str, kind: ArtifactKind, field_name: str | None = None) -> str:
    base = type_name(model_name)
    if kind is ArtifactKind.FORM:
        return f"{base}Form"
    if kind is ArtifactKind.LIST:
        return f"{base}List"
    if kind is ArtifactKind.FIELD and field_name:
        return f"{base}{pascal_case(field_name)}Field"
    raise ValueError(f"no component for artifact {kind.value!r}")


def options_const_name(model_name: str, field_name: str) -> str:
    return f"{type_name(model_name)}{pascal_case(field_name)}Options"


def header_line(
    model_name: str,
    kind: ArtifactKind,
    template_version: str,
    field_name: str | None = None,
) -> str:
    parts = [HEADER_PREFIX, f"model={model_name}", f"artifact={kind.value}"]
    if field_name:
        parts.append(f"field={field_name}")
    parts.append(f"template={template_version}")
    return " ".join(parts) + " (edit only inside custom regions)"


def has_generated_header(content: str) -> bool:
    first_line = content.split("\n", 1)[0].lstrip("\ufeff")
    return first_line.startswith(HEADER_PREFIX + " ")


def parse_header(content: str) -> dict[str, str]:
    """Key/value pairs of the generated-file header, empty when absent."""

    if not has_generated_header(content):
        return {}
    first_line = content.split("\n", 1)[0].lstrip("\ufeff").rstrip("\r")
    pairs: dict[str, str] = {}
    for token in first_line[len(HEADER_PREFIX) :].split():
        key, sep, value = token.partition("=")
        if sep and key and value:
            pairs[key] = value
    return pairs


__all__ = [
    "HEADER_PREFIX",
    "component_name",
    "file_name",
    "has_generated_header",
    "header_line",
    "import_path",
    "is_ts_identifier",
    "module_name",
    "options_const_name",
    "parse_header",
    "pascal_case",
    "type_name",
]
