"""Turn a model's raw field list into a ``ModelDescriptor``."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Final

from odoo_uigen.domain.models import (
    Diagnostic,
    DiagnosticKind,
    FieldDescriptor,
    FieldMetadata,
    ModelDescriptor,
    SemanticType,
    Severity,
)
from odoo_uigen.generator.type_mapper import map_field

# Field names become object keys and module-name segments in generated code.
_FIELD_NAME_PATTERN: Final[re.Pattern[str]] = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def normalize(
    model_name: str, metas: Iterable[FieldMetadata]
) -> tuple[ModelDescriptor, list[Diagnostic]]:
    """Deduplicate, map and order fields; never fails, even for empty input.

    Arrival order is kept. On a name collision the first declaration wins and
    every later one is dropped with a diagnostic.
    """

    diagnostics: list[Diagnostic] = []
    seen: set[str] = set()
    fields: list[FieldDescriptor] = []

    for position, meta in enumerate(metas):
        name = meta.name if isinstance(meta.name, str) else ""
        if not _FIELD_NAME_PATTERN.fullmatch(name):
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.SCHEMA_INCONSISTENCY,
                    message=f"field #{position} has malformed name {meta.name!r}; dropped",
                    severity=Severity.WARNING,
                    model=model_name,
                )
            )
            continue
        if name in seen:
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.SCHEMA_INCONSISTENCY,
                    message="duplicate field declaration dropped; first declaration kept",
                    severity=Severity.WARNING,
                    model=model_name,
                    field=name,
                )
            )
            continue
        seen.add(name)
        descriptor, field_diagnostics = map_field(meta, model=model_name)
        fields.append(descriptor)
        diagnostics.extend(field_diagnostics)

    return (
        ModelDescriptor(
            model_name=model_name,
            fields=tuple(fields),
            primary_label_field=select_primary_label(fields),
        ),
        diagnostics,
    )


def select_primary_label(fields: Iterable[FieldDescriptor]) -> str | None:
    """``name`` if it is text, else the first required text field, else the first field."""

    ordered = list(fields)
    text_fields = [item for item in ordered if item.semantic_type is SemanticType.TEXT]
    for item in text_fields:
        if item.name == "name":
            return item.name
    for item in text_fields:
        if item.required:
            return item.name
    if ordered:
        return ordered[0].name
    return None


__all__ = ["normalize", "select_primary_label"]
