"""
odoo-uigen — raw field type to semantic type mapping

Purpose
- Classify one server-reported field into the generator's fixed vocabulary.

Functional requirements
- Total over every input: unknown, empty or non-string raw types map to
  ``text``/``input`` with a schema-inconsistency diagnostic.
- ``widget_class`` depends on ``semantic_type`` only.
- Relation fields without a target degrade to a read-only text placeholder.

Non-functional requirements
- Pure and deterministic; no I/O.
"""

from __future__ import annotations

from typing import Final

from odoo_uigen.domain.models import (
    Diagnostic,
    DiagnosticKind,
    FieldDescriptor,
    FieldMetadata,
    SemanticType,
    Severity,
    WidgetClass,
)

RAW_TYPE_TABLE: Final[dict[str, SemanticType]] = {
    "char": SemanticType.TEXT,
    "text": SemanticType.LONG_TEXT,
    "integer": SemanticType.INTEGER,
    "float": SemanticType.DECIMAL,
    "boolean": SemanticType.BOOLEAN,
    "selection": SemanticType.ENUM,
    "many2one": SemanticType.RELATION_SINGLE,
    "one2many": SemanticType.RELATION_MANY_EMBEDDED,
    "many2many": SemanticType.RELATION_MANY,
    "date": SemanticType.DATE_ONLY,
    "datetime": SemanticType.DATE_TIME,
}

WIDGET_TABLE: Final[dict[SemanticType, WidgetClass]] = {
    SemanticType.TEXT: WidgetClass.INPUT,
    SemanticType.LONG_TEXT: WidgetClass.TEXTAREA,
    SemanticType.INTEGER: WidgetClass.NUMBER_INPUT,
    SemanticType.DECIMAL: WidgetClass.NUMBER_INPUT,
    SemanticType.BOOLEAN: WidgetClass.CHECKBOX,
    SemanticType.ENUM: WidgetClass.SELECT,
    SemanticType.RELATION_SINGLE: WidgetClass.COMBOBOX,
    SemanticType.RELATION_MANY_EMBEDDED: WidgetClass.EMBEDDED_TABLE,
    SemanticType.RELATION_MANY: WidgetClass.MULTI_SELECT,
    SemanticType.DATE_ONLY: WidgetClass.DATE_PICKER,
    SemanticType.DATE_TIME: WidgetClass.DATETIME_PICKER,
}


def semantic_type_for(raw_type: object) -> SemanticType | None:
    """Table lookup; ``None`` for anything the table does not know."""

    if not isinstance(raw_type, str):
        return None
    return RAW_TYPE_TABLE.get(raw_type.strip().lower())


def widget_for(semantic_type: SemanticType) -> WidgetClass:
    return WIDGET_TABLE[semantic_type]


def map_field(
    meta: FieldMetadata, *, model: str | None = None
) -> tuple[FieldDescriptor, list[Diagnostic]]:
    """Map ``meta`` to a descriptor plus any degradation diagnostics."""

    diagnostics: list[Diagnostic] = []
    label = meta.label.strip() or _humanize(meta.name)

    semantic_type = semantic_type_for(meta.raw_type)
    if semantic_type is None:
        diagnostics.append(
            _inconsistency(
                meta, model, f"unsupported raw type {_describe_raw(meta.raw_type)}; mapped to text"
            )
        )
        semantic_type = SemanticType.TEXT

    relation_target = (meta.relation_target or "").strip()
    if semantic_type.is_relation and not relation_target:
        diagnostics.append(
            _inconsistency(
                meta,
                model,
                f"{meta.raw_type} field has no relation target; rendered as read-only placeholder",
            )
        )
        descriptor = FieldDescriptor(
            name=meta.name,
            semantic_type=SemanticType.TEXT,
            widget_class=widget_for(SemanticType.TEXT),
            label=label,
            required=False,
            readonly=True,
            computed=meta.computed,
            help=meta.help,
            placeholder=True,
        )
        return descriptor, diagnostics

    if semantic_type is SemanticType.ENUM and not meta.selection_options:
        diagnostics.append(_inconsistency(meta, model, "selection field has no options"))

    descriptor = FieldDescriptor(
        name=meta.name,
        semantic_type=semantic_type,
        widget_class=widget_for(semantic_type),
        label=label,
        required=meta.required,
        readonly=meta.readonly,
        enum_options=meta.selection_options if semantic_type is SemanticType.ENUM else (),
        relation_target=relation_target if semantic_type.is_relation else None,
        computed=meta.computed,
        help=meta.help,
    )
    return descriptor, diagnostics


def _inconsistency(meta: FieldMetadata, model: str | None, message: str) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.SCHEMA_INCONSISTENCY,
        message=message,
        severity=Severity.WARNING,
        model=model,
        field=meta.name or None,
    )


def _describe_raw(raw_type: object) -> str:
    if isinstance(raw_type, str):
        return repr(raw_type) if raw_type.strip() else "(empty)"
    return f"of type {type(raw_type).__name__}"


def _humanize(name: str) -> str:
    words = [part for part in name.replace(".", "_").split("_") if part]
    if words and words[-1] in {"id", "ids"} and len(words) > 1:
        words = words[:-1]
    return " ".join(words).capitalize()


__all__ = ["RAW_TYPE_TABLE", "WIDGET_TABLE", "map_field", "semantic_type_for", "widget_for"]
