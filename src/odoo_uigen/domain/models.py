"""Dataclass domain models with canonical serialization.

Everything here is a pure value type: field metadata as reported by the
server, the descriptors derived from it, and the diagnostics/outcomes the
generator stages hand to each other.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from odoo_uigen.utils.hashing import sha256_text

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


class SemanticType(StrEnum):
    TEXT = "text"
    LONG_TEXT = "longText"
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    ENUM = "enum"
    DATE_ONLY = "dateOnly"
    DATE_TIME = "dateTime"
    RELATION_SINGLE = "relationSingle"
    RELATION_MANY = "relationMany"
    RELATION_MANY_EMBEDDED = "relationManyEmbedded"

    @property
    def is_relation(self) -> bool:
        return self in _RELATION_TYPES

    @property
    def needs_field_component(self) -> bool:
        """Whether the widget needs auxiliary data (option list or record lookup)."""

        return self is SemanticType.ENUM or self.is_relation


_RELATION_TYPES = frozenset(
    {
        SemanticType.RELATION_SINGLE,
        SemanticType.RELATION_MANY,
        SemanticType.RELATION_MANY_EMBEDDED,
    }
)


class WidgetClass(StrEnum):
    INPUT = "input"
    TEXTAREA = "textarea"
    NUMBER_INPUT = "number-input"
    CHECKBOX = "checkbox"
    SELECT = "select"
    COMBOBOX = "combobox"
    EMBEDDED_TABLE = "embedded-table"
    MULTI_SELECT = "multi-select"
    DATE_PICKER = "date-picker"
    DATETIME_PICKER = "datetime-picker"


class ArtifactKind(StrEnum):
    TYPES = "types"
    FORM = "form"
    LIST = "list"
    FIELD = "field"


class WriteResult(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    CONFLICT_PRESERVED = "conflict_preserved"


class DiagnosticKind(StrEnum):
    SCHEMA_INCONSISTENCY = "schema_inconsistency"
    UNAUTHORIZED = "unauthorized"
    UNREACHABLE = "unreachable"
    CONFLICT_PRESERVED = "conflict_preserved"
    TEMPLATE_FAULT = "template_fault"
    WRITE_FAILED = "write_failed"
    CANCELLED = "cancelled"


class Severity(StrEnum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class FieldMetadata:
    """One model attribute as reported by the schema server.

    ``raw_type`` is deliberately untyped beyond ``object``: servers and fixture
    files occasionally report garbage and the type mapper must degrade, not
    crash.
    """

    name: str
    raw_type: object
    label: str = ""
    required: bool = False
    readonly: bool = False
    relation_target: str | None = None
    selection_options: tuple[tuple[str, str], ...] = ()
    computed: bool = False
    help: str | None = None

    @classmethod
    def from_fields_get(cls, name: str, attributes: Mapping[str, object]) -> FieldMetadata:
        """Build metadata from one entry of Odoo's ``fields_get`` result."""

        relation = attributes.get("relation")
        help_text = attributes.get("help")
        label = attributes.get("string")
        if not isinstance(relation, str) or not relation.strip():
            relation = None
        return cls(
            name=name,
            raw_type=attributes.get("type"),
            label=label if isinstance(label, str) else "",
            required=bool(attributes.get("required", False)),
            readonly=bool(attributes.get("readonly", False)),
            relation_target=relation.strip() if relation is not None else None,
            selection_options=_parse_selection(attributes.get("selection")),
            computed=bool(attributes.get("compute")) or bool(attributes.get("depends")),
            help=help_text if isinstance(help_text, str) and help_text.strip() else None,
        )


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    name: str
    semantic_type: SemanticType
    widget_class: WidgetClass
    label: str
    required: bool = False
    readonly: bool = False
    enum_options: tuple[tuple[str, str], ...] = ()
    relation_target: str | None = None
    computed: bool = False
    help: str | None = None
    placeholder: bool = False

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "name": self.name,
            "semantic_type": self.semantic_type.value,
            "widget_class": self.widget_class.value,
            "label": self.label,
            "required": self.required,
            "readonly": self.readonly,
            "enum_options": [[value, label] for value, label in self.enum_options],
            "relation_target": self.relation_target,
            "computed": self.computed,
            "help": self.help,
            "placeholder": self.placeholder,
        }


@dataclass(frozen=True, slots=True)
class ModelDescriptor:
    model_name: str
    fields: tuple[FieldDescriptor, ...] = ()
    primary_label_field: str | None = None

    def field(self, name: str) -> FieldDescriptor:
        for item in self.fields:
            if item.name == name:
                return item
        raise KeyError(f"{self.model_name} has no field {name!r}")

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(item.name for item in self.fields)

    def component_fields(self) -> tuple[FieldDescriptor, ...]:
        """Fields that warrant a dedicated generated sub-component, in model order."""

        return tuple(item for item in self.fields if item.semantic_type.needs_field_component)

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "model_name": self.model_name,
            "primary_label_field": self.primary_label_field,
            "fields": [item.to_dict() for item in self.fields],
        }

    def schema_fingerprint(self) -> str:
        return sha256_text(canonical_json(self.to_dict()))

    def schema_snapshot(self) -> dict[str, str]:
        return {item.name: item.semantic_type.value for item in self.fields}


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """One degraded or skipped unit of work."""

    kind: DiagnosticKind
    message: str
    severity: Severity = Severity.WARNING
    model: str | None = None
    artifact: str | None = None
    field: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def render(self) -> str:
        scope = "/".join(part for part in (self.model, self.artifact, self.field) if part)
        prefix = f"[{self.kind.value}]"
        if scope:
            return f"{prefix} {scope}: {self.message}"
        return f"{prefix} {self.message}"

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "model": self.model,
            "artifact": self.artifact,
            "field": self.field,
        }


@dataclass(frozen=True, slots=True)
class SchemaDrift:
    """Field-level difference between the previous run's snapshot and now."""

    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    retyped: tuple[tuple[str, str, str], ...] = ()
    first_run: bool = False

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.retyped)

    def describe(self) -> str:
        if self.first_run:
            return "new model"
        parts = [f"+{name}" for name in self.added]
        parts.extend(f"-{name}" for name in self.removed)
        parts.extend(f"~{name}({old}->{new})" for name, old, new in self.retyped)
        return " ".join(parts)

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "first_run": self.first_run,
            "added": list(self.added),
            "removed": list(self.removed),
            "retyped": [list(item) for item in self.retyped],
        }


@dataclass(frozen=True, slots=True)
class WriteOutcome:
    target_path: str
    result: WriteResult
    fingerprint: str
    diagnostic: Diagnostic | None = None
    written: bool = False


@dataclass(slots=True)
class ModelReport:
    """Per-model outcome of one generation run."""

    model: str
    outcomes: list[WriteOutcome] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    drift: SchemaDrift | None = None
    skipped: bool = False

    def count(self, result: WriteResult) -> int:
        return sum(1 for item in self.outcomes if item.result is result)

    @property
    def has_errors(self) -> bool:
        return any(item.is_error for item in self.diagnostics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "skipped": self.skipped,
            "counts": {result.value: self.count(result) for result in WriteResult},
            "outcomes": [
                {"path": item.target_path, "result": item.result.value}
                for item in self.outcomes
            ],
            "diagnostics": [item.to_dict() for item in self.diagnostics],
            "drift": self.drift.to_dict() if self.drift is not None else None,
        }


def canonical_json(value: object) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _parse_selection(raw: object) -> tuple[tuple[str, str], ...]:
    # Odoo reports selections as [[value, label], ...]; values may be ints.
    if not isinstance(raw, (list, tuple)):
        return ()
    options: list[tuple[str, str]] = []
    for item in raw:
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            continue
        value, label = item
        if value is None or value is False:
            continue
        options.append((str(value), str(label)))
    return tuple(options)


__all__ = [
    "ArtifactKind",
    "Diagnostic",
    "DiagnosticKind",
    "FieldDescriptor",
    "FieldMetadata",
    "JSONValue",
    "ModelDescriptor",
    "ModelReport",
    "SchemaDrift",
    "SemanticType",
    "Severity",
    "WidgetClass",
    "WriteOutcome",
    "WriteResult",
    "canonical_json",
]
