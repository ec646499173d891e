"""
odoo-uigen — artifact renderer

Purpose
- Render one artifact of a model from the packaged jinja2 templates.

What should be included in this file
- Template loading and a strict jinja2 environment.
- Context building: TypeScript types, identifiers and string literals derived
  from the descriptor only.
- Post-render checks on the generated header and custom regions.

Functional requirements
- Same descriptor, artifact kind and template version give byte-identical
  output.
- Every rendered artifact carries a machine-readable header and empty
  custom-code regions.
- Anything the templates cannot render raises ``TemplateFault``.

Non-functional requirements
- No I/O beyond reading templates; no clock, environment or randomness.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from jinja2 import Environment, StrictUndefined, Template, TemplateError

from odoo_uigen.constants import TEMPLATE_VERSION
from odoo_uigen.domain.models import (
    ArtifactKind,
    FieldDescriptor,
    ModelDescriptor,
    SemanticType,
    WidgetClass,
)
from odoo_uigen.generator import naming
from odoo_uigen.generator.regions import RegionParseError, begin_marker, end_marker, parse_regions
from odoo_uigen.utils.hashing import normalize_newlines

if TYPE_CHECKING:
    from collections.abc import Sequence

TEMPLATE_FILES: Final[dict[ArtifactKind, str]] = {
    ArtifactKind.TYPES: "types.ts.j2",
    ArtifactKind.FORM: "form.tsx.j2",
    ArtifactKind.LIST: "list.tsx.j2",
    ArtifactKind.FIELD: "field.tsx.j2",
}

_BASE_TS_TYPES: Final[dict[SemanticType, str]] = {
    SemanticType.TEXT: "string",
    SemanticType.LONG_TEXT: "string",
    SemanticType.INTEGER: "number",
    SemanticType.DECIMAL: "number",
    SemanticType.BOOLEAN: "boolean",
    SemanticType.ENUM: "string",
    SemanticType.DATE_ONLY: "string",
    SemanticType.DATE_TIME: "string",
    SemanticType.RELATION_SINGLE: "RelationRef",
    SemanticType.RELATION_MANY: "number[]",
    SemanticType.RELATION_MANY_EMBEDDED: "number[]",
}

# Values Odoo never reports as null: booleans are false, x2many are empty lists.
_NEVER_NULL: Final[frozenset[SemanticType]] = frozenset(
    {SemanticType.BOOLEAN, SemanticType.RELATION_MANY, SemanticType.RELATION_MANY_EMBEDDED}
)

_INPUT_TYPES: Final[dict[WidgetClass, str]] = {
    WidgetClass.INPUT: "text",
    WidgetClass.NUMBER_INPUT: "number",
    WidgetClass.DATE_PICKER: "date",
    WidgetClass.DATETIME_PICKER: "datetime-local",
}

# Per-field identifiers each artifact declares or imports; collisions only break those.
_SHARED_IDENTIFIER_KEYS: Final[dict[ArtifactKind, tuple[str, ...]]] = {
    ArtifactKind.TYPES: ("options_const",),
    ArtifactKind.LIST: (),
    ArtifactKind.FORM: ("component",),
    ArtifactKind.FIELD: ("component", "options_const"),
}

# Relational x2many columns are not shown in list views.
_LIST_EXCLUDED: Final[frozenset[SemanticType]] = frozenset({SemanticType.RELATION_MANY_EMBEDDED})


class TemplateFault(RuntimeError):
    """Raised when a descriptor cannot be rendered into an artifact."""

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        artifact: str | None = None,
        field: str | None = None,
    ) -> None:
        self.model = model
        self.artifact = artifact
        self.field = field
        super().__init__(message)


class Renderer:
    """Deterministic artifact renderer over the packaged templates."""

    def __init__(
        self,
        *,
        template_root: Path | str | None = None,
        template_version: str = TEMPLATE_VERSION,
    ) -> None:
        root = Path(template_root) if template_root is not None else default_template_root()
        self._template_root = root.resolve()
        self._template_version = template_version
        self._environment = Environment(
            undefined=StrictUndefined,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            newline_sequence="\n",
            keep_trailing_newline=True,
        )
        self._environment.globals["begin"] = begin_marker
        self._environment.globals["end"] = end_marker
        self._templates: dict[ArtifactKind, Template] = {}
        self._lock = threading.Lock()

    @property
    def template_version(self) -> str:
        return self._template_version

    @property
    def template_root(self) -> Path:
        return self._template_root

    def render(
        self,
        descriptor: ModelDescriptor,
        artifact_kind: ArtifactKind | str,
        field_name: str | None = None,
    ) -> str:
        kind = ArtifactKind(artifact_kind)
        fault_scope = {"model": descriptor.model_name, "artifact": kind.value, "field": field_name}
        context = self._build_context(descriptor, kind, field_name)
        template = self._template(kind, fault_scope)
        try:
            rendered = template.render(**context)
        except TemplateError as exc:
            raise TemplateFault(f"template rendering failed: {exc}", **fault_scope) from exc
        rendered = normalize_newlines(rendered)
        _check_output(rendered, fault_scope)
        return rendered

    def _template(self, kind: ArtifactKind, fault_scope: Mapping[str, str | None]) -> Template:
        with self._lock:
            cached = self._templates.get(kind)
            if cached is not None:
                return cached
            path = self._template_root / TEMPLATE_FILES[kind]
            try:
                source = normalize_newlines(path.read_text(encoding="utf-8"))
                template = self._environment.from_string(source)
            except OSError as exc:
                raise TemplateFault(
                    f"template unavailable: {path.as_posix()}", **fault_scope
                ) from exc
            except TemplateError as exc:
                raise TemplateFault(
                    f"template {path.name} is invalid: {exc}", **fault_scope
                ) from exc
            self._templates[kind] = template
            return template

    def _build_context(
        self,
        descriptor: ModelDescriptor,
        kind: ArtifactKind,
        field_name: str | None,
    ) -> dict[str, Any]:
        model = descriptor.model_name
        scope = {"model": model, "artifact": kind.value, "field": field_name}
        type_name = naming.type_name(model)
        if not naming.is_ts_identifier(type_name):
            raise TemplateFault(f"model name {model!r} yields no valid identifier", **scope)

        fields = [_field_context(descriptor, item) for item in descriptor.fields]
        component_fields = [item for item in fields if item["component"]]
        enum_fields = [item for item in fields if item["semantic_type"] == "enum"]
        identifier_keys = _SHARED_IDENTIFIER_KEYS[kind]
        if identifier_keys:
            candidates = enum_fields if kind is ArtifactKind.TYPES else component_fields
            _check_unique_identifiers(candidates, identifier_keys, scope)

        context: dict[str, Any] = {
            "header": naming.header_line(model, kind, self._template_version, field_name),
            "model_name": model,
            "model_literal": _literal(model),
            "type_name": type_name,
            "types_import": naming.import_path(model, ArtifactKind.TYPES),
            "form_component": naming.component_name(model, ArtifactKind.FORM),
            "list_component": naming.component_name(model, ArtifactKind.LIST),
            "primary_label_literal": _literal(descriptor.primary_label_field),
            "fields": fields,
            "component_fields": component_fields,
            "enum_fields": enum_fields,
            "list_fields": [item for item in fields if item["in_list"]],
            "has_relations": any(item["is_relation"] for item in component_fields),
            "has_id_field": any(item.name == "id" for item in descriptor.fields),
            "field_name_union": " | ".join(item["name_literal"] for item in fields) or "never",
        }

        if kind is ArtifactKind.FIELD:
            if not field_name:
                raise TemplateFault("field artifacts require a field name", **scope)
            try:
                position = descriptor.fields.index(descriptor.field(field_name))
            except KeyError as exc:
                raise TemplateFault(f"model has no field {field_name!r}", **scope) from exc
            selected = fields[position]
            if not selected["component"]:
                semantic_type = selected["semantic_type"]
                raise TemplateFault(
                    f"field {field_name!r} of type {semantic_type} has no sub-component",
                    **scope,
                )
            context["field"] = selected
        elif field_name is not None:
            raise TemplateFault(f"{kind.value} artifacts take no field name", **scope)
        return context


def default_template_root() -> Path:
    return Path(__file__).resolve().parents[1] / "templates"


def ts_type_for(descriptor: ModelDescriptor, item: FieldDescriptor) -> str:
    """TypeScript type of one record property."""

    if item.semantic_type is SemanticType.ENUM and item.enum_options:
        options_const = naming.options_const_name(descriptor.model_name, item.name)
        base = f'(typeof {options_const})[number]["value"]'
    else:
        base = _BASE_TS_TYPES[item.semantic_type]
    if item.required or item.semantic_type in _NEVER_NULL:
        return base
    return f"{base} | null"


def _field_context(descriptor: ModelDescriptor, item: FieldDescriptor) -> dict[str, Any]:
    model = descriptor.model_name
    semantic_type = item.semantic_type
    nullable = not item.required and semantic_type not in _NEVER_NULL
    has_component = semantic_type.needs_field_component
    name_literal = _literal(item.name)
    type_name = naming.type_name(model)

    if semantic_type is SemanticType.ENUM:
        cast = f"event.target.value as {type_name}[{name_literal}]"
        change_value = f'event.target.value === "" ? null : ({cast})' if nullable else cast
    elif item.widget_class is WidgetClass.NUMBER_INPUT:
        change_value = (
            'event.target.value === "" ? null : Number(event.target.value)'
            if nullable
            else "Number(event.target.value)"
        )
    else:
        change_value = (
            'event.target.value === "" ? null : event.target.value'
            if nullable
            else "event.target.value"
        )

    return {
        "name": item.name,
        "name_literal": name_literal,
        "label_literal": _literal(item.label),
        "semantic_type": semantic_type.value,
        "semantic_type_literal": _literal(semantic_type.value),
        "widget": item.widget_class.value,
        "widget_literal": _literal(item.widget_class.value),
        "required": item.required,
        "required_literal": _bool_literal(item.required),
        "readonly": item.readonly,
        "readonly_literal": _bool_literal(item.readonly),
        "placeholder": item.placeholder,
        "help_comment": _comment_text(item.help),
        "help_literal": _literal(" ".join(item.help.split())) if item.help else None,
        "ts_type": ts_type_for(descriptor, item),
        "is_relation": semantic_type.is_relation,
        "relation_literal": _literal(item.relation_target) if item.relation_target else None,
        "options": [
            {"value_literal": _literal(value), "label_literal": _literal(label)}
            for value, label in item.enum_options
        ],
        "options_const": naming.options_const_name(model, item.name),
        "component": (
            naming.component_name(model, ArtifactKind.FIELD, item.name) if has_component else None
        ),
        "component_import": (
            naming.import_path(model, ArtifactKind.FIELD, item.name) if has_component else None
        ),
        "in_list": semantic_type not in _LIST_EXCLUDED,
        "input_type_literal": _literal(_INPUT_TYPES.get(item.widget_class, "text")),
        "step_literal": _literal("1" if semantic_type is SemanticType.INTEGER else "any"),
        "change_value": change_value,
    }


def _check_unique_identifiers(
    candidates: Sequence[Mapping[str, Any]],
    keys: Sequence[str],
    scope: Mapping[str, str | None],
) -> None:
    seen: dict[str, str] = {}
    for item in candidates:
        for identifier in (item[key] for key in keys):
            other = seen.get(identifier)
            if other is not None and other != item["name"]:
                raise TemplateFault(
                    f"fields {other!r} and {item['name']!r} both map to identifier {identifier!r}",
                    **scope,
                )
            seen[identifier] = item["name"]


def _check_output(rendered: str, fault_scope: Mapping[str, str | None]) -> None:
    if not naming.has_generated_header(rendered):
        raise TemplateFault("rendered artifact lacks the generated-file header", **fault_scope)
    try:
        regions = parse_regions(rendered)
    except RegionParseError as exc:
        raise TemplateFault(f"rendered artifact has broken regions: {exc}", **fault_scope) from exc
    if not regions:
        raise TemplateFault("rendered artifact declares no custom regions", **fault_scope)
    for region in regions:
        if region.body:
            raise TemplateFault(f"region {region.name!r} is not empty", **fault_scope)


def _literal(value: str | None) -> str:
    # JSON string literals are valid TypeScript string literals.
    return json.dumps(value, ensure_ascii=False)


def _bool_literal(value: bool) -> str:
    return "true" if value else "false"


def _comment_text(text: str | None) -> str | None:
    if not text:
        return None
    return " ".join(text.split()).replace("*/", "* /")


__all__ = ["TEMPLATE_FILES", "Renderer", "TemplateFault", "default_template_root", "ts_type_for"]
