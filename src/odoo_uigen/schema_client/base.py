"""
odoo-uigen — schema client contract and shared parsing

Purpose
- Define the capability the generator core consumes to introspect a model.
- Normalize raw ``fields_get``-shaped payloads into ``FieldMetadata``.

Functional requirements
- ``fetch_model_schema`` returns field metadata in server order.
- Failures are classified as ``Unreachable`` or ``Unauthorized`` so the
  pipeline can skip the affected model and continue with the rest.

Non-functional requirements
- Parsing never raises on odd attribute values; garbage flows on to the
  type mapper, which degrades it with a diagnostic.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol, runtime_checkable

from odoo_uigen.domain.models import FieldMetadata


@runtime_checkable
class SchemaClient(Protocol):
    """Protocol implemented by concrete schema sources."""

    async def fetch_model_schema(self, model_name: str) -> list[FieldMetadata]:
        """Return the ordered field metadata of ``model_name``."""


class SchemaClientError(RuntimeError):
    """Base schema-source error with machine-readable fields."""

    code = "schema_client_error"

    def __init__(self, detail: str, *, model: str | None = None, source: str = "odoo") -> None:
        self.detail = " ".join(str(detail).split()) or "unspecified failure"
        self.model = model
        self.source = source
        parts = [f"source={self.source}", f"code={self.code}"]
        if model is not None:
            parts.append(f"model={model}")
        parts.append(f"detail={self.detail}")
        super().__init__(" ".join(parts))


class Unreachable(SchemaClientError):
    """Server could not be contacted, timed out, or does not know the model."""

    code = "unreachable"


class Unauthorized(SchemaClientError):
    """Credentials were rejected or access to the model was denied."""

    code = "unauthorized"


def parse_fields_get(
    payload: object, *, model: str, source: str = "odoo"
) -> list[FieldMetadata]:
    """Convert a ``fields_get`` result into ordered ``FieldMetadata``.

    Accepts the native mapping ``{name: attributes}`` and, for fixture files,
    a list of attribute mappings each carrying its own ``name`` key. Entries
    whose attributes are not a mapping are kept with an empty attribute set so
    the normalizer can report them.
    """

    if isinstance(payload, Mapping):
        items: list[tuple[object, object]] = list(payload.items())
    elif isinstance(payload, Sequence) and not isinstance(payload, (str, bytes)):
        items = []
        for entry in payload:
            name = entry.get("name") if isinstance(entry, Mapping) else None
            items.append((name, entry))
    else:
        raise Unreachable(
            f"unexpected schema payload type {type(payload).__name__}",
            model=model,
            source=source,
        )

    fields: list[FieldMetadata] = []
    for raw_name, attributes in items:
        name = raw_name if isinstance(raw_name, str) else ""
        if not isinstance(attributes, Mapping):
            attributes = {}
        fields.append(FieldMetadata.from_fields_get(name, attributes))
    return fields


__all__ = [
    "SchemaClient",
    "SchemaClientError",
    "Unauthorized",
    "Unreachable",
    "parse_fields_get",
]
