"""Schema drift between the previous run's snapshot and the current descriptor."""

from __future__ import annotations

from odoo_uigen.domain.models import ModelDescriptor, SchemaDrift
from odoo_uigen.generator.manifest import ModelSnapshot


def compute_drift(previous: ModelSnapshot | None, descriptor: ModelDescriptor) -> SchemaDrift:
    if previous is None:
        return SchemaDrift(first_run=True)
    current = descriptor.schema_snapshot()
    added = tuple(name for name in current if name not in previous.fields)
    removed = tuple(name for name in previous.fields if name not in current)
    retyped = tuple(
        (name, previous.fields[name], semantic_type)
        for name, semantic_type in current.items()
        if name in previous.fields and previous.fields[name] != semantic_type
    )
    return SchemaDrift(added=added, removed=removed, retyped=retyped)


__all__ = ["compute_drift"]
