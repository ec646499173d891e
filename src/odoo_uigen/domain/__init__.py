"""Domain value types shared by every generator stage; free of I/O."""

from odoo_uigen.domain.models import (
    ArtifactKind,
    Diagnostic,
    DiagnosticKind,
    FieldDescriptor,
    FieldMetadata,
    ModelDescriptor,
    ModelReport,
    SchemaDrift,
    SemanticType,
    Severity,
    WidgetClass,
    WriteOutcome,
    WriteResult,
    canonical_json,
)

__all__ = [
    "ArtifactKind",
    "Diagnostic",
    "DiagnosticKind",
    "FieldDescriptor",
    "FieldMetadata",
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
