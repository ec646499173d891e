"""Plan the set of artifacts a model descriptor produces."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from odoo_uigen.domain.models import ArtifactKind, ModelDescriptor
from odoo_uigen.generator import naming
from odoo_uigen.generator.renderer import Renderer
from odoo_uigen.utils.hashing import sha256_text


@dataclass(slots=True)
class ArtifactPlan:
    """One artifact to produce; rendering happens on first access and is cached."""

    descriptor: ModelDescriptor
    kind: ArtifactKind
    renderer: Renderer = field(repr=False)
    output_dir: Path
    field_name: str | None = None
    _rendered: str | None = field(default=None, init=False, repr=False)
    _fingerprint: str | None = field(default=None, init=False, repr=False)

    @property
    def model_name(self) -> str:
        return self.descriptor.model_name

    @property
    def module_name(self) -> str:
        return naming.module_name(self.model_name, self.kind, self.field_name)

    @property
    def file_name(self) -> str:
        return naming.file_name(self.model_name, self.kind, self.field_name)

    @property
    def target_path(self) -> Path:
        return self.output_dir / self.file_name

    @property
    def artifact_label(self) -> str:
        if self.field_name:
            return f"{self.kind.value}:{self.field_name}"
        return self.kind.value

    @property
    def rendered_content(self) -> str:
        """Rendered text; raises ``TemplateFault`` when the templates cannot render it."""

        if self._rendered is None:
            self._rendered = self.renderer.render(self.descriptor, self.kind, self.field_name)
        return self._rendered

    @property
    def content_fingerprint(self) -> str:
        if self._fingerprint is None:
            self._fingerprint = sha256_text(self.rendered_content)
        return self._fingerprint

    @property
    def is_rendered(self) -> bool:
        return self._rendered is not None


def plan(
    descriptor: ModelDescriptor, renderer: Renderer, output_dir: str | Path
) -> list[ArtifactPlan]:
    """Type definitions, list and form first, then one sub-component per enum/relation field."""

    root = Path(output_dir)
    plans = [
        ArtifactPlan(descriptor=descriptor, kind=kind, renderer=renderer, output_dir=root)
        for kind in (ArtifactKind.TYPES, ArtifactKind.LIST, ArtifactKind.FORM)
    ]
    plans.extend(
        ArtifactPlan(
            descriptor=descriptor,
            kind=ArtifactKind.FIELD,
            renderer=renderer,
            output_dir=root,
            field_name=item.name,
        )
        for item in descriptor.component_fields()
    )
    return plans


__all__ = ["ArtifactPlan", "plan"]
