"""Compare manifest entries with the generated files currently on disk."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from odoo_uigen.constants import TEMPLATE_VERSION
from odoo_uigen.generator.manifest import GenerationManifest
from odoo_uigen.generator.regions import RegionParseError, parse_regions, strip_region_bodies
from odoo_uigen.utils.fs import read_text_if_exists
from odoo_uigen.utils.hashing import sha256_text


class ArtifactState(StrEnum):
    OK = "ok"
    CUSTOMIZED = "customized"
    MODIFIED = "modified"
    CORRUPT = "corrupt"
    MISSING = "missing"


_CLEAN_STATES = frozenset({ArtifactState.OK, ArtifactState.CUSTOMIZED})


@dataclass(frozen=True, slots=True)
class ArtifactStatus:
    key: str
    model: str
    artifact: str
    state: ArtifactState
    template_version: str

    @property
    def is_clean(self) -> bool:
        return self.state in _CLEAN_STATES

    @property
    def template_current(self) -> bool:
        return self.template_version == TEMPLATE_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.key,
            "model": self.model,
            "artifact": self.artifact,
            "state": self.state.value,
            "template_version": self.template_version,
            "template_current": self.template_current,
        }


def inspect_manifest(manifest: GenerationManifest) -> list[ArtifactStatus]:
    """Classify every manifest entry against its file, in manifest key order.

    ``customized`` means the generated code is intact and at least one custom
    region holds user code; ``modified`` means code outside the regions no
    longer matches the recorded fingerprint.
    """

    statuses: list[ArtifactStatus] = []
    for key, entry in manifest.entries().items():
        try:
            text = read_text_if_exists(manifest.resolve(key))
        except (OSError, UnicodeDecodeError):
            state = ArtifactState.CORRUPT
        else:
            state = _classify(text, entry.fingerprint)
        statuses.append(
            ArtifactStatus(
                key=key,
                model=entry.model,
                artifact=entry.artifact,
                state=state,
                template_version=entry.template_version,
            )
        )
    return statuses


def _classify(text: str | None, fingerprint: str) -> ArtifactState:
    if text is None:
        return ArtifactState.MISSING
    try:
        regions = parse_regions(text)
    except RegionParseError:
        return ArtifactState.CORRUPT
    if sha256_text(strip_region_bodies(text)) != fingerprint:
        return ArtifactState.MODIFIED
    if any(region.has_content for region in regions):
        return ArtifactState.CUSTOMIZED
    return ArtifactState.OK


__all__ = ["ArtifactState", "ArtifactStatus", "inspect_manifest"]
