"""Generator stages: mapping, normalization, planning, rendering and writing."""

from odoo_uigen.generator.drift import compute_drift
from odoo_uigen.generator.manifest import (
    GenerationManifest,
    ManifestEntry,
    ManifestError,
    ModelSnapshot,
)
from odoo_uigen.generator.normalizer import normalize, select_primary_label
from odoo_uigen.generator.pipeline import GenerationPipeline, RunReport
from odoo_uigen.generator.planner import ArtifactPlan, plan
from odoo_uigen.generator.regions import (
    Region,
    RegionParseError,
    extract_regions,
    parse_regions,
    splice_regions,
    strip_region_bodies,
)
from odoo_uigen.generator.renderer import Renderer, TemplateFault
from odoo_uigen.generator.status import ArtifactState, ArtifactStatus, inspect_manifest
from odoo_uigen.generator.type_mapper import map_field
from odoo_uigen.generator.writer import IdempotentWriter, WriteFailed

__all__ = [
    "ArtifactPlan",
    "ArtifactState",
    "ArtifactStatus",
    "GenerationManifest",
    "GenerationPipeline",
    "IdempotentWriter",
    "ManifestEntry",
    "ManifestError",
    "ModelSnapshot",
    "Region",
    "RegionParseError",
    "Renderer",
    "RunReport",
    "TemplateFault",
    "WriteFailed",
    "compute_drift",
    "extract_regions",
    "inspect_manifest",
    "map_field",
    "normalize",
    "parse_regions",
    "plan",
    "select_primary_label",
    "splice_regions",
    "strip_region_bodies",
]
