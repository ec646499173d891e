"""
odoo-uigen — integration tests for repeated generation of res.partner

Purpose
- Drive the full fetch -> normalize -> plan -> write pipeline against real
  files and verify the idempotency and preservation guarantees end to end.

What this test file should cover
- First run creates types, list and form; an identical second run is a no-op.
- A new relation field updates every artifact and adds its sub-component.
- Custom region code survives regeneration; edits outside regions and
  removed markers surface as conflicts and leave the file untouched.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from odoo_uigen.domain.models import DiagnosticKind, WriteResult
from odoo_uigen.generator.manifest import GenerationManifest
from odoo_uigen.generator.pipeline import GenerationPipeline, RunReport
from odoo_uigen.generator.regions import end_marker, extract_regions, splice_regions
from odoo_uigen.generator.status import ArtifactState, inspect_manifest
from odoo_uigen.schema_client.fixtures import FixtureSchemaClient

pytestmark = pytest.mark.integration

FORM_HOOK = "  const [tab, setTab] = useState(0);\n"


def _load_manifest(output_dir: Path) -> GenerationManifest:
    return GenerationManifest.load(output_dir / ".uigen-manifest.json")


def _generate(output_dir: Path, schema: dict, *, dry_run: bool = False) -> RunReport:
    manifest = _load_manifest(output_dir)
    pipeline = GenerationPipeline(
        FixtureSchemaClient(schemas={"res.partner": schema}),
        output_dir=output_dir,
        manifest=manifest,
        dry_run=dry_run,
    )
    return asyncio.run(pipeline.run(["res.partner"]))


def _results(report: RunReport) -> dict[str, WriteResult]:
    return {
        Path(outcome.target_path).name: outcome.result for outcome in report.reports[0].outcomes
    }


def _snapshot(output_dir: Path) -> dict[str, bytes]:
    return {path.name: path.read_bytes() for path in sorted(output_dir.iterdir())}


def test_first_run_creates_and_second_run_is_a_no_op(tmp_path: Path, partner_schema: dict) -> None:
    first = _generate(tmp_path, partner_schema)
    before = _snapshot(tmp_path)
    second = _generate(tmp_path, partner_schema)

    assert _results(first) == {
        "res.partner.types.ts": WriteResult.CREATED,
        "res.partner.list.tsx": WriteResult.CREATED,
        "res.partner.form.tsx": WriteResult.CREATED,
    }
    assert set(_results(second).values()) == {WriteResult.UNCHANGED}
    assert _snapshot(tmp_path) == before
    assert second.reports[0].diagnostics == []


def test_new_relation_field_updates_artifacts_and_adds_component(
    tmp_path: Path, partner_schema: dict, partner_schema_with_company: dict
) -> None:
    _generate(tmp_path, partner_schema)

    report = _generate(tmp_path, partner_schema_with_company)

    assert _results(report) == {
        "res.partner.types.ts": WriteResult.UPDATED,
        "res.partner.list.tsx": WriteResult.UPDATED,
        "res.partner.form.tsx": WriteResult.UPDATED,
        "res.partner.fields.company_id.tsx": WriteResult.CREATED,
    }
    drift = report.reports[0].drift
    assert drift is not None
    assert drift.added == ("company_id",)
    form = (tmp_path / "res.partner.form.tsx").read_text(encoding="utf-8")
    assert "ResPartnerCompanyIdField" in form


def test_custom_region_code_survives_schema_change(
    tmp_path: Path, partner_schema: dict, partner_schema_with_company: dict
) -> None:
    _generate(tmp_path, partner_schema)
    form_path = tmp_path / "res.partner.form.tsx"
    form_path.write_text(
        splice_regions(form_path.read_text(encoding="utf-8"), {"hooks": FORM_HOOK}),
        encoding="utf-8",
    )

    _generate(tmp_path, partner_schema_with_company)
    again = _generate(tmp_path, partner_schema_with_company)

    assert extract_regions(form_path.read_text(encoding="utf-8"))["hooks"] == FORM_HOOK
    assert _results(again)["res.partner.form.tsx"] is WriteResult.UNCHANGED
    states = {item.key: item.state for item in inspect_manifest(_load_manifest(tmp_path))}
    assert states["res.partner.form.tsx"] is ArtifactState.CUSTOMIZED


def test_removed_marker_is_a_conflict_and_file_is_untouched(
    tmp_path: Path, partner_schema: dict, partner_schema_with_company: dict
) -> None:
    _generate(tmp_path, partner_schema)
    form_path = tmp_path / "res.partner.form.tsx"
    broken = form_path.read_text(encoding="utf-8").replace(end_marker("hooks", "  ") + "\n", "")
    form_path.write_text(broken, encoding="utf-8")

    report = _generate(tmp_path, partner_schema_with_company)

    assert _results(report)["res.partner.form.tsx"] is WriteResult.CONFLICT_PRESERVED
    assert _results(report)["res.partner.types.ts"] is WriteResult.UPDATED
    assert form_path.read_text(encoding="utf-8") == broken
    assert [item.kind for item in report.diagnostics] == [DiagnosticKind.CONFLICT_PRESERVED]
    assert report.has_failures is True


def test_edit_outside_regions_is_a_conflict(tmp_path: Path, partner_schema: dict) -> None:
    _generate(tmp_path, partner_schema)
    list_path = tmp_path / "res.partner.list.tsx"
    edited = list_path.read_text(encoding="utf-8") + "// local tweak\n"
    list_path.write_text(edited, encoding="utf-8")

    report = _generate(tmp_path, partner_schema)

    assert _results(report)["res.partner.list.tsx"] is WriteResult.CONFLICT_PRESERVED
    assert list_path.read_text(encoding="utf-8") == edited


def test_dry_run_reports_pending_changes_only(
    tmp_path: Path, partner_schema: dict, partner_schema_with_company: dict
) -> None:
    _generate(tmp_path, partner_schema)
    before = _snapshot(tmp_path)

    report = _generate(tmp_path, partner_schema_with_company, dry_run=True)

    assert report.pending_changes == 4
    assert _snapshot(tmp_path) == before
