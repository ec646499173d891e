"""
odoo-uigen — CLI contracts for generate, status and config

Purpose
- Enforce exit codes, JSON payloads and on-disk side effects of the ``uigen``
  commands against a temporary project driven by fixture schemas.

What this test file should cover
- generate: create, no-op rerun, --check, schema change, conflicts, missing
  models and argument errors.
- status: clean and dirty manifests.
- config: effective configuration with the active profile.
- ``python -m odoo_uigen`` as a subprocess.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any

import pytest
import yaml

from odoo_uigen.generator.regions import splice_regions
from odoo_uigen.main import ExitCode, cli_entrypoint
from odoo_uigen.observability.logging import shutdown_logging
from odoo_uigen.ui.cli import CLIError, run_cli

pytestmark = pytest.mark.integration

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"

CONFIG_TEMPLATE = """\
[meta]
schema_version = 1

[odoo]
url = "http://localhost:8069"
database = "odoo"
username = "admin"
password_env = "UIGEN_ODOO_PASSWORD"
timeout_seconds = 5.0

[schema]
source = "fixtures"
fixtures_dir = "schemas"

[generation]
output_dir = "out"
manifest_path = "out/.uigen-manifest.json"
models = ["res.partner"]
max_concurrency = 4

[observability]
log_level = "INFO"
log_dir = "logs"
log_to_stdout = false
redact_secrets = true

[profiles.ci.observability]
log_level = "WARNING"
"""


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Any:
    for name in list(os.environ):
        if name.startswith("UIGEN_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)
    yield
    shutdown_logging()


@pytest.fixture
def project(tmp_path: Path, partner_schema: dict) -> Path:
    (tmp_path / "uigen.toml").write_text(CONFIG_TEMPLATE, encoding="utf-8")
    _write_fixture(tmp_path, partner_schema)
    return tmp_path


def _write_fixture(project_root: Path, fields: dict) -> None:
    schemas = project_root / "schemas"
    schemas.mkdir(exist_ok=True)
    document = {"model": "res.partner", "fields": fields}
    (schemas / "res.partner.yaml").write_text(
        yaml.safe_dump(document, sort_keys=False), encoding="utf-8"
    )


def _uigen(project_root: Path, *args: str) -> int:
    command, *rest = args
    return run_cli([command, "--config", str(project_root / "uigen.toml"), *rest])


def _json_out(capsys: pytest.CaptureFixture[str]) -> dict[str, Any]:
    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    return json.loads(lines[-1])


def _output_bytes(project_root: Path) -> dict[str, bytes]:
    out = project_root / "out"
    return {path.name: path.read_bytes() for path in sorted(out.iterdir())}


def test_generate_creates_then_check_reports_nothing_pending(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _uigen(project, "generate", "--all", "--json") == 0
    first = _json_out(capsys)

    assert first["command"] == "generate"
    assert first["totals"]["created"] == 3
    assert first["models"][0]["model"] == "res.partner"
    assert (project / "out" / "res.partner.form.tsx").is_file()
    assert (project / "out" / ".uigen-manifest.json").is_file()
    assert list((project / "logs").rglob("*.jsonl"))

    assert _uigen(project, "generate", "--all", "--check", "--json") == 0
    second = _json_out(capsys)
    assert second["check"] is True
    assert second["totals"]["unchanged"] == 3


def test_schema_change_updates_and_keeps_custom_code(
    project: Path, partner_schema_with_company: dict, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _uigen(project, "generate", "res.partner") == 0
    types_path = project / "out" / "res.partner.types.ts"
    custom = "  nickname?: string;\n"
    types_path.write_text(
        splice_regions(types_path.read_text(encoding="utf-8"), {"fields": custom}),
        encoding="utf-8",
    )
    _write_fixture(project, partner_schema_with_company)
    capsys.readouterr()

    assert _uigen(project, "generate", "res.partner", "--json") == 0
    payload = _json_out(capsys)

    assert payload["totals"]["updated"] == 3
    assert payload["totals"]["created"] == 1
    assert payload["models"][0]["drift"]["added"] == ["company_id"]
    content = types_path.read_text(encoding="utf-8")
    assert custom in content
    assert "  company_id: RelationRef | null;\n" in content


def test_check_with_pending_changes_exits_one_without_writing(
    project: Path, partner_schema_with_company: dict, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _uigen(project, "generate", "--all") == 0
    before = _output_bytes(project)
    _write_fixture(project, partner_schema_with_company)
    capsys.readouterr()

    assert _uigen(project, "generate", "--all", "--check", "--json") == 1
    payload = _json_out(capsys)

    assert payload["dry_run"] is True
    assert payload["totals"]["updated"] == 3
    assert payload["totals"]["created"] == 1
    assert _output_bytes(project) == before


def test_missing_model_exits_schema_unavailable(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _uigen(project, "generate", "res.partner", "sale.order", "--json") == 3
    payload = _json_out(capsys)

    by_model = {item["model"]: item for item in payload["models"]}
    assert by_model["sale.order"]["skipped"] is True
    assert by_model["sale.order"]["diagnostics"][0]["kind"] == "unreachable"
    assert by_model["res.partner"]["counts"]["created"] == 3


def test_edit_outside_regions_is_reported_as_conflict(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _uigen(project, "generate", "--all") == 0
    list_path = project / "out" / "res.partner.list.tsx"
    edited = list_path.read_text(encoding="utf-8").replace("export function", "function", 1)
    list_path.write_text(edited, encoding="utf-8")
    capsys.readouterr()

    assert _uigen(project, "generate", "--all", "--json") == 1
    payload = _json_out(capsys)

    assert payload["totals"]["conflict_preserved"] == 1
    assert payload["totals"]["unchanged"] == 2
    assert list_path.read_text(encoding="utf-8") == edited


def test_text_output_summarizes_each_model(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _uigen(project, "generate", "--all", "--no-color") == 0
    out = capsys.readouterr().out

    assert (
        "OK    res.partner: created=3 updated=0 unchanged=0 conflict=0 diagnostics=0" in out
    )
    assert "Total: created=3 updated=0 unchanged=0 conflict=0" in out
    assert "\x1b[" not in out


@pytest.mark.parametrize(
    ("args", "fragment"),
    [
        (("generate", "res.partner", "--all"), "not both"),
        (("generate", "Res Partner"), "invalid model name"),
        (("generate",), "no models given"),
    ],
)
def test_argument_errors_exit_two(
    project: Path, args: tuple[str, ...], fragment: str, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _uigen(project, *args) == 2
    assert fragment in capsys.readouterr().err


def test_missing_config_file_exits_two(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _uigen(tmp_path, "generate", "--all") == 2
    assert "error:" in capsys.readouterr().err


def test_corrupt_manifest_exits_two(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (project / "out").mkdir()
    (project / "out" / ".uigen-manifest.json").write_text("{not json", encoding="utf-8")

    assert _uigen(project, "generate", "--all") == 2
    assert "manifest" in capsys.readouterr().err


def test_output_override_moves_manifest(
    project: Path, tmp_path_factory: pytest.TempPathFactory, capsys: pytest.CaptureFixture[str]
) -> None:
    target = tmp_path_factory.mktemp("web")

    assert _uigen(project, "generate", "--all", "--output", str(target), "--json") == 0
    payload = _json_out(capsys)

    assert payload["manifest"] == (target / ".uigen-manifest.json").as_posix()
    assert (target / "res.partner.types.ts").is_file()
    assert not (project / "out").exists()


def test_status_is_clean_until_generated_code_is_edited(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _uigen(project, "generate", "--all") == 0
    capsys.readouterr()

    assert _uigen(project, "status", "--json") == 0
    clean = _json_out(capsys)
    assert [item["state"] for item in clean["artifacts"]] == ["ok", "ok", "ok"]
    assert "res.partner" in clean["models"]

    form_path = project / "out" / "res.partner.form.tsx"
    form_path.write_text(form_path.read_text(encoding="utf-8") + "// tweak\n", encoding="utf-8")

    assert _uigen(project, "status", "--json") == 1
    dirty = _json_out(capsys)
    states = {item["path"]: item["state"] for item in dirty["artifacts"]}
    assert states["res.partner.form.tsx"] == "modified"


def test_status_without_manifest_is_empty(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _uigen(project, "status", "--no-color") == 0
    assert "No generated artifacts recorded" in capsys.readouterr().out


def test_config_reports_active_profile(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _uigen(project, "config", "--profile", "ci", "--json") == 0
    payload = _json_out(capsys)

    assert payload["command"] == "config"
    assert payload["active_profile"] == "ci"
    assert payload["config"]["observability"]["log_level"] == "WARNING"
    assert payload["config"]["generation"]["models"] == ["res.partner"]


def test_entrypoint_normalizes_argparse_exits(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_entrypoint(["--help"]) == 0
    assert "uigen" in capsys.readouterr().out
    assert cli_entrypoint([]) == 2
    assert cli_entrypoint(["frobnicate"]) == 2


def test_module_entrypoint_runs_as_subprocess(project: Path) -> None:
    env = os.environ.copy()
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = str(SRC_PATH) if not existing else f"{SRC_PATH}{os.pathsep}{existing}"
    completed = subprocess.run(
        [
            sys.executable,
            "-m",
            "odoo_uigen",
            "generate",
            "--all",
            "--json",
            "--config",
            str(project / "uigen.toml"),
        ],
        cwd=project,
        text=True,
        capture_output=True,
        check=False,
        env=env,
    )

    assert completed.returncode == 0, completed.stderr
    payload = json.loads(completed.stdout.strip().splitlines()[-1])
    assert payload["totals"]["created"] == 3


def test_cli_exit_codes_follow_the_entrypoint_contract(
    project: Path, partner_schema_with_company: dict, capsys: pytest.CaptureFixture[str]
) -> None:
    assert CLIError("boom").exit_code is ExitCode.GENERATION_INCOMPLETE
    assert _uigen(project, "generate") == ExitCode.CONFIG_ERROR
    assert _uigen(project, "generate", "--all") == ExitCode.SUCCESS
    _write_fixture(project, partner_schema_with_company)
    assert _uigen(project, "generate", "--all", "--check") == ExitCode.GENERATION_INCOMPLETE
    assert _uigen(project, "generate", "sale.order") == ExitCode.SCHEMA_UNAVAILABLE
    capsys.readouterr()
