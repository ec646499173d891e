"""Command-line interface router for odoo-uigen."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import signal
import sys
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from odoo_uigen.config import (
    ConfigLoadError,
    ConfigValidationError,
    dump_effective_config,
    is_valid_model_name,
    load_config,
    redact_config,
)
from odoo_uigen.constants import DEFAULT_MANIFEST_FILENAME
from odoo_uigen.domain.models import ModelReport, Severity, WriteResult
from odoo_uigen.main import ExitCode
from odoo_uigen.generator import (
    ArtifactStatus,
    GenerationManifest,
    GenerationPipeline,
    ManifestError,
    RunReport,
    inspect_manifest,
)
from odoo_uigen.observability import setup_logging, shutdown_logging
from odoo_uigen.schema_client import FixtureSchemaClient, SchemaClient, build_schema_client
from odoo_uigen.ui.render import CLIRenderer, create_renderer
from odoo_uigen.utils.concurrency import CancellationToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: ExitCode = ExitCode.GENERATION_INCOMPLETE

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router."""

    parser = argparse.ArgumentParser(
        prog="uigen",
        description=(
            "odoo-uigen: generate typed React/TypeScript UI modules from Odoo models.\n\n"
            "Common workflows:\n"
            "  uigen generate res.partner      Generate artifacts for one model\n"
            "  uigen generate --all --check    Fail if any artifact is out of date\n"
            "  uigen status                    Compare the manifest with files on disk\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to uigen TOML config (default: ./uigen.toml if present).",
    )
    common.add_argument("--profile", default=None, help="Optional config profile overlay name.")
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Show drift and per-file details.",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )
    common.add_argument("--json", action="store_true", help="Emit deterministic JSON output")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # generate ------------------------------------------------------------
    generate_parser = subparsers.add_parser(
        "generate",
        parents=[common],
        help="Generate UI artifacts for one or more models",
        description=(
            "Introspect model schemas and write types, form, list and field modules.\n\n"
            "Examples:\n"
            "  uigen generate res.partner sale.order\n"
            "  uigen generate --all --output web/src/generated\n"
            "  uigen generate --all --check\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    generate_parser.add_argument("models", nargs="*", help="Odoo model names, e.g. res.partner")
    generate_parser.add_argument(
        "--all",
        dest="all_models",
        action="store_true",
        help="Generate every model listed in generation.models (or every fixture)",
    )
    generate_parser.add_argument(
        "--check",
        action="store_true",
        help="Report pending changes without writing; exit 1 if anything would change",
    )
    generate_parser.add_argument("--output", default=None, help="Output directory override")
    generate_parser.add_argument(
        "--manifest",
        default=None,
        help="Manifest path override (default: <output>/.uigen-manifest.json with --output)",
    )
    generate_parser.add_argument(
        "--concurrency", type=int, default=None, help="Maximum models processed at once"
    )
    generate_parser.add_argument(
        "--source", choices=("odoo", "fixtures"), default=None, help="Schema source override"
    )
    generate_parser.add_argument(
        "--fixtures-dir", default=None, help="Directory of YAML/JSON schema fixtures"
    )
    generate_parser.set_defaults(handler=_cmd_generate)

    # status --------------------------------------------------------------
    status_parser = subparsers.add_parser(
        "status",
        parents=[common],
        help="Compare manifest entries with generated files on disk",
    )
    status_parser.add_argument("--manifest", default=None, help="Manifest path override")
    status_parser.set_defaults(handler=_cmd_status)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show the effective configuration with secrets redacted",
    )
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return int(ExitCode.CONFIG_ERROR)

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return int(exc.exit_code)
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_generate(args: argparse.Namespace) -> int:
    config = _load_effective_config(args, overrides=_generate_overrides(args))
    generation = config["generation"]
    check = _flag(args, "check")

    try:
        client = build_schema_client(config)
    except ConfigLoadError as exc:
        raise CLIError(str(exc), exit_code=ExitCode.CONFIG_ERROR) from exc
    models = _select_models(args, config, client)
    manifest = _load_manifest(Path(generation["manifest_path"]))

    run_id = _new_run_id()
    handle = setup_logging(config["observability"], run_id=run_id)
    try:
        logger.info("effective config", extra={"config": redact_config(config)})
        pipeline = GenerationPipeline(
            client,
            output_dir=generation["output_dir"],
            manifest=manifest,
            max_concurrency=int(generation["max_concurrency"]),
            fetch_timeout_seconds=float(config["odoo"]["timeout_seconds"]),
            dry_run=check,
            cancel_token=CancellationToken(),
        )
        try:
            report = asyncio.run(_drive(pipeline, models))
        except ManifestError as exc:
            raise CLIError(str(exc), exit_code=ExitCode.CONFIG_ERROR) from exc
    finally:
        shutdown_logging(handle)

    exit_code = _generate_exit_code(report, check=check)
    if _flag(args, "json"):
        payload: dict[str, object] = {
            "command": "generate",
            "run_id": run_id,
            "check": check,
            "exit_code": int(exit_code),
            "manifest": manifest.path.as_posix(),
            **report.to_dict(),
        }
        _emit_json(payload)
        return exit_code

    renderer = _get_renderer(args)
    for model_report in report.reports:
        _render_model(renderer, model_report)
    totals = report.totals()
    renderer.section(
        "Total: "
        + " ".join(f"{_count_label(result)}={totals[result.value]}" for result in WriteResult)
    )
    if report.cancelled:
        renderer.text("Run was cancelled; unstarted work is listed above.")
    if check and report.pending_changes:
        renderer.text(f"check: {report.pending_changes} artifact(s) would change")
        renderer.next_steps([f"uigen generate {' '.join(models)}"])
    renderer.kv("Run log", handle.log_path.as_posix())
    return exit_code


def _cmd_status(args: argparse.Namespace) -> int:
    manifest_arg = _optional_str(getattr(args, "manifest", None))
    overrides = {"generation.manifest_path": _absolute(manifest_arg) if manifest_arg else None}
    config = _load_effective_config(args, overrides=overrides)
    manifest = _load_manifest(Path(config["generation"]["manifest_path"]))
    statuses = inspect_manifest(manifest)
    exit_code = (
        ExitCode.SUCCESS
        if all(item.is_clean for item in statuses)
        else ExitCode.GENERATION_INCOMPLETE
    )

    if _flag(args, "json"):
        _emit_json(
            {
                "command": "status",
                "manifest": manifest.path.as_posix(),
                "exit_code": int(exit_code),
                "artifacts": [item.to_dict() for item in statuses],
                "models": {name: snap.to_dict() for name, snap in manifest.models().items()},
            }
        )
        return exit_code

    renderer = _get_renderer(args)
    if not statuses:
        renderer.text(f"No generated artifacts recorded in {manifest.path.as_posix()}")
        renderer.next_steps(["uigen generate --all"])
        return exit_code

    renderer.kv("Manifest", manifest.path.as_posix())
    renderer.table(
        ["path", "model", "artifact", "state", "template"],
        [
            [
                item.key,
                item.model,
                item.artifact,
                item.state.value,
                _template_label(item),
            ]
            for item in statuses
        ],
    )
    dirty = [item for item in statuses if not item.is_clean]
    if dirty:
        renderer.section("Needs attention:")
        renderer.items([f"{item.key}: {item.state.value}" for item in dirty])
    return exit_code


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    profile = _optional_str(getattr(args, "profile", None))

    if _flag(args, "json"):
        _emit_json(
            {
                "command": "config",
                "active_profile": profile,
                "config": redact_config(config),
            }
        )
        return int(ExitCode.SUCCESS)

    renderer = _get_renderer(args)
    renderer.kv("Active profile", profile or "(default)")
    renderer.text(dump_effective_config(config))
    return int(ExitCode.SUCCESS)


# ---------------------------------------------------------------------------
# Generation helpers
# ---------------------------------------------------------------------------


async def _drive(pipeline: GenerationPipeline, models: Sequence[str]) -> RunReport:
    """Run the pipeline with Ctrl-C mapped onto its cancellation token."""

    loop = asyncio.get_running_loop()
    installed = False
    # Signal handlers need a Unix main-thread event loop.
    with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
        loop.add_signal_handler(signal.SIGINT, pipeline.cancel_token.cancel)
        installed = True
    try:
        return await pipeline.run(models)
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


def _generate_overrides(args: argparse.Namespace) -> dict[str, object]:
    output = _optional_str(getattr(args, "output", None))
    manifest = _optional_str(getattr(args, "manifest", None))
    fixtures_dir = _optional_str(getattr(args, "fixtures_dir", None))

    overrides: dict[str, object] = {
        "generation.max_concurrency": getattr(args, "concurrency", None),
        "schema.source": _optional_str(getattr(args, "source", None)),
        "schema.fixtures_dir": _absolute(fixtures_dir) if fixtures_dir else None,
    }
    if output is not None:
        overrides["generation.output_dir"] = _absolute(output)
        if manifest is None:
            overrides["generation.manifest_path"] = (
                Path(_absolute(output)) / DEFAULT_MANIFEST_FILENAME
            ).as_posix()
    if manifest is not None:
        overrides["generation.manifest_path"] = _absolute(manifest)
    return overrides


def _select_models(
    args: argparse.Namespace, config: Mapping[str, Any], client: SchemaClient
) -> list[str]:
    requested = [item.strip() for item in getattr(args, "models", None) or [] if item.strip()]
    all_models = _flag(args, "all_models")
    if requested and all_models:
        raise CLIError("pass model names or --all, not both", exit_code=ExitCode.CONFIG_ERROR)

    if all_models:
        models = list(config["generation"]["models"])
        if not models and isinstance(client, FixtureSchemaClient):
            models = client.available_models()
        if not models:
            raise CLIError(
                "no models configured; set generation.models or pass model names",
                exit_code=ExitCode.CONFIG_ERROR,
            )
        return models

    if not requested:
        raise CLIError(
            "no models given; pass model names or --all", exit_code=ExitCode.CONFIG_ERROR
        )
    for name in requested:
        if not is_valid_model_name(name):
            raise CLIError(f"invalid model name {name!r}", exit_code=ExitCode.CONFIG_ERROR)
    return list(dict.fromkeys(requested))


def _generate_exit_code(report: RunReport, *, check: bool) -> ExitCode:
    if report.schema_unavailable:
        return ExitCode.SCHEMA_UNAVAILABLE
    if report.has_failures:
        return ExitCode.GENERATION_INCOMPLETE
    if check and report.pending_changes:
        return ExitCode.GENERATION_INCOMPLETE
    return ExitCode.SUCCESS


def _render_model(renderer: CLIRenderer, report: ModelReport) -> None:
    counts = " ".join(f"{_count_label(result)}={report.count(result)}" for result in WriteResult)
    line = f"{report.model}: {counts} diagnostics={len(report.diagnostics)}"
    if report.has_errors:
        renderer.fail(line)
    else:
        renderer.ok(line)
    for diagnostic in report.diagnostics:
        if diagnostic.severity is Severity.ERROR:
            renderer.error(diagnostic.render())
        else:
            renderer.warning(diagnostic.render())
    if report.drift is not None and (report.drift.first_run or not report.drift.is_empty):
        renderer.detail(f"drift: {report.drift.describe()}")
    for outcome in report.outcomes:
        renderer.detail(f"{outcome.result.value}: {outcome.target_path}")


def _template_label(status: ArtifactStatus) -> str:
    if status.template_current:
        return status.template_version
    return f"{status.template_version} (old)"


def _count_label(result: WriteResult) -> str:
    return "conflict" if result is WriteResult.CONFLICT_PRESERVED else result.value


def _new_run_id() -> str:
    return f"{datetime.now(UTC):%Y%m%dT%H%M%SZ}-{uuid.uuid4().hex[:8]}"


# ---------------------------------------------------------------------------
# Helpers: config, manifest, output
# ---------------------------------------------------------------------------


def _load_effective_config(
    args: argparse.Namespace, *, overrides: Mapping[str, object] | None = None
) -> dict[str, Any]:
    config_path = _optional_str(getattr(args, "config_path", None))
    profile = _optional_str(getattr(args, "profile", None))

    try:
        return load_config(config_path, profile=profile, cli_overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=ExitCode.CONFIG_ERROR) from exc


def _load_manifest(path: Path) -> GenerationManifest:
    try:
        return GenerationManifest.load(path)
    except ManifestError as exc:
        raise CLIError(str(exc), exit_code=ExitCode.CONFIG_ERROR) from exc


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(no_color=_flag(args, "no_color"), verbose=_flag(args, "verbose"))


def _absolute(raw: str) -> str:
    # CLI paths are relative to the working directory, not the config file.
    return Path(raw).expanduser().resolve().as_posix()


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise CLIError("invalid optional string argument", exit_code=ExitCode.CONFIG_ERROR)
    cleaned = value.strip()
    return cleaned or None


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


__all__ = ["CLIError", "build_parser", "run_cli"]
