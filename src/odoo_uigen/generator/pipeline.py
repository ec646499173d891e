"""
odoo-uigen — batch generation pipeline

Purpose
- Drive fetch -> normalize -> plan -> write for many models concurrently.

Functional requirements
- At most ``max_concurrency`` models in flight; every schema fetch is bounded
  by ``fetch_timeout_seconds`` and a timeout counts as unreachable.
- Failures are isolated per model and per artifact; each degraded or skipped
  unit yields exactly one diagnostic.
- Once the cancel token fires no new model or artifact is started; work in
  flight finishes. The manifest is saved once per run, cancelled runs included.

Non-functional requirements
- Each artifact has a single owning task; manifest updates are serialized.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from odoo_uigen.domain.models import (
    Diagnostic,
    DiagnosticKind,
    FieldMetadata,
    ModelReport,
    Severity,
    WriteResult,
)
from odoo_uigen.generator.drift import compute_drift
from odoo_uigen.generator.manifest import GenerationManifest
from odoo_uigen.generator.normalizer import normalize
from odoo_uigen.generator.planner import ArtifactPlan, plan
from odoo_uigen.generator.renderer import Renderer, TemplateFault
from odoo_uigen.generator.writer import IdempotentWriter, WriteFailed
from odoo_uigen.observability.logging import correlation_scope
from odoo_uigen.schema_client.base import (
    SchemaClient,
    SchemaClientError,
    Unauthorized,
)
from odoo_uigen.utils.concurrency import CancellationToken, WorkerPool, run_with_timeout

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RunReport:
    """Outcome of one ``uigen generate`` invocation."""

    reports: list[ModelReport] = field(default_factory=list)
    dry_run: bool = False
    cancelled: bool = False
    peak_concurrency: int = 0

    def totals(self) -> dict[str, int]:
        return {
            result.value: sum(report.count(result) for report in self.reports)
            for result in WriteResult
        }

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [item for report in self.reports for item in report.diagnostics]

    @property
    def has_failures(self) -> bool:
        return any(report.has_errors for report in self.reports)

    @property
    def schema_unavailable(self) -> bool:
        return any(
            item.kind in {DiagnosticKind.UNAUTHORIZED, DiagnosticKind.UNREACHABLE}
            for item in self.diagnostics
        )

    @property
    def pending_changes(self) -> int:
        totals = self.totals()
        return totals[WriteResult.CREATED.value] + totals[WriteResult.UPDATED.value]

    def to_dict(self) -> dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            "cancelled": self.cancelled,
            "totals": self.totals(),
            "models": [report.to_dict() for report in self.reports],
        }


class GenerationPipeline:
    """Generate artifacts for a batch of models with one schema client."""

    def __init__(
        self,
        client: SchemaClient,
        *,
        output_dir: str | Path,
        manifest: GenerationManifest,
        renderer: Renderer | None = None,
        max_concurrency: int = 4,
        fetch_timeout_seconds: float = 30.0,
        dry_run: bool = False,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        if max_concurrency <= 0:
            raise ValueError("max_concurrency must be > 0")
        if fetch_timeout_seconds <= 0:
            raise ValueError("fetch_timeout_seconds must be > 0")
        self._client = client
        self._output_dir = Path(output_dir)
        self._manifest = manifest
        self._renderer = renderer or Renderer()
        self._max_concurrency = max_concurrency
        self._fetch_timeout_seconds = fetch_timeout_seconds
        self._dry_run = dry_run
        self._token = cancel_token or CancellationToken()
        self._writer = IdempotentWriter(manifest, dry_run=dry_run)

    @property
    def cancel_token(self) -> CancellationToken:
        return self._token

    @property
    def manifest(self) -> GenerationManifest:
        return self._manifest

    async def run(self, models: Sequence[str]) -> RunReport:
        ordered = list(dict.fromkeys(models))
        pool: WorkerPool[str, ModelReport] = WorkerPool(
            max_concurrency=self._max_concurrency, cancel_token=self._token
        )
        report = RunReport(dry_run=self._dry_run)
        logger.info(
            "generation started for %d model(s)",
            len(ordered),
            extra={"dry_run": self._dry_run, "max_concurrency": self._max_concurrency},
        )
        try:
            slots = await pool.run(ordered, self.generate_model)
        finally:
            if not self._dry_run:
                self._manifest.save()

        for slot in slots:
            if slot.started and slot.value is not None:
                report.reports.append(slot.value)
            else:
                report.reports.append(_cancelled_model(slot.item))
        report.cancelled = self._token.is_cancelled
        report.peak_concurrency = pool.peak_concurrency
        logger.info(
            "generation finished",
            extra={"totals": report.totals(), "cancelled": report.cancelled},
        )
        return report

    async def generate_model(self, model: str) -> ModelReport:
        """Fetch, normalize, plan and write every artifact of one model."""

        with correlation_scope(model=model):
            report = ModelReport(model=model)
            metas = await self._fetch(model, report)
            if metas is None:
                report.skipped = True
                return report

            descriptor, diagnostics = normalize(model, metas)
            report.diagnostics.extend(diagnostics)
            report.drift = compute_drift(self._manifest.snapshot(model), descriptor)
            if report.drift.first_run or not report.drift.is_empty:
                logger.info("schema drift: %s", report.drift.describe())

            plans = plan(descriptor, self._renderer, self._output_dir)
            completed = True
            for artifact in plans:
                if self._token.is_cancelled:
                    completed = False
                    report.diagnostics.append(
                        Diagnostic(
                            kind=DiagnosticKind.CANCELLED,
                            message="not started; run was cancelled",
                            severity=Severity.ERROR,
                            model=model,
                            artifact=artifact.artifact_label,
                        )
                    )
                    continue
                with correlation_scope(artifact=artifact.artifact_label):
                    await self._write_one(artifact, report)

            if completed and not self._dry_run:
                self._manifest.record_snapshot(descriptor)
            logger.info(
                "model done",
                extra={"counts": {result.value: report.count(result) for result in WriteResult}},
            )
            return report

    async def _fetch(self, model: str, report: ModelReport) -> list[FieldMetadata] | None:
        try:
            return await run_with_timeout(
                self._client.fetch_model_schema(model),
                self._fetch_timeout_seconds,
                self._token,
            )
        except Unauthorized as exc:
            kind, message = DiagnosticKind.UNAUTHORIZED, exc.detail
        except SchemaClientError as exc:
            kind, message = DiagnosticKind.UNREACHABLE, exc.detail
        except TimeoutError:
            kind = DiagnosticKind.UNREACHABLE
            message = f"schema fetch timed out after {self._fetch_timeout_seconds:g}s"
        except asyncio.CancelledError:
            if not self._token.is_cancelled:
                raise
            kind, message = DiagnosticKind.CANCELLED, "schema fetch abandoned; run was cancelled"
        except Exception as exc:
            # A misbehaving client fails its own model only.
            logger.exception("schema client failed unexpectedly")
            kind = DiagnosticKind.UNREACHABLE
            message = f"unexpected schema client failure: {type(exc).__name__}: {exc}"
        logger.warning("model skipped: %s", message, extra={"kind": kind.value})
        report.diagnostics.append(
            Diagnostic(kind=kind, message=message, severity=Severity.ERROR, model=model)
        )
        return None

    async def _write_one(self, artifact: ArtifactPlan, report: ModelReport) -> None:
        try:
            outcome = await asyncio.to_thread(self._writer.write, artifact)
        except TemplateFault as exc:
            message = str(exc)
            kind = DiagnosticKind.TEMPLATE_FAULT
        except WriteFailed as exc:
            message = str(exc)
            kind = DiagnosticKind.WRITE_FAILED
        except Exception as exc:
            logger.exception("artifact failed unexpectedly")
            message = f"unexpected failure: {type(exc).__name__}: {exc}"
            kind = DiagnosticKind.WRITE_FAILED
        else:
            report.outcomes.append(outcome)
            if outcome.diagnostic is not None:
                report.diagnostics.append(outcome.diagnostic)
            return
        logger.error("artifact skipped: %s", message, extra={"kind": kind.value})
        report.diagnostics.append(
            Diagnostic(
                kind=kind,
                message=message,
                severity=Severity.ERROR,
                model=artifact.model_name,
                artifact=artifact.artifact_label,
            )
        )


def _cancelled_model(model: str) -> ModelReport:
    return ModelReport(
        model=model,
        skipped=True,
        diagnostics=[
            Diagnostic(
                kind=DiagnosticKind.CANCELLED,
                message="not started; run was cancelled",
                severity=Severity.ERROR,
                model=model,
            )
        ],
    )


__all__ = ["GenerationPipeline", "RunReport"]
