"""
odoo-uigen — idempotent artifact writer

Purpose
- Reconcile one planned artifact with the file already on disk.

Splice-and-compare
1. No file: write the render verbatim -> ``created``.
2. File present: check it is ours and untouched outside its custom regions,
   splice its region bodies into the new render and compare byte-for-byte:
   identical -> ``unchanged``; different -> ``updated``.
3. Corrupt markers, edits outside regions (checked against the manifest
   fingerprint) or user content in a region the new render dropped ->
   ``conflict_preserved``; the file is left exactly as it was.

The manifest fingerprint is the SHA-256 of the pristine render, which equals
the on-disk file with every region body emptied.

Non-functional requirements
- Writes are atomic (temp file + replace); failures raise ``WriteFailed`` and
  are never retried.
- Nothing is written outside the plan's output directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

from odoo_uigen.domain.models import (
    Diagnostic,
    DiagnosticKind,
    Severity,
    WriteOutcome,
    WriteResult,
)
from odoo_uigen.generator.manifest import GenerationManifest, ManifestEntry
from odoo_uigen.generator.naming import has_generated_header, parse_header
from odoo_uigen.generator.planner import ArtifactPlan
from odoo_uigen.generator.regions import (
    RegionParseError,
    extract_regions,
    parse_regions,
    splice_regions,
    strip_region_bodies,
)
from odoo_uigen.utils.fs import atomic_write, is_within, read_text_if_exists
from odoo_uigen.utils.hashing import sha256_text

logger = logging.getLogger(__name__)


class _ReadFromDisk:
    def __repr__(self) -> str:
        return "READ_FROM_DISK"


READ_FROM_DISK: Final = _ReadFromDisk()


class WriteFailed(RuntimeError):
    """An artifact could not be read or written."""

    def __init__(self, path: Path, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"{path.as_posix()}: {cause}")


class IdempotentWriter:
    """Apply artifact plans to disk and keep the manifest in step."""

    def __init__(self, manifest: GenerationManifest, *, dry_run: bool = False) -> None:
        self._manifest = manifest
        self._dry_run = dry_run

    @property
    def manifest(self) -> GenerationManifest:
        return self._manifest

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def write(
        self,
        plan: ArtifactPlan,
        existing_content: str | None | _ReadFromDisk = READ_FROM_DISK,
    ) -> WriteOutcome:
        """Reconcile ``plan`` with ``existing_content`` (read from disk by default).

        Raises ``TemplateFault`` when the plan cannot be rendered and
        ``WriteFailed`` on I/O errors or a target outside the output directory.
        """

        target = plan.target_path
        if not is_within(target, plan.output_dir):
            raise WriteFailed(target, ValueError("target escapes the output directory"))
        rendered = plan.rendered_content
        fingerprint = plan.content_fingerprint

        if isinstance(existing_content, _ReadFromDisk):
            try:
                existing = read_text_if_exists(target)
            except UnicodeDecodeError:
                return self._conflict(plan, "file is not valid UTF-8 text")
            except OSError as exc:
                raise WriteFailed(target, exc) from exc
        else:
            existing = existing_content

        if existing is None:
            self._commit(plan, rendered)
            return self._outcome(plan, WriteResult.CREATED)

        try:
            existing_regions = parse_regions(existing)
        except RegionParseError as exc:
            return self._conflict(plan, f"custom-region markers are corrupted ({exc})")

        existing_names = {region.name for region in existing_regions}
        entry = self._manifest.entry(target)
        pristine = strip_region_bodies(existing)
        if entry is None:
            if not has_generated_header(existing):
                return self._conflict(plan, "file was not generated by odoo-uigen")
            # Without a manifest record only an untouched current render can be adopted.
            if pristine != rendered:
                return self._conflict(
                    plan, "no manifest record to verify generated code against"
                )
            logger.info(
                "adopting unrecorded generated file",
                extra={"template_version": parse_header(existing).get("template")},
            )
        else:
            missing = [name for name in entry.regions if name not in existing_names]
            if missing:
                names = ", ".join(repr(name) for name in missing)
                return self._conflict(plan, f"custom-region markers missing for {names}")
            if sha256_text(pristine) != entry.fingerprint:
                return self._conflict(plan, "generated code was edited outside custom regions")

        new_region_names = set(extract_regions(rendered))
        orphaned = [
            region.name
            for region in existing_regions
            if region.has_content and region.name not in new_region_names
        ]
        if orphaned:
            names = ", ".join(repr(name) for name in orphaned)
            return self._conflict(plan, f"custom region(s) {names} no longer exist in the template")

        bodies = {region.name: region.body for region in existing_regions}
        spliced = splice_regions(rendered, bodies)
        if spliced == existing:
            if entry is None or entry.fingerprint != fingerprint:
                self._record(plan)
            return self._outcome(plan, WriteResult.UNCHANGED, written=False)

        self._commit(plan, spliced)
        return self._outcome(plan, WriteResult.UPDATED)

    def _commit(self, plan: ArtifactPlan, content: str) -> None:
        if self._dry_run:
            return
        try:
            atomic_write(plan.target_path, content.encode("utf-8"))
        except OSError as exc:
            raise WriteFailed(plan.target_path, exc) from exc
        self._record(plan)

    def _record(self, plan: ArtifactPlan) -> None:
        if self._dry_run:
            return
        self._manifest.record(
            plan.target_path,
            ManifestEntry(
                fingerprint=plan.content_fingerprint,
                template_version=plan.renderer.template_version,
                model=plan.model_name,
                artifact=plan.artifact_label,
                regions=tuple(extract_regions(plan.rendered_content)),
            ),
        )

    def _outcome(
        self, plan: ArtifactPlan, result: WriteResult, *, written: bool | None = None
    ) -> WriteOutcome:
        did_write = (not self._dry_run) if written is None else written
        logger.info(
            "%s %s",
            result.value,
            plan.target_path.as_posix(),
            extra={
                "artifact": plan.artifact_label,
                "result": result.value,
                "dry_run": self._dry_run,
            },
        )
        return WriteOutcome(
            target_path=plan.target_path.as_posix(),
            result=result,
            fingerprint=plan.content_fingerprint,
            written=did_write,
        )

    def _conflict(self, plan: ArtifactPlan, reason: str) -> WriteOutcome:
        path = plan.target_path.as_posix()
        logger.warning(
            "conflict preserved %s: %s", path, reason, extra={"artifact": plan.artifact_label}
        )
        return WriteOutcome(
            target_path=path,
            result=WriteResult.CONFLICT_PRESERVED,
            fingerprint=plan.content_fingerprint,
            diagnostic=Diagnostic(
                kind=DiagnosticKind.CONFLICT_PRESERVED,
                message=f"{path}: {reason}; file left untouched",
                severity=Severity.ERROR,
                model=plan.model_name,
                artifact=plan.artifact_label,
            ),
            written=False,
        )


__all__ = ["READ_FROM_DISK", "IdempotentWriter", "WriteFailed"]
