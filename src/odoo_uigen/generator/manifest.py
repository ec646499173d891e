"""
odoo-uigen — generation manifest

Purpose
- Persist, per generated file, the fingerprint of the pristine render that was
  last written, so later runs can tell generated code from hand edits.
- Persist, per model, the schema snapshot used for drift reporting.

Functional requirements
- Entries are created on the first write of a path, updated on every write,
  and never removed automatically.
- Loading a missing manifest yields an empty one; a corrupt manifest is an error.
- Saves are atomic and the JSON is canonical (sorted keys, stable indentation).

Non-functional requirements
- Safe to update from concurrent model tasks; one save per run.
"""

from __future__ import annotations

import json
import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from odoo_uigen.constants import GENERATOR_NAME, MANIFEST_SCHEMA_VERSION
from odoo_uigen.domain.models import ModelDescriptor
from odoo_uigen.utils.fs import atomic_write, read_text_if_exists
from odoo_uigen.utils.hashing import is_sha256_hex


class ManifestError(ValueError):
    """Raised when the manifest file cannot be parsed or written."""


@dataclass(frozen=True, slots=True)
class ManifestEntry:
    fingerprint: str
    template_version: str
    model: str
    artifact: str
    regions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "fingerprint": self.fingerprint,
            "template_version": self.template_version,
            "model": self.model,
            "artifact": self.artifact,
            "regions": list(self.regions),
        }

    @classmethod
    def from_dict(cls, key: str, payload: object) -> ManifestEntry:
        if not isinstance(payload, Mapping):
            raise ManifestError(f"manifest entry {key!r} must be an object")
        fingerprint = payload.get("fingerprint")
        if not isinstance(fingerprint, str) or not is_sha256_hex(fingerprint):
            raise ManifestError(f"manifest entry {key!r} has an invalid fingerprint")
        regions = payload.get("regions", [])
        if not isinstance(regions, list) or not all(isinstance(item, str) for item in regions):
            raise ManifestError(f"manifest entry {key!r} has invalid regions")
        return cls(
            fingerprint=fingerprint,
            template_version=str(payload.get("template_version", "")),
            model=str(payload.get("model", "")),
            artifact=str(payload.get("artifact", "")),
            regions=tuple(regions),
        )


@dataclass(frozen=True, slots=True)
class ModelSnapshot:
    schema_fingerprint: str
    fields: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def of(cls, descriptor: ModelDescriptor) -> ModelSnapshot:
        return cls(
            schema_fingerprint=descriptor.schema_fingerprint(),
            fields=descriptor.schema_snapshot(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"schema_fingerprint": self.schema_fingerprint, "fields": dict(self.fields)}

    @classmethod
    def from_dict(cls, model: str, payload: object) -> ModelSnapshot:
        if not isinstance(payload, Mapping):
            raise ManifestError(f"model snapshot {model!r} must be an object")
        fields = payload.get("fields", {})
        if not isinstance(fields, Mapping) or not all(
            isinstance(key, str) and isinstance(value, str) for key, value in fields.items()
        ):
            raise ManifestError(f"model snapshot {model!r} has invalid fields")
        return cls(
            schema_fingerprint=str(payload.get("schema_fingerprint", "")),
            fields=dict(fields),
        )


class GenerationManifest:
    """In-memory manifest bound to a file path."""

    def __init__(
        self,
        path: str | Path,
        *,
        entries: Mapping[str, ManifestEntry] | None = None,
        models: Mapping[str, ModelSnapshot] | None = None,
    ) -> None:
        self._path = Path(path)
        self._entries: dict[str, ManifestEntry] = dict(entries or {})
        self._models: dict[str, ModelSnapshot] = dict(models or {})
        self._lock = threading.Lock()
        self._dirty = False

    @classmethod
    def load(cls, path: str | Path) -> GenerationManifest:
        manifest_path = Path(path)
        try:
            text = read_text_if_exists(manifest_path)
        except (OSError, UnicodeDecodeError) as exc:
            raise ManifestError(f"unable to read manifest {manifest_path}: {exc}") from exc
        if text is None or not text.strip():
            return cls(manifest_path)
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ManifestError(f"invalid manifest JSON in {manifest_path}: {exc}") from exc
        if not isinstance(payload, Mapping):
            raise ManifestError(f"manifest {manifest_path} must contain a JSON object")

        version = payload.get("schema_version")
        if version != MANIFEST_SCHEMA_VERSION:
            raise ManifestError(
                f"manifest {manifest_path} has schema_version {version!r}; "
                f"expected {MANIFEST_SCHEMA_VERSION}"
            )
        raw_entries = payload.get("entries", {})
        raw_models = payload.get("models", {})
        if not isinstance(raw_entries, Mapping) or not isinstance(raw_models, Mapping):
            raise ManifestError(f"manifest {manifest_path} has malformed sections")
        return cls(
            manifest_path,
            entries={
                str(key): ManifestEntry.from_dict(str(key), value)
                for key, value in raw_entries.items()
            },
            models={
                str(key): ModelSnapshot.from_dict(str(key), value)
                for key, value in raw_models.items()
            },
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def dirty(self) -> bool:
        return self._dirty

    def key_for(self, target_path: str | Path) -> str:
        """Manifest key of a file: its path relative to the manifest directory."""

        target = Path(target_path)
        relative = os.path.relpath(os.path.abspath(target), os.path.abspath(self._path.parent))
        return Path(relative).as_posix()

    def entry(self, target_path: str | Path) -> ManifestEntry | None:
        with self._lock:
            return self._entries.get(self.key_for(target_path))

    def entries(self) -> dict[str, ManifestEntry]:
        with self._lock:
            return dict(sorted(self._entries.items()))

    def resolve(self, key: str) -> Path:
        return self._path.parent / key

    def record(self, target_path: str | Path, entry: ManifestEntry) -> None:
        key = self.key_for(target_path)
        with self._lock:
            if self._entries.get(key) != entry:
                self._entries[key] = entry
                self._dirty = True

    def snapshot(self, model: str) -> ModelSnapshot | None:
        with self._lock:
            return self._models.get(model)

    def models(self) -> dict[str, ModelSnapshot]:
        with self._lock:
            return dict(sorted(self._models.items()))

    def record_snapshot(self, descriptor: ModelDescriptor) -> None:
        snapshot = ModelSnapshot.of(descriptor)
        with self._lock:
            if self._models.get(descriptor.model_name) != snapshot:
                self._models[descriptor.model_name] = snapshot
                self._dirty = True

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            return {
                "schema_version": MANIFEST_SCHEMA_VERSION,
                "generator": GENERATOR_NAME,
                "entries": {key: value.to_dict() for key, value in sorted(self._entries.items())},
                "models": {key: value.to_dict() for key, value in sorted(self._models.items())},
            }

    def save(self, *, force: bool = False) -> bool:
        """Write the manifest atomically; returns whether anything was written."""

        if not (self._dirty or force):
            return False
        text = json.dumps(self.to_dict(), sort_keys=True, indent=2, ensure_ascii=False) + "\n"
        try:
            atomic_write(self._path, text.encode("utf-8"))
        except OSError as exc:
            raise ManifestError(f"unable to write manifest {self._path}: {exc}") from exc
        with self._lock:
            self._dirty = False
        return True


__all__ = ["GenerationManifest", "ManifestEntry", "ManifestError", "ModelSnapshot"]
