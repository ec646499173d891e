"""
odoo-uigen — unit tests for the generation manifest

Purpose
- Verify load/save semantics, key derivation and error reporting for the
  per-file fingerprint store and per-model schema snapshots.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from odoo_uigen.constants import GENERATOR_NAME, MANIFEST_SCHEMA_VERSION
from odoo_uigen.domain.models import FieldMetadata
from odoo_uigen.generator.manifest import (
    GenerationManifest,
    ManifestEntry,
    ManifestError,
    ModelSnapshot,
)
from odoo_uigen.generator.normalizer import normalize

FINGERPRINT = "a" * 64


def _entry(**overrides: object) -> ManifestEntry:
    values: dict[str, object] = {
        "fingerprint": FINGERPRINT,
        "template_version": "2026.10.1",
        "model": "res.partner",
        "artifact": "types",
        "regions": ("imports", "fields", "extensions"),
    }
    values.update(overrides)
    return ManifestEntry(**values)  # type: ignore[arg-type]


def test_missing_or_blank_manifest_loads_empty(tmp_path: Path) -> None:
    missing = GenerationManifest.load(tmp_path / "absent.json")
    blank_path = tmp_path / "blank.json"
    blank_path.write_text("  \n", encoding="utf-8")

    assert missing.entries() == {}
    assert missing.models() == {}
    assert missing.dirty is False
    assert GenerationManifest.load(blank_path).entries() == {}


@pytest.mark.parametrize(
    ("payload", "fragment"),
    [
        ("{not json", "invalid manifest JSON"),
        ("[1, 2]", "must contain a JSON object"),
        ('{"schema_version": 99, "entries": {}}', "schema_version 99"),
        ('{"schema_version": 1, "entries": []}', "malformed sections"),
        (
            '{"schema_version": 1, "entries": {"x.ts": {"fingerprint": "nope"}}}',
            "invalid fingerprint",
        ),
        ('{"schema_version": 1, "entries": {"x.ts": 3}}', "must be an object"),
    ],
)
def test_corrupt_manifest_raises(tmp_path: Path, payload: str, fragment: str) -> None:
    path = tmp_path / "manifest.json"
    path.write_text(payload, encoding="utf-8")

    with pytest.raises(ManifestError, match=fragment):
        GenerationManifest.load(path)


def test_record_marks_dirty_only_on_change(tmp_path: Path) -> None:
    manifest = GenerationManifest(tmp_path / ".uigen-manifest.json")
    target = tmp_path / "res.partner.types.ts"

    manifest.record(target, _entry())
    assert manifest.dirty is True
    assert manifest.save() is True
    assert manifest.dirty is False

    manifest.record(target, _entry())
    assert manifest.dirty is False
    assert manifest.save() is False
    assert manifest.save(force=True) is True


def test_save_then_load_preserves_entries_and_snapshots(
    tmp_path: Path, partner_metas: list[FieldMetadata]
) -> None:
    path = tmp_path / "out" / ".uigen-manifest.json"
    manifest = GenerationManifest(path)
    descriptor, _ = normalize("res.partner", partner_metas)
    manifest.record(path.parent / "res.partner.types.ts", _entry())
    manifest.record_snapshot(descriptor)
    manifest.save()

    reloaded = GenerationManifest.load(path)

    assert reloaded.entries() == {"res.partner.types.ts": _entry()}
    assert reloaded.snapshot("res.partner") == ModelSnapshot.of(descriptor)
    assert reloaded.snapshot("res.company") is None
    assert reloaded.snapshot("res.partner").fields == {  # type: ignore[union-attr]
        "name": "text",
        "email": "text",
        "is_company": "boolean",
    }


def test_saved_json_is_canonical(tmp_path: Path) -> None:
    path = tmp_path / ".uigen-manifest.json"
    manifest = GenerationManifest(path)
    manifest.record(tmp_path / "b.tsx", _entry(artifact="form"))
    manifest.record(tmp_path / "a.ts", _entry())
    manifest.save()

    text = path.read_text(encoding="utf-8")
    payload = json.loads(text)

    assert text.endswith("\n")
    assert payload["schema_version"] == MANIFEST_SCHEMA_VERSION
    assert payload["generator"] == GENERATOR_NAME
    assert list(payload["entries"]) == ["a.ts", "b.tsx"]
    assert payload["entries"]["a.ts"]["regions"] == ["imports", "fields", "extensions"]
    assert text == json.dumps(payload, sort_keys=True, indent=2) + "\n"


def test_keys_are_posix_paths_relative_to_manifest_directory(tmp_path: Path) -> None:
    manifest = GenerationManifest(tmp_path / "state" / ".uigen-manifest.json")

    assert manifest.key_for(tmp_path / "state" / "res.partner.form.tsx") == "res.partner.form.tsx"
    assert manifest.key_for(tmp_path / "web" / "x.ts") == "../web/x.ts"
    assert manifest.resolve("../web/x.ts") == tmp_path / "state" / "../web/x.ts"


def test_entries_are_looked_up_by_target_path(tmp_path: Path) -> None:
    manifest = GenerationManifest(tmp_path / ".uigen-manifest.json")
    target = tmp_path / "res.partner.list.tsx"
    manifest.record(target, _entry(artifact="list"))

    assert manifest.entry(target) == _entry(artifact="list")
    assert manifest.entry(tmp_path / "other.tsx") is None


def test_unwritable_manifest_raises_manifest_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")
    manifest = GenerationManifest(blocker / ".uigen-manifest.json")
    manifest.record(blocker / "x.ts", _entry())

    with pytest.raises(ManifestError, match="unable to write manifest"):
        manifest.save()
    assert manifest.dirty is True
