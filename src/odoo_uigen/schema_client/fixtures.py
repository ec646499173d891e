"""Offline schema client reading ``fields_get`` dumps from disk.

A fixture file is named after the model (``res.partner.yaml``,
``res.partner.yml`` or ``res.partner.json``) and holds either the raw
``fields_get`` mapping or a document with a ``fields`` key whose value is that
mapping or an ordered list of attribute mappings carrying ``name``. JSON files
are parsed with the YAML loader, which accepts them unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Final

import yaml

from odoo_uigen.domain.models import FieldMetadata
from odoo_uigen.schema_client.base import Unreachable, parse_fields_get

logger = logging.getLogger(__name__)

FIXTURE_SUFFIXES: Final[tuple[str, ...]] = (".yaml", ".yml", ".json")


class FixtureSchemaClient:
    """Schema client over a directory of schema dumps or an in-memory mapping."""

    def __init__(
        self,
        fixtures_dir: str | Path | None = None,
        *,
        schemas: Mapping[str, object] | None = None,
    ) -> None:
        if fixtures_dir is None and schemas is None:
            raise ValueError("either fixtures_dir or schemas is required")
        self._fixtures_dir = Path(fixtures_dir) if fixtures_dir is not None else None
        self._schemas = dict(schemas or {})

    @property
    def fixtures_dir(self) -> Path | None:
        return self._fixtures_dir

    def available_models(self) -> list[str]:
        """Model names that have a fixture, sorted."""

        names = set(self._schemas)
        if self._fixtures_dir is not None and self._fixtures_dir.is_dir():
            for path in self._fixtures_dir.iterdir():
                if path.is_file() and path.suffix.lower() in FIXTURE_SUFFIXES:
                    names.add(path.stem)
        return sorted(names)

    async def fetch_model_schema(self, model_name: str) -> list[FieldMetadata]:
        if model_name in self._schemas:
            return _parse_document(self._schemas[model_name], model_name)
        return await asyncio.to_thread(self._load_from_disk, model_name)

    def _load_from_disk(self, model_name: str) -> list[FieldMetadata]:
        path = self._locate(model_name)
        if path is None:
            raise Unreachable("no schema fixture found", model=model_name, source="fixtures")
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = yaml.safe_load(handle)
        except OSError as exc:
            raise Unreachable(
                f"failed to read {path.as_posix()}: {exc}", model=model_name, source="fixtures"
            ) from exc
        except yaml.YAMLError as exc:
            raise Unreachable(
                f"invalid schema fixture {path.as_posix()}: {exc}",
                model=model_name,
                source="fixtures",
            ) from exc
        logger.debug("loaded schema fixture %s", path.as_posix())
        return _parse_document(payload, model_name)

    def _locate(self, model_name: str) -> Path | None:
        if self._fixtures_dir is None:
            return None
        for suffix in FIXTURE_SUFFIXES:
            candidate = self._fixtures_dir / f"{model_name}{suffix}"
            if candidate.is_file():
                return candidate
        return None


def _parse_document(payload: object, model_name: str) -> list[FieldMetadata]:
    if payload is None:
        return []
    if isinstance(payload, Mapping) and _is_wrapper_document(payload):
        declared = payload.get("model")
        if isinstance(declared, str) and declared.strip() and declared.strip() != model_name:
            raise Unreachable(
                f"fixture declares model {declared.strip()!r}", model=model_name, source="fixtures"
            )
        payload = payload["fields"]
        if payload is None:
            return []
    return parse_fields_get(payload, model=model_name, source="fixtures")


def _is_wrapper_document(payload: Mapping[str, object]) -> bool:
    """``{model, fields}`` documents, told apart from a raw dump with a field named ``fields``."""

    if "fields" not in payload:
        return False
    # In a raw dump every value, including one for a field named "model", is a mapping.
    if isinstance(payload.get("model"), str):
        return True
    inner = payload["fields"]
    if inner is None or isinstance(inner, list):
        return True
    return (
        isinstance(inner, Mapping)
        and bool(inner)
        and all(isinstance(value, Mapping) for value in inner.values())
    )


__all__ = ["FIXTURE_SUFFIXES", "FixtureSchemaClient"]
