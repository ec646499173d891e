"""Stable constants shared by the generator stages."""

from __future__ import annotations

from typing import Final

# Bumped whenever any shipped template changes its output.
TEMPLATE_VERSION: Final[str] = "2026.10.1"
GENERATOR_NAME: Final[str] = "odoo-uigen"

# Schema versions for persisted contracts.
CONFIG_SCHEMA_VERSION: Final[int] = 1
MANIFEST_SCHEMA_VERSION: Final[int] = 1

# Default runtime paths (relative to the config file unless overridden).
DEFAULT_OUTPUT_DIR: Final[str] = "generated/"
DEFAULT_MANIFEST_FILENAME: Final[str] = ".uigen-manifest.json"
DEFAULT_LOG_DIR: Final[str] = ".uigen/logs/"

# Custom-region marker tokens; the full marker line is ``// <token> <region-name>``.
REGION_BEGIN_TOKEN: Final[str] = "@uigen-custom-begin"
REGION_END_TOKEN: Final[str] = "@uigen-custom-end"
HEADER_TOKEN: Final[str] = "@generated"

# Artifact file suffixes keyed by artifact kind value.
ARTIFACT_SUFFIXES: Final[dict[str, str]] = {
    "types": ".ts",
    "form": ".tsx",
    "list": ".tsx",
    "field": ".tsx",
}

__all__ = [
    "ARTIFACT_SUFFIXES",
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_LOG_DIR",
    "DEFAULT_MANIFEST_FILENAME",
    "DEFAULT_OUTPUT_DIR",
    "GENERATOR_NAME",
    "HEADER_TOKEN",
    "MANIFEST_SCHEMA_VERSION",
    "REGION_BEGIN_TOKEN",
    "REGION_END_TOKEN",
    "TEMPLATE_VERSION",
]
