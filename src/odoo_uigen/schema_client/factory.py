"""Construct the configured schema client from effective config."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from odoo_uigen.config.loader import resolve_odoo_password
from odoo_uigen.schema_client.base import SchemaClient
from odoo_uigen.schema_client.fixtures import FixtureSchemaClient
from odoo_uigen.schema_client.xmlrpc import OdooXmlRpcClient


def build_schema_client(
    config: Mapping[str, Any],
    *,
    environ: Mapping[str, str] | None = None,
) -> SchemaClient:
    """Return a ready-to-use client for ``schema.source``.

    Raises ``ConfigLoadError`` when the Odoo password variable is unset.
    """

    schema_section = config.get("schema", {})
    if schema_section.get("source") == "fixtures":
        return FixtureSchemaClient(schema_section.get("fixtures_dir", "schemas/"))

    odoo = config.get("odoo", {})
    env_map = os.environ if environ is None else environ
    return OdooXmlRpcClient(
        str(odoo.get("url", "")),
        str(odoo.get("database", "")),
        str(odoo.get("username", "")),
        resolve_odoo_password(config, env_map),
        timeout_seconds=float(odoo.get("timeout_seconds", 30.0)),
    )


__all__ = ["build_schema_client"]
