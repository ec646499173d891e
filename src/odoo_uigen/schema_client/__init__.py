"""Schema sources the generator can introspect models from."""

from odoo_uigen.schema_client.base import (
    SchemaClient,
    SchemaClientError,
    Unauthorized,
    Unreachable,
    parse_fields_get,
)
from odoo_uigen.schema_client.factory import build_schema_client
from odoo_uigen.schema_client.fixtures import FixtureSchemaClient
from odoo_uigen.schema_client.xmlrpc import OdooXmlRpcClient

__all__ = [
    "FixtureSchemaClient",
    "OdooXmlRpcClient",
    "SchemaClient",
    "SchemaClientError",
    "Unauthorized",
    "Unreachable",
    "build_schema_client",
    "parse_fields_get",
]
