"""Shared fixtures: the res.partner schema used across unit and integration tests."""

from __future__ import annotations

import pytest

from odoo_uigen.domain.models import FieldMetadata
from odoo_uigen.generator.renderer import Renderer


def partner_fields_get(*, with_company: bool = False) -> dict[str, dict[str, object]]:
    """``fields_get``-shaped payload of a minimal res.partner."""

    payload: dict[str, dict[str, object]] = {
        "name": {"type": "char", "string": "Name", "required": True},
        "email": {"type": "char", "string": "Email"},
        "is_company": {"type": "boolean", "string": "Is a Company"},
    }
    if with_company:
        payload["company_id"] = {
            "type": "many2one",
            "string": "Company",
            "relation": "res.company",
        }
    return payload


@pytest.fixture
def partner_metas() -> list[FieldMetadata]:
    return [
        FieldMetadata.from_fields_get(name, attributes)
        for name, attributes in partner_fields_get().items()
    ]


@pytest.fixture
def company_meta() -> FieldMetadata:
    return FieldMetadata(
        name="company_id",
        raw_type="many2one",
        label="Company",
        relation_target="res.company",
    )


@pytest.fixture(scope="session")
def renderer() -> Renderer:
    return Renderer()


@pytest.fixture
def partner_schema() -> dict[str, dict[str, object]]:
    return partner_fields_get()


@pytest.fixture
def partner_schema_with_company() -> dict[str, dict[str, object]]:
    return partner_fields_get(with_company=True)
