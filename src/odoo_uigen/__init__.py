"""
odoo-uigen

Purpose
- Generate typed TypeScript/React UI modules (types, form, list and per-field
  components) from the live schema of Odoo models, idempotently, keeping hand
  written code inside marked custom regions across regenerations.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
