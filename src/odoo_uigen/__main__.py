"""Module entrypoint for ``python -m odoo_uigen``."""

from __future__ import annotations

from odoo_uigen.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
