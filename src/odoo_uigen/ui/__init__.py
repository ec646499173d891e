"""Command-line surface of odoo-uigen."""

from odoo_uigen.ui.cli import CLIError, build_parser, run_cli
from odoo_uigen.ui.render import CLIRenderer, create_renderer

__all__ = ["CLIError", "CLIRenderer", "build_parser", "create_renderer", "run_cli"]
