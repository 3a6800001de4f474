"""Jinja2 rendering of generated binding files.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``tsbind/templates/`` directory.  The only layout shipped is
``bindings.ts.j2``: the header line, the import lines, then one block per
declaration separated by blank lines.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape


_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

BINDINGS_TEMPLATE = "bindings.ts.j2"
HEADER = "// This file was generated by tsbind. Do not edit this file manually."


class TemplateRenderer:
    """Renders Jinja2 templates for binding files."""

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context."""
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_bindings(self, imports: list[str], declarations: list[str]) -> str:
        """Render a complete ``.ts`` file.

        Args:
            imports: Finished ``import`` lines.
            declarations: Finished declaration blocks (optional JSDoc plus
                ``export type ...;``).
        """
        return self.render(
            BINDINGS_TEMPLATE,
            {"header": HEADER, "imports": imports, "declarations": declarations},
        )
