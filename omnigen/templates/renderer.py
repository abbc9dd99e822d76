"""Jinja2 template rendering for component source emission.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``omnigen/templates/jinja/`` directory and renders them with a component
context.  Supports file-based templates and inline template strings.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from jinja2.utils import htmlsafe_json_dumps
from markupsafe import escape

from omnigen.utils import camel_case, kebab_case, pascal_case, sanitize_name


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "jinja"

_COLOR_LITERAL = re.compile(r"^(#[0-9a-fA-F]{3,8}|(rgb|hsl)a?\([0-9a-zA-Z.,%\s/]*\))$")


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for component variants.

    The environment is created once and shared; Jinja2 caches compiled
    templates internally, so repeated lookups of the same file only pay the
    compilation cost the first time.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([], default_for_string=False),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["pascal_case"] = pascal_case
        self.env.filters["camel_case"] = camel_case
        self.env.filters["kebab_case"] = kebab_case
        self.env.filters["css_color"] = _css_color_filter
        self.env.filters["js"] = _js_filter
        self.env.filters["jsx"] = _jsx_filter
        self.env.filters["attr"] = _attr_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template file with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"react.tsx.j2"``).
            context: Variables available inside the template.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string with the provided context."""
        template = self.env.from_string(template_string)
        return template.render(**context)

    def list_templates(self) -> list[str]:
        """Return a sorted list of all ``.j2`` template paths."""
        if not self.template_dir.is_dir():
            return []
        return sorted(
            str(p.relative_to(self.template_dir)) for p in self.template_dir.rglob("*.j2")
        )


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------


def _css_color_filter(value: str) -> str:
    """Pass colour literals through; map token names to CSS custom properties."""
    value = value.strip()
    if _COLOR_LITERAL.match(value):
        return value
    return f"var(--color-{sanitize_name(kebab_case(value))})"


def _js_filter(value: Any) -> str:
    """Emit *value* as a JavaScript literal that is safe inside a <script> block.

    ``<``, ``>``, ``&`` and ``'`` come out as ``\\u`` escapes, as do the
    line and paragraph separators JavaScript treats as newlines.
    """
    dumped = str(htmlsafe_json_dumps(value, ensure_ascii=False))
    return dumped.replace("\u2028", "\\u2028").replace("\u2029", "\\u2029")


def _jsx_filter(value: Any) -> str:
    """Emit *value* as a JSX expression container, e.g. ``{"Pay"}``."""
    return "{" + _js_filter(value) + "}"


def _attr_filter(value: Any) -> str:
    """Emit *value* as a double-quoted, HTML-escaped attribute value."""
    return f'"{escape(str(value))}"'
