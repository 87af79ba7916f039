"""Template loading for skeleton generation.

Provides the TemplateRegistry class which loads ``.tmpl`` templates from the
``skelgen/templates/`` directory (or any other root), parses each of them once
and renders them against model objects.  Supports single-template rendering,
file rendering and string-based rendering for inline template content.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from skelgen.engine import Template
from skelgen.generator.render import render
from skelgen.utils import write_text


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

TEMPLATE_SUFFIX = ".tmpl"


class TemplateNotFound(LookupError):
    """Raised when a template path does not exist under the template root."""


# ---------------------------------------------------------------------------
# TemplateRegistry
# ---------------------------------------------------------------------------


class TemplateRegistry:
    """Loads and caches parsed templates.

    Templates are addressed by their path relative to the template root, e.g.
    ``"tasks/Task.cpp.tmpl"``.  Each file is read and parsed on first use only.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self._cache: dict[str, Template] = {}

    # -- Lookup ------------------------------------------------------------

    def get(self, template_path: str) -> Template:
        """Return the parsed template at *template_path*.

        Raises:
            TemplateNotFound: If there is no such file.
            TemplateSyntaxError: If the file is not a valid template.
        """
        template = self._cache.get(template_path)
        if template is None:
            file_path = self.template_dir / template_path
            if not file_path.is_file():
                raise TemplateNotFound(f"no template {template_path} in {self.template_dir}")
            source = file_path.read_text(encoding="utf-8")
            template = Template(source, name=template_path)
            self._cache[template_path] = template
        return template

    # -- Rendering ---------------------------------------------------------

    def render(self, template_path: str, model: Any, **bindings: Any) -> str:
        """Render the template at *template_path* against *model*."""
        return render(self.get(template_path), model, **bindings)

    def render_string(self, template_string: str, model: Any, **bindings: Any) -> str:
        """Render an inline template string.

        Useful for small fragments that are not stored as files.  Inline
        templates are not cached.
        """
        return render(template_string, model, **bindings)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        model: Any,
        **bindings: Any,
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically.  Nothing is written if
        the render fails.
        """
        content = self.render(template_path, model, **bindings)
        out = Path(output_path)
        await asyncio.to_thread(write_text, out, content)
        return out

    # -- Utility -----------------------------------------------------------

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.tmpl`` template paths under *prefix*.

        Paths are relative to the template root directory.
        """
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob(f"*{TEMPLATE_SUFFIX}")
        )
