"""The render entry point: (template, model) -> text."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from skelgen.engine import Template
from skelgen.model.models import Task


def bindings_for(model: Any) -> dict[str, Any]:
    """Root bindings a template sees when rendered against *model*.

    A Task binds both ``task`` and ``component``; any other entity binds its
    ``binding_name``; a mapping is used as-is.
    """
    if isinstance(model, Mapping):
        return dict(model)
    if isinstance(model, Task):
        return {"task": model, "component": model.component}
    name = getattr(type(model), "binding_name", "")
    if not name:
        raise TypeError(f"cannot render against a {type(model).__name__}")
    return {name: model}


def render(template: str | Template, model: Any, **bindings: Any) -> str:
    """Render *template* against *model*.

    Args:
        template: Template text, or an already-parsed :class:`Template`.
        model: A model entity or a mapping of root bindings.
        **bindings: Extra root bindings; they shadow the model's.

    Returns:
        The rendered text.  The same (template, model) pair always renders to
        the same text.

    Raises:
        TemplateSyntaxError: If *template* is text and is malformed.
        RenderError: If an expression fails to resolve.
    """
    if not isinstance(template, Template):
        template = Template(template)
    return template.render(bindings_for(model), **bindings)
