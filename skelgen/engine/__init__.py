"""skelgen template engine.

Parses templates into chunks and renders them against bindings resolved
through a small, explicitly scoped expression language.

Quick usage::

    from skelgen.engine import Template

    template = Template("<% each op in task.self_operations %><%= op.method_name %>\\n<% end %>")
    text = template.render({"task": task})
"""

from skelgen.engine.errors import (
    ExpressionSyntaxError,
    RenderError,
    TemplateError,
    TemplateSyntaxError,
    TypeMismatch,
    UnresolvedPath,
)
from skelgen.engine.expression import Scope
from skelgen.engine.template import Template

__all__ = [
    "ExpressionSyntaxError",
    "RenderError",
    "Scope",
    "Template",
    "TemplateError",
    "TemplateSyntaxError",
    "TypeMismatch",
    "UnresolvedPath",
]
