"""Exception hierarchy for the template engine.

Evaluation failures (:class:`UnresolvedPath`, :class:`TypeMismatch`) are raised
by the expression layer and never reach callers directly: the renderer wraps
them in a :class:`RenderError` that also records where in the template the
failure happened.
"""

from __future__ import annotations


class TemplateError(Exception):
    """Base class of every error raised by the engine."""


class UnresolvedPath(TemplateError):
    """A path segment does not exist on the value it is applied to."""

    def __init__(self, path: str, segment: str, owner: str) -> None:
        self.path = path
        self.segment = segment
        self.owner = owner
        if owner == "scope":
            message = f"'{segment}' is not bound in the template scope (in '{path}')"
        else:
            message = f"cannot resolve '{segment}' of '{path}' on {owner}"
        super().__init__(message)


class TypeMismatch(TemplateError):
    """A resolved value cannot be used the way the template uses it."""

    def __init__(self, path: str, expected: str, actual: object) -> None:
        self.path = path
        self.expected = expected
        self.actual = type(actual).__name__
        super().__init__(f"'{path}' should be {expected}, got {self.actual}")


class ExpressionSyntaxError(TemplateError):
    """An expression inside a tag is malformed."""


class TemplateSyntaxError(TemplateError):
    """The template's tag structure is malformed."""

    def __init__(self, message: str, line: int, template_name: str = "<string>") -> None:
        self.message = message
        self.line = line
        self.template_name = template_name
        super().__init__(f"{template_name}:{line}: {message}")


class RenderError(TemplateError):
    """A render failed; this is the only error a render call surfaces.

    Attributes:
        cause: The underlying :class:`UnresolvedPath` or :class:`TypeMismatch`.
        path: The expression path that failed.
        line: 1-based line of the offending tag in the template.
        template_name: Name the template was registered or loaded under.
    """

    def __init__(self, cause: TemplateError, line: int, template_name: str = "<string>") -> None:
        self.cause = cause
        self.path = getattr(cause, "path", "")
        self.line = line
        self.template_name = template_name
        super().__init__(f"{template_name}:{line}: {cause}")
