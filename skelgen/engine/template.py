"""Template parsing and rendering.

Templates are plain text with embedded tags::

    <%= expr %>                   interpolation
    <%= expr unless guard %>      interpolation with an inline guard
    <% if guard %> ... <% else %> ... <% end %>
    <% unless guard %> ... <% end %>
    <% each op in task.self_operations %> ... <% end %>
    <%# comment %>

A line that holds nothing but one control tag (anything except ``<%= %>``) is
dropped together with its line break, so skipped blocks and loop boundaries do
not leave blank lines behind.

A :class:`Template` is parsed once into a tree of chunks and can then be
rendered any number of times.  Rendering is a pure function of the chunks and
the bindings it is given.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from skelgen.engine.errors import (
    ExpressionSyntaxError,
    RenderError,
    TemplateSyntaxError,
    TypeMismatch,
    UnresolvedPath,
)
from skelgen.engine.expression import (
    Node,
    Not,
    Scope,
    evaluate_guard,
    evaluate_sequence,
    evaluate_text,
    parse_guard,
    parse_interpolation,
    parse_path,
)


# String literals inside a tag may contain "%>"; comments are skipped verbatim.
_STRING = r"\"(?:[^\"\\\n]|\\.)*\"|'(?:[^'\\\n]|\\.)*'"
_TAG = re.compile(
    rf"<%(?:#(?P<comment>.*?)|(?P<kind>=?)(?P<body>(?:{_STRING}|.)*?))%>", re.DOTALL
)
_EACH = re.compile(r"^(?P<variable>[A-Za-z_][A-Za-z0-9_]*)\s+in\s+(?P<collection>.+)$", re.DOTALL)


# ---------------------------------------------------------------------------
# Chunks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Interpolation:
    value: Node
    guard: Optional[Node]
    line: int


@dataclass(frozen=True)
class Conditional:
    guard: Node
    then: tuple["Chunk", ...]
    otherwise: tuple["Chunk", ...]
    line: int


@dataclass(frozen=True)
class Iteration:
    variable: str
    collection: Node
    body: tuple["Chunk", ...]
    line: int


Chunk = Union[Text, Interpolation, Conditional, Iteration]


# ---------------------------------------------------------------------------
# Lexer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Token:
    kind: str  # "text", "=", "#" or "code"
    content: str
    line: int


def _kind(match: re.Match[str]) -> str:
    if match.group("comment") is not None:
        return "#"
    return match.group("kind") or "code"


def _line_end(source: str, pos: int) -> int:
    newline = source.find("\n", pos)
    return len(source) if newline == -1 else newline


def _control_lines(source: str, matches: list[re.Match[str]]) -> dict[int, tuple[int, int]]:
    """Widened spans of the tags sitting on lines that hold control tags only.

    The first tag of such a line swallows the indentation before it, each tag
    swallows the blanks up to the next one, and the last tag swallows the
    rest of the line including its line break.
    """
    spans: dict[int, tuple[int, int]] = {}
    index = 0
    while index < len(matches):
        first = matches[index]
        line_start = source.rfind("\n", 0, first.start()) + 1
        last = index
        if not source[line_start:first.start()].strip():
            while last + 1 < len(matches):
                following = matches[last + 1]
                gap_end = following.start()
                if gap_end > _line_end(source, matches[last].end()) or source[
                    matches[last].end():gap_end
                ].strip():
                    break
                last += 1
            end = matches[last].end()
            line_end = _line_end(source, end)
            group = matches[index:last + 1]
            if not source[end:line_end].strip() and all(_kind(m) != "=" for m in group):
                for offset, match in enumerate(group):
                    start = line_start if offset == 0 else match.start()
                    if offset == len(group) - 1:
                        stop = min(line_end + 1, len(source))
                    else:
                        stop = group[offset + 1].start()
                    spans[index + offset] = (start, stop)
        index = last + 1
    return spans


def _tokenize(source: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    line = 1
    counted = 0
    matches = list(_TAG.finditer(source))
    widened = _control_lines(source, matches)
    for index, match in enumerate(matches):
        line += source.count("\n", counted, match.start())
        counted = match.start()
        start, end = widened.get(index, match.span())

        if start > pos:
            tokens.append(_Token("text", source[pos:start], line))
        tokens.append(_Token(_kind(match), (match.group("body") or "").strip(), line))
        pos = end

    if pos < len(source):
        tokens.append(_Token("text", source[pos:], line))
    return tokens


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


@dataclass
class _Block:
    keyword: str
    line: int
    node: Node
    variable: str = ""
    then: list[Chunk] = field(default_factory=list)
    otherwise: Optional[list[Chunk]] = None

    @property
    def body(self) -> list[Chunk]:
        return self.then if self.otherwise is None else self.otherwise

    def close(self) -> Chunk:
        if self.keyword == "each":
            return Iteration(self.variable, self.node, tuple(self.then), self.line)
        return Conditional(self.node, tuple(self.then), tuple(self.otherwise or ()), self.line)


class _TemplateParser:
    def __init__(self, source: str, name: str) -> None:
        self.source = source
        self.name = name
        self.root: list[Chunk] = []
        self.stack: list[_Block] = []

    def error(self, message: str, line: int) -> TemplateSyntaxError:
        return TemplateSyntaxError(message, line, self.name)

    @property
    def body(self) -> list[Chunk]:
        return self.stack[-1].body if self.stack else self.root

    def parse(self) -> tuple[Chunk, ...]:
        for token in _tokenize(self.source):
            if token.kind == "text":
                self.body.append(Text(token.content))
            elif token.kind == "=":
                try:
                    value, guard = parse_interpolation(token.content)
                except ExpressionSyntaxError as exc:
                    raise self.error(str(exc), token.line) from exc
                self.body.append(Interpolation(value, guard, token.line))
            elif token.kind == "code":
                self.control(token)

        if self.stack:
            block = self.stack[-1]
            raise self.error(f"'{block.keyword}' block is never closed with 'end'", block.line)
        return tuple(self.root)

    def control(self, token: _Token) -> None:
        parts = token.content.split(None, 1)
        keyword = parts[0] if parts else ""
        rest = parts[1].strip() if len(parts) > 1 else ""
        try:
            if keyword in ("if", "unless"):
                guard = parse_guard(rest)
                if keyword == "unless":
                    guard = Not(guard)
                self.stack.append(_Block(keyword, token.line, guard))
            elif keyword == "each":
                match = _EACH.match(rest)
                if match is None:
                    raise self.error("expected 'each <name> in <path>'", token.line)
                collection = parse_path(match.group("collection").strip())
                self.stack.append(
                    _Block(keyword, token.line, collection, variable=match.group("variable"))
                )
            elif keyword == "else" and not rest:
                block = self.stack[-1] if self.stack else None
                if block is None or block.keyword == "each" or block.otherwise is not None:
                    raise self.error("'else' outside of an 'if' or 'unless' block", token.line)
                block.otherwise = []
            elif keyword == "end" and not rest:
                if not self.stack:
                    raise self.error("'end' without an open block", token.line)
                chunk = self.stack.pop().close()
                self.body.append(chunk)
            else:
                raise self.error(f"unknown tag '{token.content}'", token.line)
        except ExpressionSyntaxError as exc:
            raise self.error(str(exc), token.line) from exc


# ---------------------------------------------------------------------------
# Template
# ---------------------------------------------------------------------------


class Template:
    """A parsed template.

    Args:
        source: Template text.
        name: Name used in error messages (usually the template's path).

    Raises:
        TemplateSyntaxError: If the tag structure or an expression is
            malformed.
    """

    def __init__(self, source: str, name: str = "<string>") -> None:
        self.source = source
        self.name = name
        self.chunks = _TemplateParser(source, name).parse()

    def render(self, bindings: Mapping[str, Any] | Scope | None = None, **extra: Any) -> str:
        """Render the template.

        Args:
            bindings: Root bindings, as a mapping or an existing :class:`Scope`.
            **extra: Additional bindings layered on top of *bindings*.

        Returns:
            The rendered text.

        Raises:
            RenderError: If any expression fails to resolve.  Nothing rendered
                before the failure is returned.
        """
        scope = bindings if isinstance(bindings, Scope) else Scope(bindings)
        if extra:
            scope = scope.child(extra)
        out: list[str] = []
        self._render(self.chunks, scope, out)
        return "".join(out)

    def _render(self, chunks: tuple[Chunk, ...], scope: Scope, out: list[str]) -> None:
        for chunk in chunks:
            if isinstance(chunk, Text):
                out.append(chunk.text)
            elif isinstance(chunk, Interpolation):
                if chunk.guard is None or self._eval(evaluate_guard, chunk.guard, scope, chunk.line):
                    out.append(self._eval(evaluate_text, chunk.value, scope, chunk.line))
            elif isinstance(chunk, Conditional):
                if self._eval(evaluate_guard, chunk.guard, scope, chunk.line):
                    self._render(chunk.then, scope, out)
                else:
                    self._render(chunk.otherwise, scope, out)
            else:
                for item in self._eval(evaluate_sequence, chunk.collection, scope, chunk.line):
                    self._render(chunk.body, scope.child({chunk.variable: item}), out)

    def _eval(self, evaluator: Callable[[Node, Scope], Any], node: Node, scope: Scope, line: int) -> Any:
        try:
            return evaluator(node, scope)
        except (UnresolvedPath, TypeMismatch) as exc:
            raise RenderError(exc, line, self.name) from exc

    def __repr__(self) -> str:
        return f"Template({self.name!r})"
