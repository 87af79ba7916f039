"""Expressions used inside template tags.

The grammar is deliberately small::

    guard    := ('not' | '!') guard | compare
    compare  := operand (('==' | '!=') operand)?
    operand  := STRING | 'true' | 'false' | path | '(' guard ')'
    path     := NAME ('.' NAME)*
    interp   := guard (('if' | 'unless') guard)?

A ``NAME`` may end with ``?`` to mark a predicate, whose value must be a
boolean (``task.fixed_initial_state?``).

Paths are resolved against a :class:`Scope`.  The first segment is a scope
binding; every further segment goes through the accessor table of the current
value's type, so a template can only read what a model entity explicitly lists
in its ``template_accessors`` (plus a handful of string and sequence helpers).
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional, Union

from skelgen.engine.errors import ExpressionSyntaxError, TypeMismatch, UnresolvedPath
from skelgen.utils import camel_case, pascal_case, slugify, snake_case


KEYWORDS = frozenset({"not", "if", "unless", "in", "true", "false"})

_TOKEN = re.compile(
    r"""
      (?P<space>\s+)
    | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    | (?P<op>==|!=|!|\.|\(|\))
    | (?P<name>[A-Za-z_][A-Za-z0-9_]*\??)
    """,
    re.VERBOSE,
)

_ESCAPES = {"n": "\n", "t": "\t"}


# ---------------------------------------------------------------------------
# Syntax tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Literal:
    value: Any

    def __str__(self) -> str:
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        return f'"{self.value}"'


@dataclass(frozen=True)
class Path:
    segments: tuple[str, ...]

    def __str__(self) -> str:
        return ".".join(self.segments)


@dataclass(frozen=True)
class Not:
    operand: "Node"

    def __str__(self) -> str:
        return f"not {self.operand}"


@dataclass(frozen=True)
class Compare:
    left: "Node"
    right: "Node"
    negate: bool = False

    def __str__(self) -> str:
        return f"{self.left} {'!=' if self.negate else '=='} {self.right}"


Node = Union[Literal, Path, Not, Compare]


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _tokenize(source: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    while pos < len(source):
        match = _TOKEN.match(source, pos)
        if match is None:
            raise ExpressionSyntaxError(f"unexpected character {source[pos]!r} in '{source}'")
        kind = match.lastgroup
        if kind != "space":
            tokens.append((kind, match.group()))
        pos = match.end()
    return tokens


def _unquote(raw: str) -> str:
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), raw[1:-1])


class _Parser:
    def __init__(self, source: str) -> None:
        self.source = source
        self.tokens = _tokenize(source)
        self.pos = 0

    def peek(self) -> tuple[str, str] | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def take(self) -> tuple[str, str]:
        token = self.peek()
        if token is None:
            raise ExpressionSyntaxError(f"unexpected end of expression '{self.source}'")
        self.pos += 1
        return token

    def at(self, kind: str, value: str) -> bool:
        return self.peek() == (kind, value)

    def expect(self, kind: str, value: str) -> None:
        token = self.take()
        if token != (kind, value):
            raise ExpressionSyntaxError(f"expected '{value}' in '{self.source}', got '{token[1]}'")

    def finish(self) -> None:
        token = self.peek()
        if token is not None:
            raise ExpressionSyntaxError(f"unexpected '{token[1]}' in '{self.source}'")

    # -- grammar -----------------------------------------------------------

    def guard(self) -> Node:
        if self.at("name", "not") or self.at("op", "!"):
            self.take()
            return Not(self.guard())
        return self.compare()

    def compare(self) -> Node:
        left = self.operand()
        if self.at("op", "==") or self.at("op", "!="):
            _, op = self.take()
            return Compare(left, self.operand(), negate=op == "!=")
        return left

    def operand(self) -> Node:
        kind, value = self.take()
        if kind == "string":
            return Literal(_unquote(value))
        if kind == "op" and value == "(":
            node = self.guard()
            self.expect("op", ")")
            return node
        if kind == "name" and value in ("true", "false"):
            return Literal(value == "true")
        if kind == "name" and value not in KEYWORDS:
            return self.path(value)
        raise ExpressionSyntaxError(f"unexpected '{value}' in '{self.source}'")

    def path(self, head: str) -> Path:
        segments = [head]
        while self.at("op", "."):
            self.take()
            kind, value = self.take()
            if kind != "name" or value in KEYWORDS:
                raise ExpressionSyntaxError(f"expected a name after '.' in '{self.source}'")
            segments.append(value)
        return Path(tuple(segments))


def parse_guard(source: str) -> Node:
    """Parse the expression of an ``if`` / ``unless`` tag."""
    parser = _Parser(source)
    node = parser.guard()
    parser.finish()
    return node


def parse_path(source: str) -> Path:
    """Parse a bare attribute path, as used by ``each`` tags."""
    parser = _Parser(source)
    kind, value = parser.take()
    if kind != "name" or value in KEYWORDS:
        raise ExpressionSyntaxError(f"expected an attribute path, got '{source}'")
    node = parser.path(value)
    parser.finish()
    return node


def parse_interpolation(source: str) -> tuple[Node, Optional[Node]]:
    """Parse the body of a ``<%= ... %>`` tag.

    Returns:
        ``(value, guard)``.  *guard* is ``None`` without an inline suffix;
        an ``unless`` suffix is returned already negated.
    """
    parser = _Parser(source)
    value = parser.guard()
    guard: Optional[Node] = None
    if parser.at("name", "if") or parser.at("name", "unless"):
        _, keyword = parser.take()
        guard = parser.guard()
        if keyword == "unless":
            guard = Not(guard)
    parser.finish()
    return value, guard


# ---------------------------------------------------------------------------
# Lexical environment
# ---------------------------------------------------------------------------


class Scope:
    """A chain of name bindings.

    Each nested block gets a child scope; a binding in a child shadows the
    same name in its parents only for the lifetime of that child.
    """

    __slots__ = ("_bindings", "parent")

    def __init__(self, bindings: Mapping[str, Any] | None = None, parent: Scope | None = None) -> None:
        self._bindings = dict(bindings or {})
        self.parent = parent

    def child(self, bindings: Mapping[str, Any]) -> Scope:
        return Scope(bindings, self)

    def lookup(self, name: str) -> Any:
        scope: Scope | None = self
        while scope is not None:
            if name in scope._bindings:
                return scope._bindings[name]
            scope = scope.parent
        raise KeyError(name)

    def __contains__(self, name: str) -> bool:
        try:
            self.lookup(name)
        except KeyError:
            return False
        return True


# ---------------------------------------------------------------------------
# Accessor tables
# ---------------------------------------------------------------------------

SEQUENCE_ACCESSORS: dict[str, Callable[[Any], Any]] = {
    "first": lambda seq: seq[0],
    "last": lambda seq: seq[-1],
    "size": len,
    "empty": lambda seq: len(seq) == 0,
}

STRING_ACCESSORS: dict[str, Callable[[Any], Any]] = {
    "upper": str.upper,
    "lower": str.lower,
    "size": len,
    "empty": lambda text: text == "",
    "snake_case": snake_case,
    "pascal_case": pascal_case,
    "camel_case": camel_case,
    "slug": slugify,
}


def _entity_getter(name: str) -> Callable[[Any], Any]:
    def get(entity: Any) -> Any:
        value = getattr(entity, name)
        return value() if callable(value) else value

    return get


@lru_cache(maxsize=None)
def _entity_accessors(cls: type) -> dict[str, Callable[[Any], Any]]:
    return {name: _entity_getter(name) for name in cls.template_accessors}


def accessors_for(value: Any) -> Mapping[str, Callable[[Any], Any]]:
    """Return the table of names a template may read on *value*."""
    if isinstance(value, str):
        return STRING_ACCESSORS
    if isinstance(value, (list, tuple)):
        return SEQUENCE_ACCESSORS
    if hasattr(type(value), "template_accessors"):
        return _entity_accessors(type(value))
    return {}


def _owner(value: Any) -> str:
    if isinstance(value, (list, tuple)) and not value:
        return "empty sequence"
    return type(value).__name__


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def resolve(path: Path, scope: Scope) -> Any:
    """Resolve *path* left to right against *scope*."""
    text = str(path)
    value: Any = None
    for index, segment in enumerate(path.segments):
        name = segment.rstrip("?")
        if index == 0:
            try:
                value = scope.lookup(name)
            except KeyError:
                raise UnresolvedPath(text, segment, "scope") from None
        else:
            getter = accessors_for(value).get(name)
            if getter is None:
                raise UnresolvedPath(text, segment, _owner(value))
            try:
                value = getter(value)
            except IndexError:
                raise UnresolvedPath(text, segment, "empty sequence") from None
        if segment.endswith("?") and not isinstance(value, bool):
            raise TypeMismatch(text, "a boolean", value)
    return value


def evaluate(node: Node, scope: Scope) -> Any:
    """Evaluate *node*; never mutates anything it reads."""
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Path):
        return resolve(node, scope)
    if isinstance(node, Not):
        return not evaluate_guard(node.operand, scope)
    if isinstance(node, Compare):
        equal = evaluate(node.left, scope) == evaluate(node.right, scope)
        return equal != node.negate
    raise TypeError(f"not an expression node: {node!r}")


def evaluate_guard(node: Node, scope: Scope) -> bool:
    value = evaluate(node, scope)
    if not isinstance(value, bool):
        raise TypeMismatch(str(node), "a boolean", value)
    return value


def evaluate_sequence(node: Node, scope: Scope) -> tuple[Any, ...]:
    value = evaluate(node, scope)
    if not isinstance(value, (list, tuple)):
        raise TypeMismatch(str(node), "a sequence", value)
    return tuple(value)


def evaluate_text(node: Node, scope: Scope) -> str:
    """Evaluate *node* and return its textual form for interpolation."""
    value = evaluate(node, scope)
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise TypeMismatch(str(node), "text", value)
