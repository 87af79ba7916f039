"""Pydantic v2 models describing what gets generated.

A :class:`Component` owns its :class:`Task` objects, each task owns its
:class:`Operation` objects, and operations refer to :class:`Type` objects for
their return values and arguments.  Owners link the back-references of their
children (``task.component``, ``op.task``) once, at construction time; a
child that already belongs to another owner is rejected with ``ValueError``.

Every entity lists the names a template may read in ``template_accessors``;
the template engine refuses any other attribute.  ``binding_name`` is the name
an entity is bound under when it is the root of a render.
"""

from __future__ import annotations

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from skelgen.utils import is_identifier


class NotFound(LookupError):
    """Raised when a named component or task does not exist."""


def cxx_name_of(type_name: str) -> str:
    """Translate a registry type name to its C++ spelling.

    Examples::

        cxx_name_of("/base/Time") -> "base::Time"
        cxx_name_of("double") -> "double"
    """
    if type_name.startswith("/"):
        return "::".join(part for part in type_name.split("/") if part)
    return type_name


def _check_identifier(value: str) -> str:
    if not is_identifier(value):
        raise ValueError(f"'{value}' is not a valid identifier")
    return value


class _Entity(BaseModel):
    """Common base: immutable, compared on fields only.

    Back-references are private attributes and are not part of an entity's
    value, so equality never walks back up the ownership tree.
    """

    model_config = ConfigDict(frozen=True)

    binding_name: ClassVar[str] = ""
    template_accessors: ClassVar[frozenset[str]] = frozenset()

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.__dict__ == other.__dict__


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


class Type(_Entity):
    """A type usable on a task interface."""

    binding_name: ClassVar[str] = "type"
    template_accessors: ClassVar[frozenset[str]] = frozenset({"name", "cxx_name"})

    cxx_name: str = Field(
        default="",
        validate_default=True,
        description="Spelling in generated code, e.g. 'base::Time'",
    )
    name: str = Field(default="", description="Registry name, e.g. '/base/Time'")

    @model_validator(mode="before")
    @classmethod
    def derive_cxx_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("cxx_name") and data.get("name"):
            data = {**data, "cxx_name": cxx_name_of(data["name"])}
        return data

    @field_validator("cxx_name")
    @classmethod
    def require_cxx_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("a type needs a cxx_name or a name")
        return value

    @classmethod
    def from_name(cls, type_name: str) -> "Type":
        """Build a type from either a registry name or a C++ spelling."""
        return cls(name=type_name, cxx_name=cxx_name_of(type_name))


class Argument(_Entity):
    """A named operation argument."""

    binding_name: ClassVar[str] = "arg"
    template_accessors: ClassVar[frozenset[str]] = frozenset(
        {"name", "type", "doc", "cxx_declaration"}
    )

    name: str
    type: Type
    doc: str = ""

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _check_identifier(value)

    def cxx_declaration(self) -> str:
        return f"{self.type.cxx_name} const& {self.name}"


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


class Operation(_Entity):
    """A custom operation of a task.

    ``has_return_value`` defaults to whether any return type is declared.  Only
    the first entry of ``return_types`` is ever used by the generator, even if
    more are declared.
    """

    binding_name: ClassVar[str] = "op"
    template_accessors: ClassVar[frozenset[str]] = frozenset(
        {
            "method_name",
            "has_return_value",
            "return_types",
            "return_type",
            "return_spelling",
            "arguments",
            "argument_list",
            "signature",
            "declaration",
            "doc",
            "task",
        }
    )

    method_name: str
    return_types: tuple[Type, ...] = ()
    has_return_value: bool = False
    arguments: tuple[Argument, ...] = ()
    doc: str = ""

    _task: Optional["Task"] = PrivateAttr(default=None)

    @field_validator("method_name")
    @classmethod
    def check_method_name(cls, value: str) -> str:
        return _check_identifier(value)

    @model_validator(mode="before")
    @classmethod
    def default_has_return_value(cls, data: Any) -> Any:
        if isinstance(data, dict) and "has_return_value" not in data:
            data = {**data, "has_return_value": bool(data.get("return_types"))}
        return data

    @model_validator(mode="after")
    def check_return_types(self) -> "Operation":
        if self.has_return_value and not self.return_types:
            raise ValueError(
                f"operation '{self.method_name}' has a return value but declares no return type"
            )
        return self

    @property
    def task(self) -> Optional["Task"]:
        return self._task

    @property
    def return_type(self) -> tuple[Type, ...]:
        return self.return_types

    @property
    def return_spelling(self) -> str:
        """C++ spelling of the return type, ``void`` without a return value."""
        if self.has_return_value:
            return self.return_types[0].cxx_name
        return "void"

    def argument_list(self) -> str:
        return ", ".join(arg.cxx_declaration() for arg in self.arguments)

    def signature(self, qualifier: Optional[str] = None) -> str:
        """Render the operation's C++ signature.

        Args:
            qualifier: Scope the method name is qualified with.  Defaults to
                the owning task's basename; pass ``""`` for no qualification.

        Returns:
            e.g. ``"Status Controller::getStatus(int const& mode)"``.
        """
        if qualifier is None and self._task is not None:
            qualifier = self._task.basename
        name = f"{qualifier}::{self.method_name}" if qualifier else self.method_name
        return f"{self.return_spelling} {name}({self.argument_list()})"

    def declaration(self) -> str:
        """The unqualified signature, as written in a class declaration."""
        return self.signature(qualifier="")


# ---------------------------------------------------------------------------
# Tasks & components
# ---------------------------------------------------------------------------


class Task(_Entity):
    """A task model; the generated class is named after ``basename``."""

    binding_name: ClassVar[str] = "task"
    template_accessors: ClassVar[frozenset[str]] = frozenset(
        {
            "basename",
            "name",
            "fixed_initial_state",
            "self_operations",
            "has_operations",
            "component",
            "doc",
        }
    )

    basename: str
    fixed_initial_state: bool = False
    self_operations: tuple[Operation, ...] = ()
    doc: str = ""

    _component: Optional["Component"] = PrivateAttr(default=None)

    @field_validator("basename")
    @classmethod
    def check_basename(cls, value: str) -> str:
        return _check_identifier(value)

    @field_validator("self_operations")
    @classmethod
    def unique_operations(cls, value: tuple[Operation, ...]) -> tuple[Operation, ...]:
        seen: set[str] = set()
        for op in value:
            if op.method_name in seen:
                raise ValueError(f"operation '{op.method_name}' is declared twice")
            seen.add(op.method_name)
        return value

    def model_post_init(self, __context: Any) -> None:
        for op in self.self_operations:
            if op._task is not None and op._task is not self:
                raise ValueError(
                    f"operation '{op.method_name}' already belongs to task {op._task.basename}"
                )
        for op in self.self_operations:
            op._task = self

    @property
    def component(self) -> Optional["Component"]:
        return self._component

    @property
    def name(self) -> str:
        """Fully qualified model name, e.g. ``nav::Controller``."""
        if self._component is None:
            return self.basename
        return f"{self._component.name}::{self.basename}"

    @property
    def has_operations(self) -> bool:
        return bool(self.self_operations)

    def find_operation(self, method_name: str) -> Operation:
        for op in self.self_operations:
            if op.method_name == method_name:
                return op
        raise NotFound(f"task {self.name} has no operation called {method_name}")


class Component(_Entity):
    """A component (an oroGen-style project) and the tasks it defines."""

    binding_name: ClassVar[str] = "component"
    template_accessors: ClassVar[frozenset[str]] = frozenset({"name", "tasks", "doc"})

    name: str
    tasks: tuple[Task, ...] = ()
    doc: str = ""

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _check_identifier(value)

    @field_validator("tasks")
    @classmethod
    def unique_tasks(cls, value: tuple[Task, ...]) -> tuple[Task, ...]:
        seen: set[str] = set()
        for task in value:
            if task.basename in seen:
                raise ValueError(f"task '{task.basename}' is declared twice")
            seen.add(task.basename)
        return value

    def model_post_init(self, __context: Any) -> None:
        for task in self.tasks:
            if task._component is not None and task._component is not self:
                raise ValueError(
                    f"task '{task.basename}' already belongs to component {task._component.name}"
                )
        for task in self.tasks:
            task._component = self

    def find_task(self, basename: str) -> Task:
        """Return the task called *basename*.

        Raises:
            NotFound: If the component defines no such task.
        """
        for task in self.tasks:
            if task.basename == basename:
                return task
        raise NotFound(f"component {self.name} has no task called {basename}")
