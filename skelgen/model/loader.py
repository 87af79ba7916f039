"""Project description loading.

Turns a YAML or JSON project description into a :class:`Component`::

    name: nav
    tasks:
      - name: Controller
        fixed_initial_state: false
        operations:
          - name: reset
          - name: getStatus
            returns: Status
            arguments:
              - {name: mode, type: /nav/Mode}

:class:`ProjectLoader` adds name-based lookup over a list of search
directories, loading each component at most once.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from skelgen.model.models import Argument, Component, NotFound, Operation, Task, Type


DESCRIPTION_SUFFIXES: tuple[str, ...] = (".yml", ".yaml", ".json")


class ProjectDescriptionError(ValueError):
    """Raised when a project description cannot be turned into a model."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"{source}: {message}")


# ---------------------------------------------------------------------------
# Description -> model
# ---------------------------------------------------------------------------


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _type(spec: Any) -> Type:
    if isinstance(spec, str):
        return Type.from_name(spec)
    if isinstance(spec, dict):
        return Type(**spec)
    raise ValueError(f"cannot read a type from {spec!r}")


def _argument(spec: dict[str, Any]) -> Argument:
    return Argument(name=spec.get("name", ""), type=_type(spec.get("type")), doc=spec.get("doc", ""))


def _operation(spec: dict[str, Any]) -> Operation:
    fields: dict[str, Any] = {
        "method_name": spec.get("name", ""),
        "return_types": [_type(t) for t in _as_list(spec.get("returns"))],
        "arguments": [_argument(a) for a in _as_list(spec.get("arguments"))],
        "doc": spec.get("doc", ""),
    }
    if "has_return_value" in spec:
        fields["has_return_value"] = spec["has_return_value"]
    return Operation(**fields)


def _task(spec: dict[str, Any]) -> Task:
    return Task(
        basename=spec.get("name", ""),
        fixed_initial_state=spec.get("fixed_initial_state", False),
        self_operations=[_operation(op) for op in _as_list(spec.get("operations"))],
        doc=spec.get("doc", ""),
    )


def component_from_dict(data: dict[str, Any], source: str = "<dict>") -> Component:
    """Build a :class:`Component` from a parsed project description.

    Args:
        data: The description, as loaded from YAML or JSON.
        source: Where *data* came from, for error messages.

    Raises:
        ProjectDescriptionError: If a required key is missing or a value
            fails validation.
    """
    if not isinstance(data, dict):
        raise ProjectDescriptionError(source, "a project description must be a mapping")
    try:
        return Component(
            name=data.get("name", ""),
            tasks=[_task(task) for task in _as_list(data.get("tasks"))],
            doc=data.get("doc", ""),
        )
    except (ValidationError, ValueError, AttributeError) as exc:
        raise ProjectDescriptionError(source, str(exc)) from exc


def load_component(path: str | Path) -> Component:
    """Load a project description file (``.yml``, ``.yaml`` or ``.json``)."""
    file_path = Path(path)
    raw = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix == ".json":
            data = json.loads(raw)
        else:
            data = yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ProjectDescriptionError(str(file_path), f"cannot parse: {exc}") from exc
    return component_from_dict(data, source=str(file_path))


# ---------------------------------------------------------------------------
# Name-based loader
# ---------------------------------------------------------------------------


class ProjectLoader:
    """Resolves components and tasks by name.

    Components are searched as ``<dir>/<name>.yml`` (then ``.yaml``, then
    ``.json``) in each search directory, in order.  A component is loaded at
    most once; later lookups return the cached model.
    """

    def __init__(self, search_paths: list[str | Path] | None = None) -> None:
        self.search_paths = [Path(p) for p in (search_paths or [])]
        self.loaded_components: dict[str, Component] = {}

    def find_description(self, name: str) -> Path | None:
        """Return the description file for component *name*, if any."""
        for directory in self.search_paths:
            for suffix in DESCRIPTION_SUFFIXES:
                candidate = directory / f"{name}{suffix}"
                if candidate.is_file():
                    return candidate
        return None

    def has_component(self, name: str) -> bool:
        return name in self.loaded_components or self.find_description(name) is not None

    def register_component(self, component: Component) -> None:
        """Make an already-built component available by name."""
        self.loaded_components[component.name] = component

    def component_from_name(self, name: str) -> Component:
        """Return the component called *name*.

        Raises:
            NotFound: If no search directory holds a description for it.
        """
        if name in self.loaded_components:
            return self.loaded_components[name]

        path = self.find_description(name)
        if path is None:
            raise NotFound(f"there is no component called {name}")

        component = load_component(path)
        if component.name != name:
            raise ProjectDescriptionError(
                str(path), f"file describes component '{component.name}', expected '{name}'"
            )
        self.register_component(component)
        return component

    def task_from_name(self, name: str) -> Task:
        """Return the task model for a qualified name like ``nav::Controller``.

        Raises:
            NotFound: If the name is not qualified, or the component or task
                does not exist.
        """
        component_name, sep, basename = name.partition("::")
        if not sep or not basename:
            raise NotFound(f"{name} is not a qualified task name (expected <component>::<task>)")
        return self.component_from_name(component_name).find_task(basename)
