"""Shared pytest fixtures for the skelgen test suite.

Provides reusable fixtures for:
- The ``nav`` component used throughout the end-to-end scenarios
- Small task / operation models with and without return values
- Project description files written to a temporary directory
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from skelgen.model import Argument, Component, Operation, Task, Type


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


@pytest.fixture
def reset_op() -> Operation:
    return Operation(method_name="reset")


@pytest.fixture
def get_status_op() -> Operation:
    return Operation(method_name="getStatus", return_types=[Type(cxx_name="Status")])


@pytest.fixture
def nav_component() -> Component:
    """Component{nav} with Task{Controller} exposing reset() and getStatus()."""
    task = Task(
        basename="Controller",
        fixed_initial_state=False,
        self_operations=[
            Operation(method_name="reset", has_return_value=False),
            Operation(
                method_name="getStatus",
                has_return_value=True,
                return_types=[Type(cxx_name="Status")],
            ),
        ],
    )
    return Component(name="nav", tasks=[task])


@pytest.fixture
def controller(nav_component: Component) -> Task:
    return nav_component.find_task("Controller")


@pytest.fixture
def make_component():
    """Factory building a one-task component with the given options."""

    def _make(
        basename: str = "Controller",
        fixed_initial_state: bool = False,
        operations: list[Operation] | None = None,
        name: str = "nav",
    ) -> Component:
        task = Task(
            basename=basename,
            fixed_initial_state=fixed_initial_state,
            self_operations=operations or [],
        )
        return Component(name=name, tasks=[task])

    return _make


@pytest.fixture
def multi_task_component() -> Component:
    """A component with two tasks, one of them with an argument-taking operation."""
    return Component(
        name="arm",
        tasks=[
            Task(
                basename="Joint",
                fixed_initial_state=True,
                self_operations=[
                    Operation(
                        method_name="moveTo",
                        arguments=[Argument(name="angle", type=Type.from_name("double"))],
                    ),
                ],
            ),
            Task(
                basename="Gripper",
                self_operations=[
                    Operation(
                        method_name="getTime",
                        return_types=[Type.from_name("/base/Time")],
                    ),
                ],
            ),
        ],
    )


# ---------------------------------------------------------------------------
# Project descriptions
# ---------------------------------------------------------------------------

NAV_DESCRIPTION = textwrap.dedent(
    """\
    name: nav
    doc: Navigation stack
    tasks:
      - name: Controller
        fixed_initial_state: false
        operations:
          - name: reset
          - name: getStatus
            returns: Status
          - name: setMode
            arguments:
              - name: mode
                type: /nav/Mode
    """
)


@pytest.fixture
def nav_description(tmp_path: Path) -> Path:
    """Path to a YAML description of the ``nav`` component."""
    path = tmp_path / "descriptions" / "nav.yml"
    path.parent.mkdir()
    path.write_text(NAV_DESCRIPTION, encoding="utf-8")
    return path
