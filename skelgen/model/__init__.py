"""skelgen model -- the component / task / operation hierarchy.

Quick usage::

    from skelgen.model import load_component

    component = load_component("nav.yml")
    task = component.find_task("Controller")
"""

from skelgen.model.loader import (
    ProjectDescriptionError,
    ProjectLoader,
    component_from_dict,
    load_component,
)
from skelgen.model.models import Argument, Component, NotFound, Operation, Task, Type

__all__ = [
    "Argument",
    "Component",
    "NotFound",
    "Operation",
    "ProjectDescriptionError",
    "ProjectLoader",
    "Task",
    "Type",
    "component_from_dict",
    "load_component",
]
