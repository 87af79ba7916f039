"""skelgen generator -- renders task skeletons from a component model.

This package turns a :class:`~skelgen.model.Component` into C++ source
skeletons using the bundled ``Task.cpp`` / ``Task.hpp`` templates (or any
template directory you point it at).

Quick usage::

    from skelgen.generator import ComponentGenerator, render

    text = render("<%= task.basename %>", task)

    generator = ComponentGenerator(component)
    report = await generator.generate("/tmp/output")
"""

from skelgen.generator.generator import (
    ComponentGenerator,
    FileStatus,
    GeneratedFile,
    GenerationReport,
    TaskFailure,
    generate_component,
)
from skelgen.generator.render import bindings_for, render
from skelgen.generator.templates import TemplateNotFound, TemplateRegistry

__all__ = [
    "ComponentGenerator",
    "FileStatus",
    "GeneratedFile",
    "GenerationReport",
    "TaskFailure",
    "TemplateNotFound",
    "TemplateRegistry",
    "bindings_for",
    "generate_component",
    "render",
]
