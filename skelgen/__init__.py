"""skelgen -- source skeleton generator.

Renders C++ task skeletons from a typed component model.  The template engine
(:mod:`skelgen.engine`) is a pure function of (template text, model); the
generator (:mod:`skelgen.generator`) adds template loading and file writing on
top of it.
"""

from skelgen.engine import RenderError, Template
from skelgen.generator import render

__version__ = "0.1.0"

__all__ = ["RenderError", "Template", "render"]
