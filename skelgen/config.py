"""skelgen configuration.

Typed configuration for a generation run.  All settings use Pydantic v2 models
so they can be validated at construction time and serialised to/from JSON or
environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


DEFAULT_TASK_TEMPLATES: dict[str, str] = {
    "tasks/Task.cpp.tmpl": "tasks/{basename}.cpp",
    "tasks/Task.hpp.tmpl": "tasks/{basename}.hpp",
}

CONFIG_FILENAME = ".skelgen.json"


class GeneratorConfig(BaseModel):
    """Configuration of a generation run.

    Instances are typically created once by the CLI entry point and passed to
    :class:`~skelgen.generator.ComponentGenerator`.
    """

    output_dir: Path = Field(default=Path("./generated"))
    template_dir: Path | None = Field(
        default=None, description="Template root; the bundled templates when unset"
    )
    reference_dir: str = Field(
        default="templates",
        description="Where fresh renderings of files the developer changed are written",
    )
    task_templates: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_TASK_TEMPLATES),
        description="Template path -> output path pattern, '{basename}' is the task basename",
    )
    tasks: list[str] = Field(
        default_factory=list, description="Task basenames to generate; all tasks when empty"
    )
    force: bool = Field(default=False, description="Overwrite files the developer changed")
    dry_run: bool = Field(default=False, description="Compute file statuses without writing")

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def reference_path(self) -> Path:
        """Root of the directory receiving fresh renderings of kept files."""
        return self.output_dir / self.reference_dir

    @property
    def config_path(self) -> Path:
        """Where a run records the settings it was made with."""
        return self.output_dir / CONFIG_FILENAME

    def output_path_for(self, template_path: str, basename: str) -> Path:
        """Path, relative to ``output_dir``, of a task's rendered template."""
        return Path(self.task_templates[template_path].format(basename=basename))

    def selects(self, basename: str) -> bool:
        """Whether the task called *basename* is part of this run."""
        return not self.tasks or basename in self.tasks

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        The per-run switches (``force``, ``dry_run``) are not saved, so reloading
        the file never turns them on by itself.

        Args:
            path: Target file; defaults to :attr:`config_path`.

        Returns:
            The path where the file was written.
        """
        path = Path(path) if path is not None else self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            self.model_dump_json(indent=2, exclude={"force", "dry_run"}), encoding="utf-8"
        )
        return path

    @classmethod
    def load(cls, path: Path) -> "GeneratorConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """Build a ``GeneratorConfig`` from environment variables.

        Recognised variables (all optional):
            SKELGEN_OUTPUT_DIR, SKELGEN_TEMPLATE_DIR, SKELGEN_TASKS
            (comma-separated basenames), SKELGEN_FORCE ("1"/"true"/"yes").
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("SKELGEN_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["SKELGEN_OUTPUT_DIR"])
        if os.environ.get("SKELGEN_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["SKELGEN_TEMPLATE_DIR"])

        tasks_str = os.environ.get("SKELGEN_TASKS", "")
        kwargs["tasks"] = [t.strip() for t in tasks_str.split(",") if t.strip()]
        kwargs["force"] = os.environ.get("SKELGEN_FORCE", "").lower() in ("1", "true", "yes")

        return cls(**kwargs)
