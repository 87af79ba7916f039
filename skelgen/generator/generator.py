"""Component skeleton generation.

Takes a :class:`Component` and a :class:`GeneratorConfig` and renders every
configured task template for every selected task, then writes the results
under the output directory.

Generated files are meant to be edited by hand, so regeneration never
clobbers a developer's changes by default:

* a missing file is written (``created``);
* a file whose content already matches the rendering is left untouched
  (``unchanged``), so regenerating from an unchanged model produces no diff;
* a file that differs is kept (``kept``) and the fresh rendering is written
  under ``<output>/templates/`` for comparison, unless ``force`` is set
  (``overwritten``).
"""

from __future__ import annotations

import asyncio
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from skelgen.config import GeneratorConfig
from skelgen.engine import RenderError
from skelgen.generator.templates import TemplateRegistry
from skelgen.model.models import Component, Task
from skelgen.utils import write_text


# ---------------------------------------------------------------------------
# Report models
# ---------------------------------------------------------------------------


class FileStatus(str, Enum):
    """What happened to one output file."""
    CREATED = "created"
    UNCHANGED = "unchanged"
    KEPT = "kept"
    OVERWRITTEN = "overwritten"


class GeneratedFile(BaseModel):
    """One output file of a run."""
    task: str = Field(..., description="Qualified task name")
    path: Path = Field(..., description="Path relative to the output directory")
    status: FileStatus
    reference_path: Optional[Path] = Field(
        default=None, description="Where the fresh rendering went when the file was kept"
    )


class TaskFailure(BaseModel):
    """A task whose templates could not be rendered; none of its files are written."""
    task: str
    template: str
    line: int
    message: str


class GenerationReport(BaseModel):
    """Outcome of :meth:`ComponentGenerator.generate`."""
    files: list[GeneratedFile] = Field(default_factory=list)
    failures: list[TaskFailure] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures

    def with_status(self, status: FileStatus) -> list[GeneratedFile]:
        return [f for f in self.files if f.status == status]


# ---------------------------------------------------------------------------
# Main generator
# ---------------------------------------------------------------------------


class ComponentGenerator:
    """Renders and writes the task skeletons of one component.

    Tasks are rendered concurrently in worker threads; rendering reads the
    model only, so no locking is needed.  All of a task's templates are
    rendered before any of its files is written.
    """

    def __init__(self, component: Component, config: GeneratorConfig | None = None) -> None:
        self.component = component
        self.config = config or GeneratorConfig()
        self.registry = TemplateRegistry(self.config.template_dir)

    # -- Public API --------------------------------------------------------

    def selected_tasks(self) -> list[Task]:
        """Tasks this run generates, in component order.

        Raises:
            NotFound: If the configuration names a task the component lacks.
        """
        for basename in self.config.tasks:
            self.component.find_task(basename)
        return [task for task in self.component.tasks if self.config.selects(task.basename)]

    def render_task(self, task: Task) -> dict[Path, str]:
        """Render every task template for *task*.

        Returns:
            ``{relative output path: content}``, in template order.

        Raises:
            RenderError: On the first template that fails.
        """
        return {
            self.config.output_path_for(template_path, task.basename): self.registry.render(
                template_path, task
            )
            for template_path in self.config.task_templates
        }

    async def generate(self, output_dir: str | Path | None = None) -> GenerationReport:
        """Generate the skeletons of all selected tasks.

        Args:
            output_dir: Overrides ``config.output_dir`` for this run.

        Returns:
            A report listing every file and every task that failed to render.
        """
        if output_dir is not None:
            self.config = self.config.model_copy(update={"output_dir": Path(output_dir)})

        tasks = self.selected_tasks()
        # Parse up-front so syntax errors surface once, not once per task.
        for template_path in self.config.task_templates:
            self.registry.get(template_path)

        results = await asyncio.gather(
            *(asyncio.to_thread(self.render_task, task) for task in tasks),
            return_exceptions=True,
        )

        report = GenerationReport()
        for task, result in zip(tasks, results):
            if isinstance(result, RenderError):
                report.failures.append(
                    TaskFailure(
                        task=task.name,
                        template=result.template_name,
                        line=result.line,
                        message=str(result.cause),
                    )
                )
                continue
            if isinstance(result, BaseException):
                raise result
            for relative, content in result.items():
                written = await asyncio.to_thread(self._write, task, relative, content)
                report.files.append(written)
        return report

    # -- Internal ----------------------------------------------------------

    def _write(self, task: Task, relative: Path, content: str) -> GeneratedFile:
        target = self.config.output_dir / relative
        dry_run = self.config.dry_run

        if not target.exists():
            if not dry_run:
                write_text(target, content)
            return GeneratedFile(task=task.name, path=relative, status=FileStatus.CREATED)

        if target.read_text(encoding="utf-8") == content:
            return GeneratedFile(task=task.name, path=relative, status=FileStatus.UNCHANGED)

        if self.config.force:
            if not dry_run:
                write_text(target, content)
            return GeneratedFile(task=task.name, path=relative, status=FileStatus.OVERWRITTEN)

        reference = Path(self.config.reference_dir) / relative
        if not dry_run:
            write_text(self.config.reference_path / relative, content)
        return GeneratedFile(
            task=task.name, path=relative, status=FileStatus.KEPT, reference_path=reference
        )


async def generate_component(
    component: Component, config: GeneratorConfig | None = None
) -> GenerationReport:
    """Convenience wrapper around :class:`ComponentGenerator`."""
    return await ComponentGenerator(component, config).generate()

