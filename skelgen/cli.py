"""Command-line entry point.

Usage::

    python -m skelgen nav.yml
    python -m skelgen nav.yml -o ./nav --task Controller
    python -m skelgen nav.yml --force
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path

from pydantic import ValidationError

from skelgen.config import GeneratorConfig
from skelgen.engine import TemplateSyntaxError
from skelgen.generator import ComponentGenerator, FileStatus, TemplateNotFound
from skelgen.model import NotFound, ProjectDescriptionError, load_component
from skelgen.utils import (
    console,
    format_duration,
    print_error,
    print_header,
    print_success,
    print_summary_table,
    print_warning,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skelgen",
        description="skelgen -- generate C++ task skeletons from a component description",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m skelgen nav.yml\n"
            "  python -m skelgen nav.yml -o ./nav --task Controller\n"
            "  python -m skelgen nav.yml --dry-run\n"
            "  python -m skelgen nav.yml --config generated/.skelgen.json\n"
        ),
    )
    parser.add_argument(
        "project",
        help="Path to the component description (.yml, .yaml or .json)",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output directory (default: $SKELGEN_OUTPUT_DIR or ./generated)",
    )
    parser.add_argument(
        "--task",
        action="append",
        default=None,
        dest="tasks",
        help="Only generate this task (repeatable; default: all tasks)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Settings file saved by an earlier run (e.g. generated/.skelgen.json); "
        "replaces the SKELGEN_* environment variables",
    )
    parser.add_argument(
        "--template-dir",
        default=None,
        help="Template root to use instead of the bundled templates",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite files that were edited since they were generated",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be written without touching the disk",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``python -m skelgen``.

    Returns:
        The process exit status.
    """
    args = build_parser().parse_args(argv)

    project_path = Path(args.project)
    if not project_path.exists():
        print_error(f"Error: project description not found: {project_path}")
        return 1

    if args.config:
        try:
            config = GeneratorConfig.load(Path(args.config))
        except (OSError, ValidationError) as exc:
            print_error(f"Error: cannot read settings from {args.config}: {exc}")
            return 1
    else:
        config = GeneratorConfig.from_env()
    update: dict[str, object] = {"dry_run": args.dry_run}
    if args.output:
        update["output_dir"] = Path(args.output)
    if args.template_dir:
        update["template_dir"] = Path(args.template_dir)
    if args.tasks:
        update["tasks"] = args.tasks
    if args.force:
        update["force"] = True
    config = config.model_copy(update=update)

    started = time.monotonic()
    try:
        component = load_component(project_path)
        print_header(f"Generating {component.name}")
        report = asyncio.run(ComponentGenerator(component, config).generate())
    except (ProjectDescriptionError, NotFound, TemplateNotFound, TemplateSyntaxError) as exc:
        print_error(f"Error: {exc}")
        return 1

    print_summary_table(
        [(str(f.path), f.status.value) for f in report.files],
        title=f"{component.name} ({'dry run' if config.dry_run else config.output_dir})",
    )
    for kept in report.with_status(FileStatus.KEPT):
        print_warning(f"{kept.path} was edited; fresh rendering written to {kept.reference_path}")
    for failure in report.failures:
        print_error(f"{failure.task}: {failure.template}:{failure.line}: {failure.message}")

    if not report.success:
        print_error("Generation failed.")
        return 1

    if not config.dry_run:
        saved = config.save()
        console.print(f"Settings saved to {saved}")
    print_success(f"Generation completed in {format_duration(time.monotonic() - started)}")
    console.print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
