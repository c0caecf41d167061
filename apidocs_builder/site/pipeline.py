"""Documentation site build pipeline.

Runs the documentation build as a fail-fast linear sequence:
install dependencies, generate API docs (unless skipped), sync imported
files, build the site, and optionally serve it. The first failing step
halts the pipeline with a BuildStepError.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from apidocs_builder.config import Settings, get_settings
from apidocs_builder.generation.service import GenerationReport, generate_api_docs
from apidocs_builder.generation.specs import SpecDescriptor
from apidocs_builder.types import ALL_TARGET, BuildStep, RunRequest

logger = logging.getLogger(__name__)


class BuildStepError(Exception):
    """Raised when a pipeline step fails."""

    def __init__(
        self,
        step: BuildStep,
        message: str,
        exit_code: int = 1,
        code: str = "build_step_failed",
    ) -> None:
        super().__init__(message)
        self.step = step
        self.exit_code = exit_code
        self.code = code


@dataclass(frozen=True)
class BuildOptions:
    """Options for a documentation build.

    Attributes:
        force: Force API docs regeneration.
        parallel: Generate API docs for multiple specs in parallel.
        skip_api: Skip API docs generation and use existing pages.
        serve: Start the local server after building.
    """

    force: bool = False
    parallel: bool = False
    skip_api: bool = False
    serve: bool = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        force: bool = False,
        parallel: bool = False,
        skip_api: bool = False,
        serve: bool = False,
    ) -> BuildOptions:
        """Combine CLI flags with the SKIP_API_DOCS/FORCE_API_DOCS switches."""
        return cls(
            force=force or settings.force_api_docs,
            parallel=parallel,
            skip_api=skip_api or settings.skip_api_docs,
            serve=serve,
        )


@dataclass
class BuildReport:
    """Outcome of a documentation build.

    Attributes:
        docs_dir: Documentation root.
        completed_steps: Steps that finished successfully, in order.
        generation: API docs generation report (None if skipped).
    """

    docs_dir: Path
    completed_steps: list[BuildStep] = field(default_factory=list)
    generation: GenerationReport | None = None

    @property
    def output_dir(self) -> Path:
        """Directory holding the built site."""
        return self.docs_dir / "build"


def run_step(step: BuildStep, cmd: list[str], cwd: Path) -> None:
    """Run one pipeline command with inherited stdio.

    Raises:
        BuildStepError: If the command cannot start or exits non-zero.
    """
    cmd_str = shlex.join(cmd)
    logger.info("[%s] %s", step.value, cmd_str)
    try:
        result = subprocess.run(cmd, cwd=cwd, check=False)
    except OSError as e:
        raise BuildStepError(step, f"Failed to execute {cmd_str}: {e}") from e
    if result.returncode != 0:
        raise BuildStepError(
            step,
            f"{cmd_str} failed with exit code {result.returncode}",
            exit_code=result.returncode,
        )


def needs_install(docs_dir: Path) -> bool:
    """Dependencies are installed when node_modules exists."""
    return not (docs_dir / "node_modules").is_dir()


def build_site(
    options: BuildOptions,
    settings: Settings | None = None,
    specs: dict[str, SpecDescriptor] | None = None,
) -> BuildReport:
    """Build the documentation site.

    Args:
        options: Build options.
        settings: Settings; uses defaults from the environment if omitted.
        specs: Spec descriptors for API generation; resolved if omitted.

    Returns:
        BuildReport listing the completed steps.

    Raises:
        BuildStepError: On the first failing step.
        UnknownSpecError: Propagated from API generation.
        SpecsFileError: If the configured specs file is invalid.
    """
    if settings is None:
        settings = get_settings()
    docs_dir = settings.docs_dir
    npm = settings.npm_command
    report = BuildReport(docs_dir=docs_dir)

    if not docs_dir.is_dir():
        raise BuildStepError(
            BuildStep.INSTALL, f"Docs directory not found: {docs_dir}"
        )

    if needs_install(docs_dir):
        logger.info("Installing dependencies...")
        run_step(BuildStep.INSTALL, [npm, "ci"], docs_dir)
    else:
        logger.debug("node_modules present, skipping install")
    report.completed_steps.append(BuildStep.INSTALL)

    if options.skip_api:
        logger.info("Skipping API docs generation (--skip-api or SKIP_API_DOCS=1)")
    else:
        logger.info("Generating API documentation...")
        request = RunRequest(
            target=ALL_TARGET,
            force=options.force,
            parallel=options.parallel,
        )
        report.generation = generate_api_docs(request, settings, specs)
        if not report.generation.success:
            raise BuildStepError(
                BuildStep.GENERATE_API_DOCS,
                "API docs generation failed for: "
                + ", ".join(report.generation.failed),
            )
        report.completed_steps.append(BuildStep.GENERATE_API_DOCS)

    logger.info("Syncing imported files...")
    run_step(BuildStep.SYNC_FILES, [npm, "run", "sync-files"], docs_dir)
    report.completed_steps.append(BuildStep.SYNC_FILES)

    logger.info("Building documentation...")
    run_step(BuildStep.BUILD, [npm, "run", "build"], docs_dir)
    report.completed_steps.append(BuildStep.BUILD)
    logger.info("Build complete! Output: %s", report.output_dir)

    if options.serve:
        logger.info("Starting local server...")
        run_step(BuildStep.SERVE, [npm, "run", "serve"], docs_dir)
        report.completed_steps.append(BuildStep.SERVE)

    return report


__all__ = [
    "BuildOptions",
    "BuildReport",
    "BuildStepError",
    "build_site",
    "needs_install",
    "run_step",
]
