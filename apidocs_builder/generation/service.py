"""API docs generation service.

This module provides the high-level generation API:
- generate_api_docs(): decide, generate, and persist the cache for a run
- check_specs(): dry-run decisions without generating anything

The cache is loaded once at the start of a run and saved once at the end.
Specs that generated successfully keep their new cache entries even when
a sibling spec failed.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from apidocs_builder.config import Settings, get_settings
from apidocs_builder.generation.cache import GenerationCache, hash_file
from apidocs_builder.generation.decider import RegenerationDecision, needs_regeneration
from apidocs_builder.generation.runner import (
    GenerationResult,
    OutputTarget,
    run_generations,
)
from apidocs_builder.generation.specs import (
    SpecDescriptor,
    resolve_specs,
    select_specs,
)
from apidocs_builder.types import RunRequest

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    """Outcome of a generation run.

    Attributes:
        request: The run request.
        decisions: One decision per selected spec.
        results: One result per spec that was generated.
        duration: Total generation wall-clock seconds.
    """

    request: RunRequest
    decisions: list[RegenerationDecision] = field(default_factory=list)
    results: list[GenerationResult] = field(default_factory=list)
    duration: float = 0.0

    @property
    def generated(self) -> list[str]:
        """Specs whose generation succeeded."""
        return [r.spec_name for r in self.results if r.success]

    @property
    def failed(self) -> list[str]:
        """Specs whose generation failed."""
        return [r.spec_name for r in self.results if not r.success]

    @property
    def skipped(self) -> list[str]:
        """Specs that were up to date."""
        return [d.spec_name for d in self.decisions if not d.regenerate]

    @property
    def success(self) -> bool:
        """True when no generation failed."""
        return not self.failed

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable summary with stable keys."""
        return {
            "target": self.request.target,
            "force": self.request.force,
            "parallel": self.request.parallel,
            "success": self.success,
            "duration": round(self.duration, 1),
            "decisions": [
                {
                    "spec": d.spec_name,
                    "regenerate": d.regenerate,
                    "reason": d.reason.value,
                    "hash": d.current_hash,
                }
                for d in self.decisions
            ],
            "results": [
                {
                    "spec": r.spec_name,
                    "success": r.success,
                    "exit_code": r.exit_code,
                    "duration": round(r.duration, 1),
                    "error_message": r.error_message,
                }
                for r in self.results
            ],
        }


def check_specs(
    target: str,
    specs: dict[str, SpecDescriptor],
    cache: GenerationCache,
    force: bool = False,
) -> list[RegenerationDecision]:
    """Decide regeneration for every spec covered by target.

    Raises:
        UnknownSpecError: If target is not "all" or a known spec.
    """
    return [
        needs_regeneration(spec, cache, force)
        for spec in select_specs(target, specs)
    ]


def apply_results(
    results: list[GenerationResult],
    specs: dict[str, SpecDescriptor],
    cache: GenerationCache,
) -> None:
    """Record fresh cache entries for every successful generation.

    The hash is recomputed after generation so the entry reflects the
    spec file as it was when the generator finished.
    """
    for result in results:
        if not result.success:
            continue
        spec = specs[result.spec_name]
        file_hash = hash_file(spec.spec_path)
        if file_hash is None:
            logger.warning(
                "Spec file %s disappeared after generating %s; not caching",
                spec.spec_path,
                spec.name,
            )
            continue
        cache.record(spec.name, file_hash)


def generate_api_docs(
    request: RunRequest,
    settings: Settings | None = None,
    specs: dict[str, SpecDescriptor] | None = None,
    generator_stdout: OutputTarget = None,
) -> GenerationReport:
    """Regenerate API docs for the specs that need it.

    Args:
        request: Target and force/parallel flags.
        settings: Settings; uses defaults from the environment if omitted.
        specs: Spec descriptors; resolved from settings if omitted.
        generator_stdout: Where generator stdout goes (None inherits ours).

    Returns:
        GenerationReport for the run.

    Raises:
        UnknownSpecError: If the target is not "all" or a known spec.
        SpecsFileError: If the configured specs file is invalid.
    """
    if settings is None:
        settings = get_settings()
    if specs is None:
        specs = resolve_specs(settings.docs_dir, settings.specs_file)

    logger.info(
        "Target: %s, Force: %s, Parallel: %s",
        request.target,
        request.force,
        request.parallel,
    )

    cache = GenerationCache.load(settings.cache_path)
    report = GenerationReport(request=request)

    logger.info("Checking which specs need regeneration...")
    report.decisions = check_specs(request.target, specs, cache, request.force)
    pending = [d.spec_name for d in report.decisions if d.regenerate]

    if not pending:
        logger.info("All API docs are up to date. Nothing to generate.")
        return report

    logger.info("Generating %d spec(s): %s", len(pending), ", ".join(pending))
    started = time.monotonic()
    report.results = run_generations(
        pending,
        settings.docs_dir,
        npm_command=settings.npm_command,
        parallel=request.parallel,
        stdout=generator_stdout,
    )
    report.duration = time.monotonic() - started

    apply_results(report.results, specs, cache)
    cache.save()

    logger.info("Total time: %.1fs", report.duration)
    if not report.success:
        logger.error("Generation failed for: %s", ", ".join(report.failed))
    return report


__all__ = [
    "GenerationReport",
    "apply_results",
    "check_specs",
    "generate_api_docs",
]
