"""Regeneration decisions for API doc specs.

Given a spec, the loaded cache, and a force flag, decide whether the
generator must run for that spec. Deciding never touches the cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from apidocs_builder.generation.cache import GenerationCache, hash_file
from apidocs_builder.generation.specs import SpecDescriptor
from apidocs_builder.types import DecisionReason

logger = logging.getLogger(__name__)

STATUS_MESSAGES: dict[DecisionReason, str] = {
    DecisionReason.FORCED: "Forced regeneration",
    DecisionReason.SPEC_MISSING: "Spec file not found, will regenerate",
    DecisionReason.OUTPUT_MISSING: "Output directory empty or missing, will regenerate",
    DecisionReason.SPEC_CHANGED: "Spec file changed, will regenerate",
    DecisionReason.UP_TO_DATE: "No changes detected, skipping",
}


@dataclass(frozen=True)
class RegenerationDecision:
    """Outcome of checking one spec against the cache.

    Attributes:
        spec_name: Name of the spec.
        regenerate: Whether the generator must run.
        reason: Which rule produced the decision.
        current_hash: Hash of the spec file, when it was computed.
    """

    spec_name: str
    regenerate: bool
    reason: DecisionReason
    current_hash: str | None = None

    @property
    def message(self) -> str:
        """Human-readable status line."""
        return f"{self.spec_name}: {STATUS_MESSAGES[self.reason]}"


def output_has_content(output_dir: Path) -> bool:
    """Return True if output_dir exists and holds at least one entry."""
    if not output_dir.is_dir():
        return False
    return any(output_dir.iterdir())


def needs_regeneration(
    spec: SpecDescriptor,
    cache: GenerationCache,
    force: bool = False,
) -> RegenerationDecision:
    """Decide whether a spec's API docs must be regenerated.

    Rules, first match wins:
    1. force requested
    2. spec file missing (warns; the hash cannot be computed)
    3. output directory missing or empty
    4. spec hash differs from (or is absent in) the cache

    Otherwise the spec is up to date.

    Args:
        spec: Spec to check.
        cache: Loaded generation cache (read only here).
        force: Regenerate unconditionally.

    Returns:
        RegenerationDecision for the spec.
    """
    if force:
        decision = RegenerationDecision(spec.name, True, DecisionReason.FORCED)
        logger.info("  %s", decision.message)
        return decision

    current_hash = hash_file(spec.spec_path)
    if current_hash is None:
        logger.warning("Spec file not found: %s", spec.spec_path)
        decision = RegenerationDecision(spec.name, True, DecisionReason.SPEC_MISSING)
        logger.info("  %s", decision.message)
        return decision

    if not output_has_content(spec.output_dir):
        reason = DecisionReason.OUTPUT_MISSING
    elif current_hash != cache.cached_hash(spec.name):
        reason = DecisionReason.SPEC_CHANGED
    else:
        reason = DecisionReason.UP_TO_DATE

    decision = RegenerationDecision(
        spec_name=spec.name,
        regenerate=reason is not DecisionReason.UP_TO_DATE,
        reason=reason,
        current_hash=current_hash,
    )
    logger.info("  %s", decision.message)
    return decision


__all__ = [
    "RegenerationDecision",
    "STATUS_MESSAGES",
    "needs_regeneration",
    "output_has_content",
]
