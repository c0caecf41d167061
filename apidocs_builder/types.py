"""Shared type definitions for apidocs_builder.

This module contains dataclasses and enums shared across subpackages
to avoid circular imports.
"""

from dataclasses import dataclass
from enum import Enum

ALL_TARGET = "all"


class DecisionReason(str, Enum):
    """Why a spec was (or was not) selected for regeneration."""

    FORCED = "forced"
    SPEC_MISSING = "spec_missing"
    OUTPUT_MISSING = "output_missing"
    SPEC_CHANGED = "spec_changed"
    UP_TO_DATE = "up_to_date"


class BuildStep(str, Enum):
    """Steps of the documentation build pipeline, in execution order."""

    INSTALL = "install"
    GENERATE_API_DOCS = "generate_api_docs"
    SYNC_FILES = "sync_files"
    BUILD = "build"
    SERVE = "serve"


@dataclass(frozen=True)
class RunRequest:
    """A single generation run request.

    Attributes:
        target: Spec name or "all".
        force: Regenerate even when the cache says the spec is unchanged.
        parallel: Run pending generations concurrently.
    """

    target: str = ALL_TARGET
    force: bool = False
    parallel: bool = False


__all__ = [
    "ALL_TARGET",
    "BuildStep",
    "DecisionReason",
    "RunRequest",
]
