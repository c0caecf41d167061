"""API docs generation module.

This module handles:
- Spec descriptors and target selection
- Hash cache loading and persistence
- Regeneration decisions
- Running the site generator per spec
"""

from apidocs_builder.generation.cache import CacheEntry, GenerationCache
from apidocs_builder.generation.specs import SpecDescriptor

__all__ = ["CacheEntry", "GenerationCache", "SpecDescriptor"]
