"""Hash cache for generated API docs.

This module handles:
- SHA-256 hashing of OpenAPI spec files
- Loading and saving the per-spec cache record
- Recording a fresh entry after a successful generation

The cache is loaded once per run and saved once at the end, always from
the orchestrating process. Entries are only written for specs whose
generation succeeded.
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

# Read files in 1 MiB chunks when hashing
HASH_CHUNK_SIZE = 1024 * 1024


def hash_file(path: Path) -> str | None:
    """Compute the SHA-256 hex digest of a file.

    Args:
        path: File to hash.

    Returns:
        Hex digest, or None if the file does not exist.
    """
    if not path.is_file():
        return None
    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


class CacheEntry(BaseModel):
    """Cache record for one spec.

    Attributes:
        hash: SHA-256 of the spec file at the last successful generation.
        generated_at: When that generation finished (UTC).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    hash: str
    generated_at: datetime = Field(alias="generatedAt")

    def to_json_dict(self) -> dict[str, str]:
        """Serialize using the on-disk key names."""
        return {
            "hash": self.hash,
            "generatedAt": self.generated_at.isoformat().replace("+00:00", "Z"),
        }


class GenerationCache:
    """In-memory view of the persisted spec hash cache.

    Args:
        path: Location of the JSON cache file.
        entries: Initial entries keyed by spec name.
    """

    def __init__(
        self,
        path: Path,
        entries: dict[str, CacheEntry] | None = None,
    ) -> None:
        self.path = path
        self._entries: dict[str, CacheEntry] = dict(entries or {})

    @classmethod
    def load(cls, path: Path) -> GenerationCache:
        """Load the cache from disk.

        A missing file yields an empty cache. An unreadable or malformed
        file is logged as a warning and also yields an empty cache.
        """
        if not path.exists():
            return cls(path)

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Could not read cache file %s, starting fresh: %s", path, e)
            return cls(path)

        if not isinstance(raw, dict):
            logger.warning("Cache file %s is not a JSON object, starting fresh", path)
            return cls(path)

        entries: dict[str, CacheEntry] = {}
        for name, value in raw.items():
            try:
                entries[name] = CacheEntry.model_validate(value)
            except ValidationError:
                logger.warning("Ignoring malformed cache entry for %s", name)
        return cls(path, entries)

    def get(self, name: str) -> CacheEntry | None:
        """Return the entry for a spec, if any."""
        return self._entries.get(name)

    def cached_hash(self, name: str) -> str | None:
        """Return the stored hash for a spec, if any."""
        entry = self._entries.get(name)
        return entry.hash if entry else None

    def record(
        self,
        name: str,
        file_hash: str,
        generated_at: datetime | None = None,
    ) -> CacheEntry:
        """Overwrite the entry for a spec after a successful generation."""
        entry = CacheEntry(
            hash=file_hash,
            generated_at=generated_at or datetime.now(timezone.utc),
        )
        self._entries[name] = entry
        logger.debug("Recorded cache entry for %s: %s", name, file_hash[:16])
        return entry

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-serializable cache content."""
        return {name: entry.to_json_dict() for name, entry in self._entries.items()}

    def save(self) -> None:
        """Write the cache to disk as pretty-printed JSON."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
            f.write("\n")
        logger.debug("Saved cache with %d entries to %s", len(self), self.path)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "CacheEntry",
    "GenerationCache",
    "hash_file",
]
