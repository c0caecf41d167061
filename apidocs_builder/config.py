"""Configuration settings for apidocs_builder.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CACHE_FILENAME = ".api-docs-cache.json"


def _default_docs_dir() -> Path:
    """Return the default docs directory (relative to the working directory)."""
    return Path.cwd() / "docs"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the APIDOCS_ prefix.
    The skip/force switches also honour the bare SKIP_API_DOCS and
    FORCE_API_DOCS variables used by CI scripts.
    """

    model_config = SettingsConfigDict(
        env_prefix="APIDOCS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Paths
    docs_dir: Path = Field(
        default_factory=_default_docs_dir,
        description="Root directory of the documentation site",
    )
    cache_filename: str = Field(
        default=DEFAULT_CACHE_FILENAME,
        description="Name of the hash cache file inside docs_dir",
    )
    specs_file: Path | None = Field(
        default=None,
        description="Optional YAML/JSON file declaring the OpenAPI specs",
    )

    # External tooling
    npm_command: str = Field(
        default="npm",
        description="Executable used to run the site generator scripts",
    )

    # Operational modes
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    skip_api_docs: bool = Field(
        default=False,
        validation_alias=AliasChoices("SKIP_API_DOCS", "APIDOCS_SKIP_API_DOCS"),
        description="Skip API docs generation during builds",
    )
    force_api_docs: bool = Field(
        default=False,
        validation_alias=AliasChoices("FORCE_API_DOCS", "APIDOCS_FORCE_API_DOCS"),
        description="Force API docs regeneration regardless of cache",
    )

    @field_validator("skip_api_docs", "force_api_docs", mode="before")
    @classmethod
    def flag_from_env(cls, v: Any) -> Any:
        """Only the literal string "1" switches an environment flag on."""
        if isinstance(v, str):
            return v == "1"
        return v

    @property
    def cache_path(self) -> Path:
        """Location of the persisted hash cache."""
        return self.docs_dir / self.cache_filename


def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["DEFAULT_CACHE_FILENAME", "Settings", "get_settings", "print_settings_json"]
