"""OpenAPI spec descriptors.

This module handles:
- The built-in stable/experimental/deprecated spec layout
- Loading spec descriptors from a YAML/JSON specs file
- Resolving a run target ("all" or a spec name) to descriptors
"""

import json
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from apidocs_builder.types import ALL_TARGET

SPEC_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_\-]+$")

# name -> (spec path, output dir), relative to the docs directory
DEFAULT_SPEC_LAYOUT: dict[str, tuple[str, str]] = {
    "stable": ("static/llama-stack-spec.yaml", "docs/api"),
    "experimental": (
        "static/experimental-llama-stack-spec.yaml",
        "docs/api-experimental",
    ),
    "deprecated": (
        "static/deprecated-llama-stack-spec.yaml",
        "docs/api-deprecated",
    ),
}


class UnknownSpecError(Exception):
    """Raised when a run targets a spec name that is not configured."""

    def __init__(
        self,
        name: str,
        valid_targets: list[str],
        code: str = "unknown_spec",
    ) -> None:
        super().__init__(
            f"Unknown target: {name}. Valid targets: {', '.join(valid_targets)}"
        )
        self.name = name
        self.valid_targets = valid_targets
        self.code = code


class SpecsFileError(Exception):
    """Raised when a specs file cannot be read or validated."""

    def __init__(self, message: str, code: str = "invalid_specs_file") -> None:
        super().__init__(message)
        self.code = code


class SpecDescriptor(BaseModel):
    """Static description of one OpenAPI spec.

    Attributes:
        name: Spec name, also the generator's gen-api-docs argument.
        spec_path: Path to the OpenAPI input file.
        output_dir: Directory the generator writes pages into.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(description="Spec name passed to gen-api-docs")
    spec_path: Path = Field(description="Path to the OpenAPI spec file")
    output_dir: Path = Field(description="Directory of generated API pages")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate spec name is usable as a CLI argument."""
        if not SPEC_NAME_PATTERN.match(v):
            raise ValueError(
                f"name must match {SPEC_NAME_PATTERN.pattern}, got '{v}'"
            )
        if v == ALL_TARGET:
            raise ValueError(f"'{ALL_TARGET}' is reserved and cannot name a spec")
        return v


def default_specs(docs_dir: Path) -> dict[str, SpecDescriptor]:
    """Return the built-in spec descriptors rooted at docs_dir."""
    return {
        name: SpecDescriptor(
            name=name,
            spec_path=docs_dir / spec_path,
            output_dir=docs_dir / output_dir,
        )
        for name, (spec_path, output_dir) in DEFAULT_SPEC_LAYOUT.items()
    }


def _read_specs_data(path: Path) -> Any:
    suffix = path.suffix.lower()
    with open(path, encoding="utf-8") as f:
        if suffix in (".yaml", ".yml"):
            return yaml.safe_load(f)
        if suffix == ".json":
            return json.load(f)
    raise SpecsFileError(
        f"Unsupported file extension '{suffix}'. Use .yaml, .yml, or .json"
    )


def load_specs_file(path: Path, docs_dir: Path) -> dict[str, SpecDescriptor]:
    """Load spec descriptors from a YAML or JSON file.

    The file holds a top-level ``specs`` mapping of name to
    ``{spec_path, output_dir}``. Relative paths are resolved against
    docs_dir. Declaration order is preserved.

    Args:
        path: Path to the specs file.
        docs_dir: Documentation root used for relative paths.

    Returns:
        Mapping of spec name to descriptor.

    Raises:
        SpecsFileError: If the file is missing, unparsable, or invalid.
    """
    try:
        data = _read_specs_data(path)
    except FileNotFoundError as e:
        raise SpecsFileError(f"Specs file not found: {path}") from e
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise SpecsFileError(f"Parse error in {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("specs"), dict):
        raise SpecsFileError(f"Expected a top-level 'specs' mapping in {path}")
    if not data["specs"]:
        raise SpecsFileError(f"No specs declared in {path}")

    specs: dict[str, SpecDescriptor] = {}
    for name, entry in data["specs"].items():
        if not isinstance(entry, dict):
            raise SpecsFileError(f"Spec '{name}' must be a mapping in {path}")
        try:
            spec = SpecDescriptor.model_validate({"name": str(name), **entry})
        except ValidationError as e:
            raise SpecsFileError(f"Invalid spec '{name}' in {path}: {e}") from e
        specs[spec.name] = spec.model_copy(
            update={
                "spec_path": docs_dir / spec.spec_path,
                "output_dir": docs_dir / spec.output_dir,
            }
        )
    return specs


def resolve_specs(
    docs_dir: Path,
    specs_file: Path | None = None,
) -> dict[str, SpecDescriptor]:
    """Return descriptors from specs_file when given, else the defaults."""
    if specs_file is None:
        return default_specs(docs_dir)
    return load_specs_file(specs_file, docs_dir)


def select_specs(
    target: str,
    specs: dict[str, SpecDescriptor],
) -> list[SpecDescriptor]:
    """Resolve a run target to the descriptors it covers.

    Args:
        target: "all" or a single spec name.
        specs: Available descriptors.

    Returns:
        Descriptors in declaration order.

    Raises:
        UnknownSpecError: If target is neither "all" nor a known spec.
    """
    if target == ALL_TARGET:
        return list(specs.values())
    if target in specs:
        return [specs[target]]
    raise UnknownSpecError(target, [ALL_TARGET, *specs])


__all__ = [
    "DEFAULT_SPEC_LAYOUT",
    "SpecDescriptor",
    "SpecsFileError",
    "UnknownSpecError",
    "default_specs",
    "load_specs_file",
    "resolve_specs",
    "select_specs",
]
