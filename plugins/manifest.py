"""Plugin manifest schema.

A plugin may ship a plugin.yaml next to its entry module describing
its metadata. The manifest is optional; plugins without one are named
after their directory.

Example plugin.yaml:
    name: db
    version: 1.0.0
    description: Database lifecycle commands
    author: kbox team
"""

import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from core.errors import KboxError


class ManifestError(KboxError):
    """Raised when manifest parsing or validation fails."""

    pass


class PluginManifest(BaseModel):
    """Plugin manifest schema (plugin.yaml)."""

    name: str = Field(..., description="Plugin name (alphanumeric, dashes, underscores)")
    version: str = Field("0.0.0", description="Semantic version (e.g., 1.0.0)")
    description: str = Field("", description="Plugin description")
    author: str = Field("", description="Plugin author")

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate plugin name format."""
        if not re.match(r"^[a-zA-Z][a-zA-Z0-9_-]*$", str(v)):
            raise ValueError("name must start with letter and contain only alphanumeric, dashes, underscores")
        return v

    @field_validator("version", mode="before")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate semantic version format."""
        if not re.match(r"^\d+\.\d+\.\d+", str(v)):
            raise ValueError("version must be semantic (e.g., 1.0.0)")
        return str(v)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "PluginManifest":
        """Load manifest from a YAML file.

        Raises:
            ManifestError: If file is missing or invalid.
        """
        if not yaml_path.exists():
            raise ManifestError(f"Manifest not found: {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ManifestError(f"Invalid YAML in {yaml_path}: {e}") from e

        if not isinstance(data, dict):
            raise ManifestError(f"Manifest must be a YAML mapping: {yaml_path}")

        try:
            return cls(**data)
        except ValidationError as e:
            raise ManifestError(f"Invalid manifest {yaml_path}: {e}") from e
