"""Configuration models for the snapshot engine."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from snapverify.models.identity import AgnosticOption, EnvironmentInfo, NamingContext

DEFAULT_SUFFIXES: tuple[str, ...] = ("",)

REFERENCE_DIR_ENV = "SNAPVERIFY_REFERENCE_DIR"
FAILURE_DIR_ENV = "SNAPVERIFY_IMAGE_DIFF_DIR"
RECORD_MODE_ENV = "SNAPVERIFY_RECORD_MODE"

_TRUTHY = {"1", "true", "yes", "on"}


def _resolve_env(value: Optional[str]) -> Optional[str]:
    if isinstance(value, str) and value.startswith("env:"):
        env_var = value[4:]
        resolved = os.environ.get(env_var)
        if resolved is None:
            raise ValueError(f"Environment variable '{env_var}' not set")
        return resolved
    return value


class ViewportConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = Field(default=1280, ge=0)
    height: int = Field(default=720, ge=0)


class SnapshotConfig(BaseModel):
    """Session-wide settings, built once before any assertion runs."""

    model_config = ConfigDict(frozen=True)

    # Directories
    reference_dir: str = ""
    failure_dir: Optional[str] = None

    # Mode
    record_mode: bool = False

    # Comparison
    tolerance: float = Field(default=0.0, ge=0.0, le=1.0)
    pixel_epsilon: int = Field(default=0, ge=0, le=255)

    # Naming
    device_agnostic: bool = False
    agnostic_options: list[str] = Field(default_factory=list)
    suffixes: list[str] = Field(default_factory=lambda: list(DEFAULT_SUFFIXES))
    scale: float = Field(default=1.0, gt=0)
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)

    # Capture
    full_page: bool = False

    @field_validator("reference_dir", "failure_dir", mode="before")
    @classmethod
    def resolve_env_dirs(cls, v: Optional[str]) -> Optional[str]:
        return _resolve_env(v)

    @field_validator("agnostic_options")
    @classmethod
    def check_agnostic_options(cls, v: list[str]) -> list[str]:
        AgnosticOption.parse(v)
        return v

    @property
    def agnostic_flags(self) -> AgnosticOption:
        return AgnosticOption.parse(self.agnostic_options)

    def naming_context(self, environment: Optional[EnvironmentInfo] = None) -> NamingContext:
        """Build the naming context for this configuration."""
        if environment is None:
            environment = EnvironmentInfo.detect(self.viewport.width, self.viewport.height)
        return NamingContext(
            environment=environment,
            agnostic_options=self.agnostic_flags,
            device_agnostic=self.device_agnostic,
            scale=self.scale,
        )

    def with_env(self, environ: Optional[Mapping[str, str]] = None) -> "SnapshotConfig":
        """Return a copy with directory and record-mode overrides from the environment."""
        environ = os.environ if environ is None else environ
        updates: dict = {}
        if environ.get(REFERENCE_DIR_ENV):
            updates["reference_dir"] = environ[REFERENCE_DIR_ENV]
        if environ.get(FAILURE_DIR_ENV):
            updates["failure_dir"] = environ[FAILURE_DIR_ENV]
        if RECORD_MODE_ENV in environ:
            updates["record_mode"] = environ[RECORD_MODE_ENV].strip().lower() in _TRUTHY
        if not updates:
            return self
        return self.model_validate({**self.model_dump(), **updates})

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SnapshotConfig":
        return cls().with_env(environ)

    @classmethod
    def load(cls, path: str | Path) -> "SnapshotConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
