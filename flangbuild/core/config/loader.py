"""
Configuration loader — reads flangbuild.yml into CLI defaults.

The file is optional. When present it supplies defaults that sit
between environment variables and computed defaults: the CLI feeds the
validated values into click's ``default_map``.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from flangbuild.core.models.config import BUILD_TYPES, BuildType

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "flangbuild.yml"


class ConfigError(Exception):
    """Raised when the configuration file is invalid or missing."""


class ConfigFile(BaseModel):
    """Schema of flangbuild.yml. Every key is optional."""

    model_config = ConfigDict(extra="forbid")

    jobs: int | None = Field(default=None, ge=1)
    build_type: BuildType | None = None
    root: str | None = None
    install: str | None = None
    memory: int | None = Field(default=None, ge=0)
    targets: str | None = None
    cmake_args: list[str] = Field(default_factory=list)
    assertions: bool | None = None
    werror: bool | None = None
    real16: bool | None = None
    offload: bool | None = None
    lld: bool | None = None
    ccache: bool | None = None

    @field_validator("build_type", mode="before")
    @classmethod
    def _canonical_build_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            for name in BUILD_TYPES:
                if name.lower() == value.strip().lower():
                    return name
        return value

    @field_validator("targets", mode="before")
    @classmethod
    def _join_targets(cls, value: Any) -> Any:
        if isinstance(value, list):
            return ";".join(str(v) for v in value)
        return value

    @field_validator("cmake_args", mode="before")
    @classmethod
    def _split_cmake_args(cls, value: Any) -> Any:
        if isinstance(value, str):
            return shlex.split(value)
        return value

    def to_default_map(self) -> dict[str, Any]:
        """Translate to click parameter names.

        The ``--no-*`` switches are stored as negated flags, so the
        file's positive booleans are inverted here.
        """
        defaults: dict[str, Any] = {}
        for key in ("jobs", "build_type", "root", "install", "memory", "targets"):
            value = getattr(self, key)
            if value is not None:
                defaults[key] = value
        if self.cmake_args:
            defaults["cmake_args"] = [shlex.join(self.cmake_args)]
        negated = {
            "assertions": "no_assertions",
            "werror": "no_werror",
            "real16": "no_real16",
            "lld": "no_lld",
            "ccache": "no_ccache",
        }
        for key, param in negated.items():
            value = getattr(self, key)
            if value is not None:
                defaults[param] = not value
        if self.offload is not None:
            defaults["offload"] = self.offload
        return defaults


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Return flangbuild.yml in the given directory (default: cwd), if any."""
    candidate = (start_dir or Path.cwd()) / CONFIG_FILE
    return candidate if candidate.is_file() else None


def load_config(path: Path) -> ConfigFile:
    """Load and validate a configuration file.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading build config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = ConfigFile.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid build configuration in {path}: {e}") from e

    logger.info("Loaded build defaults from %s", path)
    return config
