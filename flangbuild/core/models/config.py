"""
Build configuration models — resolved once, then read-only.

The CLI resolves flags, environment variables, the optional config
file and computed defaults into a single BuildConfig. Toolchain
detection produces a Toolchain. Every pipeline stage receives these
two objects and nothing else; none of them re-reads the environment.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

BuildType = Literal["Release", "Debug", "RelWithDebInfo", "MinSizeRel"]

BUILD_TYPES: tuple[str, ...] = ("Release", "Debug", "RelWithDebInfo", "MinSizeRel")

DEFAULT_TARGETS: tuple[str, ...] = ("host", "X86", "AArch64")

LLVM_REPOSITORY = "https://github.com/llvm/llvm-project.git"

VERSION_MARKER = "latest"


def parse_targets(raw: str | None) -> tuple[str, ...]:
    """Split a ``;``-separated target list, dropping blanks and repeats."""
    if not raw:
        return DEFAULT_TARGETS
    seen: list[str] = []
    for name in raw.split(";"):
        name = name.strip()
        if name and name not in seen:
            seen.append(name)
    return tuple(seen) or DEFAULT_TARGETS


def on_off(flag: bool) -> str:
    """CMake boolean spelling."""
    return "ON" if flag else "OFF"


class BuildConfig(BaseModel):
    """Everything the pipeline needs to know about the requested build."""

    model_config = ConfigDict(frozen=True)

    build_type: BuildType = "Release"
    jobs: int = Field(default=1, ge=1)
    memory_limit_mb: int = Field(default=0, ge=0)

    assertions: bool = True
    werror: bool = True
    real16: bool = True
    offload: bool = False
    lld_allowed: bool = True
    ccache_allowed: bool = True

    targets: tuple[str, ...] = DEFAULT_TARGETS

    root_dir: Path
    install_dir: Path

    cmake_args: tuple[str, ...] = ()

    clean: bool = False
    clone: bool = False
    run_tests: bool = False
    install_only: bool = False
    build_only: bool = False
    print_cmake_command: bool = False
    dry_run: bool = False
    assume_yes: bool = False
    no_args_provided: bool = False

    cc: str | None = None
    cxx: str | None = None
    ld_library_path: str | None = None

    @field_validator("targets")
    @classmethod
    def _targets_not_empty(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return value or DEFAULT_TARGETS

    @property
    def source_dir(self) -> Path:
        return self.root_dir / "llvm-project"

    @property
    def build_dir(self) -> Path:
        return self.root_dir / "build"

    @property
    def llvm_source_dir(self) -> Path:
        """The directory CMake is pointed at."""
        return self.source_dir / "llvm"

    @property
    def version_file(self) -> Path:
        return self.install_dir / "bin" / "versionrc"

    @property
    def targets_string(self) -> str:
        return ";".join(self.targets)


class QuadmathProbe(BaseModel):
    """Outcome of the libquadmath compile-and-link probe."""

    model_config = ConfigDict(frozen=True)

    attempted: bool = False
    found: bool = False
    include_dir: str | None = None


class Toolchain(BaseModel):
    """The host tools selected by detection."""

    model_config = ConfigDict(frozen=True)

    cc: str
    cxx: str
    use_lld: bool = False
    use_ccache: bool = False
    quadmath: QuadmathProbe = Field(default_factory=QuadmathProbe)

    @property
    def linker_name(self) -> str:
        return "lld" if self.use_lld else "ld"

    def f128_math_enabled(self, config: BuildConfig) -> bool:
        """Whether to select libquadmath as Flang's REAL(16) math library.

        Follows the REAL(16) switch alone: a failed probe the user chose to
        continue past still selects it.
        """
        return config.real16

    def child_env(self) -> dict[str, str]:
        """Compiler selection exported to every child process."""
        return {"CC": self.cc, "CXX": self.cxx}
