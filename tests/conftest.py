"""
Shared test fixtures and configuration.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from flangbuild.adapters.mock import MockAdapter
from flangbuild.adapters.registry import AdapterRegistry
from flangbuild.adapters.shell.filesystem import FilesystemAdapter
from flangbuild.core.models.config import BuildConfig, QuadmathProbe, Toolchain


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., BuildConfig]:
    """Factory for a BuildConfig rooted in a temp directory."""

    def _make(**overrides: Any) -> BuildConfig:
        values: dict[str, Any] = {
            "root_dir": tmp_path,
            "install_dir": tmp_path / "install",
            "jobs": 4,
            "memory_limit_mb": 8192,
            "assume_yes": True,
        }
        values.update(overrides)
        return BuildConfig(**values)

    return _make


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """An existing llvm-project checkout under the temp root."""
    src = tmp_path / "llvm-project" / "llvm"
    src.mkdir(parents=True)
    return src.parent


@pytest.fixture
def clang_toolchain() -> Toolchain:
    """clang/clang++/lld/ccache with a working libquadmath."""
    return Toolchain(
        cc="clang",
        cxx="clang++",
        use_lld=True,
        use_ccache=True,
        quadmath=QuadmathProbe(attempted=True, found=True, include_dir="/usr/include"),
    )


@pytest.fixture
def shell_mock() -> MockAdapter:
    return MockAdapter(adapter_name="shell")


@pytest.fixture
def git_mock() -> MockAdapter:
    return MockAdapter(adapter_name="git")


@pytest.fixture
def registry(shell_mock: MockAdapter, git_mock: MockAdapter) -> AdapterRegistry:
    """Mocked processes, real filesystem operations."""
    reg = AdapterRegistry()
    reg.register(shell_mock)
    reg.register(git_mock)
    reg.register(FilesystemAdapter())
    return reg


def fake_which(*available: str) -> Callable[[str], str | None]:
    """A ``shutil.which`` stand-in that knows only the given tools."""
    tools = set(available)

    def _which(name: str) -> str | None:
        return f"/usr/bin/{name}" if name in tools else None

    return _which


@pytest.fixture
def make_which() -> Callable[..., Callable[[str], str | None]]:
    return fake_which
