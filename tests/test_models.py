"""
Tests for core models — Action, Receipt, BuildConfig, Toolchain.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from flangbuild.core.models.action import Action, Receipt
from flangbuild.core.models.config import (
    DEFAULT_TARGETS,
    BuildConfig,
    QuadmathProbe,
    Toolchain,
    on_off,
    parse_targets,
)

# ── Action ──────────────────────────────────────────────────────────


class TestAction:
    def test_program_and_args(self):
        action = Action(id="build", adapter="shell", argv=["ninja", "-j", "8"])
        assert action.program == "ninja"
        assert action.args == ["-j", "8"]

    def test_display_quotes_arguments(self):
        action = Action(
            id="configure",
            adapter="shell",
            argv=["cmake", "-DLLVM_TARGETS_TO_BUILD=host;X86"],
            cwd="/work/build",
        )
        assert action.display() == "(cd /work/build && cmake '-DLLVM_TARGETS_TO_BUILD=host;X86')"

    def test_display_filesystem_action(self):
        action = Action(
            id="prepare-build",
            adapter="filesystem",
            params={"operation": "mkdir", "path": "/work/build"},
        )
        assert action.display() == "mkdir /work/build"

    def test_frozen(self):
        action = Action(id="a", adapter="shell")
        with pytest.raises(ValidationError):
            action.id = "b"

    def test_tolerate_failure_default(self):
        assert Action(id="a", adapter="git").tolerate_failure is False
        assert Action(id="a", adapter="git", params={"tolerate_failure": True}).tolerate_failure


# ── Receipt ─────────────────────────────────────────────────────────


class TestReceipt:
    def test_success(self):
        r = Receipt.success(adapter="shell", action_id="build", output="done", return_code=0)
        assert r.ok and not r.failed
        assert r.return_code == 0

    def test_failure(self):
        r = Receipt.failure(adapter="shell", action_id="build", error="boom", return_code=2)
        assert r.failed and not r.ok
        assert r.error == "boom"
        assert r.return_code == 2

    def test_skip(self):
        r = Receipt.skip(adapter="shell", action_id="build", reason="[dry-run] ninja")
        assert r.status == "skipped"
        assert not r.ok and not r.failed
        assert r.output == "[dry-run] ninja"

    def test_json_round_trip(self):
        r = Receipt.failure(adapter="git", action_id="clone-source", error="x", return_code=128)
        assert Receipt.model_validate_json(r.model_dump_json()) == r


# ── Targets ─────────────────────────────────────────────────────────


class TestParseTargets:
    def test_default(self):
        assert parse_targets(None) == DEFAULT_TARGETS
        assert parse_targets("") == DEFAULT_TARGETS

    def test_order_kept_repeats_dropped(self):
        assert parse_targets("X86;NVPTX;X86;;AMDGPU") == ("X86", "NVPTX", "AMDGPU")

    def test_only_separators(self):
        assert parse_targets(";;") == DEFAULT_TARGETS

    def test_on_off(self):
        assert on_off(True) == "ON"
        assert on_off(False) == "OFF"


# ── BuildConfig ─────────────────────────────────────────────────────


class TestBuildConfig:
    def test_derived_paths(self, make_config, tmp_path: Path):
        config = make_config()
        assert config.source_dir == tmp_path / "llvm-project"
        assert config.build_dir == tmp_path / "build"
        assert config.llvm_source_dir == tmp_path / "llvm-project" / "llvm"
        assert config.version_file == tmp_path / "install" / "bin" / "versionrc"

    def test_defaults(self, tmp_path: Path):
        config = BuildConfig(root_dir=tmp_path, install_dir=tmp_path / "install")
        assert config.build_type == "Release"
        assert config.assertions and config.werror and config.real16
        assert not config.offload
        assert config.targets_string == "host;X86;AArch64"

    def test_rejects_zero_jobs(self, make_config):
        with pytest.raises(ValidationError):
            make_config(jobs=0)

    def test_rejects_negative_memory(self, make_config):
        with pytest.raises(ValidationError):
            make_config(memory_limit_mb=-1)

    def test_rejects_unknown_build_type(self, make_config):
        with pytest.raises(ValidationError):
            make_config(build_type="Fast")

    def test_empty_targets_fall_back(self, make_config):
        assert make_config(targets=()).targets == DEFAULT_TARGETS


# ── Toolchain ───────────────────────────────────────────────────────


class TestToolchain:
    def test_linker_name(self):
        assert Toolchain(cc="clang", cxx="clang++", use_lld=True).linker_name == "lld"
        assert Toolchain(cc="gcc", cxx="g++").linker_name == "ld"

    def test_child_env(self):
        assert Toolchain(cc="gcc", cxx="g++").child_env() == {"CC": "gcc", "CXX": "g++"}

    @pytest.mark.parametrize(
        ("real16", "found", "expected"),
        [(True, True, True), (True, False, True), (False, True, False), (False, False, False)],
    )
    def test_f128_math_enabled(self, make_config, real16: bool, found: bool, expected: bool):
        toolchain = Toolchain(
            cc="clang",
            cxx="clang++",
            quadmath=QuadmathProbe(attempted=real16, found=found),
        )
        assert toolchain.f128_math_enabled(make_config(real16=real16)) is expected
