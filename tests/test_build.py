"""
Tests for the build use case — the whole pipeline with mocked processes.
"""

from pathlib import Path

import pytest

from flangbuild.core.models.config import QuadmathProbe, Toolchain
from flangbuild.core.services.confirm import Aborted, Confirmer
from flangbuild.core.services.toolchain import ToolchainError
from flangbuild.core.use_cases.build import (
    PreconditionError,
    check_preconditions,
    run_build,
)


def _detect_with(toolchain: Toolchain):
    def detect(config, confirmer):
        return toolchain

    return detect


def _prompt(answer: bool, asked: list[str]):
    def prompt(question: str) -> bool:
        asked.append(question)
        return answer

    return prompt


@pytest.fixture
def run(registry, clang_toolchain):
    """Run the pipeline against the mock registry with no memory probing."""

    def _run(config, **kwargs):
        kwargs.setdefault("detect", _detect_with(clang_toolchain))
        kwargs.setdefault("registry", registry)
        kwargs.setdefault("strategy", "none")
        return run_build(config, **kwargs)

    return _run


# ── Preconditions ───────────────────────────────────────────────────


class TestPreconditions:
    def test_missing_source(self, make_config):
        with pytest.raises(PreconditionError, match="Use --clone"):
            check_preconditions(make_config())

    def test_clone_allows_missing_source(self, make_config):
        check_preconditions(make_config(clone=True))

    def test_install_only_needs_build_dir(self, make_config):
        with pytest.raises(PreconditionError, match="Build directory"):
            check_preconditions(make_config(install_only=True))

    def test_install_only_dry_run(self, make_config):
        check_preconditions(make_config(install_only=True, dry_run=True))


# ── Pipeline ────────────────────────────────────────────────────────


class TestRunBuild:
    def test_default_build(self, run, make_config, source_tree, shell_mock, git_mock, capsys):
        config = make_config()
        result = run(config)

        assert result.ok
        assert result.plan.step_ids[-1] == "version-marker"
        assert [a.id for a in shell_mock.actions] == ["configure", "build", "install"]
        assert git_mock.call_count == 0
        assert config.version_file.read_text() == "latest\n"

        out = capsys.readouterr().out
        assert "Flang Build Configuration" in out
        assert f"Using existing source directory: {source_tree}" in out
        assert "Build complete!" in out
        assert f'export PATH="{config.install_dir}/bin:$PATH"' in out

    def test_decline_at_summary(self, run, make_config, source_tree, shell_mock, tmp_path: Path):
        asked: list[str] = []
        config = make_config(assume_yes=False)
        result = run(config, confirmer=Confirmer(prompt=_prompt(False, asked)))

        assert result.aborted
        assert result.exit_code == 0
        assert asked == ["Proceed with this configuration?"]
        assert shell_mock.call_count == 0
        assert not config.build_dir.exists()
        assert not config.install_dir.exists()

    def test_missing_source_creates_nothing(self, run, make_config, tmp_path: Path, shell_mock):
        root = tmp_path / "fresh-root"
        config = make_config(root_dir=root, install_dir=root / "install")
        result = run(config)

        assert result.exit_code == 1
        assert "does not exist" in result.error
        assert "Use --clone" in result.error
        assert not root.exists()
        assert shell_mock.call_count == 0

    def test_clone_into_fresh_root(self, run, make_config, git_mock, tmp_path: Path):
        root = tmp_path / "fresh-root"
        config = make_config(root_dir=root, install_dir=root / "install", clone=True)
        result = run(config)

        assert result.ok
        assert git_mock.actions[0].id == "clone-source"
        assert root.is_dir()

    def test_install_only(self, run, make_config, shell_mock, capsys):
        config = make_config(install_only=True)
        config.build_dir.mkdir(parents=True)

        result = run(config)

        assert result.ok
        assert [a.id for a in shell_mock.actions] == ["install"]
        assert config.version_file.read_text() == "latest\n"
        out = capsys.readouterr().out
        assert "Running install only..." in out
        assert f"Installation complete: {config.install_dir}" in out

    def test_install_only_without_build(self, run, make_config, shell_mock):
        result = run(make_config(install_only=True))
        assert result.exit_code == 1
        assert shell_mock.call_count == 0

    def test_assume_yes_never_prompts(self, run, make_config, source_tree):
        def prompt(question: str) -> bool:
            raise AssertionError(f"unexpected prompt: {question}")

        result = run(make_config(assume_yes=True), confirmer=Confirmer(assume_yes=True, prompt=prompt))
        assert result.ok

    def test_print_cmake_command(self, run, make_config, source_tree, capsys):
        config = make_config(print_cmake_command=True)
        run(config)
        out = capsys.readouterr().out
        assert "CMake Command:" in out
        assert "cmake \\\n  -G \\\n  Ninja \\" in out
        assert f"  {config.llvm_source_dir}\n" in out

    def test_build_failure_propagates_code(self, run, make_config, source_tree, shell_mock):
        shell_mock.set_failure("configure", error="CMake Error", return_code=3)
        config = make_config()
        result = run(config)

        assert result.exit_code == 3
        assert "configure" in result.error
        assert result.report.failed == 1
        assert [a.id for a in shell_mock.actions] == ["configure"]
        assert not config.version_file.exists()

    def test_toolchain_error(self, run, make_config, source_tree):
        def detect(config, confirmer):
            raise ToolchainError("No C compiler found (tried clang, gcc)")

        result = run(make_config(), detect=detect)
        assert result.exit_code == 1
        assert "No C compiler" in result.error
        assert result.toolchain is None

    def test_declined_fallback_exits_one(self, run, make_config, source_tree):
        def detect(config, confirmer):
            raise Aborted()

        result = run(make_config(), detect=detect)
        assert result.aborted
        assert result.exit_code == 1

    def test_no_args_shows_help_hint(self, run, make_config, source_tree, capsys):
        run(make_config(no_args_provided=True), prog_name="flangbuild")
        assert "For help and available options, run: flangbuild --help" in capsys.readouterr().out

    def test_dry_run(self, run, make_config, source_tree, shell_mock, capsys):
        config = make_config(dry_run=True)
        result = run(config)

        assert result.ok
        assert result.report.skipped == result.plan.total_actions
        assert shell_mock.call_count == 0
        assert not config.build_dir.exists()
        assert "[dry-run]" in capsys.readouterr().out

    def test_real16_fallback_in_summary(self, run, make_config, source_tree, capsys):
        toolchain = Toolchain(
            cc="clang", cxx="clang++", quadmath=QuadmathProbe(attempted=True, found=False)
        )
        result = run(make_config(), detect=_detect_with(toolchain))
        assert "ON (libquadmath not found)" in capsys.readouterr().out
        configure = result.plan.get("configure")
        assert "-DFLANG_RUNTIME_F128_MATH_LIB=libquadmath" in configure.argv

    def test_to_dict(self, run, make_config, source_tree):
        data = run(make_config()).to_dict()
        assert data["exit_code"] == 0
        assert data["toolchain"]["cc"] == "clang"
        assert data["steps"][0] == "prepare-root"
