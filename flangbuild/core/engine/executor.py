"""
Engine executor — turn a resolved configuration into steps and run them.

Planning is pure: ``plan_build`` and ``plan_install_only`` map a
BuildConfig and Toolchain to an ordered list of Actions. Execution is
strictly sequential and fail-fast: the first failed receipt stops the
run, except for actions marked ``tolerate_failure`` (the source update),
which only warn.

Flow:
    config + toolchain → plan → execute (announce, dispatch, check) → report
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import click

from flangbuild.adapters.registry import AdapterRegistry
from flangbuild.adapters.vcs.git import clone_argv, pull_argv
from flangbuild.core.models.action import Action, Receipt
from flangbuild.core.models.config import (
    LLVM_REPOSITORY,
    VERSION_MARKER,
    BuildConfig,
    Toolchain,
    on_off,
)
from flangbuild.core.services.resources import MemoryStrategy, systemd_wrap

logger = logging.getLogger(__name__)

LLVM_PROJECTS = "clang;mlir;flang;lld;clang-tools-extra"
LLVM_RUNTIMES = ("compiler-rt", "flang-rt", "openmp")
TEST_TARGETS = ("check-flang", "check-flang-rt")


class StepFailed(Exception):
    """A step's child process or filesystem operation failed."""

    def __init__(
        self,
        action: Action,
        receipt: Receipt,
        report: ExecutionReport | None = None,
    ):
        super().__init__(receipt.error or f"{action.id} failed")
        self.action = action
        self.receipt = receipt
        self.report = report

    @property
    def exit_code(self) -> int:
        """The child's exit status, so the process fails the same way."""
        return self.receipt.return_code or 1


@dataclass
class ExecutionPlan:
    """An ordered set of steps."""

    mode: str = "build"
    actions: list[Action] = field(default_factory=list)

    @property
    def total_actions(self) -> int:
        return len(self.actions)

    @property
    def step_ids(self) -> list[str]:
        return [a.id for a in self.actions]

    def get(self, action_id: str) -> Action | None:
        for action in self.actions:
            if action.id == action_id:
                return action
        return None


@dataclass
class ExecutionReport:
    """Result of executing a plan."""

    mode: str = ""
    receipts: list[Receipt] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.status == "skipped")

    def to_dict(self) -> dict:
        return {
            "mode": self.mode,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "warnings": self.warnings,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


# ── Step construction ───────────────────────────────────────────


def _fs(action_id: str, name: str, operation: str, path: object, **params: object) -> Action:
    return Action(
        id=action_id,
        name=name,
        adapter="filesystem",
        params={"operation": operation, "path": str(path), **params},
    )


def configure_args(config: BuildConfig, toolchain: Toolchain) -> list[str]:
    """CMake options, in the order they are passed.

    Passthrough arguments come last so they override everything above.
    """
    args = [
        "-G", "Ninja",
        f"-DCMAKE_BUILD_TYPE={config.build_type}",
        f"-DCMAKE_INSTALL_PREFIX={config.install_dir}",
        "-DCMAKE_EXPORT_COMPILE_COMMANDS=ON",
        f"-DCMAKE_C_COMPILER={toolchain.cc}",
        f"-DCMAKE_CXX_COMPILER={toolchain.cxx}",
        f"-DLLVM_ENABLE_ASSERTIONS={on_off(config.assertions)}",
        f"-DLLVM_TARGETS_TO_BUILD={config.targets_string}",
        "-DLLVM_LIT_ARGS=-v",
        f"-DLLVM_ENABLE_PROJECTS={LLVM_PROJECTS}",
        f"-DFLANG_ENABLE_WERROR={on_off(config.werror)}",
        "-DLLVM_BUILD_DOCS=OFF",
        "-DLLVM_BUILD_EXAMPLES=OFF",
        "-DLLVM_ENABLE_DOXYGEN=OFF",
        "-DLLVM_ENABLE_IDE=ON",
        "-DLLVM_ENABLE_SPHINX=OFF",
        "-DLLVM_INCLUDE_TESTS=ON",
        "-DFLANG_INCLUDE_TESTS=ON",
        "-DLLVM_OPTIMIZED_TABLEGEN=ON",
        "-DLLVM_LINK_LLVM_DYLIB=ON",
        "-DLLVM_BUILD_LLVM_DYLIB=ON",
    ]

    if toolchain.f128_math_enabled(config):
        args.append("-DFLANG_RUNTIME_F128_MATH_LIB=libquadmath")

    runtimes = list(LLVM_RUNTIMES)
    if config.offload:
        runtimes.append("offload")
    args.append(f"-DLLVM_ENABLE_RUNTIMES={';'.join(runtimes)}")

    if config.ld_library_path:
        args.append(f"-DCMAKE_CXX_LINK_FLAGS=-Wl,-rpath,{config.ld_library_path}")

    if toolchain.use_lld:
        args.append("-DLLVM_USE_LINKER=lld")

    if toolchain.use_ccache:
        args.append("-DLLVM_CCACHE_BUILD=ON")

    args.extend(config.cmake_args)
    return args


def configure_action(config: BuildConfig, toolchain: Toolchain) -> Action:
    return Action(
        id="configure",
        name="Configuring with CMake...",
        adapter="shell",
        argv=["cmake", *configure_args(config, toolchain), str(config.llvm_source_dir)],
        cwd=str(config.build_dir),
    )


def build_action(config: BuildConfig, strategy: MemoryStrategy) -> Action:
    argv = ["ninja", "-j", str(config.jobs)]
    params: dict[str, object] = {"memory_strategy": strategy}
    if strategy == "systemd":
        argv = systemd_wrap(argv, config.memory_limit_mb)
    elif strategy == "rlimit":
        params["rlimit_as_kb"] = config.memory_limit_mb * 1024

    if strategy == "none":
        name = f"Building with {config.jobs} parallel jobs (no memory limit)..."
    else:
        name = (
            f"Building with {config.jobs} parallel jobs "
            f"(memory limit: {config.memory_limit_mb} MB)..."
        )
    return Action(
        id="build",
        name=name,
        adapter="shell",
        argv=argv,
        cwd=str(config.build_dir),
        params=params,
    )


def check_action(config: BuildConfig) -> Action:
    return Action(
        id="test",
        name="Running Flang tests...",
        adapter="shell",
        argv=["ninja", *TEST_TARGETS],
        cwd=str(config.build_dir),
    )


def install_actions(config: BuildConfig) -> list[Action]:
    return [
        Action(
            id="install",
            name="Installing...",
            adapter="shell",
            argv=["ninja", "install"],
            cwd=str(config.build_dir),
        ),
        _fs(
            "version-marker",
            "Writing version marker...",
            "write",
            config.version_file,
            content=f"{VERSION_MARKER}\n",
        ),
    ]


def acquisition_action(config: BuildConfig) -> Action:
    """Pull an existing checkout (non-fatal) or clone a fresh one."""
    if config.source_dir.is_dir():
        return Action(
            id="update-source",
            name="Updating existing repository...",
            adapter="git",
            argv=pull_argv(),
            cwd=str(config.source_dir),
            params={
                "operation": "pull",
                "tolerate_failure": True,
                "failure_warning": "git pull failed, continuing with existing source",
            },
        )
    return Action(
        id="clone-source",
        name="Cloning llvm-project...",
        adapter="git",
        argv=clone_argv(LLVM_REPOSITORY, str(config.source_dir)),
        cwd=str(config.root_dir),
        params={"operation": "clone"},
    )


def plan_build(
    config: BuildConfig,
    toolchain: Toolchain,
    strategy: MemoryStrategy,
) -> ExecutionPlan:
    """All steps of a full build, in execution order."""
    plan = ExecutionPlan(mode="build")
    steps = plan.actions

    steps.append(_fs("prepare-root", "", "mkdir", config.root_dir))
    if config.clone:
        steps.append(acquisition_action(config))
    if config.clean:
        steps.append(_fs("clean-build", "Cleaning build directories...", "remove", config.build_dir))
        steps.append(_fs("clean-install", "", "remove", config.install_dir))
    steps.append(_fs("prepare-build", "", "mkdir", config.build_dir))
    steps.append(_fs("prepare-install", "", "mkdir", config.install_dir))
    steps.append(configure_action(config, toolchain))
    steps.append(build_action(config, strategy))
    if config.run_tests:
        steps.append(check_action(config))
    if not config.build_only:
        steps.extend(install_actions(config))
    return plan


def plan_install_only(config: BuildConfig) -> ExecutionPlan:
    return ExecutionPlan(mode="install-only", actions=install_actions(config))


# ── Execution ───────────────────────────────────────────────────


def execute_plan(
    plan: ExecutionPlan,
    registry: AdapterRegistry,
    env: dict[str, str] | None = None,
    dry_run: bool = False,
    announce: Callable[[Action], None] | None = None,
) -> ExecutionReport:
    """Run every action in order; stop at the first hard failure.

    Raises:
        StepFailed: An action failed and does not tolerate failure.
    """
    report = ExecutionReport(mode=plan.mode)

    for action in plan.actions:
        if announce is not None:
            announce(action)

        receipt = registry.execute_action(action, env=env, dry_run=dry_run)
        report.receipts.append(receipt)

        status_marker = "✓" if receipt.ok else "✗" if receipt.failed else "⊘"
        logger.info("%s %s → %s", status_marker, action.id, receipt.status)

        if dry_run and receipt.status == "skipped":
            click.echo(f"  {receipt.output}")

        if not receipt.failed:
            continue

        if action.tolerate_failure:
            warning = action.params.get("failure_warning") or f"{action.id} failed"
            report.warnings.append(warning)
            click.secho(f"Warning: {warning}", fg="yellow")
            continue

        raise StepFailed(action, receipt, report)

    return report
