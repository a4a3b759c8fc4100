"""
Build use case — the whole pipeline for one invocation.

Detect toolchain → summary → confirm → (install-only | acquire → clean →
prepare → configure → build → test → install). The CLI hands in a
resolved BuildConfig and a Confirmer; everything else is derived here.
Failures never escape as exceptions: they come back in BuildResult with
the exit status the process should use.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import click

from flangbuild.adapters.registry import AdapterRegistry
from flangbuild.core.engine.executor import (
    ExecutionPlan,
    ExecutionReport,
    StepFailed,
    execute_plan,
    plan_build,
    plan_install_only,
)
from flangbuild.core.models.action import Action
from flangbuild.core.models.config import BuildConfig, Toolchain
from flangbuild.core.services.confirm import Aborted, Confirmer
from flangbuild.core.services.resources import MemoryStrategy, select_memory_strategy
from flangbuild.core.services.summary import (
    render_completion,
    render_configure_command,
    render_help_hint,
    render_summary,
)
from flangbuild.core.services.toolchain import ToolchainError, detect_toolchain

logger = logging.getLogger(__name__)

Detector = Callable[[BuildConfig, Confirmer], Toolchain]


class PreconditionError(Exception):
    """The filesystem is not in the state the requested mode needs."""


@dataclass
class BuildResult:
    """Outcome of one pipeline run."""

    toolchain: Toolchain | None = None
    plan: ExecutionPlan | None = None
    report: ExecutionReport | None = None
    exit_code: int = 0
    error: str | None = None
    aborted: bool = False
    messages: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and self.error is None

    def to_dict(self) -> dict:
        result: dict = {"exit_code": self.exit_code, "aborted": self.aborted}
        if self.error:
            result["error"] = self.error
        if self.toolchain:
            result["toolchain"] = self.toolchain.model_dump(mode="json")
        if self.plan:
            result["steps"] = self.plan.step_ids
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def default_registry() -> AdapterRegistry:
    from flangbuild.adapters.shell.command import ShellCommandAdapter
    from flangbuild.adapters.shell.filesystem import FilesystemAdapter
    from flangbuild.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry()
    registry.register(ShellCommandAdapter())
    registry.register(FilesystemAdapter())
    registry.register(GitAdapter())
    return registry


def _echo_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


def _announcer(config: BuildConfig) -> Callable[[Action], None]:
    def announce(action: Action) -> None:
        if action.name:
            click.echo(action.name)
        if action.id == "configure" and config.print_cmake_command:
            _echo_lines(render_configure_command(action))

    return announce


def check_preconditions(config: BuildConfig) -> None:
    """Raise PreconditionError before anything touches the disk."""
    if config.install_only:
        if not config.build_dir.is_dir() and not config.dry_run:
            raise PreconditionError(
                f"Build directory {config.build_dir} does not exist.\n"
                "Run a full build before using --install-only."
            )
        return

    if not config.clone and not config.source_dir.is_dir():
        raise PreconditionError(
            f"Source directory {config.source_dir} does not exist.\n"
            "Use --clone to clone the llvm-project repository."
        )


def run_build(
    config: BuildConfig,
    confirmer: Confirmer | None = None,
    detect: Detector | None = None,
    registry: AdapterRegistry | None = None,
    strategy: MemoryStrategy | None = None,
    prog_name: str = "flangbuild",
) -> BuildResult:
    """Run the pipeline for one resolved configuration.

    Args:
        config: Resolved, immutable configuration.
        confirmer: Prompt handling (default: honours ``config.assume_yes``).
        detect: Toolchain detector (default: probe the real host).
        registry: Adapter registry (default: shell, filesystem, git).
        strategy: Memory-capping strategy (default: probe the host).
        prog_name: Name used in the help hint.

    Returns:
        BuildResult carrying the exit status for the process.
    """
    result = BuildResult()
    confirmer = confirmer or Confirmer(assume_yes=config.assume_yes)
    detect = detect or detect_toolchain

    try:
        # ── Detect ──────────────────────────────────────────────
        toolchain = detect(config, confirmer)
        result.toolchain = toolchain

        # ── Summary + confirmation ──────────────────────────────
        _echo_lines(render_summary(config, toolchain))
        if config.no_args_provided:
            _echo_lines(render_help_hint(prog_name))
        else:
            click.echo()

        confirmer.require("Proceed with this configuration?", exit_code=0)
        click.echo()

        check_preconditions(config)

        if registry is None:
            registry = default_registry()

        # ── Install-only short-circuit ──────────────────────────
        if config.install_only:
            click.echo("Running install only...")
            plan = plan_install_only(config)
            result.plan = plan
            result.report = execute_plan(
                plan,
                registry,
                env=toolchain.child_env(),
                dry_run=config.dry_run,
                announce=_announcer(config),
            )
            click.echo(f"Installation complete: {config.install_dir}")
            return result

        if not config.clone:
            click.echo(f"Using existing source directory: {config.source_dir}")

        # ── Plan + execute ──────────────────────────────────────
        if strategy is None:
            strategy = select_memory_strategy(config.memory_limit_mb)
        logger.info("Memory strategy: %s", strategy)

        plan = plan_build(config, toolchain, strategy)
        result.plan = plan
        result.report = execute_plan(
            plan,
            registry,
            env=toolchain.child_env(),
            dry_run=config.dry_run,
            announce=_announcer(config),
        )
        _echo_lines(render_completion(config))

    except Aborted as e:
        result.aborted = True
        result.exit_code = e.exit_code
        result.messages.append(str(e))
    except (ToolchainError, PreconditionError) as e:
        result.error = str(e)
        result.exit_code = 1
    except StepFailed as e:
        result.report = e.report
        result.error = f"Step '{e.action.id}' failed: {e}"
        result.exit_code = e.exit_code

    return result
