"""
flangbuild — CLI entrypoint.

Build LLVM Flang compiler and runtime for the host target.

Usage:
    flangbuild --help
    flangbuild --clone --jobs 8 --type Release --install /opt/flang
    flangbuild --cmake-args "-DLLVM_ENABLE_LTO=Thin"
"""

from __future__ import annotations

import os
import shlex
import sys
from pathlib import Path
from typing import Any

import click

from flangbuild import __version__
from flangbuild.core.config.defaults import default_jobs, default_memory_mb
from flangbuild.core.config.loader import ConfigError, find_config_file, load_config
from flangbuild.core.models.config import BUILD_TYPES, BuildConfig, parse_targets
from flangbuild.core.observability.logging_config import setup_logging

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

EPILOG = """\b
Environment variables:
    BUILD_TYPE              Same as --type
    PARALLEL_JOBS           Same as --jobs
    ROOTDIR                 Same as --root
    INSTALLDIR              Same as --install
    MEMORY_LIMIT_MB         Same as --memory
    CC                      C compiler to use (overrides auto-detection)
    CXX                     C++ compiler to use (overrides auto-detection)
    FLANGBUILD_CONFIG       Same as --config
    FLANGBUILD_LOG_LEVEL    Log level (DEBUG, INFO, WARNING, ERROR)

\b
Example:
    flangbuild --clone --jobs 8 --type Release --install /opt/flang
    flangbuild --cmake-args "-DLLVM_ENABLE_LTO=Thin"
"""


class UsageFailure(click.ClickException):
    """Usage errors exit with status 1, like every other precondition."""

    exit_code = 1

    def show(self, file: Any = None) -> None:
        click.echo(self.format_message(), err=True)


class BuildCommand(click.Command):
    """A click command that reports bad arguments the way the build driver does."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        ctx.meta["no_args_provided"] = not args
        try:
            return super().parse_args(ctx, args)
        except click.NoSuchOption as e:
            raise UsageFailure(f"Unknown parameter: {e.option_name}") from e
        except click.UsageError as e:
            if "unexpected extra argument" in e.message:
                extra = e.message.split("(", 1)[-1].rstrip(")")
                raise UsageFailure(f"Unknown parameter: {extra}") from e
            raise UsageFailure(f"Error: {e.format_message()}") from e


def _reject_flag_value(ctx: click.Context, param: click.Parameter, value: Any) -> Any:
    """Refuse a value that is really the next flag (``--root --clean``)."""
    known = {opt for p in ctx.command.params for opt in (*p.opts, *p.secondary_opts)}
    values = value if isinstance(value, (list, tuple)) else [value]
    for item in values:
        if isinstance(item, str) and item in known:
            raise click.BadParameter(f"expected a value, got option '{item}'", ctx=ctx, param=param)
    return value


def _load_config_file(ctx: click.Context, param: click.Parameter, value: str | None) -> str | None:
    """Eager callback: feed flangbuild.yml into click's default_map."""
    path = Path(value) if value else find_config_file()
    if path is None:
        return value
    try:
        config_file = load_config(path)
    except ConfigError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param) from e
    ctx.default_map = {**(ctx.default_map or {}), **config_file.to_default_map()}
    return value


def _log_level(verbose: bool, quiet: bool, debug: bool) -> str:
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get("FLANGBUILD_LOG_LEVEL", "WARNING")


@click.command(cls=BuildCommand, context_settings=CONTEXT_SETTINGS, epilog=EPILOG)
@click.version_option(version=__version__, prog_name="flangbuild")
@click.option(
    "--config",
    "config_path",
    envvar="FLANGBUILD_CONFIG",
    type=click.Path(dir_okay=False),
    default=None,
    is_eager=True,
    expose_value=False,
    callback=_load_config_file,
    help="YAML file with default options (default: ./flangbuild.yml).",
)
@click.option(
    "-j", "--jobs", type=click.IntRange(min=1), envvar="PARALLEL_JOBS",
    default=default_jobs, callback=_reject_flag_value,
    help="Number of parallel build jobs (default: min(nproc/4, 64)).",
)
@click.option(
    "-t", "--type", "build_type", type=click.Choice(BUILD_TYPES, case_sensitive=False),
    envvar="BUILD_TYPE", default="Release",
    help="Build type (default: Release).",
)
@click.option(
    "-r", "--root", type=click.Path(file_okay=False), envvar="ROOTDIR", default=None,
    callback=_reject_flag_value,
    help="Root directory for build (default: current directory).",
)
@click.option(
    "-i", "--install", type=click.Path(file_okay=False), envvar="INSTALLDIR", default=None,
    callback=_reject_flag_value,
    help="Installation directory (default: <root>/install).",
)
@click.option(
    "-m", "--memory", type=click.IntRange(min=0), envvar="MEMORY_LIMIT_MB",
    default=default_memory_mb, callback=_reject_flag_value,
    help="Memory limit in MB, 0 for none (default: half of available RAM).",
)
@click.option("-c", "--clean", is_flag=True, help="Clean build directories before building.")
@click.option("--clone", is_flag=True, help="Clone or update the llvm-project repository.")
@click.option("--no-assertions", is_flag=True, help="Disable LLVM assertions.")
@click.option("--no-werror", is_flag=True, help="Disable treating warnings as errors.")
@click.option("--no-real16", is_flag=True, help="Disable REAL(16) support.")
@click.option("--no-lld", is_flag=True, help="Do not use lld even if it is installed.")
@click.option("--no-ccache", is_flag=True, help="Do not use ccache even if it is installed.")
@click.option("--offload", is_flag=True, help="Also build the offload runtime.")
@click.option(
    "--targets", default=None, callback=_reject_flag_value,
    help='Semicolon-separated LLVM targets (default: "host;X86;AArch64").',
)
@click.option(
    "--cmake-args", multiple=True, callback=_reject_flag_value,
    help="Additional CMake arguments, appended last (repeatable).",
)
@click.option("--print-cmake-command", is_flag=True, help="Print the complete CMake command.")
@click.option("--test", "run_tests", is_flag=True, help="Run tests after build.")
@click.option("--install-only", is_flag=True, help="Only run install step (assumes build is complete).")
@click.option("--build-only", is_flag=True, help="Stop after build (and tests); skip install.")
@click.option("--dry-run", is_flag=True, help="Print every step without running it.")
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Assume yes to all confirmation prompts.")
@click.option("--cc", envvar="CC", default=None, callback=_reject_flag_value, help="C compiler.")
@click.option("--cxx", envvar="CXX", default=None, callback=_reject_flag_value, help="C++ compiler.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential log output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(
    ctx: click.Context,
    jobs: int,
    build_type: str,
    root: str | None,
    install: str | None,
    memory: int,
    clean: bool,
    clone: bool,
    no_assertions: bool,
    no_werror: bool,
    no_real16: bool,
    no_lld: bool,
    no_ccache: bool,
    offload: bool,
    targets: str | None,
    cmake_args: tuple[str, ...],
    print_cmake_command: bool,
    run_tests: bool,
    install_only: bool,
    build_only: bool,
    dry_run: bool,
    assume_yes: bool,
    cc: str | None,
    cxx: str | None,
    verbose: bool,
    quiet: bool,
    debug: bool,
) -> None:
    """Build LLVM Flang compiler and runtime for the host target."""
    from flangbuild.core.use_cases.build import run_build

    setup_logging(
        level=_log_level(verbose, quiet, debug),
        log_file=os.environ.get("FLANGBUILD_LOG_FILE"),
        log_file_level=os.environ.get("FLANGBUILD_LOG_FILE_LEVEL"),
    )

    if install_only and build_only:
        raise UsageFailure("Error: --install-only and --build-only cannot be combined.")

    root_dir = Path(root).resolve() if root else Path.cwd()
    install_dir = Path(install).resolve() if install else root_dir / "install"

    passthrough: list[str] = []
    for chunk in cmake_args:
        passthrough.extend(shlex.split(chunk))

    config = BuildConfig(
        build_type=build_type,
        jobs=jobs,
        memory_limit_mb=memory,
        assertions=not no_assertions,
        werror=not no_werror,
        real16=not no_real16,
        offload=offload,
        lld_allowed=not no_lld,
        ccache_allowed=not no_ccache,
        targets=parse_targets(targets),
        root_dir=root_dir,
        install_dir=install_dir,
        cmake_args=tuple(passthrough),
        clean=clean,
        clone=clone,
        run_tests=run_tests,
        install_only=install_only,
        build_only=build_only,
        print_cmake_command=print_cmake_command,
        dry_run=dry_run,
        assume_yes=assume_yes,
        no_args_provided=ctx.meta.get("no_args_provided", False),
        cc=cc or None,
        cxx=cxx or None,
        ld_library_path=os.environ.get("LD_LIBRARY_PATH") or None,
    )

    result = run_build(config, prog_name=ctx.info_name or "flangbuild")

    if result.aborted:
        click.echo(result.messages[0] if result.messages else "Aborted by user.")
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"Error: {result.error}", fg="red", err=True)
        sys.exit(result.exit_code or 1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
