"""
Toolchain detection — compilers, linker, ccache and libquadmath.

Each tool is probed in a fixed order. A user-specified compiler must
exist. Otherwise the preferred tool (clang, clang++, lld) wins; the GNU
fallback is accepted only after a warning and a confirmation. ccache is
a pure optimisation: missing means disabled, never an error. The linker
is required.

All lookups go through the injectable ``which`` and ``run`` callables.
"""

from __future__ import annotations

import glob
import logging
import os
import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

import click

from flangbuild.core.models.config import BuildConfig, QuadmathProbe, Toolchain
from flangbuild.core.services.confirm import Confirmer

logger = logging.getLogger(__name__)

Which = Callable[[str], str | None]

QUADMATH_HEADER = "quadmath.h"
QUADMATH_INCLUDE_CANDIDATES = (
    "/usr/include",
    "/usr/local/include",
    "/usr/lib/gcc/*/*/include",
)
QUADMATH_TEST_PROGRAM = (
    "#include <quadmath.h>\n"
    "int main() { __float128 x = 1.0Q; return 0; }\n"
)


class ToolchainError(Exception):
    """A required tool is missing or a specified one cannot be found."""


def _warn(message: str) -> None:
    click.secho(f"  Warning: {message}", fg="yellow")


class ToolchainDetector:
    """Probe the host for the tools a Flang build needs.

    Args:
        config: The resolved build configuration.
        confirmer: Used for every fallback confirmation.
        which: Executable lookup (default: ``shutil.which``).
        run: Process runner for the libquadmath probe
            (default: ``subprocess.run``).
        include_candidates: Directories (glob patterns allowed) searched
            for ``quadmath.h``.
    """

    def __init__(
        self,
        config: BuildConfig,
        confirmer: Confirmer,
        which: Which = shutil.which,
        run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        include_candidates: tuple[str, ...] = QUADMATH_INCLUDE_CANDIDATES,
    ):
        self.config = config
        self.confirmer = confirmer
        self._which = which
        self._run = run
        self._include_candidates = include_candidates

    # ── Entry point ─────────────────────────────────────────────

    def detect(self) -> Toolchain:
        cc, cxx = self.detect_compilers()
        use_lld = self.detect_linker()
        use_ccache = self.detect_ccache()
        quadmath = self.check_libquadmath(cc)
        toolchain = Toolchain(
            cc=cc,
            cxx=cxx,
            use_lld=use_lld,
            use_ccache=use_ccache,
            quadmath=quadmath,
        )
        logger.info("Selected toolchain: %s", toolchain.model_dump())
        return toolchain

    # ── Compilers ───────────────────────────────────────────────

    def detect_compilers(self) -> tuple[str, str]:
        click.echo("Detecting compilers...")
        cc = self._detect_c_compiler()
        cxx = self._detect_cxx_compiler(cc)
        return cc, cxx

    def _detect_c_compiler(self) -> str:
        if self.config.cc:
            return self._require_specified(self.config.cc, "C compiler")

        if self._which("clang"):
            click.echo("  Found C compiler: clang")
            return "clang"
        if self._which("gcc"):
            _warn("clang not found, gcc detected.")
            click.echo("  Note: Building compiler-rt requires clang. GCC may cause issues.")
            self.confirmer.require("  Continue with gcc?")
            return "gcc"
        raise ToolchainError("No C compiler found. Please install clang or gcc.")

    def _detect_cxx_compiler(self, cc: str) -> str:
        if self.config.cxx:
            return self._require_specified(self.config.cxx, "C++ compiler")

        if self._which("clang++"):
            click.echo("  Found C++ compiler: clang++")
            return "clang++"
        if self._which("g++"):
            _warn("clang++ not found, g++ detected.")
            if cc != "gcc":
                click.echo("  Note: Mixing clang (C) with g++ (C++) is not recommended.")
                self.confirmer.require("  Continue with g++?")
            return "g++"
        raise ToolchainError("No C++ compiler found. Please install clang++ or g++.")

    def _require_specified(self, tool: str, label: str) -> str:
        if not self._which(tool):
            raise ToolchainError(f"Specified {label} '{tool}' not found.")
        click.echo(f"  Using specified {label}: {tool}")
        return tool

    # ── Linker / ccache ─────────────────────────────────────────

    def detect_linker(self) -> bool:
        """Return True when lld should be used."""
        click.echo("Detecting linker...")
        if not self.config.lld_allowed:
            click.echo("  lld disabled: using system linker")
            return False

        if self._which("ld.lld"):
            click.echo("  Found linker: lld")
            return True
        if self._which("ld"):
            _warn("lld not found, falling back to ld.")
            click.echo("  Note: lld is faster and recommended for LLVM builds.")
            self.confirmer.require("  Continue with ld?")
            click.echo("  Using linker: ld")
            return False
        raise ToolchainError("No linker found. Please install lld or ld.")

    def detect_ccache(self) -> bool:
        click.echo("Detecting ccache...")
        if not self.config.ccache_allowed:
            click.echo("  ccache disabled")
            return False
        if self._which("ccache"):
            click.echo("  Found ccache: enabled")
            return True
        click.echo("  ccache not found: disabled")
        return False

    # ── libquadmath ─────────────────────────────────────────────

    def find_quadmath_include(self) -> str | None:
        """First candidate directory that contains quadmath.h."""
        for pattern in self._include_candidates:
            for directory in sorted(glob.glob(pattern)):
                if Path(directory, QUADMATH_HEADER).is_file():
                    return directory
        return None

    def quadmath_compiles(self, cc: str, include_dir: str | None) -> bool:
        """Compile and link a trivial __float128 program with ``cc``."""
        argv = [cc, "-x", "c", "-"]
        if include_dir and "clang" in os.path.basename(cc):
            argv.append(f"-I{include_dir}")
        argv += ["-lquadmath", "-o", os.devnull]
        logger.debug("libquadmath probe: %s", " ".join(argv))
        try:
            result = self._run(
                argv,
                input=QUADMATH_TEST_PROGRAM,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            logger.debug("libquadmath probe could not start: %s", e)
            return False
        return result.returncode == 0

    def check_libquadmath(self, cc: str) -> QuadmathProbe:
        click.echo("Checking for libquadmath...")
        if not self.config.real16:
            click.echo("  REAL(16) support disabled")
            return QuadmathProbe()

        include_dir = self.find_quadmath_include()
        if self.quadmath_compiles(cc, include_dir):
            click.echo("  libquadmath found")
            if include_dir:
                click.echo(f"  quadmath.h located at: {include_dir}")
            return QuadmathProbe(attempted=True, found=True, include_dir=include_dir)

        click.echo()
        _warn("libquadmath not found")
        click.echo(
            "  libquadmath is required for REAL(16) math APIs for intrinsics "
            "such as SIN, COS, etc."
        )
        click.echo("  REAL(16) support will be limited without it.")
        click.echo("  To disable REAL(16) in subsequent builds, use --no-real16 flag.")
        click.echo()
        self.confirmer.require("  Continue without full REAL(16) support?")
        return QuadmathProbe(attempted=True, found=False, include_dir=include_dir)


def detect_toolchain(config: BuildConfig, confirmer: Confirmer) -> Toolchain:
    """Run detection against the real host."""
    return ToolchainDetector(config, confirmer).detect()
