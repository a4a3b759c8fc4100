"""
Memory capping for the build step.

Two mechanisms, tried in order:

    systemd   ``systemd-run --user --scope -p MemoryMax=<MB>M`` wraps the
              build; the kernel enforces the cap through the scope's cgroup.
    rlimit    an advisory address-space limit (RLIMIT_AS, what ``ulimit -v``
              sets) applied in the child just before exec. Best effort:
              if it cannot be applied the build runs uncapped with a warning.

A limit of 0 MB means no cap at all.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Callable
from typing import Literal

logger = logging.getLogger(__name__)

MemoryStrategy = Literal["systemd", "rlimit", "none"]

SYSTEMD_PROBE = ["systemd-run", "--user", "--scope", "true"]


def systemd_scope_available(
    which: Callable[[str], str | None] = shutil.which,
    run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> bool:
    """Whether a user scope can actually be started, not just found."""
    if not which("systemd-run"):
        return False
    try:
        result = run(SYSTEMD_PROBE, capture_output=True, text=True)
    except OSError as e:
        logger.debug("systemd-run probe failed to start: %s", e)
        return False
    return result.returncode == 0


def select_memory_strategy(
    limit_mb: int,
    which: Callable[[str], str | None] = shutil.which,
    run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> MemoryStrategy:
    if limit_mb <= 0:
        return "none"
    if systemd_scope_available(which, run):
        return "systemd"
    return "rlimit"


def systemd_wrap(argv: list[str], limit_mb: int) -> list[str]:
    return [
        "systemd-run", "--user", "--scope",
        "-p", f"MemoryMax={limit_mb}M",
        *argv,
    ]


def rlimit_preexec(limit_kb: int) -> tuple[Callable[[], None] | None, str | None]:
    """Build a pre-exec hook that lowers RLIMIT_AS to ``limit_kb``.

    Returns ``(hook, None)`` when the limit can be applied and
    ``(None, reason)`` when it cannot; the caller warns and runs the
    child without a limit.
    """
    try:
        import resource
    except ImportError:
        return None, "resource limits are not supported on this platform"

    if not hasattr(resource, "RLIMIT_AS"):
        return None, "RLIMIT_AS is not supported on this platform"

    limit_bytes = limit_kb * 1024
    try:
        _soft, hard = resource.getrlimit(resource.RLIMIT_AS)
    except (OSError, ValueError) as e:
        return None, str(e)

    if hard != resource.RLIM_INFINITY and limit_bytes > hard:
        return None, f"requested {limit_kb} kB exceeds the hard limit"

    def _apply() -> None:
        resource.setrlimit(resource.RLIMIT_AS, (limit_bytes, limit_bytes))

    return _apply, None
