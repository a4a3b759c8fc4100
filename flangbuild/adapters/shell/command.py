"""
Shell command adapter — run one child process to completion.

Used for cmake and ninja. Output streams straight to the terminal;
there is no timeout, a build runs as long as it runs.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path

import click

from flangbuild.adapters.base import Adapter, ExecutionContext
from flangbuild.core.models.action import Receipt
from flangbuild.core.services.resources import rlimit_preexec

logger = logging.getLogger(__name__)


class ShellCommandAdapter(Adapter):
    """Execute ``action.argv`` in ``action.cwd``.

    Action params:
        rlimit_as_kb (int): Advisory address-space limit for the child.
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        argv = context.action.argv
        if not argv:
            return False, "Missing command line"

        if not context.dry_run and shutil.which(argv[0]) is None:
            return False, f"Command not found: {argv[0]}"

        cwd = context.working_dir
        if not context.dry_run and not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        action = context.action
        cwd = context.working_dir

        preexec = None
        limit_kb = action.params.get("rlimit_as_kb")
        if limit_kb:
            preexec, reason = rlimit_preexec(int(limit_kb))
            if preexec is None:
                click.secho(
                    f"Warning: Could not set memory limit with ulimit ({reason})",
                    fg="yellow",
                )

        env = {**os.environ, **context.env}

        logger.debug("Executing: %s (cwd=%s)", action.display(), cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                action.argv,
                cwd=cwd,
                env=env,
                preexec_fn=preexec,
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=action.id,
                error=f"Command execution error: {e}",
                metadata={"command": action.display()},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=action.id,
                duration_ms=elapsed_ms,
                return_code=0,
                metadata={"command": action.display()},
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=action.id,
            error=f"{action.program} exited with code {result.returncode}",
            duration_ms=elapsed_ms,
            return_code=result.returncode,
            metadata={"command": action.display()},
        )
