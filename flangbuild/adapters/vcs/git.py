"""
Git adapter — source acquisition.

Two operations: a fresh ``clone`` of the upstream repository and a
``pull --rebase`` of an existing checkout. Uses the git CLI; output
streams to the terminal since a clone of llvm-project takes a while.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path

from flangbuild.adapters.base import Adapter, ExecutionContext
from flangbuild.core.models.action import Receipt

logger = logging.getLogger(__name__)

VALID_OPERATIONS = {"clone", "pull"}


def clone_argv(url: str, destination: str) -> list[str]:
    return ["git", "clone", url, destination]


def pull_argv() -> list[str]:
    return ["git", "pull", "--rebase"]


class GitAdapter(Adapter):
    """Git operations for the llvm-project checkout.

    Action params:
        operation (str): 'clone' or 'pull'.
    """

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.action.params.get("operation", "")
        if operation not in VALID_OPERATIONS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(VALID_OPERATIONS))}"

        if not context.action.argv or context.action.program != "git":
            return False, "Git actions must run the git executable"

        if not context.dry_run and not self.is_available():
            return False, "git is not installed"

        if operation == "pull" and not context.dry_run and not Path(context.working_dir).is_dir():
            return False, f"Checkout does not exist: {context.working_dir}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        action = context.action
        operation = action.params["operation"]
        start = time.monotonic()

        logger.debug("git %s: %s (cwd=%s)", operation, action.display(), context.working_dir)
        try:
            result = subprocess.run(
                action.argv,
                cwd=context.working_dir,
                env={**os.environ, **context.env},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=action.id,
                error=f"Git error: {e}",
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=action.id,
                output=f"git {operation} completed",
                duration_ms=elapsed_ms,
                return_code=0,
                metadata={"operation": operation},
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=action.id,
            error=f"git {operation} failed with exit code {result.returncode}",
            duration_ms=elapsed_ms,
            return_code=result.returncode,
            metadata={"operation": operation},
        )
