"""
Filesystem adapter — directory and marker-file operations.

Gives directory preparation, ``--clean`` and the version marker the same
receipt-returning, dry-runnable interface as the process steps.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from flangbuild.adapters.base import Adapter, ExecutionContext
from flangbuild.core.models.action import Receipt

logger = logging.getLogger(__name__)

VALID_OPERATIONS = {"mkdir", "remove", "write"}


class FilesystemAdapter(Adapter):
    """File and directory operations with receipts.

    Action params:
        operation (str): One of 'mkdir', 'remove', 'write'.
        path (str): Absolute target path.
        content (str): Content to write (for 'write').
    """

    @property
    def name(self) -> str:
        return "filesystem"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.action.params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        if operation not in VALID_OPERATIONS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(VALID_OPERATIONS))}"

        if not context.action.params.get("path"):
            return False, "Missing required param: 'path'"

        if operation == "write" and "content" not in context.action.params:
            return False, "Missing required param: 'content' for write operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.action.params["operation"]
        target = Path(context.action.params["path"])

        try:
            if operation == "mkdir":
                return self._mkdir(context, target)
            elif operation == "remove":
                return self._remove(context, target)
            elif operation == "write":
                return self._write(context, target)
            else:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=context.action.id,
                    error=f"Unknown operation: {operation}",
                )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Filesystem error: {e}",
                metadata={"operation": operation, "path": str(target)},
            )

    def _mkdir(self, ctx: ExecutionContext, target: Path) -> Receipt:
        target.mkdir(parents=True, exist_ok=True)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Directory ready: {target}",
            metadata={"path": str(target)},
        )

    def _remove(self, ctx: ExecutionContext, target: Path) -> Receipt:
        existed = target.exists()
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif existed:
            target.unlink()
        logger.debug("Removed %s (existed=%s)", target, existed)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Removed {target}" if existed else f"Nothing to remove at {target}",
            metadata={"path": str(target), "existed": existed},
        )

    def _write(self, ctx: ExecutionContext, target: Path) -> Receipt:
        content = ctx.action.params["content"]
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Written {len(content)} bytes to {target}",
            metadata={"path": str(target), "size": len(content)},
        )
