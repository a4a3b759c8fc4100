"""
Adapter registry — dispatch build steps to the adapter that owns them.

The executor hands every Action to ``execute_action`` and gets a Receipt
back; it never holds an adapter itself. Between the two: adapter lookup,
validation, and either execution or, for ``--dry-run``, a skip receipt
that carries the rendered command.
"""

from __future__ import annotations

import logging
import time

from flangbuild.adapters.base import Adapter, ExecutionContext
from flangbuild.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Name → adapter table plus the single execution entry point."""

    def __init__(self) -> None:
        self._adapters: dict[str, Adapter] = {}

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Replacing adapter %r", adapter.name)
        self._adapters[adapter.name] = adapter

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def execute_action(
        self,
        action: Action,
        env: dict[str, str] | None = None,
        dry_run: bool = False,
    ) -> Receipt:
        """Run one step and describe the outcome. Never raises.

        Args:
            action: The step to run.
            env: Variables layered over ``os.environ`` for the child.
            dry_run: Validate, then return a skip receipt instead of running.
        """
        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        context = ExecutionContext(action=action, dry_run=dry_run, env=env or {})

        problem = _validation_problem(adapter, context)
        if problem:
            logger.debug("%s rejected by %s: %s", action.id, adapter.name, problem)
            return Receipt.failure(adapter=action.adapter, action_id=action.id, error=problem)

        if dry_run:
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=f"[dry-run] {action.display()}",
                metadata={"dry_run": True},
            )

        started = time.monotonic()
        try:
            receipt = adapter.execute(context)
        except Exception as e:
            logger.exception("Adapter %s crashed on %s", adapter.name, action.id)
            receipt = Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )
        receipt.duration_ms = int((time.monotonic() - started) * 1000)
        return receipt


def _validation_problem(adapter: Adapter, context: ExecutionContext) -> str:
    """Empty when the action may run, otherwise why it may not."""
    try:
        valid, message = adapter.validate(context)
    except Exception as e:
        return f"Validation error: {e}"
    return "" if valid else f"Validation failed: {message}"
