"""
Mock adapter — stands in for shell or git in tests.

It takes the name of the adapter it replaces, records every step handed
to it, and reports success with exit status 0 unless a step ID was
scripted to fail (with a chosen exit status) or given a canned receipt.
"""

from __future__ import annotations

from flangbuild.adapters.base import Adapter, ExecutionContext
from flangbuild.core.models.action import Action, Receipt


class MockAdapter(Adapter):
    """Recording stand-in for a process-backed adapter."""

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._scripted: dict[str, Receipt] = {}
        self._seen: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return self._available

    # ── Inspection ──────────────────────────────────────────────

    @property
    def call_log(self) -> list[ExecutionContext]:
        return self._seen

    @property
    def call_count(self) -> int:
        return len(self._seen)

    @property
    def actions(self) -> list[Action]:
        """Steps received, in execution order."""
        return [ctx.action for ctx in self._seen]

    # ── Scripting ───────────────────────────────────────────────

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        self._scripted[action_id] = receipt

    def set_failure(
        self,
        action_id: str,
        error: str = "Mock failure",
        return_code: int | None = 1,
    ) -> None:
        """Make the step with ``action_id`` fail as a child exiting ``return_code``."""
        self._scripted[action_id] = Receipt.failure(
            adapter=self._name,
            action_id=action_id,
            error=error,
            return_code=return_code,
        )

    def reset(self) -> None:
        self._seen.clear()
        self._scripted.clear()

    # ── Adapter protocol ────────────────────────────────────────

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._seen.append(context)
        scripted = self._scripted.get(context.action.id)
        if scripted is not None:
            return scripted
        return Receipt.success(
            adapter=self._name,
            action_id=context.action.id,
            output=self._default_output,
            return_code=0,
            metadata={"mock": True, "command": context.action.display()},
        )
