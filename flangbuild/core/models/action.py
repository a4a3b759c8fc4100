"""
Action and Receipt models — the execution contract.

Actions describe one external step: a child process (program, ordered
arguments, working directory) or a filesystem mutation. The same
Action is rendered for display (``--print-cmake-command``, ``--dry-run``)
and handed to an adapter for execution, so both paths share a single
construction. Adapters answer with Receipts, never exceptions.
"""

from __future__ import annotations

import shlex
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A requested step to be executed by an adapter.

    ``argv`` is the full command line for process-backed adapters
    (``shell``, ``git``); filesystem actions leave it empty and carry
    their operation in ``params``.
    """

    model_config = ConfigDict(frozen=True)

    id: str                         # step identifier (configure, build, ...)
    name: str = ""                  # human-readable label
    adapter: str                    # which adapter handles this
    argv: list[str] = Field(default_factory=list)
    cwd: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def program(self) -> str:
        """The executable name, or empty for non-process actions."""
        return self.argv[0] if self.argv else ""

    @property
    def args(self) -> list[str]:
        """Arguments after the program name."""
        return self.argv[1:]

    @property
    def tolerate_failure(self) -> bool:
        """Whether a failed receipt should only produce a warning."""
        return bool(self.params.get("tolerate_failure", False))

    def display(self) -> str:
        """Single-line, shell-quoted rendering of the action."""
        if self.argv:
            line = shlex.join(self.argv)
        else:
            operation = self.params.get("operation", self.id)
            line = f"{operation} {self.params.get('path', '')}".strip()
        if self.cwd:
            return f"(cd {shlex.quote(self.cwd)} && {line})"
        return line


class Receipt(BaseModel):
    """Result of an adapter execution.

    Receipts capture the full outcome of an action. The adapter
    NEVER raises exceptions — failures are captured here, with the
    child's exit status in ``return_code`` when there was one.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    return_code: int | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the action succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the action failed."""
        return self.status == "failed"

    @classmethod
    def success(
        cls,
        adapter: str,
        action_id: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        adapter: str,
        action_id: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="failed",
            error=error,
            **kwargs,
        )

    @classmethod
    def skip(
        cls,
        adapter: str,
        action_id: str,
        reason: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a skip receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="skipped",
            output=reason,
            **kwargs,
        )
