"""
Action and Receipt models — the execution contract.

Actions describe a resource to ensure. Receipts describe what happened.
The engine sends Actions, adapters return Receipts. Never exceptions.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A single provisioning step: the resource to ensure and how.

    Actions are pure descriptions. They are built by the stage planner
    from configuration and dispatched through the adapter registry,
    which runs the adapter's idempotency check before executing.
    """

    id: str                         # unique step identifier, e.g. "neovim:install"
    name: str = ""                  # human-readable name
    stage: str = ""                 # owning stage id
    adapter: str                    # which adapter ensures this
    params: dict[str, Any] = Field(default_factory=dict)
    on_failure: Literal["abort", "warn"] = "abort"

    @property
    def label(self) -> str:
        return self.name or self.id


class Receipt(BaseModel):
    """Result of ensuring one action.

    ``skipped`` means the resource was already in its desired state
    (or the run was a dry-run). The adapter NEVER raises — failures
    are captured here.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

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
