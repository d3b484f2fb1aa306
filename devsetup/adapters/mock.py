"""
Mock adapter — stands in for every adapter under ``run --mock`` and in tests.

Succeeds by default. Individual action IDs can be made to fail or to
report themselves as already satisfied, which is what the fail-fast and
idempotent re-run tests need.
"""

from __future__ import annotations

from devsetup.adapters.base import Adapter, ExecutionContext
from devsetup.core.models.action import Receipt


class MockAdapter(Adapter):
    """Universal mock adapter."""

    def __init__(
        self,
        adapter_name: str = "mock",
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._default_output = default_output
        self._responses: dict[str, Receipt] = {}
        self._satisfied: set[str] = set()
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has executed."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def executed_ids(self) -> list[str]:
        return [ctx.action.id for ctx in self._call_log]

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        """Set a custom response for a specific action ID."""
        self._responses[action_id] = receipt

    def set_failure(self, action_id: str, error: str = "Mock failure") -> None:
        """Configure a specific action to fail."""
        self._responses[action_id] = Receipt.failure(
            adapter=self._name,
            action_id=action_id,
            error=error,
        )

    def set_satisfied(self, action_id: str) -> None:
        """Report a specific action as already in its desired state."""
        self._satisfied.add(action_id)

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def is_satisfied(self, context: ExecutionContext) -> bool:
        return context.action.id in self._satisfied

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)

        if context.action.id in self._responses:
            return self._responses[context.action.id]

        return Receipt.success(
            adapter=self._name,
            action_id=context.action.id,
            output=self._default_output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear call log, custom responses and satisfied markers."""
        self._call_log.clear()
        self._responses.clear()
        self._satisfied.clear()
