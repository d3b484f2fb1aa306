"""
Adapter base — the "ensure" protocol between engine and the system.

Every kind of resource (packages, files, clones, binaries, group
membership) is ensured by one adapter. The engine only talks to
adapters through this protocol, via the registry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, Field

from devsetup.adapters.shell.runner import CommandResult, Runner, run_command
from devsetup.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """Everything an adapter needs to ensure an action.

    ``use_sudo`` is False in tests (and when running against a prefix the
    user owns); privileged commands then run unprefixed.
    """

    action: Action
    home: str = ""
    user: str = ""
    dry_run: bool = False
    use_sudo: bool = True
    params: dict[str, Any] = Field(default_factory=dict)


class Adapter(ABC):
    """Abstract base class for all adapters.

    Adapters perform external side effects and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.

    To create a new adapter:
        1. Subclass Adapter (or CommandAdapter)
        2. Implement name, validate, execute
        3. Override is_satisfied when the resource has a cheap
           "already in desired state" check
        4. Register it in the AdapterRegistry
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'apt', 'filesystem', 'git')."""

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the action's params are usable.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    def is_satisfied(self, context: ExecutionContext) -> bool:
        """Idempotency check: True when the resource is already in place.

        A satisfied action is reported as skipped and not executed.
        Default: never satisfied (the action is idempotent by construction).
        """
        return False

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Ensure the resource and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class CommandAdapter(Adapter):
    """Adapter that shells out through an injectable runner."""

    def __init__(self, runner: Runner = run_command):
        self._runner = runner

    def _run(
        self,
        context: ExecutionContext,
        argv: Sequence[str],
        *,
        sudo: bool = False,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        input_data: str | bytes | None = None,
    ) -> CommandResult:
        kwargs: dict[str, Any] = {"sudo": sudo and context.use_sudo}
        if cwd is not None:
            kwargs["cwd"] = cwd
        if env is not None:
            kwargs["env"] = env
        if input_data is not None:
            kwargs["input_data"] = input_data
        timeout = context.params.get("timeout")
        if timeout:
            kwargs["timeout"] = int(timeout)
        return self._runner(list(argv), **kwargs)

    def _fail(
        self,
        context: ExecutionContext,
        result: CommandResult,
        metadata: dict[str, Any] | None = None,
    ) -> Receipt:
        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=result.describe_failure(),
            duration_ms=result.elapsed_ms,
            metadata={"command": result.argv, "return_code": result.returncode, **(metadata or {})},
        )
