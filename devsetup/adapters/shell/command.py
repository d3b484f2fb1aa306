"""
Shell command adapter — run one command and check its exit status.

Used for verification steps such as ``nvim --version``. Always runs:
a check has no state to be satisfied by.
"""

from __future__ import annotations

from devsetup.adapters.base import CommandAdapter, ExecutionContext
from devsetup.core.models.action import Receipt


class ShellCommandAdapter(CommandAdapter):
    """Execute a command and capture its output.

    Action params:
        command (list[str]): argv to run.
        timeout (int): Timeout in seconds.
    """

    @property
    def name(self) -> str:
        return "shell"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        command = context.params.get("command")
        if not command:
            return False, "Missing required param: 'command'"
        if not isinstance(command, list):
            return False, "Param 'command' must be an argv list"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        result = self._run(context, context.params["command"])

        if not result.ok:
            return self._fail(context, result)

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=result.stdout.strip(),
            duration_ms=result.elapsed_ms,
            metadata={"command": result.argv, "return_code": result.returncode},
        )
