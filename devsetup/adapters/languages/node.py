"""
Node.js adapter — Node through NVM.

nvm is a shell function, not a binary, so every operation runs inside
``bash -c`` after sourcing ``$NVM_DIR/nvm.sh``. Installing nvm itself is
the script adapter's job; this adapter requires it to be present.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from devsetup.adapters.base import CommandAdapter, ExecutionContext
from devsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)

_VALID_OPS = {"install_lts", "global_install", "project_install"}


def nvm_script(nvm_dir: str, body: str) -> list[str]:
    """argv that runs ``body`` in bash with nvm loaded."""
    script = f'export NVM_DIR={shlex.quote(nvm_dir)}; . "$NVM_DIR/nvm.sh" && {body}'
    return ["bash", "-c", script]


class NodeAdapter(CommandAdapter):
    """Node.js toolchain operations via nvm.

    Action params:
        operation (str): One of 'install_lts', 'global_install', 'project_install'.
        nvm_dir (str): NVM installation directory.
        packages (list[str]): npm packages (for 'global_install').
        cwd (str): Project directory (for 'project_install').
    """

    @property
    def name(self) -> str:
        return "node"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if operation not in _VALID_OPS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_VALID_OPS))}"

        if not context.params.get("nvm_dir"):
            return False, "Missing required param: 'nvm_dir'"

        if operation == "global_install" and not context.params.get("packages"):
            return False, "Missing required param: 'packages' for global_install"
        if operation == "project_install" and not context.params.get("cwd"):
            return False, "Missing required param: 'cwd' for project_install"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        nvm_dir = context.params["nvm_dir"]
        if not (Path(nvm_dir) / "nvm.sh").is_file():
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"nvm is not installed ({nvm_dir}/nvm.sh missing)",
            )

        operation = context.params["operation"]
        cwd = None
        if operation == "install_lts":
            body = (
                "nvm install --lts && nvm use --lts && nvm alias default node"
                " && node --version && npm --version"
            )
        elif operation == "global_install":
            packages = " ".join(shlex.quote(p) for p in context.params["packages"])
            body = f"npm install -g {packages}"
        else:
            cwd = context.params["cwd"]
            body = "npm install"

        result = self._run(context, nvm_script(nvm_dir, body), cwd=cwd)
        if not result.ok:
            return self._fail(context, result)

        metadata: dict = {"operation": operation}
        if operation == "install_lts":
            versions = result.stdout.strip().splitlines()[-2:]
            if len(versions) == 2:
                metadata["node_version"], metadata["npm_version"] = versions
                logger.info("Node.js %s, npm %s", *versions)

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=result.stdout.strip()[-500:],
            duration_ms=result.elapsed_ms,
            metadata=metadata,
        )
