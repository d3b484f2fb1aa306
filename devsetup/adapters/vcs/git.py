"""
Git adapter — clone repositories into the home directory.

A clone is satisfied as soon as its destination exists; we never pull
or reset an existing checkout. The LazyVim starter is cloned with
``strip_git`` so the user owns the result as a plain config directory.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from devsetup.adapters.base import CommandAdapter, ExecutionContext
from devsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)


class GitAdapter(CommandAdapter):
    """Git clone operations.

    Action params:
        repo (str): Clone URL.
        dest (str): Absolute destination directory.
        strip_git (bool): Remove ``dest/.git`` after cloning (default: False).
        depth (int): Optional shallow-clone depth.
    """

    @property
    def name(self) -> str:
        return "git"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.params.get("repo"):
            return False, "Missing required param: 'repo'"
        dest = context.params.get("dest", "")
        if not dest:
            return False, "Missing required param: 'dest'"
        if not Path(dest).is_absolute():
            return False, f"Destination must be absolute: {dest}"
        return True, ""

    def is_satisfied(self, context: ExecutionContext) -> bool:
        dest = Path(context.params["dest"])
        return dest.exists() or dest.is_symlink()

    def execute(self, context: ExecutionContext) -> Receipt:
        repo = context.params["repo"]
        dest = Path(context.params["dest"])

        argv = ["git", "clone"]
        depth = context.params.get("depth")
        if depth:
            argv += ["--depth", str(depth)]
        argv += [repo, str(dest)]

        dest.parent.mkdir(parents=True, exist_ok=True)
        result = self._run(context, argv)
        if not result.ok:
            return self._fail(context, result, metadata={"repo": repo, "dest": str(dest)})

        if context.params.get("strip_git"):
            git_dir = dest / ".git"
            if git_dir.exists():
                shutil.rmtree(git_dir)
                logger.debug("Removed %s", git_dir)

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=f"Cloned {repo} → {dest}",
            duration_ms=result.elapsed_ms,
            metadata={"repo": repo, "dest": str(dest)},
        )
