"""
Filesystem adapter — files and directories in the user's home.

Covers the three idempotency policies for user-owned state:

- ``write``: unconditional overwrite with a literal payload. Same bytes
  every run; edits made between runs are lost.
- ``append_line``: append only if the exact line is absent.
- ``backup``: backup-and-replace. The existing path is renamed to
  ``<path>.backup.YYYYMMDD_HHMMSS`` so the original location is free for
  new content and nothing is destroyed.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from devsetup.adapters.base import Adapter, ExecutionContext
from devsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

_VALID_OPS = {"write", "append_line", "mkdir", "backup"}


def backup_path_for(path: Path, now: datetime) -> Path:
    """First free ``<path>.backup.<timestamp>[-N]`` name.

    The second-resolution timestamp is the identity of a backup; the
    ``-N`` suffix only appears when two backups land in the same second,
    so an existing backup is never overwritten.
    """
    base = f"{path}.backup.{now.strftime(BACKUP_TIMESTAMP_FORMAT)}"
    candidate = Path(base)
    n = 1
    while os.path.lexists(candidate):
        candidate = Path(f"{base}-{n}")
        n += 1
    return candidate


class FilesystemAdapter(Adapter):
    """File and directory operations with receipts.

    Action params:
        operation (str): One of 'write', 'append_line', 'mkdir', 'backup'.
        path (str): Absolute target path.
        content (str): Payload for 'write'.
        line (str): Line for 'append_line'.
        mode (int): Optional permission bits for 'write'.
    """

    def __init__(self, now: Callable[[], datetime] = datetime.now):
        self._now = now

    @property
    def name(self) -> str:
        return "filesystem"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        if operation not in _VALID_OPS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_VALID_OPS))}"

        path = context.params.get("path", "")
        if not path:
            return False, "Missing required param: 'path'"
        if not Path(path).is_absolute():
            return False, f"Path must be absolute: {path}"

        if operation == "write" and "content" not in context.params:
            return False, "Missing required param: 'content' for write operation"
        if operation == "append_line" and not context.params.get("line"):
            return False, "Missing required param: 'line' for append_line operation"

        return True, ""

    def is_satisfied(self, context: ExecutionContext) -> bool:
        operation = context.params["operation"]
        target = Path(context.params["path"])

        if operation == "mkdir":
            return target.is_dir()
        if operation == "append_line":
            return target.is_file() and context.params["line"] in _read_lines(target)
        if operation == "backup":
            # Nothing at the path means nothing to preserve.
            return not os.path.lexists(target)
        return False

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        target = Path(context.params["path"])

        try:
            if operation == "write":
                return self._write(context, target)
            elif operation == "append_line":
                return self._append_line(context, target)
            elif operation == "mkdir":
                return self._mkdir(context, target)
            elif operation == "backup":
                return self._backup(context, target)
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

    def _write(self, ctx: ExecutionContext, target: Path) -> Receipt:
        data = ctx.params["content"].encode("utf-8")
        changed = not target.is_file() or target.read_bytes() != data

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        mode = ctx.params.get("mode")
        if mode is not None:
            target.chmod(int(mode))

        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Wrote {len(data)} bytes to {target}",
            metadata={"path": str(target), "size": len(data), "changed": changed},
        )

    def _append_line(self, ctx: ExecutionContext, target: Path) -> Receipt:
        line = ctx.params["line"]
        target.parent.mkdir(parents=True, exist_ok=True)

        prefix = ""
        if target.is_file():
            existing = target.read_bytes()
            if existing and not existing.endswith(b"\n"):
                prefix = "\n"

        with target.open("a", encoding="utf-8", newline="") as f:
            f.write(f"{prefix}{line}\n")

        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Appended to {target}",
            metadata={"path": str(target), "line": line},
        )

    def _mkdir(self, ctx: ExecutionContext, target: Path) -> Receipt:
        target.mkdir(parents=True, exist_ok=True)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Directory created: {target}",
            metadata={"path": str(target)},
        )

    def _backup(self, ctx: ExecutionContext, target: Path) -> Receipt:
        dest = backup_path_for(target, self._now())
        os.rename(target, dest)
        logger.info("Backed up %s → %s", target, dest)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Backed up {target} → {dest}",
            metadata={"path": str(target), "backup_path": str(dest)},
        )


def _read_lines(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8", errors="replace").splitlines()
