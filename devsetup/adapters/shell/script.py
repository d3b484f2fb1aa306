"""
Vendor installer adapter — fetch an install script, then run it.

Replaces ``curl ... | sh``: the script is downloaded to a temp file first
so a truncated download fails loudly instead of half-executing. The
script's own behavior is out of our hands; we only decide whether it
needs to run, via a marker path or a binary on PATH.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path

from devsetup.adapters.base import CommandAdapter, ExecutionContext
from devsetup.adapters.shell.runner import Runner, run_command
from devsetup.core.models.action import Receipt
from devsetup.core.services.downloads import DownloadError, fetch_bytes

logger = logging.getLogger(__name__)


class ScriptInstallerAdapter(CommandAdapter):
    """Run a vendor install script fetched from a URL.

    Action params:
        url (str): Script location.
        interpreter (str): ``sh`` or ``bash`` (default: ``sh``).
        args (list[str]): Arguments passed to the script.
        env (dict): Extra environment variables.
        creates (str): Skip when this path exists.
        creates_binary (str): Skip when this executable is on PATH.
    """

    def __init__(
        self,
        runner: Runner = run_command,
        fetch: Callable[[str], bytes] = fetch_bytes,
    ):
        super().__init__(runner)
        self._fetch = fetch

    @property
    def name(self) -> str:
        return "script"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.params.get("url"):
            return False, "Missing required param: 'url'"
        interpreter = context.params.get("interpreter", "sh")
        if interpreter not in ("sh", "bash"):
            return False, f"Unsupported interpreter '{interpreter}'"
        return True, ""

    def is_satisfied(self, context: ExecutionContext) -> bool:
        creates = context.params.get("creates")
        if creates and Path(creates).exists():
            return True
        binary = context.params.get("creates_binary")
        if binary and shutil.which(binary):
            return True
        return False

    def execute(self, context: ExecutionContext) -> Receipt:
        url = context.params["url"]
        interpreter = context.params.get("interpreter", "sh")
        args = [str(a) for a in context.params.get("args", [])]

        try:
            script = self._fetch(url)
        except DownloadError as e:
            return Receipt.failure(adapter=self.name, action_id=context.action.id, error=str(e))

        if not script.strip():
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Installer script from {url} is empty",
            )

        fd, tmp_path = tempfile.mkstemp(prefix="devsetup-installer-", suffix=".sh")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(script)

            result = self._run(
                context,
                [interpreter, tmp_path, *args],
                env=context.params.get("env"),
            )
        finally:
            Path(tmp_path).unlink(missing_ok=True)

        if not result.ok:
            return self._fail(context, result, metadata={"url": url})

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=f"Ran installer from {url}",
            duration_ms=result.elapsed_ms,
            metadata={"url": url, "bytes": len(script)},
        )
