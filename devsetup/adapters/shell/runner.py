"""
Command runner — the single place where ``subprocess.run`` is called.

Every adapter takes a runner (this function by default) so tests can
swap in a recording double. Sudo, environment overrides, logging and
timeout handling are centralised here.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# seconds per command
DEFAULT_TIMEOUT = 1800

_TAIL = 2000


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one command."""

    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0
    error: str | None = None    # set when the command could not run at all

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and self.error is None

    def describe_failure(self) -> str:
        """One-paragraph failure message for a Receipt."""
        if self.error:
            return self.error
        detail = (self.stderr or self.stdout).strip()
        msg = f"Command failed (exit {self.returncode}): {format_argv(self.argv)}"
        return f"{msg}\n{detail}" if detail else msg


Runner = Callable[..., CommandResult]


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_command(
    argv: Sequence[str],
    *,
    sudo: bool = False,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    input_data: str | bytes | None = None,
    timeout: int = DEFAULT_TIMEOUT,
) -> CommandResult:
    """Run a command and capture its output. Never raises.

    Args:
        argv: Command and arguments (no shell unless argv asks for one).
        sudo: Prefix with ``sudo`` unless already root.
        cwd: Working directory.
        env: Extra environment variables layered over ``os.environ``.
        input_data: Data piped to stdin. Bytes switch the call to binary mode.
        timeout: Seconds before the command is killed and reported failed.
    """
    cmd = list(argv)
    if sudo and os.geteuid() != 0:
        cmd = ["sudo", *cmd]

    full_env = os.environ.copy()
    if env:
        full_env.update(env)

    binary = isinstance(input_data, bytes)
    logger.debug("CMD %s%s", format_argv(cmd), f" (cwd={cwd})" if cwd else "")

    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=not binary,
            input=input_data,
            cwd=cwd,
            env=full_env,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return CommandResult(
            argv=cmd,
            returncode=-1,
            elapsed_ms=int((time.monotonic() - start) * 1000),
            error=f"Command timed out after {timeout}s: {format_argv(cmd)}",
        )
    except OSError as e:
        return CommandResult(
            argv=cmd,
            returncode=-1,
            elapsed_ms=int((time.monotonic() - start) * 1000),
            error=f"Cannot execute {format_argv(cmd)}: {e}",
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = _decode(result.stdout)
    stderr = _decode(result.stderr)

    if stdout:
        logger.debug("STDOUT %s", stdout.strip()[-_TAIL:])
    if stderr:
        logger.debug("STDERR %s", stderr.strip()[-_TAIL:])

    return CommandResult(
        argv=cmd,
        returncode=result.returncode,
        stdout=stdout[-_TAIL:],
        stderr=stderr[-_TAIL:],
        elapsed_ms=elapsed_ms,
    )


def _decode(data: str | bytes | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data
