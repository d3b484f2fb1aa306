"""
Preflight use case — checks that run before any plan is built.

Running as root is fatal: the provisioner writes into the invoking
user's home and escalates individual commands with sudo itself. A
non-Debian host only earns a warning.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEBIAN_MARKER = Path("/etc/debian_version")


class PrivilegeError(Exception):
    """Raised when the provisioner is started as the superuser."""


@dataclass
class PreflightResult:
    """Non-fatal findings of the preflight checks."""

    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"warnings": list(self.warnings)}


def check_preflight(
    geteuid: Callable[[], int] | None = None,
    debian_marker: Path = DEBIAN_MARKER,
    which: Callable[[str], str | None] = shutil.which,
) -> PreflightResult:
    """Run the preflight checks.

    Raises:
        PrivilegeError: If the effective UID is 0.
    """
    euid = (geteuid or os.geteuid)()
    if euid == 0:
        raise PrivilegeError(
            "This program should not be run as root. Please run as a regular user."
        )

    result = PreflightResult()
    if not debian_marker.exists():
        result.warnings.append(f"{debian_marker} not found: this does not look like a Debian system")
    if which("apt-get") is None:
        result.warnings.append("apt-get not found on PATH")

    for warning in result.warnings:
        logger.warning(warning)
    return result
