"""
GitHub release resolution.

``latest`` download URLs for LazyGit embed the version in the file name,
so the version has to be asked for first. Resolution fails fast: a
network error, a missing tag or a tag that is not dotted digits raises
ReleaseResolutionError and nothing is downloaded.
"""

from __future__ import annotations

import logging
import platform
import re
from collections.abc import Callable
from typing import Any

from devsetup.core.services.downloads import DownloadError, fetch_json

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"

VERSION_RE = re.compile(r"^\d+(\.\d+)*$")

# platform.machine() → release asset arch
_ARCH_MAP = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


class ReleaseResolutionError(Exception):
    """The latest release version could not be determined."""


def latest_release_url(repo: str) -> str:
    return f"{GITHUB_API}/repos/{repo}/releases/latest"


def resolve_latest_version(
    repo: str,
    fetch: Callable[[str], Any] = fetch_json,
) -> str:
    """Return the latest release version of ``repo`` without a leading ``v``.

    Raises:
        ReleaseResolutionError: on any fetch failure or an invalid tag.
    """
    url = latest_release_url(repo)
    try:
        data = fetch(url)
    except DownloadError as e:
        raise ReleaseResolutionError(str(e)) from e

    tag = data.get("tag_name") if isinstance(data, dict) else None
    if not tag or not isinstance(tag, str):
        raise ReleaseResolutionError(f"No tag_name in latest release of {repo}")

    version = tag.strip()
    if version.startswith("v"):
        version = version[1:]
    if not VERSION_RE.match(version):
        raise ReleaseResolutionError(f"Unexpected release tag for {repo}: {tag!r}")

    logger.info("Latest %s release: %s", repo, version)
    return version


def release_arch(machine: str | None = None) -> str:
    """Map the machine architecture to the name used in release assets."""
    machine = (machine or platform.machine()).lower()
    try:
        return _ARCH_MAP[machine]
    except KeyError:
        raise ReleaseResolutionError(f"Unsupported architecture: {machine}") from None
