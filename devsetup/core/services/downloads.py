"""
HTTP downloads — scripts, signing keys, release metadata and artifacts.

Plain ``urllib`` with a fixed User-Agent. Every failure (DNS, TLS, HTTP
status, short read) becomes a DownloadError so callers can turn it into
a failed receipt.
"""

from __future__ import annotations

import json
import logging
import shutil
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

USER_AGENT = "devsetup/0.1"
DEFAULT_TIMEOUT = 60


class DownloadError(Exception):
    """Raised when a URL cannot be fetched."""


def _request(url: str, accept: str | None = None) -> urllib.request.Request:
    headers = {"User-Agent": USER_AGENT}
    if accept:
        headers["Accept"] = accept
    return urllib.request.Request(url, headers=headers)


def fetch_bytes(url: str, timeout: int = DEFAULT_TIMEOUT) -> bytes:
    """Fetch a small resource (installer script, GPG key) into memory."""
    logger.debug("GET %s", url)
    try:
        with urllib.request.urlopen(_request(url), timeout=timeout) as resp:
            return resp.read()
    except (urllib.error.URLError, OSError, ValueError) as e:
        raise DownloadError(f"Failed to fetch {url}: {e}") from e


def fetch_json(url: str, timeout: int = 15) -> Any:
    """Fetch and decode a JSON document (GitHub API)."""
    logger.debug("GET %s (json)", url)
    try:
        with urllib.request.urlopen(
            _request(url, accept="application/vnd.github.v3+json"), timeout=timeout
        ) as resp:
            return json.loads(resp.read())
    except json.JSONDecodeError as e:
        raise DownloadError(f"Invalid JSON from {url}: {e}") from e
    except (urllib.error.URLError, OSError, ValueError) as e:
        raise DownloadError(f"Failed to fetch {url}: {e}") from e


def download_file(url: str, dest: Path, timeout: int = DEFAULT_TIMEOUT) -> Path:
    """Stream a (possibly large) artifact to ``dest``, replacing it.

    Follows redirects (GitHub ``releases/latest/download`` answers 302).
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Downloading %s → %s", url, dest)
    try:
        with urllib.request.urlopen(_request(url), timeout=timeout) as resp, dest.open(
            "wb"
        ) as out:
            shutil.copyfileobj(resp, out)
    except (urllib.error.URLError, OSError, ValueError) as e:
        dest.unlink(missing_ok=True)
        raise DownloadError(f"Failed to download {url}: {e}") from e
    return dest
