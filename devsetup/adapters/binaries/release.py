"""
Release tarball adapter — a single binary from a GitHub release.

Used for LazyGit: resolve the latest version, download
``<name>_<version>_Linux_<arch>.tar.gz``, pull one member out of the
tarball and ``install`` it into a bin directory. Always reinstalls so a
re-run picks up a newer release.
"""

from __future__ import annotations

import logging
import shutil
import tarfile
import tempfile
from collections.abc import Callable
from pathlib import Path, PurePosixPath
from typing import Any

from devsetup.adapters.base import CommandAdapter, ExecutionContext
from devsetup.adapters.shell.runner import Runner, run_command
from devsetup.core.models.action import Receipt
from devsetup.core.services.downloads import DownloadError, download_file, fetch_json
from devsetup.core.services.releases import (
    ReleaseResolutionError,
    release_arch,
    resolve_latest_version,
)

logger = logging.getLogger(__name__)


class ReleaseBinaryAdapter(CommandAdapter):
    """Install a binary from the latest GitHub release.

    Action params:
        repo (str): ``owner/name`` on GitHub.
        url_template (str): Asset URL with ``{repo}``, ``{version}``, ``{arch}``.
        member (str): Binary name inside the tarball.
        install_dir (str): Destination directory (absolute).
    """

    def __init__(
        self,
        runner: Runner = run_command,
        fetch_json: Callable[[str], Any] = fetch_json,
        download: Callable[[str, Path], Path] = download_file,
        machine: Callable[[], str] | None = None,
    ):
        super().__init__(runner)
        self._fetch_json = fetch_json
        self._download = download
        self._machine = machine

    @property
    def name(self) -> str:
        return "release"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        for key in ("repo", "url_template", "member", "install_dir"):
            if not context.params.get(key):
                return False, f"Missing required param: '{key}'"
        if not PurePosixPath(context.params["install_dir"]).is_absolute():
            return False, "Param 'install_dir' must be an absolute path"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        p = context.params
        repo = p["repo"]
        member = p["member"]
        install_dir = p["install_dir"]

        try:
            version = resolve_latest_version(repo, self._fetch_json)
            arch = release_arch(self._machine() if self._machine else None)
        except ReleaseResolutionError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=str(e),
                metadata={"repo": repo},
            )

        url = p["url_template"].format(repo=repo, version=version, arch=arch)
        workdir = Path(tempfile.mkdtemp(prefix="devsetup-"))
        try:
            tarball = self._download(url, workdir / PurePosixPath(url).name)
            binary = _extract_member(tarball, member, workdir)

            result = self._run(context, ["install", str(binary), install_dir], sudo=True)
            if not result.ok:
                return self._fail(context, result, metadata={"version": version})
        except (DownloadError, tarfile.TarError, KeyError, OSError) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"{type(e).__name__}: {e}",
                metadata={"url": url, "version": version},
            )
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

        target = f"{install_dir.rstrip('/')}/{member}"
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=f"Installed {member} {version} → {target}",
            metadata={"version": version, "arch": arch, "path": target},
        )


def _extract_member(tarball: Path, member: str, dest_dir: Path) -> Path:
    """Copy the regular file named ``member`` (at any depth) out of the tarball."""
    with tarfile.open(tarball, "r:gz") as tar:
        for info in tar.getmembers():
            if info.isfile() and PurePosixPath(info.name).name == member:
                src = tar.extractfile(info)
                if src is None:
                    break
                out = dest_dir / member
                with src, out.open("wb") as f:
                    shutil.copyfileobj(src, f)
                out.chmod(0o755)
                return out
    raise KeyError(f"{member} not found in {tarball.name}")
