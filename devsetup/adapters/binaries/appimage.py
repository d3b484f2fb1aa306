"""
AppImage adapter — install a self-contained binary, with or without FUSE.

Probe-then-branch: after download the AppImage is asked for
``--version``. Its exit status alone picks the path:

- 0        → DirectInstall: the AppImage itself becomes ``install_path``.
- non-zero → ExtractedInstall: ``--appimage-extract`` into ``extract_dir``
             and ``install_path`` becomes a symlink into it.

Either way ``compat_link`` points at ``install_path``. A stale
extraction from an earlier run is removed on the direct path so exactly
one layout exists afterwards.
"""

from __future__ import annotations

import logging
import shutil
import stat
from collections.abc import Callable
from pathlib import Path, PurePosixPath

from devsetup.adapters.base import CommandAdapter, ExecutionContext
from devsetup.adapters.shell.runner import Runner, run_command
from devsetup.core.models.action import Receipt
from devsetup.core.models.outcome import DirectInstall, ExtractedInstall
from devsetup.core.services.downloads import DownloadError, download_file
from devsetup.core.services.releases import ReleaseResolutionError, release_arch

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 60
EXTRACTED_ROOT = "squashfs-root"


class StepFailed(Exception):
    """A privileged file operation in the install sequence failed."""

    def __init__(self, message: str, argv: list[str]):
        super().__init__(message)
        self.argv = argv


class AppImageAdapter(CommandAdapter):
    """Download and install an AppImage.

    Action params:
        url (str): AppImage download URL. ``{arch}`` is replaced with the
            release arch of this machine (``x86_64`` or ``arm64``).
        download_dir (str): Where to download and extract.
        install_path (str): Executable location on PATH.
        extract_dir (str): Fallback extraction directory.
        binary_relpath (str): Executable inside the extraction
            (default: ``usr/bin/<basename of install_path>``).
        compat_link (str): Second symlink pointing at install_path.
    """

    def __init__(
        self,
        runner: Runner = run_command,
        download: Callable[[str, Path], Path] = download_file,
        machine: Callable[[], str] | None = None,
    ):
        super().__init__(runner)
        self._download = download
        self._machine = machine

    @property
    def name(self) -> str:
        return "appimage"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        for key in ("url", "download_dir", "install_path", "extract_dir", "compat_link"):
            if not context.params.get(key):
                return False, f"Missing required param: '{key}'"
        for key in ("install_path", "extract_dir", "compat_link"):
            if not PurePosixPath(context.params[key]).is_absolute():
                return False, f"Param '{key}' must be an absolute path"
        return True, ""

    def resolve_url(self, url: str) -> str:
        if "{arch}" not in url:
            return url
        return url.replace("{arch}", release_arch(self._machine() if self._machine else None))

    def probe(self, context: ExecutionContext, appimage: Path) -> bool:
        """True when the AppImage runs in place (FUSE available)."""
        result = self._runner([str(appimage), "--version"], timeout=PROBE_TIMEOUT)
        logger.debug("AppImage probe %s → exit %s", appimage, result.returncode)
        return result.ok

    def execute(self, context: ExecutionContext) -> Receipt:
        p = context.params
        try:
            url = self.resolve_url(p["url"])
        except ReleaseResolutionError as e:
            return Receipt.failure(adapter=self.name, action_id=context.action.id, error=str(e))
        download_dir = Path(p["download_dir"])
        appimage = download_dir / PurePosixPath(url).name
        install_path = p["install_path"]
        extract_dir = p["extract_dir"]
        compat_link = p["compat_link"]
        binary_relpath = p.get("binary_relpath") or f"usr/bin/{PurePosixPath(install_path).name}"

        try:
            self._download(url, appimage)
        except DownloadError as e:
            return Receipt.failure(adapter=self.name, action_id=context.action.id, error=str(e))

        appimage.chmod(appimage.stat().st_mode | stat.S_IXUSR)

        try:
            if self.probe(context, appimage):
                logger.info("FUSE is available, installing AppImage directly")
                self._install_direct(context, appimage, install_path, extract_dir)
                outcome: DirectInstall | ExtractedInstall = DirectInstall(
                    install_path=install_path,
                    compat_link=compat_link,
                )
            else:
                logger.warning("FUSE not available, extracting AppImage")
                target = f"{extract_dir.rstrip('/')}/{binary_relpath}"
                self._install_extracted(context, appimage, install_path, extract_dir, target)
                outcome = ExtractedInstall(
                    install_path=install_path,
                    extract_dir=extract_dir,
                    target=target,
                    compat_link=compat_link,
                )

            self._sudo(context, ["mkdir", "-p", str(PurePosixPath(compat_link).parent)])
            self._sudo(context, ["ln", "-sf", install_path, compat_link])
        except StepFailed as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=str(e),
                metadata={"command": e.argv},
            )

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=f"Installed {install_path} ({outcome.kind})",
            metadata={"outcome": outcome.model_dump()},
        )

    # ── Branches ────────────────────────────────────────────────

    def _install_direct(
        self,
        ctx: ExecutionContext,
        appimage: Path,
        install_path: str,
        extract_dir: str,
    ) -> None:
        if Path(extract_dir).exists():
            self._sudo(ctx, ["rm", "-rf", extract_dir])
        self._sudo(ctx, ["mkdir", "-p", str(PurePosixPath(install_path).parent)])
        self._sudo(ctx, ["mv", "-f", str(appimage), install_path])

    def _install_extracted(
        self,
        ctx: ExecutionContext,
        appimage: Path,
        install_path: str,
        extract_dir: str,
        target: str,
    ) -> None:
        extracted = appimage.parent / EXTRACTED_ROOT
        if extracted.exists():
            shutil.rmtree(extracted)

        result = self._run(ctx, [str(appimage), "--appimage-extract"], cwd=str(appimage.parent))
        if not result.ok or not extracted.is_dir():
            raise StepFailed(result.describe_failure(), result.argv)

        if Path(extract_dir).exists():
            self._sudo(ctx, ["rm", "-rf", extract_dir])
        self._sudo(ctx, ["mkdir", "-p", str(PurePosixPath(extract_dir).parent)])
        self._sudo(ctx, ["mv", str(extracted), extract_dir])
        self._sudo(ctx, ["mkdir", "-p", str(PurePosixPath(install_path).parent)])
        self._sudo(ctx, ["ln", "-sfn", target, install_path])
        appimage.unlink(missing_ok=True)

    def _sudo(self, ctx: ExecutionContext, argv: list[str]) -> None:
        result = self._run(ctx, argv, sudo=True)
        if not result.ok:
            raise StepFailed(result.describe_failure(), result.argv)
