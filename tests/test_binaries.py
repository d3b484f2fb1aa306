"""
Tests for binary installers — the Neovim AppImage probe-then-branch and
GitHub release tarballs (LazyGit).

The AppImage tests run real commands against fake AppImages (small shell
scripts) inside tmp_path, so both FUSE outcomes are exercised end to end.
"""

import io
import os
import tarfile
from pathlib import Path

import pytest

from devsetup.adapters.binaries.appimage import AppImageAdapter
from devsetup.adapters.binaries.release import ReleaseBinaryAdapter
from devsetup.core.models.outcome import DirectInstall, ExtractedInstall, parse_outcome
from devsetup.core.services.downloads import DownloadError
from devsetup.core.services.releases import (
    ReleaseResolutionError,
    latest_release_url,
    release_arch,
    resolve_latest_version,
)

FUSE_APPIMAGE = """#!/bin/sh
if [ "$1" = "--version" ]; then
  echo "NVIM v0.10.0"
  exit 0
fi
exit 1
"""

NO_FUSE_APPIMAGE = """#!/bin/sh
case "$1" in
  --version)
    echo "dlopen(): error loading libfuse.so.2" >&2
    exit 127
    ;;
  --appimage-extract)
    mkdir -p squashfs-root/usr/bin
    printf '#!/bin/sh\\necho NVIM extracted\\n' > squashfs-root/usr/bin/nvim
    chmod +x squashfs-root/usr/bin/nvim
    exit 0
    ;;
esac
exit 1
"""


def fake_download(payload: str):
    def download(url: str, dest: Path) -> Path:
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(payload)
        return dest

    return download


@pytest.fixture
def layout(tmp_path: Path) -> dict:
    return {
        "url": "https://example.com/releases/nvim-linux-x86_64.appimage",
        "download_dir": str(tmp_path / "dl"),
        "install_path": str(tmp_path / "usr" / "local" / "bin" / "nvim"),
        "extract_dir": str(tmp_path / "opt" / "nvim"),
        "compat_link": str(tmp_path / "usr" / "bin" / "nvim"),
    }


# ── AppImage ─────────────────────────────────────────────────────────


class TestAppImageDirect:
    def test_direct_install(self, layout: dict, make_ctx):
        adapter = AppImageAdapter(download=fake_download(FUSE_APPIMAGE))
        receipt = adapter.execute(make_ctx("neovim:install", "appimage", **layout))

        assert receipt.ok, receipt.error
        outcome = parse_outcome(receipt.metadata["outcome"])
        assert isinstance(outcome, DirectInstall)
        assert outcome.binary_path == layout["install_path"]

        install = Path(layout["install_path"])
        assert install.is_file() and not install.is_symlink()
        assert os.readlink(layout["compat_link"]) == layout["install_path"]
        assert not Path(layout["extract_dir"]).exists()
        assert not (Path(layout["download_dir"]) / "nvim-linux-x86_64.appimage").exists()

    def test_direct_removes_stale_extraction(self, layout: dict, make_ctx):
        stale = Path(layout["extract_dir"]) / "usr" / "bin"
        stale.mkdir(parents=True)
        (stale / "nvim").write_text("old")

        adapter = AppImageAdapter(download=fake_download(FUSE_APPIMAGE))
        receipt = adapter.execute(make_ctx("neovim:install", "appimage", **layout))

        assert receipt.ok
        assert not Path(layout["extract_dir"]).exists()


class TestAppImageExtracted:
    def test_extracted_install(self, layout: dict, make_ctx):
        adapter = AppImageAdapter(download=fake_download(NO_FUSE_APPIMAGE))
        receipt = adapter.execute(make_ctx("neovim:install", "appimage", **layout))

        assert receipt.ok, receipt.error
        outcome = parse_outcome(receipt.metadata["outcome"])
        assert isinstance(outcome, ExtractedInstall)
        assert outcome.target == f"{layout['extract_dir']}/usr/bin/nvim"

        install = Path(layout["install_path"])
        assert install.is_symlink()
        assert os.readlink(install) == outcome.target
        assert Path(outcome.target).is_file()
        assert os.readlink(layout["compat_link"]) == layout["install_path"]
        # the AppImage itself is gone, as is the scratch extraction
        download_dir = Path(layout["download_dir"])
        assert not (download_dir / "nvim-linux-x86_64.appimage").exists()
        assert not (download_dir / "squashfs-root").exists()

    def test_rerun_replaces_extraction(self, layout: dict, make_ctx):
        marker = Path(layout["extract_dir"]) / "stale-marker"
        marker.parent.mkdir(parents=True)
        marker.write_text("x")

        adapter = AppImageAdapter(download=fake_download(NO_FUSE_APPIMAGE))
        assert adapter.execute(make_ctx("neovim:install", "appimage", **layout)).ok
        assert not marker.exists()

    def test_switch_from_extracted_to_direct(self, layout: dict, make_ctx):
        ctx = make_ctx("neovim:install", "appimage", **layout)
        assert AppImageAdapter(download=fake_download(NO_FUSE_APPIMAGE)).execute(ctx).ok
        receipt = AppImageAdapter(download=fake_download(FUSE_APPIMAGE)).execute(ctx)

        assert receipt.metadata["outcome"]["kind"] == "direct"
        install = Path(layout["install_path"])
        assert install.is_file() and not install.is_symlink()
        assert not Path(layout["extract_dir"]).exists()


class TestAppImageFailures:
    def test_download_failure(self, layout: dict, make_ctx):
        def download(url, dest):
            raise DownloadError(f"Failed to download {url}: 404")

        receipt = AppImageAdapter(download=download).execute(
            make_ctx("neovim:install", "appimage", **layout)
        )
        assert receipt.failed
        assert "404" in receipt.error
        assert not Path(layout["install_path"]).exists()

    def test_extraction_failure(self, layout: dict, make_ctx):
        broken = "#!/bin/sh\nexit 1\n"
        receipt = AppImageAdapter(download=fake_download(broken)).execute(
            make_ctx("neovim:install", "appimage", **layout)
        )
        assert receipt.failed
        assert not Path(layout["install_path"]).exists()

    def test_paths_must_be_absolute(self, layout: dict, make_ctx):
        layout["install_path"] = "bin/nvim"
        ok, msg = AppImageAdapter().validate(make_ctx("neovim:install", "appimage", **layout))
        assert not ok
        assert "install_path" in msg


class TestAppImageArch:
    @pytest.mark.parametrize(
        "machine,expected",
        [
            ("x86_64", "nvim-linux-x86_64.appimage"),
            ("aarch64", "nvim-linux-arm64.appimage"),
        ],
    )
    def test_url_follows_machine_arch(self, layout: dict, make_ctx, machine, expected):
        requested = []

        def download(url: str, dest: Path) -> Path:
            requested.append(url)
            return fake_download(FUSE_APPIMAGE)(url, dest)

        layout["url"] = "https://example.com/releases/nvim-linux-{arch}.appimage"
        adapter = AppImageAdapter(download=download, machine=lambda: machine)
        receipt = adapter.execute(make_ctx("neovim:install", "appimage", **layout))

        assert receipt.ok, receipt.error
        assert requested == [f"https://example.com/releases/{expected}"]

    def test_unsupported_arch_downloads_nothing(self, layout: dict, make_ctx):
        requested = []
        layout["url"] = "https://example.com/releases/nvim-linux-{arch}.appimage"
        adapter = AppImageAdapter(
            download=lambda url, dest: requested.append(url),
            machine=lambda: "riscv64",
        )
        receipt = adapter.execute(make_ctx("neovim:install", "appimage", **layout))

        assert receipt.failed
        assert "Unsupported architecture" in receipt.error
        assert requested == []


# ── Release resolution ───────────────────────────────────────────────


class TestResolveLatestVersion:
    def test_strips_leading_v(self):
        assert resolve_latest_version("jesseduffield/lazygit", lambda url: {"tag_name": "v0.40.2"}) == "0.40.2"

    def test_plain_tag(self):
        assert resolve_latest_version("o/r", lambda url: {"tag_name": "12"}) == "12"

    def test_queries_latest_release(self):
        seen = []

        def fetch(url):
            seen.append(url)
            return {"tag_name": "v1.0"}

        resolve_latest_version("jesseduffield/lazygit", fetch)
        assert seen == [latest_release_url("jesseduffield/lazygit")]
        assert seen[0] == "https://api.github.com/repos/jesseduffield/lazygit/releases/latest"

    @pytest.mark.parametrize("tag", ["nightly", "v1.2-rc1", "", "v"])
    def test_invalid_tag_fails_fast(self, tag):
        with pytest.raises(ReleaseResolutionError):
            resolve_latest_version("o/r", lambda url: {"tag_name": tag})

    def test_missing_tag(self):
        with pytest.raises(ReleaseResolutionError, match="No tag_name"):
            resolve_latest_version("o/r", lambda url: {"message": "API rate limit exceeded"})

    def test_network_error(self):
        def fetch(url):
            raise DownloadError("Failed to fetch: timed out")

        with pytest.raises(ReleaseResolutionError, match="timed out"):
            resolve_latest_version("o/r", fetch)


class TestReleaseArch:
    @pytest.mark.parametrize(
        "machine,expected",
        [("x86_64", "x86_64"), ("aarch64", "arm64"), ("arm64", "arm64"), ("AMD64", "x86_64")],
    )
    def test_mapping(self, machine, expected):
        assert release_arch(machine) == expected

    def test_unsupported(self):
        with pytest.raises(ReleaseResolutionError, match="Unsupported architecture"):
            release_arch("riscv64")


# ── Release tarball adapter ──────────────────────────────────────────


def _tarball(members: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def _release_params(install_dir: Path) -> dict:
    return {
        "repo": "jesseduffield/lazygit",
        "url_template": "https://github.com/{repo}/releases/latest/download/lazygit_{version}_Linux_{arch}.tar.gz",
        "member": "lazygit",
        "install_dir": str(install_dir),
    }


class TestReleaseBinaryAdapter:
    def test_installs_member(self, tmp_path: Path, make_ctx):
        install_dir = tmp_path / "bin"
        install_dir.mkdir()
        urls = []

        def download(url, dest):
            urls.append(url)
            dest.write_bytes(_tarball({"LICENSE": b"MIT", "lazygit": b"#!/bin/sh\necho lazygit\n"}))
            return dest

        adapter = ReleaseBinaryAdapter(
            fetch_json=lambda url: {"tag_name": "v0.40.2"},
            download=download,
            machine=lambda: "aarch64",
        )
        receipt = adapter.execute(make_ctx("cli_tools:lazygit", "release", **_release_params(install_dir)))

        assert receipt.ok, receipt.error
        assert urls == [
            "https://github.com/jesseduffield/lazygit/releases/latest/download/lazygit_0.40.2_Linux_arm64.tar.gz"
        ]
        installed = install_dir / "lazygit"
        assert installed.read_bytes() == b"#!/bin/sh\necho lazygit\n"
        assert os.access(installed, os.X_OK)
        assert not (install_dir / "LICENSE").exists()
        assert receipt.metadata["version"] == "0.40.2"

    def test_invalid_version_downloads_nothing(self, tmp_path: Path, make_ctx):
        urls = []

        def download(url, dest):
            urls.append(url)
            return dest

        adapter = ReleaseBinaryAdapter(
            fetch_json=lambda url: {"tag_name": "latest-build"},
            download=download,
            machine=lambda: "x86_64",
        )
        receipt = adapter.execute(make_ctx("cli_tools:lazygit", "release", **_release_params(tmp_path)))

        assert receipt.failed
        assert "Unexpected release tag" in receipt.error
        assert urls == []

    def test_member_missing_from_tarball(self, tmp_path: Path, make_ctx):
        def download(url, dest):
            dest.write_bytes(_tarball({"README.md": b"hi"}))
            return dest

        adapter = ReleaseBinaryAdapter(
            fetch_json=lambda url: {"tag_name": "v1.0.0"},
            download=download,
            machine=lambda: "x86_64",
        )
        receipt = adapter.execute(make_ctx("cli_tools:lazygit", "release", **_release_params(tmp_path)))
        assert receipt.failed
        assert "lazygit not found" in receipt.error

    def test_install_failure(self, tmp_path: Path, fake_runner, make_ctx):
        fake_runner.on("install", returncode=1, stderr="install: cannot create regular file")

        def download(url, dest):
            dest.write_bytes(_tarball({"lazygit": b"bin"}))
            return dest

        adapter = ReleaseBinaryAdapter(
            runner=fake_runner,
            fetch_json=lambda url: {"tag_name": "v1.0.0"},
            download=download,
            machine=lambda: "x86_64",
        )
        receipt = adapter.execute(make_ctx("cli_tools:lazygit", "release", **_release_params(tmp_path)))
        assert receipt.failed
        assert "cannot create" in receipt.error
