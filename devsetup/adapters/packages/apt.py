"""
Apt adapter — system packages and third-party apt sources.

Package installs are idempotent at the apt level already; we still ask
dpkg which packages are missing and install only those, so a re-run on
a provisioned machine is a fast no-op and its receipt says so.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from devsetup.adapters.base import CommandAdapter, ExecutionContext
from devsetup.adapters.shell.runner import Runner, run_command
from devsetup.core.models.action import Receipt
from devsetup.core.services.downloads import DownloadError, fetch_bytes

logger = logging.getLogger(__name__)

_NONINTERACTIVE = ["env", "DEBIAN_FRONTEND=noninteractive"]

_VALID_OPS = {"update", "upgrade", "install", "add_repository"}
_REPO_FIELDS = ("key_url", "keyring", "list_file", "line")


class AptAdapter(CommandAdapter):
    """apt-get / dpkg operations.

    Action params:
        operation (str): One of 'update', 'upgrade', 'install', 'add_repository'.
        packages (list[str]): Package names (for 'install').
        repository (dict): AptRepository fields (for 'add_repository').
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
        return "apt"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if operation not in _VALID_OPS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_VALID_OPS))}"

        if operation == "install" and not context.params.get("packages"):
            return False, "Missing required param: 'packages' for install"

        if operation == "add_repository":
            repo = context.params.get("repository") or {}
            missing = [f for f in _REPO_FIELDS if not repo.get(f)]
            if missing:
                return False, f"Repository is missing: {', '.join(missing)}"

        return True, ""

    def is_satisfied(self, context: ExecutionContext) -> bool:
        operation = context.params["operation"]
        if operation == "install":
            return not self.missing_packages(context, context.params["packages"])
        if operation == "add_repository":
            repo = context.params["repository"]
            list_file = Path(repo["list_file"])
            if not Path(repo["keyring"]).is_file() or not list_file.is_file():
                return False
            line = self._render_line(context, repo["line"])
            return line in list_file.read_text(encoding="utf-8").splitlines()
        return False

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        if operation == "update":
            return self._simple(context, ["apt-get", "update"])
        if operation == "upgrade":
            return self._simple(context, [*_NONINTERACTIVE, "apt-get", "upgrade", "-y"])
        if operation == "install":
            return self._install(context)
        return self._add_repository(context)

    # ── Queries ─────────────────────────────────────────────────

    def missing_packages(self, context: ExecutionContext, packages: list[str]) -> list[str]:
        """Packages dpkg does not report as ``install ok installed``."""
        result = self._run(
            context,
            ["dpkg-query", "-W", "-f=${Package} ${Status}\n", *packages],
        )
        installed: set[str] = set()
        # dpkg-query exits 1 when any name is unknown but still reports the rest.
        for line in result.stdout.splitlines():
            name, _, status = line.partition(" ")
            if status.strip() == "install ok installed":
                installed.add(name.split(":", 1)[0])
        return [p for p in packages if p not in installed]

    def _render_line(self, context: ExecutionContext, template: str) -> str:
        fields: dict[str, str] = {}
        if "{arch}" in template:
            fields["arch"] = self._probe(context, ["dpkg", "--print-architecture"])
        if "{codename}" in template:
            fields["codename"] = self._probe(context, ["lsb_release", "-cs"])
        return template.format(**fields) if fields else template

    def _probe(self, context: ExecutionContext, argv: list[str]) -> str:
        result = self._run(context, argv)
        value = result.stdout.strip()
        if not result.ok or not value:
            raise RuntimeError(result.describe_failure() if not result.ok else f"{argv[0]} printed nothing")
        return value

    # ── Operations ──────────────────────────────────────────────

    def _simple(self, ctx: ExecutionContext, argv: list[str]) -> Receipt:
        result = self._run(ctx, argv, sudo=True)
        if not result.ok:
            return self._fail(ctx, result)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"{' '.join(a for a in argv if a not in _NONINTERACTIVE)} completed",
            duration_ms=result.elapsed_ms,
        )

    def _install(self, ctx: ExecutionContext) -> Receipt:
        packages = list(ctx.params["packages"])
        missing = self.missing_packages(ctx, packages)
        if not missing:
            return Receipt.skip(
                adapter=self.name,
                action_id=ctx.action.id,
                reason="All packages already installed",
            )

        result = self._run(
            ctx,
            [*_NONINTERACTIVE, "apt-get", "install", "-y", *missing],
            sudo=True,
        )
        if not result.ok:
            return self._fail(ctx, result, metadata={"packages": missing})

        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Installed {len(missing)} package(s): {' '.join(missing)}",
            duration_ms=result.elapsed_ms,
            metadata={"installed": missing, "already_present": [p for p in packages if p not in missing]},
        )

    def _add_repository(self, ctx: ExecutionContext) -> Receipt:
        repo = ctx.params["repository"]

        try:
            line = self._render_line(ctx, repo["line"])
        except RuntimeError as e:
            return Receipt.failure(adapter=self.name, action_id=ctx.action.id, error=str(e))

        try:
            key = self._fetch(repo["key_url"])
        except DownloadError as e:
            return Receipt.failure(adapter=self.name, action_id=ctx.action.id, error=str(e))

        if not ctx.use_sudo:
            Path(repo["keyring"]).parent.mkdir(parents=True, exist_ok=True)
            Path(repo["list_file"]).parent.mkdir(parents=True, exist_ok=True)

        if repo.get("dearmor"):
            key_cmd = ["gpg", "--dearmor", "--yes", "-o", repo["keyring"]]
        else:
            key_cmd = ["tee", repo["keyring"]]
        result = self._run(ctx, key_cmd, sudo=True, input_data=key)
        if not result.ok:
            return self._fail(ctx, result, metadata={"repository": repo.get("name", "")})

        result = self._run(ctx, ["tee", repo["list_file"]], sudo=True, input_data=f"{line}\n")
        if not result.ok:
            return self._fail(ctx, result, metadata={"repository": repo.get("name", "")})

        logger.info("Configured apt repository %s: %s", repo.get("name", ""), line)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Added apt source {repo['list_file']}",
            metadata={"line": line, "keyring": repo["keyring"]},
        )
