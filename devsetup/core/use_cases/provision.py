"""
Provision use case — the full run, from preflight to summary.

preflight → plan → execute (fail-fast) → audit → summary

The privilege check happens first and alone: a root invocation returns
an error before a plan is even built, so no command runs and no file is
written.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from devsetup.adapters.registry import AdapterRegistry
from devsetup.core.engine.executor import (
    ExecutionPlan,
    ExecutionReport,
    execute_plan,
    generate_operation_id,
    write_audit_entries,
)
from devsetup.core.models.config import ProvisionConfig
from devsetup.core.persistence.audit import AuditWriter
from devsetup.core.services.stages import build_plan
from devsetup.core.use_cases.preflight import PrivilegeError, check_preflight
from devsetup.core.use_cases.summary import Summary, build_summary

logger = logging.getLogger(__name__)


@dataclass
class ProvisionResult:
    """Result of a provisioning run."""

    report: ExecutionReport | None = None
    plan: ExecutionPlan | None = None
    summary: Summary | None = None
    preflight_warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.report is not None and self.report.all_ok

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
        result["ok"] = self.ok
        result["preflight_warnings"] = list(self.preflight_warnings)
        if self.report:
            result["report"] = self.report.to_dict()
        if self.summary:
            result["summary"] = self.summary.to_dict()
        return result


def build_registry(config: ProvisionConfig, mock_mode: bool = False) -> AdapterRegistry:
    """Registry with every adapter the plan refers to."""
    from devsetup.adapters.binaries.appimage import AppImageAdapter
    from devsetup.adapters.binaries.release import ReleaseBinaryAdapter
    from devsetup.adapters.languages.node import NodeAdapter
    from devsetup.adapters.packages.apt import AptAdapter
    from devsetup.adapters.shell.command import ShellCommandAdapter
    from devsetup.adapters.shell.filesystem import FilesystemAdapter
    from devsetup.adapters.shell.script import ScriptInstallerAdapter
    from devsetup.adapters.system.groups import GroupMembershipAdapter
    from devsetup.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry(mock_mode=mock_mode)
    registry.register(AptAdapter())
    registry.register(AppImageAdapter())
    registry.register(ScriptInstallerAdapter())
    registry.register(NodeAdapter())
    registry.register(GitAdapter())
    registry.register(FilesystemAdapter())
    registry.register(GroupMembershipAdapter())
    registry.register(ReleaseBinaryAdapter())
    registry.register(ShellCommandAdapter())
    return registry


def run_provision(
    config: ProvisionConfig,
    registry: AdapterRegistry | None = None,
    dry_run: bool = False,
    mock_mode: bool = False,
    geteuid: Callable[[], int] | None = None,
) -> ProvisionResult:
    """Provision the workstation described by ``config``.

    Args:
        config: Loaded configuration (home and user resolved).
        registry: Optional pre-configured adapter registry.
        dry_run: If True, check every step but change nothing.
        mock_mode: If True, use mock adapter responses.
        geteuid: Effective-UID probe (default: ``os.geteuid``).

    Returns:
        ProvisionResult. ``error`` is set when preflight refused to run
        or the plan halted.
    """
    result = ProvisionResult()

    # ── Preflight ────────────────────────────────────────────────
    try:
        preflight = check_preflight(geteuid=geteuid)
    except PrivilegeError as e:
        logger.error("%s", e)
        result.error = str(e)
        return result
    result.preflight_warnings = preflight.warnings

    # ── Plan ─────────────────────────────────────────────────────
    plan = build_plan(config, operation_id=generate_operation_id())
    result.plan = plan
    logger.info("Planned %d step(s) for %s", plan.total_actions, config.home)

    if registry is None:
        registry = build_registry(config, mock_mode=mock_mode)

    # ── Execute ──────────────────────────────────────────────────
    report = execute_plan(
        plan=plan,
        registry=registry,
        home=config.home,
        user=config.user,
        dry_run=dry_run,
        use_sudo=config.use_sudo,
    )
    result.report = report

    # ── Audit ────────────────────────────────────────────────────
    if config.audit_log:
        write_audit_entries(report, AuditWriter(Path(config.expand(config.audit_log))))

    if report.halted_at:
        failed = report.receipt_for(report.halted_at)
        detail = failed.error if failed and failed.error else "step failed"
        result.error = f"Provisioning halted at {report.halted_at}: {detail}"
        return result

    # ── Summary ──────────────────────────────────────────────────
    result.summary = build_summary(report, config)
    return result
