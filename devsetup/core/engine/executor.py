"""
Engine executor — the fail-fast provisioning loop.

Takes an ordered plan of stages, ensures each action through the adapter
registry, and stops at the first failed receipt. Actions marked
``on_failure="warn"`` turn a failure into a warning and the run
continues.

Flow:
    plan → for each stage → for each action → registry → receipt → halt?
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import PurePosixPath

from devsetup.adapters.registry import AdapterRegistry
from devsetup.core.models.action import Action, Receipt
from devsetup.core.persistence.audit import AuditEntry, AuditWriter

logger = logging.getLogger(__name__)


@dataclass
class Stage:
    """One named group of steps, executed in order."""

    id: str
    title: str
    actions: list[Action] = field(default_factory=list)


@dataclass
class ExecutionPlan:
    """Ordered stages to execute."""

    operation_id: str = ""
    stages: list[Stage] = field(default_factory=list)

    @property
    def actions(self) -> list[Action]:
        return [a for stage in self.stages for a in stage.actions]

    @property
    def total_actions(self) -> int:
        return len(self.actions)

    def get_stage(self, stage_id: str) -> Stage | None:
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        return None

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "total_actions": self.total_actions,
            "stages": [
                {
                    "id": s.id,
                    "title": s.title,
                    "actions": [
                        {
                            "id": a.id,
                            "name": a.label,
                            "adapter": a.adapter,
                            "on_failure": a.on_failure,
                        }
                        for a in s.actions
                    ],
                }
                for s in self.stages
            ],
        }


@dataclass
class ExecutionReport:
    """Result of executing a plan."""

    operation_id: str = ""
    dry_run: bool = False
    receipts: list[Receipt] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    halted_at: str | None = None
    duration_ms: int = 0

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.status == "skipped")

    @property
    def status(self) -> str:
        return "failed" if self.halted_at else "ok"

    @property
    def all_ok(self) -> bool:
        return self.halted_at is None

    def receipt_for(self, action_id: str) -> Receipt | None:
        for r in self.receipts:
            if r.action_id == action_id:
                return r
        return None

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "dry_run": self.dry_run,
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "halted_at": self.halted_at,
            "warnings": list(self.warnings),
            "duration_ms": self.duration_ms,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


def execute_plan(
    plan: ExecutionPlan,
    registry: AdapterRegistry,
    home: str = "",
    user: str = "",
    dry_run: bool = False,
    use_sudo: bool = True,
) -> ExecutionReport:
    """Execute a plan stage by stage, halting on the first hard failure.

    Args:
        plan: The execution plan.
        registry: Adapter registry for dispatch.
        home: Target user's home directory.
        user: Target user name.
        dry_run: If True, validate and check but don't execute.
        use_sudo: Prefix privileged commands with sudo.

    Returns:
        ExecutionReport with a receipt per dispatched action. Actions
        after the halting one have no receipt.
    """
    report = ExecutionReport(operation_id=plan.operation_id, dry_run=dry_run)
    start = time.monotonic()
    # paths a dry-run backup would have moved aside
    pending_backups: list[str] = []

    for stage in plan.stages:
        if stage.actions:
            logger.info("── %s ──", stage.title)

        for action in stage.actions:
            receipt = registry.execute_action(
                action=action,
                home=home,
                user=user,
                dry_run=dry_run,
                use_sudo=use_sudo,
                check_satisfied=not _under_any(action, pending_backups),
            )
            report.receipts.append(receipt)

            if dry_run and receipt.metadata.get("dry_run") and _is_backup(action):
                pending_backups.append(action.params["path"])

            status_marker = "✓" if receipt.ok else "✗" if receipt.failed else "⊘"
            logger.info("%s %s → %s", status_marker, action.label, receipt.status)

            if not receipt.failed:
                continue

            if action.on_failure == "warn":
                message = f"{action.label}: {receipt.error}"
                report.warnings.append(message)
                logger.warning("%s (continuing)", message)
                continue

            report.halted_at = action.id
            logger.error("Halted at %s: %s", action.id, receipt.error)
            report.duration_ms = int((time.monotonic() - start) * 1000)
            return report

    report.duration_ms = int((time.monotonic() - start) * 1000)
    return report


def write_audit_entries(
    report: ExecutionReport,
    audit_writer: AuditWriter,
) -> None:
    """Append the run to the audit ledger."""
    entry = AuditEntry(
        operation_id=report.operation_id,
        dry_run=report.dry_run,
        status=report.status,
        actions_total=report.total,
        actions_succeeded=report.succeeded,
        actions_skipped=report.skipped,
        actions_failed=report.failed,
        halted_at=report.halted_at,
        duration_ms=report.duration_ms,
        warnings=list(report.warnings),
        errors=[f"{r.action_id}: {r.error}" for r in report.receipts if r.failed and r.error],
    )
    audit_writer.write(entry)


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"


# ── Dry-run state tracking ─────────────────────────────────────────


def _is_backup(action: Action) -> bool:
    return action.adapter == "filesystem" and action.params.get("operation") == "backup"


def _under_any(action: Action, roots: list[str]) -> bool:
    """True when the action's target path lies at or below one of ``roots``."""
    if not roots:
        return False
    target = action.params.get("path") or action.params.get("dest")
    if not target:
        return False
    target_path = PurePosixPath(target)
    return any(target_path == PurePosixPath(r) or PurePosixPath(r) in target_path.parents for r in roots)
