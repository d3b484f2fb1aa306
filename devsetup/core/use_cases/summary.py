"""
Summary use case — what was installed and what the user still has to do.

Pure: reads a report and the config, returns a Summary. The CLI decides
how to print it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import ValidationError

from devsetup.core.data import templates
from devsetup.core.engine.executor import ExecutionReport
from devsetup.core.models.config import ProvisionConfig
from devsetup.core.models.outcome import DirectInstall, ExtractedInstall, parse_outcome

NEOVIM_INSTALL_ACTION = "neovim:install"


@dataclass
class Summary:
    installed: list[str] = field(default_factory=list)
    neovim_mode: str | None = None          # "direct" | "extracted" | None
    neovim_binary: str | None = None
    warnings: list[str] = field(default_factory=list)
    next_steps: list[str] = field(default_factory=list)
    nvm_commands: list[tuple[str, str]] = field(default_factory=list)
    aliases: list[tuple[str, str]] = field(default_factory=list)
    project_commands: list[tuple[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "installed": list(self.installed),
            "neovim_mode": self.neovim_mode,
            "neovim_binary": self.neovim_binary,
            "warnings": list(self.warnings),
            "next_steps": list(self.next_steps),
            "nvm_commands": [{"command": c, "description": d} for c, d in self.nvm_commands],
            "aliases": [{"alias": a, "target": t} for a, t in self.aliases],
            "project_commands": [
                {"command": c, "description": d} for c, d in self.project_commands
            ],
        }

    def lines(self) -> list[str]:
        """Plain-text rendering, one entry per line."""
        out = ["What's been installed:"]
        out += [f"  - {item}" for item in self.installed]
        if self.neovim_mode:
            where = f" ({self.neovim_binary})" if self.neovim_binary else ""
            out.append(f"  Neovim install mode: {self.neovim_mode}{where}")
        if self.warnings:
            out += ["", "Warnings:"]
            out += [f"  - {w}" for w in self.warnings]
        out += ["", "Important next steps:"]
        out += [f"  {i}. {step}" for i, step in enumerate(self.next_steps, start=1)]
        out += ["", "NVM commands:"]
        out += [f"  - {c} - {d}" for c, d in self.nvm_commands]
        out += ["", "Useful aliases configured:"]
        out += [f"  - {a} → {t}" for a, t in self.aliases]
        if self.project_commands:
            out += ["", "TypeScript project commands:"]
            out += [f"  - {c} - {d}" for c, d in self.project_commands]
        return out


def neovim_outcome(report: ExecutionReport) -> DirectInstall | ExtractedInstall | None:
    receipt = report.receipt_for(NEOVIM_INSTALL_ACTION)
    if receipt is None or not receipt.ok:
        return None
    data = receipt.metadata.get("outcome")
    if not data:
        return None
    try:
        return parse_outcome(data)
    except ValidationError:
        return None


def build_summary(report: ExecutionReport, config: ProvisionConfig) -> Summary:
    project_dir = config.project.path
    steps = [
        "Restart your terminal or run: exec zsh",
        f"Log out and log back in for {config.docker.group} group changes to take effect",
        "Run 'nvim' to start Neovim and let LazyVim install plugins",
    ]
    if config.project.enabled:
        steps.append(f"Check the sample TypeScript project in {project_dir}")

    outcome = neovim_outcome(report)
    return Summary(
        installed=list(templates.INSTALLED_ITEMS),
        neovim_mode=outcome.kind if outcome else None,
        neovim_binary=outcome.binary_path if outcome else None,
        warnings=list(report.warnings),
        next_steps=steps,
        nvm_commands=list(templates.NVM_COMMANDS),
        aliases=list(templates.ALIASES),
        project_commands=list(templates.PROJECT_COMMANDS) if config.project.enabled else [],
    )
