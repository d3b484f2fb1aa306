"""
Domain models — Pydantic types for the provisioner.

All models are re-exported here for convenient access:

    from devsetup.core.models import Action, Receipt, ProvisionConfig
"""

from devsetup.core.models.action import Action, Receipt
from devsetup.core.models.config import (
    AptRepository,
    DockerConfig,
    EditorConfig,
    NeovimConfig,
    NodeConfig,
    PackagesConfig,
    ProjectConfig,
    ProvisionConfig,
    ShellConfig,
    ToolsConfig,
)
from devsetup.core.models.outcome import (
    DirectInstall,
    ExtractedInstall,
    InstallOutcome,
    parse_outcome,
)

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # config.py
    "AptRepository",
    "DockerConfig",
    "EditorConfig",
    "NeovimConfig",
    "NodeConfig",
    "PackagesConfig",
    "ProjectConfig",
    "ProvisionConfig",
    "ShellConfig",
    "ToolsConfig",
    # outcome.py
    "DirectInstall",
    "ExtractedInstall",
    "InstallOutcome",
    "parse_outcome",
]
