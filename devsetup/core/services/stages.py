"""
Stage planner — configuration in, ordered plan of actions out.

Pure: nothing here touches the system. Every path is expanded against
the configured home so the plan printed by ``devsetup plan`` is exactly
what ``devsetup run`` will ensure.

Preflight runs before the plan and the summary is rendered after it,
so both appear in STAGE_ORDER but never hold actions.
"""

from __future__ import annotations

from typing import Any

from devsetup.core.data import templates
from devsetup.core.engine.executor import ExecutionPlan, Stage
from devsetup.core.models.action import Action
from devsetup.core.models.config import AptRepository, ProvisionConfig

STAGE_ORDER: tuple[tuple[str, str], ...] = (
    ("preflight", "Preflight checks"),
    ("system_packages", "System packages"),
    ("neovim", "Neovim"),
    ("node", "NVM and Node.js"),
    ("typescript_tools", "TypeScript tools"),
    ("shell_framework", "Oh My Zsh"),
    ("shell_config", "Zsh configuration"),
    ("editor_config", "LazyVim"),
    ("container_runtime", "Docker"),
    ("cli_tools", "Developer CLI tools"),
    ("sample_project", "Sample TypeScript project"),
    ("summary", "Summary"),
)

_TITLES = dict(STAGE_ORDER)


def _action(stage: str, key: str, name: str, adapter: str, **params: Any) -> Action:
    on_failure = params.pop("on_failure", "abort")
    return Action(
        id=f"{stage}:{key}",
        name=name,
        stage=stage,
        adapter=adapter,
        params=params,
        on_failure=on_failure,
    )


def _join(base: str, rel: str) -> str:
    return f"{base.rstrip('/')}/{rel}"


def _repository(repo: AptRepository) -> dict[str, Any]:
    return repo.model_dump()


# ── Stages ──────────────────────────────────────────────────────


def system_packages_stage(config: ProvisionConfig) -> list[Action]:
    s = "system_packages"
    actions = [_action(s, "update", "apt-get update", "apt", operation="update")]
    if config.packages.upgrade:
        actions.append(_action(s, "upgrade", "apt-get upgrade", "apt", operation="upgrade"))
    actions.append(
        _action(
            s, "essential", "Install essential packages", "apt",
            operation="install",
            packages=list(config.packages.essential),
        )
    )
    return actions


def neovim_stage(config: ProvisionConfig) -> list[Action]:
    s = "neovim"
    nv = config.neovim
    return [
        _action(
            s, "install", "Install Neovim AppImage", "appimage",
            url=nv.appimage_url,
            download_dir=config.expand(nv.download_dir),
            install_path=nv.install_path,
            extract_dir=nv.extract_dir,
            compat_link=nv.compat_link,
        ),
        _action(s, "verify", "nvim --version", "shell", command=[nv.install_path, "--version"]),
    ]


def node_stage(config: ProvisionConfig) -> list[Action]:
    s = "node"
    nvm_dir = config.expand(config.node.nvm_dir)
    return [
        # the nvm installer refuses an NVM_DIR that does not exist
        _action(s, "nvm_dir", "Create NVM directory", "filesystem", operation="mkdir", path=nvm_dir),
        _action(
            s, "nvm", "Install NVM", "script",
            url=config.node.nvm_installer_url,
            interpreter="bash",
            env={"NVM_DIR": nvm_dir},
            creates=_join(nvm_dir, "nvm.sh"),
        ),
        _action(s, "lts", "Install Node.js LTS", "node", operation="install_lts", nvm_dir=nvm_dir),
    ]


def typescript_tools_stage(config: ProvisionConfig) -> list[Action]:
    return [
        _action(
            "typescript_tools", "global", "npm install -g", "node",
            operation="global_install",
            nvm_dir=config.expand(config.node.nvm_dir),
            packages=list(config.node.global_packages),
        )
    ]


def shell_framework_stage(config: ProvisionConfig) -> list[Action]:
    s = "shell_framework"
    sh = config.shell
    omz_dir = config.expand(sh.oh_my_zsh_dir)
    actions = [
        _action(
            s, "oh_my_zsh", "Install Oh My Zsh", "script",
            url=sh.oh_my_zsh_installer_url,
            interpreter="sh",
            args=["--unattended"],
            env={"ZSH": omz_dir},
            creates=omz_dir,
        )
    ]
    plugin_root = _join(config.expand(sh.custom_dir), "plugins")
    for name, repo in sh.plugins.items():
        actions.append(
            _action(
                s, f"plugin:{name}", f"Zsh plugin {name}", "git",
                repo=repo,
                dest=_join(plugin_root, name),
                on_failure="warn",
            )
        )
    return actions


def shell_config_stage(config: ProvisionConfig) -> list[Action]:
    return [
        _action(
            "shell_config", "zshrc", "Write ~/.zshrc", "filesystem",
            operation="write",
            path=config.expand(config.shell.zshrc),
            content=templates.ZSHRC,
        )
    ]


def editor_config_stage(config: ProvisionConfig) -> list[Action]:
    s = "editor_config"
    ed = config.editor
    config_dir = config.expand(ed.config_dir)
    actions = [
        _action(s, "backup_config", "Back up Neovim config", "filesystem",
                operation="backup", path=config_dir),
        _action(s, "backup_data", "Back up Neovim data", "filesystem",
                operation="backup", path=config.expand(ed.data_dir)),
        _action(s, "starter", "Clone LazyVim starter", "git",
                repo=ed.starter_repo, dest=config_dir, strip_git=True),
    ]
    for rel, content in templates.NEOVIM_PLUGIN_FILES.items():
        actions.append(
            _action(s, f"file:{rel.rsplit('/', 1)[-1]}", f"Write {rel}", "filesystem",
                    operation="write", path=_join(config_dir, rel), content=content)
        )
    return actions


def container_runtime_stage(config: ProvisionConfig) -> list[Action]:
    s = "container_runtime"
    dk = config.docker
    return [
        _action(s, "repository", "Docker apt repository", "apt",
                operation="add_repository", repository=_repository(dk.repository)),
        _action(s, "update", "apt-get update", "apt", operation="update"),
        _action(s, "install", "Install Docker", "apt",
                operation="install", packages=list(dk.packages)),
        _action(s, "group", f"Add user to {dk.group} group", "group",
                group=dk.group, user=config.user),
    ]


def cli_tools_stage(config: ProvisionConfig) -> list[Action]:
    s = "cli_tools"
    t = config.tools
    return [
        _action(s, "gh_repository", "GitHub CLI apt repository", "apt",
                operation="add_repository", repository=_repository(t.github_cli_repository)),
        _action(s, "update", "apt-get update", "apt", operation="update"),
        _action(s, "gh", "Install GitHub CLI", "apt",
                operation="install", packages=list(t.github_cli_packages)),
        _action(s, "lazygit", "Install LazyGit", "release",
                repo=t.lazygit_repo,
                url_template=t.lazygit_download_url,
                member="lazygit",
                install_dir=t.lazygit_install_dir),
        _action(s, "starship", "Install Starship", "script",
                url=t.starship_installer_url,
                interpreter="sh",
                args=["-y"],
                creates_binary="starship"),
        _action(s, "starship_init", "Enable Starship in ~/.zshrc", "filesystem",
                operation="append_line",
                path=config.expand(config.shell.zshrc),
                line=t.starship_init_line),
    ]


def sample_project_stage(config: ProvisionConfig) -> list[Action]:
    if not config.project.enabled:
        return []

    s = "sample_project"
    root = config.expand(config.project.path)
    actions = [
        _action(s, "dir", "Create project directory", "filesystem", operation="mkdir", path=root)
    ]
    for rel, content in templates.PROJECT_FILES.items():
        actions.append(
            _action(s, f"file:{rel}", f"Write {rel}", "filesystem",
                    operation="write", path=_join(root, rel), content=content)
        )
    if config.project.npm_install:
        actions.append(
            _action(s, "npm_install", "npm install", "node",
                    operation="project_install",
                    nvm_dir=config.expand(config.node.nvm_dir),
                    cwd=root)
        )
    return actions


_BUILDERS = {
    "system_packages": system_packages_stage,
    "neovim": neovim_stage,
    "node": node_stage,
    "typescript_tools": typescript_tools_stage,
    "shell_framework": shell_framework_stage,
    "shell_config": shell_config_stage,
    "editor_config": editor_config_stage,
    "container_runtime": container_runtime_stage,
    "cli_tools": cli_tools_stage,
    "sample_project": sample_project_stage,
}


def build_plan(config: ProvisionConfig, operation_id: str = "") -> ExecutionPlan:
    """Build the ordered provisioning plan for ``config``."""
    plan = ExecutionPlan(operation_id=operation_id)
    for stage_id, builder in _BUILDERS.items():
        plan.stages.append(Stage(id=stage_id, title=_TITLES[stage_id], actions=builder(config)))
    return plan
