"""
ProvisionConfig — what to install and where.

Defaults reproduce the stock workstation exactly; a YAML file only needs
the keys it wants to change. Paths may start with ``~`` and are expanded
against ``home`` (not the process's ``$HOME``) so tests and alternate
users resolve consistently.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

ESSENTIAL_PACKAGES: tuple[str, ...] = (
    "curl",
    "wget",
    "git",
    "unzip",
    "software-properties-common",
    "apt-transport-https",
    "ca-certificates",
    "gnupg",
    "lsb-release",
    "build-essential",
    "cmake",
    "gettext",
    "ninja-build",
    "python3",
    "python3-pip",
    "ripgrep",
    "fd-find",
    "fzf",
    "tree",
    "htop",
    "neofetch",
    "zsh",
    "tmux",
    "jq",
    "bat",
    "exa",
)

NPM_GLOBAL_PACKAGES: tuple[str, ...] = (
    "typescript",
    "@types/node",
    "ts-node",
    "nodemon",
    "eslint",
    "prettier",
)

ZSH_PLUGINS: dict[str, str] = {
    "zsh-autosuggestions": "https://github.com/zsh-users/zsh-autosuggestions",
    "zsh-syntax-highlighting": "https://github.com/zsh-users/zsh-syntax-highlighting.git",
    "zsh-completions": "https://github.com/zsh-users/zsh-completions",
}


class AptRepository(BaseModel):
    """A third-party apt source: signing key + one sources.list line.

    ``line`` may contain ``{arch}`` (dpkg architecture) and ``{codename}``
    (``lsb_release -cs``), resolved on the target at execution time.
    """

    name: str
    key_url: str
    keyring: str
    list_file: str
    line: str
    dearmor: bool = False


class PackagesConfig(BaseModel):
    upgrade: bool = True
    essential: list[str] = Field(default_factory=lambda: list(ESSENTIAL_PACKAGES))


class NeovimConfig(BaseModel):
    appimage_url: str = (
        "https://github.com/neovim/neovim/releases/latest/download/nvim-linux-{arch}.appimage"
    )
    download_dir: str = "/tmp"
    install_path: str = "/usr/local/bin/nvim"
    extract_dir: str = "/opt/nvim"
    compat_link: str = "/usr/bin/nvim"


class NodeConfig(BaseModel):
    nvm_installer_url: str = "https://raw.githubusercontent.com/nvm-sh/nvm/v0.39.7/install.sh"
    nvm_dir: str = "~/.nvm"
    global_packages: list[str] = Field(default_factory=lambda: list(NPM_GLOBAL_PACKAGES))


class ShellConfig(BaseModel):
    oh_my_zsh_installer_url: str = (
        "https://raw.github.com/ohmyzsh/ohmyzsh/master/tools/install.sh"
    )
    oh_my_zsh_dir: str = "~/.oh-my-zsh"
    custom_dir: str = "~/.oh-my-zsh/custom"
    plugins: dict[str, str] = Field(default_factory=lambda: dict(ZSH_PLUGINS))
    zshrc: str = "~/.zshrc"


class EditorConfig(BaseModel):
    starter_repo: str = "https://github.com/LazyVim/starter"
    config_dir: str = "~/.config/nvim"
    data_dir: str = "~/.local/share/nvim"


def _docker_repository() -> AptRepository:
    return AptRepository(
        name="docker",
        key_url="https://download.docker.com/linux/debian/gpg",
        keyring="/usr/share/keyrings/docker-archive-keyring.gpg",
        list_file="/etc/apt/sources.list.d/docker.list",
        line=(
            "deb [arch={arch} signed-by=/usr/share/keyrings/docker-archive-keyring.gpg] "
            "https://download.docker.com/linux/debian {codename} stable"
        ),
        dearmor=True,
    )


def _github_cli_repository() -> AptRepository:
    return AptRepository(
        name="github-cli",
        key_url="https://cli.github.com/packages/githubcli-archive-keyring.gpg",
        keyring="/usr/share/keyrings/githubcli-archive-keyring.gpg",
        list_file="/etc/apt/sources.list.d/github-cli.list",
        line=(
            "deb [arch={arch} signed-by=/usr/share/keyrings/githubcli-archive-keyring.gpg] "
            "https://cli.github.com/packages stable main"
        ),
    )


class DockerConfig(BaseModel):
    repository: AptRepository = Field(default_factory=_docker_repository)
    packages: list[str] = Field(
        default_factory=lambda: [
            "docker-ce",
            "docker-ce-cli",
            "containerd.io",
            "docker-compose-plugin",
        ]
    )
    group: str = "docker"


class ToolsConfig(BaseModel):
    github_cli_repository: AptRepository = Field(default_factory=_github_cli_repository)
    github_cli_packages: list[str] = Field(default_factory=lambda: ["gh"])
    lazygit_repo: str = "jesseduffield/lazygit"
    lazygit_download_url: str = (
        "https://github.com/{repo}/releases/latest/download/"
        "lazygit_{version}_Linux_{arch}.tar.gz"
    )
    lazygit_install_dir: str = "/usr/local/bin"
    starship_installer_url: str = "https://starship.rs/install.sh"
    starship_init_line: str = 'eval "$(starship init zsh)"'


class ProjectConfig(BaseModel):
    enabled: bool = True
    path: str = "~/projects/typescript-starter"
    npm_install: bool = True


class ProvisionConfig(BaseModel):
    """Root configuration model."""

    home: str = ""
    user: str = ""
    use_sudo: bool = True
    audit_log: str | None = None

    packages: PackagesConfig = Field(default_factory=PackagesConfig)
    neovim: NeovimConfig = Field(default_factory=NeovimConfig)
    node: NodeConfig = Field(default_factory=NodeConfig)
    shell: ShellConfig = Field(default_factory=ShellConfig)
    editor: EditorConfig = Field(default_factory=EditorConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    project: ProjectConfig = Field(default_factory=ProjectConfig)

    def expand(self, path: str) -> str:
        """Expand a leading ``~`` against the configured home."""
        if path == "~":
            return self.home
        if path.startswith("~/"):
            return f"{self.home.rstrip('/')}/{path[2:]}"
        return path
