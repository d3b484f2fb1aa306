"""
Tests for the stage planner and the literal payloads it emits.
"""

import json

from devsetup.core.data import templates
from devsetup.core.models.config import ProvisionConfig
from devsetup.core.services.stages import STAGE_ORDER, build_plan

EXPECTED_STAGES = [
    "system_packages",
    "neovim",
    "node",
    "typescript_tools",
    "shell_framework",
    "shell_config",
    "editor_config",
    "container_runtime",
    "cli_tools",
    "sample_project",
]


def _actions(plan):
    return {a.id: a for a in plan.actions}


class TestBuildPlan:
    def test_stage_order(self, config: ProvisionConfig):
        plan = build_plan(config)
        assert [s.id for s in plan.stages] == EXPECTED_STAGES
        assert [sid for sid, _ in STAGE_ORDER] == ["preflight", *EXPECTED_STAGES, "summary"]

    def test_action_ids_unique_and_staged(self, config: ProvisionConfig):
        plan = build_plan(config)
        ids = [a.id for a in plan.actions]
        assert len(ids) == len(set(ids))
        for stage in plan.stages:
            for action in stage.actions:
                assert action.stage == stage.id
                assert action.id.startswith(f"{stage.id}:")

    def test_paths_expand_against_home(self, config: ProvisionConfig):
        actions = _actions(build_plan(config))
        assert actions["shell_config:zshrc"].params["path"] == f"{config.home}/.zshrc"
        assert actions["editor_config:starter"].params["dest"] == f"{config.home}/.config/nvim"
        assert actions["node:nvm"].params["creates"] == f"{config.home}/.nvm/nvm.sh"

    def test_essential_packages(self, config: ProvisionConfig):
        params = _actions(build_plan(config))["system_packages:essential"].params
        assert params["operation"] == "install"
        assert "neofetch" in params["packages"]
        assert len(params["packages"]) == 26

    def test_upgrade_optional(self, config: ProvisionConfig):
        config.packages.upgrade = False
        assert "system_packages:upgrade" not in _actions(build_plan(config))

    def test_neovim_install(self, config: ProvisionConfig):
        actions = _actions(build_plan(config))
        params = actions["neovim:install"].params
        assert params["install_path"] == "/usr/local/bin/nvim"
        assert params["extract_dir"] == "/opt/nvim"
        assert params["compat_link"] == "/usr/bin/nvim"
        assert actions["neovim:verify"].params["command"] == ["/usr/local/bin/nvim", "--version"]

    def test_zsh_plugins_warn_on_failure(self, config: ProvisionConfig):
        plan = build_plan(config)
        plugins = [a for a in plan.get_stage("shell_framework").actions if a.adapter == "git"]
        assert [a.id.rsplit(":", 1)[-1] for a in plugins] == [
            "zsh-autosuggestions",
            "zsh-syntax-highlighting",
            "zsh-completions",
        ]
        assert all(a.on_failure == "warn" for a in plugins)
        assert plugins[0].params["dest"] == f"{config.home}/.oh-my-zsh/custom/plugins/zsh-autosuggestions"

    def test_everything_else_aborts(self, config: ProvisionConfig):
        warn_ids = {a.id for a in build_plan(config).actions if a.on_failure == "warn"}
        assert all(i.startswith("shell_framework:plugin:") for i in warn_ids)

    def test_zsh_custom_moves_plugins(self, config: ProvisionConfig):
        config.shell.custom_dir = "/srv/zsh-custom"
        dest = _actions(build_plan(config))["shell_framework:plugin:zsh-completions"].params["dest"]
        assert dest == "/srv/zsh-custom/plugins/zsh-completions"

    def test_oh_my_zsh_guarded(self, config: ProvisionConfig):
        params = _actions(build_plan(config))["shell_framework:oh_my_zsh"].params
        assert params["creates"] == f"{config.home}/.oh-my-zsh"
        assert params["args"] == ["--unattended"]

    def test_editor_backups_before_clone(self, config: ProvisionConfig):
        ids = [a.id for a in build_plan(config).get_stage("editor_config").actions]
        assert ids[:3] == [
            "editor_config:backup_config",
            "editor_config:backup_data",
            "editor_config:starter",
        ]

    def test_starship_init_after_zshrc(self, config: ProvisionConfig):
        ids = [a.id for a in build_plan(config).actions]
        assert ids.index("cli_tools:starship_init") > ids.index("shell_config:zshrc")
        params = _actions(build_plan(config))["cli_tools:starship_init"].params
        assert params["line"] == 'eval "$(starship init zsh)"'

    def test_docker_group_for_configured_user(self, config: ProvisionConfig):
        params = _actions(build_plan(config))["container_runtime:group"].params
        assert params == {"group": "docker", "user": "dev"}

    def test_sample_project_files(self, config: ProvisionConfig):
        stage = build_plan(config).get_stage("sample_project")
        paths = [a.params.get("path") for a in stage.actions if a.params.get("operation") == "write"]
        root = f"{config.home}/projects/typescript-starter"
        assert f"{root}/package.json" in paths
        assert f"{root}/src/index.ts" in paths
        assert stage.actions[-1].id == "sample_project:npm_install"

    def test_sample_project_disabled(self, config: ProvisionConfig):
        config.project.enabled = False
        assert build_plan(config).get_stage("sample_project").actions == []

    def test_sample_project_without_npm_install(self, config: ProvisionConfig):
        config.project.npm_install = False
        assert "sample_project:npm_install" not in _actions(build_plan(config))

    def test_plan_is_pure(self, config: ProvisionConfig, home):
        build_plan(config)
        assert list(home.iterdir()) == []


class TestTemplates:
    def test_json_payloads_parse(self):
        for payload in (
            templates.PACKAGE_JSON,
            templates.TSCONFIG_JSON,
            templates.ESLINTRC_JSON,
            templates.PRETTIERRC,
        ):
            json.loads(payload)

    def test_package_json(self):
        data = json.loads(templates.PACKAGE_JSON)
        assert data["name"] == "typescript-starter"
        assert data["scripts"]["test"] == 'echo "Add your test command here" && exit 0'

    def test_zshrc(self):
        assert templates.ZSHRC.startswith('export ZSH="$HOME/.oh-my-zsh"\n')
        assert '[ -s "$NVM_DIR/nvm.sh" ] && \\. "$NVM_DIR/nvm.sh"' in templates.ZSHRC
        assert "add-zsh-hook chpwd load-nvmrc\nload-nvmrc\n" in templates.ZSHRC
        assert "starship" not in templates.ZSHRC

    def test_payloads_end_with_newline(self):
        for payload in [templates.ZSHRC, *templates.NEOVIM_PLUGIN_FILES.values(), *templates.PROJECT_FILES.values()]:
            assert payload.endswith("\n")

    def test_nvmrc(self):
        assert templates.PROJECT_FILES[".nvmrc"] == "lts/*\n"
