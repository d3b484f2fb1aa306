"""
Configuration loader — reads the optional config.yml into ProvisionConfig.

No file is required: the built-in defaults describe the stock
workstation. A file only overrides what it names. Identity and a few
tool locations come from the environment (``HOME``, ``USER``,
``ZSH_CUSTOM``, ``NVM_DIR``) unless the file pins them explicitly.
"""

from __future__ import annotations

import getpass
import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml

from devsetup.core.models.config import ProvisionConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DEVSETUP_CONFIG"
CONFIG_FILE = "config.yml"


class ConfigError(Exception):
    """Raised when the configuration file is unreadable or invalid."""


def default_config_path(environ: Mapping[str, str] | None = None) -> Path:
    """``$XDG_CONFIG_HOME/devsetup/config.yml`` (or ``~/.config/...``)."""
    env = os.environ if environ is None else environ
    base = env.get("XDG_CONFIG_HOME") or str(Path(env.get("HOME") or Path.home()) / ".config")
    return Path(base) / "devsetup" / CONFIG_FILE


def find_config_file(environ: Mapping[str, str] | None = None) -> Path | None:
    """Locate a config file: ``$DEVSETUP_CONFIG`` first, then the XDG default.

    Returns:
        Path to the config file, or None if there is none.
    """
    env = os.environ if environ is None else environ

    explicit = env.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit)

    candidate = default_config_path(env)
    if candidate.is_file():
        return candidate
    return None


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ProvisionConfig:
    """Load and validate the provisioning configuration.

    Args:
        path: Explicit config path. If None, searches the usual places
            and falls back to built-in defaults.
        environ: Environment mapping (default: ``os.environ``).

    Returns:
        Validated ProvisionConfig with ``home`` and ``user`` resolved.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    env = os.environ if environ is None else environ
    explicit = path is not None or bool(env.get(CONFIG_ENV_VAR))

    if path is None:
        path = find_config_file(env)

    data: dict = {}
    if path is not None:
        if not path.is_file():
            if explicit:
                raise ConfigError(f"Config file not found: {path}")
        else:
            data = _read_yaml(path)

    try:
        config = ProvisionConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    _apply_environment(config, env)

    logger.debug(
        "Loaded config (file=%s, home=%s, user=%s)",
        path if data else "<defaults>",
        config.home,
        config.user,
    )
    return config


def _read_yaml(path: Path) -> dict:
    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def _apply_environment(config: ProvisionConfig, env: Mapping[str, str]) -> None:
    """Fill identity and tool locations that the file left unset."""
    if not config.home:
        config.home = env.get("HOME") or str(Path.home())
    if not config.user:
        config.user = env.get("USER") or getpass.getuser()

    # Explicit file values win over the environment.
    if "custom_dir" not in config.shell.model_fields_set:
        zsh_custom = env.get("ZSH_CUSTOM")
        if zsh_custom:
            config.shell.custom_dir = zsh_custom
        elif "oh_my_zsh_dir" in config.shell.model_fields_set:
            config.shell.custom_dir = f"{config.shell.oh_my_zsh_dir.rstrip('/')}/custom"

    if "nvm_dir" not in config.node.model_fields_set:
        nvm_dir = env.get("NVM_DIR")
        if nvm_dir:
            config.node.nvm_dir = nvm_dir
