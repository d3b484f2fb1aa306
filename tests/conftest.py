"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from devsetup.adapters.base import ExecutionContext
from devsetup.adapters.shell.runner import CommandResult
from devsetup.core.models.action import Action
from devsetup.core.models.config import ProvisionConfig


class FakeRunner:
    """Recording runner double.

    Commands succeed with empty output unless a rule matches. A rule
    matches when its tokens appear contiguously anywhere in the argv;
    the most recently added rule wins.
    """

    def __init__(self):
        self.calls: list[tuple[list[str], dict]] = []
        self._rules: list[tuple[list[str], int, str, str]] = []

    def on(self, *tokens: str, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self._rules.append((list(tokens), returncode, stdout, stderr))

    def __call__(self, argv, **kwargs) -> CommandResult:
        argv = list(argv)
        self.calls.append((argv, kwargs))
        for tokens, rc, out, err in reversed(self._rules):
            if _contains(argv, tokens):
                return CommandResult(argv=argv, returncode=rc, stdout=out, stderr=err)
        return CommandResult(argv=argv, returncode=0)

    @property
    def argvs(self) -> list[list[str]]:
        return [argv for argv, _ in self.calls]

    def called(self, *tokens: str) -> bool:
        return any(_contains(argv, list(tokens)) for argv in self.argvs)


def _contains(argv: list[str], tokens: list[str]) -> bool:
    n = len(tokens)
    return any(argv[i : i + n] == tokens for i in range(len(argv) - n + 1))


def make_context(action_id: str = "test", adapter: str = "mock", **params) -> ExecutionContext:
    """Context for calling an adapter directly, with sudo disabled."""
    return ExecutionContext(
        action=Action(id=action_id, adapter=adapter, params=params),
        home="/home/dev",
        user="dev",
        use_sudo=False,
        params=params,
    )


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """An empty home directory for the target user."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    return home_dir


@pytest.fixture
def config(home: Path) -> ProvisionConfig:
    """Default configuration rooted in a temp home, sudo disabled."""
    return ProvisionConfig(home=str(home), user="dev", use_sudo=False)


@pytest.fixture
def non_root(monkeypatch):
    """Make the preflight check see an unprivileged user."""
    import os

    monkeypatch.setattr(os, "geteuid", lambda: 1000)


@pytest.fixture
def make_ctx():
    return make_context
