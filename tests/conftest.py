from __future__ import annotations

import pathlib
import subprocess
from collections.abc import Callable, Generator
from typing import TYPE_CHECKING

import click.testing
import pytest

from vigil import project

if TYPE_CHECKING:
    import pytest_mock

# Type alias for git_repo fixture: (repo_path, commit_fn)
GitRepo = tuple[pathlib.Path, Callable[[str], str]]


@pytest.fixture(autouse=True)
def reset_project_root() -> Generator[None]:
    """Reset the cached project root around every test."""
    project._project_root_cache = None
    yield
    project._project_root_cache = None


@pytest.fixture(autouse=True)
def no_ci_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make terminal detection independent of the CI the suite runs under."""
    for name in ("CI", "CONTINUOUS_INTEGRATION", "BUILD_NUMBER", "RUN_ID", "GITHUB_ACTIONS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)


@pytest.fixture
def set_project_root(
    tmp_path: pathlib.Path, mocker: pytest_mock.MockerFixture
) -> Generator[pathlib.Path]:
    """Point the project root at tmp_path."""
    mocker.patch.object(project, "_project_root_cache", tmp_path)
    (tmp_path / ".git").mkdir(exist_ok=True)
    yield tmp_path


@pytest.fixture
def runner() -> click.testing.CliRunner:
    """Create a CLI runner for testing."""
    return click.testing.CliRunner()


def init_git_repo(path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Initialize a git repo with user config at the given path."""
    abs_path = path.resolve()
    config_file = abs_path.parent / f".gitconfig_test_{abs_path.name}"
    config_file.write_text("[user]\n\temail = test@test.com\n\tname = Test\n")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(config_file))
    subprocess.run(["git", "init"], cwd=abs_path, check=True, capture_output=True)


@pytest.fixture
def git_repo(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> GitRepo:
    """Create a git repo in tmp_path, return (path, commit_fn)."""
    init_git_repo(tmp_path, monkeypatch)

    def commit(message: str) -> str:
        subprocess.run(["git", "add", "."], cwd=tmp_path, check=True, capture_output=True)
        subprocess.run(
            ["git", "commit", "-m", message], cwd=tmp_path, check=True, capture_output=True
        )
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"], cwd=tmp_path, capture_output=True, text=True, check=True
        )
        return result.stdout.strip()

    return tmp_path, commit
