from __future__ import annotations

import io
import pathlib
from typing import Any

import pytest
import watch_helpers

from vigil.config.models import GlobalConfig, RootConfig
from vigil.console import Console
from vigil.types import RunRequest
from vigil.watch.controller import WatchCollaborators, WatchController


@pytest.fixture
def fake_runner() -> watch_helpers.FakeRunner:
    return watch_helpers.FakeRunner()


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def roots(tmp_path: pathlib.Path) -> list[pathlib.Path]:
    """Two project roots, each with one test file and one source module."""
    paths = list[pathlib.Path]()
    for name in ("app", "lib"):
        root = tmp_path / name
        (root / "tests").mkdir(parents=True)
        (root / f"{name}.py").write_text("")
        (root / "tests" / f"test_{name}.py").write_text("")
        paths.append(root)
    return paths


@pytest.fixture
def global_config(tmp_path: pathlib.Path, roots: list[pathlib.Path]) -> GlobalConfig:
    return GlobalConfig(
        root_dir=tmp_path,
        roots=[RootConfig(root_dir=root) for root in roots],
    )


@pytest.fixture
def make_controller(
    global_config: GlobalConfig, fake_runner: watch_helpers.FakeRunner, output: io.StringIO
) -> watch_helpers.MakeController:
    """Factory for controllers wired to the fake runner and a captured console."""

    def _make(
        *,
        config: GlobalConfig | None = None,
        request: RunRequest | None = None,
        **collaborators: Any,
    ) -> WatchController:
        config = config or global_config
        return WatchController(
            config,
            watch_helpers.contexts_for(config),
            request or RunRequest(),
            Console(output, color=False, interactive=False),
            WatchCollaborators(run_tests=fake_runner, **collaborators),
        )

    return _make
