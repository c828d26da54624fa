from __future__ import annotations

import pathlib
from typing import TYPE_CHECKING

import ruamel.yaml

from vigil import cli
from vigil.config import load_config

if TYPE_CHECKING:
    from click.testing import CliRunner


def test_init_creates_config(runner: CliRunner, tmp_path: pathlib.Path) -> None:
    with runner.isolated_filesystem(temp_dir=tmp_path):
        result = runner.invoke(cli.cli, ["init"])

        assert result.exit_code == 0
        assert pathlib.Path("vigil.yaml").is_file()
        assert "Created vigil.yaml." in result.output
        assert "vigil watch" in result.output


def test_init_writes_default_settings(runner: CliRunner, tmp_path: pathlib.Path) -> None:
    with runner.isolated_filesystem(temp_dir=tmp_path):
        runner.invoke(cli.cli, ["init"])

        data = ruamel.yaml.YAML(typ="safe").load(pathlib.Path("vigil.yaml"))

    assert data == {
        "test_command": ["pytest"],
        "roots": [{"root_dir": ".", "test_match": ["test_*.py", "*_test.py"]}],
        "collect_coverage": False,
        "watch": {"debounce": 300},
    }


def test_init_output_loads_as_config(runner: CliRunner, tmp_path: pathlib.Path) -> None:
    """The generated file is accepted by the config loader."""
    with runner.isolated_filesystem(temp_dir=tmp_path) as cwd:
        runner.invoke(cli.cli, ["init"])

        config = load_config(pathlib.Path(cwd))

    assert [root.root_dir for root in config.roots] == [pathlib.Path(cwd)]
    assert config.test_command == ["pytest"]


def test_init_refuses_to_overwrite(runner: CliRunner, tmp_path: pathlib.Path) -> None:
    with runner.isolated_filesystem(temp_dir=tmp_path):
        pathlib.Path("vigil.yaml").write_text("collect_coverage: true\n")

        result = runner.invoke(cli.cli, ["init"])

        assert result.exit_code == 1
        assert "vigil.yaml already exists" in result.output
        assert "Tip: Use --force to overwrite it" in result.output
        assert pathlib.Path("vigil.yaml").read_text() == "collect_coverage: true\n"


def test_init_force_overwrites(runner: CliRunner, tmp_path: pathlib.Path) -> None:
    with runner.isolated_filesystem(temp_dir=tmp_path):
        pathlib.Path("vigil.yaml").write_text("collect_coverage: true\n")

        result = runner.invoke(cli.cli, ["init", "--force"])

        assert result.exit_code == 0
        assert "test_command" in pathlib.Path("vigil.yaml").read_text()
