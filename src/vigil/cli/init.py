from __future__ import annotations

import pathlib

import click
import ruamel.yaml

from vigil import exceptions, project
from vigil.cli import decorators as cli_decorators
from vigil.config import models


def default_config_document() -> dict[str, object]:
    """The settings written by `vigil init`, with their default values."""
    return {
        "test_command": ["pytest"],
        "roots": [{"root_dir": ".", "test_match": list(models.DEFAULT_TEST_MATCH)}],
        "collect_coverage": False,
        "watch": {"debounce": models.WatchConfig().debounce},
    }


@cli_decorators.vigil_command()
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing vigil.yaml")
def init(force: bool) -> None:
    """Create a vigil.yaml for this project."""
    path = pathlib.Path.cwd() / project.CONFIG_FILE_NAME

    if path.exists() and not force:
        raise exceptions.AlreadyInitializedError(f"{path.name} already exists in {path.parent}")

    yaml = ruamel.yaml.YAML()
    yaml.default_flow_style = False
    with path.open("w") as f:
        yaml.dump(default_config_document(), f)

    click.echo(f"Created {path.name}.")
    click.echo("Run 'vigil watch' to start watching.")
