import logging
import pathlib
from collections.abc import Mapping
from typing import Any

import pydantic
import ruamel.yaml

from vigil import exceptions, project
from vigil.config import models

logger = logging.getLogger(__name__)


def get_config_path(root: pathlib.Path | None = None) -> pathlib.Path:
    """Get project-level config path (<root>/vigil.yaml)."""
    return (root or project.get_project_root()) / project.CONFIG_FILE_NAME


def load_config_file(path: pathlib.Path) -> dict[str, Any]:
    """Load YAML config as plain dict, returns empty dict if missing."""
    if not path.exists():
        return {}

    try:
        yaml = ruamel.yaml.YAML(typ="safe")
        with path.open() as f:
            data = yaml.load(f)
    except ruamel.yaml.YAMLError as e:
        raise exceptions.ConfigError(f"Invalid YAML in {path}: {e}") from e
    except PermissionError:
        raise exceptions.ConfigError(f"Permission denied reading {path}") from None
    except OSError as e:
        raise exceptions.ConfigError(f"Error reading {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise exceptions.ConfigError(f"Expected a mapping at the top of {path}")
    return dict(data)


def load_config(
    root: pathlib.Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> models.GlobalConfig:
    """Build the session configuration from vigil.yaml plus CLI overrides.

    Overrides whose value is None are ignored so unset CLI flags never mask
    values from the file.
    """
    root = root or project.get_project_root()
    path = get_config_path(root)
    data = load_config_file(path)
    if data:
        logger.debug(f"Loaded config from {path}")

    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value
    data["root_dir"] = root

    try:
        return models.GlobalConfig.model_validate(data)
    except pydantic.ValidationError as e:
        raise exceptions.ConfigValidationError(f"Invalid configuration in {path}:\n{e}") from e
