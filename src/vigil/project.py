"""Project root detection.

Finds the project root by locating vigil.yaml or a .git directory.
"""

import logging
import pathlib

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "vigil.yaml"

_project_root_cache: pathlib.Path | None = None


def find_project_root(start: pathlib.Path | None = None) -> pathlib.Path:
    """Walk up from start (default: cwd) to find vigil.yaml or .git."""
    current = (start or pathlib.Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILE_NAME).exists() or (parent / ".git").exists():
            logger.debug(f"Found project root: {parent}")
            return parent

    logger.warning("No project markers (vigil.yaml or .git) found, using current directory")
    return current


def get_project_root() -> pathlib.Path:
    """Get project root (cached after first call)."""
    global _project_root_cache
    if _project_root_cache is None:
        _project_root_cache = find_project_root()
        logger.debug(f"Project root: {_project_root_cache}")
    return _project_root_cache
