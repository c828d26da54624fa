from __future__ import annotations

import dataclasses
import logging
import os
import pathlib
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vigil.config.models import GlobalConfig, RootConfig

logger = logging.getLogger(__name__)

# Directories never worth indexing
_SKIP_DIRS = frozenset({".venv", "venv", ".env", "env", "node_modules", ".git", "__pycache__"})


@dataclasses.dataclass(frozen=True)
class Context:
    """A root's configuration plus the file index snapshot it was built from.

    Contexts are never mutated. When a root's files change, the controller
    builds a new Context and swaps it into the root's slot.
    """

    config: RootConfig
    files: frozenset[pathlib.Path]


def create_context(config: RootConfig, files: frozenset[pathlib.Path]) -> Context:
    return Context(config=config, files=frozenset(files))


def scan_files(root: pathlib.Path) -> frozenset[pathlib.Path]:
    """Walk root and return every regular file, skipping VCS and venv dirs."""
    found = set[pathlib.Path]()
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in _SKIP_DIRS]
        base = pathlib.Path(dirpath)
        found.update(base / name for name in filenames)
    logger.debug(f"Indexed {len(found)} files under {root}")
    return frozenset(found)


def is_valid_path(global_config: GlobalConfig, config: RootConfig, path: str) -> bool:
    """Decide whether a changed file should trigger a rerun for a root.

    Coverage output and snapshot files are written by runs themselves and
    never trigger a rerun. Neither do files matching the root's ignore
    patterns.
    """
    coverage_dir = str(global_config.resolved_coverage_directory)
    if path.startswith(coverage_dir):
        return False
    if any(re.search(pattern, path) for pattern in config.watch_path_ignore_patterns):
        return False
    return not path.endswith(config.snapshot_extension)
