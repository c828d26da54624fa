from __future__ import annotations

import logging
import os
import pathlib

import dulwich.errors
import dulwich.porcelain
import dulwich.repo

logger = logging.getLogger(__name__)


def find_git_root(start: pathlib.Path) -> pathlib.Path | None:
    """Walk up to find .git directory."""
    for parent in [start, *start.parents]:
        if (parent / ".git").exists():
            return parent
    return None


def changed_files(root: pathlib.Path) -> list[pathlib.Path] | None:
    """Files with staged, unstaged or untracked changes under root.

    Returns None when root is not inside a git repository, so callers can
    tell "nothing changed" apart from "cannot tell".
    """
    root = root.resolve()
    git_root = find_git_root(root)
    if git_root is None:
        logger.debug("No git repository found")
        return None

    try:
        repo = dulwich.repo.Repo(str(git_root))
    except dulwich.errors.NotGitRepository:
        logger.debug(f"Not a git repository: {git_root}")
        return None

    try:
        status = dulwich.porcelain.status(repo, untracked_files="all")
    except KeyError:
        # No HEAD commit yet
        logger.debug(f"Repository at {git_root} has no commits")
        return None
    finally:
        repo.close()

    raw_paths = list[str | bytes]()
    for paths in status.staged.values():
        raw_paths.extend(paths)
    raw_paths.extend(status.unstaged)
    raw_paths.extend(status.untracked)

    changed = set[pathlib.Path]()
    for raw in raw_paths:
        path = git_root / os.fsdecode(raw)
        if path.is_relative_to(root):
            changed.add(path)
    return sorted(changed)
