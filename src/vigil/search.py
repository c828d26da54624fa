from __future__ import annotations

import fnmatch
import functools
import logging
import pathlib
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from vigil.context import Context

logger = logging.getLogger(__name__)


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a user-entered filter, falling back to a literal match if invalid."""
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error:
        logger.debug(f"Pattern {pattern!r} is not a valid regex, matching literally")
        return re.compile(re.escape(pattern), re.IGNORECASE)


class SearchSource:
    """Answers which test files of a context match a pattern."""

    _context: Context

    def __init__(self, context: Context) -> None:
        self._context = context

    @property
    def context(self) -> Context:
        return self._context

    @functools.cached_property
    def test_files(self) -> list[pathlib.Path]:
        """All files in the context matching the root's test_match globs, sorted."""
        globs = self._context.config.test_match
        return sorted(
            path
            for path in self._context.files
            if any(fnmatch.fnmatch(path.name, glob) for glob in globs)
        )

    def find_matching_tests(self, pattern: str) -> list[pathlib.Path]:
        """Test files whose path matches pattern. Empty pattern matches all."""
        if not pattern:
            return list(self.test_files)
        regex = compile_pattern(pattern)
        return [path for path in self.test_files if regex.search(str(path))]

    def find_related_tests(self, changed: Iterable[pathlib.Path]) -> list[pathlib.Path]:
        """Test files related to changed files.

        A changed test file is related to itself; a changed source module
        ``foo.py`` is related to test files whose name contains ``foo``.
        """
        tests = set(self.test_files)
        related = set[pathlib.Path]()
        for path in changed:
            if path in tests:
                related.add(path)
                continue
            stem = path.stem
            if not stem:
                continue
            related.update(test for test in tests if stem in test.stem)
        return sorted(related)
