import pathlib
import re
from typing import Annotated, Any, Self

import pydantic

from vigil.types import UpdateSnapshot

DEFAULT_TEST_MATCH = ["test_*.py", "*_test.py"]
DEFAULT_SNAPSHOT_EXTENSION = ".snap"


class WatchConfig(pydantic.BaseModel):
    """Watch mode configuration."""

    model_config = pydantic.ConfigDict(frozen=True)

    debounce: Annotated[int, pydantic.Field(ge=0)] = 300


class RootConfig(pydantic.BaseModel):
    """Configuration of a single watched root."""

    model_config = pydantic.ConfigDict(frozen=True)

    root_dir: pathlib.Path
    test_match: list[str] = pydantic.Field(default_factory=lambda: list(DEFAULT_TEST_MATCH))
    watch_path_ignore_patterns: list[str] = pydantic.Field(default_factory=list)
    snapshot_extension: str = DEFAULT_SNAPSHOT_EXTENSION

    @pydantic.field_validator("watch_path_ignore_patterns")
    @classmethod
    def validate_ignore_patterns(cls, v: list[str]) -> list[str]:
        """Reject ignore patterns that are not valid regular expressions."""
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                msg = f"Invalid watch_path_ignore_patterns entry '{pattern}': {e}"
                raise ValueError(msg) from None
        return v

    @pydantic.field_validator("test_match")
    @classmethod
    def validate_test_match(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("test_match must contain at least one glob")
        return v


class GlobalConfig(pydantic.BaseModel):
    """Complete, immutable run configuration.

    A run gets its own snapshot produced with ``model_copy`` so nothing a
    command does afterwards can leak into a run already in flight.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    root_dir: pathlib.Path
    roots: list[RootConfig] = pydantic.Field(default_factory=list)
    collect_coverage: bool = False
    coverage_directory: pathlib.Path | None = None
    update_snapshot: UpdateSnapshot = UpdateSnapshot.NEW
    test_path_pattern: str = ""
    test_name_pattern: str = ""
    no_scm: bool = False
    test_command: list[str] = pydantic.Field(default_factory=lambda: ["pytest"])
    watch: WatchConfig = pydantic.Field(default_factory=WatchConfig)

    @pydantic.model_validator(mode="before")
    @classmethod
    def resolve_roots(cls, data: Any) -> Any:
        """Default to a single root at root_dir and anchor relative root dirs."""
        if not isinstance(data, dict) or "root_dir" not in data:
            return data
        base = pathlib.Path(data["root_dir"])
        roots = data.get("roots") or [{"root_dir": base}]
        resolved = list[Any]()
        for root in roots:
            if isinstance(root, dict):
                root_dir = pathlib.Path(root.get("root_dir", "."))
                if not root_dir.is_absolute():
                    root_dir = base / root_dir
                root = {**root, "root_dir": root_dir}
            resolved.append(root)
        return {**data, "roots": resolved}

    @pydantic.field_validator("test_command")
    @classmethod
    def validate_test_command(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("test_command cannot be empty")
        return v

    @property
    def scm_enabled(self) -> bool:
        return not self.no_scm

    @property
    def resolved_coverage_directory(self) -> pathlib.Path:
        """Coverage output directory, defaulting to <root_dir>/coverage."""
        if self.coverage_directory is None:
            return self.root_dir / "coverage"
        if self.coverage_directory.is_absolute():
            return self.coverage_directory
        return self.root_dir / self.coverage_directory

    @classmethod
    def for_root(cls, root_dir: pathlib.Path) -> Self:
        """Default configuration for a project rooted at root_dir."""
        return cls(root_dir=root_dir)
