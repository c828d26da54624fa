from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0-dev"

if TYPE_CHECKING:
    from vigil.types import RunRequest as RunRequest
    from vigil.types import WatchMode as WatchMode
    from vigil.watch import watch as watch

# Lazy import mapping for runtime
_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "RunRequest": ("vigil.types", "RunRequest"),
    "WatchMode": ("vigil.types", "WatchMode"),
    "watch": ("vigil.watch", "watch"),
}


def __getattr__(name: str) -> object:
    """Lazily import public API members on first access."""
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        import importlib

        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


def __dir__() -> list[str]:
    """List available attributes including lazy imports."""
    return list(globals().keys()) + list(_LAZY_IMPORTS.keys())
