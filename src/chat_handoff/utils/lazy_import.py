"""Deferred imports for optional infrastructure drivers."""

from collections.abc import Callable
from importlib import import_module

__all__ = [
    "lazy_import",
]


def lazy_import(
    module_name: str,
    name: str | None = None,
) -> Callable[[], object]:
    """Return a loader that imports a module, or one attribute of it, on first call.

    Keeps driver imports (motor, ...) out of module import time so the core
    can be used and tested without them.
    """

    def _load() -> object:
        mod = import_module(module_name)
        return getattr(mod, name) if name else mod

    return _load
