"""
Infrastructure layer - External collaborators.

This layer contains the adapters the engine consumes (type introspection,
environment access) and tooling built on the container (binding collection,
testing helpers). ``testing`` builds on the Application layer, which itself
imports this package, so it is loaded on first attribute access.
"""

import importlib
from typing import Any

from . import collector, environment, introspection

__all__ = [
    "collector",
    "environment",
    "introspection",
    "testing",
]


def __getattr__(name: str) -> Any:
    if name == "testing":
        return importlib.import_module(f"{__name__}.testing")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
