"""
Environment module.

Provides environment variable access for ``env``-tagged descriptor parameters.
"""

from .reader import EnvironmentReader

__all__ = [
    "EnvironmentReader",
]
