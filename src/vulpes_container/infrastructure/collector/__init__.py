"""
Binding collection module.

Discovers interface -> implementation bindings by walking a package.
"""

from .collector import BindingCollector

__all__ = [
    "BindingCollector",
]
