"""
Type introspection module.

Supplies constructor and method parameter metadata to the resolution engine.
"""

from .introspector import SignatureIntrospector

__all__ = [
    "SignatureIntrospector",
]
