"""
vulpes-container: Identifier-based dependency resolution engine with auto-wiring.

Public API exports for the vulpes-container package.
"""

# Application exports
from vulpes_container.application.container import Container

# Domain exports
from vulpes_container.domain.enums import BindingKind, CollectFlags, ErrorCode, ParamKind
from vulpes_container.domain.exceptions import (
    CircularDependencyError,
    ConstructionError,
    ContainerError,
    InvocationError,
    NotFoundError,
)
from vulpes_container.domain.interfaces import IContainer, IValueInterpreter
from vulpes_container.domain.models import Reference, StructuredDescriptor, ref
from vulpes_container.domain.settings import ContainerSettings

__version__ = "0.1.0"

__all__ = [
    # Container
    "Container",
    "ContainerSettings",
    "IContainer",
    "IValueInterpreter",
    # Models
    "Reference",
    "StructuredDescriptor",
    "ref",
    # Enums
    "BindingKind",
    "CollectFlags",
    "ErrorCode",
    "ParamKind",
    # Exceptions
    "ContainerError",
    "NotFoundError",
    "CircularDependencyError",
    "ConstructionError",
    "InvocationError",
]
