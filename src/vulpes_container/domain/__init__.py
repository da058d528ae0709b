"""
Domain layer - Core models, contracts and errors.

This layer contains the fundamental rules and models of identifier resolution.
It has no dependencies on other layers.
"""

from .enums import BindingKind, CollectFlags, ErrorCode, ParamKind
from .exceptions import (
    CircularDependencyError,
    ConstructionError,
    ContainerError,
    InvocationError,
    NotFoundError,
)
from .interfaces import (
    IContainer,
    IEnvironmentReader,
    Identifier,
    IIdentifierTransform,
    IParameterBinder,
    IResolver,
    ITypeIntrospector,
    IValueInterpreter,
)
from .models import (
    MIXED_TYPE_NAMES,
    Binding,
    BoundArguments,
    CallArguments,
    DescriptorParam,
    InterpretationRequest,
    ParameterPlan,
    ParameterSpec,
    Reference,
    ResolutionContext,
    StructuredDescriptor,
    ref,
)
from .settings import ContainerSettings

__all__ = [
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
    # Interfaces
    "Identifier",
    "IContainer",
    "IEnvironmentReader",
    "IIdentifierTransform",
    "IParameterBinder",
    "IResolver",
    "ITypeIntrospector",
    "IValueInterpreter",
    # Models
    "MIXED_TYPE_NAMES",
    "Binding",
    "BoundArguments",
    "CallArguments",
    "DescriptorParam",
    "InterpretationRequest",
    "ParameterPlan",
    "ParameterSpec",
    "Reference",
    "ResolutionContext",
    "StructuredDescriptor",
    "ref",
    # Settings
    "ContainerSettings",
]
