"""
Application layer - Resolution engine.

This layer contains the registry, parameter binding, value interpretation and
the container facade. It depends on the Domain layer and on the introspection
and environment adapters it is wired with.
"""

from .binder import ParameterBinder, coerce
from .circular_detector import CircularDependencyDetector
from .container import Container
from .identifier_transform import InterfaceSuffixTransform
from .interpreters import (
    AliasInterpreter,
    ConstructionInterpreter,
    DescriptorInterpreter,
    FactoryInterpreter,
    InstanceInterpreter,
    InterpreterPipeline,
    MethodInterpreter,
    RawValueInterpreter,
    ResolvedValueInterpreter,
    default_interpreters,
)
from .registry import Registry
from .resolver import Resolver

__all__ = [
    "Container",
    "Registry",
    "Resolver",
    "ParameterBinder",
    "coerce",
    "CircularDependencyDetector",
    "InterfaceSuffixTransform",
    # Interpreters
    "InterpreterPipeline",
    "ResolvedValueInterpreter",
    "FactoryInterpreter",
    "InstanceInterpreter",
    "AliasInterpreter",
    "MethodInterpreter",
    "DescriptorInterpreter",
    "ConstructionInterpreter",
    "RawValueInterpreter",
    "default_interpreters",
]
