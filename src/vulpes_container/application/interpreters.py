"""Application layer - Value interpretation pipeline.

Each stage decides whether it accepts a binding; the first stage that does
produces the value. Stages run in this order by default:

    resolved -> factory -> instance -> alias -> method -> descriptor -> construction -> raw
"""

import functools
import logging
import types
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from vulpes_container.domain import (
    BindingKind,
    CallArguments,
    ContainerError,
    InterpretationRequest,
    InvocationError,
    IResolver,
    IValueInterpreter,
    NotFoundError,
    ParamKind,
    Reference,
    StructuredDescriptor,
)

logger = logging.getLogger(__name__)

_FACTORY_TYPES = (
    types.FunctionType,
    types.MethodType,
    types.BuiltinFunctionType,
    functools.partial,
)
_SCALAR_TYPES = (str, bytes, int, float, bool, complex)


def is_factory(value: Any) -> bool:
    """Whether a value is a deferred callback rather than a built object."""
    return isinstance(value, _FACTORY_TYPES)


def is_instance(value: Any) -> bool:
    """Whether a value is an already-constructed object."""
    return (
        value is not None
        and not isinstance(value, _SCALAR_TYPES)
        and not isinstance(value, (type, Mapping, list, tuple, set, frozenset, Reference, StructuredDescriptor))
        and not is_factory(value)
    )


class ResolvedValueInterpreter(IValueInterpreter):
    """Returns values cached by an earlier resolution."""

    kind = BindingKind.RESOLVED

    def matches(self, request: InterpretationRequest, resolver: IResolver) -> bool:
        return request.binding.resolved

    def interpret(self, request: InterpretationRequest, resolver: IResolver) -> Any:
        return request.value


class FactoryInterpreter(IValueInterpreter):
    """Invokes a factory callback once and caches its result.

    The result is not interpreted further, unless the factory re-binds its own
    identifier, in which case the new binding is resolved instead.
    """

    kind = BindingKind.FACTORY

    def matches(self, request: InterpretationRequest, resolver: IResolver) -> bool:
        return is_factory(request.value)

    def interpret(self, request: InterpretationRequest, resolver: IResolver) -> Any:
        result = resolver.invoke_factory(request.value, request.identifier, request.alias)

        current = resolver.binding(request.identifier)
        if current is not None and current is not request.binding and not current.resolved:
            logger.debug("Factory for %s re-bound its identifier, resolving the new binding", request.identifier)
            return resolver.interpret(
                request.identifier,
                current,
                arguments=request.arguments,
                alias=request.alias,
                as_parameter=request.as_parameter,
            )

        resolver.store(request.identifier, result)
        return result


class InstanceInterpreter(IValueInterpreter):
    """Returns already-constructed objects as they are."""

    kind = BindingKind.INSTANCE

    def matches(self, request: InterpretationRequest, resolver: IResolver) -> bool:
        return is_instance(request.value)

    def interpret(self, request: InterpretationRequest, resolver: IResolver) -> Any:
        return request.value


class AliasInterpreter(IValueInterpreter):
    """Resolves through references to other identifiers.

    Accepts ``Reference`` markers, class objects, and strings naming a
    resolvable type or ``Type::member`` other than the identifier itself.
    """

    kind = BindingKind.REFERENCE

    def matches(self, request: InterpretationRequest, resolver: IResolver) -> bool:
        return self._target(request, resolver) is not None

    def interpret(self, request: InterpretationRequest, resolver: IResolver) -> Any:
        target = self._target(request, resolver)
        logger.debug("Resolving %s through alias %s", request.identifier, target)
        return resolver.resolve(target, request.arguments, alias=request.identifier)

    def _target(self, request: InterpretationRequest, resolver: IResolver) -> Optional[str]:
        value = request.value
        if isinstance(value, Reference):
            return value.identifier
        if isinstance(value, type):
            return resolver.type_name(value)
        if isinstance(value, str) and value != request.identifier and resolver.is_loadable(value):
            return value
        return None


class MethodInterpreter(IValueInterpreter):
    """Calls the method named by a two-item ``(owner, method)`` binding.

    An owner given as a type name or class resolves as ``Type::method``; an
    object owner has its method called with parameters bound as for
    ``Container.call``. Overrides scoped by the bound identifier apply in
    both cases.
    """

    kind = BindingKind.METHOD

    def matches(self, request: InterpretationRequest, resolver: IResolver) -> bool:
        return self._pair(request, resolver) is not None

    def interpret(self, request: InterpretationRequest, resolver: IResolver) -> Any:
        owner, method = self._pair(request, resolver)
        if isinstance(owner, str):
            target = resolver.member_identifier(owner, method)
            logger.debug("Resolving %s through method %s", request.identifier, target)
            return resolver.resolve(target, request.arguments, alias=request.identifier)
        return resolver.call(owner, method, request.arguments, alias=request.identifier)

    def _pair(self, request: InterpretationRequest, resolver: IResolver) -> Optional[Tuple[Any, str]]:
        value = request.value
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            return None
        owner, method = value
        if not isinstance(method, str) or not method.isidentifier():
            return None
        if isinstance(owner, type):
            return (resolver.type_name(owner), method) if hasattr(owner, method) else None
        if isinstance(owner, str):
            cls = resolver.load_type(owner)
            return (owner, method) if cls is not None and hasattr(cls, method) else None
        if is_instance(owner) and callable(getattr(owner, method, None)):
            return owner, method
        return None


class DescriptorInterpreter(IValueInterpreter):
    """Builds objects from structured descriptors.

    Parameters are tagged ``val`` (literal), ``env`` (environment variable),
    ``obj`` (identifier resolved through the container) or ``arg`` (taken from
    the caller arguments). A caller named argument matching a parameter's name
    always wins; unknown tags take the next unclaimed positional argument.
    """

    kind = BindingKind.DESCRIPTOR

    def matches(self, request: InterpretationRequest, resolver: IResolver) -> bool:
        return StructuredDescriptor.has_shape(request.value)

    def interpret(self, request: InterpretationRequest, resolver: IResolver) -> Any:
        descriptor = self._parse(request)
        class_name = descriptor.class_name or request.identifier
        cls = resolver.load_type(class_name)
        if cls is None:
            raise NotFoundError(request.identifier, reason=f"descriptor class {class_name} is not loadable")

        args, kwargs = self._arguments(descriptor, request.arguments, resolver)

        logger.debug("Building %s from descriptor of %s", class_name, request.identifier)
        try:
            result = cls(*args, **kwargs)
        except ContainerError:
            raise
        except Exception as e:
            raise InvocationError(request.identifier, e) from e

        return result

    def _parse(self, request: InterpretationRequest) -> StructuredDescriptor:
        if isinstance(request.value, StructuredDescriptor):
            return request.value
        try:
            return StructuredDescriptor.model_validate(request.value)
        except ValidationError as e:
            raise NotFoundError(request.identifier, reason=f"invalid descriptor: {e}") from e

    def _arguments(self, descriptor: StructuredDescriptor, arguments: CallArguments, resolver: IResolver):
        positional: List[Any] = list(arguments.positional)
        named: Dict[str, Any] = dict(arguments.named)
        args: List[Any] = []
        kwargs: Dict[str, Any] = {}

        for param in descriptor.params:
            if param.name is not None and param.name in named:
                value = named.pop(param.name)
            else:
                value = self._value(param.kind, param.value, positional, resolver)

            if param.name is None:
                args.append(value)
            else:
                kwargs[param.name] = value

        return args, kwargs

    def _value(self, kind: ParamKind, value: Any, positional: List[Any], resolver: IResolver) -> Any:
        if kind is ParamKind.VAL:
            return value
        if kind is ParamKind.ENV:
            return resolver.read_environment(value)
        if kind is ParamKind.OBJ:
            return resolver.resolve(value)
        if kind is ParamKind.ARG:
            if positional:
                return positional.pop(0)
            if isinstance(value, str) and resolver.has(value):
                return resolver.resolve(value)
            return value
        return positional.pop(0) if positional else None


class ConstructionInterpreter(IValueInterpreter):
    """Constructs the identifier itself.

    Accepts None, a string equal to the identifier, and mappings bound under
    a constructible identifier. Override mappings are picked up by the
    parameter binder; mappings under other identifiers are plain values.
    """

    kind = BindingKind.OVERRIDES

    def matches(self, request: InterpretationRequest, resolver: IResolver) -> bool:
        if request.as_parameter:
            return False
        value = request.value
        if value is None or value == request.identifier:
            return True
        return isinstance(value, Mapping) and resolver.is_constructible(request.identifier)

    def interpret(self, request: InterpretationRequest, resolver: IResolver) -> Any:
        return resolver.construct(request.identifier, request.arguments, request.alias)


class RawValueInterpreter(IValueInterpreter):
    """Terminal stage: returns plain values unchanged.

    Scalars only satisfy parameter-scoped overrides; requesting one as an
    entry is reported as not found.
    """

    kind = BindingKind.RAW

    def matches(self, request: InterpretationRequest, resolver: IResolver) -> bool:
        return True

    def interpret(self, request: InterpretationRequest, resolver: IResolver) -> Any:
        if request.as_parameter or not isinstance(request.value, _SCALAR_TYPES):
            return request.value
        raise NotFoundError(
            request.identifier,
            reason=f"a {type(request.value).__name__} value cannot satisfy a construction request",
        )


def default_interpreters() -> List[IValueInterpreter]:
    return [
        ResolvedValueInterpreter(),
        FactoryInterpreter(),
        InstanceInterpreter(),
        AliasInterpreter(),
        MethodInterpreter(),
        DescriptorInterpreter(),
        ConstructionInterpreter(),
        RawValueInterpreter(),
    ]


class InterpreterPipeline:
    """Ordered chain of value interpreters; the first match wins.

    Attributes:
        _interpreters: The stages, in order.
    """

    def __init__(self, interpreters: Optional[Iterable[IValueInterpreter]] = None) -> None:
        self._interpreters: List[IValueInterpreter] = (
            list(interpreters) if interpreters is not None else default_interpreters()
        )

    @property
    def interpreters(self) -> List[IValueInterpreter]:
        return list(self._interpreters)

    def prepend(self, *interpreters: IValueInterpreter) -> None:
        """Insert custom stages ahead of the default ones."""
        self._interpreters[:0] = interpreters

    def interpret(self, request: InterpretationRequest, resolver: IResolver) -> Any:
        for interpreter in self._interpreters:
            if interpreter.matches(request, resolver):
                return interpreter.interpret(request, resolver)
        raise NotFoundError(request.identifier, reason="no interpreter accepted the binding")
