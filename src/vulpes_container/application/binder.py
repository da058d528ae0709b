import logging
import re
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Tuple

from vulpes_container.domain import (
    BoundArguments,
    CallArguments,
    CircularDependencyError,
    IIdentifierTransform,
    IParameterBinder,
    IResolver,
    NotFoundError,
    ParameterPlan,
    ParameterSpec,
    Reference,
    StructuredDescriptor,
)
from vulpes_container.application.registry import Registry
from vulpes_container.application.interpreters import is_factory

logger = logging.getLogger(__name__)

_INT_PREFIX = re.compile(r"\s*[+-]?\d+")
_FLOAT_PREFIX = re.compile(r"\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


def to_bool(value: Any) -> bool:
    """``""`` and ``"0"`` are False, any other string is True."""
    if isinstance(value, str):
        return value not in ("", "0")
    return bool(value)


def to_int(value: Any) -> int:
    """Leading integer of a string (0 when there is none), ``int()`` otherwise."""
    if isinstance(value, str):
        match = _INT_PREFIX.match(value)
        return int(match.group()) if match else 0
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(bool(value))


def to_float(value: Any) -> float:
    """Leading float of a string (0.0 when there is none), ``float()`` otherwise."""
    if isinstance(value, str):
        match = _FLOAT_PREFIX.match(value)
        return float(match.group()) if match else 0.0
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return float(bool(value))


def to_str(value: Any) -> str:
    return "" if value is None else str(value)


COERCIONS: Dict[str, Callable[[Any], Any]] = {
    "bool": to_bool,
    "boolean": to_bool,
    "int": to_int,
    "integer": to_int,
    "float": to_float,
    "double": to_float,
    "str": to_str,
    "string": to_str,
}


def coerce(type_name: Optional[str], value: Any, allows_null: bool = False) -> Any:
    """Coerce a value to a builtin declared type. Unknown and mixed types pass through.

    Example:
        >>> coerce("bool", "0"), coerce("int", "14"), coerce("Any", "14")
        (False, 14, '14')
    """
    if value is None and allows_null:
        return None
    converter = COERCIONS.get(type_name or "")
    return converter(value) if converter else value


class ParameterBinder(IParameterBinder):
    """Computes constructor and method arguments.

    For each formal parameter, in declaration order, the first source that
    yields a value wins:

    1. An explicit argument: caller positional arguments fill parameters in
       order, caller named arguments and override mappings stored under the
       identifier or its alias are matched by name.
    2. A registry override, most specific key first.
    3. The declared default of an optional parameter. This covers
       ``self_buildable`` parameters, whose default object is kept rather
       than replaced by an auto-wired instance.
    4. Recursive resolution of a non-builtin declared type.
    5. None, when the declared type allows it.

    Otherwise the parameter is reported missing.

    Attributes:
        _resolver: Resolves references and declared types recursively.
        _registry: Source of override bindings.
        _transform: Interface naming convention used for type-level overrides.
        _separator: Separator of scoped override keys.
    """

    def __init__(
        self,
        resolver: IResolver,
        registry: Registry,
        transform: IIdentifierTransform,
        member_separator: str = "::",
    ) -> None:
        self._resolver = resolver
        self._registry = registry
        self._transform = transform
        self._separator = member_separator

    def bind(
        self,
        plan: ParameterPlan,
        arguments: CallArguments,
        id_scope: str,
        alias_scope: Optional[str],
    ) -> BoundArguments:
        explicit = self._explicit_arguments(plan, arguments, id_scope, alias_scope)
        bound = BoundArguments()

        for spec in plan.parameters:
            value = self._bind_parameter(spec, plan, explicit, id_scope, alias_scope)
            if spec.positional_only:
                bound.args.append(value)
            else:
                bound.kwargs[spec.name] = value

        return bound

    def _explicit_arguments(
        self,
        plan: ParameterPlan,
        arguments: CallArguments,
        id_scope: str,
        alias_scope: Optional[str],
    ) -> Dict[str, Any]:
        explicit: Dict[str, Any] = {}

        for scope in self._override_scopes(plan, id_scope, alias_scope):
            binding = self._registry.get_raw(scope)
            if binding is not None and not binding.resolved and _is_overrides(binding.value):
                explicit.update(binding.value)

        for spec, value in zip(plan.parameters, arguments.positional):
            explicit[spec.name] = value
        explicit.update(arguments.named)
        return explicit

    def _override_scopes(self, plan: ParameterPlan, id_scope: str, alias_scope: Optional[str]) -> List[str]:
        scopes = [id_scope]
        if plan.is_constructor:
            scopes.append(f"{id_scope}{self._separator}__init__")
        if alias_scope and alias_scope != id_scope:
            scopes.append(alias_scope)
            if plan.is_constructor:
                scopes.append(f"{alias_scope}{self._separator}__init__")
        return scopes

    def _bind_parameter(
        self,
        spec: ParameterSpec,
        plan: ParameterPlan,
        explicit: Dict[str, Any],
        id_scope: str,
        alias_scope: Optional[str],
    ) -> Any:
        type_name = self._select_type(spec)

        if spec.name in explicit:
            value = self._materialize(spec, explicit[spec.name], id_scope, alias_scope)
            return value if spec.is_mixed else coerce(type_name, value, spec.allows_null)

        found, value = self._lookup_override(spec, type_name, id_scope, alias_scope)
        if found:
            return value if spec.is_mixed else coerce(type_name, value, spec.allows_null)

        if spec.is_optional:
            return spec.default

        if type_name and not spec.is_builtin:
            if plan.is_constructor and type_name in (plan.type_name, id_scope, alias_scope):
                raise CircularDependencyError([id_scope, type_name], parameter=spec.name)
            if self._resolver.has(type_name):
                logger.debug("Auto-wiring %s.%s with %s", id_scope, spec.name, type_name)
                return self._resolver.resolve(type_name)

        if spec.allows_null:
            return None

        raise NotFoundError(id_scope, parameter=spec.name)

    def _select_type(self, spec: ParameterSpec) -> Optional[str]:
        """Pick the first union member with a binding, else the last member."""
        for member in spec.union_members:
            if self._registry.contains(member):
                return member
        return spec.type_name

    def _materialize(self, spec: ParameterSpec, value: Any, id_scope: str, alias_scope: Optional[str]) -> Any:
        """Resolve references found among explicit arguments."""
        if isinstance(value, Reference):
            return self._resolver.resolve(value.identifier)
        if spec.is_builtin:
            return value
        if isinstance(value, type):
            return self._resolver.resolve(self._resolver.type_name(value))
        if is_factory(value):
            return self._resolver.invoke_factory(value, id_scope, alias_scope)
        if isinstance(value, str) and self._resolver.has(value):
            return self._resolver.resolve(value)
        return value

    def _lookup_override(
        self,
        spec: ParameterSpec,
        type_name: Optional[str],
        id_scope: str,
        alias_scope: Optional[str],
    ) -> Tuple[bool, Any]:
        """Find a registry override, most specific key first.

        Order: ``alias::param``, ``id::param``, ``alias::type``, ``id::type``,
        ``type::param``, ``type``, suffix-stripped ``type``.
        """
        sep = self._separator
        keys = []
        if alias_scope:
            keys.append(f"{alias_scope}{sep}{spec.name}")
        keys.append(f"{id_scope}{sep}{spec.name}")
        if type_name:
            if alias_scope:
                keys.append(f"{alias_scope}{sep}{type_name}")
            keys.append(f"{id_scope}{sep}{type_name}")
            keys.append(f"{type_name}{sep}{spec.name}")

        for key in keys:
            binding = self._registry.get_raw(key)
            if binding is not None:
                logger.debug("Override %s bound for parameter %s", key, spec.name)
                return True, self._resolver.interpret(key, binding, alias=alias_scope, as_parameter=True)

        if not type_name or spec.is_builtin:
            return False, None

        if self._registry.contains(type_name):
            return True, self._resolver.resolve(type_name)

        stripped = self._transform.transform(type_name)
        if stripped and self._registry.contains(stripped):
            return True, self._resolver.resolve(stripped, alias=type_name)

        return False, None


def _is_overrides(value: Any) -> bool:
    return isinstance(value, Mapping) and not StructuredDescriptor.has_shape(value)
