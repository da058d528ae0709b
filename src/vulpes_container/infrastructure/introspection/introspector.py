"""Type introspection backed by ``inspect`` and ``typing``."""

import importlib
import importlib.util
import inspect
import logging
import sys
import types
from typing import Annotated, Any, Dict, List, Optional, Tuple, Union, get_args, get_origin, get_type_hints

from vulpes_container.domain import ITypeIntrospector, ParameterPlan, ParameterSpec

logger = logging.getLogger(__name__)

_NONE_TYPE = type(None)
_BUILTIN_MODULES = frozenset({"builtins", "typing", "collections.abc"})
_UNION_ORIGINS = (Union, getattr(types, "UnionType", Union))


class SignatureIntrospector(ITypeIntrospector):
    """Introspects constructors and methods using signatures and type hints.

    Types are located either from an explicit registration table or by importing
    their dotted path (``"package.module.ClassName"``). Every class met in a
    parameter annotation is registered, so locally defined classes become
    loadable once they have been seen.

    Attributes:
        _separator: Separator between type and member in identifiers.
        _types: Registration table of type name -> class.
        _plans: Cache of plans per (class, member).
        _bound_parameters: Cache of bound method parameters per (class, member).
    """

    def __init__(self, member_separator: str = "::") -> None:
        self._separator = member_separator
        self._types: Dict[str, type] = {}
        self._plans: Dict[Tuple[type, Optional[str]], ParameterPlan] = {}
        self._bound_parameters: Dict[Tuple[type, str], List[ParameterSpec]] = {}

    def type_name(self, cls: type) -> str:
        if cls is Any:
            return "Any"
        if cls.__module__ == "builtins":
            return cls.__qualname__
        return f"{cls.__module__}.{cls.__qualname__}"

    def register_type(self, cls: type, name: Optional[str] = None) -> str:
        name = name or self.type_name(cls)
        self._types[name] = cls
        return name

    def load_type(self, name: str) -> Optional[type]:
        """Return the class named ``name``.

        Registered names win. Otherwise the longest importable module prefix of
        the dotted path is imported and the remaining parts are looked up as
        attributes. Builtin classes are never loadable by name. Only prefixes whose
        top-level package is installed are imported, so arbitrary dotted strings
        such as configuration values do not trigger imports.

        Args:
            name: Dotted type name.

        Returns:
            The class, or None if the name does not denote a loadable class.
        """
        if name in self._types:
            return self._types[name]

        parts = name.split(".")
        if len(parts) < 2 or not all(part.isidentifier() for part in parts):
            return None

        if not _is_installed(parts[0]):
            return None

        for index in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:index])
            try:
                target: Any = importlib.import_module(module_name)
            except ModuleNotFoundError as e:
                # A missing dependency inside an existing module is a real error
                if e.name and not module_name.startswith(e.name):
                    raise
                continue

            for attribute in parts[index:]:
                target = getattr(target, attribute, None)
                if target is None:
                    return None

            if inspect.isclass(target) and target.__module__ != "builtins":
                self._types[name] = target
                return target
            return None

        return None

    def get_plan(self, identifier: str) -> Optional[ParameterPlan]:
        type_part, _, member = identifier.partition(self._separator)
        cls = self.load_type(type_part)
        if cls is None:
            return None
        if member in ("", "__init__"):
            if not _is_instantiable(cls):
                return None
            return self._class_plan(cls, type_part)
        return self._member_plan(cls, type_part, member)

    def get_callable_plan(self, target: Any, member: str) -> Optional[ParameterPlan]:
        function = getattr(target, member, None)
        if function is None or not callable(function):
            return None

        owner = target if inspect.isclass(target) else type(target)
        key = (owner, member)
        parameters = self._bound_parameters.get(key)
        if parameters is None:
            parameters = self._describe(function, owner, skip_first=False)
            # Instance attributes may differ between objects of the same class
            if hasattr(owner, member):
                self._bound_parameters[key] = parameters

        return ParameterPlan(
            type_name=self.type_name(owner),
            member=member,
            target=function,
            parameters=parameters,
        )

    def _class_plan(self, cls: type, type_name: str) -> ParameterPlan:
        key = (cls, None)
        if key not in self._plans:
            logger.debug("Introspecting constructor of %s", type_name)
            if cls.__init__ is object.__init__:
                parameters: List[ParameterSpec] = []
            else:
                parameters = self._describe(cls, cls, skip_first=False, hints_source=cls.__init__)
            self._plans[key] = ParameterPlan(type_name=type_name, target=cls, parameters=parameters)
        return self._plans[key]

    def _member_plan(self, cls: type, type_name: str, member: str) -> Optional[ParameterPlan]:
        key = (cls, member)
        if key in self._plans:
            return self._plans[key]

        attribute = inspect.getattr_static(cls, member, None)
        if attribute is None:
            return None
        if isinstance(attribute, (staticmethod, classmethod)):
            function, skip_first = getattr(cls, member), False
        elif inspect.isfunction(attribute):
            function, skip_first = attribute, True
        else:
            return None

        logger.debug("Introspecting method %s%s%s", type_name, self._separator, member)
        plan = ParameterPlan(
            type_name=type_name,
            member=member,
            target=function,
            parameters=self._describe(function, cls, skip_first=skip_first),
            requires_instance=skip_first,
        )
        self._plans[key] = plan
        return plan

    def _describe(
        self,
        function: Any,
        owner: type,
        skip_first: bool,
        hints_source: Any = None,
    ) -> List[ParameterSpec]:
        try:
            signature = inspect.signature(function)
        except (TypeError, ValueError):
            # Builtin callables without a retrievable signature
            return []

        try:
            hints = get_type_hints(hints_source or function)
        except Exception:  # unresolvable forward references
            hints = {}

        parameters = list(signature.parameters.values())
        if skip_first:
            parameters = parameters[1:]

        specs = []
        for parameter in parameters:
            if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue
            specs.append(self._describe_parameter(parameter, hints.get(parameter.name, parameter.annotation), owner))
        return specs

    def _describe_parameter(self, parameter: inspect.Parameter, annotation: Any, owner: type) -> ParameterSpec:
        is_optional = parameter.default is not inspect.Parameter.empty
        default = parameter.default if is_optional else None

        if annotation is inspect.Parameter.empty:
            type_name, members, is_builtin, allows_null = None, [], True, True
        else:
            type_name, members, is_builtin, allows_null = self._describe_annotation(annotation, owner)

        return ParameterSpec(
            name=parameter.name,
            type_name=type_name,
            union_members=members,
            is_builtin=is_builtin,
            is_optional=is_optional,
            default=default,
            allows_null=allows_null or (is_optional and default is None),
            self_buildable=is_optional and not is_builtin and _is_object(default),
            positional_only=parameter.kind == inspect.Parameter.POSITIONAL_ONLY,
        )

    def _describe_annotation(self, annotation: Any, owner: type) -> Tuple[Optional[str], List[str], bool, bool]:
        """Return (type name, union member names, is builtin, allows null)."""
        if isinstance(annotation, str):
            if annotation == owner.__name__:
                return self.type_name(owner), [], False, False
            name = annotation if "." in annotation else f"{owner.__module__}.{annotation}"
            return name, [], False, False

        origin = get_origin(annotation)

        if origin is Annotated:
            return self._describe_annotation(get_args(annotation)[0], owner)

        if origin in _UNION_ORIGINS:
            arguments = get_args(annotation)
            allows_null = _NONE_TYPE in arguments
            described = [self._describe_annotation(a, owner) for a in arguments if a is not _NONE_TYPE]
            names = [name for name, _, _, _ in described if name]
            is_builtin = all(builtin for _, _, builtin, _ in described)
            if len(names) == 1:
                return names[0], [], is_builtin, allows_null
            return (names[-1] if names else None), names, is_builtin, allows_null

        if origin is not None:
            annotation = origin

        if annotation is Any or not inspect.isclass(annotation):
            return "Any", [], True, annotation is Any

        if annotation.__module__ in _BUILTIN_MODULES:
            return self.type_name(annotation), [], True, False

        return self.register_type(annotation), [], False, False


def _is_installed(package: str) -> bool:
    return package in sys.modules or importlib.util.find_spec(package) is not None


def _is_instantiable(cls: type) -> bool:
    """Abstract classes and protocols name interfaces, not constructible types."""
    return not inspect.isabstract(cls) and not getattr(cls, "_is_protocol", False)


def _is_object(value: Any) -> bool:
    return value is not None and not isinstance(value, (str, bytes, int, float, bool, tuple, list, dict))
