import inspect
import logging
from typing import Any, Callable, FrozenSet, Optional

from vulpes_container.application.binder import ParameterBinder
from vulpes_container.application.circular_detector import CircularDependencyDetector
from vulpes_container.application.interpreters import InterpreterPipeline
from vulpes_container.application.registry import Registry
from vulpes_container.domain import (
    Binding,
    CallArguments,
    ConstructionError,
    ContainerError,
    ContainerSettings,
    IContainer,
    IEnvironmentReader,
    IIdentifierTransform,
    IParameterBinder,
    IResolver,
    ITypeIntrospector,
    InterpretationRequest,
    InvocationError,
    NotFoundError,
    ParameterPlan,
)

logger = logging.getLogger(__name__)


class Resolver(IResolver):
    """Resolves identifiers to values.

    Lookup order for an identifier:

    1. Already on the resolution path: circular dependency.
    2. Bound in the registry: interpret the binding.
    3. One of the container's own identifiers: the container.
    4. A constructible type or ``Type::member``: build it from its parameters.
    5. Matches the interface convention: resolve the transformed identifier.
    6. Otherwise: not found.

    Every successful resolution is cached under the requested identifier.

    Attributes:
        _container: The container resolving to itself.
        _registry: Bindings.
        _introspector: Type metadata source.
        _transform: Interface naming convention.
        _environment: Environment variable reader.
        _pipeline: Value interpretation stages.
        _detector: Resolution path tracker.
        _binder: Parameter binder.
    """

    def __init__(
        self,
        container: IContainer,
        registry: Registry,
        introspector: ITypeIntrospector,
        transform: IIdentifierTransform,
        environment: IEnvironmentReader,
        pipeline: InterpreterPipeline,
        settings: ContainerSettings,
        detector: Optional[CircularDependencyDetector] = None,
        binder: Optional[IParameterBinder] = None,
    ) -> None:
        self._container = container
        self._registry = registry
        self._introspector = introspector
        self._transform = transform
        self._environment = environment
        self._pipeline = pipeline
        self._separator = settings.member_separator
        self._detector = detector or CircularDependencyDetector()
        self._binder = binder or ParameterBinder(self, registry, transform, settings.member_separator)
        self._self_identifiers = self._collect_self_identifiers(settings.self_identifier)

    @property
    def self_identifiers(self) -> FrozenSet[str]:
        return self._self_identifiers

    def _collect_self_identifiers(self, self_identifier: str) -> FrozenSet[str]:
        names = {self_identifier}
        for cls in type(self._container).__mro__:
            if issubclass(cls, IContainer):
                names.add(self._introspector.type_name(cls))
        return frozenset(names)

    def resolve(
        self,
        identifier: str,
        arguments: Optional[CallArguments] = None,
        alias: Optional[str] = None,
    ) -> Any:
        """Resolve an identifier, caching the result under it.

        Args:
            identifier: The identifier to resolve.
            arguments: Caller-supplied constructor or method arguments.
            alias: The identifier that led here, used for scoped overrides.

        Raises:
            CircularDependencyError: If the identifier is already being resolved.
            NotFoundError: If nothing can produce a value for it.
        """
        arguments = arguments or CallArguments()
        self._detector.push(identifier)
        try:
            return self._lookup(identifier, arguments, alias)
        finally:
            self._detector.pop()

    def _lookup(self, identifier: str, arguments: CallArguments, alias: Optional[str]) -> Any:
        binding = self._registry.get_raw(identifier)
        if binding is not None:
            if binding.resolved:
                logger.debug("Cache hit for %s", identifier)
                return binding.value
            value = self.interpret(identifier, binding, arguments, alias)
            self._registry.store_resolved(identifier, value)
            return value

        if identifier in self._self_identifiers:
            return self._container

        plan = self._plan(identifier)
        if plan is not None:
            value = self._build(plan, identifier, arguments, alias)
            self._registry.store_resolved(identifier, value)
            return value

        stripped = self._transform.transform(identifier)
        if stripped is not None and self.has(stripped):
            logger.debug("Resolving %s by convention as %s", identifier, stripped)
            value = self.resolve(stripped, arguments, alias=identifier)
            self._registry.store_resolved(identifier, value)
            return value

        raise NotFoundError(identifier)

    def has(self, identifier: str) -> bool:
        return identifier in self._self_identifiers or self._registry.has(identifier)

    def construct(self, identifier: str, arguments: CallArguments, alias: Optional[str] = None) -> Any:
        plan = self._plan(identifier)
        if plan is not None:
            return self._build(plan, identifier, arguments, alias)

        stripped = self._transform.transform(identifier)
        plan = self._plan(stripped) if stripped else None
        if plan is None:
            raise NotFoundError(identifier)
        return self._build(plan, stripped, arguments, alias or identifier)

    def is_constructible(self, identifier: str) -> bool:
        if self._plan(identifier) is not None:
            return True
        stripped = self._transform.transform(identifier)
        return stripped is not None and self._plan(stripped) is not None

    def _plan(self, identifier: str) -> Optional[ParameterPlan]:
        return self._introspect(identifier, self._introspector.get_plan, identifier)

    def _introspect(self, identifier: str, operation: Callable[..., Any], *args: Any) -> Any:
        """Run an introspector operation, reporting foreign failures as construction errors.

        Importing a module runs its top-level code, which may raise anything.
        """
        try:
            return operation(*args)
        except ContainerError:
            raise
        except Exception as e:
            raise ConstructionError(identifier, e) from e

    def _build(self, plan: ParameterPlan, identifier: str, arguments: CallArguments, alias: Optional[str]) -> Any:
        if plan.is_constructor:
            bound = self._binder.bind(plan, arguments, identifier, alias)
            logger.debug("Constructing %s", identifier)
            try:
                return plan.target(*bound.args, **bound.kwargs)
            except ContainerError:
                raise
            except Exception as e:
                raise ConstructionError(identifier, e) from e

        function = plan.target
        if plan.requires_instance:
            owner_identifier = identifier.partition(self._separator)[0]
            function = getattr(self.resolve(owner_identifier), plan.member)

        bound = self._binder.bind(plan, arguments, identifier, alias)
        logger.debug("Calling %s", identifier)
        try:
            return function(*bound.args, **bound.kwargs)
        except ContainerError:
            raise
        except Exception as e:
            raise InvocationError(identifier, e) from e

    def call(
        self,
        target: Any,
        method: str,
        arguments: Optional[CallArguments] = None,
        alias: Optional[str] = None,
    ) -> Any:
        """Invoke a method of an object with bound parameters. Never cached.

        Args:
            target: The object, or an identifier resolved to one.
            method: Method name.
            arguments: Caller-supplied arguments.
            alias: Identifier scoping parameter overrides. Defaults to
                ``target::method`` when the target is an identifier.
        """
        arguments = arguments or CallArguments()
        if isinstance(target, str):
            alias = alias or self.member_identifier(target, method)
            target = self.resolve(target)

        plan = self._introspect(alias or method, self._introspector.get_callable_plan, target, method)
        if plan is None:
            owner = target if inspect.isclass(target) else type(target)
            raise NotFoundError(f"{self._introspector.type_name(owner)}{self._separator}{method}")

        identifier = self.member_identifier(plan.type_name, method)
        bound = self._binder.bind(plan, arguments, identifier, alias if alias != identifier else None)
        try:
            return plan.target(*bound.args, **bound.kwargs)
        except ContainerError:
            raise
        except Exception as e:
            raise InvocationError(identifier, e) from e

    def interpret(
        self,
        identifier: str,
        binding: Binding,
        arguments: Optional[CallArguments] = None,
        alias: Optional[str] = None,
        as_parameter: bool = False,
    ) -> Any:
        request = InterpretationRequest(
            identifier=identifier,
            binding=binding,
            arguments=arguments or CallArguments(),
            alias=alias,
            as_parameter=as_parameter,
        )
        return self._pipeline.interpret(request, self)

    def invoke_factory(self, factory: Any, identifier: str, alias: Optional[str]) -> Any:
        """Invoke a factory with as many of ``(container, identifier, alias)`` as it accepts."""
        arguments = (self._container, identifier, alias)[: _positional_arity(factory)]
        logger.debug("Invoking factory for %s", identifier)
        try:
            return factory(*arguments)
        except ContainerError:
            raise
        except Exception as e:
            raise InvocationError(identifier, e) from e

    def binding(self, identifier: str) -> Optional[Binding]:
        return self._registry.get_raw(identifier)

    def store(self, identifier: str, value: Any) -> None:
        self._registry.store_resolved(identifier, value)

    def load_type(self, name: str) -> Optional[type]:
        return self._introspect(name, self._introspector.load_type, name)

    def is_loadable(self, identifier: str) -> bool:
        return self.load_type(identifier.partition(self._separator)[0]) is not None

    def member_identifier(self, owner: str, method: str) -> str:
        return f"{owner}{self._separator}{method}"

    def type_name(self, cls: type) -> str:
        return self._introspector.register_type(cls)

    def read_environment(self, name: str) -> Optional[str]:
        return self._environment.read(name)


def _positional_arity(factory: Any, limit: int = 3) -> int:
    try:
        parameters = inspect.signature(factory).parameters.values()
    except (TypeError, ValueError):
        return 0

    count = 0
    for parameter in parameters:
        if parameter.kind == inspect.Parameter.VAR_POSITIONAL:
            return limit
        if parameter.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return min(count, limit)
