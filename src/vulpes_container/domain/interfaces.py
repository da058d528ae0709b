from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type, Union

from vulpes_container.domain.models import (
    Binding,
    BoundArguments,
    CallArguments,
    InterpretationRequest,
    ParameterPlan,
)

Identifier = Union[str, Type]


class IContainer(ABC):
    """Abstract interface for dependency injection container operations."""

    @abstractmethod
    def get(self, identifier: Identifier, *args: Any, **kwargs: Any) -> Any:
        """Resolve and return the value for an identifier.

        Args:
            identifier: Type name, ``Type::method`` pair or class object.
            *args: Positional arguments for the constructor or method.
            **kwargs: Named arguments for the constructor or method.
        """

    @abstractmethod
    def has(self, identifier: Identifier) -> bool:
        """Whether the identifier can be resolved, without constructing anything."""

    @abstractmethod
    def set(self, identifier: Identifier, value: Any) -> None:
        """Store a binding under an identifier, replacing any previous one."""

    @abstractmethod
    def call(self, target: Any, method: str, *args: Any, **kwargs: Any) -> Any:
        """Invoke a method with auto-wired parameters. The result is never cached.

        Args:
            target: An object, or an identifier resolved to one.
            method: Name of the method to call.
        """

    @abstractmethod
    def get_registry_copy(self) -> Dict[str, Binding]:
        """Get a copy of the current bindings."""


class ITypeIntrospector(ABC):
    """Supplies type metadata: locates types and lists callable parameters."""

    @abstractmethod
    def load_type(self, name: str) -> Optional[type]:
        """Return the class named ``name``, or None when it is not loadable."""

    @abstractmethod
    def type_name(self, cls: type) -> str:
        """Return the identifier naming ``cls``."""

    @abstractmethod
    def register_type(self, cls: type, name: Optional[str] = None) -> str:
        """Make ``cls`` loadable under ``name`` (its type name by default)."""

    @abstractmethod
    def get_plan(self, identifier: str) -> Optional[ParameterPlan]:
        """Return the constructor plan of a type or the plan of a ``Type::member``.

        Returns None when the type is not loadable, cannot be instantiated
        (abstract classes, protocols), or has no such member.
        """

    @abstractmethod
    def get_callable_plan(self, target: Any, member: str) -> Optional[ParameterPlan]:
        """Return the plan of a method of an existing object."""


class IEnvironmentReader(ABC):
    """Reads process environment variables."""

    @abstractmethod
    def read(self, name: str) -> Optional[str]:
        """Return the variable's value, or None when unset."""


class IIdentifierTransform(ABC):
    """Maps an identifier onto a conventional fallback identifier."""

    @abstractmethod
    def transform(self, identifier: str) -> Optional[str]:
        """Return the fallback identifier, or None when the convention does not apply."""


class IParameterBinder(ABC):
    """Computes the arguments a constructor or method is invoked with."""

    @abstractmethod
    def bind(
        self,
        plan: ParameterPlan,
        arguments: CallArguments,
        id_scope: str,
        alias_scope: Optional[str],
    ) -> BoundArguments:
        """Bind every formal parameter of ``plan``.

        Raises:
            NotFoundError: If a required parameter cannot be satisfied.
            CircularDependencyError: If a parameter is typed as the identifier being built.
        """


class IResolver(ABC):
    """Abstract interface for identifier resolution."""

    @abstractmethod
    def resolve(
        self,
        identifier: str,
        arguments: Optional[CallArguments] = None,
        alias: Optional[str] = None,
    ) -> Any:
        """Resolve an identifier to a value, caching the result."""

    @abstractmethod
    def has(self, identifier: str) -> bool:
        """Whether the identifier is resolvable."""

    @abstractmethod
    def construct(self, identifier: str, arguments: CallArguments, alias: Optional[str] = None) -> Any:
        """Build a type, or call a ``Type::method``, from its introspected parameters."""

    @abstractmethod
    def is_constructible(self, identifier: str) -> bool:
        """Whether an identifier names a type or ``Type::method`` the container can build."""

    @abstractmethod
    def call(
        self,
        target: Any,
        method: str,
        arguments: Optional[CallArguments] = None,
        alias: Optional[str] = None,
    ) -> Any:
        """Call a method on a type name, class or object with bound parameters."""

    @abstractmethod
    def member_identifier(self, owner: str, method: str) -> str:
        """Join a type identifier and a method name into a ``Type::method`` identifier."""

    @abstractmethod
    def invoke_factory(self, factory: Any, identifier: str, alias: Optional[str]) -> Any:
        """Invoke a factory callback with ``(container, identifier, alias)``."""

    @abstractmethod
    def interpret(
        self,
        identifier: str,
        binding: Binding,
        arguments: Optional[CallArguments] = None,
        alias: Optional[str] = None,
        as_parameter: bool = False,
    ) -> Any:
        """Run a binding through the value interpretation pipeline."""

    @abstractmethod
    def binding(self, identifier: str) -> Optional[Binding]:
        """Return the binding stored under an identifier, if any."""

    @abstractmethod
    def store(self, identifier: str, value: Any) -> None:
        """Cache a resolved value under an identifier."""

    @abstractmethod
    def load_type(self, name: str) -> Optional[type]:
        """Return the class named ``name``, or None."""

    @abstractmethod
    def is_loadable(self, identifier: str) -> bool:
        """Whether the type part of an identifier names a loadable type."""

    @abstractmethod
    def type_name(self, cls: type) -> str:
        """Return the identifier naming a class, making the class loadable under it."""

    @abstractmethod
    def read_environment(self, name: str) -> Optional[str]:
        """Read an environment variable."""


class IValueInterpreter(ABC):
    """One stage of the value interpretation pipeline."""

    @abstractmethod
    def matches(self, request: InterpretationRequest, resolver: IResolver) -> bool:
        """Whether this stage accepts the binding."""

    @abstractmethod
    def interpret(self, request: InterpretationRequest, resolver: IResolver) -> Any:
        """Produce the value for an accepted binding."""
