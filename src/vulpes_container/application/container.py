import logging
import threading
from typing import Any, Dict, Iterable, Optional

from vulpes_container.application.circular_detector import CircularDependencyDetector
from vulpes_container.application.identifier_transform import InterfaceSuffixTransform
from vulpes_container.application.interpreters import InterpreterPipeline
from vulpes_container.application.registry import Registry
from vulpes_container.application.resolver import Resolver
from vulpes_container.domain import (
    Binding,
    CallArguments,
    ContainerSettings,
    IContainer,
    IEnvironmentReader,
    Identifier,
    IIdentifierTransform,
    ITypeIntrospector,
    IValueInterpreter,
)
from vulpes_container.infrastructure.environment import EnvironmentReader
from vulpes_container.infrastructure.introspection import SignatureIntrospector

logger = logging.getLogger(__name__)


class Container(IContainer):
    """Main dependency injection container.

    Resolves string identifiers (dotted type names, ``Type::method`` pairs) or
    class objects to fully constructed values, combining explicit bindings with
    constructor and method introspection.

    Attributes:
        _settings: Container configuration.
        _introspector: Type metadata source.
        _transform: Interface naming convention.
        _registry: Identifier -> binding mapping.
        _pipeline: Value interpretation stages.
        _circular_detector: Resolution path tracker.
        _resolver: The resolution engine.
        _lock: Guards the registry for one top-level operation at a time.
    """

    def __init__(
        self,
        bindings: Optional[Dict[str, Any]] = None,
        settings: Optional[ContainerSettings] = None,
        introspector: Optional[ITypeIntrospector] = None,
        environment: Optional[IEnvironmentReader] = None,
        transform: Optional[IIdentifierTransform] = None,
        interpreters: Optional[Iterable[IValueInterpreter]] = None,
    ) -> None:
        """Initialize the container.

        Args:
            bindings: Initial identifier -> value bindings.
            settings: Configuration; read from the environment when omitted.
            introspector: Type metadata source.
            environment: Reader for ``env`` descriptor parameters.
            transform: Fallback identifier convention.
            interpreters: Custom interpretation stages run before the default ones.
        """
        self._settings = settings or ContainerSettings()
        self._introspector = introspector or SignatureIntrospector(self._settings.member_separator)
        self._transform = transform or InterfaceSuffixTransform(
            self._settings.interface_suffix,
            self._settings.member_separator,
        )
        self._registry = Registry(self._introspector, self._transform)
        self._pipeline = InterpreterPipeline()
        if interpreters:
            self._pipeline.prepend(*interpreters)
        self._circular_detector = CircularDependencyDetector()
        self._resolver = Resolver(
            container=self,
            registry=self._registry,
            introspector=self._introspector,
            transform=self._transform,
            environment=environment or EnvironmentReader(),
            pipeline=self._pipeline,
            settings=self._settings,
            detector=self._circular_detector,
        )
        self._lock = threading.RLock()

        for identifier, value in (bindings or {}).items():
            self.set(identifier, value)

    @property
    def settings(self) -> ContainerSettings:
        return self._settings

    @property
    def introspector(self) -> ITypeIntrospector:
        return self._introspector

    def _identifier(self, identifier: Identifier) -> str:
        if isinstance(identifier, str):
            return identifier
        return self._introspector.register_type(identifier)

    def get(self, identifier: Identifier, *args: Any, **kwargs: Any) -> Any:
        """Resolve and return the value for an identifier.

        Explicit bindings win; otherwise loadable types are auto-wired from
        their constructor signature, and ``<Name>Interface`` falls back to
        ``<Name>``. Results are cached, so later calls return the same value.

        Args:
            identifier: Type name, ``Type::method`` pair or class object.
            *args: Positional constructor or method arguments.
            **kwargs: Named constructor or method arguments.

        Returns:
            The resolved value.

        Raises:
            NotFoundError: If the identifier or one of its parameters cannot be resolved.
            CircularDependencyError: If a circular dependency is detected.
            ConstructionError: If instantiating a type failed.
            InvocationError: If a factory, method or descriptor build failed.

        Example:
            >>> container.set("app.mail.MailerInterface", "app.mail.SmtpMailer")
            >>> mailer = container.get("app.mail.MailerInterface")
        """
        identifier = self._identifier(identifier)
        with self._lock:
            if self._settings.log_resolutions:
                logger.info("Resolving %s", identifier)
            return self._resolver.resolve(identifier, CallArguments.of(*args, **kwargs))

    def has(self, identifier: Identifier) -> bool:
        identifier = self._identifier(identifier)
        with self._lock:
            return self._resolver.has(identifier)

    def set(self, identifier: Identifier, value: Any) -> None:
        """Store a binding, replacing any previous binding or cached value.

        Args:
            identifier: The identifier to bind.
            value: A built object, a factory ``(container, identifier, alias)``,
                a class or type name to alias, a structured descriptor, a
                mapping of constructor parameter overrides, or a plain value
                for parameter-scoped keys such as ``"app.Foo::timeout"``.

        Example:
            >>> container.set("app.Greeter", lambda c, id, alias: Greeter("hello"))
            >>> container.set("app.Mailer::host", "smtp.local")
        """
        identifier = self._identifier(identifier)
        with self._lock:
            self._registry.set(identifier, value)

    def call(self, target: Any, method: str, *args: Any, **kwargs: Any) -> Any:
        """Call a method with auto-wired parameters. The result is never cached.

        Args:
            target: An object, or an identifier resolved to one.
            method: Name of the method.

        Example:
            >>> report = container.call("app.reports.Builder", "build", year=2024)
        """
        if isinstance(target, type):
            target = self._identifier(target)
        with self._lock:
            return self._resolver.call(target, method, CallArguments.of(*args, **kwargs))

    def register_type(self, cls: type, name: Optional[str] = None) -> str:
        """Make a class loadable by name, e.g. one defined inside a function."""
        return self._introspector.register_type(cls, name)

    def type_name(self, cls: type) -> str:
        return self._introspector.type_name(cls)

    def get_registry_copy(self) -> Dict[str, Binding]:
        """Get a copy of the bindings, e.g. for a test container.

        Returns:
            Copy of the current bindings.
        """
        with self._lock:
            return self._registry.copy()

    def set_registry(self, registry: Dict[str, Binding]) -> None:
        """Replace all bindings.

        Args:
            registry: Bindings to adopt.
        """
        with self._lock:
            self._registry.replace(registry)

    def clear(self) -> None:
        """Remove all bindings and cached values."""
        with self._lock:
            self._registry.clear()
            self._circular_detector.clear()
