import importlib
import inspect
import logging
import pkgutil
import re
from types import ModuleType
from typing import Any, Dict, Iterator, Optional, Union

from vulpes_container.domain import CollectFlags, IContainer, ITypeIntrospector

logger = logging.getLogger(__name__)

_FOREIGN_MODULES = frozenset({"builtins", "abc", "typing", "typing_extensions", "collections.abc"})


class BindingCollector:
    """Discovers bindings by walking the modules of a package.

    For each class defined in a walked module it can:

    - map every user-defined abstract base (an interface) to the class, the
      first class found for an interface winning;
    - introspect the constructor ahead of time;
    - introspect public methods (not underscored, not static, not abstract).

    Existing bindings are never replaced.

    Attributes:
        _introspector: Type metadata source whose plan cache is warmed.
        _bindings: Collected identifier -> implementation type name bindings.

    Example:
        >>> collector = BindingCollector(SignatureIntrospector())
        >>> collector.collect("app.services")
        >>> collector.apply(container)
    """

    def __init__(self, introspector: ITypeIntrospector, member_separator: str = "::") -> None:
        self._introspector = introspector
        self._separator = member_separator
        self._bindings: Dict[str, str] = {}

    @property
    def bindings(self) -> Dict[str, str]:
        return dict(self._bindings)

    def collect(
        self,
        package: Union[str, ModuleType],
        pattern: Optional[str] = None,
        flags: CollectFlags = CollectFlags.ALL,
    ) -> Dict[str, str]:
        """Walk a package and collect bindings from the classes it defines.

        Args:
            package: Package (or module) name, or the imported module.
            pattern: Regular expression type names must match to be read.
            flags: What to read from each class.

        Returns:
            Copy of all bindings collected so far.
        """
        module = importlib.import_module(package) if isinstance(package, str) else package
        matcher = re.compile(pattern) if pattern else None

        for cls in self._walk(module):
            name = self._introspector.type_name(cls)
            if matcher and not matcher.search(name):
                continue
            self.read(cls, flags)

        return self.bindings

    def read(self, cls: type, flags: CollectFlags = CollectFlags.ALL) -> None:
        """Read one class."""
        name = self._introspector.register_type(cls)

        if flags & CollectFlags.INTERFACES:
            self._collect_interfaces(cls, name)
        if flags & CollectFlags.CONSTRUCTORS:
            self._introspector.get_plan(name)
        if flags & CollectFlags.METHODS:
            self._collect_methods(cls, name)

    def apply(self, container: IContainer) -> int:
        """Bind collected interfaces in a container, skipping bound identifiers.

        Returns:
            Number of bindings added.
        """
        existing = container.get_registry_copy()
        added = 0
        for identifier, implementation in self._bindings.items():
            if identifier in existing:
                continue
            container.set(identifier, implementation)
            added += 1
        logger.debug("Applied %d collected bindings", added)
        return added

    def _walk(self, module: ModuleType) -> Iterator[type]:
        modules = [module]
        if hasattr(module, "__path__"):
            for info in pkgutil.walk_packages(module.__path__, prefix=f"{module.__name__}."):
                modules.append(importlib.import_module(info.name))

        for current in modules:
            for _, member in inspect.getmembers(current, inspect.isclass):
                if member.__module__ == current.__name__:
                    yield member

    def _collect_interfaces(self, cls: type, name: str) -> None:
        if inspect.isabstract(cls):
            return
        for base in cls.__mro__[1:]:
            if base.__module__ in _FOREIGN_MODULES or not _is_interface(base):
                continue
            interface = self._introspector.register_type(base)
            if interface not in self._bindings:
                logger.debug("Collected %s -> %s", interface, name)
                self._bindings[interface] = name

    def _collect_methods(self, cls: type, name: str) -> None:
        for member, attribute in vars(cls).items():
            if member.startswith("_") or not inspect.isfunction(attribute):
                continue
            if getattr(attribute, "__isabstractmethod__", False):
                continue
            self._introspector.get_plan(f"{name}{self._separator}{member}")


def _is_interface(cls: Any) -> bool:
    return inspect.isabstract(cls) or getattr(cls, "_is_protocol", False)
