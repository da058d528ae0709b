import logging
from typing import Any, Dict, Optional

from vulpes_container.domain import Binding, IIdentifierTransform, ITypeIntrospector

logger = logging.getLogger(__name__)


class Registry:
    """Mutable mapping of identifier -> binding.

    Besides stored bindings, ``has`` reports identifiers resolvable purely by
    convention: loadable types, ``Type::member`` pairs on loadable types, and
    interface names whose stripped form is resolvable.

    Attributes:
        _bindings: The stored bindings.
        _introspector: Locates loadable types.
        _transform: The interface naming convention.
    """

    def __init__(self, introspector: ITypeIntrospector, transform: IIdentifierTransform) -> None:
        self._bindings: Dict[str, Binding] = {}
        self._introspector = introspector
        self._transform = transform

    def contains(self, identifier: str) -> bool:
        """Whether a binding is stored under the identifier."""
        return identifier in self._bindings

    def has(self, identifier: str) -> bool:
        """Whether the identifier is bound or resolvable by convention. No side effects."""
        if identifier in self._bindings:
            return True
        try:
            if self._introspector.get_plan(identifier) is not None:
                return True
            stripped = self._transform.transform(identifier)
            return stripped is not None and (
                stripped in self._bindings or self._introspector.load_type(stripped) is not None
            )
        except Exception as e:
            logger.warning("Failed to introspect %s: %s", identifier, e)
            return False

    def get_raw(self, identifier: str) -> Optional[Binding]:
        return self._bindings.get(identifier)

    def set(self, identifier: str, value: Any) -> None:
        self._bindings[identifier] = Binding(identifier=identifier, value=value)

    def store_resolved(self, identifier: str, value: Any) -> None:
        """Cache a resolution result; it is returned as-is from now on."""
        logger.debug("Caching resolved value for %s", identifier)
        self._bindings[identifier] = Binding(identifier=identifier, value=value, resolved=True)

    def copy(self) -> Dict[str, Binding]:
        return self._bindings.copy()

    def replace(self, bindings: Dict[str, Binding]) -> None:
        self._bindings = dict(bindings)

    def remove(self, identifier: str) -> None:
        self._bindings.pop(identifier, None)

    def clear(self) -> None:
        self._bindings.clear()

    def __len__(self) -> int:
        return len(self._bindings)
