"""Application layer - Circular dependency detection."""

import threading
from typing import List

from vulpes_container.domain import ResolutionContext


class CircularDependencyDetector:
    """Detects circular dependencies during resolution.

    Uses thread-local storage to track the current resolution path.
    When an identifier appears twice in the path, a circular dependency is detected.

    Attributes:
        _local: Thread-local storage for resolution contexts.
    """

    def __init__(self) -> None:
        """Initialize the circular dependency detector with thread-local storage."""
        self._local = threading.local()

    def _get_context(self) -> ResolutionContext:
        """Get the current thread's resolution context."""
        if not hasattr(self._local, "context"):
            self._local.context = ResolutionContext()
        return self._local.context

    def push(self, identifier: str) -> None:
        """Add an identifier to the resolution path.

        Args:
            identifier: The identifier being resolved.

        Raises:
            CircularDependencyError: If the identifier is already in the path.

        Example:
            >>> detector = CircularDependencyDetector()
            >>> detector.push("app.ServiceA")
            >>> detector.push("app.ServiceB")
            >>> detector.push("app.ServiceA")  # Raises CircularDependencyError
        """
        self._get_context().push(identifier)

    def pop(self) -> None:
        """Remove the last identifier from the resolution path."""
        self._get_context().pop()

    def path(self) -> List[str]:
        """Return a copy of the current thread's resolution path."""
        return list(self._get_context().stack)

    def is_resolving(self, identifier: str) -> bool:
        return identifier in self._get_context()

    def clear(self) -> None:
        """Clear the resolution path of the current thread."""
        if hasattr(self._local, "context"):
            self._local.context.clear()
