from typing import List, Optional

from vulpes_container.domain.enums import ErrorCode


class ContainerError(Exception):
    """Base exception for errors raised by the resolution engine.

    Attributes:
        identifier: The identifier whose resolution failed.
        code: The kind of failure.
    """

    code: ErrorCode = ErrorCode.NOT_FOUND

    def __init__(self, identifier: str, message: Optional[str] = None) -> None:
        self.identifier = identifier
        super().__init__(message or f"Error while retrieving the entry {identifier}.")


class NotFoundError(ContainerError):
    """Raised when an identifier or a parameter has no resolvable value.

    This occurs when:
    - No binding exists and the identifier names no loadable type.
    - A bound scalar is requested for construction.
    - A required constructor or method parameter cannot be satisfied.

    Attributes:
        parameter: Name of the offending parameter, if any.
    """

    code = ErrorCode.NOT_FOUND

    def __init__(self, identifier: str, parameter: Optional[str] = None, reason: Optional[str] = None) -> None:
        self.parameter = parameter
        self.reason = reason
        if parameter:
            message = f"Error while retrieving the entry {identifier}, parameter missing: {parameter}."
        else:
            message = f"No entry was found for {identifier} identifier."
        if reason:
            message += f" Reason: {reason}"
        super().__init__(identifier, message)


class CircularDependencyError(ContainerError):
    """Raised when a circular dependency is detected.

    Attributes:
        chain: Identifiers involved in the cycle, first and last being the same.
        parameter: Name of the self-referential parameter for parameter-level cycles.
    """

    code = ErrorCode.CIRCULAR_DEPENDENCY

    def __init__(self, chain: List[str], parameter: Optional[str] = None) -> None:
        self.chain = chain
        self.parameter = parameter
        message = f"Circular dependency detected: {' -> '.join(chain)}"
        if parameter:
            message += f" (parameter '{parameter}')"
        super().__init__(chain[0] if chain else "", message)


class ConstructionError(ContainerError):
    """Raised when introspection or instantiation of a type fails.

    The original exception is available as ``cause`` and ``__cause__``.
    """

    code = ErrorCode.CONSTRUCTION_FAILURE

    def __init__(self, identifier: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(identifier, f"Failed to construct {identifier}: {cause}")


class InvocationError(ContainerError):
    """Raised when a factory, a method call or a descriptor build fails.

    The original exception is available as ``cause`` and ``__cause__``.
    """

    code = ErrorCode.INVOCATION_FAILURE

    def __init__(self, identifier: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(identifier, f"Failed to invoke {identifier}: {cause}")
