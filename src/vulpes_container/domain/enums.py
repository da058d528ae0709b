from enum import Enum, IntFlag


class BindingKind(str, Enum):
    """Classifies the value stored under an identifier.

    Attributes:
        RESOLVED: Value produced by an earlier resolution, returned as-is.
        FACTORY: Callable invoked lazily to produce the value.
        INSTANCE: Already-constructed object.
        REFERENCE: Another identifier to resolve through (alias).
        METHOD: A (type or object, method name) pair to call.
        DESCRIPTOR: Declarative class + parameter list.
        OVERRIDES: Parameter overrides used while constructing the identifier itself.
        RAW: Plain value returned as-is; scalars cannot satisfy a construction request.
    """

    RESOLVED = "resolved"
    FACTORY = "factory"
    INSTANCE = "instance"
    REFERENCE = "reference"
    METHOD = "method"
    DESCRIPTOR = "descriptor"
    OVERRIDES = "overrides"
    RAW = "raw"

    def __str__(self) -> str:
        return self.value


class ParamKind(str, Enum):
    """Tags of structured descriptor parameters.

    Attributes:
        VAL: Literal value.
        ENV: Name of a process environment variable.
        OBJ: Identifier resolved through the container.
        ARG: Value taken from the caller-supplied arguments.
        UNKNOWN: Unrecognised tag; takes the next unclaimed positional argument.
    """

    VAL = "val"
    ENV = "env"
    OBJ = "obj"
    ARG = "arg"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, tag: str) -> "ParamKind":
        aliases = {
            "val": cls.VAL,
            "value": cls.VAL,
            "env": cls.ENV,
            "environment": cls.ENV,
            "obj": cls.OBJ,
            "object": cls.OBJ,
            "arg": cls.ARG,
            "argument": cls.ARG,
        }
        return aliases.get(tag.strip().lower(), cls.UNKNOWN)

    def __str__(self) -> str:
        return self.value


class ErrorCode(str, Enum):
    """Distinguishes the kinds of failures raised by the engine."""

    NOT_FOUND = "not_found"
    CIRCULAR_DEPENDENCY = "circular_dependency"
    CONSTRUCTION_FAILURE = "construction_failure"
    INVOCATION_FAILURE = "invocation_failure"

    def __str__(self) -> str:
        return self.value


class CollectFlags(IntFlag):
    """What the binding collector reads from each discovered class."""

    INTERFACES = 1
    CONSTRUCTORS = 2
    METHODS = 4
    ALL = INTERFACES | CONSTRUCTORS | METHODS
