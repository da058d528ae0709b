from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from vulpes_container.domain.enums import ParamKind
from vulpes_container.domain.exceptions import CircularDependencyError

# Declared type names that accept any value unmodified.
MIXED_TYPE_NAMES = frozenset({"Any", "object", "mixed"})


class Reference(BaseModel):
    """Marker for a value that must be resolved through the container.

    Attributes:
        identifier: The identifier to resolve.
    """

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., description="The identifier to resolve.")


def ref(identifier: str) -> Reference:
    """Shorthand for ``Reference(identifier=identifier)``."""
    return Reference(identifier=identifier)


class Binding(BaseModel):
    """Value object representing what is stored under an identifier.

    Attributes:
        identifier: The identifier the value is stored under.
        value: The raw stored value, interpreted lazily.
        resolved: Whether the value is the result of an earlier resolution.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    identifier: str = Field(..., description="The identifier the value is stored under.")
    value: Any = Field(default=None, description="The raw stored value.")
    resolved: bool = Field(default=False, description="Whether the value was produced by a resolution.")


class ParameterSpec(BaseModel):
    """Describes one formal parameter of a constructor or method.

    Attributes:
        name: Parameter name.
        type_name: Declared type name, or None when untyped.
        union_members: Member type names when the declared type is a union.
        is_builtin: Whether the declared type is a builtin/scalar type.
        is_optional: Whether the parameter has a default value.
        default: The default value, if optional.
        allows_null: Whether None is an acceptable value.
        self_buildable: Optional object-typed parameter whose default is an object.
            Informational: the binder already prefers the declared default over
            auto-wiring, so such a parameter keeps its default object.
        positional_only: Whether the parameter must be passed positionally.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    type_name: Optional[str] = None
    union_members: List[str] = Field(default_factory=list)
    is_builtin: bool = True
    is_optional: bool = False
    default: Any = None
    allows_null: bool = False
    self_buildable: bool = False
    positional_only: bool = False

    @property
    def is_mixed(self) -> bool:
        return self.type_name is None or self.type_name in MIXED_TYPE_NAMES


class ParameterPlan(BaseModel):
    """Parameter list of a constructor or method, derived by introspection.

    Attributes:
        type_name: Name of the owning type.
        member: Method name, or None for the constructor.
        target: The introspected class or callable.
        parameters: Formal parameters in declaration order.
        requires_instance: Whether ``target`` must be looked up on an instance of the type.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type_name: str
    member: Optional[str] = None
    target: Any = None
    parameters: List[ParameterSpec] = Field(default_factory=list)
    requires_instance: bool = False

    @property
    def is_constructor(self) -> bool:
        return self.member is None


class CallArguments(BaseModel):
    """Caller-supplied arguments of a ``get`` or ``call`` request."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    positional: List[Any] = Field(default_factory=list)
    named: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def of(cls, *args: Any, **kwargs: Any) -> "CallArguments":
        return cls(positional=list(args), named=dict(kwargs))


class BoundArguments(BaseModel):
    """Arguments computed by the parameter binder, ready for invocation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    args: List[Any] = Field(default_factory=list)
    kwargs: Dict[str, Any] = Field(default_factory=dict)


class DescriptorParam(BaseModel):
    """One tagged parameter of a structured descriptor.

    Attributes:
        kind: How the value is obtained.
        name: Keyword name, or None for a positional parameter.
        value: Literal, environment variable name or identifier, depending on kind.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: ParamKind
    name: Optional[str] = None
    value: Any = None

    @classmethod
    def from_entry(cls, key: str, value: Any) -> "DescriptorParam":
        """Parse a ``{"<kind>:<name>": value}`` entry."""
        tag, _, name = key.partition(":")
        return cls(kind=ParamKind.parse(tag), name=name.strip() or None, value=value)


class StructuredDescriptor(BaseModel):
    """Declarative specification of a class and its constructor arguments.

    Example:
        >>> StructuredDescriptor.model_validate({
        ...     "class": "app.mail.Mailer",
        ...     "params": [{"val:host": "smtp.local"}, {"env:port": "SMTP_PORT"}, {"obj": "app.Logger"}],
        ... })
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, populate_by_name=True)

    class_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("class", "class_name", "classname", "className"),
    )
    params: List[DescriptorParam] = Field(default_factory=list)

    @field_validator("params", mode="before")
    @classmethod
    def _parse_params(cls, value: Any) -> List[Any]:
        if isinstance(value, Mapping):
            value = [{key: item} for key, item in value.items()]
        parsed = []
        for entry in value:
            if isinstance(entry, DescriptorParam):
                parsed.append(entry)
                continue
            if not isinstance(entry, Mapping) or len(entry) != 1:
                raise ValueError(f"Descriptor parameter must be a single-key mapping, got: {entry!r}")
            ((key, item),) = entry.items()
            if not isinstance(key, str):
                raise ValueError(f"Descriptor parameter key must be a string, got: {key!r}")
            parsed.append(DescriptorParam.from_entry(key, item))
        return parsed

    @staticmethod
    def has_shape(value: Any) -> bool:
        """Whether a raw value looks like a structured descriptor."""
        if isinstance(value, StructuredDescriptor):
            return True
        return (
            isinstance(value, Mapping)
            and "params" in value
            and isinstance(value["params"], (list, tuple, Mapping))
        )


class InterpretationRequest(BaseModel):
    """Everything a value interpreter needs to interpret one binding.

    Attributes:
        identifier: The identifier being resolved.
        binding: The binding found for it.
        arguments: Caller-supplied arguments.
        alias: The identifier that triggered this resolution, if any.
        as_parameter: Whether the value is a parameter-scoped override, where
            plain scalars are acceptable.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    identifier: str
    binding: Binding
    arguments: CallArguments = Field(default_factory=CallArguments)
    alias: Optional[str] = None
    as_parameter: bool = False

    @property
    def value(self) -> Any:
        return self.binding.value


class ResolutionContext(BaseModel):
    """Tracks the current resolution path.

    Used for circular dependency detection. Maintains a stack of identifiers
    currently being resolved.

    Attributes:
        stack: Identifiers currently being resolved.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    stack: List[str] = Field(
        default_factory=list,
        description="Stack of identifiers currently being resolved.",
    )

    def push(self, identifier: str) -> None:
        """Add an identifier to the resolution stack.

        Raises:
            CircularDependencyError: If the identifier is already in the stack.
        """
        if identifier in self.stack:
            cycle = self.stack[self.stack.index(identifier) :] + [identifier]
            raise CircularDependencyError(cycle)
        self.stack.append(identifier)

    def pop(self) -> None:
        """Remove the most recent identifier from the stack."""
        if self.stack:
            self.stack.pop()

    def clear(self) -> None:
        """Clear the entire resolution stack."""
        self.stack.clear()

    def __contains__(self, identifier: str) -> bool:
        return identifier in self.stack
