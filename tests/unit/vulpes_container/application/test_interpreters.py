"""Unit tests for the value interpretation pipeline."""

import functools

import pytest

from vulpes_container.application.container import Container
from vulpes_container.application.interpreters import (
    AliasInterpreter,
    ConstructionInterpreter,
    DescriptorInterpreter,
    FactoryInterpreter,
    InstanceInterpreter,
    InterpreterPipeline,
    MethodInterpreter,
    RawValueInterpreter,
    ResolvedValueInterpreter,
    default_interpreters,
    is_factory,
    is_instance,
)
from vulpes_container.domain import (
    Binding,
    CallArguments,
    InterpretationRequest,
    InvocationError,
    IValueInterpreter,
    NotFoundError,
    StructuredDescriptor,
    ref,
)
from vulpes_container.infrastructure.environment import EnvironmentReader


class Logger:
    pass


class Mailer:
    def __init__(self, host, port=25, *extra, logger=None, **options):
        self.host = host
        self.port = port
        self.extra = extra
        self.logger = logger
        self.options = options


class Exploding:
    def __init__(self):
        raise RuntimeError("boom")


class MailerFactory:
    def build(self, host="factory.example.invalid"):
        return Mailer(host)


def request(identifier, value, resolved=False, arguments=None, alias=None, as_parameter=False):
    return InterpretationRequest(
        identifier=identifier,
        binding=Binding(identifier=identifier, value=value, resolved=resolved),
        arguments=arguments or CallArguments(),
        alias=alias,
        as_parameter=as_parameter,
    )


class TestValueClassification:
    """Test cases for is_factory and is_instance."""

    def test_factories(self):
        """Test the callables treated as factories."""
        assert is_factory(lambda: 1)
        assert is_factory(functools.partial(dict, a=1))
        assert is_factory(len)
        assert is_factory(Mailer("host").__init__)
        assert not is_factory(Logger)
        assert not is_factory("app.Logger")

    def test_instances(self):
        """Test the values treated as built objects."""
        assert is_instance(Logger())
        assert not is_instance(None)
        assert not is_instance(42)
        assert not is_instance("text")
        assert not is_instance(Logger)
        assert not is_instance({"a": 1})
        assert not is_instance([1])
        assert not is_instance(ref("x"))
        assert not is_instance(lambda: 1)


class TestSimpleInterpreters:
    """Test cases for the resolved, instance and raw value stages."""

    def test_resolved_value(self):
        """Test that cached values are returned as they are."""
        resolver = Container()._resolver
        interpreter = ResolvedValueInterpreter()
        cached = request("greeting", "hello", resolved=True)
        assert interpreter.matches(cached, resolver)
        assert interpreter.interpret(cached, resolver) == "hello"
        assert not interpreter.matches(request("greeting", "hello"), resolver)

    def test_instance(self):
        """Test that built objects are returned as they are."""
        resolver = Container()._resolver
        logger = Logger()
        interpreter = InstanceInterpreter()
        assert interpreter.matches(request("log", logger), resolver)
        assert interpreter.interpret(request("log", logger), resolver) is logger

    def test_scalar_as_parameter(self):
        """Test that scalars satisfy parameter-scoped overrides."""
        resolver = Container()._resolver
        assert RawValueInterpreter().interpret(request("app.X::port", 8080, as_parameter=True), resolver) == 8080

    def test_scalar_construction_request(self):
        """Test that scalars cannot satisfy a construction request."""
        resolver = Container()._resolver
        with pytest.raises(NotFoundError, match="int value cannot satisfy"):
            RawValueInterpreter().interpret(request("app.port", 8080), resolver)

    def test_collections_are_returned_unchanged(self):
        """Test that lists, tuples, sets and dicts are plain values."""
        resolver = Container()._resolver
        interpreter = RawValueInterpreter()
        hosts = ["a.example.invalid", "b.example.invalid"]
        assert interpreter.interpret(request("app.hosts", hosts), resolver) is hosts
        assert interpreter.interpret(request("app.pair", (1, 2)), resolver) == (1, 2)
        assert interpreter.interpret(request("app.tags", {"x"}), resolver) == {"x"}
        assert interpreter.interpret(request("app.limits", {"rps": 10}), resolver) == {"rps": 10}


class TestFactoryInterpreter:
    """Test cases for the factory stage."""

    def test_factory_receives_container_identifier_and_alias(self):
        """Test the arguments passed to a factory."""
        container = Container()
        calls = []

        def factory(c, identifier, alias):
            calls.append((c, identifier, alias))
            return "built"

        result = FactoryInterpreter().interpret(request("app.X", factory, alias="app.XInterface"), container._resolver)

        assert result == "built"
        assert calls == [(container, "app.X", "app.XInterface")]

    def test_factory_arity_is_respected(self):
        """Test that factories receive only the arguments they accept."""
        resolver = Container()._resolver
        assert FactoryInterpreter().interpret(request("a", lambda: 1), resolver) == 1
        assert FactoryInterpreter().interpret(request("b", lambda c, i: i), resolver) == "b"

    def test_factory_result_is_cached(self):
        """Test that the factory result is stored as resolved."""
        container = Container()
        FactoryInterpreter().interpret(request("app.value", lambda: "hello"), container._resolver)
        binding = container.get_registry_copy()["app.value"]
        assert binding.resolved and binding.value == "hello"

    def test_factory_failure_is_wrapped(self):
        """Test that factory exceptions become InvocationError."""
        def factory():
            raise ValueError("nope")

        with pytest.raises(InvocationError) as exc_info:
            FactoryInterpreter().interpret(request("app.X", factory), Container()._resolver)

        assert isinstance(exc_info.value.cause, ValueError)

    def test_factory_rebinding_its_identifier(self):
        """Test that a factory replacing its own binding yields the new binding's value."""
        container = Container()
        logger = Logger()

        def factory(c):
            c.set("app.log", logger)
            return None

        container.set("app.log", factory)
        binding = container.get_registry_copy()["app.log"]
        value = FactoryInterpreter().interpret(
            InterpretationRequest(identifier="app.log", binding=binding), container._resolver
        )

        assert value is logger


class TestAliasInterpreter:
    """Test cases for the alias stage."""

    def test_reference(self):
        """Test resolving through a Reference marker."""
        container = Container()
        target = container.register_type(Logger)
        value = AliasInterpreter().interpret(request("app.log", ref(target)), container._resolver)
        assert isinstance(value, Logger)

    def test_class_object(self):
        """Test resolving through a class object."""
        container = Container()
        interpreter = AliasInterpreter()
        assert interpreter.matches(request("app.log", Logger), container._resolver)
        assert isinstance(interpreter.interpret(request("app.log", Logger), container._resolver), Logger)

    def test_loadable_string(self):
        """Test resolving through a type name."""
        container = Container()
        name = container.register_type(Logger)
        assert AliasInterpreter().matches(request("app.log", name), container._resolver)

    def test_non_matching_strings(self):
        """Test strings that are not aliases."""
        container = Container()
        name = container.register_type(Logger)
        interpreter = AliasInterpreter()
        assert not interpreter.matches(request(name, name), container._resolver)
        assert not interpreter.matches(request("app.host", "smtp.example.invalid"), container._resolver)
        assert not interpreter.matches(request("app.host", "localhost"), container._resolver)

    def test_alias_is_passed_on(self):
        """Test that the aliasing identifier scopes the target's overrides."""
        container = Container()
        target = container.register_type(Mailer)
        container.set("app.mailer::host", "alias-scoped")
        value = AliasInterpreter().interpret(request("app.mailer", target), container._resolver)
        assert value.host == "alias-scoped"


class TestMethodInterpreter:
    """Test cases for the (owner, method) stage."""

    def test_matches(self):
        """Test the pairs accepted as method bindings."""
        container = Container()
        resolver = container._resolver
        name = container.register_type(MailerFactory)
        interpreter = MethodInterpreter()
        assert interpreter.matches(request("app.mailer", (MailerFactory, "build")), resolver)
        assert interpreter.matches(request("app.mailer", [name, "build"]), resolver)
        assert interpreter.matches(request("app.mailer", (MailerFactory(), "build")), resolver)

    def test_non_matching_pairs(self):
        """Test two-item values that stay plain values."""
        container = Container()
        resolver = container._resolver
        name = container.register_type(MailerFactory)
        interpreter = MethodInterpreter()
        assert not interpreter.matches(request("app.pair", ("localhost", "upper")), resolver)
        assert not interpreter.matches(request("app.pair", (MailerFactory, "missing")), resolver)
        assert not interpreter.matches(request("app.pair", [name, "not a method"]), resolver)
        assert not interpreter.matches(request("app.pair", (name, "build", "extra")), resolver)
        assert not interpreter.matches(request("app.pair", (1, 2)), resolver)

    def test_type_pair_resolves_member(self):
        """Test that a type pair resolves Type::method."""
        container = Container()
        value = MethodInterpreter().interpret(request("app.mailer", (MailerFactory, "build")), container._resolver)
        assert isinstance(value, Mailer)
        assert value.host == "factory.example.invalid"

    def test_object_pair_calls_method(self):
        """Test that an object pair calls the method on that object."""
        container = Container()
        factory = MailerFactory()
        value = MethodInterpreter().interpret(
            request("app.mailer", (factory, "build"), arguments=CallArguments.of("caller.example.invalid")),
            container._resolver,
        )
        assert value.host == "caller.example.invalid"

    def test_identifier_scopes_overrides(self):
        """Test that overrides under the bound identifier reach the method."""
        container = Container()
        name = container.register_type(MailerFactory)
        container.set("app.mailer::host", "scoped.example.invalid")

        by_type = MethodInterpreter().interpret(request("app.mailer", [name, "build"]), container._resolver)
        by_object = MethodInterpreter().interpret(request("app.mailer", (MailerFactory(), "build")), container._resolver)

        assert by_type.host == "scoped.example.invalid"
        assert by_object.host == "scoped.example.invalid"


class TestDescriptorInterpreter:

    """Test cases for the structured descriptor stage."""

    def test_tagged_parameters(self):
        """Test val, env and obj parameters."""
        container = Container(environment=EnvironmentReader({"SMTP_PORT": "2525"}))
        mailer = container.register_type(Mailer)
        logger = container.register_type(Logger)
        descriptor = {
            "class": mailer,
            "params": [{"val:host": "smtp.local"}, {"env:port": "SMTP_PORT"}, {"obj:logger": logger}],
        }

        value = DescriptorInterpreter().interpret(request("app.mailer", descriptor), container._resolver)

        assert value.host == "smtp.local"
        assert value.port == "2525"
        assert isinstance(value.logger, Logger)

    def test_missing_environment_variable(self):
        """Test that an unset environment variable yields None."""
        container = Container(environment=EnvironmentReader({}))
        mailer = container.register_type(Mailer)
        descriptor = {"class": mailer, "params": [{"val": "h"}, {"env": "UNSET"}]}

        value = DescriptorInterpreter().interpret(request("app.mailer", descriptor), container._resolver)

        assert value.port is None

    def test_arg_parameters_take_caller_arguments(self):
        """Test that arg parameters consume caller positional arguments in order."""
        container = Container()
        mailer = container.register_type(Mailer)
        descriptor = {"class": mailer, "params": [{"arg:host": "fallback"}, {"arg:port": 1}]}

        value = DescriptorInterpreter().interpret(
            request("app.mailer", descriptor, arguments=CallArguments.of("caller")), container._resolver
        )

        assert value.host == "caller"
        assert value.port == 1

    def test_arg_parameter_resolves_identifier(self):
        """Test that an unfilled arg parameter resolves its value when it is an identifier."""
        container = Container()
        mailer = container.register_type(Mailer)
        logger = container.register_type(Logger)
        descriptor = {"class": mailer, "params": [{"val:host": "h"}, {"arg:logger": logger}]}

        value = DescriptorInterpreter().interpret(request("app.mailer", descriptor), container._resolver)

        assert isinstance(value.logger, Logger)

    def test_named_caller_argument_wins(self):
        """Test that named caller arguments replace descriptor parameters."""
        container = Container()
        mailer = container.register_type(Mailer)
        descriptor = {"class": mailer, "params": [{"val:host": "descriptor"}]}

        value = DescriptorInterpreter().interpret(
            request("app.mailer", descriptor, arguments=CallArguments.of(host="caller")), container._resolver
        )

        assert value.host == "caller"

    def test_unknown_tag_takes_next_positional(self):
        """Test that parameters with an unknown tag take the next caller argument."""
        container = Container()
        mailer = container.register_type(Mailer)
        descriptor = {"class": mailer, "params": [{"val": "h"}, {"other": "ignored"}, {"other": "ignored"}]}

        value = DescriptorInterpreter().interpret(
            request("app.mailer", descriptor, arguments=CallArguments.of(587)), container._resolver
        )

        assert value.port == 587
        assert value.extra == (None,)

    def test_class_defaults_to_identifier(self):
        """Test that the identifier names the class when the descriptor does not."""
        container = Container()
        mailer = container.register_type(Mailer)
        value = DescriptorInterpreter().interpret(
            request(mailer, StructuredDescriptor.model_validate({"params": [{"val": "h"}]})),
            container._resolver,
        )
        assert value.host == "h"

    def test_unloadable_class(self):
        """Test that a missing descriptor class is reported."""
        with pytest.raises(NotFoundError, match="not loadable"):
            DescriptorInterpreter().interpret(
                request("app.mailer", {"class": "app.Missing", "params": []}), Container()._resolver
            )

    def test_invalid_descriptor(self):
        """Test that malformed parameters are reported."""
        with pytest.raises(NotFoundError, match="invalid descriptor"):
            DescriptorInterpreter().interpret(
                request("app.mailer", {"class": "app.X", "params": ["bad"]}), Container()._resolver
            )

    def test_constructor_failure_is_wrapped(self):
        """Test that constructor exceptions become InvocationError."""
        container = Container()
        name = container.register_type(Exploding)
        with pytest.raises(InvocationError, match="boom"):
            DescriptorInterpreter().interpret(request("app.x", {"class": name, "params": []}), container._resolver)


class TestConstructionInterpreter:
    """Test cases for the construction stage."""

    def test_matches(self):
        """Test the values that request construction of the identifier."""
        container = Container()
        resolver = container._resolver
        mailer = container.register_type(Mailer)
        interpreter = ConstructionInterpreter()
        assert interpreter.matches(request("app.X", None), resolver)
        assert interpreter.matches(request("app.X", "app.X"), resolver)
        assert interpreter.matches(request(mailer, {"port": 1}), resolver)
        assert not interpreter.matches(request("app.limits", {"port": 1}), resolver)
        assert not interpreter.matches(request("app.X", 1), resolver)
        assert not interpreter.matches(request("app.X", None, as_parameter=True), resolver)

    def test_constructs_identifier(self):
        """Test that the identifier's own type is constructed."""
        container = Container()
        name = container.register_type(Mailer)
        container.set(name, {"host": "from-overrides"})
        binding = container.get_registry_copy()[name]

        value = ConstructionInterpreter().interpret(
            InterpretationRequest(identifier=name, binding=binding), container._resolver
        )

        assert value.host == "from-overrides"


class TestInterpreterPipeline:
    """Test cases for InterpreterPipeline."""

    def test_default_order(self):
        """Test the default stage order."""
        kinds = [type(i) for i in default_interpreters()]
        assert kinds == [
            ResolvedValueInterpreter,
            FactoryInterpreter,
            InstanceInterpreter,
            AliasInterpreter,
            MethodInterpreter,
            DescriptorInterpreter,
            ConstructionInterpreter,
            RawValueInterpreter,
        ]

    def test_prepend_custom_stage(self):
        """Test that custom stages run before the default ones."""

        class UpperCaseInterpreter(IValueInterpreter):
            def matches(self, request, resolver):
                return isinstance(request.value, str) and request.value.startswith("upper:")

            def interpret(self, request, resolver):
                return request.value[len("upper:"):].upper()

        pipeline = InterpreterPipeline()
        pipeline.prepend(UpperCaseInterpreter())

        assert isinstance(pipeline.interpreters[0], UpperCaseInterpreter)
        assert pipeline.interpret(request("x", "upper:abc"), Container()._resolver) == "ABC"

    def test_no_matching_stage(self):
        """Test an empty pipeline."""
        with pytest.raises(NotFoundError, match="no interpreter"):
            InterpreterPipeline([]).interpret(request("x", 1), Container()._resolver)
