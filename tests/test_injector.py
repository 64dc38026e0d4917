import typing
from typing import Protocol

import pytest

from keel_di import Container, Injector, InvalidConfigError, Lazy, NotFoundError, Parent

# --- Test Helpers ---


class Engine:
    pass


class Car:
    def __init__(self, engine: Engine):
        self.engine = engine


class Widget:
    def __init__(self, size: int):
        self.size = size
        self.color = None
        self.events = ["init"]

    def set_color(self, color: str) -> None:
        self.events.append("set_color")
        self.color = color

    def attach(self, engine: Engine) -> None:
        self.events.append("attach")
        self.engine = engine


class Slotted:
    __slots__ = ("size",)

    def __init__(self, size: int = 1):
        self.size = size


class Settings:
    def __init__(self, *, engine: Engine, debug: bool = False):
        self.engine = engine
        self.debug = debug


class Greeter:
    def greet(self, engine: Engine, name: str = "world") -> str:
        return f"hello {name} from {type(engine).__name__}"


class Job:
    def __call__(self, engine: Engine):
        return engine


class Base:
    pass


class Derived(Base):
    def attach(self, base: Parent):
        return base


class Standalone:
    def attach(self, base: Parent = None):
        return base


Self = getattr(typing, "Self", None)


class Node:
    def link(self, other: "Self"):
        return other


class Repository(Protocol):
    def find(self, key: str): ...


@pytest.fixture
def container():
    return Container()


@pytest.fixture
def injector(container):
    return container.get(Injector)


# --- Tests ---


class TestBuild:
    def test_class_without_constructor(self, injector):
        assert isinstance(injector.build(Engine), Engine)

    def test_typed_parameter_comes_from_container(self, container, injector):
        car = injector.build(Car)

        assert car.engine is container.get(Engine)

    def test_injector_build_does_not_cache(self, container, injector):
        assert injector.build(Car) is not injector.build(Car)

    def test_keyword_only_parameters(self, container, injector):
        settings = injector.build(Settings, {"debug": True})

        assert settings.engine is container.get(Engine)
        assert settings.debug is True

    def test_dotted_class_path(self, injector):
        assert isinstance(injector.build("keel_di.container.Container"), Container)

    def test_missing_class(self, injector):
        with pytest.raises(InvalidConfigError, match="does not exist"):
            injector.build("keel_di.nowhere.Thing")

    def test_abstract_protocol_is_not_instantiable(self, injector):
        with pytest.raises(InvalidConfigError, match="not instantiable"):
            injector.build(Repository)

    def test_non_class_target(self, injector):
        with pytest.raises(InvalidConfigError, match="not a class"):
            injector.build(42)

    def test_untyped_parameter_without_default(self, injector):
        with pytest.raises(InvalidConfigError, match=r"Unresolvable dependency resolving \[size\]"):
            injector.build(Widget)

    def test_required_unregistered_dependency(self, injector):
        class NeedsRepository:
            def __init__(self, repository: Repository):
                self.repository = repository

        with pytest.raises(NotFoundError):
            injector.build(NeedsRepository)

    def test_lazy_argument_is_invoked(self, container, injector):
        def pick(engine: Engine) -> Engine:
            return engine

        car = injector.build(Car, {"engine": Lazy(pick)})

        assert car.engine is container.get(Engine)

    def test_nested_lazy_values_are_unwrapped(self, injector):
        widget = injector.build(Widget, {"size": Lazy(lambda: Lazy(lambda: 3))})

        assert widget.size == 3


class TestDefinitions:
    def test_constructor_then_method_calls_then_properties(self, container):
        container.bind(
            "widget",
            {
                "class": Widget,
                "__init__()": {"size": 5},
                "set_color()": {"color": "red"},
                "attach()": {},
                "label": "big",
            },
        )

        widget = container.get("widget")

        assert isinstance(widget, Widget)
        assert widget.size == 5
        assert widget.color == "red"
        assert widget.events == ["init", "set_color", "attach"]
        assert widget.engine is container.get(Engine)
        assert widget.label == "big"

    def test_caller_arguments_override_definition_arguments(self, container):
        container.bind("widget", {"class": Widget, "__init__()": {"size": 5}})

        assert container.build("widget", {"size": 9}).size == 9

    def test_lazy_property_and_method_argument(self, container):
        def owner(engine: Engine):
            return engine

        container.bind(
            "widget",
            {
                "class": Widget,
                "__init__()": {"size": 1},
                "set_color()": {"color": Lazy(lambda: "blue")},
                "owner": Lazy(owner),
            },
        )
        widget = container.get("widget")

        assert widget.color == "blue"
        assert widget.owner is container.get(Engine)

    def test_dotted_class_in_definition(self, container):
        container.bind("inner", {"class": "keel_di.injector:Injector", "__init__()": {"container": None}})

        assert isinstance(container.get("inner"), Injector)

    def test_missing_class_entry(self, container):
        container.bind("broken", {"__init__()": {"size": 1}})

        with pytest.raises(InvalidConfigError, match="'class'"):
            container.get("broken")

    def test_missing_method(self, container):
        container.bind("engine", {"class": Engine, "start()": {}})

        with pytest.raises(InvalidConfigError, match=r"Target method \[start\]"):
            container.get("engine")

    def test_method_arguments_must_be_a_mapping(self, container):
        container.bind("widget", {"class": Widget, "__init__()": {"size": 1}, "set_color()": ["red"]})

        with pytest.raises(InvalidConfigError, match="must be a mapping"):
            container.get("widget")

    def test_failed_property_assignment(self, container):
        container.bind("slotted", {"class": Slotted, "colour": "red"})

        with pytest.raises(InvalidConfigError, match=r"property \[colour\].*Slotted") as exc:
            container.get("slotted")

        assert isinstance(exc.value.__cause__, AttributeError)


class TestInvoke:
    def test_named_method(self, injector):
        assert injector.invoke(Greeter(), "greet", {"name": "bob"}) == "hello bob from Engine"

    def test_callable_object(self, container, injector):
        assert injector.invoke(Job()) is container.get(Engine)

    def test_plain_function(self, container, injector):
        def handler(engine: Engine, retries: int = 3):
            return engine, retries

        assert injector.invoke(handler, arguments={"retries": 5}) == (container.get(Engine), 5)

    def test_missing_method(self, injector):
        with pytest.raises(InvalidConfigError, match=r"\[missing\] of class \[.*Greeter\]"):
            injector.invoke(Greeter(), "missing")

    def test_non_callable_attribute(self, injector):
        widget = Widget(1)

        with pytest.raises(InvalidConfigError, match="does not exist"):
            injector.invoke(widget, "size")

    def test_parent_marker_resolves_to_base_class(self, container, injector):
        assert injector.invoke(Derived(), "attach") is container.get(Base)

    def test_parent_marker_without_base_uses_default(self, injector):
        assert injector.invoke(Standalone(), "attach") is None

    @pytest.mark.skipif(not hasattr(typing, "Self"), reason="typing.Self requires Python 3.11")
    def test_self_annotation_resolves_to_declaring_class(self, container, injector):
        assert injector.invoke(Node(), "link") is container.get(Node)

    def test_lazy_with_untyped_parameter_fails(self, injector):
        with pytest.raises(InvalidConfigError, match=r"\[container\]"):
            injector.build(Widget, {"size": Lazy(lambda container: 1)})
