"""Binding variants and declarative definitions.

Every value handed to :meth:`Container.bind` is classified into one of a
closed set of variants (:class:`Alias`, :class:`Instance`, :class:`Factory`,
:class:`DefinitionBinding`, :class:`ProviderBinding`) so the container can
dispatch on the kind of binding instead of probing raw objects. Passing a
variant directly skips classification, e.g. ``Instance(some_function)``
binds the function itself rather than its return value.
"""

import functools
import types
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Tuple, Union

from .constants import CLASS_KEY, CONSTRUCTOR_KEY, METHOD_SUFFIX
from .exceptions import InvalidConfigError

KeyT = Union[str, type]


@dataclass(frozen=True)
class Lazy:
    """A zero-argument computation evaluated through the injector at the point of use.

    Used as a constructor argument, method argument or property value inside
    a definition, the wrapped callable is invoked (with its own parameters
    injected) instead of being passed through literally.
    """

    func: Callable[..., Any]


@dataclass(frozen=True)
class Alias:
    target: KeyT


@dataclass(frozen=True)
class Instance:
    value: Any


@dataclass(frozen=True)
class Factory:
    func: Callable[..., Any]


@dataclass(frozen=True)
class DefinitionBinding:
    definition: Mapping[str, Any]


@dataclass(frozen=True, eq=False)
class ProviderBinding:
    provider: Any


Binding = Union[Alias, Instance, Factory, DefinitionBinding, ProviderBinding]

_FACTORY_TYPES = (types.FunctionType, types.MethodType, functools.partial)


def as_binding(concrete: Any) -> Binding:
    """Classify a raw ``bind`` value without validating it."""
    if isinstance(concrete, (Alias, Instance, Factory, DefinitionBinding, ProviderBinding)):
        return concrete
    if isinstance(concrete, (str, type)):
        return Alias(concrete)
    if isinstance(concrete, Mapping):
        return DefinitionBinding(concrete)
    if isinstance(concrete, Lazy):
        return Factory(concrete.func)
    if isinstance(concrete, _FACTORY_TYPES):
        return Factory(concrete)
    return Instance(concrete)


@dataclass(frozen=True)
class Definition:
    """A parsed declarative definition.

    Attributes:
        target: Class (or key naming one) to construct.
        arguments: Constructor arguments by parameter name.
        calls: ``(method, arguments)`` pairs in declaration order.
        properties: Attribute assignments applied after the calls.
    """

    target: KeyT
    arguments: Dict[str, Any] = field(default_factory=dict)
    calls: Tuple[Tuple[str, Dict[str, Any]], ...] = ()
    properties: Dict[str, Any] = field(default_factory=dict)


def parse_definition(raw: Mapping[str, Any]) -> Definition:
    """Split a definition mapping into target, arguments, calls and properties.

    ``{"class": Widget, "__init__()": {"size": 5}, "set_color()": {"color": "red"}, "label": "x"}``
    constructs ``Widget(size=5)``, calls ``set_color(color="red")`` and sets
    ``label``.

    Raises:
        InvalidConfigError: If the target class is missing or a call entry
            is not a mapping of arguments.
    """
    target = raw.get(CLASS_KEY)
    if target is None:
        raise InvalidConfigError(f"Definition is missing the required '{CLASS_KEY}' entry: {dict(raw)!r}")

    arguments = dict(raw.get(CONSTRUCTOR_KEY) or {})
    calls: List[Tuple[str, Dict[str, Any]]] = []
    properties: Dict[str, Any] = {}
    for key, value in raw.items():
        if key in (CLASS_KEY, CONSTRUCTOR_KEY):
            continue
        if key.endswith(METHOD_SUFFIX):
            if value is not None and not isinstance(value, Mapping):
                raise InvalidConfigError(f"Arguments of method call '{key}' must be a mapping, got {type(value).__name__}")
            calls.append((key[: -len(METHOD_SUFFIX)], dict(value or {})))
        else:
            properties[key] = value
    return Definition(target=target, arguments=arguments, calls=tuple(calls), properties=properties)
