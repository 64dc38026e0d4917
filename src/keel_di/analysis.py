"""Signature introspection used by the injector.

Wraps :mod:`inspect` and :mod:`typing` so the rest of the package deals with
plain :class:`ParameterSpec` records: the parameter name, how it is passed,
the container key its annotation maps to (if any) and its default value.
"""

import importlib
import inspect
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union, get_args, get_origin

from .exceptions import InvalidConfigError

KeyT = Union[str, type]

_SELF = getattr(typing, "Self", None)
_NON_INJECTABLE_MODULES = ("builtins", "typing")
_UNION_ORIGINS = (Union, types.UnionType)


class Parent:
    """Annotation marker resolving to the declaring class's immediate base.

    ``def __init__(self, base: Parent)`` inside ``class B(A)`` asks the
    container for ``A``.
    """


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    kind: Any
    key: Optional[KeyT]
    has_default: bool
    default: Any = None

    @property
    def is_keyword_only(self) -> bool:
        return self.kind is inspect.Parameter.KEYWORD_ONLY


def describe(obj: Any) -> str:
    if isinstance(obj, str):
        return obj
    if isinstance(obj, type):
        return f"{obj.__module__}.{obj.__qualname__}"
    name = getattr(obj, "__qualname__", None) or getattr(obj, "__name__", None)
    if name:
        return name
    return type(obj).__qualname__


def locate_class(name: str) -> Optional[type]:
    """Import the class named by ``pkg.mod.Class`` or ``pkg.mod:Class``.

    Returns ``None`` when no module prefix imports or the attribute path does
    not end at a class.
    """
    if ":" in name:
        module_name, _, attr_path = name.partition(":")
        candidates = [(module_name, attr_path.split("."))]
    else:
        parts = name.split(".")
        candidates = [(".".join(parts[:i]), parts[i:]) for i in range(len(parts) - 1, 0, -1)]

    for module_name, attrs in candidates:
        if not all(module_name.split(".")) or not all(attrs):
            continue
        try:
            obj: Any = importlib.import_module(module_name)
        except (ImportError, ValueError):
            continue
        for attr in attrs:
            obj = getattr(obj, attr, None)
            if obj is None:
                break
        return obj if isinstance(obj, type) else None
    return None


def is_instantiable(cls: Any) -> bool:
    if not isinstance(cls, type):
        return False
    if getattr(cls, "_is_protocol", False):
        return False
    return not inspect.isabstract(cls)


def _unwrap_optional(ann: Any) -> Any:
    if get_origin(ann) in _UNION_ORIGINS:
        args = [a for a in get_args(ann) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return ann


def resolve_type_key(ann: Any, owner: Optional[type] = None) -> Optional[KeyT]:
    """Map a parameter annotation to a container key, or ``None`` for "no type".

    Only classes take part in injection; builtins, generics and typing
    constructs count as untyped.
    """
    if ann is inspect.Parameter.empty:
        return None
    ann = _unwrap_optional(ann)
    if _SELF is not None and ann is _SELF:
        return owner
    if ann is Parent:
        if owner is None:
            return None
        bases = [b for b in owner.__bases__ if b is not object]
        return bases[0] if bases else None
    if isinstance(ann, str):
        return locate_class(ann) if "." in ann else None
    if get_origin(ann) is not None:
        return None
    if isinstance(ann, type) and ann.__module__ not in _NON_INJECTABLE_MODULES:
        return ann
    return None


def _type_hints(func: Callable[..., Any]) -> Dict[str, Any]:
    target = getattr(func, "__func__", func)
    try:
        return typing.get_type_hints(target)
    except Exception:
        return {}


def analyze_parameters(
    func: Callable[..., Any], owner: Optional[type] = None, skip_first: bool = False
) -> Tuple[ParameterSpec, ...]:
    """Describe the injectable parameters of ``func`` in declaration order.

    Variadic parameters are skipped. ``skip_first`` drops the leading
    ``self`` of an unbound method such as ``cls.__init__``.

    Raises:
        InvalidConfigError: If the signature cannot be introspected.
    """
    try:
        sig = inspect.signature(func)
    except (ValueError, TypeError) as e:
        raise InvalidConfigError(f"Failed to make reflection of [{describe(func)}]: {e}") from e

    hints = _type_hints(func)
    plan: List[ParameterSpec] = []
    items = list(sig.parameters.items())
    if skip_first and items and items[0][1].kind in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    ):
        items = items[1:]
    for name, param in items:
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        ann = hints.get(name, param.annotation)
        has_default = param.default is not inspect.Parameter.empty
        plan.append(
            ParameterSpec(
                name=name,
                kind=param.kind,
                key=resolve_type_key(ann, owner),
                has_default=has_default,
                default=param.default if has_default else None,
            )
        )
    return tuple(plan)
