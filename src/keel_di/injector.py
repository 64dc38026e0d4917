"""Constructor and method injection.

The :class:`Injector` turns a class (or a declarative definition) plus a map
of caller-supplied arguments into a fully wired instance, asking its
container for every class-typed parameter the caller did not supply.
"""

import functools
import inspect
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .analysis import ParameterSpec, analyze_parameters, describe, is_instantiable, locate_class
from .bindings import Lazy, parse_definition
from .constants import CALL_METHOD, LOGGER
from .contracts import ContainerProtocol
from .exceptions import InvalidConfigError, NotFoundError

KeyT = Union[str, type]


def _owner_of(fn: Any) -> Optional[type]:
    if isinstance(fn, type):
        return fn
    if inspect.ismethod(fn):
        bound = fn.__self__
        return bound if isinstance(bound, type) else type(bound)
    if inspect.isfunction(fn) or inspect.isbuiltin(fn) or isinstance(fn, functools.partial):
        return None
    return type(fn)


class Injector:
    def __init__(self, container: ContainerProtocol) -> None:
        self._container = container

    def build(self, target: Union[KeyT, Mapping[str, Any]], arguments: Optional[Mapping[str, Any]] = None) -> Any:
        """Build an instance of ``target`` with its constructor arguments resolved.

        Args:
            target: A class, a dotted class path, or a definition mapping.
            arguments: Values by parameter name; they win over anything the
                container could supply.

        Raises:
            InvalidConfigError: If the target is missing, not instantiable, or
                a parameter cannot be resolved.
        """
        arguments = dict(arguments or {})
        definition = None
        if isinstance(target, Mapping):
            definition = parse_definition(target)
            arguments = {**definition.arguments, **arguments}
            target = definition.target

        cls = self._target_class(target)
        if cls.__init__ is object.__init__:
            instance = cls()
        else:
            params = analyze_parameters(cls.__init__, owner=cls, skip_first=True)
            args, kwargs = self._resolve_dependencies(params, arguments, f"class {describe(cls)}")
            instance = cls(*args, **kwargs)

        if definition is None:
            return instance

        for method, method_args in definition.calls:
            self.invoke(instance, method, method_args)
        for name, value in definition.properties.items():
            value = self._unwrap(value)
            try:
                setattr(instance, name, value)
            except Exception as e:
                raise InvalidConfigError(
                    f"Failed to set property [{name}] of class [{describe(cls)}]: {e.__class__.__name__}: {e}"
                ) from e
        return instance

    def invoke(self, obj: Any, method: str = CALL_METHOD, arguments: Optional[Mapping[str, Any]] = None) -> Any:
        """Call ``obj.method`` (or ``obj`` itself) with its parameters resolved.

        Raises:
            InvalidConfigError: If the method does not exist or its signature
                cannot be introspected.
        """
        arguments = dict(arguments or {})
        if method == CALL_METHOD and callable(obj):
            fn = obj
            owner = _owner_of(obj)
        else:
            fn = getattr(obj, method, None)
            if fn is None or not callable(fn):
                raise InvalidConfigError(f"Target method [{method}] of class [{describe(type(obj))}] does not exist.")
            owner = next((c for c in type(obj).__mro__ if method in vars(c)), type(obj))

        params = analyze_parameters(fn, owner=owner)
        args, kwargs = self._resolve_dependencies(params, arguments, f"method {describe(fn)}")
        return fn(*args, **kwargs)

    def _target_class(self, target: Any) -> type:
        if isinstance(target, str):
            cls = locate_class(target)
            if cls is None:
                raise InvalidConfigError(f"Target class [{target}] does not exist.")
        elif isinstance(target, type):
            cls = target
        else:
            raise InvalidConfigError(f"Target [{target!r}] is not a class.")
        if not is_instantiable(cls):
            raise InvalidConfigError(f"Target [{describe(cls)}] is not instantiable.")
        return cls

    def _resolve_dependencies(
        self, params: Tuple[ParameterSpec, ...], arguments: Dict[str, Any], where: str
    ) -> Tuple[List[Any], Dict[str, Any]]:
        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for param in params:
            value = self._resolve_one(param, arguments, where)
            if param.is_keyword_only:
                kwargs[param.name] = value
            else:
                args.append(value)
        return args, kwargs

    def _resolve_one(self, param: ParameterSpec, arguments: Dict[str, Any], where: str) -> Any:
        if param.name in arguments:
            value = arguments[param.name]
        elif param.key is None:
            if not param.has_default:
                raise InvalidConfigError(f"Unresolvable dependency resolving [{param.name}] in {where}")
            value = param.default
        else:
            try:
                value = self._container.get(param.key)
            except NotFoundError:
                if not param.has_default:
                    raise
                LOGGER.debug("No entry for %s, using default of [%s] in %s", describe(param.key), param.name, where)
                value = param.default
        return self._unwrap(value)

    def _unwrap(self, value: Any) -> Any:
        while isinstance(value, Lazy):
            value = self.invoke(value.func)
        return value
