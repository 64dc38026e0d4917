"""Structural contracts shared by the container and its collaborators.

Providers are duck-typed: any object with a ``register(container)`` method is
a :class:`ServiceProvider`, and one that also has ``provides()`` is a
:class:`DeferredServiceProvider`. Subclassing the protocols is optional.
"""

from typing import Any, Iterable, Protocol, Union, runtime_checkable

KeyT = Union[str, type]


@runtime_checkable
class ContainerProtocol(Protocol):
    """Read-only view of a container: look up and probe keys."""

    def get(self, key: KeyT) -> Any: ...

    def has(self, key: KeyT) -> bool: ...


@runtime_checkable
class ServiceProvider(Protocol):
    """Registers one or more bindings into a container."""

    def register(self, container: Any) -> None: ...


@runtime_checkable
class DeferredServiceProvider(ServiceProvider, Protocol):
    """A provider whose registration waits until one of its keys is requested.

    ``provides()`` must list every key that ``register()`` may bind.
    """

    def provides(self) -> Iterable[KeyT]: ...
