"""Exception hierarchy for keel-di.

All framework-specific exceptions inherit from :class:`DiError`, making it
easy to catch any container error with a single ``except DiError`` clause.
"""

from typing import Any, Iterable


def _name(key: Any) -> str:
    return getattr(key, "__qualname__", None) or getattr(key, "__name__", None) or str(key)


class DiError(Exception):
    """Base exception for all keel-di errors."""

    pass


class InvalidConfigError(DiError):
    """Raised when a binding, definition, provider or target is structurally wrong.

    Covers missing definition targets, non-instantiable classes, missing
    methods, failed property assignments, callables that cannot be
    introspected and providers that do not satisfy the provider contract.
    """

    def __init__(self, msg: str):
        super().__init__(msg)


class CircularReferenceError(DiError):
    """Raised when a key is requested while it is already being built.

    Attributes:
        key: The key whose construction was re-entered.
        chain: Keys under construction at the time, outermost first.
    """

    def __init__(self, key: Any, chain: Iterable[Any]):
        self.key = key
        self.chain = tuple(chain)
        path = " -> ".join(_name(k) for k in self.chain + (key,))
        super().__init__(
            f"Circular reference to '{_name(key)}' detected while building: "
            f"{', '.join(_name(k) for k in self.chain)} ({path})"
        )


class NotFoundError(DiError):
    """Raised by ``Container.get`` when a key is neither bound, cached nor autowireable.

    The failure that triggered the lookup is kept as ``__cause__``.

    Attributes:
        key: The key that was not found.
    """

    def __init__(self, key: Any):
        super().__init__(f"No entry was found for key '{_name(key)}'")
        self.key = key
