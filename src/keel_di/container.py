# src/keel_di/container.py
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from .analysis import describe, is_instantiable, locate_class
from .bindings import Alias, Binding, DefinitionBinding, Factory, Instance, ProviderBinding, as_binding
from .config_sources import TreeSource
from .constants import LOGGER
from .contracts import ContainerProtocol, DeferredServiceProvider, ServiceProvider
from .exceptions import CircularReferenceError, InvalidConfigError, NotFoundError
from .injector import Injector

KeyT = Union[str, type]


class Container:
    """Binding registry and singleton builder.

    Keys are classes or strings. A string naming an importable class
    (``"pkg.mod.Class"`` or ``"pkg.mod:Class"``) is the same key as the class
    itself. Every key is built at most once; the instance is cached until the
    key is bound again.

    Args:
        bindings: Initial ``key -> concrete`` bindings, applied in order.
        providers: Service providers (or keys building them), applied after
            the bindings.
    """

    def __init__(self, bindings: Optional[Mapping[KeyT, Any]] = None, providers: Optional[Iterable[Any]] = None) -> None:
        self._bindings: Dict[KeyT, Binding] = {}
        self._instances: Dict[KeyT, Any] = {}
        self._building: Dict[KeyT, None] = {}
        self._located: Dict[str, KeyT] = {}
        self._build_count = 0
        self._cache_hit_count = 0

        self.bind(Container, Factory(lambda: self))
        self.bind(ContainerProtocol, Factory(lambda: self))
        self._injector = Injector(self)
        self.bind(Injector, Instance(self._injector))

        for key, concrete in (bindings or {}).items():
            self.bind(key, concrete)
        for provider in providers or ():
            self.provide(provider)

    @classmethod
    def from_config(cls, source: TreeSource) -> "Container":
        """Create a container from a ``{"bindings": {...}, "providers": [...]}`` tree.

        Binding values are dotted class paths or definition mappings;
        providers are dotted class paths.

        Raises:
            InvalidConfigError: If the tree cannot be loaded or has the wrong shape.
        """
        tree = source.get_tree()
        bindings = tree.get("bindings") or {}
        providers = tree.get("providers") or []
        if not isinstance(bindings, Mapping):
            raise InvalidConfigError(f"'bindings' must be a mapping, got {type(bindings).__name__}")
        if isinstance(providers, (str, bytes)) or not isinstance(providers, Iterable):
            raise InvalidConfigError(f"'providers' must be a list, got {type(providers).__name__}")
        providers = list(providers)
        LOGGER.debug("Loaded %d bindings and %d providers from %s", len(bindings), len(providers), type(source).__name__)
        return cls(bindings=bindings, providers=providers)

    def _canonical_key(self, key: KeyT) -> KeyT:
        if not isinstance(key, str) or ("." not in key and ":" not in key):
            return key
        if key not in self._located:
            self._located[key] = locate_class(key) or key
        return self._located[key]

    def bind(self, key: KeyT, concrete: Any) -> None:
        """Bind ``key`` to a class, instance, factory or definition.

        Replaces any previous binding and drops the cached instance. The
        shape of ``concrete`` is only checked when the key is built.
        """
        key = self._canonical_key(key)
        self._bindings[key] = as_binding(concrete)
        self._instances.pop(key, None)

    def provide(self, provider: Any) -> None:
        """Add a service provider, registering it now unless it is deferred.

        Args:
            provider: A provider instance, or a key the container builds
                into one.

        Raises:
            InvalidConfigError: If the object does not implement
                ``register(container)``.
        """
        if isinstance(provider, (str, type)):
            provider = self.build(provider)
        if not isinstance(provider, ServiceProvider):
            raise InvalidConfigError(
                f"Service provider should implement register(container); got {describe(type(provider))}"
            )

        if isinstance(provider, DeferredServiceProvider):
            binding = ProviderBinding(provider)
            keys = list(provider.provides())
            for key in keys:
                self.bind(key, binding)
            LOGGER.info("Deferred provider %s for %s", describe(type(provider)), ", ".join(describe(k) for k in keys))
        else:
            LOGGER.info("Registering provider %s", describe(type(provider)))
            provider.register(self)

    def build(self, key: KeyT, arguments: Optional[Mapping[str, Any]] = None) -> Any:
        """Build the instance bound to ``key`` and cache it.

        Unbound keys are built as classes. An alias is followed one step
        only: ``a -> b`` uses ``b``'s binding, but if that is again an alias
        its target is built as a class without consulting further bindings.

        Raises:
            CircularReferenceError: If ``key`` is already being built.
            InvalidConfigError: If the binding cannot be constructed.
        """
        key = self._canonical_key(key)
        binding = self._bindings.get(key, Alias(key))
        if isinstance(binding, Alias):
            target = self._canonical_key(binding.target)
            if target != key and target in self._bindings:
                LOGGER.debug("Resolving %s through %s", describe(key), describe(target))
                binding = self._bindings[target]

        if isinstance(binding, ProviderBinding):
            self._register_deferred(binding)
            if not arguments and key in self._instances:
                return self._instances[key]
            return self.build(key, arguments)

        if key in self._building:
            raise CircularReferenceError(key, self._building)
        self._building[key] = None
        try:
            instance = self._instantiate(binding, arguments or {})
        finally:
            del self._building[key]

        self._instances[key] = instance
        self._build_count += 1
        LOGGER.debug("Built %s", describe(key))
        return instance

    def _register_deferred(self, binding: ProviderBinding) -> None:
        for k in [k for k, b in self._bindings.items() if b is binding]:
            del self._bindings[k]
        LOGGER.debug("Registering deferred provider %s", describe(type(binding.provider)))
        binding.provider.register(self)

    def _instantiate(self, binding: Binding, arguments: Mapping[str, Any]) -> Any:
        if isinstance(binding, Instance):
            return binding.value
        if isinstance(binding, Factory):
            return self._injector.invoke(binding.func, arguments=arguments)
        if isinstance(binding, DefinitionBinding):
            return self._injector.build(binding.definition, arguments)
        if isinstance(binding, Alias):
            return self._injector.build(self._canonical_key(binding.target), arguments)
        raise InvalidConfigError(f"Unsupported binding {binding!r}")

    def get(self, key: KeyT) -> Any:
        """Return the cached instance for ``key``, building it on first use.

        Raises:
            NotFoundError: If building fails and ``has(key)`` is false.
        """
        key = self._canonical_key(key)
        try:
            if key in self._instances:
                self._cache_hit_count += 1
                return self._instances[key]
            return self.build(key)
        except Exception as e:
            if not self.has(key):
                raise NotFoundError(key) from e
            raise

    def has(self, key: KeyT) -> bool:
        """True if ``key`` is bound, cached, or names a concrete class."""
        key = self._canonical_key(key)
        return key in self._bindings or key in self._instances or is_instantiable(key)

    def stats(self) -> Dict[str, Any]:
        builds = self._build_count
        hits = self._cache_hit_count
        total = builds + hits
        return {
            "bindings": len(self._bindings),
            "instances": len(self._instances),
            "total_builds": builds,
            "cache_hits": hits,
            "cache_hit_rate": (hits / total) if total > 0 else 0.0,
        }
