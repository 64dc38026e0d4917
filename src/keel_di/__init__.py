# keel_di/__init__.py
__version__ = "1.0.0"

from .analysis import Parent
from .bindings import Alias, Factory, Instance, Lazy
from .config_sources import DictSource, JsonTreeSource, TreeSource, YamlTreeSource
from .container import Container
from .contracts import ContainerProtocol, DeferredServiceProvider, ServiceProvider
from .exceptions import CircularReferenceError, DiError, InvalidConfigError, NotFoundError
from .injector import Injector

__all__ = [
    "__version__",
    "Container",
    "ContainerProtocol",
    "Injector",
    "ServiceProvider",
    "DeferredServiceProvider",
    "Alias",
    "Instance",
    "Factory",
    "Lazy",
    "Parent",
    "TreeSource",
    "DictSource",
    "JsonTreeSource",
    "YamlTreeSource",
    "DiError",
    "InvalidConfigError",
    "CircularReferenceError",
    "NotFoundError",
]
