"""Container configuration trees for :meth:`Container.from_config`.

A tree has two optional top-level entries::

    bindings:
      app.ports.Clock: app.adapters.SystemClock
      app.ports.Mailer:
        class: app.adapters.SmtpMailer
        __init__(): {host: localhost, port: 25}
        set_sender(): {sender: noreply@example.com}
    providers:
      - app.providers.StorageProvider

Binding values are dotted class paths (aliases) or definition mappings;
providers are dotted class paths built by the container.
"""

import json
from typing import Any, Mapping

from .exceptions import InvalidConfigError


def _require_mapping(data: Any, origin: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise InvalidConfigError(f"Container config from {origin} must be a mapping at top level, got {type(data).__name__}")
    return data


class TreeSource:
    """Where a container configuration tree comes from.

    Subclasses return the ``{"bindings": ..., "providers": ...}`` mapping from
    :meth:`get_tree`; loading errors surface as :class:`InvalidConfigError`.
    """

    def get_tree(self) -> Mapping[str, Any]:
        raise NotImplementedError


class DictSource(TreeSource):
    """A tree already held in memory, e.g. assembled by application bootstrap code.

    Example:
        >>> src = DictSource({"bindings": {"clock": "app.adapters.SystemClock"}})
        >>> src.get_tree()["bindings"]["clock"]
        'app.adapters.SystemClock'
    """

    def __init__(self, data: Mapping[str, Any]):
        self._data = data

    def get_tree(self) -> Mapping[str, Any]:
        return _require_mapping(self._data, "dict")


class JsonTreeSource(TreeSource):
    """Reads the bindings/providers tree from a JSON file at ``path``."""

    def __init__(self, path: str):
        self._path = path

    def get_tree(self) -> Mapping[str, Any]:
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise InvalidConfigError(f"Failed to load JSON config: {e}") from e
        return _require_mapping(data, self._path)


class YamlTreeSource(TreeSource):
    """Reads the bindings/providers tree from a YAML file at ``path``.

    Needs the ``yaml`` extra (``pip install keel-di[yaml]``). An empty file
    is an empty tree.
    """

    def __init__(self, path: str):
        self._path = path

    def get_tree(self) -> Mapping[str, Any]:
        try:
            import yaml
        except ImportError as e:
            raise InvalidConfigError("PyYAML not installed; install keel-di[yaml]") from e
        try:
            with open(self._path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise InvalidConfigError(f"Failed to load YAML config: {e}") from e
        return _require_mapping(data, self._path)
