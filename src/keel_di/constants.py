"""Constants used throughout keel-di.

This module defines the framework logger and the key conventions used by
declarative definitions.
"""

import logging

LOGGER_NAME: str = "keel_di"
"""Default logger name for keel-di."""

LOGGER: logging.Logger = logging.getLogger(LOGGER_NAME)
"""Pre-configured logger instance for keel-di internal diagnostics."""

CLASS_KEY: str = "class"
"""Definition key naming the class to construct."""

CONSTRUCTOR_KEY: str = "__init__()"
"""Definition key holding the constructor argument mapping."""

METHOD_SUFFIX: str = "()"
"""Suffix marking a definition key as a method call rather than a property."""

CALL_METHOD: str = "__call__"
"""Method invoked by :meth:`Injector.invoke` when none is named."""
