"""Configuration data model for a network infrastructure automation daemon.

The public surface covers the load pipeline (:func:`read_config`), the root
:class:`Config` tree and its default factory, the error taxonomy and the
logging hooks. Individual blocks live in :mod:`nia_config.domain`.
"""

from __future__ import annotations

from .core import ConfigLoadError, build_config, from_path, read_config, read_config_raw
from .domain.config import Config, default_config
from .domain.errors import ConfigError, DecodeError, InvalidFormat, NotFound, ValidationError
from .observability import bind_trace_id, get_logger

__all__ = [
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "DecodeError",
    "InvalidFormat",
    "NotFound",
    "ValidationError",
    "bind_trace_id",
    "build_config",
    "default_config",
    "from_path",
    "get_logger",
    "read_config",
    "read_config_raw",
]
