"""Log events emitted while configuration files are read, merged and finalized.

Purpose
    Every event the loader reports (a file read, a layer merged, a deprecated
    key rewritten, an environment token picked up) goes to the ``nia_config``
    logger as a short event name plus a ``context`` dictionary. The daemon
    decides where those records end up; the package only emits them.

Contents
    - ``TRACE_ID``: identifier of the load or reload currently running.
    - ``get_logger``: the ``nia_config`` logger.
    - ``bind_trace_id``: starts or ends a load in the log context.
    - ``log_debug`` / ``log_info`` / ``log_warning`` / ``log_error``: emit one
      event at the matching level.
    - ``make_event``: the ``component``/``path`` header shared by events.

Event context
    ``component`` names the source (``file``, ``env``, ``merge``, ``task``,
    ``tls``); ``path`` is the configuration file involved, or ``None``.
    Values of sensitive settings are never put into the context.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("nia_config_trace_id", default=None)
"""Identifier of the configuration load in progress, copied into every event."""

_LOGGER: Final[logging.Logger] = logging.getLogger("nia_config")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Return the ``nia_config`` logger; it has only a ``NullHandler`` until the daemon adds one.

    Examples
    --------
    >>> get_logger().name
    'nia_config'
    """

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Tag the events of one configuration load with *trace_id*.

    ``read_config_raw`` calls it with ``None`` before loading so a reload does
    not inherit the identifier of the previous one.

    Examples
    --------
    >>> bind_trace_id('reload-7')
    >>> TRACE_ID.get()
    'reload-7'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def log_debug(message: str, **fields: Any) -> None:
    """File reads, environment snapshots, per-layer merges."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """One per completed load."""

    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    """Deprecated keys and settings that another setting overrides."""

    _emit(logging.WARNING, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Files that cannot be parsed."""

    _emit(logging.ERROR, message, fields)


def make_event(
    component: str,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Return the keyword arguments for a ``log_*`` call about *component*.

    Parameters
    ----------
    component:
        Source of the event, e.g. ``"file"``, ``"merge"`` or ``"final"``.
    path:
        Configuration file the event concerns, or ``None``.
    payload:
        Extra keys, such as a file size or a task count.

    Examples
    --------
    >>> make_event('file', '/etc/nia/config.hcl', {'size': 42})
    {'component': 'file', 'path': '/etc/nia/config.hcl', 'size': 42}
    """

    event: dict[str, Any] = {"component": component, "path": path}
    if payload:
        event |= dict(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    _LOGGER.log(level, message, extra={"context": _with_trace(fields)})


def _with_trace(fields: Mapping[str, Any]) -> dict[str, Any]:
    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    return context
