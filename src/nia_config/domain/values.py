"""Presence-aware scalar helpers and duration conversions.

Purpose
-------
Configuration fields are plain optionals: ``None`` means "not configured"
while any other value (including ``""``, ``0`` and ``False``) means
"explicitly configured". The helpers below unwrap those optionals with a
zero-value default and translate between the textual duration form used in
configuration files (``"5s"``, ``"1m30s"``) and :class:`datetime.timedelta`.

Contents
--------
* :func:`value_or` – generic unwrap with a caller supplied default.
* :func:`string_val` / :func:`bool_val` / :func:`int_val` /
  :func:`duration_val` – unwrap with the type's zero value.
* :func:`string_present` / :func:`bool_present` / :func:`duration_present` –
  presence predicates.
* :func:`parse_duration` / :func:`format_duration` – duration conversions.
* :func:`string_from_env` / :func:`bool_from_env` / :func:`string_from_file` –
  secondary defaults read from an environment snapshot or a token file.
"""

from __future__ import annotations

import re
from datetime import timedelta
from pathlib import Path
from typing import Final, Iterable, Mapping, TypeVar

T = TypeVar("T")

_DURATION_PART: Final[re.Pattern[str]] = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_TRUE_WORDS: Final[frozenset[str]] = frozenset({"1", "t", "true"})
_FALSE_WORDS: Final[frozenset[str]] = frozenset({"0", "f", "false"})
_UNIT_MICROSECONDS: Final[dict[str, float]] = {
    "ns": 0.001,
    "us": 1,
    "µs": 1,
    "μs": 1,
    "ms": 1_000,
    "s": 1_000_000,
    "m": 60_000_000,
    "h": 3_600_000_000,
}


def value_or(value: T | None, default: T) -> T:
    """Return *value* unless it is ``None``, otherwise *default*.

    Examples
    --------
    >>> value_or(None, "fallback")
    'fallback'
    >>> value_or("", "fallback")
    ''
    """

    return default if value is None else value


def string_val(value: str | None) -> str:
    """Unwrap an optional string, defaulting to ``""``."""

    return value_or(value, "")


def bool_val(value: bool | None) -> bool:
    """Unwrap an optional bool, defaulting to ``False``."""

    return value_or(value, False)


def int_val(value: int | None) -> int:
    """Unwrap an optional int, defaulting to ``0``."""

    return value_or(value, 0)


def duration_val(value: timedelta | None) -> timedelta:
    """Unwrap an optional duration, defaulting to zero."""

    return value_or(value, timedelta(0))


def string_present(value: str | None) -> bool:
    """Return ``True`` when *value* is configured and non-empty.

    Examples
    --------
    >>> string_present(None), string_present(""), string_present("dc1")
    (False, False, True)
    """

    return value is not None and value != ""


def bool_present(value: bool | None) -> bool:
    """Return ``True`` when *value* is configured, regardless of its truthiness."""

    return value is not None


def duration_present(value: timedelta | None) -> bool:
    """Return ``True`` when *value* is configured and non-zero."""

    return value is not None and value != timedelta(0)


def parse_duration(value: object) -> timedelta:
    """Convert a configuration value into a :class:`~datetime.timedelta`.

    Why
    ----
    Configuration files spell durations the way the daemon's users know them
    (``"5s"``, ``"1m30s"``, ``"250ms"``) while JSON users sometimes provide a
    bare number of seconds.

    Parameters
    ----------
    value:
        A duration string, a number of seconds, or a ``timedelta``.

    Returns
    -------
    timedelta
        The parsed duration.

    Raises
    ------
    ValueError
        When the value cannot be interpreted as a duration.

    Examples
    --------
    >>> parse_duration("1m30s")
    datetime.timedelta(seconds=90)
    >>> parse_duration("250ms").total_seconds()
    0.25
    >>> parse_duration(5)
    datetime.timedelta(seconds=5)
    """

    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    if not isinstance(value, str):
        raise ValueError(f"invalid duration {value!r}")
    return _parse_duration_text(value.strip())


def format_duration(value: timedelta) -> str:
    """Render *value* in the compact ``1h2m3s`` form used by configuration files.

    Examples
    --------
    >>> format_duration(timedelta(seconds=20))
    '20s'
    >>> format_duration(timedelta(minutes=1, seconds=30))
    '1m30s'
    >>> format_duration(timedelta(hours=1))
    '1h0m0s'
    >>> format_duration(timedelta(milliseconds=250))
    '250ms'
    >>> format_duration(timedelta(0))
    '0s'
    """

    micros = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    if micros == 0:
        return "0s"
    if micros < 1_000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        return f"{sign}{_trim_number(micros / 1_000)}ms"
    hours, rem = divmod(micros, 3_600_000_000)
    minutes, rem = divmod(rem, 60_000_000)
    text = f"{_trim_number(rem / 1_000_000)}s"
    if hours or minutes:
        text = f"{minutes}m{text}"
    if hours:
        text = f"{hours}h{text}"
    return sign + text


def _parse_duration_text(text: str) -> timedelta:
    """Parse the textual duration grammar (signed sequence of number+unit pairs)."""

    sign = 1
    body = text
    if body[:1] in "+-" and body:
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if body == "0":
        return timedelta(0)
    if not body:
        raise ValueError(f"invalid duration {text!r}")
    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(body):
        if match.start() != position:
            raise ValueError(f"invalid duration {text!r}")
        total += float(match.group(1)) * _UNIT_MICROSECONDS[match.group(2)]
        position = match.end()
    if position != len(body):
        raise ValueError(f"invalid duration {text!r}")
    return timedelta(microseconds=sign * total)


def _trim_number(number: float) -> str:
    """Render *number* without a trailing ``.0`` or superfluous zeros."""

    if number == int(number):
        return str(int(number))
    return f"{number:.6f}".rstrip("0").rstrip(".")


def string_from_env(environ: Mapping[str, str] | None, names: Iterable[str], default: str = "") -> str:
    """Return the first non-empty variable among *names*, stripped, else *default*.

    Examples
    --------
    >>> string_from_env({"CONSUL_HTTP_TOKEN": " abc "}, ["CONSUL_TOKEN", "CONSUL_HTTP_TOKEN"])
    'abc'
    >>> string_from_env(None, ["CONSUL_TOKEN"], "fallback")
    'fallback'
    """

    for name in names:
        value = (environ or {}).get(name, "")
        if value:
            return value.strip()
    return default


def bool_from_env(environ: Mapping[str, str] | None, names: Iterable[str], default: bool) -> bool:
    """Return the first variable among *names* that parses as a boolean, else *default*.

    Examples
    --------
    >>> bool_from_env({"CONSUL_HTTP_SSL": "true"}, ["CONSUL_HTTP_SSL"], False)
    True
    >>> bool_from_env({"CONSUL_HTTP_SSL": "maybe"}, ["CONSUL_HTTP_SSL"], False)
    False
    """

    for name in names:
        value = (environ or {}).get(name, "").strip().lower()
        if value in _TRUE_WORDS:
            return True
        if value in _FALSE_WORDS:
            return False
    return default


def string_from_file(paths: Iterable[str], default: str = "") -> str:
    """Return the stripped content of the first readable file among *paths*, else *default*.

    Examples
    --------
    >>> string_from_file(["/nonexistent/.vault-token"], "none")
    'none'
    """

    for path in paths:
        try:
            return Path(path).read_text(encoding="utf-8").strip()
        except OSError:
            continue
    return default
