"""Generic merge and copy helpers shared by every configuration block.

Purpose
-------
Blocks merge string lists by appending values not yet present, maps by
right-biased key overwrite, and never alias mutable state between the inputs
and the result. These helpers implement those policies once.

Contents
--------
* :func:`merge_slices` – order-preserving list merge that skips known values.
* :func:`merge_maps` – shallow right-biased map merge.
* :func:`clone_value` – deep clone of nested lists, mappings and blocks.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, TypeVar

T = TypeVar("T")


def merge_slices(original: Iterable[T] | None, incoming: Iterable[T] | None) -> list[T] | None:
    """Append the values of *incoming* that *original* does not hold yet.

    *original* is kept as it is, repeated entries included; only values
    arriving from *incoming* are checked against what is already there.
    When one side is unset the other is returned as a copy.

    Parameters
    ----------
    original:
        Values from the lower-precedence block, or ``None`` when unset.
    incoming:
        Values from the higher-precedence block, or ``None`` when unset.

    Returns
    -------
    list | None
        A fresh list, or ``None`` when both inputs are unset.

    Examples
    --------
    >>> merge_slices(["api", "web"], ["web", "db", "db"])
    ['api', 'web', 'db']
    >>> merge_slices(["api", "api"], None)
    ['api', 'api']
    >>> merge_slices(None, None) is None
    True
    >>> merge_slices([], None)
    []
    """

    if original is None and incoming is None:
        return None
    if original is None:
        return [clone_value(value) for value in incoming or ()]
    merged: list[T] = [clone_value(value) for value in original]
    for value in incoming or ():
        if value not in merged:
            merged.append(clone_value(value))
    return merged


def merge_maps(base: Mapping[str, Any] | None, incoming: Mapping[str, Any] | None) -> dict[str, Any] | None:
    """Return a new mapping where keys of *incoming* overwrite those of *base*.

    Examples
    --------
    >>> merge_maps({"a": "1", "b": "2"}, {"b": "3"})
    {'a': '1', 'b': '3'}
    >>> merge_maps(None, None) is None
    True
    """

    if base is None and incoming is None:
        return None
    merged = clone_value(dict(base or {}))
    for key, value in (incoming or {}).items():
        merged[key] = clone_value(value)
    return merged


def clone_value(value: T) -> T:
    """Deep-clone lists, tuples, mappings and objects exposing ``copy()``.

    Scalars (``str``, ``int``, ``bool``, ``timedelta``) are immutable and are
    returned unchanged.

    Examples
    --------
    >>> original = {"meta": {"k": ["v"]}}
    >>> cloned = clone_value(original)
    >>> cloned["meta"]["k"].append("w")
    >>> original
    {'meta': {'k': ['v']}}
    """

    if isinstance(value, Mapping):
        return {key: clone_value(item) for key, item in value.items()}  # type: ignore[return-value]
    if isinstance(value, list):
        return [clone_value(item) for item in value]  # type: ignore[return-value]
    if isinstance(value, tuple):
        return tuple(clone_value(item) for item in value)  # type: ignore[return-value]
    copier = getattr(value, "copy", None)
    if callable(copier):
        return copier()
    return value
