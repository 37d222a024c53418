"""Metadata-driven base for every configuration block.

Purpose
-------
Each configuration block is a mutable dataclass whose fields are
presence-aware optionals. Field metadata (configuration key, field kind,
nested block type, sensitivity) drives the parts of the lifecycle that are
identical across blocks: deep copy, right-biased merge, redacted printable
form and plain ``dict`` export. The strict decoder in
:mod:`nia_config.application.decode` reads the same metadata to bind raw
mappings onto blocks.

Contents
--------
* :class:`Kind` – closed set of field kinds understood by copy/merge/decode.
* :func:`setting` – declares a configuration field on a block dataclass.
* :class:`Setting` / :func:`settings_of` – introspection helpers.
* :class:`Block` – base class providing ``copy``, ``merge``, ``describe`` and
  ``as_dict``.
* :func:`copy_block` / :func:`merge_blocks` / :func:`validate_block` –
  ``None``-aware wrappers so absent optional blocks need no special casing.

System Role
-----------
Block-specific defaults (``finalize``) and semantic rules (``validate``) are
implemented by the concrete blocks; everything mechanical lives here.
"""

from __future__ import annotations

from dataclasses import Field, dataclass, field, fields
from datetime import timedelta
from enum import Enum
from functools import lru_cache
from typing import Any, Final, TypeVar

from .merge_utils import clone_value, merge_maps, merge_slices
from .values import format_duration, string_present

REDACTED: Final[str] = "(redacted)"

B = TypeVar("B", bound="Block")


class Kind(Enum):
    """Field kinds; each kind has one merge policy and one decode rule."""

    STRING = "string"
    BOOL = "bool"
    INT = "int"
    DURATION = "duration"
    STRINGS = "strings"
    STRING_MAP = "string_map"
    RAW_MAP = "raw_map"
    BLOCK = "block"
    BLOCKS = "blocks"
    CONDITION = "condition"
    MODULE_INPUTS = "module_inputs"
    PROVIDERS = "providers"


SCALAR_KINDS: Final[frozenset[Kind]] = frozenset({Kind.STRING, Kind.BOOL, Kind.INT, Kind.DURATION})
LIST_KINDS: Final[frozenset[Kind]] = frozenset({Kind.BLOCKS, Kind.MODULE_INPUTS, Kind.PROVIDERS})


@dataclass(frozen=True, slots=True)
class Setting:
    """Introspected view of a configuration field."""

    name: str
    key: str
    kind: Kind
    block: type | None
    sensitive: bool


def setting(key: str, kind: Kind = Kind.STRING, *, block: type | None = None, sensitive: bool = False) -> Any:
    """Declare a configuration field that defaults to "not configured".

    Parameters
    ----------
    key:
        Key used in configuration files (``"kv_path"``, ``"catalog-services"``).
    kind:
        Field kind selecting merge and decode behaviour.
    block:
        Nested block type for :attr:`Kind.BLOCK` and :attr:`Kind.BLOCKS`.
    sensitive:
        Whether printable forms must redact the value.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass(repr=False)
    ... class Demo(Block):
    ...     token: str | None = setting("token", sensitive=True)
    >>> Demo(token="s3cr3t")
    Demo(token='(redacted)')
    """

    return field(default=None, metadata={"key": key, "kind": kind, "block": block, "sensitive": sensitive})


@lru_cache(maxsize=None)
def settings_of(cls: type) -> tuple[Setting, ...]:
    """Return the configuration fields declared on block type *cls*."""

    collected = []
    for item in fields(cls):
        if "key" not in item.metadata:
            continue
        meta = item.metadata
        collected.append(Setting(item.name, meta["key"], meta["kind"], meta["block"], meta["sensitive"]))
    return tuple(collected)


class Block:
    """Base class for configuration blocks declared as ``@dataclass(repr=False)``.

    Why
    ----
    Copy, merge and printable forms follow the same rules for every block.
    Writing them once, driven by :func:`setting` metadata, keeps the concrete
    blocks focused on defaults and validation.
    """

    def copy(self: B) -> B:
        """Return a deep copy that shares no mutable state with ``self``."""

        values = {item.name: clone_value(getattr(self, item.name)) for item in _init_fields(type(self))}
        return type(self)(**values)

    def merge(self: B, other: B | None) -> B:
        """Combine ``self`` with *other*; configured fields of *other* win.

        Merging never mutates either input. When *other* is a different block
        type (for example a different condition variant) it replaces ``self``
        entirely.

        Examples
        --------
        >>> from dataclasses import dataclass
        >>> @dataclass(repr=False)
        ... class Demo(Block):
        ...     name: str | None = setting("name")
        ...     tags: list[str] | None = setting("tags", Kind.STRINGS)
        >>> Demo(name="a", tags=["x"]).merge(Demo(tags=["x", "y"]))
        Demo(name='a', tags=['x', 'y'])
        """

        if other is None:
            return self.copy()
        if type(other) is not type(self):
            return other.copy()
        result = self.copy()
        for item in settings_of(type(self)):
            merged = _merge_value(item, getattr(self, item.name), getattr(other, item.name))
            setattr(result, item.name, merged)
        return result

    def describe(self) -> str:
        """Return the printable form with sensitive values redacted."""

        parts = [f"{item.name}={_describe_value(item, getattr(self, item.name))}" for item in settings_of(type(self))]
        return f"{type(self).__name__}({', '.join(parts)})"

    def as_dict(self, *, redact: bool = True) -> dict[str, Any]:
        """Export the block as plain data keyed by configuration keys.

        Parameters
        ----------
        redact:
            Replace sensitive values and provider bodies with ``"(redacted)"``.
        """

        return {
            item.key: _export_value(item, getattr(self, item.name), redact) for item in settings_of(type(self))
        }

    def __repr__(self) -> str:
        return self.describe()


def copy_block(block: B | None) -> B | None:
    """Copy *block*; an absent block copies to ``None``."""

    return None if block is None else block.copy()


def merge_blocks(left: B | None, right: B | None) -> B | None:
    """Merge two optional blocks honouring ``None`` on either side.

    Examples
    --------
    >>> merge_blocks(None, None) is None
    True
    """

    if left is None:
        return copy_block(right)
    return left.merge(right)


def validate_block(block: Block | None) -> None:
    """Validate *block* when present; an absent optional block adds no constraint."""

    if block is not None:
        block.validate()  # type: ignore[attr-defined]


@lru_cache(maxsize=None)
def _init_fields(cls: type) -> tuple[Field[Any], ...]:
    """Return dataclass fields accepted by ``__init__``."""

    return tuple(item for item in fields(cls) if item.init)


def _merge_value(item: Setting, left: Any, right: Any) -> Any:
    """Apply the merge policy of ``item.kind`` to two field values."""

    if item.kind in SCALAR_KINDS:
        return clone_value(left if right is None else right)
    if item.kind is Kind.STRINGS:
        return merge_slices(left, right)
    if item.kind in (Kind.STRING_MAP, Kind.RAW_MAP):
        return merge_maps(left, right)
    if item.kind in (Kind.BLOCK, Kind.CONDITION):
        return merge_blocks(left, right)
    if left is None and right is None:
        return None
    return [entry.copy() for entry in (left or [])] + [entry.copy() for entry in (right or [])]


def _describe_value(item: Setting, value: Any) -> str:
    """Render one field for :meth:`Block.describe`."""

    if value is None:
        return "None"
    if item.sensitive and string_present(value):
        return repr(REDACTED)
    if isinstance(value, Block):
        return value.describe()
    if isinstance(value, list) and item.kind in LIST_KINDS:
        return "[" + ", ".join(entry.describe() for entry in value) + "]"
    if isinstance(value, timedelta):
        return format_duration(value)
    return repr(value)


def _export_value(item: Setting, value: Any, redact: bool) -> Any:
    """Convert one field for :meth:`Block.as_dict`."""

    if value is None:
        return None
    if redact and item.sensitive and string_present(value):
        return REDACTED
    if item.kind is Kind.CONDITION:
        return {value.kind: value.as_dict(redact=redact)}
    if item.kind is Kind.MODULE_INPUTS:
        return [{entry.kind: entry.as_dict(redact=redact)} for entry in value]
    if isinstance(value, Block):
        return value.as_dict(redact=redact)
    if item.kind in LIST_KINDS:
        return [entry.as_dict(redact=redact) for entry in value]
    if isinstance(value, timedelta):
        return format_duration(value)
    return clone_value(value)
