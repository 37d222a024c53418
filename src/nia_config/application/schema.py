"""Pydantic schemas derived from block field metadata.

Purpose
-------
Every configuration block declares its keys and field kinds once with
:func:`nia_config.domain.block.setting`. :func:`schema_for` turns that
metadata into a pydantic model that performs the strict part of decoding:
unknown keys are rejected (``extra="forbid"``), values are coerced the lax
way configuration files expect (``"true"`` to ``True``, ``"8558"`` to
``8558``, ``5`` to ``"5"``, ``"1m"`` to a :class:`~datetime.timedelta`) and
every field defaults to ``None`` so "not configured" survives binding.

Contents
--------
* :data:`SCHEMA_CONFIG` – model configuration shared by every schema.
* :func:`schema_for` – cached schema for a block type.
* :func:`single_body` – normalises the list form of a block body.

System Role
-----------
Used by :mod:`nia_config.application.decode`, which turns validated schema
instances into blocks and dispatches the polymorphic ``condition``,
``module_input`` and ``terraform_provider`` values the schemas keep raw.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from functools import lru_cache, partial
from typing import Annotated, Any, Final, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, create_model
from pydantic_core import PydanticCustomError

from ..domain.block import Kind, Setting, settings_of
from ..domain.values import parse_duration

SCHEMA_CONFIG: Final[ConfigDict] = ConfigDict(extra="forbid", coerce_numbers_to_str=True)
REPEATED_BLOCK_ERROR: Final[str] = "repeated_block"


@lru_cache(maxsize=None)
def schema_for(cls: type) -> type[BaseModel]:
    """Return the pydantic model mirroring the settings of block type *cls*.

    Field names are the block's attribute names; the configuration key (and
    its dashed spelling) is the validation alias.

    Examples
    --------
    >>> from nia_config.domain.buffer_period import BufferPeriodConfig
    >>> model = schema_for(BufferPeriodConfig).model_validate({"min": "10s", "enabled": "true"})
    >>> model.enabled, model.min, sorted(model.model_fields_set)
    (True, datetime.timedelta(seconds=10), ['enabled', 'min'])
    """

    fields: dict[str, Any] = {
        item.name: (_annotation(item), Field(default=None, validation_alias=_alias(item.key)))
        for item in settings_of(cls)
    }
    return create_model(f"{cls.__name__}Schema", __config__=SCHEMA_CONFIG, **fields)


def single_body(key: str, value: Any) -> Any:
    """Unwrap a one-element list of bodies; an empty list is an empty body.

    Examples
    --------
    >>> single_body("consul", [{"address": "a"}])
    {'address': 'a'}
    >>> single_body("consul", [])
    {}
    """

    if not isinstance(value, list):
        return value
    if not value:
        return {}
    if len(value) > 1:
        raise PydanticCustomError(REPEATED_BLOCK_ERROR, "'{key}' expected a map, got 'slice'", {"key": key})
    return value[0]


def unwrap_blocks(value: Any) -> Any:
    """Collapse one-element lists of bodies nested inside raw maps.

    Examples
    --------
    >>> unwrap_blocks({"consul": [{"gzip": True}], "hosts": ["a", "b"]})
    {'consul': {'gzip': True}, 'hosts': ['a', 'b']}
    """

    if isinstance(value, list):
        if len(value) == 1 and isinstance(value[0], Mapping):
            return unwrap_blocks(value[0])
        return [unwrap_blocks(item) for item in value]
    if isinstance(value, Mapping):
        return {key: unwrap_blocks(item) for key, item in value.items()}
    return value


def _alias(key: str) -> str | AliasChoices:
    dashed = key.replace("_", "-")
    return key if dashed == key else AliasChoices(key, dashed)


def _annotation(item: Setting) -> Any:
    """Map a field kind onto the type pydantic validates it as."""

    kind = item.kind
    if kind is Kind.STRING:
        return Optional[str]
    if kind is Kind.BOOL:
        return Optional[bool]
    if kind is Kind.INT:
        return Optional[int]
    if kind is Kind.DURATION:
        return Annotated[Optional[timedelta], BeforeValidator(_duration)]
    if kind is Kind.STRINGS:
        return Annotated[Optional[list[str]], BeforeValidator(_listify)]
    if kind is Kind.STRING_MAP:
        return Annotated[Optional[dict[str, str]], BeforeValidator(_merged_mapping)]
    if kind is Kind.RAW_MAP:
        return Annotated[Optional[dict[str, Any]], BeforeValidator(_raw_mapping)]
    if kind is Kind.BLOCK:
        nested = schema_for(item.block)  # type: ignore[arg-type]
        return Annotated[Optional[nested], BeforeValidator(partial(single_body, item.key))]  # type: ignore[valid-type]
    if kind is Kind.BLOCKS:
        nested = schema_for(item.block)  # type: ignore[arg-type]
        return Annotated[Optional[list[nested]], BeforeValidator(_block_list)]  # type: ignore[valid-type]
    # condition, module inputs and providers are dispatched after binding
    return Any


def _duration(value: Any) -> Any:
    return None if value is None else parse_duration(value)


def _listify(value: Any) -> Any:
    if isinstance(value, (str, int, float)):
        return [value]
    return value


def _block_list(value: Any) -> Any:
    return [value] if isinstance(value, Mapping) else value


def _merged_mapping(value: Any) -> Any:
    """Merge a list of map bodies left to right; other values pass through."""

    if isinstance(value, list) and all(isinstance(entry, Mapping) for entry in value):
        merged: dict[Any, Any] = {}
        for entry in value:
            merged.update(entry)
        return merged
    return value


def _raw_mapping(value: Any) -> Any:
    merged = _merged_mapping(value)
    if not isinstance(merged, Mapping):
        return merged
    return {key: unwrap_blocks(entry) for key, entry in merged.items()}
