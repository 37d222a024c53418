"""Strict binding of raw configuration mappings onto configuration blocks.

Purpose
-------
File loaders return plain nested mappings whose shape depends on the source
format: HCL wraps repeated blocks in a list (``{"task": [{...}, {...}]}``)
while JSON and YAML give the mapping directly. Binding runs through the
pydantic schemas of :mod:`nia_config.application.schema`; this module turns
the validated models into block dataclasses and pydantic's errors into the
daemon's decode messages.

Contents
--------
* :func:`decode_config` – bind a whole file onto :class:`~nia_config.domain.config.Config`.
* :func:`decode_block` – bind any block type strictly.
* :func:`decode_condition` / :func:`decode_module_inputs` – polymorphic
  dispatch for ``condition`` and ``module_input`` (``source_input``) blocks.
* :func:`rewrite_decode_error` – turns repeated singleton blocks into a
  readable message.

Rules
-----
* Unknown keys are errors. Top-level binding collects them as dotted paths
  (``consul.foo``, ``task[0].bar``) and reports them together; condition and
  module input bodies report ``invalid keys: ...`` immediately.
* Input is weakly typed: ``"true"`` binds to ``True``, ``"8558"`` to ``8558``,
  ``5`` to ``"5"`` and ``"1m"`` to a :class:`~datetime.timedelta`.
* Keys may use dashes instead of underscores (``kv-path``).
* Keys absent from the input stay ``None`` on the block.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Final, Sequence, TypeVar

import pydantic
from pydantic import BaseModel

from ..domain.block import Block, Kind, Setting, settings_of
from ..domain.conditions import CONDITION_TYPES
from ..domain.config import Config
from ..domain.errors import DecodeError
from ..domain.module_inputs import MODULE_INPUT_TYPES
from ..domain.monitors import Monitor
from ..domain.provider import TerraformProviderConfig
from .schema import REPEATED_BLOCK_ERROR, schema_for, unwrap_blocks

B = TypeVar("B", bound=Block)

_REPEATED_BLOCK: Final[re.Pattern[str]] = re.compile(r"'([^']+)' expected a map, got 'slice'")
_EXPECTED_TYPES: Final[dict[str, str]] = {"string_type": "string", "int_type": "int", "bool_type": "bool"}

_ENTERPRISE_UPGRADE: Final[str] = "Upgrade to Consul Enterprise to enable CTS Enterprise features."
_UNUSED_KEY_HINTS: Final[dict[str, str]] = {
    "provider": (
        "'provider' is an invalid key for Consul-Terraform-Sync (CTS) configuration,\n"
        "try 'terraform_provider'. The terraform_provider configuration blocks are\n"
        "similar to provider blocks in Terraform but have additional features\n"
        "supported only by CTS."
    ),
    "driver.terraform-cloud": (
        "Terraform Cloud is a Consul-Terraform-Sync (CTS) Enterprise feature.\n" + _ENTERPRISE_UPGRADE
    ),
    "license_path": "'license_path' is a Consul-Terraform-Sync (CTS) Enterprise configuration.",
    "license": "'license' is a Consul-Terraform-Sync (CTS) Enterprise configuration.",
    "high_availability": (
        "High availability is a Consul-Terraform-Sync (CTS) Enterprise feature.\n" + _ENTERPRISE_UPGRADE
    ),
}


def decode_config(raw: Mapping[str, Any], file: str = "") -> Config:
    """Bind the parsed content of one configuration file.

    Parameters
    ----------
    raw:
        Mapping returned by a file loader.
    file:
        Path used in error messages.

    Returns
    -------
    Config
        Partially configured tree; unset values stay ``None``.

    Raises
    ------
    DecodeError
        On unknown keys, values of the wrong type, repeated singleton blocks
        and unsupported condition or module input types.

    Examples
    --------
    >>> config = decode_config({"consul": [{"address": "consul:8500"}], "port": "8600"})
    >>> config.consul.address, config.port
    ('consul:8500', 8600)
    >>> decode_config({"colour": "blue", "consul": {"adress": "x"}}, "cts.hcl")
    Traceback (most recent call last):
    ...
    nia_config.domain.errors.DecodeError: 'cts.hcl' has invalid keys: colour, consul.adress
    """

    try:
        return _bind(Config, raw, file=file)
    except DecodeError as exc:
        rewritten = rewrite_decode_error(str(exc))
        if rewritten == str(exc):
            raise
        raise DecodeError(rewritten) from exc


def decode_block(cls: type[B], raw: Any, *, label: str = "") -> B:
    """Bind *raw* onto block type *cls*, rejecting unknown keys.

    Examples
    --------
    >>> from nia_config.domain.buffer_period import BufferPeriodConfig
    >>> decode_block(BufferPeriodConfig, {"min": "10s", "max": 60})
    BufferPeriodConfig(enabled=None, min=10s, max=1m0s)
    >>> decode_block(BufferPeriodConfig, {"minimum": "10s"})
    Traceback (most recent call last):
    ...
    nia_config.domain.errors.DecodeError: invalid keys: minimum
    """

    return _bind(cls, raw, label=label)


def decode_condition(raw: Any, *, key: str = "condition") -> Monitor:
    """Select and bind the condition variant named by the single discriminator key.

    Accepts the HCL shape ``[{"catalog-services": {...}}]`` and the JSON shape
    ``{"catalog-services": {...}}``.

    Examples
    --------
    >>> decode_condition([{"catalog-services": {"regexp": ".*", "datacenter": "dc2"}}])
    CatalogServicesConditionConfig(regexp='.*', datacenter='dc2', namespace=None, node_meta=None, use_as_module_input=None, source_includes_var=None)
    >>> decode_condition({"catalog-services": {}, "services": {}})
    Traceback (most recent call last):
    ...
    nia_config.domain.errors.DecodeError: only one condition type can be configured per block: catalog-services, services
    """

    entries = _single_mapping(raw, key)
    known = sorted(name for name in entries if name in CONDITION_TYPES)
    if len(known) > 1:
        raise DecodeError(f"only one {key} type can be configured per block: {', '.join(known)}")
    if not known or len(entries) > 1:
        raise DecodeError(f"unsupported {key} type: {_describe_keys(entries)}")
    kind = known[0]
    return _bind(CONDITION_TYPES[kind], entries[kind], label=kind)


def decode_module_inputs(raw: Any, *, key: str = "module_input") -> list[Monitor]:
    """Bind a list of module input blocks.

    HCL yields one single-key mapping per block; JSON may also use a single
    mapping holding one key per variant.

    Examples
    --------
    >>> inputs = decode_module_inputs({"services": {"names": ["api"]}, "consul-kv": {"path": "app/"}})
    >>> [entry.kind for entry in inputs]
    ['services', 'consul-kv']
    """

    if raw is None:
        return []
    if isinstance(raw, Mapping):
        raw = [raw]
    if not isinstance(raw, list):
        raise DecodeError(f"'{key}' expected a list of blocks, got '{type(raw).__name__}'")
    inputs: list[Monitor] = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            raise DecodeError(f"'{key}' expected a map, got '{type(entry).__name__}'")
        for kind, body in entry.items():
            variant = MODULE_INPUT_TYPES.get(kind)
            if variant is None:
                raise DecodeError(f"unsupported {key} type: {kind}")
            inputs.append(_bind(variant, body, label=kind))
    return inputs


def rewrite_decode_error(message: str) -> str:
    """Rewrite the repeated-block failure; other messages pass through.

    Examples
    --------
    >>> rewrite_decode_error("'condition' expected a map, got 'slice'")
    "only one 'condition' block can be configured"
    >>> rewrite_decode_error("invalid keys: foo")
    'invalid keys: foo'
    """

    match = _REPEATED_BLOCK.search(message)
    if match:
        return f"only one '{match.group(1)}' block can be configured"
    return message


def unused_keys_error(unused: Sequence[str], file: str) -> DecodeError:
    """Build the ``'<file>' has invalid keys`` error with a targeted hint when one applies."""

    keys = sorted(unused)
    message = f"'{file}' has invalid keys: {', '.join(keys)}"
    for key in keys:
        hint = _UNUSED_KEY_HINTS.get(key)
        if hint is not None:
            return DecodeError(f"{message}\n\n{hint}")
    return DecodeError(message)


def _bind(cls: type[B], raw: Any, *, label: str = "", file: str | None = None) -> B:
    """Validate *raw* against the schema of *cls* and build the block.

    With *file* set, unknown keys are reported as the file's invalid keys;
    otherwise as ``invalid keys: ...`` relative to the block.
    """

    body = _single_body(raw, label)
    try:
        model = schema_for(cls).model_validate(body)
    except pydantic.ValidationError as exc:
        raise _decode_error(exc, file) from exc
    return _build(cls, model)


def _single_body(raw: Any, label: str) -> Mapping[str, Any]:
    """Normalise ``None`` and the HCL list form of one block body."""

    if raw is None:
        return {}
    if isinstance(raw, list):
        if not raw:
            return {}
        if len(raw) > 1:
            raise DecodeError(f"'{label}' expected a map, got 'slice'")
        raw = raw[0]
    if not isinstance(raw, Mapping):
        raise DecodeError(f"'{label}' expected a map, got '{type(raw).__name__}'")
    return raw


def _build(cls: type[B], model: BaseModel) -> B:
    """Turn a validated schema instance into block *cls*; unset keys stay absent."""

    values = {
        item.name: _block_value(item, getattr(model, item.name))
        for item in settings_of(cls)
        if item.name in model.model_fields_set
    }
    return cls(**values)


def _block_value(item: Setting, value: Any) -> Any:
    if value is None:
        return None
    kind = item.kind
    if kind is Kind.BLOCK:
        return _build(item.block, value)  # type: ignore[arg-type]
    if kind is Kind.BLOCKS:
        return [_build(item.block, entry) for entry in value]  # type: ignore[arg-type]
    if kind is Kind.CONDITION:
        return decode_condition(value, key=item.key)
    if kind is Kind.MODULE_INPUTS:
        return decode_module_inputs(value, key=item.key)
    if kind is Kind.PROVIDERS:
        return _decode_providers(value, item.key)
    return value


def _decode_error(exc: pydantic.ValidationError, file: str | None) -> DecodeError:
    """Translate pydantic's errors; a value error wins over unknown keys."""

    errors = exc.errors()
    for error in errors:
        if error["type"] != "extra_forbidden":
            return DecodeError(_describe_error(error))
    unused = [_dotted(error["loc"]) for error in errors]
    if file is not None:
        return unused_keys_error(unused, file)
    return DecodeError("invalid keys: " + ", ".join(sorted(unused)))


def _describe_error(error: Mapping[str, Any]) -> str:
    path = _dotted(error["loc"])
    kind = error["type"]
    value = error.get("input")
    if kind == REPEATED_BLOCK_ERROR:
        return error["msg"]
    if kind == "int_parsing":
        return f"cannot parse '{path}' as int: {error['msg']}"
    if kind == "bool_parsing":
        return f"cannot parse '{path}' as bool: {error['msg']}"
    if kind in _EXPECTED_TYPES:
        return (
            f"'{path}' expected type '{_EXPECTED_TYPES[kind]}', "
            f"got unconvertible type '{type(value).__name__}', value: '{value}'"
        )
    if kind in {"model_type", "model_attributes_type", "dict_type"}:
        return f"'{path}' expected a map, got '{type(value).__name__}'"
    if kind == "list_type":
        return f"'{path}' expected a list, got '{type(value).__name__}'"
    if kind == "value_error":
        return f"error decoding '{path}': {error.get('ctx', {}).get('error', error['msg'])}"
    return f"error decoding '{path}': {error['msg']}"


def _dotted(loc: Sequence[int | str]) -> str:
    """Render an error location as ``task[0].condition`` style path."""

    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path


def _single_mapping(raw: Any, key: str) -> Mapping[str, Any]:
    """Normalise the HCL list form and the JSON mapping form to one mapping."""

    if isinstance(raw, list):
        if not raw:
            raise DecodeError(f"'{key}' block must not be empty")
        if len(raw) > 1:
            raise DecodeError(f"'{key}' expected a map, got 'slice'")
        raw = raw[0]
    if not isinstance(raw, Mapping):
        raise DecodeError(f"'{key}' expected a map, got '{type(raw).__name__}'")
    return raw


def _describe_keys(entries: Mapping[str, Any]) -> str:
    return ", ".join(sorted(entries)) or "no type configured"


def _decode_providers(value: Any, key: str) -> list[TerraformProviderConfig]:
    """Bind ``terraform_provider`` blocks; bodies are kept as raw data."""

    entries = [value] if isinstance(value, Mapping) else value
    if not isinstance(entries, list):
        raise DecodeError(f"'{key}' expected a list of blocks, got '{type(value).__name__}'")
    providers = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise DecodeError(f"'{key}[{index}]' expected a map, got '{type(entry).__name__}'")
        providers.append(TerraformProviderConfig({str(name): _provider_body(body) for name, body in entry.items()}))
    return providers


def _provider_body(body: Any) -> Any:
    """Unwrap the HCL list form of a provider body and of its ``task_env`` block."""

    body = unwrap_blocks(body)
    return dict(body) if isinstance(body, Mapping) else body
