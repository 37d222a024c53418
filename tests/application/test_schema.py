"""Pydantic schemas generated from block metadata."""

from __future__ import annotations

from datetime import timedelta

import pydantic
import pytest

from nia_config.application.schema import schema_for, single_body, unwrap_blocks
from nia_config.domain.buffer_period import BufferPeriodConfig
from nia_config.domain.config import Config
from nia_config.domain.consul import ConsulConfig


def test_schema_is_cached_per_block_type() -> None:
    assert schema_for(ConsulConfig) is schema_for(ConsulConfig)
    assert schema_for(ConsulConfig) is not schema_for(BufferPeriodConfig)


def test_unknown_keys_are_forbidden() -> None:
    with pytest.raises(pydantic.ValidationError) as excinfo:
        schema_for(BufferPeriodConfig).model_validate({"minimum": "1s"})
    assert [error["type"] for error in excinfo.value.errors()] == ["extra_forbidden"]


def test_dashed_keys_and_lax_values() -> None:
    model = schema_for(ConsulConfig).model_validate({"kv-path": "a/", "auth": {"enabled": "true"}})
    assert getattr(model, "kv_path") == "a/"
    assert getattr(getattr(model, "auth"), "enabled") is True
    assert model.model_fields_set == {"kv_path", "auth"}


def test_fields_default_to_none() -> None:
    model = schema_for(Config).model_validate({})
    assert model.model_fields_set == set()
    assert getattr(model, "port") is None and getattr(model, "consul") is None


def test_durations_and_numbers_to_strings() -> None:
    model = schema_for(Config).model_validate({"log_level": 5, "buffer_period": [{"min": 90}]})
    assert getattr(model, "log_level") == "5"
    assert getattr(getattr(model, "buffer_period"), "min") == timedelta(seconds=90)


def test_repeated_singleton_block_has_its_own_error_type() -> None:
    with pytest.raises(pydantic.ValidationError) as excinfo:
        schema_for(Config).model_validate({"consul": [{}, {}]})
    error = excinfo.value.errors()[0]
    assert error["type"] == "repeated_block"
    assert error["msg"] == "'consul' expected a map, got 'slice'"


def test_single_body_and_unwrap_blocks() -> None:
    assert single_body("consul", {"address": "a"}) == {"address": "a"}
    assert unwrap_blocks([{"a": [{"b": 1}]}, {"c": 2}]) == [{"a": {"b": 1}}, {"c": 2}]
