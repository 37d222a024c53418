"""Optional-value helpers and duration parsing."""

from __future__ import annotations

from datetime import timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from nia_config.domain.values import (
    bool_from_env,
    bool_val,
    duration_present,
    duration_val,
    format_duration,
    int_val,
    parse_duration,
    string_from_env,
    string_present,
    string_val,
    value_or,
)


def test_unwrap_helpers_use_zero_values() -> None:
    assert string_val(None) == ""
    assert bool_val(None) is False
    assert int_val(None) == 0
    assert duration_val(None) == timedelta(0)


def test_present_zero_values_are_kept() -> None:
    """A configured zero value is not the same as an unset one."""

    assert value_or(0, 5) == 0
    assert value_or(False, True) is False
    assert bool_val(False) is False
    assert string_val("") == ""


def test_presence_predicates() -> None:
    assert not string_present("")
    assert string_present(" ")
    assert not duration_present(timedelta(0))
    assert duration_present(timedelta(seconds=1))


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("5s", timedelta(seconds=5)),
        ("1m30s", timedelta(seconds=90)),
        ("1h", timedelta(hours=1)),
        ("1.5h", timedelta(minutes=90)),
        ("250ms", timedelta(milliseconds=250)),
        ("0", timedelta(0)),
        ("-2s", timedelta(seconds=-2)),
    ],
)
def test_parse_duration_text(text: str, expected: timedelta) -> None:
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "5", "s", "5 s", "1x", "1m30", True, None])
def test_parse_duration_rejects_garbage(text: object) -> None:
    with pytest.raises(ValueError):
        parse_duration(text)


def test_parse_duration_accepts_seconds_as_numbers() -> None:
    assert parse_duration(60) == timedelta(minutes=1)
    assert parse_duration(0.5) == timedelta(milliseconds=500)


@given(st.integers(min_value=0, max_value=10 * 24 * 3600))
def test_format_then_parse_is_stable_for_whole_seconds(seconds: int) -> None:
    value = timedelta(seconds=seconds)
    assert parse_duration(format_duration(value)) == value


def test_env_fallbacks_take_first_non_empty_name() -> None:
    environ = {"CONSUL_TOKEN": "", "CONSUL_HTTP_TOKEN": "token-b"}
    assert string_from_env(environ, ["CONSUL_TOKEN", "CONSUL_HTTP_TOKEN"]) == "token-b"
    assert string_from_env({}, ["CONSUL_TOKEN"], "default") == "default"
    assert bool_from_env({"CONSUL_HTTP_SSL_VERIFY": "0"}, ["CONSUL_HTTP_SSL_VERIFY"], True) is False
    assert bool_from_env({}, ["CONSUL_HTTP_SSL_VERIFY"], True) is True
