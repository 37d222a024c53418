"""Buffer period defaults, inheritance and the min/max correction."""

from __future__ import annotations

from datetime import timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from nia_config.domain.buffer_period import BufferPeriodConfig, default_buffer_period, disabled_buffer_period
from nia_config.domain.errors import ValidationError

SECONDS = st.one_of(st.none(), st.integers(min_value=0, max_value=600).map(lambda value: timedelta(seconds=value)))
PERIODS = st.builds(BufferPeriodConfig, enabled=st.one_of(st.none(), st.booleans()), min=SECONDS, max=SECONDS)


def _seconds(value: int) -> timedelta:
    return timedelta(seconds=value)


def test_default_buffer_period() -> None:
    period = default_buffer_period()
    assert (period.enabled, period.min, period.max) == (True, _seconds(5), _seconds(20))


def test_min_above_max_is_corrected_at_finalize() -> None:
    period = BufferPeriodConfig(min=_seconds(100), max=_seconds(1))
    with pytest.raises(ValidationError, match="min must be less than max"):
        period.validate()
    period.finalize()
    assert (period.enabled, period.min, period.max) == (True, _seconds(100), _seconds(100))
    period.validate()


def test_disabled_collapses_bounds() -> None:
    period = BufferPeriodConfig(enabled=False, min=_seconds(10), max=_seconds(30))
    period.finalize()
    assert (period.min, period.max) == (timedelta(0), timedelta(0))
    assert period == disabled_buffer_period()


def test_disabled_pair_is_never_rejected() -> None:
    BufferPeriodConfig(enabled=False, min=_seconds(9), max=_seconds(1)).validate()


def test_unset_period_copies_parent() -> None:
    parent = BufferPeriodConfig(enabled=True, min=_seconds(7), max=_seconds(9))
    period = BufferPeriodConfig()
    period.finalize(parent)
    assert (period.enabled, period.min, period.max) == (True, _seconds(7), _seconds(9))


def test_unset_period_copies_disabled_parent() -> None:
    period = BufferPeriodConfig()
    period.finalize(disabled_buffer_period())
    assert (period.enabled, period.min, period.max) == (False, timedelta(0), timedelta(0))


def test_only_max_takes_min_from_enabled_parent() -> None:
    parent = BufferPeriodConfig(enabled=True, min=_seconds(2), max=_seconds(8))
    period = BufferPeriodConfig(max=_seconds(30))
    period.finalize(parent)
    assert (period.enabled, period.min, period.max) == (True, _seconds(2), _seconds(30))


def test_only_min_derives_max() -> None:
    period = BufferPeriodConfig(min=_seconds(3))
    period.finalize()
    assert (period.enabled, period.min, period.max) == (True, _seconds(3), _seconds(12))


def test_enabled_without_bounds_uses_global_minimum_when_parent_disabled() -> None:
    period = BufferPeriodConfig(enabled=True)
    period.finalize(disabled_buffer_period())
    assert (period.min, period.max) == (_seconds(5), _seconds(20))


def test_negative_bounds_are_rejected() -> None:
    with pytest.raises(ValidationError, match="cannot be negative"):
        BufferPeriodConfig(enabled=True, min=_seconds(-1), max=_seconds(1)).validate()


@given(PERIODS)
def test_finalize_is_idempotent_and_valid(period: BufferPeriodConfig) -> None:
    period.finalize()
    once = period.copy()
    period.finalize()
    assert period == once
    assert None not in (period.enabled, period.min, period.max)
    period.validate()
