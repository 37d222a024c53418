"""Buffer period: the min/max window used to batch changes before a task runs.

Purpose
-------
The root configuration carries the global buffer period; each task may
override it. A task's unset values are inherited from the root while an
explicit ``enabled = false`` collapses the window to zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Final

from .block import Block, Kind, setting
from .errors import ValidationError

DEFAULT_BUFFER_PERIOD_MIN: Final[timedelta] = timedelta(seconds=5)
DEFAULT_BUFFER_PERIOD_MAX: Final[timedelta] = 4 * DEFAULT_BUFFER_PERIOD_MIN


def default_buffer_period() -> BufferPeriodConfig:
    """Return the global default: enabled, 5s minimum, 20s maximum."""

    return BufferPeriodConfig(enabled=True, min=DEFAULT_BUFFER_PERIOD_MIN, max=DEFAULT_BUFFER_PERIOD_MAX)


def disabled_buffer_period() -> BufferPeriodConfig:
    """Return a buffer period that is switched off."""

    return BufferPeriodConfig(enabled=False, min=timedelta(0), max=timedelta(0))


@dataclass(repr=False)
class BufferPeriodConfig(Block):
    """Minimum and maximum time to wait for changes to settle.

    Examples
    --------
    >>> period = BufferPeriodConfig(min=timedelta(seconds=100), max=timedelta(seconds=1))
    >>> period.finalize()
    >>> period
    BufferPeriodConfig(enabled=True, min=1m40s, max=1m40s)
    """

    enabled: bool | None = setting("enabled", Kind.BOOL)
    min: timedelta | None = setting("min", Kind.DURATION)
    max: timedelta | None = setting("max", Kind.DURATION)

    def finalize(self, parent: BufferPeriodConfig | None = None) -> None:
        """Fill unset values from *parent*, or from the global default.

        Rules
        -----
        * ``enabled = false`` sets both bounds to zero;
        * nothing configured copies the parent;
        * any bound configured implies ``enabled = true``; an unset ``min``
          comes from an enabled parent (otherwise 5s) and an unset ``max`` is
          four times ``min``;
        * a ``min`` above ``max`` raises ``max`` to ``min``.
        """

        parent = parent if parent is not None else default_buffer_period()
        if self.enabled is False:
            self.min = timedelta(0)
            self.max = timedelta(0)
            return

        if self.enabled is None and self.min is None and self.max is None:
            self.enabled = parent.enabled
            self.min = parent.min
            self.max = parent.max
            return

        self.enabled = True
        if self.min is None:
            self.min = parent.min if parent.enabled and parent.min is not None else DEFAULT_BUFFER_PERIOD_MIN
        if self.max is None:
            self.max = 4 * self.min
        if self.min > self.max:
            self.max = self.min

    def validate(self) -> None:
        """Reject negative bounds and an inverted window unless disabled."""

        if self.enabled is False:
            return
        if any(bound is not None and bound < timedelta(0) for bound in (self.min, self.max)):
            raise ValidationError("buffer_period: cannot be negative")
        if self.min is not None and self.max is not None and self.max < self.min:
            raise ValidationError("buffer_period: min must be less than max")
