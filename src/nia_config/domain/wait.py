"""Wait window: how long to let template data settle before rendering.

Unlike :mod:`nia_config.domain.buffer_period` there is no inheritance; the
window is switched on by configuring ``min``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Final

from .block import Block, Kind, setting
from .errors import ValidationError
from .values import duration_present

DEFAULT_WAIT_MIN: Final[timedelta] = timedelta(seconds=5)
DEFAULT_WAIT_MAX: Final[timedelta] = 4 * DEFAULT_WAIT_MIN


def default_wait() -> WaitConfig:
    """Return the global default: enabled, 5s minimum, 20s maximum."""

    return WaitConfig(enabled=True, min=DEFAULT_WAIT_MIN, max=DEFAULT_WAIT_MAX)


@dataclass(repr=False)
class WaitConfig(Block):
    """Minimum and maximum quiescence period.

    Examples
    --------
    >>> wait = WaitConfig(min=timedelta(seconds=2))
    >>> wait.finalize()
    >>> wait
    WaitConfig(enabled=True, min=2s, max=8s)
    >>> empty = WaitConfig()
    >>> empty.finalize()
    >>> empty
    WaitConfig(enabled=False, min=5s, max=20s)
    """

    enabled: bool | None = setting("enabled", Kind.BOOL)
    min: timedelta | None = setting("min", Kind.DURATION)
    max: timedelta | None = setting("max", Kind.DURATION)

    def finalize(self) -> None:
        if self.enabled is None:
            self.enabled = duration_present(self.min)
        if self.min is None:
            self.min = DEFAULT_WAIT_MIN
        if self.max is None:
            self.max = 4 * self.min

    def validate(self) -> None:
        """Reject negative bounds and ``max`` below ``min`` while enabled."""

        if not self.enabled:
            return
        if any(bound is not None and bound < timedelta(0) for bound in (self.min, self.max)):
            raise ValidationError("wait: cannot be negative")
        if self.min is not None and self.max is not None and self.max < self.min:
            raise ValidationError("wait: min must be less than max")
