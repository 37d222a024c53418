"""Syslog output settings of the daemon."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .block import Block, Kind, setting
from .values import string_present

DEFAULT_SYSLOG_FACILITY: Final[str] = "LOCAL0"
DEFAULT_SYSLOG_NAME: Final[str] = "consul-terraform-sync"


@dataclass(repr=False)
class SyslogConfig(Block):
    """Syslog facility and program name; enabled implicitly by either one.

    Examples
    --------
    >>> syslog = SyslogConfig(facility="LOCAL3")
    >>> syslog.finalize()
    >>> syslog
    SyslogConfig(enabled=True, facility='LOCAL3', name='consul-terraform-sync')
    """

    enabled: bool | None = setting("enabled", Kind.BOOL)
    facility: str | None = setting("facility")
    name: str | None = setting("name")

    def finalize(self) -> None:
        if self.enabled is None:
            self.enabled = string_present(self.facility) or string_present(self.name)
        if self.facility is None:
            self.facility = DEFAULT_SYSLOG_FACILITY
        if self.name is None:
            self.name = DEFAULT_SYSLOG_NAME

    def validate(self) -> None:
        """Syslog settings carry no constraints."""
