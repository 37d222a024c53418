"""Task condition variants.

Purpose
-------
A task's ``condition`` block decides when the task runs. Exactly one variant
occupies the slot; the discriminator key in the configuration file selects
which one (``condition "catalog-services" { ... }``).

Contents
--------
* :class:`ServicesConditionConfig`, :class:`CatalogServicesConditionConfig`,
  :class:`ConsulKVConditionConfig` – monitor-backed conditions that can also
  feed their data to the module (``use_as_module_input``).
* :class:`ScheduleConditionConfig` – cron based trigger.
* :class:`NodesConditionConfig` – trigger on catalog node changes.
* :class:`NoConditionConfig` – placeholder used when a task configures none.
* :data:`CONDITION_TYPES` – discriminator registry used by the decoder.
* :func:`default_condition` – factory for the placeholder variant.

System Role
-----------
:meth:`nia_config.domain.task.TaskConfig.finalize` substitutes
:func:`default_condition` for a missing block, so consumers never have to
check whether a condition exists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Final, Protocol, Sequence

from croniter import croniter

from ..observability import log_warning
from .block import Kind, setting
from .errors import ValidationError
from .monitors import (
    NODES_VARIABLE,
    CatalogServicesMonitorConfig,
    ConsulKVMonitorConfig,
    Monitor,
    ServicesMonitorConfig,
)

CRON_REFERENCE: Final[str] = "https://github.com/hashicorp/cronexpr"


class _ModuleInputCapable(Protocol):
    """Conditions whose monitored data can also be passed to the module."""

    kind: ClassVar[str]
    use_as_module_input: bool | None
    source_includes_var: bool | None


def _finalize_module_input_flag(condition: _ModuleInputCapable) -> None:
    """Resolve ``use_as_module_input`` from its deprecated predecessor."""

    deprecated = condition.source_includes_var
    if deprecated is not None:
        log_warning(
            "condition_field_deprecated",
            component="condition",
            condition=condition.kind,
            field="source_includes_var",
            replacement="use_as_module_input",
        )
        if condition.use_as_module_input is not None:
            log_warning(
                "condition_fields_both_configured",
                component="condition",
                condition=condition.kind,
                use_as_module_input=condition.use_as_module_input,
            )
        else:
            condition.use_as_module_input = deprecated
    if condition.use_as_module_input is None:
        condition.use_as_module_input = True


@dataclass(repr=False)
class ServicesConditionConfig(ServicesMonitorConfig):
    """Run the task when instances of the selected services change."""

    use_as_module_input: bool | None = setting("use_as_module_input", Kind.BOOL)
    source_includes_var: bool | None = setting("source_includes_var", Kind.BOOL)

    def finalize(self, services: Sequence[str] | None = None) -> None:
        super().finalize(services)
        _finalize_module_input_flag(self)


@dataclass(repr=False)
class CatalogServicesConditionConfig(CatalogServicesMonitorConfig):
    """Run the task when services are registered or deregistered.

    Examples
    --------
    >>> condition = CatalogServicesConditionConfig(regexp=".*", source_includes_var=False)
    >>> condition.finalize()
    >>> condition.use_as_module_input
    False
    """

    use_as_module_input: bool | None = setting("use_as_module_input", Kind.BOOL)
    source_includes_var: bool | None = setting("source_includes_var", Kind.BOOL)

    def finalize(self, services: Sequence[str] | None = None) -> None:
        super().finalize(services)
        _finalize_module_input_flag(self)


@dataclass(repr=False)
class ConsulKVConditionConfig(ConsulKVMonitorConfig):
    """Run the task when keys under ``path`` change."""

    use_as_module_input: bool | None = setting("use_as_module_input", Kind.BOOL)
    source_includes_var: bool | None = setting("source_includes_var", Kind.BOOL)

    def finalize(self, services: Sequence[str] | None = None) -> None:
        super().finalize(services)
        _finalize_module_input_flag(self)


@dataclass(repr=False)
class ScheduleConditionConfig(Monitor):
    """Run the task on a cron schedule.

    Accepts five-field expressions, six fields with a trailing year, seven
    fields with leading seconds and trailing year, and ``@`` macros such as
    ``@daily``.

    Examples
    --------
    >>> ScheduleConditionConfig(cron="*/10 * * * * * *").validate()
    >>> ScheduleConditionConfig(cron="").validate()
    Traceback (most recent call last):
    ...
    nia_config.domain.errors.ValidationError: cron config is required for schedule condition
    """

    kind: ClassVar[str] = "schedule"
    variable_type: ClassVar[str] = ""

    cron: str | None = setting("cron")

    def finalize(self, services: Sequence[str] | None = None) -> None:
        if self.cron is None:
            self.cron = ""

    def validate(self) -> None:
        if not self.cron:
            raise ValidationError("cron config is required for schedule condition")
        reason = cron_error(self.cron)
        if reason is not None:
            raise ValidationError(
                f'unable to parse schedule condition\'s cron config "{self.cron}": {reason}. '
                f"for more information on writing cron expressions, see {CRON_REFERENCE}"
            )


@dataclass(repr=False)
class NodesConditionConfig(Monitor):
    """Run the task when catalog nodes change; incompatible with ``task.services``."""

    kind: ClassVar[str] = "nodes"
    variable_type: ClassVar[str] = NODES_VARIABLE

    datacenter: str | None = setting("datacenter")
    task_services: list[str] | None = field(default=None)

    def finalize(self, services: Sequence[str] | None = None) -> None:
        if self.datacenter is None:
            self.datacenter = ""
        self.task_services = list(services or [])

    def validate(self) -> None:
        if self.task_services:
            raise ValidationError(f'task.services cannot be set when using condition "{self.kind}"')


@dataclass(repr=False)
class NoConditionConfig(Monitor):
    """Placeholder for tasks without a condition block."""

    kind: ClassVar[str] = "no-condition"


CONDITION_TYPES: Final[dict[str, type[Monitor]]] = {
    CatalogServicesConditionConfig.kind: CatalogServicesConditionConfig,
    ServicesConditionConfig.kind: ServicesConditionConfig,
    ConsulKVConditionConfig.kind: ConsulKVConditionConfig,
    ScheduleConditionConfig.kind: ScheduleConditionConfig,
    NodesConditionConfig.kind: NodesConditionConfig,
    NoConditionConfig.kind: NoConditionConfig,
}


def default_condition() -> NoConditionConfig:
    """Return the condition used when a task configures none."""

    return NoConditionConfig()


_MACROS: Final[frozenset[str]] = frozenset(
    {"@yearly", "@annually", "@monthly", "@weekly", "@daily", "@midnight", "@hourly"}
)


def cron_error(expression: str) -> str | None:
    """Return why *expression* is not a valid cron expression, or ``None``.

    Examples
    --------
    >>> cron_error("0 12 * * MON-FRI") is None
    True
    >>> cron_error("* * *")
    'expected 5 to 7 fields, found 3'
    """

    text = expression.strip()
    if text.startswith("@"):
        return None if text in _MACROS else f"unknown macro {text!r}"
    parts = text.split()
    seconds = year = None
    if len(parts) == 6:
        parts, year = parts[:5], parts[5]
    elif len(parts) == 7:
        seconds, parts, year = parts[0], parts[1:6], parts[6]
    elif len(parts) != 5:
        return f"expected 5 to 7 fields, found {len(parts)}"
    if seconds is not None and not croniter.is_valid(f"{seconds} * * * *"):
        return f"invalid seconds field {seconds!r}"
    if year is not None and not _valid_year_field(year):
        return f"invalid year field {year!r}"
    if not croniter.is_valid(" ".join(parts)):
        return "invalid minute, hour, day-of-month, month or day-of-week field"
    return None


def _valid_year_field(value: str) -> bool:
    """Check a year field made of ``*``, years, ranges and steps within 1970-2099."""

    for item in value.split(","):
        base, _, step = item.partition("/")
        if step and not step.isdigit():
            return False
        if base == "*":
            continue
        bounds = base.split("-")
        if len(bounds) > 2 or not all(bound.isdigit() for bound in bounds):
            return False
        years = [int(bound) for bound in bounds]
        if any(year < 1970 or year > 2099 for year in years) or years != sorted(years):
            return False
    return True
