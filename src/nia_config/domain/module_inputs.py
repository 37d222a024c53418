"""Module input variants.

Purpose
-------
``module_input`` blocks (formerly ``source_input``) hand additional Consul
data to a task's module without triggering the task. Each variant reuses the
matching monitor from :mod:`nia_config.domain.monitors`.

Contents
--------
* :class:`ServicesModuleInputConfig`, :class:`ConsulKVModuleInputConfig`,
  :class:`IntentionsModuleInputConfig` – concrete variants.
* :data:`MODULE_INPUT_TYPES` – discriminator registry used by the decoder.
* :func:`validate_module_inputs` – cross-block rules between a task's module
  inputs, its deprecated ``services`` list and its condition.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Final, Sequence

from ..observability import log_error
from .errors import ValidationError
from .monitors import (
    SERVICES_VARIABLE,
    ConsulKVMonitorConfig,
    IntentionsMonitorConfig,
    Monitor,
    ServicesMonitorConfig,
)


@dataclass(repr=False)
class ServicesModuleInputConfig(ServicesMonitorConfig):
    """Pass a set of services to the module."""

    def validate(self) -> None:
        _wrap_validation(self, super().validate)


@dataclass(repr=False)
class ConsulKVModuleInputConfig(ConsulKVMonitorConfig):
    """Pass Consul KV entries to the module."""


@dataclass(repr=False)
class IntentionsModuleInputConfig(IntentionsMonitorConfig):
    """Pass service intentions to the module."""

    def validate(self) -> None:
        _wrap_validation(self, super().validate)


def _wrap_validation(block: Monitor, check: Callable[[], None]) -> None:
    """Prefix validation failures with the offending ``module_input`` block."""

    try:
        check()
    except ValidationError as exc:
        raise ValidationError(f'error validating `module_input "{block.kind}"`: {exc}') from exc


MODULE_INPUT_TYPES: Final[dict[str, type[Monitor]]] = {
    ServicesModuleInputConfig.kind: ServicesModuleInputConfig,
    ConsulKVModuleInputConfig.kind: ConsulKVModuleInputConfig,
    IntentionsModuleInputConfig.kind: IntentionsModuleInputConfig,
}


def validate_module_inputs(
    inputs: Sequence[Monitor] | None,
    services: Sequence[str] | None,
    condition: Monitor | None,
) -> None:
    """Validate a task's module inputs against its services list and condition.

    Rules
    -----
    * each module input validates on its own;
    * every variable type appears in at most one module input;
    * a ``services`` module input conflicts with the deprecated task
      ``services`` list;
    * no module input may monitor the condition's variable type.

    Examples
    --------
    >>> validate_module_inputs(
    ...     [ServicesModuleInputConfig(names=["api"]), ServicesModuleInputConfig(names=["web"])],
    ...     [],
    ...     None,
    ... )
    Traceback (most recent call last):
    ...
    nia_config.domain.errors.ValidationError: more than one 'module_input' block for the "services" variable. variable types must be unique
    """

    if not inputs:
        return
    seen: set[str] = set()
    for entry in inputs:
        entry.validate()
        if entry.variable_type in seen:
            raise ValidationError(
                f"more than one 'module_input' block for the \"{entry.variable_type}\" "
                "variable. variable types must be unique"
            )
        seen.add(entry.variable_type)

    if services and SERVICES_VARIABLE in seen:
        error = (
            "task's `services` field and `module_input 'services'` block both monitor "
            f'"{SERVICES_VARIABLE}" variable type. only one of these can be configured per task'
        )
        log_error("module_input_conflicts_with_services", component="task", error=error)
        raise ValidationError(error)

    if condition is not None and condition.variable_type in seen:
        error = (
            "task's condition block and module_input block both monitor "
            f'"{condition.variable_type}" variable type. condition and module_input '
            "variable type must be unique"
        )
        log_error("module_input_conflicts_with_condition", component="task", error=error)
        raise ValidationError(error)
