"""Task blocks: what the daemon runs and when.

Purpose
-------
A task ties a Terraform module to the Consul data that drives it. Its
``condition`` decides when the task runs; its ``module_input`` blocks hand
extra data to the module without triggering it.

Contents
--------
* :class:`TaskConfig` – one ``task { ... }`` block.
* :func:`validate_tasks` – validates every task and requires unique names.
* :func:`filter_tasks` – selects tasks by name, preserving the requested order.

System Role
-----------
The root configuration finalizes each task and then calls
:meth:`TaskConfig.inherit_parent_config` so tasks pick up the global buffer
period and a working directory below the global one.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Final, Sequence

from ..observability import log_error, log_warning
from .block import Block, Kind, setting, validate_block
from .buffer_period import BufferPeriodConfig
from .conditions import NoConditionConfig, ScheduleConditionConfig, ServicesConditionConfig, default_condition
from .errors import ValidationError
from .module_inputs import validate_module_inputs
from .monitors import Monitor
from .workspace import TerraformCloudWorkspaceConfig

_TASK_NAME: Final[re.Pattern[str]] = re.compile(r"^[^\W\d][\w-]*$")


@dataclass(repr=False)
class TaskConfig(Block):
    """Configuration of a single task.

    Deprecated fields are still accepted: ``source`` is copied into
    ``module``, ``source_input`` blocks are folded into ``module_input``, and
    ``services`` keeps working but logs a warning.

    Examples
    --------
    >>> from nia_config.domain.conditions import ConsulKVConditionConfig
    >>> task = TaskConfig(name="kv_task", module="org/kv/module", condition=ConsulKVConditionConfig(path="app/"))
    >>> task.finalize()
    >>> task.enabled, task.condition.kind, task.module_inputs
    (True, 'consul-kv', [])
    >>> task.validate()
    """

    description: str | None = setting("description")
    name: str | None = setting("name")
    providers: list[str] | None = setting("providers", Kind.STRINGS)
    services: list[str] | None = setting("services", Kind.STRINGS)
    module: str | None = setting("module")
    source: str | None = setting("source")
    module_inputs: list[Monitor] | None = setting("module_input", Kind.MODULE_INPUTS)
    source_inputs: list[Monitor] | None = setting("source_input", Kind.MODULE_INPUTS)
    variable_files: list[str] | None = setting("variable_files", Kind.STRINGS)
    variables: dict[str, str] | None = setting("variables", Kind.STRING_MAP)
    version: str | None = setting("version")
    terraform_version: str | None = setting("terraform_version")
    terraform_cloud_workspace: TerraformCloudWorkspaceConfig | None = setting(
        "terraform_cloud_workspace", Kind.BLOCK, block=TerraformCloudWorkspaceConfig
    )
    buffer_period: BufferPeriodConfig | None = setting("buffer_period", Kind.BLOCK, block=BufferPeriodConfig)
    enabled: bool | None = setting("enabled", Kind.BOOL)
    condition: Monitor | None = setting("condition", Kind.CONDITION)
    working_dir: str | None = setting("working_dir")

    def finalize(self) -> None:
        """Fill defaults and resolve deprecated fields.

        A missing condition becomes :class:`NoConditionConfig`. A schedule
        condition switches the buffer period off because scheduled runs are
        never batched.
        """

        if self.description is None:
            self.description = ""
        if self.name is None:
            self.name = ""
        if self.providers is None:
            self.providers = []
        if self.services is None:
            self.services = []
        elif self.services:
            log_warning("task_field_deprecated", component="task", task=self.name, field="services",
                        replacement="condition \"services\" or module_input \"services\"")
        self._finalize_module()
        if self.variable_files is None:
            self.variable_files = []
        if self.variables is None:
            self.variables = {}
        if self.version is None:
            self.version = ""
        if self.terraform_cloud_workspace is None:
            self.terraform_cloud_workspace = TerraformCloudWorkspaceConfig()
        self.terraform_cloud_workspace.finalize()
        if self.terraform_version is None:
            self.terraform_version = ""
        if self.enabled is None:
            self.enabled = True

        if self.condition is None:
            self.condition = default_condition()
        self.condition.finalize(self.services)

        if self.source_inputs is not None:
            if self.source_inputs:
                log_warning("task_field_deprecated", component="task", task=self.name, field="source_input",
                            replacement="module_input")
                self.module_inputs = list(self.module_inputs or []) + self.source_inputs
            self.source_inputs = None
        if self.module_inputs is None:
            self.module_inputs = []
        for module_input in self.module_inputs:
            module_input.finalize(self.services)

        if isinstance(self.condition, ScheduleConditionConfig):
            if self.buffer_period is not None and self.buffer_period.enabled is not False:
                log_warning(
                    "disabling buffer_period for schedule condition. overriding buffer_period "
                    "configured for this task",
                    component="task",
                    task=self.name,
                    buffer_period=self.buffer_period.describe(),
                )
            self.buffer_period = BufferPeriodConfig(enabled=False, min=timedelta(0), max=timedelta(0))

    def _finalize_module(self) -> None:
        """Resolve ``module`` from the deprecated ``source`` field."""

        if self.module is None:
            self.module = ""
        if self.source:
            log_warning("task_field_deprecated", component="task", task=self.name, field="source",
                        replacement="module")
            if self.module:
                log_warning(
                    "the task block's 'source' and 'module' field were both configured. "
                    "Defaulting to the 'module' value",
                    component="task",
                    task=self.name,
                    module=self.module,
                )
            else:
                self.module = self.source

    def inherit_parent_config(self, parent_working_dir: str, parent_buffer_period: BufferPeriodConfig) -> TaskConfig:
        """Return a copy of this task completed with the root's settings.

        Parameters
        ----------
        parent_working_dir:
            Root working directory; the task works in ``<root>/<task name>``
            unless it configures its own.
        parent_buffer_period:
            Finalized root buffer period used for unset task values.

        Examples
        --------
        >>> from nia_config.domain.buffer_period import default_buffer_period
        >>> task = TaskConfig(name="web")
        >>> task.finalize()
        >>> inherited = task.inherit_parent_config("sync-tasks", default_buffer_period())
        >>> inherited.working_dir, inherited.buffer_period
        ('sync-tasks/web', BufferPeriodConfig(enabled=True, min=5s, max=20s))
        """

        task = self.copy()
        if task.working_dir is None:
            task.working_dir = os.path.join(parent_working_dir, task.name or "")
        if task.buffer_period is None:
            task.buffer_period = parent_buffer_period.copy()
        task.buffer_period.finalize(parent_buffer_period)
        return task

    def validate(self) -> None:
        if not self.name:
            raise ValidationError("unique name for the task is required")
        if not _TASK_NAME.match(self.name):
            raise ValidationError(
                "a task name must start with a letter or underscore and may contain only "
                f'letters, digits, underscores, and dashes: "{self.name}"'
            )
        self._validate_condition()
        if not self.module:
            raise ValidationError("module for the task is required")
        if self.terraform_version:
            raise ValidationError(
                f"unsupported configuration 'terraform_version' for task \"{self.name}\". "
                "configure the Terraform client version within the Terraform driver block"
            )
        validate_block(self.terraform_cloud_workspace)

        provider_names: set[str] = set()
        for provider in self.providers or ():
            provider_name = provider.split(".")[0]
            if provider_name in provider_names:
                raise ValidationError("only one provider instance per task")
            provider_names.add(provider_name)

        validate_block(self.condition)
        validate_module_inputs(self.module_inputs, self.services, self.condition)

    def _validate_condition(self) -> None:
        """Require a trigger and reject ``services`` monitored twice."""

        if not self.services:
            if self.condition is None or isinstance(self.condition, NoConditionConfig):
                raise ValidationError("task should be configured with a condition block")
            return
        if isinstance(self.condition, ServicesConditionConfig):
            error = (
                "task's `services` field and `condition 'services'` block both monitor "
                '"services" variable type. only one of these can be configured per task'
            )
            log_error("task_services_conflict", component="task", task=self.name, error=error)
            raise ValidationError(error)

    def validate_for_driver(self) -> None:
        """Check the settings a driver needs once the root config was inherited."""

        if self.buffer_period is None:
            raise ValidationError("missing buffer_period configuration on task")
        self.buffer_period.validate()
        if self.working_dir is None:
            raise ValidationError("missing working_dir configuration on task")


def validate_tasks(tasks: Sequence[TaskConfig] | None) -> None:
    """Validate every task and reject repeated task names."""

    seen: set[str] = set()
    for task in tasks or ():
        task.validate()
        name = task.name or ""
        if name in seen:
            raise ValidationError(f"duplicate task name: {name}")
        seen.add(name)


def filter_tasks(tasks: Sequence[TaskConfig] | None, names: Sequence[str]) -> list[TaskConfig]:
    """Return the tasks called *names*, in that order.

    Raises
    ------
    ValidationError
        When a requested task is not configured.
    """

    by_name = {task.name: task for task in tasks or ()}
    selected = []
    for name in names:
        if name not in by_name:
            raise ValidationError(f"task not found: {name}")
        selected.append(by_name[name])
    return selected
