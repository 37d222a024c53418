"""Task finalize, inheritance and validation."""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from nia_config.domain.buffer_period import BufferPeriodConfig, default_buffer_period
from nia_config.domain.conditions import (
    CatalogServicesConditionConfig,
    ConsulKVConditionConfig,
    NoConditionConfig,
    ScheduleConditionConfig,
    ServicesConditionConfig,
)
from nia_config.domain.errors import ValidationError
from nia_config.domain.module_inputs import ConsulKVModuleInputConfig, ServicesModuleInputConfig
from nia_config.domain.task import TaskConfig, filter_tasks, validate_tasks
from nia_config.domain.workspace import TerraformCloudWorkspaceConfig


def _task(**values: object) -> TaskConfig:
    values.setdefault("name", "web")
    values.setdefault("module", "org/web/module")
    values.setdefault("condition", ServicesConditionConfig(names=["web"]))
    task = TaskConfig(**values)  # type: ignore[arg-type]
    task.finalize()
    return task


def test_finalize_fills_defaults() -> None:
    task = TaskConfig()
    task.finalize()
    assert task.name == ""
    assert task.enabled is True
    assert task.providers == [] and task.services == [] and task.variable_files == []
    assert task.variables == {}
    assert isinstance(task.condition, NoConditionConfig)
    assert task.module_inputs == []
    assert task.source_inputs is None
    assert task.terraform_cloud_workspace is not None and task.terraform_cloud_workspace.is_empty()
    assert task.working_dir is None
    assert task.buffer_period is None


def test_explicitly_disabled_task_stays_disabled() -> None:
    assert _task(enabled=False).enabled is False


def test_finalize_twice_is_a_no_op() -> None:
    task = _task(source_inputs=[ConsulKVModuleInputConfig(path="app/")])
    once = task.copy()
    task.finalize()
    assert task == once


def test_source_is_copied_into_module(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="nia_config")
    task = _task(module=None, source="org/legacy/module")
    assert task.module == "org/legacy/module"
    assert any(record.getMessage() == "task_field_deprecated" for record in caplog.records)


def test_module_wins_over_source() -> None:
    assert _task(source="org/legacy/module").module == "org/web/module"


def test_source_inputs_fold_into_module_inputs() -> None:
    task = _task(
        module_inputs=[ServicesModuleInputConfig(names=["api"])],
        condition=ConsulKVConditionConfig(path="app/"),
        source_inputs=[ConsulKVModuleInputConfig(path="other/")],
    )
    assert [entry.kind for entry in task.module_inputs or []] == ["services", "consul-kv"]
    assert task.source_inputs is None


def test_schedule_condition_disables_buffer_period(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="nia_config")
    task = _task(
        condition=ScheduleConditionConfig(cron="*/5 * * * *"),
        buffer_period=BufferPeriodConfig(enabled=True, min=timedelta(seconds=1)),
    )
    assert task.buffer_period == BufferPeriodConfig(enabled=False, min=timedelta(0), max=timedelta(0))
    assert any("disabling buffer_period" in record.getMessage() for record in caplog.records)
    inherited = task.inherit_parent_config("sync-tasks", default_buffer_period())
    assert inherited.buffer_period is not None and inherited.buffer_period.enabled is False


def test_inherit_parent_config_returns_completed_copy() -> None:
    task = _task()
    parent = BufferPeriodConfig(enabled=True, min=timedelta(seconds=2), max=timedelta(seconds=3))
    inherited = task.inherit_parent_config("/var/sync", parent)
    assert inherited is not task
    assert inherited.working_dir == "/var/sync/web"
    assert inherited.buffer_period == parent
    assert task.working_dir is None and task.buffer_period is None
    inherited.validate_for_driver()


def test_inherit_keeps_explicit_working_dir() -> None:
    task = _task(working_dir="custom")
    assert task.inherit_parent_config("sync-tasks", default_buffer_period()).working_dir == "custom"


def test_validate_for_driver_requires_inherited_settings() -> None:
    with pytest.raises(ValidationError, match="buffer_period"):
        _task().validate_for_driver()


@pytest.mark.parametrize(
    ("values", "message"),
    [
        ({"name": ""}, "unique name for the task is required"),
        ({"name": "1task"}, "a task name must start with a letter or underscore"),
        ({"name": "has space"}, "a task name must start with a letter or underscore"),
        ({"condition": None}, "task should be configured with a condition block"),
        ({"module": ""}, "module for the task is required"),
        ({"terraform_version": "0.14.0"}, "unsupported configuration 'terraform_version'"),
        ({"providers": ["aws.east", "aws.west"]}, "only one provider instance per task"),
        ({"condition": ConsulKVConditionConfig()}, "path is required"),
        (
            {"terraform_cloud_workspace": TerraformCloudWorkspaceConfig(execution_mode="agent")},
            "agent_pool_id or agent_pool_name is required",
        ),
        (
            {"services": ["api"], "condition": ServicesConditionConfig(names=["web"])},
            "`condition 'services'` block both monitor",
        ),
        (
            {"condition": ConsulKVConditionConfig(path="a/"), "module_inputs": [ConsulKVModuleInputConfig(path="b/")]},
            "condition and module_input variable type must be unique",
        ),
    ],
)
def test_validate_errors(values: dict[str, object], message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        _task(**values).validate()


def test_task_services_satisfy_condition_requirement(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="nia_config")
    task = _task(services=["api"], condition=None)
    task.validate()
    assert any(record.getMessage() == "task_field_deprecated" for record in caplog.records)


@pytest.mark.parametrize("name", ["web", "_private", "web-task_2", "Ünicode"])
def test_valid_task_names(name: str) -> None:
    _task(name=name).validate()


def test_catalog_services_task_is_valid() -> None:
    _task(condition=CatalogServicesConditionConfig(regexp=".*")).validate()


def test_validate_tasks_rejects_duplicate_names() -> None:
    tasks = [_task(), _task(module="other")]
    with pytest.raises(ValidationError, match="duplicate task name: web"):
        validate_tasks(tasks)
    validate_tasks([])
    validate_tasks(None)


def test_filter_tasks_preserves_requested_order() -> None:
    tasks = [_task(name="a"), _task(name="b"), _task(name="c")]
    assert [task.name for task in filter_tasks(tasks, ["c", "a"])] == ["c", "a"]
    with pytest.raises(ValidationError, match="task not found: d"):
        filter_tasks(tasks, ["d"])


def test_repeated_provider_survives_merge_and_fails_validation() -> None:
    merged = TaskConfig(name="web", providers=["aws", "aws"]).merge(TaskConfig())
    assert merged.providers == ["aws", "aws"]
    task = _task(providers=merged.providers)
    with pytest.raises(ValidationError, match="only one provider instance per task"):
        task.validate()
