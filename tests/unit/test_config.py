"""Root configuration: defaults, finalize order and validation."""

from __future__ import annotations

from datetime import timedelta

import pytest

from nia_config.domain.buffer_period import BufferPeriodConfig
from nia_config.domain.conditions import ServicesConditionConfig
from nia_config.domain.config import Config, default_config
from nia_config.domain.consul import ConsulConfig
from nia_config.domain.driver import DriverConfig, TerraformConfig
from nia_config.domain.errors import ValidationError
from nia_config.domain.provider import TerraformProviderConfig
from nia_config.domain.service import ServiceConfig
from nia_config.domain.syslog import SyslogConfig
from nia_config.domain.task import TaskConfig


def _web_task(**values: object) -> TaskConfig:
    defaults: dict[str, object] = {
        "name": "web",
        "module": "org/web/module",
        "condition": ServicesConditionConfig(names=["web"]),
    }
    return TaskConfig(**{**defaults, **values})  # type: ignore[arg-type]


def test_default_config_values() -> None:
    config = default_config()
    assert (config.log_level, config.port, config.working_dir) == ("INFO", 8558, "sync-tasks")
    assert config.buffer_period == BufferPeriodConfig(enabled=True, min=timedelta(seconds=5), max=timedelta(seconds=20))
    assert config.consul is None


def test_finalize_fills_every_block(tmp_path) -> None:
    config = Config()
    config.finalize({}, str(tmp_path))
    assert (config.log_level, config.port) == ("INFO", 8558)
    assert config.syslog == SyslogConfig(enabled=False, facility="LOCAL0", name="consul-terraform-sync")
    assert config.consul is not None and config.consul.address == "localhost:8500"
    assert config.driver is not None and config.driver.terraform is not None
    assert config.driver.terraform.path == str(tmp_path)
    assert config.tasks == [] and config.services == [] and config.terraform_providers == []
    assert config.tls is not None and config.tls.enabled is False
    assert config.acl is not None and config.acl.enabled is False
    assert config.self_registration is not None and config.self_registration.enabled is True
    config.validate()


def test_driver_backend_follows_consul_block(tmp_path) -> None:
    config = Config(consul=ConsulConfig(address="consul.internal:8500", kv_path="team-a/"))
    config.finalize({}, str(tmp_path))
    assert config.driver is not None and config.driver.terraform is not None
    assert config.driver.terraform.backend == {
        "consul": {"address": "consul.internal:8500", "path": "team-a/terraform", "gzip": True}
    }


def test_tasks_inherit_root_settings(tmp_path) -> None:
    config = default_config()
    config.working_dir = "/srv/sync"
    config.buffer_period = BufferPeriodConfig(enabled=True, min=timedelta(seconds=3))
    config.tasks = [_web_task(), _web_task(name="api", buffer_period=BufferPeriodConfig(enabled=False))]
    config.finalize({}, str(tmp_path))
    web, api = config.tasks
    assert web.working_dir == "/srv/sync/web"
    assert web.buffer_period == BufferPeriodConfig(enabled=True, min=timedelta(seconds=3), max=timedelta(seconds=12))
    assert api.working_dir == "/srv/sync/api"
    assert api.buffer_period is not None and api.buffer_period.enabled is False
    config.validate()


def test_finalize_is_idempotent(tmp_path) -> None:
    config = default_config()
    config.tasks = [_web_task()]
    config.services = [ServiceConfig(name="web")]
    config.terraform_providers = [TerraformProviderConfig({"aws": {"region": "eu-west-1"}})]
    config.finalize({"CONSUL_HTTP_TOKEN": "abc"}, str(tmp_path))
    once = config.copy()
    config.finalize({"CONSUL_HTTP_TOKEN": "abc"}, str(tmp_path))
    assert config == once


def test_validate_reports_duplicate_tasks(tmp_path) -> None:
    config = default_config()
    config.tasks = [_web_task(), _web_task()]
    config.finalize({}, str(tmp_path))
    with pytest.raises(ValidationError, match="duplicate task name: web"):
        config.validate()


def test_validate_reports_duplicate_providers(tmp_path) -> None:
    config = default_config()
    config.terraform_providers = [TerraformProviderConfig({"aws": {}}), TerraformProviderConfig({"aws": {}})]
    config.finalize({}, str(tmp_path))
    with pytest.raises(ValidationError, match="duplicate provider configuration: aws"):
        config.validate()


def test_validate_checks_driver_first(tmp_path) -> None:
    config = default_config()
    config.driver = DriverConfig(terraform=TerraformConfig(backend={"etcd": {}}))
    config.tasks = [_web_task(), _web_task()]
    config.finalize({}, str(tmp_path))
    with pytest.raises(ValidationError, match="unsupported Terraform backend"):
        config.validate()


def test_merge_accumulates_tasks_and_overrides_scalars() -> None:
    left = default_config().merge(Config(port=9000, tasks=[_web_task()]))
    merged = left.merge(Config(log_level="DEBUG", tasks=[_web_task(name="api")]))
    assert (merged.port, merged.log_level) == (9000, "DEBUG")
    assert [task.name for task in merged.tasks or []] == ["web", "api"]


def test_describe_hides_secrets() -> None:
    config = default_config()
    config.consul = ConsulConfig(token="very-secret")
    config.terraform_providers = [TerraformProviderConfig({"vault": {"token": "also-secret"}})]
    text = config.describe()
    assert "very-secret" not in text
    assert "also-secret" not in text
    assert "TerraformProviderConfig(vault=(redacted))" in text
