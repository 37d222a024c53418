from __future__ import annotations

import pytest

from nia_config.domain.consul import ConsulConfig
from nia_config.domain.driver import DriverConfig, TerraformConfig, default_terraform_backend
from nia_config.domain.errors import ValidationError
from nia_config.domain.tls import TLSConfig


def _consul(**values: object) -> ConsulConfig:
    consul = ConsulConfig(**values)  # type: ignore[arg-type]
    consul.finalize({})
    return consul


def test_default_backend_follows_consul_settings() -> None:
    backend = default_terraform_backend(_consul())
    assert backend == {"consul": {"address": "localhost:8500", "path": "consul-nia/terraform", "gzip": True}}


def test_default_backend_keeps_terraform_suffix() -> None:
    backend = default_terraform_backend(_consul(kv_path="sync/terraform"))
    assert backend["consul"]["path"] == "sync/terraform"


def test_default_backend_with_tls() -> None:
    consul = _consul(tls=TLSConfig(enabled=True, ca_cert="ca.pem", cert="c.pem", key="k.pem"))
    backend = default_terraform_backend(consul)["consul"]
    assert backend["scheme"] == "https"
    assert (backend["ca_file"], backend["cert_file"], backend["key_file"]) == ("ca.pem", "c.pem", "k.pem")


def test_terraform_defaults(tmp_path) -> None:
    terraform = TerraformConfig()
    terraform.finalize(_consul(), str(tmp_path))
    assert terraform.path == str(tmp_path)
    assert (terraform.log, terraform.persist_log, terraform.version) == (False, False, "")
    assert terraform.is_consul_backend()
    assert terraform.required_providers == {}
    terraform.validate()


def test_configured_consul_backend_is_completed_from_defaults(tmp_path) -> None:
    terraform = TerraformConfig(backend={"consul": {"path": "custom/state"}})
    terraform.finalize(_consul(address="consul:8500"), str(tmp_path))
    assert terraform.backend == {"consul": {"address": "consul:8500", "path": "custom/state", "gzip": True}}


def test_other_backends_are_left_alone(tmp_path) -> None:
    terraform = TerraformConfig(backend={"s3": {"bucket": "state"}})
    terraform.finalize(_consul(), str(tmp_path))
    assert terraform.backend == {"s3": {"bucket": "state"}}
    assert not terraform.is_consul_backend()
    terraform.validate()


def test_unsupported_backend_is_rejected(tmp_path) -> None:
    terraform = TerraformConfig(backend={"remote": {}})
    terraform.finalize(_consul(), str(tmp_path))
    with pytest.raises(ValidationError, match='unsupported Terraform backend by Sync "remote"'):
        terraform.validate()


def test_terraform_version_is_checked(tmp_path) -> None:
    terraform = TerraformConfig(version="0.12.0")
    terraform.finalize(None, str(tmp_path))
    with pytest.raises(ValidationError, match="not supported"):
        terraform.validate()


def test_backend_settings_merge_per_backend() -> None:
    left = TerraformConfig(backend={"consul": {"address": "a:8500", "gzip": True}})
    right = TerraformConfig(backend={"consul": {"address": "b:8500"}}, log=True)
    merged = left.merge(right)
    assert merged.backend == {"consul": {"address": "b:8500", "gzip": True}}
    assert merged.log is True
    assert left.backend == {"consul": {"address": "a:8500", "gzip": True}}


def test_driver_requires_terraform() -> None:
    with pytest.raises(ValidationError, match="missing Terraform driver configuration"):
        DriverConfig().validate()


def test_driver_finalize_creates_terraform(tmp_path) -> None:
    driver = DriverConfig()
    driver.finalize(_consul(), str(tmp_path))
    assert driver.terraform is not None
    driver.validate()
