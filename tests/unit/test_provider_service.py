"""Provider blocks and top-level service blocks."""

from __future__ import annotations

import logging

import pytest

from nia_config.domain.errors import ValidationError
from nia_config.domain.provider import TerraformProviderConfig, validate_providers
from nia_config.domain.service import ServiceConfig, validate_services


def test_provider_identity_uses_alias() -> None:
    assert TerraformProviderConfig({"aws": {"region": "us-east-1"}}).id == "aws"
    assert TerraformProviderConfig({"aws": {"alias": "west"}}).id == "aws.west"
    assert TerraformProviderConfig({}).name == ""


def test_provider_requires_a_single_label() -> None:
    with pytest.raises(ValidationError, match="missing provider name"):
        TerraformProviderConfig({}).validate()
    with pytest.raises(ValidationError, match="unexpected terraform_provider block labels: aws,gcp"):
        TerraformProviderConfig({"aws": {}, "gcp": {}}).validate()


def test_provider_task_env_must_be_strings() -> None:
    TerraformProviderConfig({"aws": {"task_env": {"AWS_REGION": "us-east-1"}}}).validate()
    with pytest.raises(ValidationError, match='value for "PORT" should be a string'):
        TerraformProviderConfig({"aws": {"task_env": {"PORT": 1}}}).validate()
    with pytest.raises(ValidationError, match="task_env should be a map"):
        TerraformProviderConfig({"aws": {"task_env": "nope"}}).validate()


def test_duplicate_provider_identity_is_rejected() -> None:
    providers = [
        TerraformProviderConfig({"aws": {"alias": "east"}}),
        TerraformProviderConfig({"aws": {"alias": "west"}}),
    ]
    validate_providers(providers)
    providers.append(TerraformProviderConfig({"aws": {"alias": "east"}}))
    with pytest.raises(ValidationError, match="duplicate provider configuration: aws.east"):
        validate_providers(providers)


def test_provider_copy_is_independent() -> None:
    provider = TerraformProviderConfig({"aws": {"task_env": {"A": "1"}}})
    clone = provider.copy()
    clone.values["aws"]["task_env"]["A"] = "2"
    assert provider.values["aws"]["task_env"]["A"] == "1"


def test_service_id_defaults_to_name() -> None:
    service = ServiceConfig(name="web", id=None)
    service.finalize()
    assert service.id == "web"
    assert service.tag == ""


def test_service_tag_is_deprecated(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="nia_config")
    service = ServiceConfig(name="web", tag="blue")
    service.finalize()
    assert service.tag == "blue"
    assert any("deprecated" in record.getMessage() for record in caplog.records)


def test_service_requires_name() -> None:
    service = ServiceConfig()
    service.finalize()
    with pytest.raises(ValidationError, match="logical name"):
        service.validate()


def test_service_ids_must_be_unique() -> None:
    services = [ServiceConfig(name="web"), ServiceConfig(name="web", id="web-2"), ServiceConfig(name="api", id="web")]
    for service in services:
        service.finalize()
    with pytest.raises(ValidationError, match="unique service IDs are required: web"):
        validate_services(services)
