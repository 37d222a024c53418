from __future__ import annotations

import logging

import pytest

from nia_config.domain.errors import ValidationError
from nia_config.domain.workspace import TerraformCloudWorkspaceConfig, validate_terraform_version


def _finalized(**values: str) -> TerraformCloudWorkspaceConfig:
    workspace = TerraformCloudWorkspaceConfig(**values)
    workspace.finalize()
    return workspace


def test_empty_workspace_is_valid() -> None:
    workspace = _finalized()
    assert workspace.is_empty()
    workspace.validate()


def test_agent_mode_requires_a_pool() -> None:
    workspace = _finalized(execution_mode="agent")
    with pytest.raises(ValidationError, match="agent_pool_id or agent_pool_name is required"):
        workspace.validate()
    workspace.agent_pool_id = "apool-1"
    workspace.validate()


def test_agent_pool_name_alone_is_enough() -> None:
    _finalized(execution_mode="agent", agent_pool_name="pool").validate()


def test_remote_mode_rejects_pool() -> None:
    with pytest.raises(ValidationError, match="execution mode is not 'agent'"):
        _finalized(execution_mode="remote", agent_pool_name="pool").validate()


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ValidationError, match="execution mode 'local' not supported"):
        _finalized(execution_mode="local").validate()


def test_both_pool_fields_only_warn(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="nia_config")
    _finalized(execution_mode="agent", agent_pool_id="apool-1", agent_pool_name="pool").validate()
    assert any("agent_pool_id will be used" in record.getMessage() for record in caplog.records)


@pytest.mark.parametrize("version", ["0.13.0", "0.14.11", "0.15.5"])
def test_supported_terraform_versions(version: str) -> None:
    validate_terraform_version(version)
    _finalized(execution_mode="remote", terraform_version=version).validate()


@pytest.mark.parametrize(
    ("version", "message"),
    [
        ("0.14", "exact Terraform version"),
        ("0.12.31", "not supported"),
        ("1.0.0", "not supported"),
        ("latest", "malformed Terraform version"),
    ],
)
def test_unsupported_terraform_versions(version: str, message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        validate_terraform_version(version)
