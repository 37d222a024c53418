"""Terraform Cloud workspace settings of a task."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from packaging.specifiers import SpecifierSet
from packaging.version import InvalidVersion, Version

from ..observability import log_warning
from .block import Block, setting
from .errors import ValidationError

COMPATIBLE_TERRAFORM_VERSION_CONSTRAINT: Final[str] = ">= 0.13.0, < 0.16"
_TERRAFORM_CONSTRAINT: Final[SpecifierSet] = SpecifierSet(COMPATIBLE_TERRAFORM_VERSION_CONSTRAINT.replace(" ", ""))
EXECUTION_MODES: Final[tuple[str, ...]] = ("remote", "agent", "")


def validate_terraform_version(version: str) -> None:
    """Require an exact ``x.y.z`` Terraform version inside the supported range.

    Examples
    --------
    >>> validate_terraform_version("0.14.11")
    >>> validate_terraform_version("0.14")
    Traceback (most recent call last):
    ...
    nia_config.domain.errors.ValidationError: provide the exact Terraform version to install: 0.14
    """

    try:
        parsed = Version(version)
    except InvalidVersion as exc:
        raise ValidationError(f"malformed Terraform version {version!r}: {exc}") from exc
    if len(version.split(".")) < 3:
        raise ValidationError(f"provide the exact Terraform version to install: {version}")
    if parsed not in _TERRAFORM_CONSTRAINT:
        raise ValidationError(
            "Terraform version is not supported, try updating to a different version "
            f"({COMPATIBLE_TERRAFORM_VERSION_CONSTRAINT}): {version}"
        )


@dataclass(repr=False)
class TerraformCloudWorkspaceConfig(Block):
    """Execution settings for the Terraform Cloud workspace backing a task.

    Examples
    --------
    >>> workspace = TerraformCloudWorkspaceConfig(execution_mode="agent")
    >>> workspace.finalize()
    >>> workspace.validate()
    Traceback (most recent call last):
    ...
    nia_config.domain.errors.ValidationError: agent_pool_id or agent_pool_name is required if execution mode is 'agent'
    >>> workspace.agent_pool_id = "apool-1"
    >>> workspace.validate()
    """

    execution_mode: str | None = setting("execution_mode")
    agent_pool_id: str | None = setting("agent_pool_id")
    agent_pool_name: str | None = setting("agent_pool_name")
    terraform_version: str | None = setting("terraform_version")

    def is_empty(self) -> bool:
        """Return ``True`` when no field holds a non-empty value."""

        return not any(
            (self.execution_mode, self.agent_pool_id, self.agent_pool_name, self.terraform_version)
        )

    def finalize(self) -> None:
        if self.execution_mode is None:
            self.execution_mode = ""
        if self.agent_pool_id is None:
            self.agent_pool_id = ""
        if self.agent_pool_name is None:
            self.agent_pool_name = ""
        if self.terraform_version is None:
            self.terraform_version = ""

    def validate(self) -> None:
        if self.is_empty():
            return
        mode = self.execution_mode or ""
        if mode not in EXECUTION_MODES:
            raise ValidationError(f"execution mode '{mode}' not supported, use 'remote' or 'agent' instead")
        has_pool = bool(self.agent_pool_id or self.agent_pool_name)
        if mode == "agent" and not has_pool:
            raise ValidationError("agent_pool_id or agent_pool_name is required if execution mode is 'agent'")
        if mode != "agent" and has_pool:
            raise ValidationError("agent pool configured when execution mode is not 'agent'")
        if self.agent_pool_id and self.agent_pool_name:
            log_warning(
                "agent_pool_id and agent_pool_name are both configured, agent_pool_id will be used",
                component="terraform_cloud_workspace",
            )
        if self.terraform_version:
            validate_terraform_version(self.terraform_version)
