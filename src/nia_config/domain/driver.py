"""Driver settings: how the daemon runs Terraform.

Contents
--------
* :func:`default_terraform_backend` – Consul KV backend derived from the
  finalized Consul connection settings.
* :class:`TerraformConfig` – Terraform client settings.
* :class:`DriverConfig` – wrapper block (``driver "terraform" { ... }``).

System Role
-----------
The backend default depends on the Consul block, so the root configuration
finalizes ``consul`` before ``driver`` and passes it in explicitly.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Mapping

from .block import Block, Kind, setting
from .consul import ConsulConfig
from .errors import ValidationError
from .merge_utils import clone_value, merge_maps
from .workspace import validate_terraform_version

DEFAULT_TF_BACKEND_KV_PATH: Final[str] = "consul-terraform-sync/terraform"
SUPPORTED_BACKENDS: Final[frozenset[str]] = frozenset(
    {"azurerm", "consul", "cos", "gcs", "kubernetes", "local", "manta", "pg", "s3"}
)


def default_terraform_backend(consul: ConsulConfig) -> dict[str, Any]:
    """Return ``{"consul": {...}}`` pointing Terraform state at Consul KV.

    Examples
    --------
    >>> consul = ConsulConfig(address="consul.example.com:8500", kv_path="cts/")
    >>> consul.finalize(environ={})
    >>> default_terraform_backend(consul)
    {'consul': {'address': 'consul.example.com:8500', 'path': 'cts/terraform', 'gzip': True}}
    """

    kv_path = DEFAULT_TF_BACKEND_KV_PATH
    if consul.kv_path:
        kv_path = consul.kv_path if consul.kv_path.endswith("/terraform") else posixpath.join(consul.kv_path, "terraform")

    backend: dict[str, Any] = {"address": consul.address, "path": kv_path, "gzip": True}
    tls = consul.tls
    if tls is not None and tls.enabled:
        backend["scheme"] = "https"
        for option, value in (("ca_file", tls.ca_cert), ("cert_file", tls.cert), ("key_file", tls.key)):
            if value:
                backend[option] = value
    return {"consul": backend}


@dataclass(repr=False)
class TerraformConfig(Block):
    """Terraform client settings.

    ``backend`` maps one backend name to its settings. Merging combines the
    settings of a backend present on both sides instead of replacing them.
    """

    version: str | None = setting("version")
    log: bool | None = setting("log", Kind.BOOL)
    persist_log: bool | None = setting("persist_log", Kind.BOOL)
    path: str | None = setting("path")
    backend: dict[str, Any] | None = setting("backend", Kind.RAW_MAP)
    required_providers: dict[str, Any] | None = setting("required_providers", Kind.RAW_MAP)

    def merge(self, other: TerraformConfig | None) -> TerraformConfig:
        result = super().merge(other)
        if isinstance(other, TerraformConfig) and self.backend and other.backend:
            result.backend = _merge_backends(self.backend, other.backend)
        return result

    def finalize(self, consul: ConsulConfig | None = None, cwd: str | None = None) -> None:
        """Fill defaults; the Consul backend is derived from *consul* when given."""

        if self.version is None:
            self.version = ""
        if self.log is None:
            self.log = False
        if self.persist_log is None:
            self.persist_log = False
        if not self.path:
            self.path = cwd if cwd is not None else str(Path.cwd())
        if self.backend is None:
            self.backend = {}
        if consul is not None:
            default_backend = default_terraform_backend(consul)
            if not self.backend:
                self.backend = default_backend
            elif isinstance(self.backend.get("consul"), Mapping):
                self.backend["consul"] = merge_maps(default_backend["consul"], self.backend["consul"])
        if self.required_providers is None:
            self.required_providers = {}

    def validate(self) -> None:
        if self.version:
            validate_terraform_version(self.version)
        if self.backend is None:
            raise ValidationError("missing Terraform backend configuration")
        for name in self.backend:
            if name not in SUPPORTED_BACKENDS:
                raise ValidationError(f'unsupported Terraform backend by Sync "{name}"')

    def is_consul_backend(self) -> bool:
        """Return ``True`` when Terraform state is stored in Consul."""

        return bool(self.backend) and "consul" in self.backend


def _merge_backends(left: Mapping[str, Any], right: Mapping[str, Any]) -> dict[str, Any]:
    """Merge backend settings per backend name; non-mapping values are replaced."""

    result = clone_value(dict(left))
    for name, settings in right.items():
        current = result.get(name)
        if isinstance(current, Mapping) and isinstance(settings, Mapping):
            result[name] = merge_maps(current, settings)
        else:
            result[name] = clone_value(settings)
    return result


@dataclass(repr=False)
class DriverConfig(Block):
    """The ``driver`` block; Terraform is the only driver."""

    terraform: TerraformConfig | None = setting("terraform", Kind.BLOCK, block=TerraformConfig)

    def finalize(self, consul: ConsulConfig | None = None, cwd: str | None = None) -> None:
        if self.terraform is None:
            self.terraform = TerraformConfig()
        self.terraform.finalize(consul, cwd)

    def validate(self) -> None:
        if self.terraform is None:
            raise ValidationError("missing Terraform driver configuration")
        self.terraform.validate()
