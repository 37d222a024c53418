"""Consul connection settings and the daemon's own service registration.

Contents
--------
* :class:`AuthConfig` – HTTP basic authentication towards Consul.
* :class:`DefaultCheckConfig` – HTTP health check registered with the daemon.
* :class:`ServiceRegistrationConfig` – how the daemon registers itself.
* :class:`ConsulConfig` – address, token, TLS and KV settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Mapping
from urllib.parse import urlsplit

from .block import Block, Kind, setting, validate_block
from .errors import ValidationError
from .tls import TLSConfig, default_tls
from .values import string_from_env

DEFAULT_CONSUL_ADDRESS: Final[str] = "localhost:8500"
DEFAULT_CONSUL_KV_PATH: Final[str] = "consul-nia/"
DEFAULT_SERVICE_NAME: Final[str] = "Consul-Terraform-Sync"


@dataclass(repr=False)
class AuthConfig(Block):
    """Basic authentication credentials; ``enabled`` follows the credentials when unset."""

    enabled: bool | None = setting("enabled", Kind.BOOL)
    username: str | None = setting("username")
    password: str | None = setting("password", sensitive=True)

    def finalize(self) -> None:
        if self.username is None:
            self.username = ""
        if self.password is None:
            self.password = ""
        if self.enabled is None:
            self.enabled = self.username != "" or self.password != ""


@dataclass(repr=False)
class DefaultCheckConfig(Block):
    """HTTP health check created alongside the daemon's service registration.

    Examples
    --------
    >>> DefaultCheckConfig(address="localhost:8558").validate()
    Traceback (most recent call last):
    ...
    nia_config.domain.errors.ValidationError: default check address must include scheme (http or https)
    >>> DefaultCheckConfig(address="https://cts.example.com:8558").validate()
    """

    enabled: bool | None = setting("enabled", Kind.BOOL)
    address: str | None = setting("address")

    def finalize(self) -> None:
        if self.enabled is None:
            self.enabled = True
        if self.address is None:
            self.address = ""

    def validate(self) -> None:
        if not self.address:
            return
        if not self.address.lower().startswith("http"):
            raise ValidationError("default check address must include scheme (http or https)")
        try:
            parsed = urlsplit(self.address)
            parsed.port
        except ValueError as exc:
            raise ValidationError(f"error with address for default check: {exc}") from exc
        if not parsed.scheme or not parsed.netloc:
            raise ValidationError(f"error with address for default check: invalid URI {self.address!r}")


@dataclass(repr=False)
class ServiceRegistrationConfig(Block):
    """Registration of the daemon itself as a Consul service."""

    enabled: bool | None = setting("enabled", Kind.BOOL)
    service_name: str | None = setting("service_name")
    address: str | None = setting("address")
    namespace: str | None = setting("namespace")
    default_check: DefaultCheckConfig | None = setting("default_check", Kind.BLOCK, block=DefaultCheckConfig)

    def finalize(self) -> None:
        if self.enabled is None:
            self.enabled = True
        if self.service_name is None:
            self.service_name = DEFAULT_SERVICE_NAME
        if self.address is None:
            self.address = ""
        if self.namespace is None:
            self.namespace = ""
        if self.default_check is None:
            self.default_check = DefaultCheckConfig()
        self.default_check.finalize()

    def validate(self) -> None:
        validate_block(self.default_check)


@dataclass(repr=False)
class ConsulConfig(Block):
    """Connection settings for the Consul agent the daemon talks to.

    Examples
    --------
    >>> consul = ConsulConfig()
    >>> consul.finalize(environ={"CONSUL_HTTP_TOKEN": "abcd"})
    >>> consul.address, consul.kv_path, consul.token
    ('localhost:8500', 'consul-nia/', 'abcd')
    >>> "abcd" in repr(consul)
    False
    """

    address: str | None = setting("address")
    token: str | None = setting("token", sensitive=True)
    auth: AuthConfig | None = setting("auth", Kind.BLOCK, block=AuthConfig)
    tls: TLSConfig | None = setting("tls", Kind.BLOCK, block=TLSConfig)
    kv_path: str | None = setting("kv_path")
    kv_namespace: str | None = setting("kv_namespace")
    service_registration: ServiceRegistrationConfig | None = setting(
        "service_registration", Kind.BLOCK, block=ServiceRegistrationConfig
    )

    def finalize(self, environ: Mapping[str, str] | None = None) -> None:
        """Fill defaults; the token and TLS paths fall back to *environ*."""

        if self.address is None:
            self.address = DEFAULT_CONSUL_ADDRESS
        if self.token is None:
            self.token = string_from_env(environ, ["CONSUL_TOKEN", "CONSUL_HTTP_TOKEN"])
        if self.auth is None:
            self.auth = AuthConfig()
        self.auth.finalize()
        if self.tls is None:
            self.tls = default_tls()
        self.tls.finalize(environ)
        if self.kv_path is None:
            self.kv_path = DEFAULT_CONSUL_KV_PATH
        if self.kv_namespace is None:
            self.kv_namespace = ""
        if self.service_registration is None:
            self.service_registration = ServiceRegistrationConfig()
        self.service_registration.finalize()

    def validate(self) -> None:
        validate_block(self.tls)
        validate_block(self.service_registration)
