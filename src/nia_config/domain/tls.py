"""TLS settings: the Consul and Vault client connections and the daemon's own API.

Purpose
-------
* :class:`TLSConfig` – how the daemon connects to Consul or Vault. Unset paths fall
  back to the ``CONSUL_*`` or ``VAULT_*`` variables the vendors' own tooling uses.
* :class:`CTSTLSConfig` – how the daemon's API serves TLS, including mutual
  TLS via ``verify_incoming``.

In both blocks ``enabled`` is inferred from the other fields when it is left
unset.
"""

from __future__ import annotations

import ssl
from dataclasses import dataclass
from typing import Final, Mapping

from ..observability import log_warning
from .block import Block, Kind, setting
from .errors import ValidationError
from .values import bool_from_env, bool_present, string_from_env, string_present

DEFAULT_TLS_VERIFY: Final[bool] = True
DEFAULT_MUTUAL_TLS_VERIFY: Final[bool] = False
_CONSUL_TLS_ENV: Final[dict[str, str]] = {
    "cert": "CONSUL_CLIENT_CERT",
    "ca_cert": "CONSUL_CACERT",
    "ca_path": "CONSUL_CAPATH",
    "key": "CONSUL_CLIENT_KEY",
    "server_name": "CONSUL_TLS_SERVER_NAME",
}
_VAULT_TLS_ENV: Final[dict[str, str]] = {
    "cert": "VAULT_CLIENT_CERT",
    "ca_cert": "VAULT_CACERT",
    "ca_path": "VAULT_CAPATH",
    "key": "VAULT_CLIENT_KEY",
    "server_name": "VAULT_TLS_SERVER_NAME",
}


def default_tls() -> TLSConfig:
    """Return an unconfigured Consul TLS block; values are resolved by ``finalize``."""

    return TLSConfig()


@dataclass(repr=False)
class TLSConfig(Block):
    """TLS settings for the Consul and Vault clients.

    Examples
    --------
    >>> tls = TLSConfig()
    >>> tls.finalize(environ={"CONSUL_CACERT": "/etc/consul/ca.pem"})
    >>> tls.enabled, tls.ca_cert, tls.verify
    (False, '/etc/consul/ca.pem', True)
    """

    ca_cert: str | None = setting("ca_cert")
    ca_path: str | None = setting("ca_path")
    cert: str | None = setting("cert")
    enabled: bool | None = setting("enabled", Kind.BOOL)
    key: str | None = setting("key")
    server_name: str | None = setting("server_name")
    verify: bool | None = setting("verify", Kind.BOOL)

    def finalize(self, environ: Mapping[str, str] | None = None) -> None:
        """Infer ``enabled`` and fill paths from the ``CONSUL_*`` variables in *environ*."""

        if self.enabled is None:
            self.enabled = (
                string_present(self.cert)
                or string_present(self.ca_cert)
                or string_present(self.ca_path)
                or string_present(self.key)
                or string_present(self.server_name)
                or bool_present(self.verify)
            )
        self._fill_from_env(environ, _CONSUL_TLS_ENV)
        if self.verify is None:
            self.verify = bool_from_env(environ, ["CONSUL_HTTP_SSL_VERIFY"], DEFAULT_TLS_VERIFY)

    def finalize_vault(self, environ: Mapping[str, str] | None = None) -> None:
        """Fill paths from the ``VAULT_*`` variables in *environ*; TLS stays on unless disabled.

        ``VAULT_SKIP_VERIFY`` switches verification off.

        Examples
        --------
        >>> tls = TLSConfig()
        >>> tls.finalize_vault(environ={"VAULT_CACERT": "/etc/vault/ca.pem", "VAULT_SKIP_VERIFY": "true"})
        >>> tls.enabled, tls.ca_cert, tls.verify
        (True, '/etc/vault/ca.pem', False)
        """

        self._fill_from_env(environ, _VAULT_TLS_ENV)
        if self.verify is None:
            self.verify = not bool_from_env(environ, ["VAULT_SKIP_VERIFY"], not DEFAULT_TLS_VERIFY)
        if self.enabled is None:
            self.enabled = True

    def _fill_from_env(self, environ: Mapping[str, str] | None, names: Mapping[str, str]) -> None:
        for name, variable in names.items():
            if getattr(self, name) is None:
                setattr(self, name, string_from_env(environ, [variable]))

    def validate(self) -> None:
        """Client TLS has no cross-field rules; file paths are checked when used."""

    def consul_env(self) -> dict[str, str]:
        """Return the ``CONSUL_*`` variables describing this block for child processes.

        Examples
        --------
        >>> TLSConfig(enabled=True, cert="c.pem", key="k.pem", verify=False).consul_env()
        {'CONSUL_CLIENT_CERT': 'c.pem', 'CONSUL_CLIENT_KEY': 'k.pem', 'CONSUL_HTTP_SSL': 'true', 'CONSUL_HTTP_SSL_VERIFY': 'false'}
        """

        env: dict[str, str] = {}
        if not self.enabled:
            return env
        for name, value in (
            ("CONSUL_CLIENT_CERT", self.cert),
            ("CONSUL_CLIENT_KEY", self.key),
            ("CONSUL_CACERT", self.ca_cert),
            ("CONSUL_CAPATH", self.ca_path),
            ("CONSUL_TLS_SERVER_NAME", self.server_name),
        ):
            if value:
                env[name] = value
        env["CONSUL_HTTP_SSL"] = "true"
        env["CONSUL_HTTP_SSL_VERIFY"] = "true" if self.verify is not False else "false"
        return env


@dataclass(repr=False)
class CTSTLSConfig(Block):
    """TLS settings for the daemon's own API server."""

    enabled: bool | None = setting("enabled", Kind.BOOL)
    cert: str | None = setting("cert")
    key: str | None = setting("key")
    verify_incoming: bool | None = setting("verify_incoming", Kind.BOOL)
    ca_cert: str | None = setting("ca_cert")
    ca_path: str | None = setting("ca_path")

    def finalize(self) -> None:
        if self.enabled is None:
            self.enabled = (
                string_present(self.cert)
                or string_present(self.ca_cert)
                or string_present(self.ca_path)
                or string_present(self.key)
                or bool_present(self.verify_incoming)
            )
        if self.ca_cert is None:
            self.ca_cert = ""
        if self.ca_path is None:
            self.ca_path = ""
        if self.cert is None:
            self.cert = ""
        if self.key is None:
            self.key = ""
        if self.verify_incoming is None:
            self.verify_incoming = DEFAULT_MUTUAL_TLS_VERIFY

    def validate(self) -> None:
        """Check cert/key pairing, load the pair, and require a CA for mutual TLS."""

        if self.enabled and (not self.key or not self.cert):
            raise ValidationError("key and cert are required if TLS is enabled on the API")
        if self.cert and not self.key:
            raise ValidationError("key is required if cert is configured for TLS on the API")
        if self.cert and self.key:
            context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
            try:
                context.load_cert_chain(self.cert, self.key)
            except (OSError, ssl.SSLError) as exc:
                raise ValidationError(f"unable to load TLS certificate and key: {exc}") from exc
        if self.verify_incoming and not self.ca_cert and not self.ca_path:
            raise ValidationError("either ca_cert or ca_path is required if verify_incoming is enabled on the API")
        if self.verify_incoming and self.ca_cert and self.ca_path:
            log_warning(
                "ca_cert and ca_path are both configured, but only ca_cert will be used for TLS on the API",
                component="tls",
            )
