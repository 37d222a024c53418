"""Vault connection block and its HTTP transport settings.

Purpose
-------
Tasks may render secrets from Vault. The ``vault`` block says where Vault
lives and which token to use; every unset value falls back to the ``VAULT_*``
variables the Vault CLI reads, and the token may also come from a Vault
agent sink file or ``~/.vault-token``.

Contents
--------
* :class:`TransportConfig` – dial and connection pool tuning.
* :class:`VaultConfig` – address, namespace, token handling and TLS.
* :func:`default_vault` / :func:`default_transport` – the unconfigured forms.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Final, Mapping

from .block import Block, Kind, setting, validate_block
from .tls import TLSConfig
from .values import bool_from_env, string_from_env, string_from_file, string_present

DEFAULT_VAULT_RENEW_TOKEN: Final[bool] = True
DEFAULT_VAULT_UNWRAP_TOKEN: Final[bool] = False
VAULT_TOKEN_FILE: Final[str] = ".vault-token"

DEFAULT_DIAL_KEEP_ALIVE: Final[timedelta] = timedelta(seconds=30)
DEFAULT_DIAL_TIMEOUT: Final[timedelta] = timedelta(seconds=30)
DEFAULT_IDLE_CONN_TIMEOUT: Final[timedelta] = timedelta(seconds=5)
DEFAULT_MAX_IDLE_CONNS: Final[int] = 0
DEFAULT_MAX_IDLE_CONNS_PER_HOST: Final[int] = 100
DEFAULT_TLS_HANDSHAKE_TIMEOUT: Final[timedelta] = timedelta(seconds=10)


def default_transport() -> TransportConfig:
    return TransportConfig()


def default_vault() -> VaultConfig:
    """Return the block used when no file configures Vault; TLS starts enabled.

    Examples
    --------
    >>> vault = default_vault()
    >>> vault.finalize({})
    >>> vault.enabled, vault.address, vault.tls.enabled, vault.renew_token
    (False, '', True, False)
    """

    return VaultConfig(tls=TLSConfig(enabled=True), transport=default_transport())


@dataclass(repr=False)
class TransportConfig(Block):
    """HTTP transport tuning for the Vault client.

    Examples
    --------
    >>> transport = TransportConfig(dial_timeout=timedelta(seconds=5))
    >>> transport.finalize()
    >>> transport
    TransportConfig(dial_keep_alive=30s, dial_timeout=5s, disable_keep_alives=False, idle_conn_timeout=5s, max_idle_conns=0, max_idle_conns_per_host=100, tls_handshake_timeout=10s)
    """

    dial_keep_alive: timedelta | None = setting("dial_keep_alive", Kind.DURATION)
    dial_timeout: timedelta | None = setting("dial_timeout", Kind.DURATION)
    disable_keep_alives: bool | None = setting("disable_keep_alives", Kind.BOOL)
    idle_conn_timeout: timedelta | None = setting("idle_conn_timeout", Kind.DURATION)
    max_idle_conns: int | None = setting("max_idle_conns", Kind.INT)
    max_idle_conns_per_host: int | None = setting("max_idle_conns_per_host", Kind.INT)
    tls_handshake_timeout: timedelta | None = setting("tls_handshake_timeout", Kind.DURATION)

    def finalize(self) -> None:
        if self.dial_keep_alive is None:
            self.dial_keep_alive = DEFAULT_DIAL_KEEP_ALIVE
        if self.dial_timeout is None:
            self.dial_timeout = DEFAULT_DIAL_TIMEOUT
        if self.disable_keep_alives is None:
            self.disable_keep_alives = False
        if self.idle_conn_timeout is None:
            self.idle_conn_timeout = DEFAULT_IDLE_CONN_TIMEOUT
        if self.max_idle_conns is None:
            self.max_idle_conns = DEFAULT_MAX_IDLE_CONNS
        if self.max_idle_conns_per_host is None:
            self.max_idle_conns_per_host = DEFAULT_MAX_IDLE_CONNS_PER_HOST
        if self.tls_handshake_timeout is None:
            self.tls_handshake_timeout = DEFAULT_TLS_HANDSHAKE_TIMEOUT

    def validate(self) -> None:
        """Any combination of transport values is accepted."""


@dataclass(repr=False)
class VaultConfig(Block):
    """Connection to Vault.

    Examples
    --------
    >>> vault = VaultConfig(token="s.abcd")
    >>> vault.finalize({"VAULT_ADDR": "https://vault:8200"})
    >>> vault.enabled, vault.address, vault.renew_token
    (True, 'https://vault:8200', True)
    >>> "s.abcd" in vault.describe()
    False
    """

    address: str | None = setting("address")
    enabled: bool | None = setting("enabled", Kind.BOOL)
    namespace: str | None = setting("namespace")
    renew_token: bool | None = setting("renew_token", Kind.BOOL)
    tls: TLSConfig | None = setting("tls", Kind.BLOCK, block=TLSConfig)
    token: str | None = setting("token", sensitive=True)
    vault_agent_token_file: str | None = setting("vault_agent_token_file", sensitive=True)
    transport: TransportConfig | None = setting("transport", Kind.BLOCK, block=TransportConfig)
    unwrap_token: bool | None = setting("unwrap_token", Kind.BOOL)

    def finalize(self, environ: Mapping[str, str] | None = None) -> None:
        """Fill unset values from *environ*, the agent token file or ``$HOME/.vault-token``.

        Rules
        -----
        * a configured ``vault_agent_token_file`` always supplies the token;
        * otherwise an empty token is read from ``$HOME/.vault-token``, with
          ``HOME`` taken from *environ*;
        * tokens are renewed by default unless they come from an agent file
          or no token is known; ``VAULT_RENEW_TOKEN`` overrides that default;
        * ``enabled`` follows the presence of an address.
        """

        if self.address is None:
            self.address = string_from_env(environ, ["VAULT_ADDR"])
        if self.namespace is None:
            self.namespace = string_from_env(environ, ["VAULT_NAMESPACE"])

        if self.tls is None:
            self.tls = TLSConfig()
        self.tls.finalize_vault(environ)

        if self.token is None:
            self.token = string_from_env(environ, ["VAULT_TOKEN"])
        if self.vault_agent_token_file is not None:
            self.token = string_from_file([self.vault_agent_token_file])
        elif not self.token:
            home = string_from_env(environ, ["HOME"])
            if home:
                self.token = string_from_file([f"{home}/{VAULT_TOKEN_FILE}"], self.token)

        if self.renew_token is None:
            renew = DEFAULT_VAULT_RENEW_TOKEN
            if self.vault_agent_token_file is not None or not self.token:
                renew = False
            self.renew_token = bool_from_env(environ, ["VAULT_RENEW_TOKEN"], renew)

        if self.transport is None:
            self.transport = default_transport()
        self.transport.finalize()

        if self.unwrap_token is None:
            self.unwrap_token = bool_from_env(environ, ["VAULT_UNWRAP_TOKEN"], DEFAULT_VAULT_UNWRAP_TOKEN)

        if self.enabled is None:
            self.enabled = string_present(self.address)

    def validate(self) -> None:
        validate_block(self.tls)
        validate_block(self.transport)
