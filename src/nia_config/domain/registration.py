"""Daemon-level access control and self registration blocks."""

from __future__ import annotations

from dataclasses import dataclass

from .block import Block, Kind, setting


@dataclass(repr=False)
class ACLConfig(Block):
    """Access control for the daemon's API; disabled unless configured.

    Examples
    --------
    >>> acl = ACLConfig(enabled=True, bootstrap_token="00000000-aaaa")
    >>> acl
    ACLConfig(enabled=True, bootstrap_token='(redacted)')
    """

    enabled: bool | None = setting("enabled", Kind.BOOL)
    bootstrap_token: str | None = setting("bootstrap_token", sensitive=True)

    def finalize(self) -> None:
        if self.enabled is None:
            self.enabled = False
        if self.bootstrap_token is None:
            self.bootstrap_token = ""

    def validate(self) -> None:
        """ACL settings carry no constraints once finalized."""


@dataclass(repr=False)
class SelfRegistrationConfig(Block):
    """Deprecated top-level switch for registering the daemon with Consul."""

    enabled: bool | None = setting("enabled", Kind.BOOL)
    namespace: str | None = setting("namespace")

    def finalize(self) -> None:
        if self.enabled is None:
            self.enabled = True
        if self.namespace is None:
            self.namespace = ""

    def validate(self) -> None:
        """Self registration settings carry no constraints."""
