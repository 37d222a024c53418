"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts adapters satisfy so the composition root can
orchestrate loading without depending on concrete implementations.

Contents
--------
* :class:`FileLoader` – parses one configuration file into a mapping.
* :class:`EnvLoader` – snapshots the environment variables consulted while
  finalizing.

System Role
-----------
These protocols keep :mod:`nia_config.core` independent of parsing libraries
and of ``os.environ``; tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Mapping, Protocol


class FileLoader(Protocol):
    """Parse a structured configuration file into a mapping.

    Why
    ----
    Segregate parsing concerns (HCL/JSON/YAML) from orchestration logic.
    """

    def load(self, path: str) -> Mapping[str, object]:
        """Read *path* and return a mapping representation or raise ``InvalidFormat``."""


class EnvLoader(Protocol):
    """Provide the environment variables used as secondary defaults.

    Why
    ----
    Finalize reads ``CONSUL_*``, ``VAULT_*`` and ``HOME``; passing a snapshot keeps it
    deterministic and testable.
    """

    def load(self, prefix: str | tuple[str, ...] = "") -> Mapping[str, str]:
        """Return ``HOME`` and the variables whose name starts with *prefix* (case-sensitive)."""
