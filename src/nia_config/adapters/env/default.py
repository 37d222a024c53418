"""Environment variable adapter.

Purpose
-------
Snapshot the process environment variables consulted while finalizing the
configuration (``CONSUL_HTTP_TOKEN``, ``VAULT_ADDR`` and friends, plus
``HOME`` for the Vault token file). Blocks never read :data:`os.environ`
themselves; they receive this snapshot.
"""

from __future__ import annotations

import os
from typing import Final, Mapping

from ...observability import log_debug

CONSUL_ENV_PREFIX: Final[str] = "CONSUL_"
VAULT_ENV_PREFIX: Final[str] = "VAULT_"
CONFIG_ENV_PREFIXES: Final[tuple[str, ...]] = (CONSUL_ENV_PREFIX, VAULT_ENV_PREFIX)
HOME_ENV: Final[str] = "HOME"


class DefaultEnvLoader:
    """Load environment variables that act as secondary configuration defaults."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the loader with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        self._environ = os.environ if environ is None else environ

    def load(self, prefix: str | tuple[str, ...] = CONFIG_ENV_PREFIXES) -> dict[str, str]:
        """Return a flat copy of ``HOME`` and the variables whose name starts with *prefix*.

        Side Effects
        ------------
        Emits ``env_variables_loaded`` debug events listing the variable names,
        never their values.

        Examples
        --------
        >>> env = {'CONSUL_HTTP_TOKEN': 'abc', 'VAULT_ADDR': 'https://vault:8200', 'HOME': '/root', 'PATH': '/bin'}
        >>> sorted(DefaultEnvLoader(environ=env).load())
        ['CONSUL_HTTP_TOKEN', 'HOME', 'VAULT_ADDR']
        >>> sorted(DefaultEnvLoader(environ=env).load(''))
        ['CONSUL_HTTP_TOKEN', 'HOME', 'PATH', 'VAULT_ADDR']
        """

        collected = {
            key: value for key, value in self._environ.items() if key.startswith(prefix) or key == HOME_ENV
        }
        log_debug("env_variables_loaded", component="env", path=None, keys=sorted(collected))
        return collected
