"""Composition root for ``nia_config``.

Purpose
-------
Provide the entry points that turn configuration paths into a finalized,
validated :class:`~nia_config.domain.config.Config`: file discovery, parsing,
strict decoding, left-to-right merge, environment lookup, finalize and
validate.

Contents
--------
* :data:`_FILE_LOADERS` – mapping of file suffixes to loader instances.
* :class:`ConfigLoadError` – error raised when a file cannot be loaded.
* :func:`read_config` – high-level API returning a ready-to-use config.
* :func:`read_config_raw` – same, plus per-key provenance.
* :func:`build_config` – merged but not yet finalized configuration.
* :func:`from_path` / :func:`from_file` – load a file or a directory.

System Role
-----------
This module connects adapters (files, environment) with the domain blocks
while emitting structured observability signals. Loading is fail-fast: the
first broken file aborts the whole load.
"""

from __future__ import annotations

import stat
from pathlib import Path
from typing import Mapping, Sequence

from .adapters.env.default import DefaultEnvLoader
from .adapters.file_loaders.structured import HCLFileLoader, JSONFileLoader, YAMLFileLoader
from .application.decode import decode_config
from .application.merge import merge_layers
from .domain.config import Config, default_config
from .domain.errors import ConfigError, DecodeError, InvalidFormat, NotFound
from .observability import bind_trace_id, log_debug, log_error, log_info, make_event

# Supported structured file loaders keyed by suffix.
_FILE_LOADERS = {
    ".hcl": HCLFileLoader(),
    ".json": JSONFileLoader(),
    ".yaml": YAMLFileLoader(),
    ".yml": YAMLFileLoader(),
}


class ConfigLoadError(ConfigError):
    """Raised when a configuration file cannot be parsed or decoded.

    Why
    ----
    Callers catch one exception family while still learning which file broke
    the load.

    Attributes
    ----------
    path:
        The offending file.
    """

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


def supported_format(path: str | Path) -> bool:
    """Return ``True`` when *path* has a suffix with a registered loader.

    Examples
    --------
    >>> supported_format("tasks.hcl"), supported_format("notes.txt")
    (True, False)
    """

    return Path(path).suffix.lower() in _FILE_LOADERS


def from_file(path: str) -> Config:
    """Parse and decode a single configuration file.

    Raises
    ------
    ConfigLoadError
        When the format is unsupported, the content cannot be parsed, or it
        fails strict decoding.
    """

    loader = _FILE_LOADERS.get(Path(path).suffix.lower())
    if loader is None:
        raise ConfigLoadError(f"invalid file format: {Path(path).suffix or path}", path)
    try:
        config = decode_config(loader.load(path), path)
    except (InvalidFormat, DecodeError) as exc:
        log_error("config_file_failed", **make_event("file", path, {"error": str(exc)}))
        raise ConfigLoadError(f"failed to load configuration file {path}: {exc}", path) from exc
    log_debug("config_file_decoded", **make_event("file", path))
    return config


def from_path(path: str) -> list[tuple[Config, str]]:
    """Load a file or every supported file in a directory.

    Why
    ----
    Operators point the daemon at a single file or at a directory of
    fragments (``config.d``); both must behave predictably.

    What
    ----
    * A missing path raises :class:`NotFound`.
    * A regular file that is empty or has an unsupported suffix is skipped.
    * A directory is read in name order; sub-directories, empty files and
      unsupported suffixes are skipped.
    * Anything else (sockets, devices) raises :class:`ConfigError`.

    Returns
    -------
    list[tuple[Config, str]]
        Decoded files paired with their path, in merge order.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> root = Path(tmp.name)
    >>> _ = (root / "b.json").write_text('{"port": 9100}', encoding="utf-8")
    >>> _ = (root / "a.hcl").write_text('port = 9000', encoding="utf-8")
    >>> _ = (root / "empty.hcl").write_text('', encoding="utf-8")
    >>> _ = (root / "notes.txt").write_text('ignored', encoding="utf-8")
    >>> [(Path(file).name, config.port) for config, file in from_path(tmp.name)]
    [('a.hcl', 9000), ('b.json', 9100)]
    >>> tmp.cleanup()
    """

    target = Path(path)
    if not target.exists():
        log_error("config_path_missing", **make_event("file", path))
        raise NotFound(f"missing file/folder: {path}")

    mode = target.stat().st_mode
    if stat.S_ISREG(mode):
        if target.stat().st_size == 0 or not supported_format(target):
            log_debug("config_file_skipped", **make_event("file", path))
            return []
        return [(from_file(path), path)]

    if not stat.S_ISDIR(mode):
        raise ConfigError(f'unknown filetype "{stat.filemode(mode)}": {path}')

    loaded: list[tuple[Config, str]] = []
    for entry in sorted(target.iterdir(), key=lambda item: item.name):
        if entry.is_dir():
            continue
        if not entry.is_file() or entry.stat().st_size == 0 or not supported_format(entry):
            log_debug("config_file_skipped", **make_event("file", str(entry)))
            continue
        loaded.append((from_file(str(entry)), str(entry)))
    return loaded


def build_config(paths: Sequence[str]) -> tuple[Config, dict[str, dict[str, object]]]:
    """Merge every file under *paths* onto :func:`default_config`, without finalizing.

    Raises
    ------
    ConfigError
        When none of the paths yields a configuration file.
    """

    layers: list[tuple[Config, str | None]] = []
    for path in paths:
        entries = from_path(path)
        if entries:
            log_debug("config_path_loaded", **make_event("path", path, {"files": len(entries)}))
            layers.extend(entries)

    if not layers:
        raise ConfigError("no configuration files found")
    return merge_layers(default_config(), layers)


def read_config_raw(
    paths: Sequence[str],
    *,
    environ: Mapping[str, str] | None = None,
    cwd: str | None = None,
) -> tuple[Config, dict[str, dict[str, object]]]:
    """Load, finalize and validate the configuration, returning provenance too.

    Parameters
    ----------
    paths:
        Files and directories, lowest precedence first.
    environ:
        Environment snapshot for the ``CONSUL_*`` and ``VAULT_*`` fallbacks;
        defaults to the process environment.
    cwd:
        Directory used as the default Terraform ``path``.

    Returns
    -------
    tuple[Config, dict[str, dict[str, object]]]
        The finalized configuration and the file behind each configured key.

    Side Effects
    ------------
    - Calls :func:`bind_trace_id` with ``None`` to clear previous trace context.
    - Emits structured log events for each loaded path and the final result.
    """

    bind_trace_id(None)
    config, meta = build_config(paths)
    snapshot = dict(environ) if environ is not None else DefaultEnvLoader().load()
    config.finalize(snapshot, cwd)
    config.validate()
    files = {entry["path"] for entry in meta.values()}
    log_info("configuration_loaded", **make_event("final", None, {"files": len(files), "tasks": len(config.tasks or [])}))
    return config, meta


def read_config(
    paths: Sequence[str],
    *,
    environ: Mapping[str, str] | None = None,
    cwd: str | None = None,
) -> Config:
    """Return the finalized and validated configuration read from *paths*.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> config_file = Path(tmp.name) / "cts.hcl"
    >>> _ = config_file.write_text('''
    ... task {
    ...   name   = "web"
    ...   module = "org/web/module"
    ...   condition "services" {
    ...     names = ["web"]
    ...   }
    ... }
    ... ''', encoding="utf-8")
    >>> config = read_config([str(config_file)], environ={}, cwd=tmp.name)
    >>> config.tasks[0].working_dir, config.consul.address
    ('sync-tasks/web', 'localhost:8500')
    >>> tmp.cleanup()
    """

    config, _ = read_config_raw(paths, environ=environ, cwd=cwd)
    return config


__all__ = [
    "Config",
    "ConfigLoadError",
    "build_config",
    "from_file",
    "from_path",
    "read_config",
    "read_config_raw",
    "supported_format",
]
