"""Application-layer merge of decoded configuration files.

Purpose
-------
Fold a sequence of decoded files onto a base configuration, later files
winning per the block merge rules, while recording which file configured
each top-level setting. Free of I/O so alternative composition roots can
reuse it.

Contents
    - ``merge_layers``: public entry point driven by a simple loop.
    - ``_record_provenance``: notes the file behind every configured key.

System Role
-----------
Receives decoded layers from :mod:`nia_config.core` and returns the merged
:class:`~nia_config.domain.config.Config` that is then finalized and
validated.
"""

from __future__ import annotations

from typing import Iterable

from ..domain.block import LIST_KINDS, settings_of
from ..domain.config import Config
from ..observability import log_debug, make_event


def merge_layers(
    base: Config,
    layers: Iterable[tuple[Config, str | None]],
) -> tuple[Config, dict[str, dict[str, object]]]:
    """Merge decoded *layers* onto *base* honouring file order.

    Why
    ----
    Directories and repeated ``-config`` arguments are read in a defined
    order; later files override earlier ones field by field while block
    lists (tasks, services, providers) accumulate.

    Parameters
    ----------
    base:
        Configuration the first layer is merged onto (usually
        :func:`~nia_config.domain.config.default_config`).
    layers:
        ``(config, source_path)`` pairs ordered from lowest to highest
        precedence.

    Returns
    -------
    tuple[Config, dict[str, dict[str, object]]]
        ``(merged, provenance)`` where ``provenance`` maps configuration keys
        (``consul``, ``task[1]``) to ``{"path": ..., "key": ...}``.

    Side Effects
    ------------
    None; inputs are never mutated.

    Examples
    --------
    >>> from nia_config.domain.config import default_config
    >>> first = Config(port=9000)
    >>> second = Config(port=9100, log_level="DEBUG")
    >>> merged, meta = merge_layers(default_config(), [(first, "a.hcl"), (second, "b.hcl")])
    >>> merged.port, merged.log_level, meta["port"]["path"]
    (9100, 'DEBUG', 'b.hcl')
    """

    merged = base.copy()
    meta: dict[str, dict[str, object]] = {}
    for layer, path in layers:
        _record_provenance(meta, merged, layer, path)
        merged = merged.merge(layer)
        log_debug("config_layer_merged", **make_event("merge", path, {"keys": sorted(meta)}))
    return merged, meta


def _record_provenance(
    meta: dict[str, dict[str, object]],
    current: Config,
    layer: Config,
    path: str | None,
) -> None:
    """Record *path* for every key *layer* configures; list entries are indexed after *current*'s."""

    for item in settings_of(Config):
        value = getattr(layer, item.name)
        if value is None:
            continue
        if item.kind in LIST_KINDS:
            offset = len(getattr(current, item.name) or [])
            for index in range(len(value)):
                dotted = f"{item.key}[{offset + index}]"
                meta[dotted] = {"path": path, "key": dotted}
            continue
        meta[item.key] = {"path": path, "key": item.key}
