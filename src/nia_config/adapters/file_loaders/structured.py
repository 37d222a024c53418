"""Structured configuration file loaders.

Purpose
-------
Convert on-disk artifacts into Python mappings that the decoder understands.
Adapters are small wrappers around ``hcl.loads``/``json``/``yaml.safe_load``
so error handling and observability live in one place.

Contents
--------
* :class:`BaseFileLoader` – shared helpers for reading files and validating
  mapping outputs.
* :class:`HCLFileLoader` – loader for the canonical HCL format.
* :class:`JSONFileLoader` – loader for JSON documents.
* :class:`YAMLFileLoader` – loader for YAML documents shaped like the JSON form.

System Role
-----------
Invoked by :func:`nia_config.core.from_file` to parse files before binding
them with :func:`nia_config.application.decode.decode_config`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Final, Mapping

import hcl  # type: ignore[import-untyped]
import yaml

from ...domain.errors import InvalidFormat, NotFound
from ...observability import log_debug, log_error

_DOCUMENT_BLOCK: Final[str] = "nia_config_document"


class BaseFileLoader:
    """Common utilities shared by the structured file loaders."""

    def _read(self, path: str) -> bytes:
        """Read *path* as bytes, raising :class:`NotFound` when the file is missing.

        Side Effects
        ------------
        Emits ``config_file_read`` debug events.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile(delete=False)
        >>> _ = tmp.write(b'port = 8558')
        >>> tmp.close()
        >>> BaseFileLoader()._read(tmp.name)[:4]
        b'port'
        >>> Path(tmp.name).unlink()
        """

        file_path = Path(path)
        if not file_path.is_file():
            raise NotFound(f"Configuration file not found: {path}")
        payload = file_path.read_bytes()
        log_debug("config_file_read", path=path, component="file", size=len(payload))
        return payload

    @staticmethod
    def _ensure_mapping(data: object, *, path: str) -> Mapping[str, object]:
        """Ensure *data* behaves like a mapping, otherwise raise ``InvalidFormat``.

        Examples
        --------
        >>> BaseFileLoader._ensure_mapping({"port": 1}, path="demo")
        {'port': 1}
        >>> BaseFileLoader._ensure_mapping(42, path="demo")
        Traceback (most recent call last):
        ...
        nia_config.domain.errors.InvalidFormat: File demo did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f"File {path} did not produce a mapping")
        return data  # type: ignore[return-value]


class HCLFileLoader(BaseFileLoader):
    """Load HCL documents with ``pyhcl``.

    The daemon's files are HCL1: besides ``key = value`` attributes they may
    write maps as blocks with quoted keys (``node_meta { "key1" = "value1" }``).
    """

    def load(self, path: str) -> Mapping[str, object]:
        """Return the mapping parsed from the HCL file at *path*.

        A block becomes a mapping and labels become nested keys
        (``condition "services" { ... }`` is ``{"condition": {"services": {...}}}``).
        A block repeated within the same body becomes a list of mappings.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile('w', suffix='.hcl', delete=False, encoding='utf-8')
        >>> _ = tmp.write('log_level = "DEBUG"\\n')
        >>> tmp.close()
        >>> HCLFileLoader().load(tmp.name)["log_level"]
        'DEBUG'
        >>> Path(tmp.name).unlink()
        """

        try:
            text = self._read(path).decode("utf-8")
            # Parsed as the body of one block so repeated top-level blocks become lists.
            data = hcl.loads(f"{_DOCUMENT_BLOCK} {{\n{text}\n}}\n")
        except ValueError as exc:
            log_error("config_file_invalid", component="file", path=path, format="hcl", error=str(exc))
            raise InvalidFormat(f"Invalid HCL in {path}: {exc}") from exc
        result = self._ensure_mapping(data.get(_DOCUMENT_BLOCK, {}), path=path)
        log_debug("config_file_loaded", component="file", path=path, format="hcl")
        return result


class JSONFileLoader(BaseFileLoader):
    """Load JSON documents."""

    def load(self, path: str) -> Mapping[str, object]:
        """Return mapping extracted from JSON file at *path*.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile('w', delete=False, encoding='utf-8')
        >>> _ = tmp.write('{"port": 8600}')
        >>> tmp.close()
        >>> JSONFileLoader().load(tmp.name)["port"]
        8600
        >>> Path(tmp.name).unlink()
        """

        try:
            data = json.loads(self._read(path))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            log_error("config_file_invalid", component="file", path=path, format="json", error=str(exc))
            raise InvalidFormat(f"Invalid JSON in {path}: {exc}") from exc
        result = self._ensure_mapping(data, path=path)
        log_debug("config_file_loaded", component="file", path=path, format="json")
        return result


class YAMLFileLoader(BaseFileLoader):
    """Load YAML documents; they follow the JSON shape."""

    def load(self, path: str) -> Mapping[str, object]:
        """Return mapping extracted from YAML file at *path*; an empty document is ``{}``."""

        try:
            data = yaml.safe_load(self._read(path))
        except yaml.YAMLError as exc:
            log_error("config_file_invalid", component="file", path=path, format="yaml", error=str(exc))
            raise InvalidFormat(f"Invalid YAML in {path}: {exc}") from exc
        if data is None:
            data = {}
        result = self._ensure_mapping(data, path=path)
        log_debug("config_file_loaded", component="file", path=path, format="yaml")
        return result

