"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by the decoder, the block lifecycle,
the file adapters, and the composition root. The hierarchy lives in the domain
layer to respect the Clean Architecture dependency rule (outer layers may
depend on inner layers, not vice versa).

Contents
--------
* :class:`ConfigError` – umbrella base class for all configuration-related
  issues.
* :class:`DecodeError` – a raw mapping could not be bound onto the typed
  configuration tree (unknown keys, repeated singleton blocks, unsupported
  condition or module input types, unconvertible values).
* :class:`InvalidFormat` – parsing problems while reading HCL/JSON/YAML files.
* :class:`ValidationError` – a decoded configuration violates a semantic rule.
* :class:`NotFound` – raised when an expected configuration resource is missing.

System Role
-----------
Blocks raise :class:`ValidationError` from ``validate()``, the decoder raises
:class:`DecodeError`, adapters raise :class:`InvalidFormat` and
:class:`NotFound`, and the composition root wraps per-file failures in
:class:`nia_config.core.ConfigLoadError`. Callers catch :class:`ConfigError` to
handle all library failures uniformly.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``nia_config``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.

    What
    ----
    Subclasses :class:`Exception` without modification so it can be used in
    ``except ConfigError`` blocks.
    """


class DecodeError(ConfigError):
    """Raised when a raw mapping cannot be bound onto configuration blocks.

    Why
    ----
    Unknown keys are the only gate for typos in user configuration, so binding
    problems must surface immediately instead of being silently ignored.

    Typical Sources
    ---------------
    :mod:`nia_config.application.decode` (strict binder, condition and
    module input dispatch, repeated singleton blocks).
    """


class InvalidFormat(DecodeError):
    """Raised when an input artifact cannot be parsed into structured data.

    Why
    ----
    Distinguish between missing files and malformed content.

    Typical Sources
    ---------------
    Structured file loaders (:mod:`hcl`, :mod:`json`, :mod:`yaml`).
    """


class ValidationError(ConfigError):
    """Signifies that a syntactically valid configuration failed semantic checks.

    Why
    ----
    Mutually exclusive fields, missing required fields and malformed
    sub-grammars (regular expressions, cron expressions, URLs) are only
    detectable once the configuration has been decoded and finalized.
    """


class NotFound(ConfigError):
    """Represents a missing configuration file or directory.

    Why
    ----
    A path handed to the loader that does not exist aborts loading; callers
    may still want to tell it apart from malformed content.
    """
