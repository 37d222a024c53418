"""Monitor blocks shared by task conditions and module inputs.

Purpose
-------
A monitor describes which part of Consul a task watches: a set of services,
the service catalog, a key-value path or service intentions. Conditions
(:mod:`nia_config.domain.conditions`) and module inputs
(:mod:`nia_config.domain.module_inputs`) are thin extensions of these blocks.

Contents
--------
* :class:`Monitor` – capability shared by every variant (``kind``,
  ``variable_type``, ``finalize``, ``validate``).
* :class:`ServicesMonitorConfig`, :class:`CatalogServicesMonitorConfig`,
  :class:`ConsulKVMonitorConfig`, :class:`IntentionsMonitorConfig` – concrete
  monitors.
* :class:`IntentionsServicesConfig` – source/destination selector used by the
  intentions monitor.
* :func:`validate_service_selection` – the shared ``regexp`` xor ``names`` rule.

Notes
-----
``regexp`` is never defaulted by ``finalize`` on services-like monitors: an
unset expression and an empty expression mean different things to
:meth:`validate`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar, Sequence

from .block import Block, Kind, setting
from .errors import ValidationError

SERVICES_VARIABLE = "services"
CATALOG_SERVICES_VARIABLE = "catalog_services"
CONSUL_KV_VARIABLE = "consul_kv"
INTENTIONS_VARIABLE = "intentions"
NODES_VARIABLE = "nodes"


class Monitor(Block):
    """Capability implemented by every condition and module input variant.

    Attributes
    ----------
    kind:
        Discriminator key used in configuration files (``"catalog-services"``).
    variable_type:
        Template variable family the monitor feeds; ``""`` when it feeds none.
    """

    kind: ClassVar[str] = ""
    variable_type: ClassVar[str] = ""

    def finalize(self, services: Sequence[str] | None = None) -> None:
        """Fill unset fields with defaults; *services* is the owning task's list."""

    def validate(self) -> None:
        """Raise :class:`ValidationError` when the monitor is misconfigured."""


def validate_service_selection(regexp: str | None, names: Sequence[str] | None, *, label: str) -> None:
    """Enforce that exactly one of *regexp* and *names* selects services.

    Parameters
    ----------
    regexp:
        Configured regular expression or ``None`` when unset.
    names:
        Configured service names; an empty list counts as unset.
    label:
        Word used in compile errors (``"services"``, ``"intentions service"``).

    Examples
    --------
    >>> validate_service_selection(None, ["api"], label="services")
    >>> validate_service_selection(None, [], label="services")
    Traceback (most recent call last):
    ...
    nia_config.domain.errors.ValidationError: either the regexp or names field must be configured
    """

    has_names = bool(names)
    if regexp is not None and has_names:
        raise ValidationError(
            "regexp and names fields cannot both be configured. If both are needed, "
            "consider including the list of names as part of the regex or creating "
            "separate tasks"
        )
    if regexp is None and not has_names:
        raise ValidationError("either the regexp or names field must be configured")
    if regexp is not None:
        _compile(regexp, label)
    for name in names or ():
        if name == "":
            raise ValidationError(
                "names field includes empty string(s). service names must be non-empty strings"
            )


def _compile(expression: str, label: str) -> None:
    """Compile *expression*, translating failures into ``ValidationError``."""

    try:
        re.compile(expression)
    except re.error as exc:
        raise ValidationError(f"unable to compile {label} regexp: {exc}") from exc


@dataclass(repr=False)
class ServicesMonitorConfig(Monitor):
    """Monitor a set of services selected by regular expression or by name."""

    kind: ClassVar[str] = "services"
    variable_type: ClassVar[str] = SERVICES_VARIABLE

    regexp: str | None = setting("regexp")
    names: list[str] | None = setting("names", Kind.STRINGS)
    datacenter: str | None = setting("datacenter")
    namespace: str | None = setting("namespace")
    filter: str | None = setting("filter")
    cts_user_defined_meta: dict[str, str] | None = setting("cts_user_defined_meta", Kind.STRING_MAP)

    def finalize(self, services: Sequence[str] | None = None) -> None:
        if self.names is None:
            self.names = []
        if self.datacenter is None:
            self.datacenter = ""
        if self.namespace is None:
            self.namespace = ""
        if self.filter is None:
            self.filter = ""
        if self.cts_user_defined_meta is None:
            self.cts_user_defined_meta = {}

    def validate(self) -> None:
        validate_service_selection(self.regexp, self.names, label="services")


@dataclass(repr=False)
class CatalogServicesMonitorConfig(Monitor):
    """Monitor the catalog of registered services matched by ``regexp``.

    Examples
    --------
    >>> monitor = CatalogServicesMonitorConfig(regexp="^web")
    >>> monitor.finalize()
    >>> monitor.node_meta, monitor.datacenter
    ({}, '')
    >>> monitor.validate()
    """

    kind: ClassVar[str] = "catalog-services"
    variable_type: ClassVar[str] = CATALOG_SERVICES_VARIABLE

    regexp: str | None = setting("regexp")
    datacenter: str | None = setting("datacenter")
    namespace: str | None = setting("namespace")
    node_meta: dict[str, str] | None = setting("node_meta", Kind.STRING_MAP)

    def finalize(self, services: Sequence[str] | None = None) -> None:
        if self.datacenter is None:
            self.datacenter = ""
        if self.namespace is None:
            self.namespace = ""
        if self.node_meta is None:
            self.node_meta = {}

    def validate(self) -> None:
        if self.regexp is None:
            raise ValidationError("catalog-services 'regexp' field must be set")
        try:
            re.compile(self.regexp)
        except re.error as exc:
            raise ValidationError(f"unable to compile catalog-services 'regexp': {exc}") from exc


@dataclass(repr=False)
class ConsulKVMonitorConfig(Monitor):
    """Monitor a Consul KV path, optionally with everything below it."""

    kind: ClassVar[str] = "consul-kv"
    variable_type: ClassVar[str] = CONSUL_KV_VARIABLE

    path: str | None = setting("path")
    recurse: bool | None = setting("recurse", Kind.BOOL)
    datacenter: str | None = setting("datacenter")
    namespace: str | None = setting("namespace")

    def finalize(self, services: Sequence[str] | None = None) -> None:
        if self.path is None:
            self.path = ""
        if self.recurse is None:
            self.recurse = False
        if self.datacenter is None:
            self.datacenter = ""
        if self.namespace is None:
            self.namespace = ""

    def validate(self) -> None:
        if not self.path:
            raise ValidationError("path is required for consul-kv condition")


@dataclass(repr=False)
class IntentionsServicesConfig(Block):
    """Source or destination service selector of an intentions monitor."""

    regexp: str | None = setting("regexp")
    names: list[str] | None = setting("names", Kind.STRINGS)

    def finalize(self) -> None:
        if self.names is None:
            self.names = []

    def validate(self) -> None:
        validate_service_selection(self.regexp, self.names, label="intentions service")


@dataclass(repr=False)
class IntentionsMonitorConfig(Monitor):
    """Monitor service intentions between source and destination services."""

    kind: ClassVar[str] = "intentions"
    variable_type: ClassVar[str] = INTENTIONS_VARIABLE

    datacenter: str | None = setting("datacenter")
    namespace: str | None = setting("namespace")
    source_services: IntentionsServicesConfig | None = setting(
        "source_services", Kind.BLOCK, block=IntentionsServicesConfig
    )
    destination_services: IntentionsServicesConfig | None = setting(
        "destination_services", Kind.BLOCK, block=IntentionsServicesConfig
    )

    def finalize(self, services: Sequence[str] | None = None) -> None:
        if self.datacenter is None:
            self.datacenter = ""
        if self.namespace is None:
            self.namespace = ""
        for selector in (self.source_services, self.destination_services):
            if selector is not None:
                selector.finalize()

    def validate(self) -> None:
        if (self.source_services is None) != (self.destination_services is None):
            raise ValidationError("both source services and destination services must be configured")
        for selector in (self.source_services, self.destination_services):
            if selector is not None:
                selector.validate()
