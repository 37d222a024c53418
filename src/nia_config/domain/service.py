"""Top-level ``service`` blocks describing Consul services known to the daemon."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..observability import log_warning
from .block import Block, Kind, setting
from .errors import ValidationError
from .values import string_present


@dataclass(repr=False)
class ServiceConfig(Block):
    """Query settings for one Consul service; ``id`` defaults to ``name``.

    Examples
    --------
    >>> service = ServiceConfig(name="web")
    >>> service.finalize()
    >>> service.id, service.cts_user_defined_meta
    ('web', {})
    """

    datacenter: str | None = setting("datacenter")
    description: str | None = setting("description")
    id: str | None = setting("id")
    name: str | None = setting("name")
    namespace: str | None = setting("namespace")
    tag: str | None = setting("tag")
    filter: str | None = setting("filter")
    cts_user_defined_meta: dict[str, str] | None = setting("cts_user_defined_meta", Kind.STRING_MAP)

    def finalize(self) -> None:
        if self.datacenter is None:
            self.datacenter = ""
        if self.description is None:
            self.description = ""
        if self.name is None:
            self.name = ""
        if self.id is None:
            self.id = self.name
        if self.namespace is None:
            self.namespace = ""
        if self.tag is None:
            self.tag = ""
        elif string_present(self.tag):
            log_warning(
                "the 'tag' attribute is deprecated, use 'filter' with the Service.Tags selector",
                component="service",
                service=self.name,
            )
        if self.filter is None:
            self.filter = ""
        if self.cts_user_defined_meta is None:
            self.cts_user_defined_meta = {}

    def validate(self) -> None:
        if not self.name:
            raise ValidationError("logical name for the Consul service is required")


def validate_services(services: Sequence[ServiceConfig] | None) -> None:
    """Validate every service and require unique service IDs."""

    seen: set[str] = set()
    for service in services or ():
        service.validate()
        service_id = service.id if service.id is not None else service.name or ""
        if service_id in seen:
            raise ValidationError(f"unique service IDs are required: {service_id}")
        seen.add(service_id)
