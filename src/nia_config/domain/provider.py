"""Terraform provider blocks (``terraform_provider "<name>" { ... }``).

Provider bodies are passed through to Terraform untouched and frequently carry
credentials, so their printable forms never show the body.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Sequence

from .block import REDACTED, Block
from .errors import ValidationError
from .merge_utils import merge_maps


@dataclass(repr=False)
class TerraformProviderConfig(Block):
    """One labelled provider block, stored as ``{name: body}``.

    Examples
    --------
    >>> provider = TerraformProviderConfig({"aws": {"alias": "east", "secret_key": "s3cr3t"}})
    >>> provider.id
    'aws.east'
    >>> provider
    TerraformProviderConfig(aws=(redacted))
    """

    values: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        """Provider name (the block label); ``""`` when the block has no label."""

        return next(iter(self.values), "")

    @property
    def id(self) -> str:
        """Provider identity: ``name`` or ``name.alias``."""

        name = self.name
        body = self.values.get(name)
        alias = body.get("alias") if isinstance(body, Mapping) else None
        return f"{name}.{alias}" if isinstance(alias, str) else name

    def merge(self, other: TerraformProviderConfig | None) -> TerraformProviderConfig:
        """Merge provider bodies by label; labels of *other* replace those of ``self``.

        Examples
        --------
        >>> left = TerraformProviderConfig({"aws": {"region": "us-east-1"}})
        >>> left.merge(TerraformProviderConfig({"local": {}})).values
        {'aws': {'region': 'us-east-1'}, 'local': {}}
        """

        if other is None:
            return self.copy()
        return TerraformProviderConfig(merge_maps(self.values, other.values) or {})

    def validate(self) -> None:
        if not self.values:
            raise ValidationError("missing provider name for the terraform_provider block")
        if len(self.values) > 1:
            raise ValidationError(f"unexpected terraform_provider block labels: {','.join(self.values)}")
        body = self.values[self.name]
        if not isinstance(body, Mapping):
            raise ValidationError("unexpected terraform_provider block format")
        if "task_env" not in body:
            return
        task_env = body["task_env"]
        if not isinstance(task_env, Mapping):
            raise ValidationError("unexpected task_env block format: task_env should be a map of strings")
        for key, value in task_env.items():
            if not isinstance(value, str):
                raise ValidationError(f'unexpected task_env block format: value for "{key}" should be a string')

    def describe(self) -> str:
        labels = ", ".join(f"{name}={REDACTED}" for name in self.values)
        return f"{type(self).__name__}({labels})"

    def as_dict(self, *, redact: bool = True) -> dict[str, Any]:
        if redact:
            return {name: REDACTED for name in self.values}
        return self.copy().values


def validate_providers(providers: Sequence[TerraformProviderConfig] | None) -> None:
    """Validate every provider and reject repeated ``name``/``name.alias`` identities."""

    seen: set[str] = set()
    for provider in providers or ():
        provider.validate()
        if provider.id in seen:
            raise ValidationError(f"duplicate provider configuration: {provider.id}")
        seen.add(provider.id)
