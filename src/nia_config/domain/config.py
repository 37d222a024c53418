"""Root of the configuration tree.

Purpose
-------
:class:`Config` aggregates every block a daemon reads from its configuration
files. Loading merges one :class:`Config` per file on top of
:func:`default_config`, then runs :meth:`Config.finalize` and
:meth:`Config.validate` once on the result.

Finalize order
--------------
Blocks whose defaults depend on siblings are finalized after them:
``consul`` before ``driver`` (backend defaults), ``buffer_period`` before
``task`` (inheritance), and tasks before the per-task inheritance pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Mapping

from .block import Block, Kind, setting, validate_block
from .buffer_period import BufferPeriodConfig, default_buffer_period
from .consul import ConsulConfig
from .driver import DriverConfig
from .errors import ValidationError
from .provider import TerraformProviderConfig, validate_providers
from .registration import ACLConfig, SelfRegistrationConfig
from .service import ServiceConfig, validate_services
from .syslog import SyslogConfig
from .task import TaskConfig, validate_tasks
from .tls import CTSTLSConfig
from .vault import VaultConfig, default_vault
from .wait import WaitConfig, default_wait

DEFAULT_LOG_LEVEL: Final[str] = "INFO"
DEFAULT_PORT: Final[int] = 8558
DEFAULT_WORKING_DIR: Final[str] = "sync-tasks"


def default_config() -> Config:
    """Return the base every loaded file is merged onto.

    Only values that never depend on other settings are set here; the rest
    are resolved by :meth:`Config.finalize`.

    Examples
    --------
    >>> config = default_config()
    >>> config.log_level, config.port, config.tasks
    ('INFO', 8558, [])
    """

    return Config(
        log_level=DEFAULT_LOG_LEVEL,
        port=DEFAULT_PORT,
        working_dir=DEFAULT_WORKING_DIR,
        buffer_period=default_buffer_period(),
        wait=default_wait(),
        tasks=[],
        services=[],
        terraform_providers=[],
    )


@dataclass(repr=False)
class Config(Block):
    """Complete daemon configuration."""

    log_level: str | None = setting("log_level")
    port: int | None = setting("port", Kind.INT)
    working_dir: str | None = setting("working_dir")
    syslog: SyslogConfig | None = setting("syslog", Kind.BLOCK, block=SyslogConfig)
    consul: ConsulConfig | None = setting("consul", Kind.BLOCK, block=ConsulConfig)
    vault: VaultConfig | None = setting("vault", Kind.BLOCK, block=VaultConfig)
    driver: DriverConfig | None = setting("driver", Kind.BLOCK, block=DriverConfig)
    tasks: list[TaskConfig] | None = setting("task", Kind.BLOCKS, block=TaskConfig)
    services: list[ServiceConfig] | None = setting("service", Kind.BLOCKS, block=ServiceConfig)
    terraform_providers: list[TerraformProviderConfig] | None = setting("terraform_provider", Kind.PROVIDERS)
    buffer_period: BufferPeriodConfig | None = setting("buffer_period", Kind.BLOCK, block=BufferPeriodConfig)
    wait: WaitConfig | None = setting("wait", Kind.BLOCK, block=WaitConfig)
    tls: CTSTLSConfig | None = setting("tls", Kind.BLOCK, block=CTSTLSConfig)
    acl: ACLConfig | None = setting("acl", Kind.BLOCK, block=ACLConfig)
    self_registration: SelfRegistrationConfig | None = setting(
        "self_registration", Kind.BLOCK, block=SelfRegistrationConfig
    )

    def finalize(self, environ: Mapping[str, str] | None = None, cwd: str | None = None) -> None:
        """Fill every unset value.

        Parameters
        ----------
        environ:
            Environment snapshot consulted for the Consul and Vault fallbacks
            (tokens, addresses, TLS paths).
            ``None`` means no environment fallbacks apply.
        cwd:
            Directory used as the default Terraform ``path``; defaults to the
            process working directory.
        """

        if self.log_level is None:
            self.log_level = DEFAULT_LOG_LEVEL
        if self.port is None:
            self.port = DEFAULT_PORT
        if self.working_dir is None:
            self.working_dir = DEFAULT_WORKING_DIR

        if self.syslog is None:
            self.syslog = SyslogConfig()
        self.syslog.finalize()

        if self.consul is None:
            self.consul = ConsulConfig()
        self.consul.finalize(environ)

        if self.vault is None:
            self.vault = default_vault()
        self.vault.finalize(environ)

        if self.driver is None:
            self.driver = DriverConfig()
        self.driver.finalize(self.consul, cwd)

        if self.buffer_period is None:
            self.buffer_period = default_buffer_period()
        self.buffer_period.finalize()

        if self.wait is None:
            self.wait = default_wait()
        self.wait.finalize()

        tasks = []
        for task in self.tasks or []:
            task.finalize()
            tasks.append(task.inherit_parent_config(self.working_dir, self.buffer_period))
        self.tasks = tasks

        if self.services is None:
            self.services = []
        for service in self.services:
            service.finalize()

        if self.terraform_providers is None:
            self.terraform_providers = []

        if self.tls is None:
            self.tls = CTSTLSConfig()
        self.tls.finalize()

        if self.acl is None:
            self.acl = ACLConfig()
        self.acl.finalize()

        if self.self_registration is None:
            self.self_registration = SelfRegistrationConfig()
        self.self_registration.finalize()

    def validate(self) -> None:
        """Validate the tree; the first violation raises :class:`ValidationError`."""

        if self.driver is None:
            raise ValidationError("missing driver configuration")
        self.driver.validate()
        validate_tasks(self.tasks)
        validate_services(self.services)
        validate_providers(self.terraform_providers)
        validate_block(self.buffer_period)
        validate_block(self.wait)
        validate_block(self.tls)
        validate_block(self.consul)
        validate_block(self.vault)
        validate_block(self.syslog)
        validate_block(self.acl)
        validate_block(self.self_registration)
