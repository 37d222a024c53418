"""CLI adapter for ``nia_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators check and inspect daemon configuration without starting the
daemon: ``validate`` loads, finalizes and validates the given paths,
``inspect`` prints the resulting tree with secrets redacted.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_validate` – calls :func:`nia_config.core.read_config` and reports
  success.
* :func:`cli_inspect` – prints the finalized configuration as text or JSON.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It invokes the composition root and
never reaches into adapter implementation details directly.
``lib_cli_exit_tools`` centralises the exit code strategy so all commands
behave consistently across shells and CI.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .core import read_config, read_config_raw
from .domain.task import filter_tasks

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000
_DIST_NAME: Final[str] = "nia-config"

_config_option = click.option(
    "-c",
    "--config",
    "paths",
    multiple=True,
    required=True,
    type=click.Path(path_type=Path, exists=False),
    help="Configuration file or directory; repeat to layer several (later wins)",
)


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` when not installed."""

    try:
        return metadata.version(_DIST_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Validate and inspect network infrastructure automation configuration",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DIST_NAME,
    message="nia-config version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(_DIST_NAME)
    except metadata.PackageNotFoundError:
        click.echo(f"{_DIST_NAME} (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _DIST_NAME)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("validate", context_settings=CLICK_CONTEXT_SETTINGS)
@_config_option
def cli_validate(paths: Sequence[Path]) -> None:
    """Load, finalize and validate the configuration; exit non-zero on errors.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> runner = CliRunner()
    >>> with runner.isolated_filesystem():
    ...     _ = Path("cts.hcl").write_text('log_level = "DEBUG"', encoding="utf-8")
    ...     result = runner.invoke(cli, ["validate", "-c", "cts.hcl"])
    >>> result.output.strip()
    'configuration is valid (0 tasks)'
    """

    config = read_config([str(path) for path in paths])
    click.echo(f"configuration is valid ({len(config.tasks or [])} tasks)")


@cli.command("inspect", context_settings=CLICK_CONTEXT_SETTINGS)
@_config_option
@click.option("--json/--no-json", "as_json", default=False, help="Print JSON instead of the text form")
@click.option(
    "--indent",
    type=int,
    default=None,
    help="Pretty-print JSON output with the provided indent size",
)
@click.option(
    "--provenance/--no-provenance",
    default=False,
    help="Include the file that configured each top-level key (JSON only)",
)
@click.option("--task", "tasks", multiple=True, help="Only show the named task (repeatable)")
def cli_inspect(
    paths: Sequence[Path],
    as_json: bool,
    indent: Optional[int],
    provenance: bool,
    tasks: Sequence[str],
) -> None:
    """Print the finalized configuration with secrets redacted.

    Without ``--json`` every block is rendered in its printable form; with
    ``--json`` the tree is exported keyed by configuration keys. ``--task``
    narrows the output to the selected tasks.
    """

    config, meta = read_config_raw([str(path) for path in paths])
    if tasks:
        selected = filter_tasks(config.tasks, tasks)
        if as_json:
            click.echo(json.dumps([task.as_dict() for task in selected], indent=indent))
        else:
            for task in selected:
                click.echo(task.describe())
        return

    if not as_json:
        click.echo(config.describe())
        return
    payload: dict[str, object] = config.as_dict()
    if provenance:
        payload = {"config": payload, "provenance": meta}
    click.echo(json.dumps(payload, indent=indent))


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DIST_NAME,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
