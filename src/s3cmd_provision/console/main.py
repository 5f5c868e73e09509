"""Command‑line interface for the s3cmd provisioning plugin.

Exposes ``download`` and ``upload`` commands that go through the same
``S3CmdProvision`` a plugin host would use, plus helpers to inspect the
handled schemes and the effective configuration.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from ..config_loader import CLIENT_LOCATION, CONFIG_FILE_LOCATION, VERBOSITY, ClientConfig, load_config
from ..errors import ProvisionError
from ..logging.logger import CSVLogger, JSONLogger, OperationRecord
from ..provision.plugin import S3CmdPlugin, S3CmdProvision


console = Console(stderr=True)
out_console = Console()

EXIT_RECOVERABLE = 1
EXIT_ERROR = 2


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(message)s',
        datefmt='[%X]',
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _options(ctx: click.Context) -> Dict[str, Any]:
    params = ctx.obj
    options: Dict[str, Any] = {}
    if params['config_path']:
        options.update(load_config(Path(params['config_path'])))
    if params['client']:
        options[CLIENT_LOCATION] = params['client']
    if params['config_file_location']:
        options[CONFIG_FILE_LOCATION] = params['config_file_location']
    if params['quiet']:
        options[VERBOSITY] = 'Minimal'
    return options


def _run(ctx: click.Context, action: Callable[[S3CmdProvision], bool]) -> None:
    params = ctx.obj
    csv_logger = CSVLogger(Path(params['log_csv'])) if params['log_csv'] else None
    json_logger = JSONLogger(Path(params['log_json'])) if params['log_json'] else None

    def on_record(record: OperationRecord) -> None:
        if csv_logger is not None:
            csv_logger.log_record(record)
        if json_logger is not None:
            json_logger.add_record(record)

    plugin = S3CmdPlugin()
    plugin.start()
    try:
        provision = S3CmdProvision(_options(ctx), on_record=on_record)
        ok = action(provision)
    except (ProvisionError, FileExistsError, ValueError) as exc:
        console.print(f'[red]Error:[/red] {exc}')
        ctx.exit(EXIT_ERROR)
    finally:
        plugin.stop()
        if csv_logger is not None:
            csv_logger.close()
        if json_logger is not None:
            json_logger.flush()
    if not ok:
        console.print('[yellow]Transfer failed[/yellow]')
        ctx.exit(EXIT_RECOVERABLE)
    console.print('[green]Transfer complete[/green]')


@click.group()
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), default=None, help='Path to YAML configuration file.')
@click.option('--client', default=None, help='Path to the s3cmd executable.')
@click.option('--config-file-location', default=None, help='Path to the s3cmd configuration file.')
@click.option('--quiet', is_flag=True, help='Do not echo s3cmd transfer output.')
@click.option('--verbose', is_flag=True, help='Enable debug logging.')
@click.option('--log-csv', type=click.Path(dir_okay=False), default=None, help='Write operation records to a CSV file.')
@click.option('--log-json', type=click.Path(dir_okay=False), default=None, help='Write operation records to a JSON file.')
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[str],
    client: Optional[str],
    config_file_location: Optional[str],
    quiet: bool,
    verbose: bool,
    log_csv: Optional[str],
    log_json: Optional[str],
) -> None:
    """s3cmd provisioning CLI."""
    _configure_logging(verbose)
    ctx.obj = {
        'config_path': config_path,
        'client': client,
        'config_file_location': config_file_location,
        'quiet': quiet,
        'log_csv': log_csv,
        'log_json': log_json,
    }


@cli.command()
@click.argument('source')
@click.argument('destination', type=click.Path(dir_okay=False))
@click.pass_context
def download(ctx: click.Context, source: str, destination: str) -> None:
    """Download SOURCE (s3cmd://bucket/key) to the local DESTINATION."""
    _run(ctx, lambda p: p.download_from(source, Path(destination)))


@cli.command()
@click.argument('source_file', type=click.Path())
@click.argument('destination')
@click.option('--metadata', default=None, help='Metadata to attach (currently not forwarded).')
@click.pass_context
def upload(ctx: click.Context, source_file: str, destination: str, metadata: Optional[str]) -> None:
    """Upload SOURCE_FILE to DESTINATION (s3cmd://bucket/key)."""
    _run(ctx, lambda p: p.upload_to(destination, Path(source_file), metadata))


@cli.command()
def schemes() -> None:
    """Print the URI schemes this plugin handles."""
    for scheme in sorted(S3CmdProvision().schemes_handled()):
        click.echo(scheme)


@cli.command()
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Print the effective client configuration."""
    cfg = ClientConfig.from_mapping(_options(ctx))
    out_console.print_json(json.dumps(cfg.as_dict()))


if __name__ == '__main__':  # pragma: no cover
    cli()
