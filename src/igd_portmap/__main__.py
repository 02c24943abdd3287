"""CLI entry point for igd-portmap."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional

import click

from .config import Config
from .device.controller import IgdDeviceController
from .logging_setup import configure_logging
from .models.common import Protocol
from .models.igd import PortMapping
from .upnp.exceptions import IgdError, NoValidIGDError

EXIT_ROUTER_ERROR = 1
EXIT_NO_IGD = 2


@click.group()
@click.option(
    "--config-file", "-c",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to a JSON configuration file.",
    envvar="IGD_PORTMAP_CONFIG_FILE"
)
@click.option(
    "--log-level", "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override the logging level (e.g., DEBUG, INFO).",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default=None,
    help="Override logging format.",
)
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: Optional[str], log_format: Optional[str]) -> None:
    """igd-portmap - inspect and edit the port mappings of a UPnP router."""
    try:
        if config_file:
            cfg = Config.from_file(Path(config_file))
        else:
            cfg = Config()
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    if log_level:
        cfg.logging.level = log_level.upper()
    if log_format:
        cfg.logging.format = log_format.lower()
    configure_logging(cfg.logging)

    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


def _run_with_controller(ctx: click.Context, action: Callable[[IgdDeviceController], Awaitable[None]]) -> None:
    """Scans, waits for the refresh, runs ``action`` and maps errors to exit codes."""
    config: Config = ctx.obj["config"]
    # Tests and embedders may supply their own control backend
    backend = ctx.obj.get("backend")

    async def workflow() -> None:
        async with IgdDeviceController(config, backend=backend) as controller:
            await controller.scan_and_wait()
            if not controller.has_valid_igd:
                raise NoValidIGDError()
            await action(controller)

    try:
        asyncio.run(workflow())
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user.", err=True)
        sys.exit(130)
    except NoValidIGDError:
        click.echo("No valid UPnP Internet Gateway Device found.", err=True)
        sys.exit(EXIT_NO_IGD)
    except IgdError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_ROUTER_ERROR)


def _print_table(controller: IgdDeviceController) -> None:
    connectivity, entries = controller.snapshot()
    click.echo(f"Connected:   {'yes' if connectivity.connected else 'no'}")
    click.echo(f"External IP: {connectivity.external_ip or '-'}")
    click.echo(f"LAN address: {controller.lan_address or '-'}")
    click.echo(f"Mappings:    {len(entries)}")
    for mapping in entries:
        click.echo(f"  {mapping.display_label}")
    if not controller.mappings.complete:
        click.echo(f"Warning: table may be incomplete ({controller.mappings.last_enumeration_error})", err=True)


@cli.command(name="list")
@click.option("--json", "as_json", is_flag=True, help="Print connectivity and mappings as JSON.")
@click.pass_context
def list_mappings(ctx: click.Context, as_json: bool) -> None:
    """Discovers the IGD and prints its port-mapping table."""

    async def action(controller: IgdDeviceController) -> None:
        if as_json:
            connectivity, entries = controller.snapshot()
            click.echo(json.dumps({
                "connectivity": connectivity.model_dump(),
                "lan_address": controller.lan_address,
                "mappings": [m.model_dump(mode="json") for m in entries],
            }, indent=2))
        else:
            _print_table(controller)

    _run_with_controller(ctx, action)


@cli.command()
@click.argument("external_port", type=click.IntRange(1, 65535))
@click.argument("protocol", type=click.Choice(["TCP", "UDP"], case_sensitive=False))
@click.argument("internal_port", type=click.IntRange(1, 65535))
@click.option("--client", "internal_client", default=None, help="Internal host to forward to. Defaults to this machine's LAN address.")
@click.option("--description", default="igd-portmap", show_default=True, help="Description stored with the mapping.")
@click.pass_context
def add(ctx: click.Context, external_port: int, protocol: str, internal_port: int, internal_client: Optional[str], description: str) -> None:
    """Adds a port mapping on the router."""

    async def action(controller: IgdDeviceController) -> None:
        client = internal_client or controller.lan_address
        await controller.add_port_mapping(external_port, protocol.upper(), internal_port, client, description)
        click.echo(f"Mapped {protocol.upper()} {external_port} -> {client}:{internal_port}")
        _print_table(controller)

    _run_with_controller(ctx, action)


@cli.command()
@click.argument("external_port", type=click.IntRange(1, 65535))
@click.argument("protocol", type=click.Choice(["TCP", "UDP"], case_sensitive=False))
@click.pass_context
def delete(ctx: click.Context, external_port: int, protocol: str) -> None:
    """Deletes the port mapping for EXTERNAL_PORT/PROTOCOL on the router."""

    async def action(controller: IgdDeviceController) -> None:
        proto = Protocol.parse(protocol.upper())
        mapping = controller.find_mapping(external_port, proto)
        if mapping is None:
            # Not in the snapshot; the router is still the one to decide
            mapping = PortMapping(external_port=external_port, internal_client="", internal_port=0, protocol=proto)
        await controller.delete_port_mapping(mapping)
        click.echo(f"Deleted {proto.value} {external_port}")
        _print_table(controller)

    _run_with_controller(ctx, action)


@cli.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    click.echo(f"igd-portmap v{__version__}")


@cli.command()
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    config = ctx.obj["config"]
    click.echo(json.dumps(config.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    cli()
