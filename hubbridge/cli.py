"""
HubBridge CLI - classify, inspect and serve hub devices.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .bridge import HubBridge
from .capabilities import CapabilitySet
from .classifier import Classifier
from .config import BridgeConfig, DEFAULT_DATA_DIR
from .errors import ConfigError, HubRequestError
from .hub import MakerApiClient, parse_device
from .roles.catalog import build_default_registry

console = Console()

SECRET_KEYS = {"access_token"}


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler()]
    )


def run_async(coro):
    """Run an async function."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        return loop.run_until_complete(coro)


def load_config(ctx: click.Context) -> BridgeConfig:
    try:
        return BridgeConfig.load(ctx.obj.get('data_dir'))
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


def load_records(path: str) -> List[Dict[str, Any]]:
    """Read a JSON file holding a list of hub device records."""
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}: {e}[/red]")
        sys.exit(1)

    if not isinstance(data, list):
        console.print(f"[red]Expected a list of device records in {path}[/red]")
        sys.exit(1)
    return data


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    flat = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict) and value and key not in ("excluded_capabilities", "excluded_attributes"):
            flat.update(_flatten(value, f"{name}."))
        else:
            flat[name] = value
    return flat


def _parse_value(raw: str) -> Any:
    # Try to parse as JSON, fall back to string
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('--data-dir', type=click.Path(), help='Data directory')
@click.pass_context
def main(ctx, verbose, data_dir):
    """HubBridge - hub devices as protocol accessories"""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['data_dir'] = Path(data_dir) if data_dir else DEFAULT_DATA_DIR
    setup_logging(verbose)


def roles_table(records: List[Dict[str, Any]], config: BridgeConfig) -> Table:
    classifier = Classifier(build_default_registry())

    table = Table(title="Device Roles")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Roles", style="green")

    for record in records:
        device_id = str(record.get("deviceid", record.get("id", "")))
        try:
            device = parse_device(
                record,
                config.excluded_capabilities.get(device_id),
                config.excluded_attributes.get(device_id),
            )
        except ValueError as e:
            # pydantic.ValidationError is a ValueError
            table.add_row(device_id or "?", "[red]invalid record[/red]", str(e).splitlines()[0])
            continue

        caps = CapabilitySet.from_device(device, config.classification_options())
        roles = classifier.match(caps, label=device.name)
        table.add_row(device.id, device.name, ", ".join(r.name for r in roles) or "[dim]none[/dim]")

    return table


@main.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def classify(ctx, file: str):
    """Show the roles each device in FILE would play."""
    config = load_config(ctx)
    console.print(roles_table(load_records(file), config))


@main.command()
@click.option('--save', type=click.Path(dir_okay=False), help='Also write the raw records to this file')
@click.pass_context
def devices(ctx, save: Optional[str]):
    """Fetch device records from the hub and show their roles."""
    config = load_config(ctx)

    async def fetch():
        async with MakerApiClient(config.hub) as client:
            return await client.get_devices()

    try:
        records = run_async(fetch())
    except (ConfigError, HubRequestError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    if save:
        with open(save, 'w') as f:
            json.dump(records, f, indent=2)
        console.print(f"[green]✓[/green] Saved {len(records)} record(s) to {save}")

    console.print(roles_table(records, config))


@main.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.option('--device', '-d', 'device_id', help='Only show this device id')
@click.option('--json', 'as_json', is_flag=True, help='Print raw JSON')
@click.pass_context
def inspect(ctx, file: str, device_id: Optional[str], as_json: bool):
    """Show the services and characteristic values built for FILE."""
    config = load_config(ctx)
    bridge = HubBridge(config)
    bridge.sync_devices(load_records(file))

    snapshot = bridge.describe()
    accessories = snapshot["accessories"]
    if device_id is not None:
        accessories = [a for a in accessories if a["id"] == str(device_id)]
        if not accessories:
            console.print(f"[red]Device {device_id} not found in {file}[/red]")
            sys.exit(1)

    if as_json:
        click.echo(json.dumps(accessories, indent=2, default=str))
        return

    for accessory in accessories:
        console.print(
            f"\n[bold]{accessory['name']}[/bold] [dim]({accessory['id']})[/dim] "
            f"roles: [green]{', '.join(accessory['roles']) or 'none'}[/green]"
        )
        table = Table(box=None)
        table.add_column("Service", style="cyan")
        table.add_column("Characteristic")
        table.add_column("Value")
        for service in accessory["services"]:
            label = service["id"] + (" [yellow]*[/yellow]" if service["primary"] else "")
            for char in service["characteristics"]:
                table.add_row(label, char["type"], json.dumps(char["value"], default=str))
                label = ""
        console.print(table)
    console.print()


@main.command()
@click.option('--host', '-h', default=None, help='Host to bind to')
@click.option('--port', '-p', default=None, type=int, help='Port to bind to')
@click.pass_context
def serve(ctx, host: Optional[str], port: Optional[int]):
    """Run the bridge with the push listener and periodic refresh."""
    config = load_config(ctx)

    if not config.hub.is_configured:
        console.print("[red]Hub not configured. Set hub.app_url_local, hub.app_id and hub.access_token first.[/red]")
        sys.exit(1)

    if host:
        config.server.host = host
    if port:
        config.server.port = port

    console.print(f"\n[bold blue]Starting HubBridge[/bold blue]")
    console.print(f"   Hub: {config.hub.base_url}{config.hub.app_id}")
    console.print(f"   Listening on: http://{config.server.host}:{config.server.port}")
    console.print(f"   Press Ctrl+C to stop\n")
    console.print(Panel(
        f"[cyan]http://<this host>:{config.server.port}/update[/cyan]",
        title="Maker API event URL",
        border_style="blue"
    ))

    from .api.server import run_server

    run_server(HubBridge(config), config)


@main.group('config')
def config_group():
    """View and edit configuration."""
    pass


@config_group.command('show')
@click.pass_context
def config_show(ctx):
    """Print the current configuration."""
    config = load_config(ctx)

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="dim")
    table.add_column("Value")

    table.add_row("config_path", str(config.config_path))
    for key, value in _flatten(config.to_dict()).items():
        if key.split(".")[-1] in SECRET_KEYS and value:
            value = "********"
        table.add_row(key, json.dumps(value))

    console.print(table)


@config_group.command('set')
@click.argument('key')
@click.argument('value')
@click.pass_context
def config_set(ctx, key: str, value: str):
    """Set KEY (dotted, e.g. hub.app_id) to VALUE (JSON or plain text)."""
    config = load_config(ctx)
    data = config.to_dict()

    parts = key.split(".")
    target = data
    for part in parts[:-1]:
        if not isinstance(target.get(part), dict):
            console.print(f"[red]Unknown configuration key: {key}[/red]")
            sys.exit(1)
        target = target[part]
    if parts[-1] not in target:
        console.print(f"[red]Unknown configuration key: {key}[/red]")
        sys.exit(1)
    target[parts[-1]] = _parse_value(value)

    try:
        updated = BridgeConfig.from_dict(data, data_dir=config.data_dir)
    except (ConfigError, TypeError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    updated.save()
    console.print(f"[green]✓[/green] {key} = {json.dumps(target[parts[-1]])}")


if __name__ == '__main__':
    main()
