"""CLI entry point for zpod-inventory."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Callable

import click
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from zpod_inventory import __version__
from zpod_inventory.config import AppConfig, EndpointConfig
from zpod_inventory.probe import (
    NsxProbeRequest,
    VsphereProbeRequest,
    nsx_inventory,
    probe_nsx,
    probe_vsphere,
    vsphere_inventory,
)
from zpod_inventory.utils.logging import set_log_level

console = Console()


def load_config(config_path: str | None, section: str | None = None) -> AppConfig:
    """Load configuration from file, or one endpoint section from the environment."""
    if config_path:
        return AppConfig.from_yaml(config_path)
    return AppConfig.from_env(section)


def endpoint_options(func: Callable) -> Callable:
    """Credential and output options shared by every command."""
    options = [
        click.option("--host", help="Endpoint hostname or IP"),
        click.option("--username", help="Login username"),
        click.option("--password", help="Login password (prefer --password-file)"),
        click.option("--password-file", type=click.Path(exists=True), help="File containing the password"),
        click.option("--config", "config_path", type=click.Path(exists=True), help="Configuration file"),
        click.option("--format", "fmt", type=click.Choice(["table", "json"]), default="table"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def resolve_endpoint(
    section: str,
    host: str | None,
    username: str | None,
    password: str | None,
    password_file: str | None,
    config_path: str | None,
) -> dict[str, Any]:
    """Merge CLI flags over the config file (or environment) for one endpoint."""
    if password_file:
        password = Path(password_file).read_text().strip()

    fields: dict[str, Any] = {}
    if config_path or not (host and username and password):
        try:
            config = load_config(config_path, section)
        except (ValidationError, OSError, yaml.YAMLError) as e:
            console.print(f"[red]Error loading config: {e}[/red]")
            sys.exit(1)
        configured: EndpointConfig | None = getattr(config, section)
        if configured:
            fields = {
                "hostname": configured.hostname,
                "username": configured.username,
                "password": configured.secret,
            }

    if host:
        fields["hostname"] = host
    if username:
        fields["username"] = username
    if password:
        fields["password"] = password

    if not fields.get("hostname") or not fields.get("username"):
        console.print(f"[red]No {section} endpoint configured.[/red]")
        console.print("Provide --host/--username, a --config file, or set environment variables.")
        sys.exit(1)
    if not fields.get("password"):
        fields["password"] = click.prompt(f"{section} password", hide_input=True)
    return fields


def build_request(model: type, fields: dict[str, Any]):
    try:
        return model(**fields)
    except ValidationError as e:
        console.print(f"[red]Invalid parameters: {e}[/red]")
        sys.exit(1)


def emit(result: dict[str, Any], fmt: str, render: Callable[[dict[str, Any]], None]) -> None:
    """Print a probe result and exit non-zero when not connected."""
    if fmt == "json":
        console.print_json(json.dumps(result))
    elif not result["connected"]:
        console.print(f"[bold red]❌ Not connected[/bold red]: {result['error']}")
    else:
        console.print(f"[bold green]✅ Connected[/bold green] (version {result['version']})")
        render(result)

    if not result["connected"]:
        sys.exit(1)


def render_checks(result: dict[str, Any]) -> None:
    if not result["checks"]:
        return
    table = Table(title="Checks")
    table.add_column("Object", style="cyan")
    table.add_column("Result")
    table.add_column("Details", style="dim")
    for name, check in result["checks"].items():
        details = ", ".join(f"{k}={v}" for k, v in check.items() if k != "ok")
        table.add_row(name, "✅" if check["ok"] else "❌", details)
    console.print(table)


def _add_folders(tree: Tree, folders: list[dict[str, Any]]) -> None:
    for folder in folders:
        _add_folders(tree.add(folder["name"]), folder["children"])


def render_vsphere_inventory(result: dict[str, Any]) -> None:
    inventory = result["inventory"]
    console.print(f"\n[bold]Datacenters:[/bold] {', '.join(inventory['datacenters']) or '-'}")

    pools = Table(title="Clusters and Resource Pools")
    pools.add_column("Name", style="cyan")
    pools.add_column("Type")
    for pool in inventory["resourcePools"]:
        pools.add_row(pool["name"], pool["type"])
    console.print(pools)

    datastores = Table(title="Datastores")
    datastores.add_column("Name", style="cyan", no_wrap=True)
    datastores.add_column("Type", style="magenta")
    datastores.add_column("Capacity (GB)", justify="right")
    datastores.add_column("Used (GB)", justify="right")
    for ds in inventory["datastores"]:
        datastores.add_row(ds["name"], ds["type"], str(ds["capacityGB"]), str(ds["usedGB"]))
    console.print(datastores)

    tree = Tree("[bold]VM Folders[/bold]")
    _add_folders(tree, inventory["vmFolders"])
    console.print(tree)


def render_nsx_inventory(result: dict[str, Any]) -> None:
    inventory = result["inventory"]
    table = Table(title="NSX Inventory")
    table.add_column("Kind", style="cyan")
    table.add_column("Names")
    table.add_row("Transport zones (overlay)", "\n".join(inventory["transportZones"]) or "-")
    table.add_row("Edge clusters", "\n".join(inventory["edgeClusters"]) or "-")
    table.add_row("Tier-0 gateways", "\n".join(inventory["t0Gateways"]) or "-")
    console.print(table)


@click.group()
@click.version_option(version=__version__, prog_name="zpod-inventory")
@click.option("--log-level", default="INFO", help="Log level (DEBUG, INFO, WARNING, ERROR)")
def main(log_level: str):
    """Inventory discovery for zPod lab endpoints.

    Test vCenter and NSX Manager credentials, verify that the objects a
    zPod deployment needs exist, and list what is available.
    """
    set_log_level(log_level)


@main.command("vsphere-check")
@endpoint_options
@click.option("--datacenter", help="Datacenter that must exist")
@click.option("--resource-pool", help="Cluster that must exist")
@click.option("--datastore", "storage_datastore", help="Datastore or datastore cluster that must exist")
@click.option("--vmfolder", help="VM folder that must exist")
def vsphere_check(host, username, password, password_file, config_path, fmt, **checks):
    """Test vCenter credentials and verify named objects."""
    fields = resolve_endpoint("vsphere", host, username, password, password_file, config_path)
    request = build_request(VsphereProbeRequest, {**fields, **checks})
    with console.status("[bold green]Connecting to vCenter..."):
        result = asyncio.run(probe_vsphere(request))
    emit(result, fmt, render_checks)


@main.command("nsx-check")
@endpoint_options
@click.option("--edgecluster", help="Edge cluster that must exist")
@click.option("--t0", help="Tier-0 gateway that must exist")
@click.option("--transportzone", help="Transport zone that must exist")
@click.option("--networks", help="zPod network pool (CIDR, /21 or larger)")
def nsx_check(host, username, password, password_file, config_path, fmt, **checks):
    """Test NSX Manager credentials and verify named objects."""
    fields = resolve_endpoint("nsx", host, username, password, password_file, config_path)
    request = build_request(NsxProbeRequest, {**fields, **checks})
    with console.status("[bold green]Connecting to NSX Manager..."):
        result = asyncio.run(probe_nsx(request))
    emit(result, fmt, render_checks)


@main.command("vsphere-inventory")
@endpoint_options
def vsphere_inventory_cmd(host, username, password, password_file, config_path, fmt):
    """List datacenters, clusters, datastores and VM folders."""
    fields = resolve_endpoint("vsphere", host, username, password, password_file, config_path)
    endpoint = build_request(EndpointConfig, fields)
    with console.status("[bold green]Collecting vCenter inventory..."):
        result = asyncio.run(vsphere_inventory(endpoint))
    emit(result, fmt, render_vsphere_inventory)


@main.command("nsx-inventory")
@endpoint_options
def nsx_inventory_cmd(host, username, password, password_file, config_path, fmt):
    """List overlay transport zones, edge clusters and Tier-0 gateways."""
    fields = resolve_endpoint("nsx", host, username, password, password_file, config_path)
    endpoint = build_request(EndpointConfig, fields)
    with console.status("[bold green]Collecting NSX inventory..."):
        result = asyncio.run(nsx_inventory(endpoint))
    emit(result, fmt, render_nsx_inventory)


if __name__ == "__main__":
    main()
