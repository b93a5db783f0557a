#!/usr/bin/env python3
"""Data Phantom reconciliation client - Entry point."""
import logging

import click
from colorama import Fore, Style, init

from config import app_config
from phantom_recon import __version__
from phantom_recon.cli.interactive import ReconciliationCLI
from phantom_recon.schema.models import PreviewCategory

# Initialize colorama
init(autoreset=True)


def print_banner():
    """Print application banner."""
    print(f"{Fore.CYAN}{'=' * 44}")
    print(f"{Fore.CYAN}║   {Fore.WHITE}Data Phantom Reconciliation{Fore.CYAN}          ║")
    print(f"{Fore.CYAN}║   {Fore.WHITE}Mappings, runs and sample previews{Fore.CYAN}   ║")
    print(f"{Fore.CYAN}{'=' * 44}{Style.RESET_ALL}")
    print()


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """Reconcile the outputs of two data tasks."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else app_config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@cli.command()
@click.argument("task_id")
def fields(task_id):
    """List the selected output fields of a task."""
    print_banner()
    ReconciliationCLI().show_fields(task_id)


@cli.command()
@click.argument("playground_id")
def mappings(playground_id):
    """List the reconciliation mappings of a playground."""
    print_banner()
    ReconciliationCLI().list_mappings(playground_id)


@cli.command()
@click.argument("playground_id")
@click.argument("left_task")
@click.argument("right_task")
@click.option("--edit", "mapping_id", default=None, help="Edit an existing mapping")
@click.option("--suggest", is_flag=True, help="Pre-fill pairs by field name similarity")
def pair(playground_id, left_task, right_task, mapping_id, suggest):
    """Pair the fields of two tasks and save the mapping."""
    print_banner()
    ReconciliationCLI().pair(playground_id, left_task, right_task, mapping_id=mapping_id, suggest=suggest)


@cli.command()
@click.argument("mapping_id")
def delete(mapping_id):
    """Delete a reconciliation mapping."""
    print_banner()
    ReconciliationCLI().delete(mapping_id)


@cli.command()
@click.argument("mapping_id")
def run(mapping_id):
    """Start a reconciliation run."""
    print_banner()
    if not ReconciliationCLI().trigger(mapping_id):
        raise SystemExit(1)


@cli.command()
@click.argument("playground_id")
def status(playground_id):
    """Show the current run status of every mapping."""
    print_banner()
    ReconciliationCLI().status(playground_id)


@cli.command()
@click.argument("playground_id")
@click.option("--interval", type=float, default=None, help="Seconds between refreshes")
def watch(playground_id, interval):
    """Refresh run statuses until interrupted."""
    print_banner()
    ReconciliationCLI().watch(playground_id, interval=interval)


@cli.command()
@click.argument("playground_id")
@click.argument("mapping_id")
@click.option(
    "--category",
    type=click.Choice([c.value for c in PreviewCategory]),
    default=None,
    help="Sample to preview (defaults to the first available)",
)
@click.option("--limit", type=int, default=20, help="Maximum preview rows")
def results(playground_id, mapping_id, category, limit):
    """Show a reconciliation result and a sample preview."""
    print_banner()
    ReconciliationCLI().results(playground_id, mapping_id, category=category, limit=limit)


@cli.command()
@click.argument("playground_id")
@click.argument("mapping_id")
@click.option("--format", "fmt", type=click.Choice(["json", "xlsx"]), default="json")
def export(playground_id, mapping_id, fmt):
    """Export a reconciliation result with its samples."""
    print_banner()
    ReconciliationCLI().export(playground_id, mapping_id, fmt=fmt)


@cli.command()
def config_api():
    """Configure Data Phantom API credentials."""
    print_banner()

    click.echo(f"{Fore.YELLOW}Data Phantom API Configuration")
    click.echo(f"{Fore.YELLOW}{'=' * 30}")

    base_url = click.prompt("API Base URL", default=app_config.phantom_api.base_url)
    api_token = click.prompt("API token", hide_input=True, default="")

    app_config.phantom_api.base_url = base_url
    app_config.phantom_api.api_token = api_token

    click.echo(f"{Fore.GREEN}✅ Configuration saved for this session!")


if __name__ == "__main__":
    cli()
