# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Main CLI entry point for mcp-chain.

Dumb trigger: loads config, builds catalog and actions, runs the chain,
renders the result. All chain semantics live in mcpchain.executor.
"""

import asyncio
import logging
from typing import List, Optional

import typer

from mcpchain import __version__
from mcpchain.actions import ActionRegistry, FallbackAction, demo_actions
from mcpchain.catalog import CatalogError, demo_catalog, load_catalog
from mcpchain.config import CARRY_FORWARD_CHOICES, ConfigError, load_config, settings_from_config
from mcpchain.event_client import EventClient
from mcpchain.executor import CarryForward, ChainExecutor, format_run
from mcpchain.resolver import ChainSetupError
from mcpchain.schemas import RunStatus


app = typer.Typer(
    name="mcpchain",
    help="Run chains of MCP marketplace servers in sequence",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Load configuration shared by all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"config_path": config_path, "verbose": verbose}


def _load_settings(ctx: typer.Context):
    config_path = (ctx.obj or {}).get("config_path")
    try:
        return settings_from_config(load_config(config_path))
    except (FileNotFoundError, ConfigError) as e:
        typer.echo(f"Config error: {e}", err=True)
        raise typer.Exit(1)


def _open_catalog(path: Optional[str]):
    if not path:
        return demo_catalog()
    try:
        return load_catalog(path)
    except (FileNotFoundError, CatalogError) as e:
        typer.echo(f"Catalog error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def run(
    ctx: typer.Context,
    entry_ids: Optional[List[str]] = typer.Argument(None, help="Entry ids, in chain order"),
    catalog_path: Optional[str] = typer.Option(None, "--catalog", help="Catalog YAML (default: demo catalog)"),
    delay: Optional[float] = typer.Option(None, "--delay", help="Pause between steps, in seconds"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-step timeout, in seconds"),
    carry_forward: Optional[str] = typer.Option(
        None, "--carry-forward", help="Input after a failed step: null or last_success"
    ),
    time_scale: float = typer.Option(1.0, "--time-scale", help="Scale simulated action delays (0 = instant)"),
):
    """Run a chain of entries and show per-step results."""
    settings = _load_settings(ctx)

    if timeout is not None and timeout <= 0:
        typer.echo("Error: --timeout must be positive", err=True)
        raise typer.Exit(1)
    if delay is not None and delay < 0:
        typer.echo("Error: --delay cannot be negative", err=True)
        raise typer.Exit(1)
    if time_scale < 0:
        typer.echo("Error: --time-scale cannot be negative", err=True)
        raise typer.Exit(1)

    if delay is not None:
        settings.inter_step_delay_s = delay
    if timeout is not None:
        settings.step_timeout_s = timeout
    if carry_forward is not None:
        if carry_forward not in CARRY_FORWARD_CHOICES:
            typer.echo(f"Error: --carry-forward must be one of {', '.join(CARRY_FORWARD_CHOICES)}", err=True)
            raise typer.Exit(1)
        settings.carry_forward = carry_forward

    catalog = _open_catalog(catalog_path or settings.catalog)
    low, high = settings.fallback_delay_s
    actions = ActionRegistry(
        catalog=catalog,
        fallback=FallbackAction(delay_range=(low * time_scale, high * time_scale)),
        actions=demo_actions(time_scale=time_scale),
    )
    executor = ChainExecutor(
        catalog,
        actions,
        step_timeout_s=settings.step_timeout_s,
        inter_step_delay_s=settings.inter_step_delay_s,
        carry_forward=CarryForward(settings.carry_forward),
        event_client=EventClient(settings.event_log) if settings.event_log else None,
    )

    try:
        result = asyncio.run(executor.start(entry_ids or []))
    except ChainSetupError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    for line in format_run(result):
        typer.echo(line)

    if result.outcome.status != RunStatus.SUCCESS:
        raise typer.Exit(1)


@app.command("catalog")
def catalog_command(
    ctx: typer.Context,
    catalog_path: Optional[str] = typer.Option(None, "--catalog", help="Catalog YAML (default: demo catalog)"),
):
    """List catalog entries that can be chained."""
    settings = _load_settings(ctx)
    catalog = _open_catalog(catalog_path or settings.catalog)
    for entry in catalog:
        typer.echo(f"{entry.id}  [{entry.category}]  {entry.description}")


@app.command()
def version():
    """Show version information."""
    typer.echo(f"mcpchain version {__version__}")


from mcpchain.commands import config

app.add_typer(config.app, name="config")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
