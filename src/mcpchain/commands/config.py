# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Config command for mcp-chain.

Validates the config file and shows the effective executor settings.
"""

import typer

from mcpchain.config import ConfigError, get_config_path, load_config, settings_from_config

app = typer.Typer(help="Manage and validate configuration")


@app.command()
def validate(
    config_path: str = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """
    Validate configuration file.

    Checks that the file is valid YAML and that the executor section
    holds usable values.
    """
    path, _ = get_config_path(config_path)
    typer.echo(f"Validating configuration: {path}")
    typer.echo()

    try:
        config = load_config(config_path)
        settings = settings_from_config(config)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except ConfigError as e:
        typer.echo(f"Validation failed: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Step timeout: {settings.step_timeout_s:g}s")
    typer.echo(f"Inter-step delay: {settings.inter_step_delay_s:g}s")
    typer.echo(f"Carry forward: {settings.carry_forward}")
    low, high = settings.fallback_delay_s
    typer.echo(f"Fallback delay: {low:g}-{high:g}s")
    typer.echo(f"Catalog: {settings.catalog or '(demo catalog)'}")
    if settings.event_log:
        typer.echo(f"Event log: {settings.event_log}")
    typer.echo()
    typer.echo("Configuration validation complete!")
