"""CLI commands for NeuroGuide configuration management."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
import yaml

from .config import (
    DEFAULT_CONFIG_PATH,
    ConfigurationError,
    ConfigurationManager,
    NeuroGuideConfig,
)


config_app = typer.Typer(
    help="Manage NeuroGuide configuration",
    name="config"
)


@config_app.command("validate")
def validate_config(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to configuration file"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Show detailed validation output"
    ),
) -> None:
    """Validate NeuroGuide configuration.

    Checks configuration file for errors and displays them if any are found.
    """
    manager = ConfigurationManager(config_path=config_path)
    errors = manager.validate()

    if errors:
        typer.echo(f"❌ Configuration validation failed: {config_path}")
        typer.echo("\nErrors:")
        for error in errors:
            typer.echo(f"  - {error}")
        raise typer.Exit(code=1)

    typer.echo(f"✅ Configuration is valid: {config_path}")
    if verbose:
        config = manager.load()
        typer.echo("\nConfiguration details:")
        typer.echo(f"  Listener: {config.listener.address}:{config.listener.port}")
        typer.echo(f"  Total duration: {config.experience.total_duration_seconds}s")
        typer.echo(f"  Threshold: {config.experience.threshold_normalized}")
        typer.echo(f"  No-data timeout: {config.experience.no_data_timeout_seconds}s")


@config_app.command("show")
def show_config(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to configuration file"
    ),
    section: Optional[str] = typer.Option(
        None,
        "--section",
        help="Show specific section (listener, experience, logging)"
    ),
    format: str = typer.Option(
        "yaml",
        "--format",
        help="Output format (yaml or json)"
    ),
) -> None:
    """Display the effective NeuroGuide configuration."""
    try:
        config = ConfigurationManager(config_path=config_path).load()
    except ConfigurationError as exc:
        typer.echo(f"❌ Failed to load configuration: {exc}")
        raise typer.Exit(code=1)

    data = config.model_dump(mode="json")

    if section:
        if section not in data:
            typer.echo(f"❌ Unknown section: {section}")
            typer.echo(f"Available sections: {', '.join(data.keys())}")
            raise typer.Exit(code=1)
        data = {section: data[section]}

    if format == "json":
        output = json.dumps(data, indent=2)
    else:
        output = yaml.safe_dump(data, default_flow_style=False, sort_keys=False)

    typer.echo(output)


@config_app.command("init")
def init_config(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to configuration file"
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing file"
    ),
) -> None:
    """Write a configuration file populated with defaults."""
    if config_path.exists() and not force:
        typer.echo(f"❌ Configuration already exists: {config_path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    ConfigurationManager(config_path=config_path).save(NeuroGuideConfig())
    typer.echo(f"✅ Wrote default configuration: {config_path}")


__all__ = ["config_app"]
