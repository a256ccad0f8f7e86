"""Command line entry points for NeuroGuide utilities."""

from typer import Typer

from .device import device_app
from ..hardware.config_cli import config_app


cli = Typer(help="NeuroGuide command line tools")
cli.add_typer(device_app, name="device")
cli.add_typer(config_app, name="config")

__all__ = ["cli", "device_app", "config_app"]
