"""Main CLI implementation using Typer."""

import asyncio
from pathlib import Path
from typing import Any, Callable, List, Optional

import typer
from rich.console import Console

from auroraboot.cli.commands import build_images, show_plan
from auroraboot.config import ConfigManager
from auroraboot.exceptions import AuroraBootError, StageExecutionError


# Create Typer app
app = typer.Typer(
    name="auroraboot",
    help="AuroraBoot - build Kairos disk images from ISOs and container images",
    add_completion=False,
)

# Console for rich output
console = Console()


def _run_cli_command(
    handler: Callable[..., Any],
    set_values: List[str],
    config: Optional[Path],
    cloud_config: Optional[Path],
    debug: bool,
):
    """Helper to load options, run a command and report errors."""
    overrides = list(set_values)
    if debug:
        overrides.append("log_level=DEBUG")
    try:
        options = asyncio.run(ConfigManager().load(config, overrides, cloud_config))
        handler(options)
    except StageExecutionError as e:
        console.print(f"[red]Error:[/red] {e}")
        console.print(f"[dim]Stages entered: {', '.join(e.trail)}[/dim]")
        raise typer.Exit(1) from e
    except AuroraBootError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command("build")
def build_command(
    set_values: List[str] = typer.Option(
        [], "--set", "-s", help="Override an option, e.g. disk.raw=true"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML file with build options"
    ),
    cloud_config: Optional[Path] = typer.Option(
        None, "--cloud-config", help="Cloud config to install into the image"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Build the requested disk images."""
    _run_cli_command(build_images, set_values, config, cloud_config, debug)


@app.command("plan")
def plan_command(
    set_values: List[str] = typer.Option(
        [], "--set", "-s", help="Override an option, e.g. disk.raw=true"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML file with build options"
    ),
    cloud_config: Optional[Path] = typer.Option(
        None, "--cloud-config", help="Cloud config to install into the image"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Show which stages a build would run, without running them."""
    _run_cli_command(show_plan, set_values, config, cloud_config, debug)


def main():
    """Main entry point for CLI."""
    app()
