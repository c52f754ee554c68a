"""Command implementations for CLI."""

import asyncio
from typing import List

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from auroraboot.models.options import BuildOptions
from auroraboot.pipeline import PipelineBuilder
from auroraboot.runner import run_build
from auroraboot.utils.logging import setup_logging


console = Console()


def build_images(options: BuildOptions, quiet: bool = False) -> List[str]:
    """Run the pipeline with a progress spinner and list the produced files."""
    setup_logging(options.log_level)
    
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        disable=quiet,
    ) as progress:
        task = progress.add_task("Preparing build...", total=None)
        
        def announce(stage_id: str):
            progress.update(task, description=f"Running {stage_id}...")
            console.print(f"[cyan]>>[/cyan] {stage_id}")
            
        result = asyncio.run(run_build(options, on_stage=announce))
        
        progress.update(task, completed=True)
        
    table = Table(title="Outputs")
    table.add_column("File", style="green")
    for output in result.outputs:
        table.add_row(str(output))
    console.print(table)
    
    return [str(output) for output in result.outputs]


def show_plan(options: BuildOptions):
    """Print every known stage with its applies/skipped decision."""
    decisions = PipelineBuilder().plan(options)
    
    table = Table(title="Pipeline")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Stage", style="cyan")
    table.add_column("Decision")
    table.add_column("Description", style="dim")
    
    position = 0
    for decision in decisions:
        if decision.applies:
            position += 1
            table.add_row(str(position), decision.stage.id, "[green]applies[/green]", decision.stage.description)
        else:
            table.add_row("", decision.stage.id, "[yellow]skipped[/yellow]", decision.stage.description)
            
    console.print(table)
