"""
triad logs - Tail the application log topic.
"""

import asyncio
import contextlib
from pathlib import Path

import typer
from rich.console import Console

from triad.config import KafkaSettings, load_config
from triad.exceptions import ConfigurationError
from triad.services.log_viewer import LogViewer

app = typer.Typer(name="logs", help="View application logs published to Kafka", invoke_without_command=True)

console = Console()


@app.callback()
def logs(
    ctx: typer.Context,
    from_beginning: bool = typer.Option(False, "--from-beginning", help="Replay the topic from the earliest record"),
    env: str | None = typer.Option(None, help="Environment (development, staging, production)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
) -> None:
    """
    Print application log records as they are published.

    Press Ctrl+C to stop.
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        settings = KafkaSettings.from_config(load_config(project_dir, env=env))
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)

    viewer = LogViewer(settings, from_beginning=from_beginning, console=console)
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(viewer.run())
    console.print("\nShutting down log viewer...")
