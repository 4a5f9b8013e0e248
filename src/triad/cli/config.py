"""
triad config - Inspect the resolved configuration.
"""

from pathlib import Path

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax

from triad.config import load_config
from triad.exceptions import ConfigurationError

app = typer.Typer(name="config", help="Inspect Triad configuration")

console = Console()


@app.command("show")
def show(
    env: str = typer.Option(None, help="Environment to resolve"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
    plain: bool = typer.Option(False, "--plain", help="Print YAML without highlighting"),
):
    """
    Show the configuration after defaults, YAML files and environment overrides.
    """
    try:
        cfg = load_config(project_dir, env=env)
        cfg.validate()
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)

    content = yaml.safe_dump(cfg.data, sort_keys=False)
    if plain:
        typer.echo(content)
        return

    console.print(f"\n[bold]Configuration ({cfg.environment})[/bold]\n")
    console.print(Syntax(content, "yaml", theme="monokai", line_numbers=False))


@app.command("files")
def files(
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
):
    """List configuration files found in the project directory."""
    config_files = sorted(project_dir.glob("config*.yaml"))
    if not config_files:
        console.print("[yellow]No configuration files found[/yellow]")
        return

    for config_file in config_files:
        env_name = "default" if config_file.name == "config.yaml" else config_file.stem.replace("config.", "")
        console.print(f"  [cyan]{env_name}[/cyan] ({config_file.name})")
