"""
triad serve - Long-running HTTP service.

Runs Triad as an HTTP service with:
- GET / and GET /health
- GET /api/data
- GET/POST /api/cache/{key}
"""

from pathlib import Path

import typer

from triad.config import load_config
from triad.exceptions import ConfigurationError, InitializationError
from triad.service.server import run_service
from triad.utils.logging import get_logger, setup_logging_from_config

logger = get_logger("triad.cli.serve")

app = typer.Typer(name="serve", help="Run Triad as a long-running service", invoke_without_command=True)


@app.callback()
def serve(
    ctx: typer.Context,
    env: str | None = typer.Option(None, help="Environment (development, staging, production)"),
    host: str | None = typer.Option(None, help="Host to bind to (default: server.host)"),
    port: int | None = typer.Option(None, help="Port to bind to (default: server.port)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    Run Triad as a long-running service.

    MongoDB and Redis must be reachable at startup. Kafka is retried and,
    if it stays down, application logs go to the console instead.
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        config = load_config(project_dir, env=env)
        config.validate()
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)

    if verbose:
        config.data.setdefault("logging", {})["level"] = "DEBUG"
    setup_logging_from_config(config, project_dir=project_dir)

    try:
        run_service(config, host=host, port=port)
    except InitializationError as e:
        logger.error(str(e))
        raise typer.Exit(1)
