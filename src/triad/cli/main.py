"""
``triad`` command line.

    triad serve             run the HTTP service
    triad logs              tail the Kafka log topic
    triad migrate up|down   apply or revert database migrations
    triad config show       print the resolved configuration
"""

import typer

from triad import __version__
from triad.cli import config, logs, serve
from triad.migrations import cli as migrate_cli

app = typer.Typer(
    name="triad",
    help="Triad - HTTP service backed by MongoDB, Redis and Kafka",
    no_args_is_help=False,
)

for sub_app in (serve.app, logs.app, config.app, migrate_cli.app):
    app.add_typer(sub_app, name=sub_app.info.name)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"triad version {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def entrypoint(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_print_version,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """
    Run 'triad <command> --help' for help on a specific command.
    """
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def main():
    app()


if __name__ == "__main__":
    main()
