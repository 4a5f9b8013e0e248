"""
CLI commands for migrations.
"""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import typer

from triad.config import MigrationSettings, MongoSettings, load_config
from triad.migrations.runner import migration_status, rollback_last, run_migrations
from triad.services.database import DatabaseService

T = TypeVar("T")

app = typer.Typer(name="migrate", help="Run database migrations")


def _run_with_database(
    project_dir: Path,
    env: str | None,
    action: Callable[[Any, Path, str], Awaitable[T]],
) -> T:
    """Connect to MongoDB, run ``action(db, migrations_dir, changelog)``, disconnect."""
    config = load_config(project_dir, env=env)
    settings = MigrationSettings.from_config(config)
    migrations_dir = Path(settings.dir)
    if not migrations_dir.is_absolute():
        migrations_dir = project_dir / migrations_dir

    async def _main() -> T:
        database = DatabaseService(MongoSettings.from_config(config))
        await database.connect()
        try:
            return await action(database.get_db(), migrations_dir, settings.changelog_collection)
        finally:
            await database.disconnect()

    return asyncio.run(_main())


@app.command("up")
def up(
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
    env: str = typer.Option(None, "--env", "-e", help="Environment name"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be applied without running"),
):
    """
    Apply all pending migrations.

    Examples:
        triad migrate up --env production
        triad migrate up --dry-run
    """
    try:
        results = _run_with_database(
            project_dir,
            env,
            lambda db, path, changelog: run_migrations(db, path, changelog, dry_run=dry_run),
        )
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not results:
        typer.echo("No migrations to run")
        return

    if dry_run:
        typer.echo(f"[DRY RUN] Would apply {len(results)} migration(s):")
    for result in results:
        if result.success:
            typer.echo(f"  ✓ {result.migration_file}")
        else:
            typer.echo(f"  ✗ {result.migration_file}: {result.error_message}", err=True)

    if any(not r.success for r in results):
        raise typer.Exit(1)


@app.command("down")
def down(
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
    env: str = typer.Option(None, "--env", "-e", help="Environment name"),
):
    """Revert the most recently applied migration."""
    try:
        result = _run_with_database(project_dir, env, rollback_last)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if result is None:
        typer.echo("No applied migrations to roll back")
        return
    if not result.success:
        typer.echo(f"  ✗ {result.migration_file}: {result.error_message}", err=True)
        raise typer.Exit(1)
    typer.echo(f"  ↺ {result.migration_file} reverted")


@app.command("status")
def status(
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
    env: str = typer.Option(None, "--env", "-e", help="Environment name"),
):
    """List migrations with their applied/pending status."""
    try:
        entries = _run_with_database(project_dir, env, migration_status)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not entries:
        typer.echo("No migrations found")
        return

    applied = sum(1 for m in entries if m["status"] == "applied")
    typer.echo(f"Migrations ({len(entries)} total):")
    typer.echo(f"  Applied: {applied}, Pending: {len(entries) - applied}\n")
    for entry in entries:
        if entry["status"] == "applied":
            applied_at = entry.get("applied_at")
            timestamp = f" ({applied_at})" if applied_at else ""
            typer.echo(f"  ✓ {entry['migration_file']}{timestamp}")
        else:
            typer.echo(f"  ⏳ {entry['migration_file']} (pending)")
