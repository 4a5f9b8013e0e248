"""
Migration runner.

Applies pending migrations in filename order and reverts the most recently
applied one.
"""

from pathlib import Path
from typing import Any

from triad.exceptions import MigrationError
from triad.migrations.utils import (
    DEFAULT_CHANGELOG,
    MigrationResult,
    get_applied_migrations,
    get_changelog_entries,
    get_migration_files,
    latest_applied_migration,
    load_migration,
    record_migration,
    remove_migration_record,
)
from triad.utils.logging import get_logger

logger = get_logger("triad.migrations")


async def list_pending_migrations(db: Any, migrations_dir: Path, changelog: str = DEFAULT_CHANGELOG) -> list[str]:
    """
    List migrations that have not been applied yet.

    Returns:
        Pending migration file names, sorted
    """
    applied = set(await get_applied_migrations(db, changelog))
    return [f.name for f in get_migration_files(migrations_dir) if f.name not in applied]


async def migration_status(db: Any, migrations_dir: Path, changelog: str = DEFAULT_CHANGELOG) -> list[dict[str, Any]]:
    """
    Status of every migration file.

    Returns:
        One dict per file: ``migration_file``, ``status`` ("applied" or
        "pending") and ``applied_at``
    """
    entries = await get_changelog_entries(db, changelog)
    return [
        {
            "migration_file": f.name,
            "status": "applied" if f.name in entries else "pending",
            "applied_at": entries.get(f.name),
        }
        for f in get_migration_files(migrations_dir)
    ]


async def run_migrations(
    db: Any,
    migrations_dir: Path,
    changelog: str = DEFAULT_CHANGELOG,
    dry_run: bool = False,
) -> list[MigrationResult]:
    """
    Apply all pending migrations.

    Stops at the first failure; migrations after it stay pending.

    Args:
        db: Database handle
        migrations_dir: Directory holding migration modules
        changelog: Collection recording applied migrations
        dry_run: If True, load and report without applying

    Returns:
        One result per migration attempted
    """
    if not migrations_dir.is_dir():
        logger.info(f"Migrations directory not found: {migrations_dir}")
        return []

    pending = await list_pending_migrations(db, migrations_dir, changelog)
    if not pending:
        logger.info("No pending migrations")
        return []

    results: list[MigrationResult] = []
    for file_name in pending:
        try:
            migration = load_migration(migrations_dir / file_name)
            if dry_run:
                logger.info(f"[DRY RUN] Would apply: {file_name}")
                results.append(MigrationResult(migration_file=file_name, success=True, dry_run=True))
                continue

            logger.info(f"Applying migration: {file_name}")
            await migration.up(db)
            await record_migration(db, file_name, changelog)
        except Exception as e:
            logger.error(f"Migration failed: {file_name} - {e}")
            results.append(MigrationResult(migration_file=file_name, success=False, error_message=str(e)))
            break

        logger.info(f"Migration applied: {file_name}")
        results.append(MigrationResult(migration_file=file_name, success=True))

    return results


async def rollback_last(
    db: Any,
    migrations_dir: Path,
    changelog: str = DEFAULT_CHANGELOG,
) -> MigrationResult | None:
    """
    Revert the most recently applied migration.

    Returns:
        The result, or None when nothing has been applied
    """
    file_name = await latest_applied_migration(db, changelog)
    if file_name is None:
        logger.info("No applied migrations to roll back")
        return None

    path = migrations_dir / file_name
    try:
        if not path.is_file():
            raise MigrationError(file_name, f"file not found: {path}")
        migration = load_migration(path)
        logger.info(f"Reverting migration: {file_name}")
        await migration.down(db)
        await remove_migration_record(db, file_name, changelog)
    except Exception as e:
        logger.error(f"Rollback failed: {file_name} - {e}")
        return MigrationResult(migration_file=file_name, success=False, direction="down", error_message=str(e))

    logger.info(f"Migration reverted: {file_name}")
    return MigrationResult(migration_file=file_name, success=True, direction="down")
