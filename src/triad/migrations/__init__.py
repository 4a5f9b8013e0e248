"""
Migration system for the MongoDB database.

Migrations are Python modules defining ``async def up(db)`` and
``async def down(db)``, applied in filename order.
"""

from triad.migrations.runner import list_pending_migrations, migration_status, rollback_last, run_migrations
from triad.migrations.utils import (
    Migration,
    MigrationResult,
    get_applied_migrations,
    get_migration_files,
    latest_applied_migration,
    load_migration,
)

__all__ = [
    "run_migrations",
    "rollback_last",
    "list_pending_migrations",
    "migration_status",
    "get_applied_migrations",
    "get_migration_files",
    "latest_applied_migration",
    "load_migration",
    "Migration",
    "MigrationResult",
]
