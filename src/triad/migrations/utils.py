"""
Migration utilities.

Discovery and loading of migration modules, and the changelog collection
that records which of them have been applied.
"""

import importlib.util
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from triad.exceptions import MigrationError
from triad.utils.logging import get_logger

logger = get_logger("triad.migrations")

DEFAULT_CHANGELOG = "changelog"

MigrationStep = Callable[[Any], Awaitable[None]]


@dataclass
class MigrationResult:
    """Result of applying or reverting one migration."""

    migration_file: str
    success: bool
    direction: str = "up"
    error_message: str | None = None
    dry_run: bool = False


@dataclass
class Migration:
    """A loaded migration module."""

    file_name: str
    up: MigrationStep
    down: MigrationStep
    description: str | None = None


def get_migration_files(migrations_dir: Path) -> list[Path]:
    """
    Get all migration modules from the migrations directory.

    Files starting with an underscore (``__init__.py``, helpers) are skipped.

    Returns:
        Migration file paths, sorted by filename
    """
    if not migrations_dir.is_dir():
        return []
    return sorted(f for f in migrations_dir.glob("*.py") if f.is_file() and not f.name.startswith("_"))


def load_migration(path: Path) -> Migration:
    """
    Import a migration module from its file.

    Raises:
        MigrationError: if the module cannot be imported or does not define
            ``async def up(db)`` and ``async def down(db)``
    """
    module_name = f"triad_migration_{path.stem.replace('-', '_')}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise MigrationError(path.name, "cannot be loaded as a Python module")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise MigrationError(path.name, f"failed to import: {e}") from e

    steps = {}
    for name in ("up", "down"):
        step = getattr(module, name, None)
        if step is None or not inspect.iscoroutinefunction(step):
            raise MigrationError(path.name, f"must define 'async def {name}(db)'")
        steps[name] = step

    return Migration(
        file_name=path.name,
        up=steps["up"],
        down=steps["down"],
        description=inspect.getdoc(module),
    )


async def get_applied_migrations(db: Any, changelog: str = DEFAULT_CHANGELOG) -> list[str]:
    """Names of applied migrations, sorted by filename."""
    docs = await db[changelog].find({}, {"file_name": 1}).to_list()
    return sorted(doc["file_name"] for doc in docs)


async def get_changelog_entries(db: Any, changelog: str = DEFAULT_CHANGELOG) -> dict[str, Any]:
    """Map of applied migration name -> applied_at."""
    docs = await db[changelog].find({}).to_list()
    return {doc["file_name"]: doc.get("applied_at") for doc in docs}


async def latest_applied_migration(db: Any, changelog: str = DEFAULT_CHANGELOG) -> str | None:
    """
    Name of the most recently applied migration, by ``applied_at``.

    Records without ``applied_at`` count as older than any timestamped one;
    equal timestamps fall back to filename order.
    """
    entries = await get_changelog_entries(db, changelog)
    if not entries:
        return None

    def applied_order(item: tuple[str, Any]) -> tuple:
        file_name, applied_at = item
        if applied_at is None:
            return (0, 0, file_name)
        return (1, applied_at, file_name)

    return max(entries.items(), key=applied_order)[0]


async def record_migration(db: Any, file_name: str, changelog: str = DEFAULT_CHANGELOG) -> None:
    await db[changelog].insert_one({"file_name": file_name, "applied_at": datetime.now(UTC)})


async def remove_migration_record(db: Any, file_name: str, changelog: str = DEFAULT_CHANGELOG) -> None:
    await db[changelog].delete_one({"file_name": file_name})
