"""SQLite connection setup and schema versioning for the refresh-run store.

Each ``NNN_name.sql`` file under ``migrations/`` is one schema version. A
version and its ``jobmail_schema`` row are written in the same transaction,
so an interrupted migration is retried from scratch on the next start.
"""

from __future__ import annotations

import logging
import re
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"
VERSION_PATTERN = re.compile(r"^\d{3}_[a-z0-9_]+$")


def connect_db(db_path: Path) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(str(db_path))
    connection.row_factory = sqlite3.Row
    # classified_messages rows follow their run on prune
    connection.execute("PRAGMA foreign_keys = ON")
    return connection


def applied_versions(connection: sqlite3.Connection) -> set[str]:
    with connection:
        connection.execute(
            """
            CREATE TABLE IF NOT EXISTS jobmail_schema (
                version TEXT PRIMARY KEY,
                applied_at TEXT NOT NULL
            )
            """
        )
    return {row["version"] for row in connection.execute("SELECT version FROM jobmail_schema")}


def pending_migrations(connection: sqlite3.Connection, migrations_dir: Path = MIGRATIONS_DIR) -> list[Path]:
    applied = applied_versions(connection)
    pending = []
    for path in sorted(migrations_dir.glob("*.sql")):
        if not VERSION_PATTERN.match(path.stem):
            raise ValueError(f"Migration file name must look like 001_name.sql: {path.name}")
        if path.stem not in applied:
            pending.append(path)
    return pending


def apply_migrations(connection: sqlite3.Connection, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
    executed: list[str] = []
    for migration_file in pending_migrations(connection, migrations_dir):
        version = migration_file.stem
        applied_at = datetime.now(timezone.utc).isoformat()
        script = migration_file.read_text(encoding="utf-8")
        # executescript commits on entry, so the transaction lives inside the script
        try:
            connection.executescript(
                "BEGIN;\n"
                f"{script}\n"
                "INSERT INTO jobmail_schema (version, applied_at) "
                f"VALUES ('{version}', '{applied_at}');\n"
                "COMMIT;"
            )
        except sqlite3.Error:
            if connection.in_transaction:
                connection.rollback()
            logger.error("Schema migration %s failed", version)
            raise
        logger.info("Applied schema migration %s", version)
        executed.append(version)
    return executed
