from __future__ import annotations

import json
import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from jobmail.core.models import Category, ClassifiedMessage

from .migrations import apply_migrations, connect_db


@dataclass(slots=True)
class StoredRun:
    run_id: int
    correlation_id: str
    finished_at: datetime | None
    messages: list[ClassifiedMessage]


class SnapshotRepository:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.connection = connect_db(db_path)

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> SnapshotRepository:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def migrate(self) -> list[str]:
        return apply_migrations(self.connection)

    @staticmethod
    def _to_json(payload: dict[str, Any] | list[Any] | None) -> str | None:
        if payload is None:
            return None
        return json.dumps(payload, ensure_ascii=False)

    def start_refresh_run(self, correlation_id: str, query: str, started_at: str) -> int:
        """Record a new ``running`` pass; a correlation id names exactly one run."""
        try:
            with self.connection:
                cursor = self.connection.execute(
                    """
                    INSERT INTO refresh_runs (correlation_id, query, started_at, status)
                    VALUES (?, ?, ?, 'running')
                    """,
                    (correlation_id, query, started_at),
                )
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"Refresh run {correlation_id!r} is already recorded") from exc
        return int(cursor.lastrowid)

    def fail_refresh_run(
        self,
        run_id: int,
        finished_at: str,
        stats: dict[str, Any] | None,
        error_text: str,
    ) -> None:
        with self.connection:
            self.connection.execute(
                """
                UPDATE refresh_runs
                SET finished_at = ?, status = 'failed', stats_json = ?, error_text = ?
                WHERE id = ?
                """,
                (finished_at, self._to_json(stats), error_text, run_id),
            )

    def commit_refresh_run(
        self,
        run_id: int,
        finished_at: str,
        messages: Sequence[tuple[str | None, ClassifiedMessage]],
        stats: dict[str, Any] | None,
    ) -> None:
        """Store every message of the run and mark it successful in one transaction."""
        with self.connection:
            self.connection.execute("DELETE FROM classified_messages WHERE run_id = ?", (run_id,))
            self.connection.executemany(
                """
                INSERT INTO classified_messages (
                    run_id, position, external_message_id, subject, sender,
                    date_header, classification, company
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        run_id,
                        position,
                        external_id,
                        message.subject,
                        message.sender,
                        message.date,
                        message.classification.value,
                        message.company,
                    )
                    for position, (external_id, message) in enumerate(messages)
                ],
            )
            self.connection.execute(
                """
                UPDATE refresh_runs
                SET finished_at = ?, status = 'success', stats_json = ?, error_text = NULL
                WHERE id = ?
                """,
                (finished_at, self._to_json(stats), run_id),
            )

    def load_latest_run(self) -> StoredRun | None:
        run = self.connection.execute(
            """
            SELECT id, correlation_id, finished_at
            FROM refresh_runs
            WHERE status = 'success'
            ORDER BY id DESC
            LIMIT 1
            """
        ).fetchone()
        if run is None:
            return None

        rows = self.connection.execute(
            """
            SELECT subject, sender, date_header, classification, company
            FROM classified_messages
            WHERE run_id = ?
            ORDER BY position ASC
            """,
            (run["id"],),
        ).fetchall()
        messages = [
            ClassifiedMessage(
                subject=row["subject"],
                sender=row["sender"],
                date=row["date_header"],
                classification=Category(row["classification"]),
                company=row["company"],
            )
            for row in rows
        ]
        finished_at = datetime.fromisoformat(run["finished_at"]) if run["finished_at"] else None
        return StoredRun(
            run_id=int(run["id"]),
            correlation_id=run["correlation_id"],
            finished_at=finished_at,
            messages=messages,
        )

    def fetch_runs(self, limit: int = 20) -> list[dict[str, Any]]:
        rows = self.connection.execute(
            """
            SELECT id, correlation_id, query, started_at, finished_at, status, stats_json, error_text
            FROM refresh_runs
            ORDER BY id DESC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
        result = []
        for row in rows:
            item = dict(row)
            item["stats"] = json.loads(item.pop("stats_json")) if row["stats_json"] else None
            result.append(item)
        return result

    def prune_runs(self, keep: int) -> int:
        """Keep the newest ``keep`` successful runs; older and failed runs are deleted with their messages."""
        with self.connection:
            cursor = self.connection.execute(
                """
                DELETE FROM refresh_runs
                WHERE status != 'running'
                  AND id NOT IN (
                    SELECT id FROM refresh_runs WHERE status = 'success' ORDER BY id DESC LIMIT ?
                  )
                """,
                (keep,),
            )
        return cursor.rowcount
