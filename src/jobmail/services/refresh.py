from __future__ import annotations

import logging
import sqlite3
import threading
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any

from jobmail.config import Settings
from jobmail.core.classify import classify
from jobmail.core.company import extract_company
from jobmail.core.db import SnapshotRepository
from jobmail.core.models import ClassifiedMessage
from jobmail.core.snapshot import EMPTY_SNAPSHOT, Snapshot, SnapshotStore
from jobmail.parsers import extract_message_content
from jobmail.sources.models import CollaboratorError, MailClient, MessageContent


class RefreshError(RuntimeError):
    def __init__(self, message: str, *, retryable: bool = False, stats: dict[str, Any] | None = None):
        super().__init__(message)
        self.retryable = retryable
        self.stats = stats or {}


@dataclass(slots=True)
class RefreshResult:
    ok: bool
    snapshot: Snapshot
    error: str | None = None
    retryable: bool = False
    stats: dict[str, Any] = field(default_factory=dict)


def classify_content(content: MessageContent) -> ClassifiedMessage:
    return ClassifiedMessage(
        subject=content.subject,
        sender=content.sender,
        date=content.date,
        classification=classify(content.subject, content.body, content.sender),
        company=extract_company(content.sender),
    )


def restore_snapshot(repository: SnapshotRepository, tz: tzinfo | None = None) -> Snapshot:
    stored = repository.load_latest_run()
    if stored is None:
        return EMPTY_SNAPSHOT
    return Snapshot.build(stored.messages, version=stored.run_id, refreshed_at=stored.finished_at, tz=tz)


class RefreshService:
    """Runs refresh passes against a mail client and owns the published snapshot.

    A pass lists recent message ids, fetches and classifies them one at a
    time in list order, aggregates once and publishes. Any collaborator
    failure aborts the pass and leaves the previous snapshot in place.
    """

    def __init__(
        self,
        mail_client: MailClient,
        store: SnapshotStore | None = None,
        repository: SnapshotRepository | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        *,
        max_results: int = 100,
        query: str = "newer_than:5d",
        tz: tzinfo | None = None,
        keep_runs: int | None = None,
    ):
        self.mail_client = mail_client
        self.store = store or SnapshotStore()
        self.repository = repository
        self.logger = logger or logging.getLogger(__name__)
        self.max_results = max_results
        self.query = query
        self.tz = tz
        self.keep_runs = keep_runs
        self._refresh_lock = threading.Lock()
        self.last_stats: dict[str, Any] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        mail_client: MailClient,
        repository: SnapshotRepository | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> RefreshService:
        return cls(
            mail_client=mail_client,
            repository=repository,
            logger=logger,
            max_results=settings.max_results,
            query=settings.recency_filter,
            tz=settings.resolve_timezone(),
            keep_runs=settings.keep_runs,
        )

    def load_persisted(self) -> Snapshot:
        if self.repository is None:
            return self.store.current
        snapshot = restore_snapshot(self.repository, tz=self.tz)
        if snapshot.version <= self.store.version:
            return self.store.current
        self.logger.info(
            "Restored snapshot from run %s (%s messages)", snapshot.version, snapshot.message_count
        )
        return self.store.publish(snapshot)

    def get_snapshot(self) -> Snapshot:
        return self.store.current

    def _fetch_and_classify(self, stats: dict[str, Any]) -> list[tuple[str, ClassifiedMessage]]:
        message_ids = self.mail_client.list_recent_message_ids(self.max_results, self.query)
        stats["messages_listed"] = len(message_ids)
        self.logger.info("Listed %s message ids (query=%r)", len(message_ids), self.query)

        classified: list[tuple[str, ClassifiedMessage]] = []
        for message_id in message_ids:
            raw = self.mail_client.get_message(message_id)
            content = extract_message_content(raw)
            message = classify_content(content)
            classified.append((message_id, message))
            stats["messages_classified"] += 1
            self.logger.debug(
                "Message %s classified as %s (company=%s)",
                message_id,
                message.classification.value,
                message.company,
            )
        return classified

    def refresh(self, correlation_id: str | None = None) -> Snapshot:
        correlation_id = correlation_id or uuid.uuid4().hex
        with self._refresh_lock:
            return self._refresh_locked(correlation_id)

    def _refresh_locked(self, correlation_id: str) -> Snapshot:
        started_at = datetime.now(timezone.utc)
        stats: dict[str, Any] = {"messages_listed": 0, "messages_classified": 0}

        run_id = None
        if self.repository is not None:
            try:
                run_id = self.repository.start_refresh_run(
                    correlation_id=correlation_id,
                    query=self.query,
                    started_at=started_at.isoformat(),
                )
            except (ValueError, sqlite3.Error) as exc:
                self.logger.error("Refresh run could not be started: %s", exc)
                raise RefreshError(f"Refresh run could not be started: {exc}", stats=stats) from exc

        try:
            classified = self._fetch_and_classify(stats)
            messages = [message for _, message in classified]
            stats["categories"] = dict(Counter(m.classification.value for m in messages))

            finished_at = datetime.now(timezone.utc)
            version = max(run_id or 0, self.store.next_version())
            snapshot = Snapshot.build(messages, version=version, refreshed_at=finished_at, tz=self.tz)
            stats["days"] = len(snapshot.days)
            stats["companies"] = len(snapshot.companies)

            if self.repository is not None and run_id is not None:
                self.repository.commit_refresh_run(
                    run_id=run_id,
                    finished_at=finished_at.isoformat(),
                    messages=classified,
                    stats=stats,
                )
        except CollaboratorError as exc:
            self._record_failure(run_id, stats, exc)
            raise RefreshError(
                f"Mail provider failed after {stats['messages_classified']} of "
                f"{stats['messages_listed']} messages: {exc}",
                retryable=exc.retryable,
                stats=stats,
            ) from exc
        except sqlite3.Error as exc:
            self._record_failure(run_id, stats, exc)
            raise RefreshError(f"Snapshot could not be stored: {exc}", stats=stats) from exc
        except Exception as exc:
            self._record_failure(run_id, stats, exc)
            raise

        self.last_stats = stats
        self.store.publish(snapshot)
        self.logger.info(
            "Snapshot v%s published: %s messages, %s days, %s companies",
            snapshot.version,
            snapshot.message_count,
            len(snapshot.days),
            len(snapshot.companies),
        )

        if self.repository is not None and self.keep_runs:
            pruned = self.repository.prune_runs(self.keep_runs)
            if pruned:
                self.logger.info("Pruned %s old refresh runs", pruned)
        return snapshot

    def _record_failure(self, run_id: int | None, stats: dict[str, Any], exc: Exception) -> None:
        self.logger.error("Refresh failed: %s", exc)
        if self.repository is None or run_id is None:
            return
        try:
            self.repository.fail_refresh_run(
                run_id=run_id,
                finished_at=datetime.now(timezone.utc).isoformat(),
                stats=stats,
                error_text=str(exc),
            )
        except sqlite3.Error as db_exc:
            self.logger.warning("Could not record failed run %s: %s", run_id, db_exc)

    def trigger_refresh(self, correlation_id: str | None = None) -> RefreshResult:
        try:
            snapshot = self.refresh(correlation_id=correlation_id)
        except RefreshError as exc:
            return RefreshResult(
                ok=False,
                snapshot=self.store.current,
                error=str(exc),
                retryable=exc.retryable,
                stats=exc.stats,
            )
        except Exception as exc:  # noqa: BLE001
            self.logger.exception("Unexpected refresh failure")
            return RefreshResult(
                ok=False,
                snapshot=self.store.current,
                error=f"{exc.__class__.__name__}: {exc}",
            )
        return RefreshResult(ok=True, snapshot=snapshot, stats=dict(self.last_stats))
