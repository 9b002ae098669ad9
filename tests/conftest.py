from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Any

import pytest

from jobmail.config import Settings
from jobmail.core.db import SnapshotRepository
from jobmail.sources.models import CollaboratorError


def _b64(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def build_gmail_message(
    message_id: str,
    subject: str | None = None,
    sender: str | None = None,
    date: str | None = None,
    plain: str | None = None,
    html: str | None = None,
    snippet: str | None = None,
) -> dict[str, Any]:
    headers = []
    if subject is not None:
        headers.append({"name": "Subject", "value": subject})
    if sender is not None:
        headers.append({"name": "From", "value": sender})
    if date is not None:
        headers.append({"name": "Date", "value": date})

    parts = []
    if plain is not None:
        parts.append({"mimeType": "text/plain", "body": {"data": _b64(plain)}})
    if html is not None:
        parts.append({"mimeType": "text/html", "body": {"data": _b64(html)}})

    message: dict[str, Any] = {
        "id": message_id,
        "payload": {"mimeType": "multipart/alternative", "headers": headers, "parts": parts},
    }
    if snippet is not None:
        message["snippet"] = snippet
    return message


class FakeMailClient:
    def __init__(self, messages: list[dict[str, Any]], fail_on: set[str] | None = None, fail_list: bool = False):
        self.messages = {m["id"]: m for m in messages}
        self.order = [m["id"] for m in messages]
        self.fail_on = fail_on or set()
        self.fail_list = fail_list
        self.list_calls: list[tuple[int, str]] = []
        self.fetched: list[str] = []

    def list_recent_message_ids(self, max_results: int, query: str) -> list[str]:
        self.list_calls.append((max_results, query))
        if self.fail_list:
            raise CollaboratorError("messages.list failed with HTTP 503")
        return self.order[:max_results]

    def get_message(self, message_id: str) -> dict[str, Any]:
        if message_id in self.fail_on:
            raise CollaboratorError(f"messages.get({message_id}) timed out")
        self.fetched.append(message_id)
        return self.messages[message_id]


@pytest.fixture()
def gmail_message():
    return build_gmail_message


@pytest.fixture()
def make_mail_client():
    return FakeMailClient


@pytest.fixture()
def repository(tmp_path: Path):
    db_path = tmp_path / "jobmail.sqlite3"
    repo = SnapshotRepository(db_path)
    repo.migrate()
    try:
        yield repo
    finally:
        repo.close()


@pytest.fixture()
def settings(tmp_path: Path, monkeypatch) -> Settings:  # noqa: ANN001
    for name in ["JOBMAIL_HOME", "JOBMAIL_DATA_DIR", "JOBMAIL_DB_PATH", "JOBMAIL_TIMEZONE"]:
        monkeypatch.delenv(name, raising=False)
    root = tmp_path / "project"
    root.mkdir(parents=True, exist_ok=True)
    s = Settings.load(base_dir=root)
    s.ensure_directories()
    return s


@pytest.fixture()
def test_logger() -> logging.Logger:
    logger = logging.getLogger("jobmail-test")
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.INFO)
    return logger
