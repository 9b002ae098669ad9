from __future__ import annotations

import pytest

from jobmail.core.models import Category, ClassifiedMessage
from jobmail.core.snapshot import EMPTY_SNAPSHOT, Snapshot, SnapshotStore


def _messages() -> list[ClassifiedMessage]:
    return [
        ClassifiedMessage("Thanks for applying", "jobs@acme.com", "Mon, 06 Jan 2025 10:00:00 +0000", Category.APPLIED, "acme"),
        ClassifiedMessage("Interview", "hr@acme.com", "Mon, 06 Jan 2025 12:00:00 +0000", Category.INTERVIEW, "acme"),
    ]


def test_store_starts_empty() -> None:
    store = SnapshotStore()

    assert store.current is EMPTY_SNAPSHOT
    assert store.current.is_empty
    assert store.current.days == {}
    assert store.current.companies == {}


def test_publish_replaces_snapshot() -> None:
    store = SnapshotStore()
    snapshot = Snapshot.build(_messages(), version=store.next_version())

    store.publish(snapshot)

    assert store.current is snapshot
    assert store.version == 1
    assert snapshot.message_count == 2
    assert snapshot.companies["acme"].to_dict() == {"applied": 1, "interviews": 1}


def test_publish_rejects_stale_version() -> None:
    store = SnapshotStore()
    store.publish(Snapshot.build(_messages(), version=3))

    with pytest.raises(ValueError):
        store.publish(Snapshot.build([], version=2))
    assert store.version == 3


def test_snapshot_to_dict_uses_from_key() -> None:
    payload = Snapshot.build(_messages(), version=1).to_dict()

    bucket = payload["days"]["Monday, Jan 6, 2025"]
    assert bucket[0]["from"] == "jobs@acme.com"
    assert bucket[0]["classification"] == "Applied"
    assert payload["companies"] == {"acme": {"applied": 1, "interviews": 1}}
