from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


class CollaboratorError(RuntimeError):
    """Mail provider call failed (network, expired credentials, quota)."""

    def __init__(self, message: str, *, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


class MailClient(Protocol):
    def list_recent_message_ids(self, max_results: int, query: str) -> list[str]: ...

    def get_message(self, message_id: str) -> dict[str, Any]: ...


@dataclass(slots=True)
class MessageContent:
    message_id: str
    subject: str = ""
    sender: str = ""
    date: str = ""
    body: str = ""
