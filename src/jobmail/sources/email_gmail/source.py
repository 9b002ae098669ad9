from __future__ import annotations

import logging
from typing import Any

import httplib2
from google.auth import exceptions as google_auth_exceptions
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from jobmail.sources.models import CollaboratorError

from .auth import GmailAuthManager

logger = logging.getLogger(__name__)

# Gmail caps a single list page at 500 ids
MAX_PAGE_SIZE = 500
NON_RETRYABLE_STATUSES = {400, 401, 403, 404}
TRANSPORT_ERRORS = (google_auth_exceptions.TransportError, httplib2.HttpLib2Error, OSError)


def _status_of(exc: HttpError) -> int | None:
    status = getattr(exc, "status_code", None)
    if status is None and getattr(exc, "resp", None) is not None:
        status = getattr(exc.resp, "status", None)
    return int(status) if status is not None else None


class GmailMailClient:
    """Gmail API mailbox reader.

    ``account`` is the mailbox address passed as ``userId``; without it the
    authenticated user (``me``) is read. Every API and transport failure
    leaves this class as a ``CollaboratorError``.
    """

    def __init__(self, auth_manager: GmailAuthManager, account: str | None = None, interactive: bool = False):
        self.auth_manager = auth_manager
        self.user_id = account or "me"
        self.interactive = interactive
        self._users = None

    def _users_resource(self):
        if self._users is None:
            try:
                creds = self.auth_manager.ensure_credentials(interactive=self.interactive)
            except (google_auth_exceptions.RefreshError, ValueError, PermissionError, FileNotFoundError) as exc:
                raise CollaboratorError(f"Gmail credentials unavailable: {exc}", retryable=False) from exc
            except TRANSPORT_ERRORS as exc:
                raise CollaboratorError(f"Gmail credentials refresh failed: {exc}") from exc
            service = build("gmail", "v1", credentials=creds, cache_discovery=False)
            self._users = service.users()
        return self._users

    def _execute(self, request, action: str) -> dict[str, Any]:  # noqa: ANN001
        try:
            return request.execute()
        except HttpError as exc:
            status = _status_of(exc)
            raise CollaboratorError(
                f"Gmail {action} failed with HTTP {status}: {exc}",
                retryable=status not in NON_RETRYABLE_STATUSES,
            ) from exc
        except google_auth_exceptions.RefreshError as exc:
            raise CollaboratorError(f"Gmail {action} failed, token was revoked: {exc}", retryable=False) from exc
        except TRANSPORT_ERRORS as exc:
            raise CollaboratorError(f"Gmail {action} failed: {exc}") from exc

    def list_recent_message_ids(self, max_results: int, query: str) -> list[str]:
        users = self._users_resource()
        request = users.messages().list(userId=self.user_id, q=query, maxResults=min(max_results, MAX_PAGE_SIZE))
        messages_meta: list[dict[str, Any]] = []
        while request is not None and len(messages_meta) < max_results:
            response = self._execute(request, "messages.list")
            messages_meta.extend(response.get("messages", []))
            if len(messages_meta) >= max_results:
                break
            request = users.messages().list_next(request, response)

        ids = [meta["id"] for meta in messages_meta[:max_results] if meta.get("id")]
        logger.info("Gmail listed %s message ids for query %r (user %s)", len(ids), query, self.user_id)
        return ids

    def get_message(self, message_id: str) -> dict[str, Any]:
        users = self._users_resource()
        request = users.messages().get(userId=self.user_id, id=message_id, format="full")
        return self._execute(request, f"messages.get({message_id})")
