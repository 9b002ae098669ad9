from __future__ import annotations

import platform
import sys

from jobmail.config import Settings
from jobmail.core.db import SnapshotRepository


def run_doctor_checks(settings: Settings) -> list[dict[str, str]]:
    checks: list[dict[str, str]] = []

    checks.append(
        {
            "check": "python_version",
            "status": "ok" if sys.version_info >= (3, 11) else "warn",
            "detail": platform.python_version(),
        }
    )

    checks.append(
        {
            "check": "db_parent",
            "status": "ok" if settings.db_path.parent.exists() else "warn",
            "detail": str(settings.db_path.parent),
        }
    )

    checks.append(
        {
            "check": "gmail_oauth_client_secret",
            "status": "ok" if settings.gmail_client_secret_path.exists() else "warn",
            "detail": str(settings.gmail_client_secret_path),
        }
    )

    checks.append(
        {
            "check": "gmail_oauth_token",
            "status": "ok" if settings.gmail_token_path.exists() else "warn",
            "detail": str(settings.gmail_token_path),
        }
    )

    checks.append(
        {
            "check": "gmail_account",
            "status": "ok",
            "detail": settings.gmail_account or "me (authenticated user)",
        }
    )

    try:
        zone = settings.resolve_timezone()
        checks.append(
            {
                "check": "timezone",
                "status": "ok",
                "detail": settings.timezone if zone else "message header offset",
            }
        )
    except ValueError as exc:
        checks.append({"check": "timezone", "status": "warn", "detail": str(exc)})

    if settings.db_path.exists():
        with SnapshotRepository(settings.db_path) as repository:
            repository.migrate()
            stored = repository.load_latest_run()
        checks.append(
            {
                "check": "last_snapshot",
                "status": "ok" if stored else "warn",
                "detail": (
                    f"run {stored.run_id}, {len(stored.messages)} messages, finished {stored.finished_at}"
                    if stored
                    else "no successful refresh yet"
                ),
            }
        )
    else:
        checks.append({"check": "last_snapshot", "status": "warn", "detail": "database not initialised"})

    return checks
