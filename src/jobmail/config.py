from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path

from dateutil import tz
from dotenv import load_dotenv

DEFAULT_MAX_RESULTS = 100
DEFAULT_RECENCY_FILTER = "newer_than:5d"
DEFAULT_KEEP_RUNS = 10


@dataclass(slots=True)
class Settings:
    root_dir: Path
    data_dir: Path
    db_path: Path
    logs_dir: Path
    exports_dir: Path
    gmail_client_secret_path: Path
    gmail_token_path: Path
    gmail_account: str | None
    max_results: int = DEFAULT_MAX_RESULTS
    recency_filter: str = DEFAULT_RECENCY_FILTER
    timezone: str | None = None
    keep_runs: int = DEFAULT_KEEP_RUNS

    @classmethod
    def load(cls, base_dir: Path | None = None) -> Settings:
        load_dotenv(override=False)

        root_env = os.getenv("JOBMAIL_HOME")
        root_dir = Path(root_env).expanduser().resolve() if root_env else (base_dir or Path.cwd()).resolve()

        data_dir = Path(os.getenv("JOBMAIL_DATA_DIR", root_dir / "data")).expanduser().resolve()
        db_path = Path(os.getenv("JOBMAIL_DB_PATH", data_dir / "jobmail.sqlite3")).expanduser().resolve()
        logs_dir = Path(os.getenv("JOBMAIL_LOG_DIR", root_dir / "logs")).expanduser().resolve()
        exports_dir = Path(os.getenv("JOBMAIL_EXPORT_DIR", root_dir / "exports")).expanduser().resolve()

        gmail_client_secret_path = Path(
            os.getenv("GMAIL_OAUTH_CLIENT_SECRET_PATH", root_dir / "secrets" / "gmail_client_secret.json")
        ).expanduser().resolve()
        gmail_token_path = Path(
            os.getenv("GMAIL_OAUTH_TOKEN_PATH", data_dir / "auth" / "gmail_token.json")
        ).expanduser().resolve()
        gmail_account = os.getenv("GMAIL_ACCOUNT")

        max_results = int(os.getenv("JOBMAIL_MAX_RESULTS", str(DEFAULT_MAX_RESULTS)))
        if max_results <= 0:
            raise ValueError(f"JOBMAIL_MAX_RESULTS must be positive, got {max_results}")
        recency_filter = os.getenv("JOBMAIL_RECENCY_FILTER", DEFAULT_RECENCY_FILTER).strip()
        timezone = os.getenv("JOBMAIL_TIMEZONE") or None
        keep_runs = int(os.getenv("JOBMAIL_KEEP_RUNS", str(DEFAULT_KEEP_RUNS)))

        return cls(
            root_dir=root_dir,
            data_dir=data_dir,
            db_path=db_path,
            logs_dir=logs_dir,
            exports_dir=exports_dir,
            gmail_client_secret_path=gmail_client_secret_path,
            gmail_token_path=gmail_token_path,
            gmail_account=gmail_account,
            max_results=max_results,
            recency_filter=recency_filter,
            timezone=timezone,
            keep_runs=keep_runs,
        )

    def ensure_directories(self) -> None:
        for path in [self.root_dir, self.data_dir, self.logs_dir, self.exports_dir]:
            path.mkdir(parents=True, exist_ok=True)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.gmail_token_path.parent.mkdir(parents=True, exist_ok=True)

    def resolve_timezone(self) -> tzinfo | None:
        if not self.timezone:
            return None
        zone = tz.gettz(self.timezone)
        if zone is None:
            raise ValueError(f"Unknown JOBMAIL_TIMEZONE: {self.timezone}")
        return zone
