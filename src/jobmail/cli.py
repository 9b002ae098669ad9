from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path

import typer
from dateutil import parser as dt_parser
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from jobmail.config import Settings
from jobmail.core.classify import classify
from jobmail.core.company import extract_company
from jobmail.core.db import SnapshotRepository
from jobmail.core.logging import configure_logging, get_logger
from jobmail.core.models import Category
from jobmail.core.snapshot import Snapshot
from jobmail.services import (
    RefreshService,
    export_snapshot,
    restore_snapshot,
    run_doctor_checks,
)
from jobmail.sources.email_gmail import GmailAuthManager, GmailMailClient

app = typer.Typer(no_args_is_help=True, help="jobmail CLI: classify recent job-search mail")
console = Console()

CATEGORY_STYLES = {
    Category.LINKEDIN: "blue",
    Category.APPLIED: "cyan",
    Category.INTERVIEW: "green",
    Category.REJECTION: "red",
    Category.UNCATEGORIZED: "dim",
}


def _load_settings(base_dir: Path | None = None) -> Settings:
    settings = Settings.load(base_dir=base_dir)
    settings.ensure_directories()
    return settings


def _load_snapshot(settings: Settings) -> Snapshot:
    with SnapshotRepository(settings.db_path) as repository:
        repository.migrate()
        return restore_snapshot(repository, tz=settings.resolve_timezone())


def _parse_category(value: str | None) -> Category | None:
    if not value:
        return None
    for category in Category:
        if category.value.lower() == value.strip().lower():
            return category
    raise typer.BadParameter(f"Unknown category: {value}. Use one of: {', '.join(c.value for c in Category)}")


def _day_matches(day_key: str, day: str | None) -> bool:
    if not day:
        return True
    try:
        wanted = dt_parser.parse(day).date()
    except (ValueError, OverflowError) as exc:
        raise typer.BadParameter(f"Cannot parse --day: {day}") from exc
    try:
        return dt_parser.parse(day_key).date() == wanted
    except (ValueError, OverflowError):
        return False


@app.command("init")
def init_command(
    base_dir: Path | None = typer.Option(None, help="Project root (defaults to the current directory)"),
) -> None:
    settings = _load_settings(base_dir=base_dir)
    with SnapshotRepository(settings.db_path) as repository:
        executed = repository.migrate()
    print(f"[green]Initialised[/green]. DB: {settings.db_path}")
    print(f"Migrations: {executed if executed else 'none pending'}")


@app.command("auth")
def auth_command() -> None:
    settings = _load_settings()
    try:
        if not settings.gmail_client_secret_path.exists():
            raise FileNotFoundError(f"Gmail client secret not found: {settings.gmail_client_secret_path}")
        manager = GmailAuthManager(settings.gmail_client_secret_path, settings.gmail_token_path)
        manager.ensure_credentials(interactive=True)
        print(f"[green]Gmail OAuth OK[/green]: {settings.gmail_token_path}")
    except Exception as exc:  # noqa: BLE001
        print(
            "[red]Gmail OAuth error[/red]: "
            f"{exc.__class__.__name__}: {exc} (secret: {settings.gmail_client_secret_path})"
        )
        raise typer.Exit(1) from exc


@app.command("refresh")
def refresh_command(
    max_results: int | None = typer.Option(None, help="Max messages per pass (defaults to JOBMAIL_MAX_RESULTS)"),
    query: str | None = typer.Option(None, help="Gmail search filter (defaults to JOBMAIL_RECENCY_FILTER)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every classified message"),
) -> None:
    correlation_id = uuid.uuid4().hex
    settings = _load_settings()
    configure_logging(
        settings.logs_dir,
        correlation_id=correlation_id,
        level=logging.DEBUG if verbose else logging.INFO,
    )
    logger = get_logger("jobmail.refresh", correlation_id)

    auth_manager = GmailAuthManager(settings.gmail_client_secret_path, settings.gmail_token_path)
    mail_client = GmailMailClient(auth_manager=auth_manager, account=settings.gmail_account)

    with SnapshotRepository(settings.db_path) as repository:
        repository.migrate()
        service = RefreshService.from_settings(settings, mail_client, repository=repository, logger=logger)
        if max_results is not None:
            service.max_results = max_results
        if query is not None:
            service.query = query
        service.load_persisted()
        result = service.trigger_refresh(correlation_id=correlation_id)

    if not result.ok:
        hint = " (retryable)" if result.retryable else ""
        print(f"[red]Refresh failed{hint}[/red]: {result.error}")
        print(f"Previous snapshot kept: v{result.snapshot.version}, {result.snapshot.message_count} messages")
        raise typer.Exit(1)

    print(f"[green]Refresh complete[/green]. correlation_id={correlation_id}")
    for key, value in result.stats.items():
        print(f"- {key}: {value}")


@app.command("show")
def show_command(
    day: str | None = typer.Option(None, help="Only this calendar day, e.g. 2025-01-05"),
    category: str | None = typer.Option(None, help="Only this category"),
    as_json: bool = typer.Option(False, "--json", help="Print the snapshot as JSON"),
) -> None:
    settings = _load_settings()
    snapshot = _load_snapshot(settings)
    wanted = _parse_category(category)

    if as_json:
        payload = snapshot.to_dict()
        payload["days"] = {
            key: [m for m in bucket if wanted is None or m["classification"] == wanted.value]
            for key, bucket in payload["days"].items()
            if _day_matches(key, day)
        }
        console.print_json(json.dumps(payload, ensure_ascii=False))
        return

    if snapshot.is_empty:
        print("[yellow]No snapshot yet[/yellow]: run `jobmail refresh`")
        return

    for key, bucket in snapshot.days.items():
        if not _day_matches(key, day):
            continue
        rows = [m for m in bucket if wanted is None or m.classification is wanted]
        if not rows:
            continue
        table = Table(title=key, title_justify="left")
        table.add_column("Category")
        table.add_column("Company")
        table.add_column("From", overflow="fold")
        table.add_column("Subject", overflow="fold")
        for message in rows:
            style = CATEGORY_STYLES[message.classification]
            table.add_row(
                f"[{style}]{message.classification.value}[/{style}]",
                message.company or "",
                escape(message.sender),
                escape(message.subject),
            )
        console.print(table)


@app.command("companies")
def companies_command() -> None:
    settings = _load_settings()
    snapshot = _load_snapshot(settings)
    if not snapshot.companies:
        print("[yellow]No Applied/Interview messages in the current snapshot[/yellow]")
        return

    table = Table(title=f"Companies (snapshot v{snapshot.version})")
    table.add_column("Company")
    table.add_column("Applied", justify="right")
    table.add_column("Interviews", justify="right")
    ordered = sorted(
        snapshot.companies.items(),
        key=lambda item: (-item[1].interviews, -item[1].applied, item[0]),
    )
    for name, counts in ordered:
        table.add_row(escape(name), str(counts.applied), str(counts.interviews))
    console.print(table)


@app.command("runs")
def runs_command(limit: int = typer.Option(10, help="How many runs to list")) -> None:
    settings = _load_settings()
    with SnapshotRepository(settings.db_path) as repository:
        repository.migrate()
        runs = repository.fetch_runs(limit=limit)

    if not runs:
        print("No refresh runs recorded")
        return
    for run in runs:
        status = run["status"]
        color = {"success": "green", "failed": "red"}.get(status, "yellow")
        line = f"- #{run['id']} [{color}]{status}[/{color}] {run['started_at']} query={run['query']!r}"
        if run["error_text"]:
            line += f" error={run['error_text']}"
        print(line)


@app.command("classify")
def classify_command(
    subject: str = typer.Option("", help="Subject line"),
    body: str = typer.Option("", help="Body text"),
    sender: str = typer.Option("", "--from", help="From header"),
) -> None:
    category = classify(subject, body, sender)
    print(f"{category.value}\t{extract_company(sender)}")


@app.command("export")
def export_command(
    format: str = typer.Option("xlsx,csv", help="Comma separated formats: xlsx,csv"),
    out: Path | None = typer.Option(None, help="Export directory"),
) -> None:
    formats = [item.strip().lower() for item in format.split(",") if item.strip()]
    supported = {"xlsx", "csv"}
    unknown = [item for item in formats if item not in supported]
    if unknown:
        raise typer.BadParameter(f"Unsupported formats: {unknown}")

    settings = _load_settings()
    out_dir = (out or settings.exports_dir).resolve()
    snapshot = _load_snapshot(settings)
    files = export_snapshot(snapshot, formats=formats, out_dir=out_dir)

    print("[green]Export complete[/green]")
    for file_path in files:
        print(f"- {file_path}")


@app.command("doctor")
def doctor_command() -> None:
    settings = _load_settings()
    checks = run_doctor_checks(settings)

    print("Doctor results:")
    for check in checks:
        status = check["status"].upper()
        print(f"- [{status}] {check['check']}: {check['detail']}")


if __name__ == "__main__":
    app()
