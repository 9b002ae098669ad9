from __future__ import annotations

from pathlib import Path

import pandas as pd

from jobmail.core.snapshot import Snapshot

MESSAGE_COLUMNS = ["day", "subject", "from", "date", "classification", "company"]
COMPANY_COLUMNS = ["company", "applied", "interviews"]


def snapshot_frames(snapshot: Snapshot) -> tuple[pd.DataFrame, pd.DataFrame]:
    message_rows = [
        {"day": day, **message.to_dict()}
        for day, bucket in snapshot.days.items()
        for message in bucket
    ]
    company_rows = [
        {"company": name, **counts.to_dict()}
        for name, counts in snapshot.companies.items()
    ]
    return (
        pd.DataFrame(message_rows, columns=MESSAGE_COLUMNS),
        pd.DataFrame(company_rows, columns=COMPANY_COLUMNS),
    )


def export_snapshot(snapshot: Snapshot, formats: list[str], out_dir: Path) -> list[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    messages_df, companies_df = snapshot_frames(snapshot)

    created_files: list[Path] = []
    if "csv" in formats:
        messages_path = (out_dir / "jobmail_messages.csv").resolve()
        companies_path = (out_dir / "jobmail_companies.csv").resolve()
        messages_df.to_csv(messages_path, index=False, encoding="utf-8-sig")
        companies_df.to_csv(companies_path, index=False, encoding="utf-8-sig")
        created_files.extend([messages_path, companies_path])

    if "xlsx" in formats:
        xlsx_path = (out_dir / "jobmail_export.xlsx").resolve()
        with pd.ExcelWriter(xlsx_path, engine="openpyxl") as writer:
            messages_df.to_excel(writer, index=False, sheet_name="messages")
            companies_df.to_excel(writer, index=False, sheet_name="companies")
        created_files.append(xlsx_path)

    return created_files
