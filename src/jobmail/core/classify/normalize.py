from __future__ import annotations


def normalize_text(
    subject: str | None = "",
    body: str | None = "",
    sender: str | None = "",
    include_sender: bool = True,
) -> str:
    fields = [subject or "", body or ""]
    if include_sender:
        fields.append(sender or "")
    return " ".join(fields).lower()
