from __future__ import annotations

from typing import Any

from jobmail.sources.models import MessageContent

from .utils import clean_text, decode_b64, html_to_text


def extract_headers(payload: dict[str, Any]) -> dict[str, str]:
    result: dict[str, str] = {}
    for item in payload.get("headers") or []:
        name = item.get("name")
        # first occurrence wins, as with repeated Received/Date headers
        if name and name.lower() not in result:
            result[name.lower()] = item.get("value") or ""
    return result


def _first_part_data(payload: dict[str, Any], mime_type: str) -> str | None:
    if payload.get("mimeType") == mime_type:
        data = (payload.get("body") or {}).get("data")
        if data:
            return data
    for part in payload.get("parts") or []:
        found = _first_part_data(part, mime_type)
        if found:
            return found
    return None


def extract_body(payload: dict[str, Any]) -> str:
    plain = _first_part_data(payload, "text/plain")
    if plain:
        return clean_text(decode_b64(plain))

    html = _first_part_data(payload, "text/html")
    if html:
        return clean_text(html_to_text(decode_b64(html)))

    # single-part message without a declared text mime type
    if not payload.get("parts"):
        data = (payload.get("body") or {}).get("data")
        if data:
            return clean_text(decode_b64(data))
    return ""


def extract_message_content(message: dict[str, Any]) -> MessageContent:
    """Decode the Gmail ``format=full`` resource into the fields the classifier needs.

    Missing headers become empty strings and a message without a text part
    falls back to the Gmail snippet, then to an empty body.
    """
    payload = message.get("payload") or {}
    headers = extract_headers(payload)
    body = extract_body(payload)
    if not body and message.get("snippet"):
        body = clean_text(message["snippet"])

    return MessageContent(
        message_id=str(message.get("id", "")),
        subject=headers.get("subject", ""),
        sender=headers.get("from", ""),
        date=headers.get("date", ""),
        body=body,
    )
