from __future__ import annotations

import base64
import binascii
import re

from bs4 import BeautifulSoup

WHITESPACE_PATTERN = re.compile(r"[ \t\r\f\v]+")
ZERO_WIDTH_PATTERN = re.compile(r"[\u200B-\u200D\uFEFF]")


def decode_b64(value: str | None) -> str:
    if not value:
        return ""
    # Gmail strips base64url padding
    padded = value + "=" * (-len(value) % 4)
    try:
        data = base64.urlsafe_b64decode(padded.encode("utf-8"))
    except (binascii.Error, ValueError):
        return ""
    return data.decode("utf-8", errors="replace")


def html_to_text(html: str | None) -> str:
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "head"]):
        tag.decompose()
    return soup.get_text(" ")


def clean_text(value: str | None) -> str:
    text = ZERO_WIDTH_PATTERN.sub("", value or "")
    text = WHITESPACE_PATTERN.sub(" ", text)
    return text.strip()
