from __future__ import annotations

import re

UNKNOWN_COMPANY = "Unknown"

ANGLE_ADDRESS_PATTERN = re.compile(r"<[^<>@\s]*@([^.<>\s]+)\.[^<>]*>")


def extract_company(sender: str | None) -> str:
    """Best-effort company identifier: the first domain label of the sender address.

    ``"Acme Careers" <jobs@acme.com>`` and ``jobs@acme.com`` both give ``acme``;
    multi-label domains such as ``notifications.greenhouse.io`` give their
    first label. Returns ``UNKNOWN_COMPANY`` when no address is present.
    """
    if not sender:
        return UNKNOWN_COMPANY

    match = ANGLE_ADDRESS_PATTERN.search(sender)
    if match:
        return match.group(1).strip().lower()

    if "@" in sender:
        domain = sender.split("@", 1)[1]
        label = domain.split(".", 1)[0].strip().strip("<>\"' ")
        if label:
            return label.lower()

    return UNKNOWN_COMPANY
