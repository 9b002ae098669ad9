from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, tzinfo
from email.utils import parsedate_to_datetime

from dateutil import parser as dt_parser

from jobmail.core.company import UNKNOWN_COMPANY
from jobmail.core.models import Category, ClassifiedMessage, CompanyCounts, CompanyStats, DaySnapshot

logger = logging.getLogger(__name__)

INVALID_DAY_KEY = "Invalid Date"


def parse_message_date(value: str | None) -> datetime | None:
    if not value or not value.strip():
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        pass
    try:
        return dt_parser.parse(value)
    except (ValueError, OverflowError):
        return None


def format_day_key(value: datetime) -> str:
    return f"{value:%A}, {value:%b} {value.day}, {value.year}"


def day_key(date_header: str | None, tz: tzinfo | None = None) -> str:
    parsed = parse_message_date(date_header)
    if parsed is None:
        logger.debug("Unparseable Date header %r bucketed as %s", date_header, INVALID_DAY_KEY)
        return INVALID_DAY_KEY
    if tz is not None and parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(tz)
        except (OverflowError, ValueError):
            logger.debug("Date header %r out of range for %s, keeping its own offset", date_header, tz)
    return format_day_key(parsed)


def aggregate(
    messages: Iterable[ClassifiedMessage],
    tz: tzinfo | None = None,
) -> tuple[DaySnapshot, CompanyStats]:
    days: DaySnapshot = {}
    companies: CompanyStats = {}

    for message in messages:
        days.setdefault(day_key(message.date, tz), []).append(message)

        if message.classification not in (Category.APPLIED, Category.INTERVIEW):
            continue
        counts = companies.setdefault(message.company or UNKNOWN_COMPANY, CompanyCounts())
        if message.classification is Category.APPLIED:
            counts.applied += 1
        else:
            counts.interviews += 1

    return days, companies
