from __future__ import annotations

from collections import Counter

from dateutil import tz

from jobmail.core.aggregate import INVALID_DAY_KEY, aggregate, day_key
from jobmail.core.models import Category, ClassifiedMessage


def _message(category: Category, company: str | None, date: str, subject: str = "s") -> ClassifiedMessage:
    return ClassifiedMessage(
        subject=subject,
        sender=f"hr@{company}.com" if company else "",
        date=date,
        classification=category,
        company=company,
    )


def test_day_key_formats_rfc2822_header() -> None:
    assert day_key("Sun, 05 Jan 2025 09:15:00 +0000") == "Sunday, Jan 5, 2025"


def test_day_key_accepts_loose_formats() -> None:
    assert day_key("2025-01-06T18:00:00Z") == "Monday, Jan 6, 2025"


def test_day_key_converts_to_configured_timezone() -> None:
    header = "Mon, 06 Jan 2025 02:00:00 +0000"
    assert day_key(header) == "Monday, Jan 6, 2025"
    assert day_key(header, tz=tz.gettz("America/Los_Angeles")) == "Sunday, Jan 5, 2025"


def test_day_key_keeps_header_offset_when_conversion_overflows() -> None:
    header = "Fri, 31 Dec 9999 23:30:00 -0500"
    assert day_key(header, tz=tz.gettz("America/Los_Angeles")) == "Friday, Dec 31, 9999"


def test_aggregate_survives_out_of_range_dates() -> None:
    good = _message(Category.APPLIED, "acme", "Mon, 06 Jan 2025 10:00:00 +0000")
    extreme = _message(Category.INTERVIEW, "acme", "Fri, 31 Dec 9999 23:30:00 -0500")

    days, companies = aggregate([good, extreme], tz=tz.gettz("America/Los_Angeles"))

    assert sum(len(bucket) for bucket in days.values()) == 2
    assert companies["acme"].applied == 1
    assert companies["acme"].interviews == 1


def test_day_key_falls_back_for_bad_dates() -> None:
    assert day_key("") == INVALID_DAY_KEY
    assert day_key(None) == INVALID_DAY_KEY
    assert day_key("not a date at all") == INVALID_DAY_KEY


def test_aggregate_buckets_in_arrival_order() -> None:
    later = _message(Category.APPLIED, "acme", "Tue, 07 Jan 2025 10:00:00 +0000", subject="later")
    earlier = _message(Category.INTERVIEW, "acme", "Mon, 06 Jan 2025 10:00:00 +0000", subject="earlier")
    same_day = _message(Category.REJECTION, "globex", "Tue, 07 Jan 2025 08:00:00 +0000", subject="same-day")
    broken = _message(Category.UNCATEGORIZED, None, "garbage", subject="broken")

    days, _ = aggregate([later, earlier, same_day, broken])

    assert list(days) == ["Tuesday, Jan 7, 2025", "Monday, Jan 6, 2025", INVALID_DAY_KEY]
    assert [m.subject for m in days["Tuesday, Jan 7, 2025"]] == ["later", "same-day"]
    assert sum(len(bucket) for bucket in days.values()) == 4


def test_company_stats_only_count_applied_and_interview() -> None:
    date = "Mon, 06 Jan 2025 10:00:00 +0000"
    messages = [
        _message(Category.APPLIED, "acme", date),
        _message(Category.APPLIED, "acme", date),
        _message(Category.INTERVIEW, "acme", date),
        _message(Category.INTERVIEW, "globex", date),
        _message(Category.REJECTION, "initech", date),
        _message(Category.LINKEDIN, "linkedin", date),
        _message(Category.UNCATEGORIZED, "hooli", date),
    ]

    _, companies = aggregate(messages)

    assert set(companies) == {"acme", "globex"}
    assert companies["acme"].applied == 2
    assert companies["acme"].interviews == 1
    assert companies["globex"].applied == 0
    assert companies["globex"].interviews == 1

    expected = Counter((m.company, m.classification) for m in messages)
    for name, counts in companies.items():
        assert counts.applied == expected[(name, Category.APPLIED)]
        assert counts.interviews == expected[(name, Category.INTERVIEW)]
        assert counts.applied or counts.interviews


def test_aggregate_empty_input() -> None:
    assert aggregate([]) == ({}, {})
