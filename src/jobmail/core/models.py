from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Category(str, Enum):
    LINKEDIN = "LinkedIn"
    APPLIED = "Applied"
    INTERVIEW = "Interview"
    REJECTION = "Rejection"
    UNCATEGORIZED = "Uncategorized"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ClassifiedMessage:
    subject: str
    sender: str
    date: str
    classification: Category
    company: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "from": self.sender,
            "date": self.date,
            "classification": self.classification.value,
            "company": self.company,
        }


@dataclass(slots=True)
class CompanyCounts:
    applied: int = 0
    interviews: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"applied": self.applied, "interviews": self.interviews}


DaySnapshot = dict[str, list[ClassifiedMessage]]
CompanyStats = dict[str, CompanyCounts]
