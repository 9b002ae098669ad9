"""Ordered rule table for job-search mail classification.

Categories overlap on real mail (a LinkedIn digest can quote a rejection, a
rejection can mention the interview that preceded it), so the rules are tried
strictly in ``RULES`` order and the first match wins:

    LinkedIn -> Rejection -> Interview -> Applied -> Uncategorized

LinkedIn rules match against subject, body and sender together; every other
rule matches subject and body only, so a sender such as
``interviews@company.com`` does not classify the message by itself.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from email.utils import parseaddr

from jobmail.core.models import Category

from .normalize import normalize_text


def _compile(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


LINKEDIN_PATTERNS = _compile(
    r"linkedin",
    r"applied via linkedin",
    r"job alert",
    r"job recommendation",
)

REJECTION_PATTERNS = _compile(
    r"\bwe regret\b",
    r"\bregret to inform\b",
    r"\bnot (?:been )?selected\b",
    r"\bno longer being considered\b",
    r"\bno longer (?:under|in) consideration\b",
    r"\bafter careful consideration\b",
    r"\bunfortunately\b",
    r"\bdeclined\b",
    r"\brejected\b",
    r"\bnot moving forward\b",
    r"\bnot to (?:move|proceed) forward\b",
    r"\bwill not be (?:moving|proceeding) forward\b",
    r"\bmove forward with other candidates\b",
    r"\bpursue other candidates\b",
    r"\bdid(?:n't|n’t| not) work out\b",
    r"\bposition has been filled\b",
)

INTERVIEW_PATTERNS = _compile(
    r"\binterview",
    r"schedul(?:e|ing)",
    r"\bassessments?\b",
    r"\binvit(?:e|ing|ation)",
    r"\btechnical screen",
    r"\bcalendar link\b",
    r"\bzoom call\b",
    r"\bphone screen",
    r"\bbook a time\b",
)

# Passive mentions of a possible future interview, not a scheduled one
INTERVIEW_GUARD_PATTERNS = _compile(
    r"\b(?:we|our team|the team|a recruiter|someone) (?:will|may|would) (?:contact|reach out to|be in touch with) you\b[^.]{0,60}\binterview",
    r"\bwill (?:contact|reach out to) you to schedule\b",
    r"\bif (?:you are|you're) (?:selected|shortlisted|chosen) (?:for|to) (?:an? )?(?:interview|next steps)",
    r"\bshould (?:you|your (?:skills|experience|qualifications|background|profile)) (?:be|match|meet|align)\b[^.]{0,80}\b(?:interview|contact)",
    r"\bonly (?:shortlisted |selected )?(?:candidates|applicants) (?:selected for (?:an? )?interview )?will be contacted\b",
    r"\bshortlisted candidates will be contacted\b",
    r"\bif (?:we|the team) (?:decide|would like) to (?:move forward|proceed)\b",
)

APPLIED_PATTERNS = _compile(
    r"\bthank(?:s| you) for (?:applying|your application)\b",
    r"\bapplication (?:has been |was )?received\b",
    r"\bapplication (?:has been |was )?submitted\b",
    r"\byour application is under review\b",
    r"\bwe(?: have|'ve)? received your application\b",
    r"\bapplication confirmation\b",
    r"\byour application was sent\b",
)


def sender_domain(sender: str | None) -> str:
    _, address = parseaddr(sender or "")
    if "@" not in address:
        return ""
    return address.rsplit("@", 1)[1].lower()


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    category: Category
    patterns: tuple[re.Pattern[str], ...]
    vetoes: tuple[re.Pattern[str], ...] = ()
    sender_domain_markers: tuple[str, ...] = ()
    include_sender: bool = False
    description: str = field(default="", compare=False)

    def matches(self, subject: str, body: str, sender: str) -> bool:
        text = normalize_text(subject, body, sender, include_sender=self.include_sender)
        hit = any(pattern.search(text) for pattern in self.patterns)
        if not hit and self.sender_domain_markers:
            domain = sender_domain(sender)
            hit = any(marker in domain for marker in self.sender_domain_markers)
        if hit and self.vetoes:
            hit = not any(veto.search(text) for veto in self.vetoes)
        return hit


RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        category=Category.LINKEDIN,
        patterns=LINKEDIN_PATTERNS,
        sender_domain_markers=("linkedin",),
        include_sender=True,
        description="LinkedIn notices, job alerts and recommendations",
    ),
    ClassificationRule(
        category=Category.REJECTION,
        patterns=REJECTION_PATTERNS,
        description="rejection wording",
    ),
    ClassificationRule(
        category=Category.INTERVIEW,
        patterns=INTERVIEW_PATTERNS,
        vetoes=INTERVIEW_GUARD_PATTERNS,
        description="scheduled interviews and assessments",
    ),
    ClassificationRule(
        category=Category.APPLIED,
        patterns=APPLIED_PATTERNS,
        description="application acknowledgements",
    ),
)


def match_rule(
    subject: str | None,
    body: str | None = "",
    sender: str | None = "",
    rules: tuple[ClassificationRule, ...] = RULES,
) -> ClassificationRule | None:
    subject, body, sender = subject or "", body or "", sender or ""
    for rule in rules:
        if rule.matches(subject, body, sender):
            return rule
    return None


def classify(
    subject: str | None,
    body: str | None = "",
    sender: str | None = "",
    rules: tuple[ClassificationRule, ...] = RULES,
) -> Category:
    rule = match_rule(subject, body, sender, rules=rules)
    return rule.category if rule else Category.UNCATEGORIZED
