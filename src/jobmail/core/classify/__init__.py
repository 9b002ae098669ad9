from .normalize import normalize_text
from .rules import RULES, ClassificationRule, classify, match_rule, sender_domain

__all__ = ["RULES", "ClassificationRule", "classify", "match_rule", "normalize_text", "sender_domain"]
