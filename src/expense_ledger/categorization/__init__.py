"""Transaction categorization.

Deterministic keyword rules, user and system, evaluated first-match-wins
with the Other category as the fallback.
"""

from expense_ledger.categorization.rules import RuleSet, categorize, match_rule, sort_rules

__all__ = ["RuleSet", "categorize", "match_rule", "sort_rules"]
