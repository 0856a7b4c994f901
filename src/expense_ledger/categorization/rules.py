"""Deterministic keyword-rule categorization.

Rules come from two scopes: the user's own and system rules shared by every
account. Both are merged into one list ordered by numeric priority (lower
first), then keyword, and the first rule whose keyword occurs in the
description wins. Ownership does not affect precedence.

Matching is case-insensitive substring containment with no other
normalization, so the same description and rule set always give the same
category.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID


class RuleLike(Protocol):
    keyword: str
    category_id: UUID
    priority: int


def sort_rules(rules: Iterable[RuleLike]) -> list[RuleLike]:
    """Order rules by ascending priority, then ascending keyword."""
    return sorted(rules, key=lambda rule: (rule.priority, rule.keyword))


def rule_matches(rule: RuleLike, description: str) -> bool:
    keyword = rule.keyword.lower()
    return bool(keyword) and keyword in description.lower()


def match_rule(description: str | None, sorted_rules: list[RuleLike]) -> RuleLike | None:
    """Return the first matching rule of an already sorted list."""
    if not description:
        return None
    for rule in sorted_rules:
        if rule_matches(rule, description):
            return rule
    return None


def categorize(description: str | None, rules: Iterable[RuleLike], other_category_id: UUID) -> UUID:
    """Infer a category id from a transaction description.

    Args:
        description: Merchant / description text
        rules: Merged user + system rules (any order)
        other_category_id: Fallback category for the user's scope

    Returns:
        The winning rule's category id, or other_category_id if none matches
    """
    rule = match_rule(description, sort_rules(rules))
    return rule.category_id if rule is not None else other_category_id


class RuleSet:
    """Rules sorted once and reused for a whole batch or sweep."""

    def __init__(self, rules: Iterable[RuleLike], other_category_id: UUID):
        self.rules = sort_rules(rules)
        self.other_category_id = other_category_id

    def __len__(self) -> int:
        return len(self.rules)

    def __bool__(self) -> bool:
        return bool(self.rules)

    def categorize(self, description: str | None) -> UUID:
        rule = match_rule(description, self.rules)
        return rule.category_id if rule is not None else self.other_category_id
