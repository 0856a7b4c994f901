"""Duplicate detection for imported transactions.

A candidate is a duplicate when a persisted transaction of the same user, or
an earlier candidate of the same batch, has the same (date, amount,
description key). Exports often overlap in date range, so re-importing is a
normal case, not an error.

The in-memory check can race with a concurrent upload; the unique
constraint on transactions is the backstop (see TransactionRepository).
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol
from uuid import UUID

from expense_ledger.schemas.internal import CandidateTransaction

DedupKey = tuple[date, int, str]

# Width of transactions.description_key. Lower-casing can lengthen a string
# ("\u0130" becomes two code points), so the key is cut after folding.
DESCRIPTION_KEY_LENGTH = 200


def description_key(description: str | None) -> str:
    """Trimmed, case-folded description used for duplicate matching."""
    return (description or "").strip().lower()[:DESCRIPTION_KEY_LENGTH]


def dedup_key(txn_date: date, amount: int, description: str | None) -> DedupKey:
    return (txn_date, amount, description_key(description))


def candidate_date_range(candidates: list[CandidateTransaction]) -> tuple[date, date] | None:
    if not candidates:
        return None
    dates = [c.date for c in candidates]
    return min(dates), max(dates)


@dataclass
class DedupResult:
    to_import: list[CandidateTransaction] = field(default_factory=list)
    duplicates: list[CandidateTransaction] = field(default_factory=list)


def filter_candidates(
    candidates: list[CandidateTransaction], existing_keys: Iterable[DedupKey]
) -> DedupResult:
    """Split candidates into new rows and duplicates, preserving file order."""
    seen: set[DedupKey] = set(existing_keys)
    result = DedupResult()

    for candidate in candidates:
        key = dedup_key(candidate.date, candidate.amount, candidate.description)
        if key in seen:
            result.duplicates.append(candidate)
            continue
        seen.add(key)
        result.to_import.append(candidate)

    return result


class ExistingTransactionSource(Protocol):
    async def find_existing(
        self, user_id: UUID, date_range: tuple[date, date] | None = None
    ) -> list: ...


class DeduplicationFilter:
    """Classifies a batch against the user's persisted history."""

    def __init__(self, transactions: ExistingTransactionSource):
        self.transactions = transactions

    async def filter(self, user_id: UUID, candidates: list[CandidateTransaction]) -> DedupResult:
        """Load history overlapping the batch's date range and filter.

        Args:
            user_id: Owner of the batch
            candidates: Parsed rows in file order

        Returns:
            DedupResult with rows to insert and rows already known
        """
        date_range = candidate_date_range(candidates)
        if date_range is None:
            return DedupResult()

        existing = await self.transactions.find_existing(user_id, date_range)
        existing_keys = (dedup_key(t.txn_date, t.amount, t.description) for t in existing)
        return filter_candidates(candidates, existing_keys)
