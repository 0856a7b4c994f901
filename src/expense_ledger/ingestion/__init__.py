"""Batch-level ingestion helpers (deduplication)."""

from expense_ledger.ingestion.dedup import DedupResult, DeduplicationFilter, description_key

__all__ = ["DedupResult", "DeduplicationFilter", "description_key"]
