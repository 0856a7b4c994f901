"""Personal expense ledger: CSV ingestion and rule-based categorization."""

__version__ = "0.1.0"
