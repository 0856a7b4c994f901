"""Custom exception classes for ingestion and categorization.

Only batch-wide conditions are raised: a bad file, a missing fallback
category, or a failed write. Row-level defects and duplicates are counted
and reported in results instead. Each exception maps to a code in errors.py.
"""

from typing import Any


class LedgerError(Exception):
    """Base exception for all ledger errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "CSV_003")
        details: Additional context about the error (for logging)
        http_status: HTTP status code to return (default: 500)
    """

    def __init__(
        self,
        error_code: str,
        details: dict[str, Any] | None = None,
        http_status: int = 500,
    ):
        self.error_code = error_code
        self.details = details or {}
        self.http_status = http_status
        super().__init__(error_code)


class CsvInputError(LedgerError):
    """Raised when the uploaded file cannot be imported at all.

    Common causes:
    - Empty content (CSV_001)
    - Unrecognized header (CSV_002)
    - No parseable rows (CSV_003)

    Client-correctable, so the default status is 400.
    """

    def __init__(self, error_code: str, details: dict[str, Any] | None = None, http_status: int = 400):
        super().__init__(error_code, details, http_status)


class ConfigurationError(LedgerError):
    """Raised when a user scope has no Other category (CFG_001)."""

    pass


class PersistenceError(LedgerError):
    """Raised when the batch commit fails (DB_001).

    The whole batch has been rolled back when this is raised, so the caller
    may retry the upload.
    """

    pass


class NotFoundError(LedgerError):
    """Raised when a category, rule or transaction is missing or not owned by the user."""

    def __init__(self, error_code: str, details: dict[str, Any] | None = None, http_status: int = 404):
        super().__init__(error_code, details, http_status)


class CategoryRuleViolation(LedgerError):
    """Raised when a category change would break the Other-category invariants."""

    def __init__(self, error_code: str, details: dict[str, Any] | None = None, http_status: int = 400):
        super().__init__(error_code, details, http_status)


class ConflictError(LedgerError):
    """Raised when a write would duplicate an existing transaction (TXN_001)."""

    def __init__(self, error_code: str, details: dict[str, Any] | None = None, http_status: int = 409):
        super().__init__(error_code, details, http_status)
