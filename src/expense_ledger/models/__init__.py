"""Database models."""
from expense_ledger.models.user import User
from expense_ledger.models.category import Category
from expense_ledger.models.rule import Rule
from expense_ledger.models.csv_upload import CsvUpload, UploadStatus
from expense_ledger.models.transaction import Transaction

__all__ = ["User", "Category", "Rule", "CsvUpload", "UploadStatus", "Transaction"]
