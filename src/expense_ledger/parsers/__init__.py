"""CSV parsing for uploaded transaction exports.

- GenericCsvParser handles the common row flow and a plain 4-column layout
- Format-specific parsers (PayPay) override only what's different
"""

from expense_ledger.parsers.detector import FormatDetector
from expense_ledger.parsers.factory import (
    EmptyCsvError,
    ParserFactory,
    UnrecognizedFormatError,
    get_parser_factory,
    parse_csv,
)
from expense_ledger.parsers.generic import GenericCsvParser
from expense_ledger.parsers.paypay import PayPayCsvParser

__all__ = [
    "EmptyCsvError",
    "FormatDetector",
    "GenericCsvParser",
    "ParserFactory",
    "PayPayCsvParser",
    "UnrecognizedFormatError",
    "get_parser_factory",
    "parse_csv",
]
