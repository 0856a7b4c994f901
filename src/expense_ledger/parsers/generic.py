"""Generic CSV transaction parser.

This module provides the GenericCsvParser class which handles the common
parsing flow for every supported export: header skip, per-row field
splitting, and per-column validation into CandidateTransaction records.
Format-specific parsers inherit from this and override only what's different.
"""

import re
from datetime import date

from expense_ledger.parsers.csv_reader import UnterminatedQuoteError, split_fields
from expense_ledger.schemas.internal import (
    CandidateTransaction,
    ParseResult,
    RowError,
    RowErrorReason,
)


# Matches the transactions.description column length
MAX_DESCRIPTION_LENGTH = 200


class RowRejected(Exception):
    """Raised inside row conversion; becomes a RowError, never escapes parse()."""

    def __init__(self, reason: RowErrorReason, message: str = ""):
        self.reason = reason
        self.message = message
        super().__init__(message or reason.value)


class GenericCsvParser:
    """Parser for `date,amount,description[,payment_method]` files.

    Amounts are signed integers in minor units and are stored exactly as
    written. Subclasses can override:
        - _to_candidate(): Column layout and row filtering
        - _parse_date(): Different date formats
        - _parse_amount(): Different number formats

    Example:
        >>> parser = GenericCsvParser()
        >>> result = parser.parse([(1, "date,amount,description"), (2, "2024-01-05,1200,Cafe")])
        >>> result.rows[0].amount
        1200
    """

    format_code = "generic"
    min_columns = 3

    DATE_PATTERN = re.compile(
        r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})(?:[ T]\d{1,2}:\d{2}(?::\d{2})?)?$"
    )
    AMOUNT_PATTERN = re.compile(r"^[+-]?(?:\d{1,3}(?:,\d{3})+|\d+)$")

    def parse(self, records: list[tuple[int, str]]) -> ParseResult:
        """Parse numbered records; the first one is the header.

        Args:
            records: (line_number, line) pairs of non-blank lines

        Returns:
            ParseResult with accepted rows and row errors in file order
        """
        rows: list[CandidateTransaction] = []
        errors: list[RowError] = []
        data_records = records[1:]

        for line_number, line in data_records:
            try:
                fields = split_fields(line)
                rows.append(self._to_candidate(fields))
            except UnterminatedQuoteError as e:
                errors.append(
                    RowError(
                        line_number=line_number,
                        reason=RowErrorReason.UNTERMINATED_QUOTE,
                        message=str(e),
                    )
                )
            except RowRejected as e:
                errors.append(RowError(line_number=line_number, reason=e.reason, message=e.message))

        return ParseResult(
            format=self.format_code,
            rows=rows,
            errors=errors,
            total_rows=len(data_records),
        )

    def _to_candidate(self, fields: list[str]) -> CandidateTransaction:
        """Convert split fields into a candidate.

        Raises:
            RowRejected: If any required column is missing or invalid
        """
        self._require_columns(fields)

        txn_date = self._parse_date(fields[0])
        amount = self._parse_amount(fields[1])
        description = self._require_description(fields[2])
        payment_method = fields[3] if len(fields) > 3 else ""

        return CandidateTransaction(
            date=txn_date,
            amount=amount,
            description=description,
            payment_method=payment_method,
        )

    def _require_columns(self, fields: list[str]) -> None:
        if len(fields) < self.min_columns:
            raise RowRejected(
                RowErrorReason.COLUMN_COUNT,
                f"Expected at least {self.min_columns} columns, got {len(fields)}",
            )

    def _require_description(self, value: str) -> str:
        description = value.strip()
        if not description:
            raise RowRejected(RowErrorReason.EMPTY_DESCRIPTION, "Description is empty")
        return description[:MAX_DESCRIPTION_LENGTH].rstrip()

    def _parse_date(self, value: str) -> date:
        """Parse `YYYY-MM-DD` / `YYYY/MM/DD`, ignoring an optional time part.

        Raises:
            RowRejected: If the value is not a valid calendar date
        """
        match = self.DATE_PATTERN.match(value.strip())
        if not match:
            raise RowRejected(RowErrorReason.INVALID_DATE, f"Unrecognized date: {value!r}")

        year, month, day = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError as e:
            raise RowRejected(RowErrorReason.INVALID_DATE, f"Invalid date: {value!r}") from e

    def _parse_amount(self, value: str) -> int:
        """Parse a signed integer amount, allowing thousands separators.

        Raises:
            RowRejected: If the value is not an integer
        """
        cleaned = value.strip().replace(" ", "")
        if not self.AMOUNT_PATTERN.match(cleaned):
            raise RowRejected(RowErrorReason.INVALID_AMOUNT, f"Invalid amount: {value!r}")
        return int(cleaned.replace(",", ""))
