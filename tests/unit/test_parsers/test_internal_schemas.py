"""Tests for internal parsing schemas."""

from datetime import date

import pytest
from pydantic import ValidationError

from expense_ledger.schemas.internal import CandidateTransaction, ParseResult, RowError, RowErrorReason


class TestCandidateTransaction:
    def test_description_is_stripped(self):
        candidate = CandidateTransaction(date=date(2024, 1, 1), amount=100, description="  Cafe ")

        assert candidate.description == "Cafe"
        assert candidate.payment_method == ""

    def test_blank_description_rejected(self):
        with pytest.raises(ValidationError):
            CandidateTransaction(date=date(2024, 1, 1), amount=100, description="   ")


class TestParseResult:
    def test_skipped_rows_counts_errors(self):
        result = ParseResult(
            format="generic",
            rows=[CandidateTransaction(date=date(2024, 1, 1), amount=1, description="a")],
            errors=[RowError(line_number=3, reason=RowErrorReason.INVALID_AMOUNT)],
            total_rows=2,
        )

        assert result.skipped_rows == 1
        assert result.total_rows == len(result.rows) + result.skipped_rows
