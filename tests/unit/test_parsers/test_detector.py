"""Tests for CSV format detection."""

from expense_ledger.parsers.csv_reader import split_fields
from expense_ledger.parsers.detector import FormatDetector

PAYPAY_HEADER = (
    "取引日,出金金額（円）,入金金額（円）,海外出金金額,通貨,変換レート（円）,"
    "利用国,取引内容,取引先,取引方法,支払い区分,利用者,取引番号"
)


class TestFormatDetector:
    """Test suite for FormatDetector."""

    def test_initialization(self):
        detector = FormatDetector()
        assert set(detector.get_supported_formats()) == {"paypay", "generic"}

    def test_detect_paypay(self):
        assert FormatDetector().detect(split_fields(PAYPAY_HEADER)) == "paypay"

    def test_detect_generic(self):
        detector = FormatDetector()
        assert detector.detect(["date", "amount", "description"]) == "generic"
        assert detector.detect(["date", "amount", "description", "payment_method"]) == "generic"

    def test_detect_generic_case_insensitive(self):
        assert FormatDetector().detect(["Date", "Amount", "Merchant"]) == "generic"

    def test_detect_unknown(self):
        assert FormatDetector().detect(["foo", "bar"]) is None

    def test_detect_empty(self):
        assert FormatDetector().detect([]) is None

    def test_generic_columns_must_be_in_order(self):
        assert FormatDetector().detect(["amount", "date", "description"]) is None
