"""Parser refinement for PayPay transaction history exports.

PayPay exports 13 columns per row and mixes payments with deposits, point
grants and transfers. Only payment rows with a withdrawal amount are
expenses; everything else is reported as a skipped row.
"""

from expense_ledger.parsers.generic import GenericCsvParser, RowRejected
from expense_ledger.schemas.internal import CandidateTransaction, RowErrorReason

# Column positions in the PayPay export
DATE_COL = 0  # 取引日, "2024/12/31 14:46:28"
WITHDRAWAL_COL = 1  # 出金金額（円）
TRANSACTION_TYPE_COL = 7  # 取引内容
MERCHANT_COL = 8  # 取引先
PAYMENT_METHOD_COL = 9  # 取引方法
TRANSACTION_NUMBER_COL = 12  # 取引番号

PAYMENT_TRANSACTION_TYPE = "支払い"


class PayPayCsvParser(GenericCsvParser):
    """PayPay-specific parser.

    Amounts are whole yen. The withdrawal column uses "-" when empty.
    """

    format_code = "paypay"
    min_columns = 13

    def _to_candidate(self, fields: list[str]) -> CandidateTransaction:
        self._require_columns(fields)

        transaction_type = fields[TRANSACTION_TYPE_COL].strip()
        if transaction_type != PAYMENT_TRANSACTION_TYPE:
            raise RowRejected(
                RowErrorReason.NOT_AN_EXPENSE,
                f"Transaction type {transaction_type!r} is not a payment",
            )

        txn_date = self._parse_date(fields[DATE_COL])
        amount = self._parse_withdrawal(fields[WITHDRAWAL_COL])
        description = self._require_description(fields[MERCHANT_COL])

        return CandidateTransaction(
            date=txn_date,
            amount=amount,
            description=description,
            payment_method=fields[PAYMENT_METHOD_COL].strip(),
            external_id=_transaction_number(fields[TRANSACTION_NUMBER_COL]),
        )

    def _parse_withdrawal(self, value: str) -> int:
        if value.strip() in ("", "-"):
            raise RowRejected(RowErrorReason.NOT_AN_EXPENSE, "Payment row without withdrawal amount")

        amount = self._parse_amount(value)
        if amount <= 0:
            raise RowRejected(RowErrorReason.NOT_AN_EXPENSE, f"Non-positive withdrawal: {value!r}")
        return amount


def _transaction_number(value: str) -> str | None:
    value = value.strip()
    if value in ("", "-"):
        return None
    return value
