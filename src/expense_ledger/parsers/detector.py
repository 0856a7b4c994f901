"""CSV format detection from the header record.

Identifies which exporter produced a file so the factory can route it to
the matching parser.
"""

import re


class FormatDetector:
    """Detects the export format from the header fields.

    Supported formats:
        - paypay: PayPay wallet transaction history
        - generic: date,amount,description[,payment_method]

    Example:
        >>> detector = FormatDetector()
        >>> detector.detect(["取引日", "出金金額（円）", ...])
        'paypay'
    """

    # Patterns matched against the joined header (case-insensitive)
    FORMAT_PATTERNS = {
        "paypay": [
            r"^取引日,出金金額",
            r"取引内容,取引先,取引方法",
        ],
        "generic": [
            r"^(?:date|transaction[ _]date),amount,(?:description|merchant)(?:,|$)",
        ],
    }

    def __init__(self):
        self._compiled_patterns: dict[str, list[re.Pattern]] = {
            format_code: [re.compile(pattern, re.IGNORECASE) for pattern in patterns]
            for format_code, patterns in self.FORMAT_PATTERNS.items()
        }

    def detect(self, header_fields: list[str]) -> str | None:
        """Detect the format from header fields.

        Args:
            header_fields: Fields of the first record, already split

        Returns:
            Format code (e.g., "paypay") or None if no match found
        """
        if not header_fields:
            return None

        header = ",".join(field.strip() for field in header_fields)
        for format_code, patterns in self._compiled_patterns.items():
            if any(pattern.search(header) for pattern in patterns):
                return format_code

        return None

    def get_supported_formats(self) -> list[str]:
        return list(self.FORMAT_PATTERNS.keys())
