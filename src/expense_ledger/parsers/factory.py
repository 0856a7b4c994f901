"""Parser factory for routing uploads to the matching CSV parser.

This module orchestrates the parsing workflow:
1. Split the upload into numbered records
2. Detect the format from the header record
3. Select the registered parser for that format
4. Parse and return structured data
"""

import logging

from expense_ledger.parsers.csv_reader import UnterminatedQuoteError, iter_records, split_fields
from expense_ledger.parsers.detector import FormatDetector
from expense_ledger.parsers.generic import GenericCsvParser
from expense_ledger.parsers.paypay import PayPayCsvParser
from expense_ledger.schemas.internal import ParseResult

logger = logging.getLogger(__name__)


class EmptyCsvError(ValueError):
    """The upload contains no records at all."""


class UnrecognizedFormatError(ValueError):
    """The header does not match any registered format."""


class ParserFactory:
    """Factory for parsing uploaded CSV exports.

    Parsers are registered per format code; the detector decides which one
    handles a given file. Unknown formats are rejected rather than guessed.

    Example:
        >>> factory = get_parser_factory()
        >>> result = factory.parse(csv_text)
        >>> print(result.format, len(result.rows), len(result.errors))
    """

    def __init__(self, detector: FormatDetector | None = None):
        self.detector = detector or FormatDetector()

        # Format: {"format_code": ParserClass}
        self._parsers: dict[str, type[GenericCsvParser]] = {}

    def parse(self, csv_content: str) -> ParseResult:
        """Parse CSV text.

        Args:
            csv_content: Decoded file content

        Returns:
            ParseResult with rows, row errors and total row count

        Raises:
            EmptyCsvError: If the content has no non-blank lines
            UnrecognizedFormatError: If the header matches no registered parser
        """
        records = list(iter_records(csv_content))
        if not records:
            raise EmptyCsvError("CSV content is empty")

        try:
            header_fields = split_fields(records[0][1])
        except UnterminatedQuoteError as e:
            raise UnrecognizedFormatError("Header row is malformed") from e

        format_code = self.detector.detect(header_fields)
        if format_code is None or format_code not in self._parsers:
            raise UnrecognizedFormatError(f"Unrecognized CSV header: {format_code or 'unknown'}")

        parser = self._parsers[format_code]()
        result = parser.parse(records)
        logger.info(
            "CSV parsed",
            extra={
                "format": format_code,
                "total_rows": result.total_rows,
                "parsed_rows": len(result.rows),
                "skipped_rows": result.skipped_rows,
            },
        )
        return result

    def register_parser(self, format_code: str, parser_class: type[GenericCsvParser]) -> None:
        """Register a parser for a format code.

        Args:
            format_code: Format code returned by the detector (e.g., "paypay")
            parser_class: Parser class (must inherit from GenericCsvParser)
        """
        if not issubclass(parser_class, GenericCsvParser):
            raise ValueError(
                f"Parser class must inherit from GenericCsvParser, got {parser_class}"
            )
        self._parsers[format_code] = parser_class

    def get_registered_formats(self) -> list[str]:
        return list(self._parsers.keys())


# Singleton factory instance for global use
_factory_instance: ParserFactory | None = None


def get_parser_factory() -> ParserFactory:
    """Get or create the global ParserFactory instance."""
    global _factory_instance
    if _factory_instance is None:
        _factory_instance = ParserFactory()
        _factory_instance.register_parser("generic", GenericCsvParser)
        _factory_instance.register_parser("paypay", PayPayCsvParser)
    return _factory_instance


def parse_csv(csv_content: str) -> ParseResult:
    """Convenience function to parse CSV text using the global factory."""
    return get_parser_factory().parse(csv_content)
