"""Record and field splitting for uploaded CSV text.

Fields are split by an explicit state machine so that a malformed line
produces a structured row error instead of a generic exception:

    FIELD_START --'"'--> QUOTED --'"'--> QUOTE_IN_QUOTED --'"'--> QUOTED
         |                                     |
         +--other--> UNQUOTED                  +--','--> FIELD_START

Embedded newlines inside quotes are not supported; exports we accept are
one record per line.
"""

import enum
from collections.abc import Iterator

BOM = "\ufeff"


class UnterminatedQuoteError(ValueError):
    """A quoted field was still open at the end of the line."""


class _State(enum.Enum):
    FIELD_START = enum.auto()
    UNQUOTED = enum.auto()
    QUOTED = enum.auto()
    QUOTE_IN_QUOTED = enum.auto()


def split_fields(line: str, delimiter: str = ",") -> list[str]:
    """Split one CSV record into stripped field values.

    Raises:
        UnterminatedQuoteError: If a quoted field is never closed
    """
    fields: list[str] = []
    buf: list[str] = []
    state = _State.FIELD_START

    for char in line:
        if state is _State.FIELD_START:
            if char == '"':
                state = _State.QUOTED
            elif char == delimiter:
                fields.append("")
            elif char in " \t":
                continue
            else:
                buf.append(char)
                state = _State.UNQUOTED
        elif state is _State.UNQUOTED:
            if char == delimiter:
                fields.append("".join(buf).strip())
                buf = []
                state = _State.FIELD_START
            else:
                buf.append(char)
        elif state is _State.QUOTED:
            if char == '"':
                state = _State.QUOTE_IN_QUOTED
            else:
                buf.append(char)
        else:  # QUOTE_IN_QUOTED
            if char == '"':
                # "" inside a quoted field is a literal quote
                buf.append('"')
                state = _State.QUOTED
            elif char == delimiter:
                fields.append("".join(buf).strip())
                buf = []
                state = _State.FIELD_START
            else:
                buf.append(char)
                state = _State.UNQUOTED

    if state is _State.QUOTED:
        raise UnterminatedQuoteError(f"Unterminated quoted field after {len(fields)} field(s)")

    fields.append("".join(buf).strip())
    return fields


def iter_records(content: str) -> Iterator[tuple[int, str]]:
    """Yield (line_number, line) for every non-blank line.

    Line numbers are 1-based positions in the original text, so row errors
    point at the line a user sees in a spreadsheet or editor.
    """
    if content.startswith(BOM):
        content = content[len(BOM):]

    for index, raw in enumerate(content.splitlines(), start=1):
        if raw.strip():
            yield index, raw
