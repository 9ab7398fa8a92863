"""
parse.py - Record Parser

Turns raw input lines into TransactionRecords. A malformed line produces a
ParseError for that line only; the rest of the input is still parsed.

Line format:
    id, timestamp, value[, parent_id, ...]

Blank and whitespace-only lines are skipped without an error.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, localcontext
from typing import Iterable, List, Optional

from .core import (
    FIELD_SEPARATOR, MIN_FIELD_COUNT,
    NUMBER_LIMIT, MAX_DECIMAL_PLACES, NUMBER_RESOLUTION, DECIMAL_PRECISION,
    ParseError, ParseErrorKind,
    TransactionRecord,
)


@dataclass(slots=True)
class ParseResult:
    """
    Output of parse_records().

    Attributes:
        records: Well-formed records, in input order
        errors: One ParseError per skipped line, in input order
    """
    records: List[TransactionRecord] = field(default_factory=list)
    errors: List[ParseError] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.errors)


def _parse_number(text: str, name: str, line_number: Optional[int], line: str) -> Decimal:
    try:
        number = Decimal(text)
    except InvalidOperation:
        raise ParseError(
            ParseErrorKind.NON_NUMERIC, f"{name} {text!r} is not a number", line_number, line
        ) from None
    if not number.is_finite():
        raise ParseError(
            ParseErrorKind.NON_NUMERIC, f"{name} {text!r} is not finite", line_number, line
        )
    if number.copy_abs() >= NUMBER_LIMIT:
        raise ParseError(
            ParseErrorKind.NON_NUMERIC,
            f"{name} {text!r} is out of range (magnitude must be below {NUMBER_LIMIT})",
            line_number, line,
        )
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        too_fine = number.quantize(NUMBER_RESOLUTION) != number
    if too_fine:
        raise ParseError(
            ParseErrorKind.NON_NUMERIC,
            f"{name} {text!r} has more than {MAX_DECIMAL_PLACES} decimal places",
            line_number, line,
        )
    return number


def parse_record(line: str, line_number: Optional[int] = None) -> TransactionRecord:
    """
    Parse a single non-blank input line.

    Args:
        line: Raw line text (a trailing newline is ignored)
        line_number: 1-based position in the input, attached to errors

    Returns:
        The parsed TransactionRecord

    Raises:
        ParseError: If the line is malformed
    """
    raw = line.rstrip("\r\n")
    fields = [f.strip() for f in raw.split(FIELD_SEPARATOR)]

    if len(fields) < MIN_FIELD_COUNT:
        raise ParseError(
            ParseErrorKind.WRONG_FIELD_COUNT,
            f"expected at least {MIN_FIELD_COUNT} fields, got {len(fields)}",
            line_number, raw,
        )

    identifier, timestamp_text, value_text, *parents = fields

    if not identifier:
        raise ParseError(ParseErrorKind.EMPTY_IDENTIFIER, "identifier is empty", line_number, raw)
    if not timestamp_text:
        raise ParseError(ParseErrorKind.MISSING_FIELD, "timestamp is empty", line_number, raw)
    if not value_text:
        raise ParseError(ParseErrorKind.MISSING_FIELD, "value is empty", line_number, raw)

    for position, parent in enumerate(parents, start=1):
        if not parent:
            raise ParseError(
                ParseErrorKind.MISSING_FIELD, f"parent {position} is empty", line_number, raw
            )

    return TransactionRecord(
        identifier=identifier,
        timestamp=_parse_number(timestamp_text, "timestamp", line_number, raw),
        value=_parse_number(value_text, "value", line_number, raw),
        parents=tuple(parents),
        line_number=line_number,
    )


def parse_records(lines: Iterable[str]) -> ParseResult:
    """
    Parse every line of an input, collecting records and per-line errors.

    Never raises ParseError: bad lines are recorded in ParseResult.errors.
    """
    result = ParseResult()
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            result.records.append(parse_record(line, line_number))
        except ParseError as e:
            result.errors.append(e)
    return result

