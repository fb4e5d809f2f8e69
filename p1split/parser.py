"""Parsing of P1 telegrams and of the values found on their lines.

Value parsers take the text being parsed, the index to start at and the
index one past the last character they may look at. They return the
parsed value together with the index of the first character they did not
consume, and raise :class:`ParseError` when the input is malformed.

The telegram-level functions hand every data line to an object with a
``parse_line(obis_id, text, pos, end)`` method. That method returns the
index where its parsing stopped: ``pos`` itself when it does not know the
field, ``end`` when it consumed the whole value.
"""

from __future__ import annotations

from typing import Protocol

from .crc16 import crc16
from .obis import ObisId, ParseError

__all__ = [
    "CRC_LEN",
    "IDENTIFICATION_ID",
    "LineHandler",
    "parse_string",
    "parse_number",
    "parse_obis_id",
    "parse_crc",
    "parse_telegram",
    "parse_data",
    "parse_line",
]

CRC_LEN = 4
"""Number of hexadecimal characters in a telegram checksum."""

IDENTIFICATION_ID = ObisId(255, 255, 255, 255, 255, 255)
"""The all-ones id under which the identification line is offered."""

INVALID_NUMBER = "Invalid number"
INVALID_UNIT = "Invalid unit"
DUPLICATE_FIELD = "Duplicate field"

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class LineHandler(Protocol):
    """Receives the lines of a telegram, keyed by their OBIS id."""

    def parse_line(self, obis_id: ObisId, text: str, pos: int, end: int) -> int:
        ...


def _resolve_end(text: str, end: int | None) -> int:
    return len(text) if end is None else end


def _digit(char: str) -> int | None:
    if "0" <= char <= "9":
        return ord(char) - ord("0")
    return None


def parse_string(
    min_len: int, max_len: int, text: str, pos: int = 0, end: int | None = None
) -> tuple[str, int]:
    """Parse a ``(value)`` string whose length lies within the given bounds."""
    end = _resolve_end(text, end)
    if pos >= end or text[pos] != "(":
        raise ParseError("Missing (", pos)
    start = pos + 1
    close = text.find(")", start, end)
    if close < 0:
        raise ParseError("Missing )", end)
    length = close - start
    if length < min_len or length > max_len:
        raise ParseError("Invalid string length", start)
    return text[start:close], close + 1


def parse_number(
    max_decimals: int,
    unit: str | None,
    text: str,
    pos: int = 0,
    end: int | None = None,
) -> tuple[int, int]:
    """Parse a ``(digits[.decimals][*unit])`` value as a fixed-point integer.

    The result is scaled by ``10 ** max_decimals``; missing decimals count
    as zeroes. When ``unit`` is non-empty the value must carry exactly that
    unit.
    """
    end = _resolve_end(text, end)
    if pos >= end or text[pos] != "(":
        raise ParseError("Missing (", pos)

    i = pos + 1
    value = 0
    while i < end and text[i] not in "*.)":
        digit = _digit(text[i])
        if digit is None:
            raise ParseError(INVALID_NUMBER, i)
        value = value * 10 + digit
        i += 1

    remaining = max_decimals
    if remaining and i < end and text[i] == ".":
        i += 1
        while i < end and text[i] not in "*)" and remaining:
            remaining -= 1
            digit = _digit(text[i])
            if digit is None:
                raise ParseError(INVALID_NUMBER, i)
            value = value * 10 + digit
            i += 1

    value *= 10**remaining

    expected = str(unit) if unit else ""
    if expected:
        if i >= end or text[i] != "*":
            raise ParseError("Missing unit", i)
        i += 1
        unit_start = i
        matched = 0
        while i < end and text[i] != ")" and matched < len(expected):
            if text[i] != expected[matched]:
                raise ParseError(INVALID_UNIT, unit_start)
            i += 1
            matched += 1
        if matched < len(expected):
            raise ParseError(INVALID_UNIT, unit_start)

    if i >= end or text[i] != ")":
        raise ParseError("Extra data", i)

    return value & 0xFFFFFFFF, i + 1


def parse_obis_id(text: str, pos: int = 0, end: int | None = None) -> tuple[ObisId, int]:
    """Parse an OBIS id of the form ``a-b:c.d.e.f``.

    Parsing stops at the first character that does not fit. Parts that
    were not reached are set to 255.
    """
    end = _resolve_end(text, end)
    parts = [0] * 6
    part = 0
    i = pos
    while i < end:
        char = text[i]
        digit = _digit(char)
        if digit is not None:
            if parts[part] > 25 or (parts[part] == 25 and digit > 5):
                raise ParseError("Obis ID has number over 255", i)
            parts[part] = parts[part] * 10 + digit
        elif part == 0 and char == "-":
            part += 1
        elif part == 1 and char == ":":
            part += 1
        elif 1 < part < 5 and char == ".":
            part += 1
        else:
            break
        i += 1

    if i == pos:
        raise ParseError("OBIS id Empty", pos)

    for unreached in range(part + 1, 6):
        parts[unreached] = 255

    return ObisId(*parts), i


def parse_crc(text: str, pos: int = 0, end: int | None = None) -> tuple[int, int]:
    """Parse the four hexadecimal characters of a checksum."""
    end = _resolve_end(text, end)
    if pos + CRC_LEN > end:
        raise ParseError("No checksum found", pos)
    digits = text[pos:pos + CRC_LEN]
    if not all(char in _HEX_DIGITS for char in digits):
        raise ParseError("Incomplete or malformed checksum", pos)
    return int(digits, 16), pos + CRC_LEN


def parse_telegram(data: LineHandler, text: str, unknown_error: bool = False) -> int:
    """Parse a complete telegram from ``/`` up to and including the checksum.

    The checksum is verified before any line is handed to ``data``.
    Text after the checksum is ignored; the index of its first character
    is returned.
    """
    if not text or text[0] != "/":
        raise ParseError("Data should start with /", 0)

    bang = text.find("!", 1)
    if bang < 0:
        raise ParseError("No checksum found", len(text))

    expected = crc16(text[:bang + 1])
    check, after = parse_crc(text, bang + 1, len(text))
    if check != expected:
        raise ParseError("Checksum mismatch", bang + 1)

    parse_data(data, text, 1, bang, unknown_error)
    return after


def parse_data(
    data: LineHandler,
    text: str,
    start: int = 0,
    end: int | None = None,
    unknown_error: bool = False,
) -> None:
    """Parse the lines of a telegram without verifying its checksum.

    ``start`` is the first character after the leading ``/`` and ``end``
    the index of the ``!`` before the checksum.
    """
    end = _resolve_end(text, end)
    line_start = line_end = start

    while line_end < end:
        if text[line_end] in "\r\n":
            # The identification line looks like XXX5<id>: a manufacturer
            # code and a baud rate indication of 5 (or 3 for older meters).
            if line_start + 3 >= line_end or text[line_start + 3] not in "53":
                raise ParseError("Invalid identification string", line_start)
            data.parse_line(IDENTIFICATION_ID, text, line_start, line_end)
            line_end += 1
            line_start = line_end
            break
        line_end += 1

    while line_end < end:
        if text[line_end] in "\r\n":
            parse_line(data, text, line_start, line_end, unknown_error)
            line_start = line_end + 1
        line_end += 1

    if line_end != line_start:
        raise ParseError("Last dataline not CRLF terminated", line_end)


def parse_line(
    data: LineHandler,
    text: str,
    start: int,
    end: int | None = None,
    unknown_error: bool = False,
) -> int:
    """Parse one data line and hand its value to ``data``.

    Empty lines are skipped. Returns ``end``.
    """
    end = _resolve_end(text, end)
    if start == end:
        return end

    obis_id, value_pos = parse_obis_id(text, start, end)
    stopped = data.parse_line(obis_id, text, value_pos, end)

    if stopped != value_pos and stopped != end:
        raise ParseError("Trailing characters on data line", stopped)
    if stopped == value_pos and unknown_error:
        raise ParseError("Unknown field", start)
    return end