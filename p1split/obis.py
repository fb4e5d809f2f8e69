"""OBIS identifiers and the error raised when a telegram fails to parse."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["ObisId", "ParseError"]


@dataclass(frozen=True)
class ObisId:
    """A six-part OBIS identifier, written as ``a-b:c.d.e.f``.

    Parts that are not given default to 255.
    """

    a: int
    b: int = 255
    c: int = 255
    d: int = 255
    e: int = 255
    f: int = 255

    def __post_init__(self) -> None:
        for part in self.values:
            if not 0 <= part <= 255:
                raise ValueError(f"OBIS id part out of range: {part}")

    @property
    def values(self) -> tuple[int, int, int, int, int, int]:
        """All six parts, in order."""
        return (self.a, self.b, self.c, self.d, self.e, self.f)

    def __str__(self) -> str:
        return f"{self.a}-{self.b}:{self.c}.{self.d}.{self.e}.{self.f}"


class ParseError(Exception):
    """A telegram or one of its values could not be parsed.

    ``position`` is the index into the parsed text where the problem was
    found, or ``None`` when no location applies.
    """

    def __init__(self, message: str, position: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        return self.message

    def full_error(self, text: str | None) -> str:
        """Return the message, preceded by the offending line and a marker.

        The line containing ``position`` is shown, followed by a line with
        a caret under the position. Without a position or text, only the
        message is returned.
        """
        if self.position is None or text is None:
            return self.message
        ctx = self.position
        line_end = ctx
        while line_end < len(text) and text[line_end] not in "\r\n":
            line_end += 1
        line_start = ctx
        while line_start > 0 and text[line_start - 1] not in "\r\n":
            line_start -= 1
        marker = " " * (ctx - line_start) + "^"
        return f"{text[line_start:line_end]}\r\n{marker}\r\n{self.message}"