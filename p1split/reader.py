"""Reading P1 telegrams byte by byte from a serial stream.

A :class:`P1Reader` drives the data request line of a P1 port and
collects the bytes the meter sends. Once a complete telegram with a
correct checksum has arrived it stays available until it is cleared,
parsed, or replaced by the start of the next telegram.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Callable, Protocol, TypeVar

from .crc16 import crc16_update
from .obis import ParseError
from .parser import CRC_LEN, LineHandler, parse_crc, parse_data

__all__ = ["ByteStream", "ReaderState", "P1Reader"]

_Data = TypeVar("_Data", bound=LineHandler)


class ByteStream(Protocol):
    """A non-blocking byte source such as an open serial port."""

    @property
    def in_waiting(self) -> int:
        """Number of bytes that can be read without waiting."""
        ...

    def read(self, size: int = 1) -> bytes:
        """Return up to ``size`` bytes; an empty result means none are pending."""
        ...


class ReaderState(Enum):
    """Where the reader is in receiving a telegram."""

    DISABLED = auto()
    WAITING = auto()
    READING = auto()
    CHECKSUM = auto()


class P1Reader:
    """Collects telegrams from ``stream`` and controls the request line.

    ``request_pin`` is called with ``True`` to ask the meter for data and
    with ``False`` to stop it; it may be ``None`` when the line is not
    controlled. The line is switched off on creation.
    """

    def __init__(
        self,
        stream: ByteStream,
        request_pin: Callable[[bool], None] | None = None,
    ) -> None:
        self._stream = stream
        self._request_pin = request_pin
        self._once = False
        self._state = ReaderState.DISABLED
        self._available = False
        self._buffer: list[str] = []
        self._crc_text = ""
        self._crc = 0
        self._set_request(False)

    @property
    def state(self) -> ReaderState:
        """The current receive state."""
        return self._state

    def _set_request(self, level: bool) -> None:
        if self._request_pin is not None:
            self._request_pin(level)

    def enable(self, once: bool = False) -> None:
        """Raise the request line so the meter starts sending.

        With ``once`` the line is lowered again after the first complete
        and correct telegram; otherwise telegrams keep coming.
        """
        self._set_request(True)
        self._state = ReaderState.WAITING
        self._once = once

    def disable(self) -> None:
        """Lower the request line and drop pending bytes.

        A partly received telegram is discarded; a complete one is kept
        until :meth:`clear` is called.
        """
        self._set_request(False)
        self._state = ReaderState.DISABLED
        if not self._available:
            self._buffer.clear()
        while self._stream.read(1):
            pass

    def available(self) -> bool:
        """Whether a complete, correct telegram is waiting."""
        return self._available

    def loop(self) -> bool:
        """Consume pending bytes; return True once a telegram is complete."""
        while True:
            if self._state is ReaderState.CHECKSUM:
                if self._stream.in_waiting < CRC_LEN:
                    return False
                digits = self._stream.read(CRC_LEN).decode("latin-1")
                self._crc_text += digits + "\r\n"
                self._state = ReaderState.WAITING
                try:
                    check, _ = parse_crc(digits)
                except ParseError:
                    continue
                if check == self._crc:
                    self._available = True
                    if self._once:
                        self.disable()
                    return True
                continue

            chunk = self._stream.read(1)
            if not chunk:
                return False
            byte = chunk[0]

            if self._state is ReaderState.WAITING:
                if byte == ord("/"):
                    self._state = ReaderState.READING
                    self._crc = crc16_update(0, byte)
                    self.clear()
            elif self._state is ReaderState.READING:
                self._crc = crc16_update(self._crc, byte)
                if byte == ord("!"):
                    self._state = ReaderState.CHECKSUM
                else:
                    self._buffer.append(chr(byte))
            # Bytes arriving while disabled are dropped.

    def raw(self) -> str:
        """The telegram received so far, without the leading ``/`` and the ``!``."""
        return "".join(self._buffer)

    def raw_crc(self) -> str:
        """The checksum text that follows the telegram, ending in CRLF."""
        return self._crc_text

    def parse(self, data: _Data) -> _Data:
        """Parse the received telegram into ``data`` and clear it.

        Raises :class:`ParseError` with a message that shows the offending
        line when the telegram cannot be parsed.
        """
        text = self.raw()
        try:
            parse_data(data, text, 0, len(text))
        except ParseError as exc:
            raise ParseError(exc.full_error(text)) from exc
        finally:
            self.clear()
        return data

    def clear(self) -> None:
        """Forget a complete telegram, if one is held."""
        if self._available:
            self._buffer.clear()
            self._available = False
            self._crc_text = "!"