"""Copies every valid P1 telegram to the outputs that ask for it.

A :class:`Splitter` polls a :class:`P1Reader`. Each output has a data
request line; when a complete telegram arrives it is sent, whole, to
every output whose request line is active. An optional indicator is lit
briefly for every telegram received.
"""

from __future__ import annotations

import argparse
import sys
import time
from contextlib import ExitStack
from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterable, Sequence

from .reader import P1Reader

__all__ = ["BLINK_TIME", "Output", "Splitter", "main"]

BLINK_TIME = 0.1
"""Seconds the indicator stays lit per telegram; less than the telegram interval."""


def _always_requested() -> bool:
    return True


@dataclass
class Output:
    """One outgoing P1 port.

    ``port`` receives the telegram bytes, ``requested`` reports the state
    of the port's data request line and ``led``, if given, mirrors it.
    """

    port: BinaryIO
    requested: Callable[[], bool] = _always_requested
    led: Callable[[bool], None] | None = None


class Splitter:
    """Forwards telegrams from one reader to several outputs."""

    blink_time: float = BLINK_TIME

    def __init__(
        self,
        reader: P1Reader,
        outputs: Iterable[Output],
        indicator: Callable[[bool], None] | None = None,
    ) -> None:
        self.reader = reader
        self.outputs = list(outputs)
        self.indicator = indicator

    def poll(self) -> bool:
        """Run one cycle: update output LEDs, read, and forward a telegram.

        Returns True when a telegram was forwarded.
        """
        for output in self.outputs:
            if output.led is not None:
                output.led(output.requested())
        self.reader.loop()
        if not self.reader.available():
            return False
        self.forward()
        return True

    def forward(self) -> int:
        """Send the available telegram to every requesting output and clear it.

        Returns the number of outputs written to.
        """
        started = time.monotonic()
        if self.indicator is not None:
            self.indicator(True)
        # The leading "/" and the checksum are not part of the raw text.
        telegram = ("/" + self.reader.raw() + self.reader.raw_crc()).encode("latin-1")
        sent = 0
        for output in self.outputs:
            if output.requested():
                output.port.write(telegram)
                sent += 1
        self.reader.clear()
        if self.indicator is not None:
            remaining = started + self.blink_time - time.monotonic()
            if remaining > 0:
                time.sleep(remaining)
            self.indicator(False)
        return sent


class _FeedStream:
    """An in-memory byte stream that is filled from a file in chunks."""

    def __init__(self) -> None:
        self._data = bytearray()

    def feed(self, data: bytes) -> None:
        self._data += data

    @property
    def in_waiting(self) -> int:
        return len(self._data)

    def read(self, size: int = 1) -> bytes:
        chunk = bytes(self._data[:size])
        del self._data[:size]
        return chunk


def _read_chunk(source: BinaryIO) -> bytes:
    read1 = getattr(source, "read1", None)
    return read1(4096) if read1 is not None else source.read(4096)


def main(argv: Sequence[str] | None = None) -> int:
    """Copy the valid telegrams of INPUT to every output (stdout by default)."""
    parser = argparse.ArgumentParser(
        prog="p1split",
        description="Copy every P1 telegram with a correct checksum to each output.",
    )
    parser.add_argument("input", nargs="?", default="-", help="telegram source, '-' for stdin")
    parser.add_argument(
        "-o",
        "--output",
        dest="outputs",
        action="append",
        default=[],
        help="file to copy telegrams to; may be repeated",
    )
    args = parser.parse_args(argv)

    try:
        with ExitStack() as stack:
            if args.input == "-":
                source = sys.stdin.buffer
            else:
                source = stack.enter_context(open(args.input, "rb"))
            ports: list[BinaryIO] = [
                stack.enter_context(open(path, "wb")) for path in args.outputs
            ] or [sys.stdout.buffer]

            stream = _FeedStream()
            reader = P1Reader(stream)
            reader.enable(False)
            splitter = Splitter(reader, [Output(port) for port in ports])

            for chunk in iter(lambda: _read_chunk(source), b""):
                stream.feed(chunk)
                while splitter.poll():
                    for port in ports:
                        port.flush()
    except OSError as exc:
        print(f"p1split: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())