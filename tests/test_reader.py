import pytest

from p1split.crc16 import crc16
from p1split.fields import ParsedData
from p1split.obis import ParseError
from p1split.reader import P1Reader, ReaderState

BODY = "XMX5TESTMETER01\r\n\r\n1-0:1.8.1(000123.456*kWh)\r\n0-0:96.14.0(0001)\r\n"


def checksum(body: str) -> str:
    return f"{crc16('/' + body + '!'):04X}"


def telegram(body: str = BODY) -> bytes:
    return ("/" + body + "!" + checksum(body)).encode("latin-1")


class FakeStream:
    def __init__(self, data: bytes = b"") -> None:
        self.data = bytearray(data)

    def feed(self, data: bytes) -> None:
        self.data += data

    @property
    def in_waiting(self) -> int:
        return len(self.data)

    def read(self, size: int = 1) -> bytes:
        chunk = bytes(self.data[:size])
        del self.data[:size]
        return chunk


@pytest.fixture
def pin_levels():
    return []


@pytest.fixture
def stream():
    return FakeStream()


@pytest.fixture
def reader(stream, pin_levels):
    return P1Reader(stream, pin_levels.append)


def test_request_line_is_lowered_on_creation(reader, pin_levels):
    assert pin_levels == [False]
    assert reader.state is ReaderState.DISABLED


def test_bytes_are_dropped_while_disabled(reader, stream):
    stream.feed(telegram())
    assert reader.loop() is False
    assert reader.available() is False
    assert stream.in_waiting == 0
    assert reader.raw() == ""


def test_enable_raises_request_line(reader, pin_levels):
    reader.enable(False)
    assert pin_levels == [False, True]
    assert reader.state is ReaderState.WAITING


def test_complete_telegram_becomes_available(reader, stream):
    reader.enable(False)
    stream.feed(b"garbage" + telegram())
    assert reader.loop() is True
    assert reader.available() is True
    assert reader.raw() == BODY
    assert reader.raw_crc() == checksum(BODY) + "\r\n"


def test_checksum_waits_for_all_four_digits(reader, stream):
    reader.enable(False)
    data = telegram()
    stream.feed(data[:-2])
    assert reader.loop() is False
    assert reader.state is ReaderState.CHECKSUM
    stream.feed(data[-2:])
    assert reader.loop() is True


def test_lowercase_checksum_is_accepted(reader, stream):
    reader.enable(False)
    stream.feed(("/" + BODY + "!" + checksum(BODY).lower()).encode("latin-1"))
    assert reader.loop() is True


def test_wrong_checksum_is_rejected(reader, stream):
    reader.enable(False)
    wrong = f"{(int(checksum(BODY), 16) ^ 1):04X}"
    stream.feed(("/" + BODY + "!" + wrong).encode("latin-1"))
    assert reader.loop() is False
    assert reader.available() is False
    assert reader.state is ReaderState.WAITING


def test_malformed_checksum_is_rejected(reader, stream):
    reader.enable(False)
    stream.feed(("/" + BODY + "!zz" + "zz").encode("latin-1"))
    assert reader.loop() is False
    assert reader.available() is False


def test_once_disables_after_first_telegram(reader, stream, pin_levels):
    reader.enable(True)
    stream.feed(telegram() + telegram())
    assert reader.loop() is True
    assert pin_levels[-1] is False
    assert reader.state is ReaderState.DISABLED
    assert stream.in_waiting == 0
    assert reader.available() is True
    assert reader.raw() == BODY


def test_clear_drops_message_and_resets_checksum_text(reader, stream):
    reader.enable(False)
    stream.feed(telegram())
    reader.loop()
    reader.clear()
    assert reader.available() is False
    assert reader.raw() == ""
    assert reader.raw_crc() == "!"


def test_second_telegram_checksum_text_starts_with_bang(reader, stream):
    reader.enable(False)
    stream.feed(telegram())
    reader.loop()
    reader.clear()
    stream.feed(telegram())
    assert reader.loop() is True
    assert reader.raw_crc() == "!" + checksum(BODY) + "\r\n"


def test_start_of_next_telegram_replaces_message(reader, stream):
    other = "XMX5OTHERMETER02\r\n\r\n"
    reader.enable(False)
    stream.feed(telegram())
    assert reader.loop() is True
    stream.feed(telegram(other))
    assert reader.loop() is True
    assert reader.raw() == other


def test_disable_keeps_complete_message(reader, stream):
    reader.enable(False)
    stream.feed(telegram())
    reader.loop()
    stream.feed(b"/partial")
    reader.disable()
    assert reader.available() is True
    assert reader.raw() == BODY
    assert stream.in_waiting == 0


def test_disable_discards_partial_message(reader, stream):
    reader.enable(False)
    stream.feed(b"/partial")
    reader.loop()
    reader.disable()
    assert reader.raw() == ""
    assert reader.state is ReaderState.DISABLED


def test_parse_fills_data_and_clears(reader, stream):
    reader.enable(False)
    stream.feed(telegram())
    reader.loop()
    data = reader.parse(ParsedData("identification", "energy_delivered_tariff1", "electricity_tariff"))
    assert data["identification"] == "XMX5TESTMETER01"
    assert data["energy_delivered_tariff1"].int_val == 123456
    assert data["electricity_tariff"] == "0001"
    assert data.all_present()
    assert reader.available() is False


def test_parse_error_shows_context_and_clears(reader, stream):
    bad = "AB\r\n\r\n"
    reader.enable(False)
    stream.feed(telegram(bad))
    assert reader.loop() is True
    with pytest.raises(ParseError) as info:
        reader.parse(ParsedData("identification"))
    assert info.value.message.endswith("Invalid identification string")
    assert info.value.message.startswith("AB\r\n^\r\n")
    assert reader.available() is False