import pytest

from p1split.crc16 import (
    crc16,
    crc16_update,
    crc_ccitt_update,
    crc_ibutton_update,
    crc_xmodem_update,
)

CHECK = b"123456789"
SAMPLE = b"/ISK5\\2M550T-1012\r\n\r\n1-0:1.8.1(000123.456*kWh)\r\n!"


def _fold(update, data, initial):
    crc = initial
    for byte in data:
        crc = update(crc, byte)
    return crc


def test_crc16_check_value():
    assert crc16(CHECK) == 0xBB3D


def test_xmodem_check_value():
    crc = 0
    for byte in CHECK:
        crc = crc_xmodem_update(crc, byte)
    assert crc == 0x31C3


def test_ibutton_check_value():
    crc = 0
    for byte in CHECK:
        crc = crc_ibutton_update(crc, byte)
    assert crc == 0xA1


def test_crc16_matches_bytewise_updates():
    assert crc16(SAMPLE) == _fold(crc16_update, SAMPLE, 0)


def test_crc16_accepts_text_and_bytes_alike():
    assert crc16(SAMPLE.decode("latin-1")) == crc16(SAMPLE)


def test_crc16_chaining_with_initial():
    head, tail = SAMPLE[:10], SAMPLE[10:]
    assert crc16(tail, crc16(head)) == crc16(SAMPLE)


def test_crc16_empty_returns_initial():
    assert crc16(b"") == 0
    assert crc16(b"", 0x1234) == 0x1234


def test_crc16_residue_is_zero():
    crc = crc16(SAMPLE)
    assert crc16(SAMPLE + crc.to_bytes(2, "little")) == 0


def test_ccitt_residue_is_zero():
    crc = 0xFFFF
    for byte in SAMPLE:
        crc = crc_ccitt_update(crc, byte)
    residue = 0xFFFF
    for byte in SAMPLE + crc.to_bytes(2, "little"):
        residue = crc_ccitt_update(residue, byte)
    assert residue == 0


def test_xmodem_residue_is_zero():
    crc = 0
    for byte in SAMPLE:
        crc = crc_xmodem_update(crc, byte)
    residue = 0
    for byte in SAMPLE + crc.to_bytes(2, "big"):
        residue = crc_xmodem_update(residue, byte)
    assert residue == 0


def test_ibutton_residue_is_zero():
    crc = 0
    for byte in SAMPLE:
        crc = crc_ibutton_update(crc, byte)
    residue = 0
    for byte in SAMPLE + bytes([crc]):
        residue = crc_ibutton_update(residue, byte)
    assert residue == 0


@pytest.mark.parametrize(
    "update", [crc16_update, crc_xmodem_update, crc_ccitt_update, crc_ibutton_update]
)
def test_zero_in_zero_out(update):
    assert update(0, 0) == 0


@pytest.mark.parametrize(
    "update,limit",
    [
        (crc16_update, 0xFFFF),
        (crc_xmodem_update, 0xFFFF),
        (crc_ccitt_update, 0xFFFF),
        (crc_ibutton_update, 0xFF),
    ],
)
def test_results_stay_in_range(update, limit):
    results = [update(seed, byte) for seed in (0, 0x5A, limit) for byte in range(256)]
    assert all(0 <= value <= limit for value in results)


@pytest.mark.parametrize(
    "update", [crc16_update, crc_xmodem_update, crc_ccitt_update, crc_ibutton_update]
)
@pytest.mark.parametrize("byte", [-1, 256])
def test_out_of_range_byte_rejected(update, byte):
    with pytest.raises(ValueError):
        update(0, byte)