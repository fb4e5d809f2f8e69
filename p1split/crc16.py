"""CRC helpers used to validate P1 telegrams.

Each ``*_update`` function folds one byte into a running checksum.
``crc16`` folds a whole byte string with the CRC-16 variant DSMR uses.
"""

from __future__ import annotations

from functools import reduce

__all__ = [
    "crc16_update",
    "crc_xmodem_update",
    "crc_ccitt_update",
    "crc_ibutton_update",
    "crc16",
]


def _check_byte(data: int) -> int:
    if not 0 <= data <= 0xFF:
        raise ValueError(f"byte value out of range: {data}")
    return data


def crc16_update(crc: int, data: int) -> int:
    """Fold one byte into a CRC-16 (polynomial 0xA001, reflected)."""
    crc = (crc & 0xFFFF) ^ _check_byte(data)
    for _ in range(8):
        crc = (crc >> 1) ^ 0xA001 if crc & 1 else crc >> 1
    return crc


def crc_xmodem_update(crc: int, data: int) -> int:
    """Fold one byte into a CRC-XMODEM (polynomial 0x1021, MSB first)."""
    crc = (crc & 0xFFFF) ^ (_check_byte(data) << 8)
    for _ in range(8):
        crc = ((crc << 1) ^ 0x1021) if crc & 0x8000 else crc << 1
        crc &= 0xFFFF
    return crc


def crc_ccitt_update(crc: int, data: int) -> int:
    """Fold one byte into a reflected CRC-CCITT (polynomial 0x8408)."""
    crc &= 0xFFFF
    data = _check_byte(data) ^ (crc & 0xFF)
    data = (data ^ (data << 4)) & 0xFF
    return (((data << 8) | (crc >> 8)) ^ (data >> 4) ^ (data << 3)) & 0xFFFF


def crc_ibutton_update(crc: int, data: int) -> int:
    """Fold one byte into a Dallas/Maxim 1-Wire CRC-8 (polynomial 0x8C)."""
    crc = (crc & 0xFF) ^ _check_byte(data)
    for _ in range(8):
        crc = (crc >> 1) ^ 0x8C if crc & 1 else crc >> 1
    return crc


def crc16(data: bytes | bytearray | str, initial: int = 0) -> int:
    """Compute the CRC-16 of ``data``, continuing from ``initial``.

    Text is encoded as Latin-1 so that every character maps to one byte.
    """
    if isinstance(data, str):
        data = data.encode("latin-1")
    return reduce(crc16_update, data, initial & 0xFFFF)