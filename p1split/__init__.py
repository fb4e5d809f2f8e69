"""Read, check, parse and copy DSMR P1 smart meter telegrams."""

__version__ = "1.0.0"

__all__ = ["crc16", "obis", "units", "parser", "fields", "reader", "splitter"]