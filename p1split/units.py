"""Units of measurement and M-Bus channel numbers used in P1 telegrams."""

from __future__ import annotations

from enum import Enum, IntEnum

__all__ = ["Unit", "MBusId"]


class Unit(str, Enum):
    """A unit as written after the ``*`` in a telegram value."""

    NONE = ""
    KWH = "kWh"
    WH = "Wh"
    KW = "kW"
    W = "W"
    V = "V"
    MV = "mV"
    A = "A"
    MA = "mA"
    M3 = "m3"
    DM3 = "dm3"
    GJ = "GJ"
    MJ = "MJ"

    def __str__(self) -> str:
        return self.value


class MBusId(IntEnum):
    """M-Bus channel on which a sub-meter reports."""

    GAS = 1
    WATER = 2
    THERMAL = 3
    SLAVE = 4