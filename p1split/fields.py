"""The data fields a P1 telegram can carry, and a container to parse into.

Every known field is described by a :class:`Field`: its name, its OBIS id,
how its value is written and, for numbers, the unit it must carry. A
:class:`ParsedData` holds a chosen set of fields and receives the lines of
a telegram from the parser, storing each value it recognises.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator

from .obis import ObisId, ParseError
from .parser import DUPLICATE_FIELD, parse_number, parse_string
from .units import MBusId, Unit

__all__ = [
    "FieldKind",
    "FixedValue",
    "TimestampedFixedValue",
    "Field",
    "ParsedData",
    "FIELDS",
    "field_by_name",
]

TIMESTAMP_LEN = 13
"""Length of a ``YYMMDDhhmmssX`` timestamp, X being W or S."""


class FieldKind(Enum):
    """How the value of a field is written in a telegram."""

    STRING = "string"
    TIMESTAMP = "timestamp"
    FIXED = "fixed"
    TIMESTAMPED_FIXED = "timestamped_fixed"
    INT = "int"
    RAW = "raw"


@dataclass(frozen=True)
class FixedValue:
    """A three-decimal number stored as an integer in thousandths."""

    int_val: int = 0

    def val(self) -> float:
        """The value in the field's own unit."""
        return self.int_val / 1000.0

    def __float__(self) -> float:
        return self.val()


@dataclass(frozen=True)
class TimestampedFixedValue(FixedValue):
    """A fixed-point value together with the time it was captured."""

    timestamp: str = ""


@dataclass(frozen=True)
class Field:
    """Description of one field that may appear in a telegram."""

    name: str
    obis_id: ObisId
    kind: FieldKind
    unit: Unit = Unit.NONE
    int_unit: Unit = Unit.NONE
    min_len: int = 0
    max_len: int = 0
    bits: int = 32

    def default(self) -> Any:
        """The value a field holds before anything was parsed into it."""
        if self.kind is FieldKind.FIXED:
            return FixedValue()
        if self.kind is FieldKind.TIMESTAMPED_FIXED:
            return TimestampedFixedValue()
        if self.kind is FieldKind.INT:
            return 0
        return ""

    def parse(self, text: str, pos: int = 0, end: int | None = None) -> tuple[Any, int]:
        """Parse this field's value starting at ``pos``.

        Returns the value and the index of the first character not used.
        """
        if end is None:
            end = len(text)
        if self.kind is FieldKind.STRING:
            return parse_string(self.min_len, self.max_len, text, pos, end)
        if self.kind is FieldKind.TIMESTAMP:
            return parse_string(TIMESTAMP_LEN, TIMESTAMP_LEN, text, pos, end)
        if self.kind is FieldKind.FIXED:
            value, after = parse_number(3, self.unit, text, pos, end)
            return FixedValue(value), after
        if self.kind is FieldKind.TIMESTAMPED_FIXED:
            stamp, after = parse_string(TIMESTAMP_LEN, TIMESTAMP_LEN, text, pos, end)
            value, after = parse_number(3, self.unit, text, after, end)
            return TimestampedFixedValue(value, stamp), after
        if self.kind is FieldKind.INT:
            value, after = parse_number(0, self.unit, text, pos, end)
            return value & ((1 << self.bits) - 1), after
        return text[pos:end], end


def _string(name: str, obis: ObisId, min_len: int, max_len: int) -> Field:
    return Field(name, obis, FieldKind.STRING, min_len=min_len, max_len=max_len)


def _fixed(name: str, obis: ObisId, unit: Unit, int_unit: Unit) -> Field:
    return Field(name, obis, FieldKind.FIXED, unit, int_unit)


def _timestamped(name: str, obis: ObisId, unit: Unit, int_unit: Unit) -> Field:
    return Field(name, obis, FieldKind.TIMESTAMPED_FIXED, unit, int_unit)


def _int(name: str, obis: ObisId, bits: int, unit: Unit = Unit.NONE) -> Field:
    return Field(name, obis, FieldKind.INT, unit, bits=bits)


def _raw(name: str, obis: ObisId) -> Field:
    return Field(name, obis, FieldKind.RAW)


def _mbus_fields(prefix: str, channel: MBusId, unit: Unit, int_unit: Unit) -> list[Field]:
    return [
        _int(f"{prefix}_device_type", ObisId(0, channel, 24, 1, 0), 16),
        _string(f"{prefix}_equipment_id", ObisId(0, channel, 96, 1, 0), 0, 96),
        _int(f"{prefix}_valve_position", ObisId(0, channel, 24, 4, 0), 8),
        _timestamped(f"{prefix}_delivered", ObisId(0, channel, 24, 2, 1), unit, int_unit),
    ]


_FIELD_LIST: list[Field] = [
    # The identification line is offered under the all-ones id.
    _raw("identification", ObisId(255, 255, 255, 255, 255, 255)),
    _string("p1_version", ObisId(1, 3, 0, 2, 8), 2, 2),
    Field("timestamp", ObisId(0, 0, 1, 0, 0), FieldKind.TIMESTAMP),
    _string("equipment_id", ObisId(0, 0, 96, 1, 1), 0, 96),
    _fixed("energy_delivered_tariff1", ObisId(1, 0, 1, 8, 1), Unit.KWH, Unit.WH),
    _fixed("energy_delivered_tariff2", ObisId(1, 0, 1, 8, 2), Unit.KWH, Unit.WH),
    _fixed("energy_returned_tariff1", ObisId(1, 0, 2, 8, 1), Unit.KWH, Unit.WH),
    _fixed("energy_returned_tariff2", ObisId(1, 0, 2, 8, 2), Unit.KWH, Unit.WH),
    _string("electricity_tariff", ObisId(0, 0, 96, 14, 0), 4, 4),
    _fixed("power_delivered", ObisId(1, 0, 1, 7, 0), Unit.KW, Unit.W),
    _fixed("power_returned", ObisId(1, 0, 2, 7, 0), Unit.KW, Unit.W),
    _fixed("electricity_threshold", ObisId(0, 0, 17, 0, 0), Unit.KW, Unit.W),
    _int("electricity_switch_position", ObisId(0, 0, 96, 3, 10), 8),
    _int("electricity_failures", ObisId(0, 0, 96, 7, 21), 32),
    _int("electricity_long_failures", ObisId(0, 0, 96, 7, 9), 32),
    _raw("electricity_failure_log", ObisId(1, 0, 99, 97, 0)),
    _int("electricity_sags_l1", ObisId(1, 0, 32, 32, 0), 32),
    _int("electricity_sags_l2", ObisId(1, 0, 52, 32, 0), 32),
    _int("electricity_sags_l3", ObisId(1, 0, 72, 32, 0), 32),
    _int("electricity_swells_l1", ObisId(1, 0, 32, 36, 0), 32),
    _int("electricity_swells_l2", ObisId(1, 0, 52, 36, 0), 32),
    _int("electricity_swells_l3", ObisId(1, 0, 72, 36, 0), 32),
    _string("message_short", ObisId(0, 0, 96, 13, 1), 0, 16),
    _string("message_long", ObisId(0, 0, 96, 13, 0), 0, 2048),
    _fixed("voltage_l1", ObisId(1, 0, 32, 7, 0), Unit.V, Unit.MV),
    _fixed("voltage_l2", ObisId(1, 0, 52, 7, 0), Unit.V, Unit.MV),
    _fixed("voltage_l3", ObisId(1, 0, 72, 7, 0), Unit.V, Unit.MV),
    _int("current_l1", ObisId(1, 0, 31, 7, 0), 16, Unit.A),
    _int("current_l2", ObisId(1, 0, 51, 7, 0), 16, Unit.A),
    _int("current_l3", ObisId(1, 0, 71, 7, 0), 16, Unit.A),
    _fixed("power_delivered_l1", ObisId(1, 0, 21, 7, 0), Unit.KW, Unit.W),
    _fixed("power_delivered_l2", ObisId(1, 0, 41, 7, 0), Unit.KW, Unit.W),
    _fixed("power_delivered_l3", ObisId(1, 0, 61, 7, 0), Unit.KW, Unit.W),
    _fixed("power_returned_l1", ObisId(1, 0, 22, 7, 0), Unit.KW, Unit.W),
    _fixed("power_returned_l2", ObisId(1, 0, 42, 7, 0), Unit.KW, Unit.W),
    _fixed("power_returned_l3", ObisId(1, 0, 62, 7, 0), Unit.KW, Unit.W),
    *_mbus_fields("gas", MBusId.GAS, Unit.M3, Unit.DM3),
    *_mbus_fields("thermal", MBusId.THERMAL, Unit.GJ, Unit.MJ),
    *_mbus_fields("water", MBusId.WATER, Unit.M3, Unit.DM3),
    *_mbus_fields("slave", MBusId.SLAVE, Unit.M3, Unit.DM3),
]

FIELDS: dict[str, Field] = {field.name: field for field in _FIELD_LIST}
"""Every known field, by name, in definition order."""


def field_by_name(name: str) -> Field:
    """Return the field called ``name``; raise KeyError if there is none."""
    try:
        return FIELDS[name]
    except KeyError:
        raise KeyError(f"unknown field: {name}") from None


class ParsedData:
    """Values of a chosen set of fields, filled in while parsing.

    Fields are given by name or as :class:`Field` objects. Values can be
    read with ``data["name"]`` or ``data.name``; a field that was not
    found in the telegram reads as its default value.
    """

    def __init__(self, *args: str | Field) -> None:
        fields = [arg if isinstance(arg, Field) else field_by_name(arg) for arg in args]
        by_name: dict[str, Field] = {}
        for field in fields:
            if field.name in by_name:
                raise ValueError(f"field listed twice: {field.name}")
            by_name[field.name] = field
        self._fields = tuple(fields)
        self._by_name = by_name
        self._by_id = {field.obis_id: field for field in reversed(fields)}
        self._values: dict[str, Any] = {}
        self._present: set[str] = set()

    @property
    def fields(self) -> tuple[Field, ...]:
        """The fields this container holds, in the order given."""
        return self._fields

    def parse_line(self, obis_id: ObisId, text: str, pos: int, end: int) -> int:
        """Store the value of the field with ``obis_id``, if it is held here.

        Returns ``pos`` when no field matches, otherwise the index where
        parsing of the value stopped.
        """
        field = self._by_id.get(obis_id)
        if field is None:
            return pos
        if field.name in self._present:
            raise ParseError(DUPLICATE_FIELD, pos)
        self._present.add(field.name)
        value, after = field.parse(text, pos, end)
        self._values[field.name] = value
        return after

    def is_present(self, name: str) -> bool:
        """Whether the named field was found in the telegram."""
        self._field(name)
        return name in self._present

    def all_present(self) -> bool:
        """Whether every field held here was found."""
        return all(field.name in self._present for field in self._fields)

    def apply_each(self, func: Callable[[Field, Any, bool], Any]) -> None:
        """Call ``func(field, value, present)`` for every field, in order."""
        for field in self._fields:
            func(field, self[field.name], field.name in self._present)

    def _field(self, name: str) -> Field:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"field not held: {name}") from None

    def __getitem__(self, name: str) -> Any:
        field = self._field(name)
        return self._values.get(name, field.default())

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_name)

    def __len__(self) -> int:
        return len(self._fields)