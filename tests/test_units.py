import pytest

from p1split.units import MBusId, Unit


@pytest.mark.parametrize(
    "text,unit",
    [
        ("", Unit.NONE),
        ("kWh", Unit.KWH),
        ("Wh", Unit.WH),
        ("kW", Unit.KW),
        ("W", Unit.W),
        ("V", Unit.V),
        ("mV", Unit.MV),
        ("A", Unit.A),
        ("mA", Unit.MA),
        ("m3", Unit.M3),
        ("dm3", Unit.DM3),
        ("GJ", Unit.GJ),
        ("MJ", Unit.MJ),
    ],
)
def test_unit_lookup_by_text(text, unit):
    assert Unit(text) is unit
    assert str(unit) == text


def test_unit_formats_as_its_text():
    assert f"{Unit('m3')}" == "m3"
    assert f"{Unit('kWh')}" == "kWh"


def test_unit_is_case_sensitive():
    with pytest.raises(ValueError):
        Unit("kwh")


def test_unknown_unit_rejected():
    with pytest.raises(ValueError):
        Unit("furlong")


def test_units_are_distinct():
    values = [unit.value for unit in Unit]
    assert len(set(values)) == len(values)
    assert [Unit(value) for value in values] == list(Unit)


@pytest.mark.parametrize(
    "number,channel",
    [(1, MBusId.GAS), (2, MBusId.WATER), (3, MBusId.THERMAL), (4, MBusId.SLAVE)],
)
def test_mbus_lookup_by_number(number, channel):
    assert MBusId(number) is channel
    assert int(channel) == number


def test_unknown_mbus_channel_rejected():
    with pytest.raises(ValueError):
        MBusId(5)