# p1split

`p1split` handles telegrams from the P1 port of a DSMR smart meter. It
checks their CRC-16 checksum, can parse them into named fields, and can
copy every valid telegram unchanged to several outputs, so that more
than one consumer can share one meter.

It has no dependencies outside the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `p1split.crc16`: `crc16_update` (the CRC-16 used by P1, polynomial
  0xA001), `crc_xmodem_update`, `crc_ccitt_update`,
  `crc_ibutton_update`, and `crc16(data, initial=0)` for a whole byte
  string or Latin-1 text.
- `p1split.obis`: `ObisId`, the six-part `a-b:c.d.e.f` identifier of a
  data line (missing parts default to 255), and `ParseError`, raised
  when a telegram or value is malformed. `ParseError.position` is the
  index where the problem was found, and `ParseError.full_error(text)`
  shows the offending line with a `^` under that position, followed by
  the message.
- `p1split.units`: the `Unit` enumeration (kWh, Wh, kW, W, V, mV, A, mA,
  m3, dm3, GJ, MJ and none) and `MBusId` (GAS=1, WATER=2, THERMAL=3,
  SLAVE=4).
- `p1split.parser`: value parsers `parse_string`, `parse_number`,
  `parse_obis_id` and `parse_crc`, each returning the value and the
  index after it, and the telegram-level `parse_telegram`, `parse_data`
  and `parse_line`.
- `p1split.fields`: `FIELDS`, every known DSMR field by name, looked up
  with `field_by_name`; the `Field` description with its `FieldKind`;
  the value types `FixedValue` and `TimestampedFixedValue`; and
  `ParsedData`, a container for the fields you choose.
- `p1split.reader`: `P1Reader`, which reads bytes from a stream, frames
  telegrams between `/` and `!`, verifies the checksum and holds the
  last good telegram until it is cleared.
- `p1split.splitter`: `Splitter` and `Output`, which copy each good
  telegram to every output whose request line is active, and the
  `p1split` command.

## Parsing a telegram

```python
from p1split.fields import ParsedData
from p1split.obis import ParseError
from p1split.parser import parse_telegram

data = ParsedData("identification", "timestamp", "power_delivered", "gas_delivered")

try:
    parse_telegram(data, telegram_text, False)
except ParseError as exc:
    print(exc.full_error(telegram_text))
else:
    print(data["power_delivered"].val())     # kW as a float
    print(data.power_delivered.int_val)      # W as an integer
    print(data.gas_delivered.timestamp)      # YYMMDDhhmmssX
    print(data.all_present())
```

A telegram must start with `/` and have `!` followed by four hex digits
of CRC-16; the checksum covers everything from `/` up to and including
`!` and is checked before any line is parsed. The first line is the
identification line (its fourth character must be `5` or `3`); every
line must end in CR or LF. A field that appears twice, a number with
the wrong unit or stray characters, a string of the wrong length, or
trailing characters after a value raise `ParseError`. Lines of fields
not held by the `ParsedData` are skipped, unless `unknown_error` is
true, in which case they raise `ParseError("Unknown field")`.

Fixed-point values (energy, power, voltage, gas and so on) keep three
decimals and are stored as integers in thousandths: `int_val` is in Wh,
W, mV, dm3 or MJ, and `val()` (or `float(value)`) gives the value in the
main unit. Fields not found in the telegram read as their default
value; `is_present(name)` tells whether a field was found, and
`apply_each(func)` calls `func(field, value, present)` for each held
field in order.

## Reading from a stream

`P1Reader` takes any object with an `in_waiting` property and a
non-blocking `read(size)` method, and optionally a callable that sets
the data request line (`True` to request, `False` to stop).

```python
from p1split.fields import ParsedData
from p1split.reader import P1Reader

reader = P1Reader(stream, request_pin)
reader.enable(False)              # keep requesting telegrams

while True:
    if reader.loop():             # a complete, checksum-correct telegram
        body = reader.raw()       # everything after "/" up to, not including, "!"
        data = reader.parse(ParsedData("power_delivered"))  # parses and clears
```

`raw_crc()` returns the checksum text received after the telegram,
ending in CRLF; once a telegram has been cleared it starts again from
`"!"`, so that `"/" + raw() + raw_crc()` rebuilds the telegram as sent.
`enable(True)` stops requesting after the first good telegram.
`disable()` lowers the request line, drops pending input and any
half-received telegram, but keeps a complete telegram until `clear()`
or `parse()`. `parse()` raises `ParseError` whose message includes the
offending line and marker.

## Splitting

```python
from p1split.splitter import Output, Splitter

splitter = Splitter(reader, [Output(port_a, requested_a, led_a), Output(port_b)], indicator)
while True:
    splitter.poll()
```

On each `poll()` every output's `led` is set to the state of its
`requested` line, the reader is polled, and a complete telegram is
written as bytes to every output whose `requested()` returns true. The
`indicator` is switched on for at least `Splitter.blink_time` (0.1 s)
per telegram. An `Output` without `requested` always receives
telegrams.

## Command line

```
p1split [INPUT] [-o FILE] [-o FILE ...]
```

Reads telegram data from INPUT (a file, or standard input when omitted
or `-`) and writes every telegram with a correct checksum to each `-o`
file, or to standard output when none is given. It returns 1 and prints
the error when a file cannot be opened. `p1split --help` lists the
options.

## What it does not do

The command works on files and standard streams only: it does not open
serial ports and does not drive or read request lines or LEDs. To use
real ports, pass your own stream and callables to `P1Reader`, `Output`
and `Splitter`.