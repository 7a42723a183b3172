r"""
Flagstaff value contract and scalar catalog.

Overview
- Value: the minimal contract every flag type satisfies.
  • str(value) renders the current content as text accepted back by set().
  • value.set(text) parses text and replaces the content, raising ValueError
    (ParseError for the built-in catalog) on malformed input.

- Capabilities (runtime-checkable protocols, all optional)
  • Typed: `typename` tag used by typed getters and usage rendering.
  • Getter: get() returns the native Python value.
  • SliceValue: append(text), replace(texts), get_slice() for list-valued flags.
  • BoolFlag: is_bool_flag() marks flags usable without a value.

- Codec: a scalar conversion strategy (typename, parse, format, zero, coerce).
  Every scalar flag type is a ScalarValue parameterized by one codec; list and
  map types (see flagstaff.composites) reuse the same codecs element-wise.

Grammar highlights
- integers: decimal, 0x/0X hex, 0b binary, 0o octal and leading-zero octal,
  optional sign for signed types, range-checked per bit width.
- booleans: 1 0 t f T F true false True False TRUE FALSE.
- durations: a sequence of decimal numbers with units (ns, us, µs, μs, ms, s,
  m, h), optional sign, e.g. "300ms", "-1.5h", "1h45m". "0" is accepted alone.

Quick example:
    >>> value = ScalarValue(INT, 7)
    >>> value.set("0x10")
    >>> value.get()
    16
    >>> str(value)
    '16'
"""
import base64
import binascii
import ipaddress
import math
import re
import struct
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import timedelta
from fractions import Fraction
from typing import Any, Generic, NamedTuple, Protocol, TypeVar, runtime_checkable

from .faults import ParseError
from .utils import Unset, coalesce


class Value(ABC):
    """
    Base class for flag values.

    Subclasses must implement set() and __str__(); the capability protocols
    below are checked structurally, so plain classes that only implement
    set()/__str__() are accepted by FlagSet.var() as well.
    """

    @abstractmethod
    def set(self, text, /):
        """parse `text` and store the result, raising ValueError on malformed input."""

    @abstractmethod
    def __str__(self):
        """render the current content."""


@runtime_checkable
class Typed(Protocol):
    typename: str


@runtime_checkable
class Getter(Protocol):
    def get(self) -> Any: ...


@runtime_checkable
class SliceValue(Protocol):
    def append(self, text: str, /) -> None: ...

    def replace(self, texts: list[str], /) -> None: ...

    def get_slice(self) -> list[str]: ...


@runtime_checkable
class BoolFlag(Protocol):
    def is_bool_flag(self) -> bool: ...


def _same(value, /):
    return value


class Codec(NamedTuple):
    """
    Scalar conversion strategy.

    - typename: stable type tag ("int", "duration", ...).
    - parse: text -> native value, raising ParseError.
    - format: native value -> text accepted by parse.
    - zero: the native zero value, used when a definer receives no default.
    - coerce: native default -> the value parse() would produce for its
      rendering (float32 defaults are rounded to single precision).
    """
    typename: str
    parse: Callable[[str], Any]
    format: Callable[[Any], str]
    zero: Any
    coerce: Callable[[Any], Any] = _same


_INTEGER = re.compile(
    r"(?P<sign>[+-]?)(?:"
    r"0[xX](?P<hex>[0-9a-fA-F]+)|"
    r"0[bB](?P<bin>[01]+)|"
    r"0[oO](?P<oct>[0-7]+)|"
    r"(?P<zero>0[0-7]*)|"
    r"(?P<dec>[1-9][0-9]*))"
)


def _parse_integer(text, /, *, bits, signed):
    if not isinstance(text, str) or not (match := _INTEGER.fullmatch(text)):
        raise ParseError("parsing %r: invalid syntax" % (text,))
    if match["sign"] and not signed:
        raise ParseError("parsing %r: invalid syntax" % text)

    if match["hex"]:
        number = int(match["hex"], 16)
    elif match["bin"]:
        number = int(match["bin"], 2)
    elif match["oct"]:
        number = int(match["oct"], 8)
    elif match["zero"]:
        number = int(match["zero"], 8)
    else:
        number = int(match["dec"])

    if match["sign"] == "-":
        number = -number

    if signed:
        low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        low, high = 0, (1 << bits) - 1
    if not low <= number <= high:
        raise ParseError("parsing %r: value out of range" % text)
    return number


def _integer(bits, signed, /):
    def parse(text, /):
        return _parse_integer(text, bits=bits, signed=signed)
    return parse


_TRUTHS = frozenset(("1", "t", "T", "true", "True", "TRUE"))
_FALSEHOODS = frozenset(("0", "f", "F", "false", "False", "FALSE"))


def _parse_bool(text, /):
    if text in _TRUTHS:
        return True
    if text in _FALSEHOODS:
        return False
    raise ParseError("parsing %r: invalid syntax" % (text,))


def _format_bool(value, /):
    return "true" if value else "false"


def _round32(value, /):
    return struct.unpack("f", struct.pack("f", value))[0]


def _parse_float(bits, /):
    def parse(text, /):
        try:
            number = float(text)
        except (TypeError, ValueError):
            raise ParseError("parsing %r: invalid syntax" % (text,)) from None
        literal = "inf" in text.lower()
        if math.isinf(number) and not literal:
            raise ParseError("parsing %r: value out of range" % text)
        if bits == 32 and math.isfinite(number):
            try:
                number = _round32(number)
            except OverflowError:
                raise ParseError("parsing %r: value out of range" % text) from None
        return number
    return parse


def _shortest_digits(value, bits, /):
    # fewest significant digits that parse back to `value` at the given width
    for precision in range(1, 18):
        text = "%.*e" % (precision - 1, value)
        back = float(text)
        if bits == 32:
            try:
                back = _round32(back)
            except OverflowError:
                continue
        if back == value:
            break
    mantissa, _, exponent = text.partition("e")
    digits = mantissa.replace(".", "").rstrip("0") or "0"
    return digits, int(exponent)


def _format_float(bits, /):
    # %g with the shortest digits: exponent form below 1e-4 and from 1e+06 up
    def format(value, /):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "+Inf" if value > 0 else "-Inf"
        sign = "-" if math.copysign(1.0, value) < 0 else ""
        digits, exponent = _shortest_digits(abs(value), bits)
        if exponent < -4 or exponent >= 6:
            mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
            return "%s%se%s%02d" % (sign, mantissa, "-" if exponent < 0 else "+", abs(exponent))
        point = exponent + 1
        if point <= 0:
            return "%s0.%s%s" % (sign, "0" * -point, digits)
        if point >= len(digits):
            return sign + digits + "0" * (point - len(digits))
        return "%s%s.%s" % (sign, digits[:point], digits[point:])
    return format


def _parse_complex(text, /):
    source = text
    if not isinstance(text, str):
        raise ParseError("parsing %r: invalid syntax" % (text,))
    text = text.strip()
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1]
    if text.endswith("i") and not text.lower().endswith("inf"):
        text = text[:-1] + "j"
    try:
        return complex(text)
    except ValueError:
        raise ParseError("parsing %r: invalid syntax" % source) from None


def _format_complex(value, /):
    value = complex(value)
    real = _format_float(64)(value.real)
    imag = _format_float(64)(value.imag)
    if not imag.startswith(("+", "-")):
        imag = "+" + imag
    return "(%s%si)" % (real, imag)


def _parse_string(text, /):
    return text


def _format_string(value, /):
    return value


# unit → nanoseconds
_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # micro sign
    "μs": 1_000,  # greek letter mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60_000_000_000,
    "h": 3_600_000_000_000,
}

_DURATION_PART = re.compile(r"(?P<number>[0-9]*(?:\.[0-9]*)?)(?P<unit>[^0-9.]*)")


def _parse_duration(text, /):
    if not isinstance(text, str):
        raise ParseError("invalid duration %r" % (text,))
    source = text
    negative = False
    if text[:1] in ("+", "-"):
        negative = text[0] == "-"
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ParseError("invalid duration %r" % source)

    total = Fraction(0)
    position = 0
    while position < len(text):
        match = _DURATION_PART.match(text, position)
        number, unit = match["number"], match["unit"]
        if number in ("", "."):
            raise ParseError("invalid duration %r" % source)
        if not unit:
            raise ParseError("missing unit in duration %r" % source)
        if unit not in _UNITS:
            raise ParseError("unknown unit %r in duration %r" % (unit, source))
        total += Fraction(number.rstrip(".")) * _UNITS[unit]
        position = match.end()

    microseconds = round(total / 1000)
    try:
        return timedelta(microseconds=-microseconds if negative else microseconds)
    except OverflowError:
        raise ParseError("invalid duration %r" % source) from None


def _decimal(number, places, /):
    whole, fraction = divmod(number, 10 ** places)
    if not fraction:
        return str(whole)
    return "%d.%s" % (whole, ("%0*d" % (places, fraction)).rstrip("0"))


def _format_duration(value, /):
    microseconds = value // timedelta(microseconds=1)
    if microseconds == 0:
        return "0s"
    sign = "-" if microseconds < 0 else ""
    microseconds = abs(microseconds)

    if microseconds < 1_000:
        return "%s%dµs" % (sign, microseconds)
    if microseconds < 1_000_000:
        return sign + _decimal(microseconds, 3) + "ms"

    hours, rest = divmod(microseconds, 3_600_000_000)
    minutes, rest = divmod(rest, 60_000_000)
    text = _decimal(rest, 6) + "s"
    if hours:
        text = "%dh%dm%s" % (hours, minutes, text)
    elif minutes:
        text = "%dm%s" % (minutes, text)
    return sign + text


def _parse_ip(text, /):
    try:
        return ipaddress.ip_address(text.strip())
    except (AttributeError, ValueError):
        raise ParseError("failed to parse IP: %r" % (text,)) from None


def _format_ip(value, /):
    return "<nil>" if value is None else str(value)


def _parse_ip_mask(text, /):
    try:
        return ipaddress.IPv4Address(text)
    except ValueError:
        pass
    if isinstance(text, str) and re.fullmatch(r"[0-9a-fA-F]{8}", text):
        return ipaddress.IPv4Address(bytes.fromhex(text))
    raise ParseError("failed to parse IP mask: %r" % (text,))


def _format_ip_mask(value, /):
    return "<nil>" if value is None else value.packed.hex()


def _parse_ip_network(text, /):
    if not isinstance(text, str) or "/" not in text:
        raise ParseError("invalid CIDR address: %r" % (text,))
    try:
        return ipaddress.ip_network(text.strip(), strict=False)
    except ValueError:
        raise ParseError("invalid CIDR address: %r" % text) from None


def _format_ip_network(value, /):
    return "<nil>" if value is None else str(value)


def _parse_hex(text, /):
    try:
        return binascii.unhexlify(text.strip())
    except (AttributeError, binascii.Error, ValueError) as error:
        raise ParseError("invalid hex bytes %r: %s" % (text, error)) from None


def _format_hex(value, /):
    return bytes(value).hex().upper()


def _parse_base64(text, /):
    try:
        return base64.b64decode(text.strip(), validate=True)
    except (AttributeError, binascii.Error, ValueError) as error:
        raise ParseError("invalid base64 bytes %r: %s" % (text, error)) from None


def _format_base64(value, /):
    return base64.b64encode(bytes(value)).decode("ascii")


BOOL = Codec("bool", _parse_bool, _format_bool, False)
INT = Codec("int", _integer(64, True), str, 0)
INT8 = Codec("int8", _integer(8, True), str, 0)
INT16 = Codec("int16", _integer(16, True), str, 0)
INT32 = Codec("int32", _integer(32, True), str, 0)
INT64 = Codec("int64", _integer(64, True), str, 0)
UINT = Codec("uint", _integer(64, False), str, 0)
UINT8 = Codec("uint8", _integer(8, False), str, 0)
UINT16 = Codec("uint16", _integer(16, False), str, 0)
UINT32 = Codec("uint32", _integer(32, False), str, 0)
UINT64 = Codec("uint64", _integer(64, False), str, 0)
COUNT = Codec("count", _integer(64, True), str, 0)
FLOAT32 = Codec("float32", _parse_float(32), _format_float(32), 0.0, _round32)
FLOAT64 = Codec("float64", _parse_float(64), _format_float(64), 0.0)
COMPLEX128 = Codec("complex128", _parse_complex, _format_complex, 0j)
STRING = Codec("string", _parse_string, _format_string, "")
DURATION = Codec("duration", _parse_duration, _format_duration, timedelta(0))
IP = Codec("ip", _parse_ip, _format_ip, None)
IP_MASK = Codec("ipMask", _parse_ip_mask, _format_ip_mask, None)
IP_NET = Codec("ipNet", _parse_ip_network, _format_ip_network, None)
BYTES_HEX = Codec("bytesHex", _parse_hex, _format_hex, b"")
BYTES_BASE64 = Codec("bytesBase64", _parse_base64, _format_base64, b"")


_T = TypeVar("_T")


class ScalarValue(Value, Generic[_T]):
    """
    Single-valued flag content converted through a Codec.

    Every set() replaces the content; a failed set() leaves it untouched.
    """

    def __init__(self, codec, default=Unset, /):
        if not isinstance(codec, Codec):
            raise TypeError("%s() first argument must be a codec" % type(self).__name__)
        self._codec = codec
        self._value = codec.coerce(coalesce(default, codec.zero))

    @property
    def typename(self):
        return self._codec.typename

    @property
    def zero(self):
        return self._codec.format(self._codec.zero)

    def set(self, text, /):
        self._value = self._codec.parse(text)

    def get(self):
        return self._value

    def __str__(self):
        return self._codec.format(self._value)

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, self)


class BoolValue(ScalarValue[bool]):
    def is_bool_flag(self):
        return True


class CountValue(ScalarValue[int]):
    """counter; "+1" (the no-option default) increments, other text assigns."""

    def set(self, text, /):
        if text == "+1":
            self._value += 1
            return
        super().set(text)


class IPValue(ScalarValue):
    """IP address; empty text is ignored."""

    def set(self, text, /):
        if text == "":
            return
        super().set(text)


__all__ = (
    # Contract and capabilities
    "Value",
    "Typed",
    "Getter",
    "SliceValue",
    "BoolFlag",

    # Codecs
    "Codec",
    "BOOL",
    "INT",
    "INT8",
    "INT16",
    "INT32",
    "INT64",
    "UINT",
    "UINT8",
    "UINT16",
    "UINT32",
    "UINT64",
    "COUNT",
    "FLOAT32",
    "FLOAT64",
    "COMPLEX128",
    "STRING",
    "DURATION",
    "IP",
    "IP_MASK",
    "IP_NET",
    "BYTES_HEX",
    "BYTES_BASE64",

    # Scalar values
    "ScalarValue",
    "BoolValue",
    "CountValue",
    "IPValue",
)
