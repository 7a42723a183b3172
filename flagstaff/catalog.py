"""
Flagstaff type catalog.

Each Kind names a built-in flag type and knows how to build its Value from a
native default. FlagSet derives one definer (`fs.<method>(...)`) and one typed
getter (`fs.get_<method>(...)`) per entry.
"""
import functools
from collections.abc import Callable
from typing import NamedTuple

from .composites import ListValue, MapValue, StringArrayValue
from .utils import Unset, snakify
from .values import *


class Kind(NamedTuple):
    """
    - typename: the Value's type tag.
    - factory: native default (or Unset for the zero value) -> Value.
    - defaulted: whether definers take a default argument.
    - no_option_default: text used when the flag is given without a value.
    """
    typename: str
    factory: Callable
    defaulted: bool = True
    no_option_default: str = ""

    @property
    def method(self):
        return snakify(self.typename)


_SCALARS = (
    INT, INT8, INT16, INT32, INT64,
    UINT, UINT8, UINT16, UINT32, UINT64,
    FLOAT32, FLOAT64, COMPLEX128,
    STRING, DURATION, IP_MASK, IP_NET,
    BYTES_HEX, BYTES_BASE64,
)

_SLICES = (
    BOOL, INT, INT32, INT64,
    UINT, UINT8, UINT16, UINT32, UINT64,
    FLOAT32, FLOAT64, COMPLEX128,
    DURATION, IP, IP_NET, STRING,
)

_MAPS = (STRING, INT, INT64)


CATALOG = (
    Kind("bool", functools.partial(BoolValue, BOOL), no_option_default="true"),
    Kind("count", lambda default=Unset: CountValue(COUNT), defaulted=False, no_option_default="+1"),
    Kind("ip", functools.partial(IPValue, IP)),
    *(Kind(codec.typename, functools.partial(ScalarValue, codec)) for codec in _SCALARS),
    *(Kind(codec.typename + "Slice", functools.partial(ListValue, codec, trim=codec is not STRING)) for codec in _SLICES),
    Kind("stringArray", StringArrayValue),
    *(Kind("stringTo" + codec.typename.capitalize(), functools.partial(MapValue, codec)) for codec in _MAPS),
)


__all__ = (
    "Kind",
    "CATALOG",
)
