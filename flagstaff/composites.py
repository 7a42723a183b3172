r"""
List and map flag values.

- ListValue: "<typename>Slice" values. Text is split as one CSV record; the
  first set() after definition replaces the default, later sets append.
- StringArrayValue: "stringArray"; text is never split, each set() adds one
  element and empty text is ignored.
- MapValue: "stringTo<Typename>" values holding key=value pairs; the first
  set() replaces the default, later sets merge into it.

Rendering uses a bracketed CSV record ("[a,b]", "[k=v]") so that set() on the
inner text reproduces the content.
"""
import csv
import io
from typing import Generic, TypeVar

from .faults import ParseError
from .utils import Unset, coalesce
from .values import STRING, Codec, Value


def read_csv(text, /):
    """split `text` as a single CSV record; empty text yields no items."""
    if not text:
        return []
    try:
        return next(csv.reader([text], strict=True))
    except csv.Error as error:
        raise ParseError("parsing %r: %s" % (text, error)) from None


def write_csv(items, /):
    """render `items` as a single CSV record."""
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="").writerow(items)
    return buffer.getvalue()


_T = TypeVar("_T")


class ListValue(Value, Generic[_T]):
    def __init__(self, codec, default=Unset, /, *, trim=False):
        if not isinstance(codec, Codec):
            raise TypeError("%s() first argument must be a codec" % type(self).__name__)
        self._codec = codec
        self._value = [codec.coerce(item) for item in coalesce(default, ())]
        self._trim = trim
        self._changed = False

    @property
    def typename(self):
        return self._codec.typename + "Slice"

    @property
    def zero(self):
        return "[]"

    def _parse(self, text, /):
        if self._trim:
            text = text.strip().strip('"')
        return self._codec.parse(text)

    def set(self, text, /):
        items = [self._parse(item) for item in read_csv(text)]
        if self._changed:
            self._value.extend(items)
        else:
            self._value = items
        self._changed = True

    def append(self, text, /):
        self._value.append(self._parse(text))

    def replace(self, texts, /):
        self._value = [self._parse(text) for text in texts]

    def get_slice(self):
        return [self._codec.format(item) for item in self._value]

    def get(self):
        return list(self._value)

    def __str__(self):
        return "[%s]" % write_csv(self.get_slice())

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, self)


class StringArrayValue(ListValue[str]):
    def __init__(self, default=Unset, /):
        super().__init__(STRING, default)

    @property
    def typename(self):
        return "stringArray"

    def set(self, text, /):
        if text == "":
            return
        if self._changed:
            self._value.append(text)
        else:
            self._value = [text]
        self._changed = True


class MapValue(Value, Generic[_T]):
    def __init__(self, codec, default=Unset, /):
        if not isinstance(codec, Codec):
            raise TypeError("%s() first argument must be a codec" % type(self).__name__)
        self._codec = codec
        self._value = {key: codec.coerce(item) for key, item in coalesce(default, {}).items()}
        self._changed = False

    @property
    def typename(self):
        name = self._codec.typename
        return "stringTo" + name[:1].upper() + name[1:]

    @property
    def zero(self):
        return "[]"

    def set(self, text, /):
        match text.count("="):
            case 0:
                raise ParseError("%r must be formatted as key=value" % text)
            case 1:
                pairs = [text.strip('"')]
            case _:
                pairs = read_csv(text)

        items = {}
        for pair in pairs:
            key, separator, value = pair.partition("=")
            if not separator:
                raise ParseError("%r must be formatted as key=value" % pair)
            items[key] = self._codec.parse(value)

        if self._changed:
            self._value.update(items)
        else:
            self._value = items
        self._changed = True

    def get(self):
        return dict(self._value)

    def __str__(self):
        pairs = ["%s=%s" % (key, self._codec.format(value)) for key, value in self._value.items()]
        return "[%s]" % write_csv(pairs)

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, self)


__all__ = (
    "read_csv",
    "write_csv",
    "ListValue",
    "StringArrayValue",
    "MapValue",
)
