"""
Flagstaff utilities (internal helpers, carefully exposed)

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None
    or the empty string (an empty default text is a legitimate flag default).

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values.

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated methods (typed definers and
    getters on FlagSet) so tracebacks and help() stay readable.

- mirror("attr")
  • Read-only property exposing a private backing field; containers are
    copied on every read (annotations, shorthand sets).

- snakify("stringToInt64")
  • Translate a camel-case type tag into the snake-case method suffix.
"""
import builtins
import functools
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None, 0 and "".
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a singleton per process.
    """

    def __or__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsey values like None, 0, "" or [] are preserved as-is; only Unset is replaced.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce("", "fallback")     -> ""
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable
    - rename(name) -> decorator
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy container values (strings are left alone).

    Mappings keep their keys; sequences become lists; sets become sets.
    Anything else is returned as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str | bytes):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return set(map(_immortalize, object))
    else:
        return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private attribute "_{name}".

    Containers are copied on every read so callers cannot mutate internal state
    through the public attribute.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def snakify(name, /):
    """
    Convert a camel-case identifier into snake case.

    - snakify("stringSlice")   -> "string_slice"
    - snakify("stringToInt64") -> "string_to_int64"
    - snakify("ipNet")         -> "ip_net"
    """
    if not isinstance(name, str):
        raise TypeError("snakify() argument must be a string")
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Use Unset as a default when None or "" is a valid, user-meaningful value but you
still need to distinguish “no input” from an explicit value.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "snakify",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
