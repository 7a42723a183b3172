"""
Process-wide default flag set.

commandline() returns one FlagSet per process, named after sys.argv[0] and
using the EXIT policy. The helpers below forward to it, and so does every
typed definer and getter reached through module attribute lookup:

    from flagstaff import commandline

    commandline.bool("verbose", False, "talk more", shorthand="v")
    commandline.parse()
    if commandline.get_bool("verbose"):
        ...

reset() drops the instance so the next access builds a fresh one.
"""
import functools
import sys

from .catalog import CATALOG
from .faults import ErrorHandling
from .flagset import FlagSet
from .utils import Unset, coalesce


@functools.cache
def commandline():
    return FlagSet(sys.argv[0] if sys.argv else "", ErrorHandling.EXIT)


def reset():
    commandline.cache_clear()


def parse(arguments=Unset, /):
    """parse `arguments`, or sys.argv[1:] when omitted."""
    commandline().parse(coalesce(arguments, sys.argv[1:]))


def parsed():
    return commandline().parsed


def var(value, name, usage="", /, **options):
    return commandline().var(value, name, usage, **options)


def lookup(name, /):
    return commandline().lookup(name)


def shorthand_lookup(shorthand, /):
    return commandline().shorthand_lookup(shorthand)


def set(name, text, /):
    commandline().set(name, text)


def get(name, /):
    return commandline().get(name)


def changed(name, /):
    return commandline().changed(name)


def visit(function, /):
    commandline().visit(function)


def visit_all(function, /):
    commandline().visit_all(function)


def args():
    return commandline().args


def arg(index, /):
    return commandline().arg(index)


def narg():
    return commandline().narg


def nflag():
    return commandline().nflag


def set_interspersed(interspersed, /):
    commandline().set_interspersed(interspersed)


def print_defaults():
    commandline().print_defaults()


_FORWARDED = frozenset(
    name for kind in CATALOG for name in (kind.method, "get_" + kind.method)
)


def __getattr__(name):
    if name in _FORWARDED:
        return getattr(commandline(), name)
    raise AttributeError("module %r has no attribute %r" % (__name__, name))


__all__ = (
    "commandline",
    "reset",
)
