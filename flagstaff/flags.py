r"""
Flagstaff flag records.

Overview
- Flag: one registered option. It pairs a Value with its help and behaviour
  metadata and records whether the value was explicitly set during a parse.

- FlagType metaclass
  • __typename__ derived from the class name, used in diagnostics.
  • Read-only properties for every name listed in __introspectable__.
  • Stable __repr__/__rich_repr__ limited to __displayable__.

Metadata (sanitized on construction)
- name: non-empty string; must not start with "-" nor contain "=".
- shorthand: Unset | single character other than "-" and "=".
- shorthand_only: bool; requires a shorthand. The long name is then unusable
  on the command line and hidden from help.
- usage: str help text; a `backquoted` word names the value placeholder.
- usage_type: str placeholder override; disable_unquote_usage keeps backquotes.
- default: Unset | str; defaults to the text of the value at definition time.
- no_option_default: str used when the flag appears without a value.
- deprecated / shorthand_deprecated: Unset | non-empty message.
  A deprecated flag is always hidden.
- hidden, disable_print_default: bool.
- group: str section name in help ("" for the main section).
- annotations: Mapping[str, Iterable[str]] of arbitrary tags.

Quick example:
    >>> from flagstaff.values import ScalarValue, INT
    >>> flag = Flag("port", ScalarValue(INT, 8080), "listening `port`", shorthand="p")
    >>> flag.default
    '8080'
"""
import functools
import operator
import re
from collections.abc import Iterable, Mapping

from .faults import EmptyDeprecationMessageError
from .utils import *


class FlagType(type):
    """
    Metaclass giving flag records read-only metadata and readable reprs.

    - __typename__ is the class name split on camel-case humps with hyphens.
    - Every name in __introspectable__ becomes a mirror() property over the
      matching private "_name" attribute.
    - __displayable__ (if set) narrows what __rich_repr__ shows.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_text(cls, metadata, key, /):
    if not isinstance(text := metadata[key], str):
        raise TypeError(f"{cls.__typename__} {key!r} must be a string")
    return text


def _sanitize_message(cls, metadata, key, /):
    if not isinstance(message := metadata[key], str | Unset):
        raise TypeError(f"{cls.__typename__} {key!r} must be a string")
    if isinstance(message, str) and not message.strip():
        raise EmptyDeprecationMessageError(
            f"{metadata['name']!r} {key.replace('_', ' ')} message cannot be empty",
            name=metadata["name"],
        )
    return coalesce(message)


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize flag metadata in place.

    Raises
    - TypeError: a field has the wrong type, or the value lacks set()/__str__.
    - ValueError: a field is malformed (empty name, multi-character shorthand,
      shorthand_only without a shorthand).
    - EmptyDeprecationMessageError: a deprecation message is empty.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not name:
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif name.startswith("-") or "=" in name:
        raise ValueError(f"{cls.__typename__} 'name' cannot start with '-' or contain '='")

    if not callable(getattr(metadata["value"], "set", None)):
        raise TypeError(f"{cls.__typename__} 'value' must implement set()")

    if not isinstance(shorthand := metadata["shorthand"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'shorthand' must be a string")
    elif isinstance(shorthand, str) and len(shorthand) != 1:
        raise ValueError(f"{cls.__typename__} 'shorthand' must be exactly one character")
    elif shorthand in ("-", "="):
        raise ValueError(f"{cls.__typename__} 'shorthand' cannot be {shorthand!r}")
    metadata["shorthand"] = coalesce(shorthand)

    if metadata["shorthand_only"] and metadata["shorthand"] is None:
        raise ValueError(f"{cls.__typename__} 'shorthand_only' requires a shorthand")

    for key in ("usage", "usage_type", "no_option_default", "group"):
        metadata[key] = _sanitize_text(cls, metadata, key)

    if not isinstance(default := metadata["default"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'default' must be a string")
    metadata["default"] = coalesce(default, str(metadata["value"]))

    metadata["deprecated"] = _sanitize_message(cls, metadata, "deprecated")
    metadata["shorthand_deprecated"] = _sanitize_message(cls, metadata, "shorthand_deprecated")
    metadata["hidden"] |= metadata["deprecated"] is not None

    if not isinstance(annotations := metadata["annotations"], Mapping):
        raise TypeError(f"{cls.__typename__} 'annotations' must be a mapping")
    sanitized = {}
    for key, values in annotations.items():
        if not isinstance(key, str):
            raise TypeError(f"{cls.__typename__} annotation keys must be strings")
        if isinstance(values, str) or not isinstance(values, Iterable):
            raise TypeError(f"{cls.__typename__} annotation values must be an iterable of strings")
        sanitized[key] = list(values)
    metadata["annotations"] = sanitized


class Flag(metaclass=FlagType):
    """
    A registered option: its value plus help and behaviour metadata.

    Flags are created by FlagSet.var() and the typed definers; FlagSet owns
    the `changed` bit and the normalized `name`.
    """

    __introspectable__ = (
        "name",
        "shorthand",
        "shorthand_only",
        "usage",
        "usage_type",
        "disable_unquote_usage",
        "disable_print_default",
        "default",
        "changed",
        "no_option_default",
        "deprecated",
        "shorthand_deprecated",
        "hidden",
        "group",
        "annotations",
    )
    __displayable__ = (
        "name",
        "shorthand",
        "value",
        "default",
        "changed",
    )

    def __new__(
            cls,
            name,
            value,
            usage="",
            /,
            *,
            shorthand=Unset,
            shorthand_only=False,
            usage_type="",
            disable_unquote_usage=False,
            disable_print_default=False,
            default=Unset,
            no_option_default="",
            deprecated=Unset,
            shorthand_deprecated=Unset,
            hidden=False,
            group="",
            annotations=Unset,
    ):
        metadata = {
            "name": name,
            "value": value,
            "usage": usage,
            "shorthand": shorthand,
            "shorthand_only": bool(shorthand_only),
            "usage_type": usage_type,
            "disable_unquote_usage": bool(disable_unquote_usage),
            "disable_print_default": bool(disable_print_default),
            "default": default,
            "no_option_default": no_option_default,
            "deprecated": deprecated,
            "shorthand_deprecated": shorthand_deprecated,
            "hidden": bool(hidden),
            "group": group,
            "annotations": coalesce(annotations, {}),
        }
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        for key, object in metadata.items():
            setattr(self, "_" + key, object)
        self._changed = False
        return self

    @property
    def value(self):
        return self._value

    def set_annotation(self, key, values, /):
        """replace the annotation `key` with `values`."""
        if not isinstance(key, str):
            raise TypeError("set_annotation() key must be a string")
        if isinstance(values, str) or not isinstance(values, Iterable):
            raise TypeError("set_annotation() values must be an iterable of strings")
        self._annotations[key] = list(values)


__all__ = (
    "FlagType",
    "Flag",
)
