r"""
Flagstaff usage rendering.

Layout
- One line per visible flag: name column, optional variable name and
  no-option default, then the usage text, the default value (unless it is the
  zero value of the type) and the deprecation note.
- The usage column starts three spaces after the widest name column across
  every visible flag, so sections stay aligned with each other.
- With cols > 0 the usage text is wrapped with a hanging indent; a column
  narrower than 24 characters moves the whole block to the next line at
  indent 16. With cols == 0 only embedded newlines are re-indented.

Hooks
- UsageFormatter methods shape each piece and can be overridden one by one:
  name(), usage(), usage_var_name(), default_value(),
  no_option_default_value(), deprecated().
"""
import json
from collections import defaultdict

from .values import BoolFlag, Typed


_VARNAMES = {
    "bool": "",
    "boolSlice": "bools",
    "complex128": "complex",
    "complex128Slice": "complexes",
    "durationSlice": "durations",
    "float32": "float",
    "float64": "float",
    "float32Slice": "floats",
    "float64Slice": "floats",
    "int8": "int",
    "int16": "int",
    "int32": "int",
    "int64": "int",
    "intSlice": "ints",
    "int32Slice": "ints",
    "int64Slice": "ints",
    "stringSlice": "strings",
    "stringArray": "strings",
    "uint8": "uint",
    "uint16": "uint",
    "uint32": "uint",
    "uint64": "uint",
    "uintSlice": "uints",
    "uint8Slice": "uints",
    "uint16Slice": "uints",
    "uint32Slice": "uints",
    "uint64Slice": "uints",
}

_ZEROS = frozenset(("false", "<nil>", "", "0"))


def _typename(flag, /):
    if isinstance(flag.value, Typed):
        return flag.value.typename
    return None


def unquote_usage(flag, /):
    """
    Extract the variable name shown next to a flag, and its usage text.

    "a `name` to show" gives ("name", "a name to show"). Without backquotes the
    name is `usage_type` when set, otherwise a guess from the value type
    ("" for booleans, "value" for untyped values).
    """
    name, usage = flag.usage_type, flag.usage

    if not flag.disable_unquote_usage and (start := usage.find("`")) >= 0:
        if (end := usage.find("`", start + 1)) >= 0:
            extracted = usage[start + 1:end]
            return name or extracted, usage[:start] + extracted + usage[end + 1:]

    if not name:
        name = "value"
        if (typename := _typename(flag)) is not None:
            name = _VARNAMES.get(typename, typename)
    return name, usage


def default_is_zero(flag, /):
    """true when the default text is the zero value of the flag's type."""
    value = flag.value
    if isinstance(value, BoolFlag) and value.is_bool_flag():
        return flag.default == "false"
    if _typename(flag) == "duration":
        return flag.default in ("0", "0s")
    if isinstance(zero := getattr(value, "zero", None), str):
        return flag.default == zero
    return flag.default in _ZEROS


class UsageFormatter:
    def name(self, flag, /):
        if flag.shorthand and not flag.shorthand_deprecated:
            if flag.shorthand_only:
                return "  -%s" % flag.shorthand
            return "  -%s, --%s" % (flag.shorthand, flag.name)
        return "      --%s" % flag.name

    def usage(self, flag, text, /):
        return text

    def usage_var_name(self, flag, text, /):
        return text

    def default_value(self, flag, /):
        if _typename(flag) == "string":
            return " (default %s)" % json.dumps(flag.default, ensure_ascii=False)
        return " (default %s)" % flag.default

    def no_option_default_value(self, flag, /):
        match _typename(flag):
            case "string":
                return '[="%s"]' % flag.no_option_default
            case "bool" if flag.no_option_default == "true":
                return ""
            case "count" if flag.no_option_default == "+1":
                return ""
            case _:
                return "[=%s]" % flag.no_option_default

    def deprecated(self, flag, /):
        return " (DEPRECATED: %s)" % flag.deprecated


def _wrap_n(width, slop, text, /):
    # split on the last whitespace within `width`, going up to `slop` over
    if width + slop > len(text):
        return text, ""

    head = text[:width]
    space = max(head.rfind(" "), head.rfind("\t"), head.rfind("\n"))
    if space <= 0:
        return text, ""
    newline = head.rfind("\n")
    if 0 < newline < space:
        return text[:newline], text[newline + 1:]
    return text[:space], text[space + 1:]


def _wrap(indent, width, text, /):
    """wrap `text` to `width` columns; continuation lines are indented by `indent`."""
    if width == 0:
        return text.replace("\n", "\n" + " " * indent)

    room = width - indent
    result = ""

    if room < 24:
        indent = 16
        room = width - indent
        result += "\n" + " " * indent
    if room < 24:
        return text.replace("\n", result)

    slop = 5
    room -= slop

    line, text = _wrap_n(room, slop, text)
    result += line.replace("\n", "\n" + " " * indent)
    while text:
        line, text = _wrap_n(room, slop, text)
        result += "\n" + " " * indent + line.replace("\n", "\n" + " " * indent)
    return result


def _collect(flagset, /):
    formatter = flagset.formatter
    lines = defaultdict(list)
    width = 0

    for flag in flagset.all_flags():
        if flag.hidden:
            continue

        line = formatter.name(flag)
        varname, usage = unquote_usage(flag)
        if varname:
            line += " " + formatter.usage_var_name(flag, varname)
        if flag.no_option_default:
            line += formatter.no_option_default_value(flag)

        # marks the alignment column until the widest name is known
        line += "\x00"
        width = max(width, len(line))

        line += formatter.usage(flag, usage)
        if not flag.disable_print_default and not default_is_zero(flag):
            line += formatter.default_value(flag)
        if flag.deprecated:
            line += formatter.deprecated(flag)

        lines[flag.group].append(line)

    return width, lines


def _align(line, width, cols, /):
    head, _, tail = line.partition("\x00")
    return "%s %s %s\n" % (head, " " * (width - len(head)), _wrap(width + 2, cols, tail))


def groups(flagset, /):
    """group names in use, sorted, with "" first when some flag has no group."""
    named = sorted({flag.group for flag in flagset.all_flags() if flag.group})
    if any(not flag.group for flag in flagset.all_flags()):
        return ["", *named]
    return named


def flag_usages_for_group(flagset, group="", cols=0, /):
    width, lines = _collect(flagset)
    return "".join(_align(line, width, cols) for line in lines[group])


def flag_usages(flagset, cols=0, /):
    """every section: ungrouped flags first, then one titled block per group."""
    width, lines = _collect(flagset)
    sections = []
    for group in groups(flagset):
        if not (body := "".join(_align(line, width, cols) for line in lines[group])):
            continue
        sections.append("%s:\n%s" % (group, body) if group else body)
    return "\n".join(sections)


__all__ = (
    "UsageFormatter",
    "unquote_usage",
    "default_is_zero",
    "groups",
    "flag_usages",
    "flag_usages_for_group",
)
