r"""
Flagstaff flag sets: registry, parser and usage printer.

What this module provides
- FlagSet: a named collection of flags that parses a command line.
  • Registration: var(), add_flag(), add_flag_set() and one typed definer per
    catalog entry (fs.int(), fs.string_slice(), fs.count(), ...).
  • Lookup and access: lookup(), shorthand_lookup(), set(), get(), changed()
    and one typed getter per catalog entry (fs.get_int(), ...).
  • Parsing: parse() and parse_all() over a deque of tokens, with
    interspersed positionals, the `--` terminator, shorthand clusters and an
    optional allowlist for unknown flags.
  • Usage: print_defaults(), flag_usages(), flag_usages_wrapped(),
    flag_usages_for_group(), groups() and the replaceable `usage` callable.

Command-line grammar
- `--name`, `--name value`, `--name=value`
- `-n`, `-n value`, `-nvalue`, `-n=value`, clusters like `-abc`
- `--` ends flag parsing; everything after it is positional.

Faults
- Parse faults go through the ErrorHandling policy chosen at construction
  (see flagstaff.faults). Definition errors and accessor errors are always
  raised to the caller.

Quick start
    from flagstaff import FlagSet, ErrorHandling

    flags = FlagSet("tool", ErrorHandling.EXIT)
    flags.bool("verbose", False, "talk more", shorthand="v")
    flags.int("port", 8080, "listening `port`", shorthand="p")
    flags.parse(["-v", "--port=9090", "input.txt"])

    flags.get_int("port")  # 9090
    flags.args             # ['input.txt']
"""
from collections import deque

from rich.console import Console
from rich.text import Text

from . import usage as _usage
from .catalog import CATALOG
from .faults import *
from .faults import _styles
from .flags import Flag
from .usage import UsageFormatter
from .utils import *
from .values import Getter, Typed


def _identity(flagset, name, /):
    return name


def _console(output, /):
    if output is Unset:
        return Console(stderr=True, highlight=False)
    if isinstance(output, Console):
        return output
    if not callable(getattr(output, "write", None)):
        raise TypeError("output must be a rich Console or a writable text stream")
    return Console(file=output, highlight=False, markup=False, emoji=False)


def _unknown(name, /):
    if len(name) == 1:
        return "unknown flag: -%s" % name
    return "unknown flag: --%s" % name


def _display_name(flag, /):
    if flag.shorthand and not flag.shorthand_deprecated:
        if flag.shorthand_only:
            return "-%s" % flag.shorthand
        return "-%s, --%s" % (flag.shorthand, flag.name)
    return "--%s" % flag.name


class FlagSet:
    """
    Registry of flags plus the parser state of the last parse.

    Configuration (keywords, also plain attributes afterwards unless noted)
    - errors: ErrorHandling policy for parse faults (positional, fixed).
    - output: rich Console or text stream for usage and diagnostics;
      defaults to a Console on standard error. See set_output().
    - sort_flags: visit and print flags in name order (True) or
      registration order (False).
    - interspersed: allow positionals between flags. See set_interspersed().
    - allow_unknown: record unknown flags in `unknown_flags` instead of failing.
    - builtin_help: `-h`/`--help` produce HelpRequested when undefined.
    - formatter: UsageFormatter shaping every usage line.
    - colorful: style faults, warnings and the usage header.
    - usage: zero-argument callable printing the help; defaults to
      "Usage of <name>:" followed by print_defaults().
    """

    def __init__(
            self,
            name="",
            errors=ErrorHandling.CONTINUE,
            /,
            *,
            output=Unset,
            sort_flags=True,
            interspersed=True,
            allow_unknown=False,
            builtin_help=True,
            formatter=Unset,
            colorful=False,
            usage=Unset,
    ):
        if not isinstance(name, str):
            raise TypeError("FlagSet() name must be a string")
        if not isinstance(errors, ErrorHandling):
            raise TypeError("FlagSet() errors must be an ErrorHandling policy")

        self._name = name
        self._errors = errors
        self._console = _console(output)
        self._interspersed = bool(interspersed)
        self._normalize = Unset

        self.sort_flags = bool(sort_flags)
        self.allow_unknown = bool(allow_unknown)
        self.builtin_help = bool(builtin_help)
        self.formatter = coalesce(formatter, UsageFormatter())
        self.colorful = bool(colorful)
        self.usage = coalesce(usage, self._default_usage)

        self._formal = {}
        self._ordered_formal = []
        self._sorted_formal = []
        self._shorthands = {}
        self._actual = {}
        self._ordered_actual = []
        self._sorted_actual = []

        self._args = []
        self._args_len_at_dash = -1
        self._unknown_flags = []
        self._parsed = False
        self._tokens = deque()

    def __repr__(self):
        return "FlagSet(%r, %s)" % (self._name, self._errors)

    def __rich_repr__(self):
        yield self._name
        yield "errors", self._errors
        yield "flags", [flag.name for flag in self.all_flags()]

    # --- configuration -------------------------------------------------------

    name = property(lambda self: self._name, doc="name shown in the usage header.")
    errors = property(lambda self: self._errors, doc="the parse fault policy.")
    output = property(lambda self: self._console, doc="the Console used for all output.")

    def set_output(self, output, /):
        """redirect usage and diagnostics to a rich Console or a text stream."""
        self._console = _console(output)

    def set_interspersed(self, interspersed, /):
        """when false, the first positional ends flag parsing."""
        self._interspersed = bool(interspersed)

    @property
    def normalize_func(self):
        return coalesce(self._normalize, _identity)

    def set_normalize_func(self, function, /):
        """
        install `function(flagset, name) -> str` and rename every registered flag.

        flags that would share a normalized name raise NormalizationCollisionError
        and leave the set untouched.
        """
        if not callable(function):
            raise TypeError("set_normalize_func() argument must be callable")

        renamed = {}
        for flag in self._ordered_formal:
            normalized = function(self, flag.name)
            if normalized in renamed:
                self._reject(NormalizationCollisionError(
                    "%s flag %r collides with %r once normalized to %r" % (
                        self._name, flag.name, renamed[normalized].name, normalized
                    ),
                    name=flag.name,
                ))
            renamed[normalized] = flag

        self._normalize = function
        actual = {id(flag) for flag in self._ordered_actual}
        for normalized, flag in renamed.items():
            flag._name = normalized
        self._formal = renamed
        self._actual = {name: flag for name, flag in renamed.items() if id(flag) in actual}
        self._sorted_formal = []
        self._sorted_actual = []

    def _normalized(self, name, /):
        return self.normalize_func(self, name)

    # --- registration --------------------------------------------------------

    def _reject(self, error, /):
        self._console.print(error, soft_wrap=True)
        raise error

    def var(self, value, name, usage="", /, **options):
        """
        register `value` under `name` and return the new Flag.

        options are forwarded to Flag(): shorthand, shorthand_only, default,
        no_option_default, deprecated, shorthand_deprecated, hidden, group,
        annotations, usage_type, disable_unquote_usage, disable_print_default.
        """
        try:
            flag = Flag(name, value, usage, **options)
        except FlagDefinitionError as error:
            self._reject(error)
        self.add_flag(flag)
        return flag

    def add_flag(self, flag, /):
        if not isinstance(flag, Flag):
            raise TypeError("add_flag() argument must be a Flag")

        normalized = self._normalized(flag.name)
        if normalized in self._formal:
            self._reject(FlagRedefinedError(
                "%s flag redefined: %s" % (self._name, flag.name),
                name=flag.name,
            ))
        if flag.shorthand and flag.shorthand in self._shorthands:
            self._reject(ShorthandRedefinedError(
                "unable to redefine %r shorthand in %r flagset: it's already used for %r flag" % (
                    flag.shorthand, self._name, self._shorthands[flag.shorthand].name
                ),
                name=flag.name,
                shorthand=flag.shorthand,
            ))

        flag._name = normalized
        self._formal[normalized] = flag
        self._ordered_formal.append(flag)
        if flag.shorthand:
            self._shorthands[flag.shorthand] = flag

    def add_flag_set(self, other, /):
        """register every flag of `other` whose name is not already taken."""
        if not isinstance(other, FlagSet):
            raise TypeError("add_flag_set() argument must be a FlagSet")
        for flag in other.all_flags():
            if self.lookup(flag.name) is None:
                self.add_flag(flag)

    def _define(self, kind, value, name, usage, options, /):
        if kind.no_option_default:
            options.setdefault("no_option_default", kind.no_option_default)
        return self.var(value, name, usage, **options)

    # --- lookup and access ---------------------------------------------------

    def lookup(self, name, /):
        return self._formal.get(self._normalized(name))

    def shorthand_lookup(self, shorthand, /):
        if not shorthand:
            return None
        if len(shorthand) > 1:
            raise ValueError("cannot look up shorthand with more than one character: %r" % shorthand)
        return self._shorthands.get(shorthand)

    def _flag(self, name, /):
        if (flag := self.lookup(name)) is None:
            raise UndefinedFlagError(
                "flag accessed but not defined: %s" % name,
                name=name,
                colorful=self.colorful,
            )
        return flag

    def set(self, name, text, /):
        """
        assign `text` to the flag `name` as if given on the command line.

        raises UnknownFlagError for undefined names and InvalidFlagValueError
        when the value rejects the text (the value is left unchanged).
        """
        normalized = self._normalized(name)
        if (flag := self._formal.get(normalized)) is None:
            raise UnknownFlagError(_unknown(name), name=name, colorful=self.colorful)

        try:
            flag.value.set(text)
        except ValueError as error:
            raise InvalidFlagValueError(
                "invalid argument %r for %r flag: %s" % (text, _display_name(flag), error),
                name=flag.name,
                text=text,
                flag=flag,
                colorful=self.colorful,
            ) from error

        if not flag.changed:
            flag._changed = True
            self._actual[normalized] = flag
            self._ordered_actual.append(flag)

        if flag.deprecated is not None:
            trigger(DeprecatedFlagWarning(
                "Flag --%s has been deprecated, %s" % (flag.name, flag.deprecated),
                name=flag.name,
                flag=flag,
                colorful=self.colorful,
            ), console=self._console)

    def get(self, name, /):
        """native value of the flag `name`."""
        return self._getflagtype(name)

    def _getflagtype(self, name, typename=Unset, /):
        flag = self._flag(name)
        value = flag.value
        if typename is not Unset and isinstance(value, Typed) and value.typename != typename:
            raise FlagTypeError(
                "trying to get %r value of flag of type %r" % (typename, value.typename),
                name=name,
                flag=flag,
                colorful=self.colorful,
            )
        if not isinstance(value, Getter):
            raise MissingGetterError(
                "flag %r does not provide a native value" % name,
                name=name,
                flag=flag,
                colorful=self.colorful,
            )
        return value.get()

    def changed(self, name, /):
        """true when the flag `name` exists and was set."""
        return bool((flag := self.lookup(name)) is not None and flag.changed)

    def set_annotation(self, name, key, values, /):
        self._flag(name).set_annotation(key, values)

    def mark_deprecated(self, name, message, /):
        """deprecate (and hide) the flag `name`; using it prints `message`."""
        flag = self._flag(name)
        if not isinstance(message, str) or not message.strip():
            self._reject(EmptyDeprecationMessageError(
                "deprecated message for flag %r must be set" % name,
                name=name,
            ))
        flag._deprecated = message
        flag._hidden = True

    def mark_shorthand_deprecated(self, name, message, /):
        """deprecate the shorthand of `name`; the long form stays listed."""
        flag = self._flag(name)
        if not isinstance(message, str) or not message.strip():
            self._reject(EmptyDeprecationMessageError(
                "shorthand deprecated message for flag %r must be set" % name,
                name=name,
            ))
        flag._shorthand_deprecated = message

    def mark_hidden(self, name, /):
        self._flag(name)._hidden = True

    # --- iteration -----------------------------------------------------------

    def all_flags(self):
        """every registered flag, in name order when sort_flags is set."""
        if not self.sort_flags:
            return list(self._ordered_formal)
        if len(self._sorted_formal) != len(self._formal):
            self._sorted_formal = [self._formal[name] for name in sorted(self._formal)]
        return list(self._sorted_formal)

    def flags(self):
        """flags set so far, in name order when sort_flags is set."""
        if not self.sort_flags:
            return list(self._ordered_actual)
        if len(self._sorted_actual) != len(self._actual):
            self._sorted_actual = [self._actual[name] for name in sorted(self._actual)]
        return list(self._sorted_actual)

    def visit_all(self, function, /):
        for flag in self.all_flags():
            function(flag)

    def visit(self, function, /):
        for flag in self.flags():
            function(flag)

    def has_flags(self):
        return len(self._formal) > 0

    def has_available_flags(self):
        return any(not flag.hidden for flag in self._ordered_formal)

    # --- parsed state --------------------------------------------------------

    parsed = property(lambda self: self._parsed, doc="whether parse() was called.")
    args_len_at_dash = property(
        lambda self: self._args_len_at_dash,
        doc="number of positionals collected before `--`, or -1 without one.",
    )

    @property
    def nflag(self):
        return len(self._actual)

    @property
    def args(self):
        return list(self._args)

    @property
    def narg(self):
        return len(self._args)

    def arg(self, index, /):
        """positional `index`, or "" when out of range."""
        if 0 <= index < len(self._args):
            return self._args[index]
        return ""

    @property
    def unknown_flags(self):
        return list(self._unknown_flags)

    # --- parsing -------------------------------------------------------------

    def parse(self, arguments, /):
        """
        parse `arguments` (without the program name) and store each value
        through set().
        """
        return self.parse_all(arguments, lambda flag, text: self.set(flag.name, text))

    def parse_all(self, arguments, function, /):
        """
        parse `arguments` calling `function(flag, text)` for every assignment.

        positionals end up in `args`. Faults are surfaced according to the
        error-handling policy; under CONTINUE they are raised to the caller.
        """
        if isinstance(arguments, str):
            raise TypeError("parse() arguments must be a sequence of strings, not a string")

        self._parsed = True
        self._args = []
        self._args_len_at_dash = -1
        self._unknown_flags = []

        try:
            self._parseargs(deque(arguments), function)
        except HelpRequested as outcome:
            self.trigger(outcome)
        except FlagParseError as fault:
            self.trigger(fault)
        finally:
            self._tokens = deque()

    def trigger(self, fault, /):
        """
        surface a parse fault or outcome through the error-handling policy.

        EXIT and ABORT print the usage and a blank line before the message.
        """
        if isinstance(fault, FlagException) and self._errors is not ErrorHandling.CONTINUE:
            self.usage()
            self._console.out("", highlight=False)
        trigger(fault, policy=self._errors, console=self._console)

    def _help(self):
        self.usage()
        raise HelpRequested(colorful=self.colorful)

    def _assign(self, function, flag, text, /):
        try:
            function(flag, text)
        except FlagException:
            raise
        except ValueError as error:
            raise InvalidFlagValueError(
                "invalid argument %r for %r flag: %s" % (text, _display_name(flag), error),
                name=flag.name,
                text=text,
                flag=flag,
                colorful=self.colorful,
            ) from error

    def _strip_unknown_value(self):
        # an unknown flag may own the next token; drop it unless it looks like a flag
        if self._tokens and not self._tokens[0].startswith("-"):
            self._tokens.popleft()

    def _parseargs(self, tokens, function, /):
        self._tokens = tokens
        while self._tokens:
            token = self._tokens.popleft()

            if not token.startswith("-") or token == "-":
                self._args.append(token)
                if not self._interspersed:
                    self._args.extend(self._tokens)
                    self._tokens.clear()
                continue

            if token == "--":
                self._args_len_at_dash = len(self._args)
                self._args.extend(self._tokens)
                self._tokens.clear()
                continue

            if token.startswith("--"):
                self._parse_long(token, function)
            else:
                shorthands = token[1:]
                while shorthands:
                    shorthands = self._parse_shorthand(shorthands, token, function)

    def _parse_long(self, token, function, /):
        body = token[2:]
        if not body or body.startswith(("-", "=")):
            raise BadFlagSyntaxError("bad flag syntax: %s" % token, token=token, colorful=self.colorful)

        name, separator, text = body.partition("=")
        flag = self._formal.get(self._normalized(name))

        if flag is None or flag.shorthand_only:
            if flag is None and name == "help" and self.builtin_help:
                self._help()
            if flag is None and not self.allow_unknown:
                raise UnknownFlagError(_unknown(name), name=name, token=token, colorful=self.colorful)
            self._unknown_flags.append(token)
            if not separator:
                self._strip_unknown_value()
            return

        if separator:
            pass
        elif flag.no_option_default:
            text = flag.no_option_default
        elif self._tokens:
            text = self._tokens.popleft()
        else:
            raise FlagValueRequiredError(
                "flag needs an argument: %s" % token,
                name=name,
                token=token,
                flag=flag,
                colorful=self.colorful,
            )
        self._assign(function, flag, text)

    def _parse_shorthand(self, shorthands, token, function, /):
        """decode the first character of `shorthands` and return what is left of the cluster."""
        shorthand, rest = shorthands[0], shorthands[1:]
        flag = self._shorthands.get(shorthand)

        if flag is None:
            if shorthand == "h" and self.builtin_help:
                self._help()
            if not self.allow_unknown:
                raise UnknownShorthandError(
                    "unknown shorthand flag: %r in -%s" % (shorthand, shorthands),
                    shorthand=shorthand,
                    token=token,
                    colorful=self.colorful,
                )
            if rest:
                self._unknown_flags.append("-" + shorthands)
                return ""
            self._unknown_flags.append("-" + shorthand)
            self._strip_unknown_value()
            return ""

        if len(shorthands) > 2 and shorthands[1] == "=":
            text, rest = shorthands[2:], ""
        elif flag.no_option_default:
            text = flag.no_option_default
        elif rest:
            text, rest = rest, ""
        elif self._tokens:
            text = self._tokens.popleft()
        else:
            raise FlagValueRequiredError(
                "flag needs an argument: %r in -%s" % (shorthand, shorthands),
                shorthand=shorthand,
                token=token,
                flag=flag,
                colorful=self.colorful,
            )

        if flag.shorthand_deprecated is not None:
            trigger(DeprecatedShorthandWarning(
                "Flag shorthand -%s has been deprecated, %s" % (shorthand, flag.shorthand_deprecated),
                shorthand=shorthand,
                flag=flag,
                colorful=self.colorful,
            ), console=self._console)

        self._assign(function, flag, text)
        return rest

    # --- usage ---------------------------------------------------------------

    def _default_usage(self):
        header = "Usage of %s:" % self._name if self._name else "Usage:"
        styles = _styles({"usage-header": "bold"})
        self._console.print(Text(header, styles["usage-header"] if self.colorful else ""), soft_wrap=True)
        self.print_defaults()

    def print_defaults(self):
        """write the usage lines of every visible flag to the output sink."""
        self._console.out(self.flag_usages(), end="", highlight=False)

    def flag_usages(self):
        return _usage.flag_usages(self, 0)

    def flag_usages_wrapped(self, cols, /):
        """usage lines with the usage column wrapped at `cols` (0 disables wrapping)."""
        return _usage.flag_usages(self, cols)

    def flag_usages_for_group(self, group, cols=0, /):
        return _usage.flag_usages_for_group(self, group, cols)

    def groups(self):
        return _usage.groups(self)


def _definer(kind, /):
    if kind.defaulted:
        def definer(self, name, default=Unset, usage="", /, **options):
            return self._define(kind, kind.factory(default), name, usage, options)
    else:
        def definer(self, name, usage="", /, **options):
            return self._define(kind, kind.factory(), name, usage, options)
    definer.__doc__ = "define a %r flag and return it." % kind.typename
    return rename(definer, kind.method)


def _getter(kind, /):
    def getter(self, name, /):
        return self._getflagtype(name, kind.typename)
    getter.__doc__ = "native value of the %r flag `name`." % kind.typename
    return rename(getter, "get_" + kind.method)


for _kind in CATALOG:
    setattr(FlagSet, _kind.method, _definer(_kind))
    setattr(FlagSet, "get_" + _kind.method, _getter(_kind))
del _kind


__all__ = (
    "FlagSet",
    "ErrorHandling",
)
