"""
Flagstaff faults (errors, warnings and outcomes) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
- Three unrelated roots, one per tier, so callers can tell them apart:
  • FlagDefinitionError: programming errors at definition time (duplicate names,
    duplicate shorthands, empty deprecation messages). Raised immediately.
  • FlagException: recoverable, message-bearing failures. FlagParseError covers
    user input; FlagAccessError covers get/set against the registry.
  • HelpRequested: the distinguished non-error outcome of `-h`/`--help`.
- FlagWarning: deprecation notices written to a FlagSet's output sink.
- FlagAbort: what the ABORT policy raises; derives from BaseException so that a
  blanket `except Exception` does not intercept it.
- ErrorHandling + trigger(): how a parse fault reaches the caller.

Rendering
- Every fault and warning implements __rich__ and prints through a rich Console.
- Styles apply only when the `colorful` option is true. A `__styles__` mapping in
  __main__ overrides palette entries.
"""
import sys
from collections import defaultdict
from enum import Enum, IntEnum
from types import MappingProxyType

from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - definitions (101xx): FLAG_REDEFINED, SHORTHAND_REDEFINED, EMPTY_DEPRECATION_MESSAGE,
      NORMALIZATION_COLLISION
    - parsing (111xx): BAD_FLAG_SYNTAX, UNKNOWN_FLAG, UNKNOWN_SHORTHAND,
      FLAG_VALUE_REQUIRED, INVALID_FLAG_VALUE
    - access (112xx): UNDEFINED_FLAG, FLAG_TYPE_MISMATCH, MISSING_GETTER
    - warnings (121xx): DEPRECATED_FLAG, DEPRECATED_SHORTHAND
    - outcomes (130xx): HELP_REQUESTED
    """
    # --- definition errors (101xx) ---
    FLAG_REDEFINED              = 10101
    SHORTHAND_REDEFINED         = 10102
    EMPTY_DEPRECATION_MESSAGE   = 10103
    NORMALIZATION_COLLISION     = 10104

    # --- parse errors (111xx) ---
    BAD_FLAG_SYNTAX             = 11111
    UNKNOWN_FLAG                = 11112
    UNKNOWN_SHORTHAND           = 11113
    FLAG_VALUE_REQUIRED         = 11117
    INVALID_FLAG_VALUE          = 11124

    # --- accessor errors (112xx) ---
    UNDEFINED_FLAG              = 11201
    FLAG_TYPE_MISMATCH          = 11202
    MISSING_GETTER              = 11203

    # --- warnings (121xx) ---
    DEPRECATED_FLAG             = 12112
    DEPRECATED_SHORTHAND        = 12113

    # --- outcomes (130xx) ---
    HELP_REQUESTED              = 13001


class ErrorHandling(Enum):
    """
    policy applied to parse faults, chosen once when a FlagSet is built.

    - CONTINUE: raise the fault to the caller of parse().
    - EXIT: print usage and the message, then exit the process with status 2
      (status 0 for help).
    - ABORT: print usage and the message, then raise FlagAbort.
    """
    CONTINUE = "continue"
    EXIT = "exit"
    ABORT = "abort"


def _styles(defaults, /):
    return defaultdict(str, defaults | getattr(__import__("__main__"), "__styles__", {}))


def _render(message, style, options, /):
    if not options.get("colorful", False):
        return Text(str(message))
    return Text(str(message), style)


class ParseError(ValueError):
    """raised by the built-in Value catalog when text cannot be converted."""


class FlagAbort(BaseException):
    """
    raised by the ABORT policy.

    the originating fault is kept in `fault` and chained as the cause.
    """

    def __init__(self, fault, /):
        super().__init__(str(fault))
        self.fault = fault


class FlagDefinitionError(Exception):
    """
    programming error detected while defining flags.

    these never go through the error-handling policy: a FlagSet writes the
    message to its output sink and raises right away.
    """
    code = Unset

    def __init__(self, message, /, **options):
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        styles = _styles({"definition-message": "bold #FF4DA6"})
        return _render(self.message, styles["definition-message"], self.options)


class FlagRedefinedError(FlagDefinitionError):
    code = FaultCode.FLAG_REDEFINED


class ShorthandRedefinedError(FlagDefinitionError):
    code = FaultCode.SHORTHAND_REDEFINED


class EmptyDeprecationMessageError(FlagDefinitionError):
    code = FaultCode.EMPTY_DEPRECATION_MESSAGE


class NormalizationCollisionError(FlagDefinitionError):
    code = FaultCode.NORMALIZATION_COLLISION


class FlagException(Exception):
    """
    base for recoverable, message-bearing failures.

    options carry the context a renderer or caller may want: `name`, `shorthand`,
    `token`, `text`, `flag`, and the rendering switch `colorful`.
    """
    code = Unset

    def __init__(self, message, /, **options):
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        styles = _styles({
            "error-message": "#FF4DA6",  # friendly pinky error
        })
        return _render(self.message, styles["error-message"], self.options)

    def __trigger__(self, *, policy=ErrorHandling.CONTINUE, console=Unset):
        match policy:
            case ErrorHandling.CONTINUE:
                raise self
            case ErrorHandling.EXIT:
                if console is not Unset:
                    console.print(self, soft_wrap=True)
                sys.exit(2)
            case ErrorHandling.ABORT:
                if console is not Unset:
                    console.print(self, soft_wrap=True)
                raise FlagAbort(self) from self
            case _:
                raise TypeError("unknown error handling policy %r" % (policy,))


class FlagParseError(FlagException): ...


class BadFlagSyntaxError(FlagParseError):
    code = FaultCode.BAD_FLAG_SYNTAX


class UnknownFlagError(FlagParseError):
    code = FaultCode.UNKNOWN_FLAG


class UnknownShorthandError(UnknownFlagError):
    code = FaultCode.UNKNOWN_SHORTHAND


class FlagValueRequiredError(FlagParseError):
    code = FaultCode.FLAG_VALUE_REQUIRED


class InvalidFlagValueError(FlagParseError):
    code = FaultCode.INVALID_FLAG_VALUE


class FlagAccessError(FlagException): ...


class UndefinedFlagError(FlagAccessError):
    code = FaultCode.UNDEFINED_FLAG


class FlagTypeError(FlagAccessError):
    code = FaultCode.FLAG_TYPE_MISMATCH


class MissingGetterError(FlagAccessError):
    code = FaultCode.MISSING_GETTER


class HelpRequested(Exception):
    """
    `-h` or `--help` was given and no flag by that name is defined.

    this is an outcome, not a failure: under CONTINUE it is raised so callers can
    exit cleanly; under EXIT the process exits with status 0.
    """
    code = FaultCode.HELP_REQUESTED

    def __init__(self, message="help requested", /, **options):
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __trigger__(self, *, policy=ErrorHandling.CONTINUE, console=Unset):
        match policy:
            case ErrorHandling.CONTINUE:
                raise self
            case ErrorHandling.EXIT:
                sys.exit(0)
            case ErrorHandling.ABORT:
                raise FlagAbort(self) from self
            case _:
                raise TypeError("unknown error handling policy %r" % (policy,))


class FlagWarning(Warning):
    """
    notice written to a FlagSet's output sink; never raised.
    """
    code = Unset

    def __init__(self, message, /, **options):
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        styles = _styles({
            "warning-message": "#FFB400",  # amber for warnings
        })
        return _render(self.message, styles["warning-message"], self.options)

    def __trigger__(self, *, console=Unset, **unused):
        if console is not Unset:
            console.print(self, soft_wrap=True)


class DeprecatedFlagWarning(FlagWarning):
    code = FaultCode.DEPRECATED_FLAG


class DeprecatedShorthandWarning(FlagWarning):
    code = FaultCode.DEPRECATED_SHORTHAND


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide a callable __trigger__.
    - options are forwarded as keywords: `policy` (ErrorHandling) and `console`
      (rich Console used for printing).
    - errors raise or exit depending on the policy; warnings only print.
    """
    if not hasattr(fault, "__trigger__") or not callable(fault.__trigger__):
        raise TypeError("trigger() argument must have a __trigger__ method")
    fault.__trigger__(**options)


__all__ = (
    "FaultCode",
    "ErrorHandling",
    "ParseError",
    "FlagAbort",
    "FlagDefinitionError",
    "FlagRedefinedError",
    "ShorthandRedefinedError",
    "EmptyDeprecationMessageError",
    "NormalizationCollisionError",
    "FlagException",
    "FlagParseError",
    "BadFlagSyntaxError",
    "UnknownFlagError",
    "UnknownShorthandError",
    "FlagValueRequiredError",
    "InvalidFlagValueError",
    "FlagAccessError",
    "UndefinedFlagError",
    "FlagTypeError",
    "MissingGetterError",
    "HelpRequested",
    "FlagWarning",
    "DeprecatedFlagWarning",
    "DeprecatedShorthandWarning",
    "trigger",
)
