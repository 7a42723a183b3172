"""
Parser behavioral tests (long flags, shorthand clusters, positionals, policies).

Scope
- Validate the command-line grammar: --name, --name value, --name=value,
  -n, -n value, -nvalue, -n=value, clusters and the `--` terminator.
- Validate no-option defaults (booleans, counters) and list accumulation.
- Validate faults: bad syntax, unknown flags, missing values, invalid values,
  and the built-in help outcome.
- Validate the unknown-flags allowlist and its value-discard heuristic.
- Validate the CONTINUE, EXIT and ABORT policies.

Conventions
- Test method names follow CamelCase per project convention.
- Every FlagSet writes to an in-memory stream so diagnostics can be asserted.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from flagstaff import (
    BadFlagSyntaxError, ErrorHandling, FaultCode, FlagAbort, FlagParseError, FlagSet,
    FlagValueRequiredError, HelpRequested, InvalidFlagValueError, UnknownFlagError,
    UnknownShorthandError,
)


def make(errors=ErrorHandling.CONTINUE, **options):
    output = io.StringIO()
    flags = FlagSet("test", errors, output=output, **options)
    flags.bool("verbose", False, "talk more", shorthand="v")
    flags.int("num", 0, "a number", shorthand="n")
    flags.string("name", "", "a name")
    return flags, output


class TestLongFlags(TestCase):
    """--name forms and scalar semantics."""

    def testForms(self):
        flags, _ = make()
        flags.parse(["--num=1", "--name", "alice", "--verbose"])
        self.assertEqual(flags.get_int("num"), 1)
        self.assertEqual(flags.get_string("name"), "alice")
        self.assertTrue(flags.get_bool("verbose"))
        self.assertEqual(flags.nflag, 3)
        self.assertTrue(flags.parsed)

    def testExplicitBoolValue(self):
        flags, _ = make()
        flags.parse(["--verbose=false"])
        self.assertFalse(flags.get_bool("verbose"))
        self.assertTrue(flags.changed("verbose"))

    def testBoolDoesNotConsumeNextToken(self):
        flags, _ = make()
        flags.parse(["--verbose", "false"])
        self.assertTrue(flags.get_bool("verbose"))
        self.assertEqual(flags.args, ["false"])

    def testEmptyValueAfterEquals(self):
        flags, _ = make()
        flags.parse(["--name="])
        self.assertEqual(flags.get_string("name"), "")
        self.assertTrue(flags.changed("name"))

    def testScalarLastWins(self):
        flags, _ = make()
        flags.parse(["--num=1", "--num", "2", "-n3"])
        self.assertEqual(flags.get_int("num"), 3)

    def testValueMayStartWithDash(self):
        flags, _ = make()
        flags.parse(["--num", "-5"])
        self.assertEqual(flags.get_int("num"), -5)

    def testMissingValue(self):
        flags, _ = make()
        with self.assertRaises(FlagValueRequiredError) as context:
            flags.parse(["--num"])
        self.assertEqual(str(context.exception), "flag needs an argument: --num")
        self.assertEqual(context.exception.code, FaultCode.FLAG_VALUE_REQUIRED)

    def testBadSyntax(self):
        for token in ("---num", "--=1"):
            flags, _ = make()
            with self.subTest(token=token), self.assertRaises(BadFlagSyntaxError) as context:
                flags.parse([token])
            self.assertEqual(str(context.exception), "bad flag syntax: %s" % token)

    def testUnknownFlag(self):
        flags, _ = make()
        with self.assertRaises(UnknownFlagError) as context:
            flags.parse(["--nope"])
        self.assertEqual(str(context.exception), "unknown flag: --nope")

    def testInvalidValue(self):
        flags, _ = make()
        with self.assertRaises(InvalidFlagValueError) as context:
            flags.parse(["--num=abc"])
        self.assertIn("invalid argument 'abc' for '-n, --num' flag", str(context.exception))
        self.assertIsInstance(context.exception.__cause__, ValueError)


class TestShorthands(TestCase):
    """-n forms and clusters."""

    def testForms(self):
        for arguments in (["-n5"], ["-n", "5"], ["-n=5"]):
            flags, _ = make()
            with self.subTest(arguments=arguments):
                flags.parse(arguments)
                self.assertEqual(flags.get_int("num"), 5)

    def testClusterWithTrailingValue(self):
        flags, _ = make()
        flags.parse(["-vn5"])
        self.assertTrue(flags.get_bool("verbose"))
        self.assertEqual(flags.get_int("num"), 5)

    def testClusterWithNextTokenValue(self):
        flags, _ = make()
        flags.parse(["-vn", "5"])
        self.assertTrue(flags.get_bool("verbose"))
        self.assertEqual(flags.get_int("num"), 5)

    def testValueFlagSwallowsClusterRemainder(self):
        flags, _ = make()
        with self.assertRaises(InvalidFlagValueError):
            flags.parse(["-nv5"])
        self.assertFalse(flags.get_bool("verbose"))

    def testBoolShorthandWithValue(self):
        flags, _ = make()
        flags.set("verbose", "true")
        flags.parse(["-v=false"])
        self.assertFalse(flags.get_bool("verbose"))

    def testMissingValue(self):
        flags, _ = make()
        with self.assertRaises(FlagValueRequiredError) as context:
            flags.parse(["-n"])
        self.assertEqual(str(context.exception), "flag needs an argument: 'n' in -n")

    def testUnknownShorthand(self):
        flags, _ = make()
        with self.assertRaises(UnknownShorthandError) as context:
            flags.parse(["-vx"])
        self.assertEqual(str(context.exception), "unknown shorthand flag: 'x' in -x")
        self.assertIsInstance(context.exception, UnknownFlagError)
        self.assertTrue(flags.get_bool("verbose"))

    def testShorthandOnly(self):
        flags, _ = make()
        flags.bool("quiet", False, "", shorthand="q", shorthand_only=True)
        flags.parse(["-q"])
        self.assertTrue(flags.get_bool("quiet"))
        flags.parse(["--quiet"])
        self.assertEqual(flags.unknown_flags, ["--quiet"])

    def testDeprecatedShorthandWarns(self):
        flags, output = make()
        flags.mark_shorthand_deprecated("num", "use --num")
        flags.parse(["-n", "4"])
        self.assertEqual(flags.get_int("num"), 4)
        self.assertIn("Flag shorthand -n has been deprecated, use --num", output.getvalue())
        output.seek(0)
        output.truncate()
        flags.parse(["--num", "5"])
        self.assertNotIn("deprecated", output.getvalue())


class TestCounters(TestCase):
    """count flags: "+1" on bare use, explicit values assign."""

    def testTable(self):
        cases = (
            ([], 0),
            (["-v"], 1),
            (["-vvv"], 3),
            (["-v", "-v", "-v"], 3),
            (["-v", "--verbose", "-v"], 3),
            (["-v=3", "-v"], 4),
            (["--verbose=0"], 0),
            (["-v=0"], 0),
        )
        for arguments, expected in cases:
            flags = FlagSet("test", output=io.StringIO())
            flags.count("verbose", "a counter", shorthand="v")
            with self.subTest(arguments=arguments):
                flags.parse(arguments)
                self.assertEqual(flags.get_count("verbose"), expected)
                self.assertEqual(flags.get("verbose"), expected)

    def testInvalidCount(self):
        flags = FlagSet("test", output=io.StringIO())
        flags.count("verbose", "a counter", shorthand="v")
        with self.assertRaises(InvalidFlagValueError):
            flags.parse(["-v=a"])


class TestLists(TestCase):
    """Repeated list flags accumulate."""

    def testAccumulation(self):
        flags, _ = make()
        flags.int_slice("ids", [9], "identifiers")
        flags.parse(["--ids=1,2", "--ids", "3"])
        self.assertEqual(flags.get_int_slice("ids"), [1, 2, 3])

    def testUint8Slice(self):
        flags, _ = make()
        flags.uint8_slice("octets", [], "octets")
        flags.parse(["--octets=10,0x20", "--octets", "255"])
        self.assertEqual(flags.get_uint8_slice("octets"), [10, 32, 255])
        self.assertEqual(str(flags.lookup("octets").value), "[10,32,255]")

    def testFloat32DefaultRoundTrips(self):
        flags, _ = make()
        flags.float32("ratio", 0.3, "ratio")
        before = flags.get_float32("ratio")
        flags.parse(["--ratio", flags.lookup("ratio").default])
        self.assertEqual(flags.get_float32("ratio"), before)

    def testDurationSliceCalledTwice(self):
        flags, _ = make()
        flags.duration_slice("ds", [], "durations")
        flags.parse(["--ds=1ms,2ms", "--ds=3ms"])
        self.assertEqual([str(item) for item in flags.get_duration_slice("ds")],
                         ["0:00:00.001000", "0:00:00.002000", "0:00:00.003000"])

    def testReplaceThroughVisit(self):
        flags, _ = make()
        flags.string_slice("tags", [], "tags")
        flags.parse(["--tags=a,b"])
        flags.visit_all(lambda flag: flag.value.replace(["c"]) if flag.name == "tags" else None)
        self.assertEqual(flags.get_string_slice("tags"), ["c"])

    def testMapsMerge(self):
        flags, _ = make()
        flags.string_to_int("limits", {}, "limits")
        flags.parse(["--limits", "cpu=2,mem=4", "--limits=disk=8"])
        self.assertEqual(flags.get_string_to_int("limits"), {"cpu": 2, "mem": 4, "disk": 8})


class TestPositionals(TestCase):
    """Interspersed positionals and the terminator."""

    def testInterspersed(self):
        flags, _ = make()
        flags.parse(["a", "--num=1", "b", "-", "-v", "c"])
        self.assertEqual(flags.args, ["a", "b", "-", "c"])
        self.assertEqual(flags.narg, 4)
        self.assertEqual(flags.arg(1), "b")
        self.assertEqual(flags.arg(9), "")
        self.assertEqual(flags.args_len_at_dash, -1)

    def testNotInterspersed(self):
        flags, _ = make()
        flags.set_interspersed(False)
        flags.parse(["-v", "a", "--num=1"])
        self.assertTrue(flags.get_bool("verbose"))
        self.assertEqual(flags.args, ["a", "--num=1"])
        self.assertFalse(flags.changed("num"))

    def testTerminator(self):
        flags, _ = make()
        flags.parse(["-v", "--", "--not-a-flag", "pos1"])
        self.assertTrue(flags.get_bool("verbose"))
        self.assertEqual(flags.args, ["--not-a-flag", "pos1"])
        self.assertEqual(flags.args_len_at_dash, 0)

    def testTerminatorAfterPositionals(self):
        flags, _ = make()
        flags.parse(["a", "--", "b"])
        self.assertEqual(flags.args, ["a", "b"])
        self.assertEqual(flags.args_len_at_dash, 1)

    def testEmptyTokenIsPositional(self):
        flags, _ = make()
        flags.parse(["", "x"])
        self.assertEqual(flags.args, ["", "x"])

    def testStateResetsBetweenParses(self):
        flags, _ = make(allow_unknown=True)
        flags.parse(["a", "--x", "--", "b"])
        flags.parse(["c"])
        self.assertEqual(flags.args, ["c"])
        self.assertEqual(flags.unknown_flags, [])
        self.assertEqual(flags.args_len_at_dash, -1)

    def testStringIsRejected(self):
        flags, _ = make()
        with self.assertRaises(TypeError):
            flags.parse("--verbose")


class TestUnknownFlags(TestCase):
    """allow_unknown records tokens and discards a likely value."""

    def testDropsFollowingValue(self):
        flags, _ = make(allow_unknown=True)
        flags.int("known", 0)
        flags.parse(["--unknown-flag", "foo", "--known=1"])
        self.assertEqual(flags.get_int("known"), 1)
        self.assertEqual(flags.unknown_flags, ["--unknown-flag"])
        self.assertEqual(flags.args, [])

    def testKeepsFollowingFlag(self):
        flags, _ = make(allow_unknown=True)
        flags.parse(["--unknown", "-v", "pos"])
        self.assertEqual(flags.unknown_flags, ["--unknown"])
        self.assertTrue(flags.get_bool("verbose"))
        self.assertEqual(flags.args, ["pos"])

    def testInlineValueConsumesNothing(self):
        flags, _ = make(allow_unknown=True)
        flags.parse(["--unknown=1", "pos"])
        self.assertEqual(flags.unknown_flags, ["--unknown=1"])
        self.assertEqual(flags.args, ["pos"])

    def testUnknownShorthands(self):
        flags, _ = make(allow_unknown=True)
        flags.parse(["-x", "value", "-yz", "pos", "-vq"])
        self.assertEqual(flags.unknown_flags, ["-x", "-yz", "-q"])
        self.assertEqual(flags.args, ["pos"])
        self.assertTrue(flags.get_bool("verbose"))

    def testLastTokenUnknown(self):
        flags, _ = make(allow_unknown=True)
        flags.parse(["pos", "--unknown"])
        self.assertEqual(flags.unknown_flags, ["--unknown"])
        self.assertEqual(flags.args, ["pos"])


class TestHelp(TestCase):
    """Built-in -h/--help."""

    def testHelpUnderContinue(self):
        for token in ("--help", "-h"):
            flags, output = make()
            with self.subTest(token=token), self.assertRaises(HelpRequested) as context:
                flags.parse([token])
            self.assertEqual(context.exception.code, FaultCode.HELP_REQUESTED)
            self.assertTrue(output.getvalue().startswith("Usage of test:\n"))
            self.assertIn("--verbose", output.getvalue())

    def testHelpIsNotAFault(self):
        self.assertFalse(issubclass(HelpRequested, FlagParseError))

    def testDefinedHelpFlagWins(self):
        flags, output = make()
        flags.bool("help", False, "custom help", shorthand="h")
        flags.parse(["-h"])
        self.assertTrue(flags.get_bool("help"))
        self.assertEqual(output.getvalue(), "")

    def testBuiltinHelpDisabled(self):
        flags, _ = make(builtin_help=False)
        with self.assertRaises(UnknownFlagError):
            flags.parse(["--help"])

    def testHelpUnderExit(self):
        flags, _ = make(ErrorHandling.EXIT)
        with self.assertRaises(SystemExit) as context:
            flags.parse(["--help"])
        self.assertEqual(context.exception.code, 0)

    def testCustomUsage(self):
        calls = []
        flags, _ = make(usage=lambda: calls.append("usage"))
        with self.assertRaises(HelpRequested):
            flags.parse(["-h"])
        self.assertEqual(calls, ["usage"])


class TestPolicies(TestCase):
    """CONTINUE raises, EXIT exits with status 2, ABORT raises FlagAbort."""

    def testContinueDoesNotPrint(self):
        flags, output = make()
        with self.assertRaises(UnknownFlagError):
            flags.parse(["--nope"])
        self.assertEqual(output.getvalue(), "")

    def testExit(self):
        flags, output = make(ErrorHandling.EXIT)
        with self.assertRaises(SystemExit) as context:
            flags.parse(["--nope"])
        self.assertEqual(context.exception.code, 2)
        text = output.getvalue()
        self.assertTrue(text.startswith("Usage of test:\n"))
        self.assertTrue(text.endswith("\nunknown flag: --nope\n"))

    def testAbort(self):
        flags, output = make(ErrorHandling.ABORT)
        with self.assertRaises(FlagAbort) as context:
            flags.parse(["-x"])
        self.assertIsInstance(context.exception.fault, UnknownShorthandError)
        self.assertIs(context.exception.__cause__, context.exception.fault)
        self.assertFalse(issubclass(FlagAbort, Exception))
        self.assertIn("unknown shorthand flag: 'x' in -x", output.getvalue())

    def testParseAllCustomAssignment(self):
        flags, _ = make()
        seen = []
        flags.parse_all(["-v", "--num=3", "pos"], lambda flag, text: seen.append((flag.name, text)))
        self.assertEqual(seen, [("verbose", "true"), ("num", "3")])
        self.assertFalse(flags.changed("num"))
        self.assertEqual(flags.args, ["pos"])

    def testParseAllWrapsValueErrors(self):
        flags, _ = make()

        def reject(flag, text):
            raise ValueError("nope")

        with self.assertRaises(InvalidFlagValueError):
            flags.parse_all(["--num=3"], reject)


if __name__ == "__main__":
    unittest.main()
