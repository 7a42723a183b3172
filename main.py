import sys
from datetime import timedelta

from rich.pretty import pprint

from flagstaff import *


flags = FlagSet("main", ErrorHandling.EXIT, colorful=True)
flags.bool("verbose", False, "print the parsed flags", shorthand="v")
flags.count("level", "raise the log `level` (repeatable)", shorthand="l")
flags.string("output", "-", "write results to `path`", shorthand="o")
flags.duration("timeout", timedelta(seconds=30), "give up after `delay`")
flags.string_slice("tag", ["default"], "attach tags, comma separated")
flags.string_to_string("label", {}, "attach key=value labels", group="Metadata")


if __name__ == '__main__':
    flags.parse(sys.argv[1:])
    if flags.get_bool("verbose"):
        pprint(flags.flags())
    pprint({flag.name: flag.value.get() for flag in flags.all_flags()})
    pprint(flags.args)
