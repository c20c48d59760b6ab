"""
CLI for the demangler.
"""

import argparse
import logging
import sys

from msvc_demangler.demangler import decode, demangle


class _ArgumentParser(argparse.ArgumentParser):
    """
    Argument parser which exits with status 1 on bad arguments, like a failed demangle.
    """

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1)


parser = _ArgumentParser("msvc-demangler", description="Demangler for MSVC C++ symbols.")
parser.add_argument("symbol", help="Symbol to demangle.", type=str)
parser.add_argument(
    "--passthrough",
    "-p",
    help="Print the symbol unchanged if demangling fails, instead of failing",
    action="store_true",
)
parser.add_argument("--verbose", "-v", help="Log each demangling step", action="store_true")


def main(argv=None) -> int:
    args = parser.parse_args(argv)  # noqa
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.passthrough:
        print(demangle(args.symbol))
        return 0

    result = decode(args.symbol)
    if not result.ok:
        print(result.error, file=sys.stderr)
        return 1

    print(str(result.symbol))
    return 0


if __name__ == "__main__":
    sys.exit(main())
