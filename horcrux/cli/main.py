# horcrux/cli/main.py
import argparse
import logging
import sys
from typing import List

from ..errors import (
    HorcruxError,
    InputMalformedError,
    InvariantViolationError,
    NoOpError,
    format_error,
)
from . import config
from ._exit import INVALID, USER_ERR
from ._io import eprint_once, set_verbosity
from ..io.paths import resolve_home

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="horcrux",
        description="horcrux threshold signer",
        allow_abbrev=False,
    )
    try:
        from horcrux import __version__ as _VER  # lazy import to avoid side effects
    except Exception:
        _VER = "unknown"
    parser.add_argument("--version", action="version", version=f"horcrux {_VER}")
    parser.add_argument(
        "--home",
        dest="home",
        help="home directory (default: $HORCRUX_HOME, else ~/.horcrux)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="increase stderr verbosity")
    verbosity.add_argument("--quiet", action="store_true", help="suppress non-essential stderr")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    config.register(subparsers)

    return parser


def _exit_code(e: HorcruxError) -> int:
    if isinstance(e, InputMalformedError):
        return USER_ERR
    if isinstance(e, (InvariantViolationError, NoOpError)):
        return INVALID
    return USER_ERR


def main(argv: List[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    ns = parser.parse_args(argv)
    if not hasattr(ns, "func"):
        parser.print_help(sys.stderr)
        return USER_ERR

    set_verbosity(ns.verbose, ns.quiet)
    home, source = resolve_home(ns.home)
    logger.debug("home: selected=%s (source=%s)", home, source)
    ns.home = str(home)

    try:
        return ns.func(ns)
    except HorcruxError as e:
        eprint_once(format_error(e))
        return _exit_code(e)
    except OSError as e:
        eprint_once(f"IOError: {e}")
        return USER_ERR


if __name__ == "__main__":
    raise SystemExit(main())
