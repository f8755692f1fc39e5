from __future__ import annotations

import json
import logging
import sys
from typing import Any

# Verbosity gates
VERBOSE = False
QUIET = False

_LOG_FORMAT = "[horcrux] %(levelname)s %(name)s: %(message)s"
_pkg_logger = logging.getLogger("horcrux")


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever sys.stderr is at emit time (tests swap it)."""

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value):
        pass


def set_verbosity(verbose: bool = False, quiet: bool = False) -> None:
    """Set the stderr gates and the level of the `horcrux` logger tree."""
    global VERBOSE, QUIET
    VERBOSE, QUIET = bool(verbose), bool(quiet)
    _pkg_logger.setLevel(logging.DEBUG if VERBOSE else logging.ERROR if QUIET else logging.WARNING)
    if not any(isinstance(h, _StderrHandler) for h in _pkg_logger.handlers):
        h = _StderrHandler()
        h.setFormatter(logging.Formatter(_LOG_FORMAT))
        _pkg_logger.addHandler(h)


def eprint_once(msg: str) -> None:
    if not QUIET:
        print(msg, file=sys.stderr)


def print_json(obj: Any = None, *, preencoded: str | None = None) -> None:
    """
    If preencoded is provided it is printed as-is (preserves existing JSON).
    Otherwise dumps obj with a two-space indent.
    """
    if preencoded is not None:
        sys.stdout.write(preencoded if preencoded.endswith("\n") else preencoded + "\n")
        return
    sys.stdout.write(json.dumps(obj, indent=2) + "\n")


def print_text(text: str) -> None:
    sys.stdout.write(text if text.endswith("\n") else text + "\n")
