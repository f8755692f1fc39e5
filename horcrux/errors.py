from __future__ import annotations

"""Typed error taxonomy.

Only `horcrux` and `horcrux.errors` are public import roots. Everything else is internal.
Each class maps to one corrective action an operator can take, so callers should catch
the specific subclass rather than the base.
"""

from typing import Any, List, Optional

__all__ = [
    "HorcruxError",
    "ConfigError",
    "InputMalformedError",
    "InvariantViolationError",
    "ThresholdError",
    "DuplicateShareIDError",
    "ShareIDConflictError",
    "NoOpError",
    "PreconditionError",
    "SignStateError",
    "CLIError",
    "format_error",
]


class HorcruxError(Exception):
    """Base class for all typed, operator-facing errors in horcrux."""
    pass


class ConfigError(HorcruxError):
    """A candidate configuration was rejected; nothing was written."""
    pass


class InputMalformedError(ConfigError):
    """Unparseable URI, integer or duration, or a wrong field count."""

    def __init__(self, message: str, *, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value


class InvariantViolationError(ConfigError):
    """Well-formed input that breaks a configuration invariant."""
    pass


class ThresholdError(InvariantViolationError):
    """Not enough shares (peers + the local node) to reach the threshold."""

    def __init__(self, threshold: int, shares: int):
        super().__init__(
            f"number of peers + 1 ({shares}) must be greater than or equal to threshold ({threshold})"
        )
        self.threshold = threshold
        self.shares = shares


class DuplicateShareIDError(InvariantViolationError):
    """Two or more peers claim the same share ID."""

    def __init__(self, duplicates: List[int]):
        super().__init__(f"found duplicates for peer IDs: {list(duplicates)}")
        self.duplicates = list(duplicates)


class ShareIDConflictError(InvariantViolationError):
    """A peer is configured with the local node's own key share ID."""

    def __init__(self, share_id: int):
        super().__init__(
            f"conflict: local node's key share ID {share_id} matches with another peer "
            "in the config, please make sure you're using the correct share"
        )
        self.share_id = share_id


class NoOpError(ConfigError):
    """The request changes nothing (every element already present)."""
    pass


class PreconditionError(HorcruxError):
    """Home directory in the wrong state for the requested command."""
    pass


class SignStateError(HorcruxError):
    """Signing-state file unreadable or corrupted."""
    pass


class CLIError(HorcruxError):
    """Generic CLI failure wrapper for unexpected errors in CLI code paths."""
    pass


def format_error(e: BaseException) -> str:
    """Return a short, uniform operator-facing message like 'ThresholdError: detail'."""
    name = e.__class__.__name__
    msg = str(e).strip()
    return f"{name}: {msg}" if msg else name


# Keep star-export order deterministic for tests and tooling
__all__ = sorted(__all__)
