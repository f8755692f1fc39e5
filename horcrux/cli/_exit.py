"""Process exit codes shared by all subcommands."""

OK = 0
# The request was understood but the resulting configuration was rejected
# (invariant violated, or nothing to do).
INVALID = 1
# Bad usage, malformed input, wrong home-directory state, or I/O failure.
USER_ERR = 2

__all__ = ["OK", "INVALID", "USER_ERR"]
