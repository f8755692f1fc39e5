from __future__ import annotations

"""Address parser: CLI strings -> typed node/peer descriptors.

Pure functions, no I/O. Order and duplicates in the input are preserved; dropping
already-known entries is the reconciler's job.

    chain nodes:  "tcp://node-1:1234,tcp://node-2:1234"
    peers:        "tcp://peer-1:2222|2,tcp://peer-2:2222|3"
"""

import re
from typing import List
from urllib.parse import urlsplit

from ..errors import InputMalformedError
from .types import ChainNode, CosignerPeer

__all__ = [
    "ITEM_SEP",
    "PEER_SEP",
    "check_uri",
    "is_valid_uri",
    "parse_duration",
    "chain_nodes_from_arg",
    "peers_from_arg",
    "share_ids_from_arg",
    "looks_like_share_ids",
]

ITEM_SEP = ","
PEER_SEP = "|"

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_CTL_RE = re.compile(r"[\x00-\x1f\x7f]")

# Nanoseconds per unit, as accepted by Go-style duration strings ("1.5s", "1h30m").
_DURATION_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # U+00B5 micro sign
    "μs": 1_000,  # U+03BC greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_DURATION_PART_RE = re.compile(r"([0-9]*(?:\.[0-9]*)?)(ns|us|µs|μs|ms|s|m|h)")


# ------------------------------
# Syntax checks
# ------------------------------

def check_uri(addr: str, *, strict: bool = False) -> None:
    """Raise InputMalformedError unless *addr* parses as a URI.

    Non-strict mode is a syntactic check only: it rejects control characters, a
    missing scheme before "://" (e.g. "://host:1234"), an invalid scheme and a
    non-numeric/out-of-range port, but accepts scheme-less strings like "host:1".
    Strict mode additionally requires a scheme and a host.
    """
    if not isinstance(addr, str):
        raise InputMalformedError(f"address must be a string, got {type(addr).__name__}", value=addr)
    if _CTL_RE.search(addr):
        raise InputMalformedError(f"invalid control character in address {addr!r}", value=addr)
    if addr.startswith(":"):
        raise InputMalformedError(f"missing protocol scheme in address {addr!r}", value=addr)
    if "://" in addr:
        scheme = addr.split("://", 1)[0]
        if not _SCHEME_RE.match(scheme):
            raise InputMalformedError(f"invalid protocol scheme {scheme!r} in address {addr!r}", value=addr)
    try:
        parts = urlsplit(addr)
        parts.port  # raises ValueError on a non-numeric or out-of-range port
    except ValueError as e:
        raise InputMalformedError(f"failed to parse address {addr!r}: {e}", value=addr) from e
    if strict:
        if not parts.scheme:
            raise InputMalformedError(f"missing protocol scheme in address {addr!r}", value=addr)
        if not parts.hostname:
            raise InputMalformedError(f"missing host in address {addr!r}", value=addr)


def is_valid_uri(addr: str, *, strict: bool = False) -> bool:
    try:
        check_uri(addr, strict=strict)
    except InputMalformedError:
        return False
    return True


def parse_duration(s: str) -> float:
    """Parse a Go-style duration string ("1500ms", "1s", "1.5m", "1h2m") into seconds."""
    if not isinstance(s, str) or not s:
        raise InputMalformedError(f"invalid duration {s!r}", value=s)
    body = s
    sign = 1
    if body[0] in "+-":
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if body == "0":
        return 0.0
    if not body:
        raise InputMalformedError(f"invalid duration {s!r}", value=s)

    total_ns = 0.0
    pos = 0
    while pos < len(body):
        m = _DURATION_PART_RE.match(body, pos)
        if m is None or m.group(1) in ("", "."):
            raise InputMalformedError(f"invalid duration {s!r}", value=s)
        total_ns += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    return sign * total_ns / 1_000_000_000


# ------------------------------
# Descriptor parsing
# ------------------------------

def _parse_share_id(raw: str, item: str) -> int:
    if not _INT_RE.match(raw):
        raise InputMalformedError(f"invalid share ID {raw!r} in peer string {item!r}", field="share-id", value=raw)
    share_id = int(raw)
    if share_id <= 0:
        raise InputMalformedError(f"share ID must be positive, got {share_id} in {item!r}", field="share-id", value=raw)
    return share_id


def chain_nodes_from_arg(arg: str) -> List[ChainNode]:
    """Parse a comma-separated list of chain node URIs."""
    out: List[ChainNode] = []
    for i, item in enumerate(arg.split(ITEM_SEP)):
        try:
            check_uri(item, strict=True)
        except InputMalformedError as e:
            raise InputMalformedError(f"chain node #{i + 1}: {e}", field="chain-nodes", value=item) from e
        out.append(ChainNode(priv_val_addr=item))
    return out


def peers_from_arg(arg: str) -> List[CosignerPeer]:
    """Parse a comma-separated list of `uri|share-id` pairs."""
    out: List[CosignerPeer] = []
    for i, item in enumerate(arg.split(ITEM_SEP)):
        ps = item.split(PEER_SEP)
        if len(ps) != 2:
            raise InputMalformedError(
                f"peer #{i + 1}: invalid peer string {item!r}, expected {{addr}}{PEER_SEP}{{share-id}}",
                field="peers",
                value=item,
            )
        addr, raw_id = ps
        share_id = _parse_share_id(raw_id, item)
        try:
            check_uri(addr, strict=True)
        except InputMalformedError as e:
            raise InputMalformedError(f"peer #{i + 1}: {e}", field="peers", value=item) from e
        out.append(CosignerPeer(share_id=share_id, p2p_addr=addr))
    return out


def looks_like_share_ids(arg: str) -> bool:
    """True when every comma-separated element is a bare integer (e.g. "3,4")."""
    return all(_INT_RE.match(x) for x in arg.split(ITEM_SEP))


def share_ids_from_arg(arg: str) -> List[int]:
    return [_parse_share_id(x, arg) for x in arg.split(ITEM_SEP)]
