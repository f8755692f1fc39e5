"""
Configuration validation for the horcrux signer.

Public API:
    validate_config(cfg) -> Config
    validate_config_verbose(cfg) -> (Config, warnings)
    validate_config_api(cfg) -> (ok, errors)
    validate_cosigner_peers(peers, local_share_id=None) -> None

- Raises a typed ConfigError subclass for the first violated check, in this order:
  chain-id, chain nodes, cosigner section (threshold, rpc-timeout, p2p-listen,
  share IDs, peer addresses).
- Duplicate share IDs are collected in full before failing.
- The input is never mutated.

Address checks are syntactic only (see horcrux.engine.parse.check_uri): a stored
address such as "host:1234" without a scheme passes.
"""
from __future__ import annotations
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from horcrux.engine.parse import check_uri, parse_duration
from horcrux.engine.types import Config, CosignerPeer
from horcrux.errors import (
    ConfigError,
    DuplicateShareIDError,
    InputMalformedError,
    InvariantViolationError,
    ShareIDConflictError,
    ThresholdError,
)

__all__ = [
    "validate_config",
    "validate_config_verbose",
    "validate_config_api",
    "validate_cosigner_peers",
    "find_duplicate_share_ids",
]

_UNSAFE_CHAIN_ID = re.compile(r"[/\\\x00-\x1f\x7f]")


# ------------------------------
# Utilities
# ------------------------------

def _ensure_config(cfg: Union[Config, Dict[str, Any]]) -> Config:
    if isinstance(cfg, Config):
        return cfg
    if isinstance(cfg, dict):
        from horcrux.io.config import config_from_dict

        return config_from_dict(cfg)
    raise ConfigError(f"expected a Config or mapping, got {type(cfg).__name__}")


def find_duplicate_share_ids(peers: Sequence[CosignerPeer]) -> List[int]:
    """Share IDs seen more than once, in order of their first repeat."""
    encountered: Dict[int, str] = {}
    duplicates: List[int] = []
    for peer in peers:
        if peer.share_id not in encountered:
            encountered[peer.share_id] = peer.p2p_addr
        elif peer.share_id not in duplicates:
            duplicates.append(peer.share_id)
    return duplicates


# ------------------------------
# Checks
# ------------------------------

def _check_chain_id(cfg: Config) -> None:
    if not cfg.chain_id:
        raise InvariantViolationError("chain-id cannot be empty")
    # the chain id is a file name prefix under <home>/state/
    if _UNSAFE_CHAIN_ID.search(cfg.chain_id) or ".." in cfg.chain_id:
        raise InvariantViolationError(
            f"chain-id {cfg.chain_id!r} must not contain path separators, '..' or control characters"
        )


def _check_chain_nodes(cfg: Config) -> None:
    if not cfg.chain_nodes:
        raise InvariantViolationError("need to have a node configured to sign for")
    for n in cfg.chain_nodes:
        try:
            check_uri(n.priv_val_addr)
        except InputMalformedError as e:
            raise InputMalformedError(f"chain-nodes: {e}", field="chain-nodes", value=n.priv_val_addr) from e


def _check_mode(cfg: Config, expect_cosigner: Optional[bool]) -> None:
    if expect_cosigner is True and cfg.cosigner is None:
        raise InvariantViolationError("cosigner config can't be empty")
    if expect_cosigner is False and cfg.cosigner is not None:
        raise InvariantViolationError("single-signer config must not carry a cosigner section")


def _check_threshold(cfg: Config) -> None:
    cs = cfg.cosigner
    shares = len(cs.peers) + 1
    if shares < cs.threshold:
        raise ThresholdError(cs.threshold, shares)


def _check_timeout(cfg: Config) -> None:
    timeout = cfg.cosigner.timeout
    try:
        parse_duration(timeout)
    except InputMalformedError as e:
        raise InputMalformedError(
            f"{timeout} is not a valid duration string for --timeout", field="rpc-timeout", value=timeout
        ) from e


def _check_listen(cfg: Config) -> None:
    listen = cfg.cosigner.p2p_listen
    try:
        check_uri(listen)
    except InputMalformedError as e:
        raise InputMalformedError(
            f"failed to parse p2p listen address: {e}", field="p2p-listen", value=listen
        ) from e


def validate_cosigner_peers(peers: Sequence[CosignerPeer], local_share_id: Optional[int] = None) -> None:
    duplicates = find_duplicate_share_ids(peers)
    if duplicates:
        raise DuplicateShareIDError(duplicates)
    if local_share_id is not None:
        for peer in peers:
            if peer.share_id == local_share_id:
                raise ShareIDConflictError(local_share_id)
    for peer in peers:
        try:
            check_uri(peer.p2p_addr)
        except InputMalformedError as e:
            raise InputMalformedError(f"peers: {e}", field="peers", value=peer.p2p_addr) from e


def _checks(cfg: Config, expect_cosigner: Optional[bool], local_share_id: Optional[int]):
    yield lambda: _check_chain_id(cfg)
    yield lambda: _check_chain_nodes(cfg)
    yield lambda: _check_mode(cfg, expect_cosigner)
    if cfg.cosigner is not None:
        yield lambda: _check_threshold(cfg)
        yield lambda: _check_timeout(cfg)
        yield lambda: _check_listen(cfg)
        yield lambda: validate_cosigner_peers(cfg.cosigner.peers, local_share_id)


# ------------------------------
# Public API
# ------------------------------

def validate_config(
    cfg: Union[Config, Dict[str, Any]],
    *,
    expect_cosigner: Optional[bool] = None,
    local_share_id: Optional[int] = None,
) -> Config:
    """Validate *cfg* and return it unchanged; raise the first violation.

    `expect_cosigner` pins the mode (True: a cosigner section is required,
    False: forbidden). `local_share_id` enables the check that no peer reuses the
    local node's key share ID.
    """
    c = _ensure_config(cfg)
    for check in _checks(c, expect_cosigner, local_share_id):
        check()
    return c


def validate_config_verbose(
    cfg: Union[Config, Dict[str, Any]], **kwargs: Any
) -> Tuple[Config, List[str]]:
    """
    Validate configuration, returning (cfg, warnings).

    Warnings never block a config; they flag setups that are legal but unusual:
    - threshold below 1,
    - threshold that is not a strict majority of the shares,
    - the same chain node or peer address listed twice.
    """
    c = validate_config(cfg, **kwargs)

    warnings: List[str] = []
    seen_nodes = set()
    for n in c.chain_nodes:
        if n.priv_val_addr in seen_nodes:
            warnings.append(f"W[chain-nodes]: {n.priv_val_addr} is listed more than once")
        seen_nodes.add(n.priv_val_addr)
    if c.cosigner is not None:
        shares = len(c.cosigner.peers) + 1
        t = c.cosigner.threshold
        if t < 1:
            warnings.append(f"W[cosigner.threshold]: threshold {t} < 1; no signature share is required")
        elif 2 * t <= shares:
            warnings.append(
                f"W[cosigner.threshold]: threshold {t} is not a majority of {shares} shares; "
                "disjoint signer sets could both reach it"
            )
        seen_addrs = set()
        for p in c.cosigner.peers:
            if p.p2p_addr in seen_addrs:
                warnings.append(f"W[cosigner.peers]: {p.p2p_addr} is listed more than once")
            seen_addrs.add(p.p2p_addr)
    return c, warnings


def validate_config_api(cfg: Union[Config, Dict[str, Any]], **kwargs: Any) -> Tuple[bool, List[str]]:
    """Stable, test-friendly API.

    Runs every check instead of stopping at the first, and returns
    (ok, ["ErrorClass: message", ...]). Does not raise on invalid configs.
    """
    from horcrux.errors import format_error

    try:
        c = _ensure_config(cfg)
    except ConfigError as e:
        return False, [format_error(e)]
    errs: List[str] = []
    for check in _checks(c, kwargs.get("expect_cosigner"), kwargs.get("local_share_id")):
        try:
            check()
        except ConfigError as e:
            errs.append(format_error(e))
    return (not errs), errs
