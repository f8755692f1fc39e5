from __future__ import annotations

"""Configuration lifecycle: absent -> initialized -> mutated.

Two layers:
- pure transforms (`build_config`, `add_nodes`, `remove_nodes`, `add_peers`,
  `remove_peers`, `set_chain_id`) take a Config and return a new, validated one;
  the input is never modified.
- home-directory commands (`init_home`, `mutate_home`) load, apply one
  transform, then write. Nothing touches disk until the candidate has passed
  validation, and the config file is written last.

There is no locking: operators must not run two edits, or an edit and a signer
config reload, at the same time.
"""

from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, List, Optional
import logging

from configs.validate import validate_config
from ..errors import ConfigError, InvariantViolationError, NoOpError, PreconditionError
from ..io import paths
from ..io.config import load_config, read_local_share_id, write_config
from .parse import chain_nodes_from_arg, looks_like_share_ids, peers_from_arg, share_ids_from_arg
from .reconcile import diff_set
from .signstate import load_or_create_sign_state
from .types import Config, CosignerConfig

__all__ = [
    "DEFAULT_LISTEN",
    "DEFAULT_TIMEOUT",
    "build_config",
    "add_nodes",
    "remove_nodes",
    "add_peers",
    "remove_peers",
    "set_chain_id",
    "provision_sign_states",
    "init_home",
    "load_home",
    "mutate_home",
]

logger = logging.getLogger(__name__)

DEFAULT_LISTEN = "tcp://0.0.0.0:2222"
DEFAULT_TIMEOUT = "1500ms"


# ---- pure transforms ------------------------------------------------------

def build_config(
    home: Path | str,
    chain_id: str,
    chain_nodes: str,
    *,
    cosigner: bool = False,
    peers: str = "",
    threshold: int = 0,
    listen: str = DEFAULT_LISTEN,
    timeout: str = DEFAULT_TIMEOUT,
) -> Config:
    """Assemble and validate a fresh Config from CLI-shaped arguments."""
    nodes = chain_nodes_from_arg(chain_nodes)
    cs = None
    if cosigner:
        cs = CosignerConfig(
            threshold=threshold,
            p2p_listen=listen,
            peers=peers_from_arg(peers),
            timeout=timeout,
        )
    cfg = Config(home_dir=str(home), chain_id=chain_id, cosigner=cs, chain_nodes=nodes)
    return validate_config(cfg, expect_cosigner=cosigner)


def add_nodes(cfg: Config, arg: str, *, local_share_id: Optional[int] = None) -> Config:
    new = diff_set(cfg.chain_nodes, chain_nodes_from_arg(arg))
    if not new:
        raise NoOpError("no new chain nodes specified in args")
    out = replace(cfg, chain_nodes=[*cfg.chain_nodes, *new])
    return validate_config(out, local_share_id=local_share_id)


def remove_nodes(cfg: Config, arg: str, *, local_share_id: Optional[int] = None) -> Config:
    survivors = diff_set(chain_nodes_from_arg(arg), cfg.chain_nodes)
    if not survivors:
        raise InvariantViolationError("cannot remove all chain nodes from config, please leave at least one")
    out = replace(cfg, chain_nodes=survivors)
    return validate_config(out, local_share_id=local_share_id)


def _require_cosigner(cfg: Config) -> CosignerConfig:
    if cfg.cosigner is None:
        raise InvariantViolationError("peers can only be configured on a cosigner node")
    return cfg.cosigner


def add_peers(
    cfg: Config, arg: str, *, force: bool = False, local_share_id: Optional[int] = None
) -> Config:
    """Append the requested peers that are not already configured.

    The whole candidate is validated before it is returned. With `force`, a
    rejected candidate is logged and returned anyway; malformed input still fails.
    """
    cs = _require_cosigner(cfg)
    new = diff_set(cs.peers, peers_from_arg(arg))
    if not new:
        raise NoOpError("no new peer nodes specified in args")
    out = replace(cfg, cosigner=replace(cs, peers=[*cs.peers, *new]))
    try:
        return validate_config(out, local_share_id=local_share_id)
    except ConfigError as e:
        if not force:
            raise
        logger.warning("committing peers despite validation failure (--force): %s", e)
        return out


def remove_peers(cfg: Config, arg: str, *, local_share_id: Optional[int] = None) -> Config:
    """Drop the requested peers; *arg* is either `uri|id,...` or bare share IDs (`3,4`)."""
    cs = _require_cosigner(cfg)
    if looks_like_share_ids(arg):
        ids = set(share_ids_from_arg(arg))
        requested = [p for p in cs.peers if p.share_id in ids]
    else:
        requested = peers_from_arg(arg)
    survivors = diff_set(requested, cs.peers)
    if not survivors:
        raise InvariantViolationError("cannot remove all peer nodes from config, please leave at least one")
    out = replace(cfg, cosigner=replace(cs, peers=survivors))
    return validate_config(out, local_share_id=local_share_id)


def set_chain_id(cfg: Config, chain_id: str, *, local_share_id: Optional[int] = None) -> Config:
    return validate_config(replace(cfg, chain_id=chain_id), local_share_id=local_share_id)


# ---- home-directory commands ----------------------------------------------

def provision_sign_states(home: Path | str, cfg: Config) -> List[Path]:
    """Create-or-load the sign-state files this config needs; returns their paths."""
    out = [paths.priv_validator_state_path(home, cfg.chain_id)]
    if cfg.is_cosigner:
        out.append(paths.share_sign_state_path(home, cfg.chain_id))
    for p in out:
        load_or_create_sign_state(p)
    return out


def init_home(home: Path | str, chain_id: str, chain_nodes: str, **kwargs: Any) -> Config:
    """absent -> initialized. Refuses to touch a home directory that is not empty."""
    home = Path(home)
    if paths.is_populated(home):
        raise PreconditionError(
            f"{home} is not empty, check for existing configuration and clear path before trying again"
        )
    cfg = build_config(home, chain_id, chain_nodes, **kwargs)
    paths.state_dir(home).mkdir(parents=True, exist_ok=True)
    provision_sign_states(home, cfg)
    write_config(paths.config_path(home), cfg)
    logger.info("initialized %s config at %s", "cosigner" if cfg.is_cosigner else "single-signer", home)
    return cfg


def load_home(home: Path | str) -> Config:
    p = paths.config_path(home)
    try:
        return load_config(p)
    except FileNotFoundError:
        raise PreconditionError(f"no configuration found at {p}, run `horcrux config init` first") from None


def mutate_home(home: Path | str, op: Callable[..., Config], *args: Any, **kwargs: Any) -> Config:
    """Apply one transform to the config stored under *home* and persist it.

    `op` is called as `op(cfg, *args, local_share_id=..., **kwargs)`; the local
    share ID comes from `<home>/share.json` when present.
    """
    cfg = load_home(home)
    out = op(cfg, *args, local_share_id=read_local_share_id(home), **kwargs)
    provision_sign_states(home, out)
    write_config(paths.config_path(home), out)
    logger.info("%s: updated %s", op.__name__, paths.config_path(home))
    return out
