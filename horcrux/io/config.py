from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List
import json

import yaml

from ..engine.types import ChainNode, Config, CosignerConfig, CosignerPeer
from ..errors import InputMalformedError
from . import paths
from .atomic import atomic_write_text

__all__ = [
    "config_from_dict",
    "config_from_yaml",
    "config_from_json",
    "config_to_yaml",
    "config_to_json",
    "load_config",
    "write_config",
    "read_local_share_id",
]


# ---- small helpers --------------------------------------------------------

def _dict(obj: Any, where: str) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        raise InputMalformedError(f"{where} must be a mapping, got {type(obj).__name__}", field=where, value=obj)
    return obj


def _list(obj: Any, where: str) -> List[Any]:
    if obj is None:
        return []
    if not isinstance(obj, list):
        raise InputMalformedError(f"{where} must be a list, got {type(obj).__name__}", field=where, value=obj)
    return obj


def _str(obj: Any, where: str) -> str:
    # YAML reads an unquoted `chain-id: 1234` as an int; take scalars as written
    if obj is None:
        return ""
    if isinstance(obj, (int, float)) and not isinstance(obj, bool):
        return str(obj)
    if not isinstance(obj, str):
        raise InputMalformedError(f"{where} must be a string, got {obj!r}", field=where, value=obj)
    return obj


def _int(obj: Any, where: str) -> int:
    # bool is an int subclass; `threshold: true` is a typo, not a number
    if obj is None:
        return 0
    if isinstance(obj, bool) or not isinstance(obj, int):
        raise InputMalformedError(f"{where} must be an integer, got {obj!r}", field=where, value=obj)
    return obj


# ---- decoding -------------------------------------------------------------

def config_from_dict(data: Dict[str, Any]) -> Config:
    """Build a Config from its serialized form (keys as written in config.yaml).

    Only shapes and types are checked here; invariants belong to configs.validate.
    """
    data = _dict(data, "config")
    cosigner = None
    if data.get("cosigner") is not None:
        raw = _dict(data["cosigner"], "cosigner")
        peers = []
        for i, p in enumerate(_list(raw.get("peers"), "cosigner.peers")):
            p = _dict(p, f"cosigner.peers[{i}]")
            peers.append(
                CosignerPeer(
                    share_id=_int(p.get("share-id"), f"cosigner.peers[{i}].share-id"),
                    p2p_addr=_str(p.get("p2p-addr"), f"cosigner.peers[{i}].p2p-addr"),
                )
            )
        cosigner = CosignerConfig(
            threshold=_int(raw.get("threshold"), "cosigner.threshold"),
            p2p_listen=_str(raw.get("p2p-listen"), "cosigner.p2p-listen"),
            peers=peers,
            timeout=_str(raw.get("rpc-timeout"), "cosigner.rpc-timeout"),
        )
    nodes = [
        ChainNode(priv_val_addr=_str(_dict(n, f"chain-nodes[{i}]").get("priv-val-addr"), f"chain-nodes[{i}].priv-val-addr"))
        for i, n in enumerate(_list(data.get("chain-nodes"), "chain-nodes"))
    ]
    return Config(
        home_dir=_str(data.get("home-dir"), "home-dir"),
        chain_id=_str(data.get("chain-id"), "chain-id"),
        cosigner=cosigner,
        chain_nodes=nodes,
    )


def config_from_yaml(text: str | bytes) -> Config:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InputMalformedError(f"failed to parse config YAML: {e}") from e
    return config_from_dict(data or {})


def config_from_json(text: str | bytes) -> Config:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InputMalformedError(f"failed to parse config JSON: {e}") from e
    return config_from_dict(data)


# ---- encoding -------------------------------------------------------------

def config_to_yaml(cfg: Config) -> str:
    return yaml.safe_dump(cfg.to_dict(), sort_keys=False, default_flow_style=False)


def config_to_json(cfg: Config, *, indent: int | None = 2) -> str:
    return json.dumps(cfg.to_dict(), indent=indent)


# ---- files ----------------------------------------------------------------

def load_config(path: Path | str) -> Config:
    """Load a config file; `.json` files use the JSON form, anything else YAML.

    FileNotFoundError propagates so callers can tell "absent" from "malformed".
    """
    p = Path(path)
    with open(p, "r", encoding="utf-8") as f:
        text = f.read()
    if p.suffix == ".json":
        return config_from_json(text)
    return config_from_yaml(text)


def write_config(path: Path | str, cfg: Config) -> None:
    """Atomically replace the config file at *path*."""
    p = Path(path)
    text = config_to_json(cfg) + "\n" if p.suffix == ".json" else config_to_yaml(cfg)
    atomic_write_text(p, text)


def read_local_share_id(home: Path | str) -> int | None:
    """Share ID of the local key share (`<home>/share.json`), or None if absent."""
    p = paths.share_path(home)
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return None
    except json.JSONDecodeError as e:
        raise InputMalformedError(f"failed to parse key share {p}: {e}") from e
    share_id = _dict(data, "share").get("id")
    return None if share_id is None else _int(share_id, "share.id")
