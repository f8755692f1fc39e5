from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# ---- Core datatypes ----
#
# Equality is structural and byte-exact on address strings: `tcp://h:80` and
# `tcp://h:80/` are different nodes.


@dataclass(frozen=True)
class ChainNode:
    priv_val_addr: str

    def to_dict(self) -> Dict[str, Any]:
        return {"priv-val-addr": self.priv_val_addr}


@dataclass(frozen=True)
class CosignerPeer:
    share_id: int
    p2p_addr: str

    def to_dict(self) -> Dict[str, Any]:
        return {"share-id": self.share_id, "p2p-addr": self.p2p_addr}


@dataclass
class CosignerConfig:
    threshold: int
    p2p_listen: str
    peers: List[CosignerPeer] = field(default_factory=list)
    timeout: str = "1500ms"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "threshold": self.threshold,
            "p2p-listen": self.p2p_listen,
            "peers": [p.to_dict() for p in self.peers],
            "rpc-timeout": self.timeout,
        }


# ---- Descriptors handed to the signing runtime ----


@dataclass(frozen=True)
class NodeConfig:
    address: str


@dataclass(frozen=True)
class CosignerDescriptor:
    id: int
    address: str


@dataclass
class Config:
    """Root configuration record persisted as `<home>/config.yaml`.

    Single-signer mode when `cosigner` is None, cosigner mode otherwise.
    """

    home_dir: str
    chain_id: str
    cosigner: Optional[CosignerConfig] = None
    chain_nodes: List[ChainNode] = field(default_factory=list)

    @property
    def is_cosigner(self) -> bool:
        return self.cosigner is not None

    def nodes(self) -> List[NodeConfig]:
        return [NodeConfig(address=n.priv_val_addr) for n in self.chain_nodes]

    def cosigner_peers(self) -> List[CosignerDescriptor]:
        if self.cosigner is None:
            return []
        return [CosignerDescriptor(id=p.share_id, address=p.p2p_addr) for p in self.cosigner.peers]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"home-dir": self.home_dir, "chain-id": self.chain_id}
        if self.cosigner is not None:
            out["cosigner"] = self.cosigner.to_dict()
        if self.chain_nodes:
            out["chain-nodes"] = [n.to_dict() for n in self.chain_nodes]
        return out


__all__ = [
    "ChainNode",
    "CosignerPeer",
    "CosignerConfig",
    "NodeConfig",
    "CosignerDescriptor",
    "Config",
]
