from __future__ import annotations

import json
from pathlib import Path

import pytest

from horcrux.engine import ops
from horcrux.engine.types import ChainNode, CosignerPeer
from horcrux.errors import (
    DuplicateShareIDError,
    InputMalformedError,
    InvariantViolationError,
    NoOpError,
    PreconditionError,
    ShareIDConflictError,
    ThresholdError,
)
from horcrux.io import paths
from horcrux.io.config import load_config

CHAIN_ID = "horcrux-1"


def _nodes(*addrs):
    return [ChainNode(a) for a in addrs]


def _peer(i):
    return CosignerPeer(i, f"tcp://10.168.1.{i}:2222")


# ---- init ------------------------------------------------------------------


def test_init_cosigner_provisions_both_sign_states(cosigner_home: Path):
    cfg = load_config(paths.config_path(cosigner_home))
    assert cfg.chain_id == CHAIN_ID
    assert cfg.home_dir == str(cosigner_home)
    assert cfg.cosigner.threshold == 2
    assert cfg.cosigner.peers == [_peer(2), _peer(3)]
    assert cfg.chain_nodes == _nodes("tcp://10.168.0.1:1234")

    for p in (
        paths.priv_validator_state_path(cosigner_home, CHAIN_ID),
        paths.share_sign_state_path(cosigner_home, CHAIN_ID),
    ):
        data = json.loads(p.read_text("utf-8"))
        assert data["height"] == 0 and data["round"] == 0 and data["step"] == 0
        assert data["signature"] is None
        assert data["signbytes"] is None
        assert data["ephemeral_public"] is None


def test_init_single_signer_provisions_one_sign_state(single_home: Path):
    assert paths.priv_validator_state_path(single_home, CHAIN_ID).exists()
    assert not paths.share_sign_state_path(single_home, CHAIN_ID).exists()
    assert load_config(paths.config_path(single_home)).cosigner is None


def test_init_peer_missing_share_id_writes_nothing(home: Path):
    with pytest.raises(InputMalformedError):
        ops.init_home(
            home,
            CHAIN_ID,
            "tcp://10.168.0.1:1234",
            cosigner=True,
            peers="tcp://10.168.1.2:2222,tcp://10.168.1.3:2222|3",
            threshold=2,
        )
    assert not home.exists()


def test_init_invalid_chain_node_writes_nothing(home: Path):
    with pytest.raises(InputMalformedError):
        ops.init_home(home, CHAIN_ID, "://10.168.0.1:1234")
    assert not home.exists()


def test_init_infeasible_threshold_writes_nothing(home: Path):
    with pytest.raises(ThresholdError):
        ops.init_home(
            home, CHAIN_ID, "tcp://10.168.0.1:1234", cosigner=True, peers="tcp://10.168.1.2:2222|2", threshold=3
        )
    assert not home.exists()


def test_init_refuses_populated_home(cosigner_home: Path):
    before = paths.config_path(cosigner_home).read_bytes()
    with pytest.raises(PreconditionError):
        ops.init_home(cosigner_home, "other-1", "tcp://10.168.0.9:1234")
    assert paths.config_path(cosigner_home).read_bytes() == before


def test_init_accepts_existing_empty_directory(home: Path):
    home.mkdir()
    ops.init_home(home, CHAIN_ID, "tcp://10.168.0.1:1234")
    assert paths.config_path(home).exists()


def test_mutation_without_config(home: Path):
    with pytest.raises(PreconditionError):
        ops.mutate_home(home, ops.add_nodes, "tcp://10.168.0.2:1234")


# ---- nodes -----------------------------------------------------------------

# Order matters: each case starts from the state the previous one left behind.
NODE_CASES = [
    ("add single new node", ops.add_nodes, "tcp://10.168.0.2:1234", None,
     ["tcp://10.168.0.1:1234", "tcp://10.168.0.2:1234"]),
    ("remove single node", ops.remove_nodes, "tcp://10.168.0.2:1234", None,
     ["tcp://10.168.0.1:1234"]),
    ("add multiple new nodes", ops.add_nodes, "tcp://10.168.0.2:1234,tcp://10.168.0.3:1234", None,
     ["tcp://10.168.0.1:1234", "tcp://10.168.0.2:1234", "tcp://10.168.0.3:1234"]),
    ("remove multiple nodes", ops.remove_nodes, "tcp://10.168.0.2:1234,tcp://10.168.0.3:1234", None,
     ["tcp://10.168.0.1:1234"]),
    ("add invalid node", ops.add_nodes, "://10.168.0.3:1234", InputMalformedError,
     ["tcp://10.168.0.1:1234"]),
    ("remove invalid node", ops.remove_nodes, "://10.168.0.3:1234", InputMalformedError,
     ["tcp://10.168.0.1:1234"]),
    ("add existing node", ops.add_nodes, "tcp://10.168.0.1:1234", NoOpError,
     ["tcp://10.168.0.1:1234"]),
    ("remove last node", ops.remove_nodes, "tcp://10.168.0.1:1234", InvariantViolationError,
     ["tcp://10.168.0.1:1234"]),
    ("remove non-existent node", ops.remove_nodes, "tcp://10.168.0.99:1234", None,
     ["tcp://10.168.0.1:1234"]),
    ("add one new and one existing node", ops.add_nodes, "tcp://10.168.0.1:1234,tcp://10.168.0.2:1234", None,
     ["tcp://10.168.0.1:1234", "tcp://10.168.0.2:1234"]),
    ("remove one existing and one non-existent node", ops.remove_nodes,
     "tcp://10.168.0.2:1234,tcp://10.168.0.3:1234", None,
     ["tcp://10.168.0.1:1234"]),
]


def test_nodes_add_and_remove_sequence(cosigner_home: Path):
    for name, op, arg, err, expect in NODE_CASES:
        if err is None:
            ops.mutate_home(cosigner_home, op, arg)
        else:
            with pytest.raises(err):
                ops.mutate_home(cosigner_home, op, arg)
        stored = load_config(paths.config_path(cosigner_home)).chain_nodes
        assert stored == _nodes(*expect), name


def test_add_nodes_is_idempotent():
    cfg = ops.build_config("/tmp/h", CHAIN_ID, "tcp://A")
    once = ops.add_nodes(cfg, "tcp://A,tcp://B")
    assert once.chain_nodes == _nodes("tcp://A", "tcp://B")
    with pytest.raises(NoOpError):
        ops.add_nodes(once, "tcp://A,tcp://B")
    # pure transform: input untouched
    assert cfg.chain_nodes == _nodes("tcp://A")


# ---- peers -----------------------------------------------------------------

PEER_CASES = [
    ("remove single peer", ops.remove_peers, "4", None, [2, 3]),
    ("add single peer", ops.add_peers, "tcp://10.168.1.4:2222|4", None, [2, 3, 4]),
    ("remove multiple peers", ops.remove_peers, "3,4", None, [2]),
    ("add multiple peers", ops.add_peers, "tcp://10.168.1.3:2222|3,tcp://10.168.1.4:2222|4", None, [2, 3, 4]),
    ("remove non-existent peer", ops.remove_peers, "1", None, [2, 3, 4]),
    ("add existing peer", ops.add_peers, "tcp://10.168.1.3:2222|3", NoOpError, [2, 3, 4]),
    ("remove one existing and one non-existent peer", ops.remove_peers, "1,4", None, [2, 3]),
    ("add one new and one existing peer", ops.add_peers,
     "tcp://10.168.1.3:2222|3,tcp://10.168.1.4:2222|4", None, [2, 3, 4]),
    ("remove peer by address", ops.remove_peers, "tcp://10.168.1.4:2222|4", None, [2, 3]),
    ("add peer reusing a share ID", ops.add_peers, "tcp://10.168.1.9:2222|3", DuplicateShareIDError, [2, 3]),
    ("add malformed peer", ops.add_peers, "tcp://10.168.1.4:2222", InputMalformedError, [2, 3]),
    ("remove all peers", ops.remove_peers, "2,3", InvariantViolationError, [2, 3]),
]


def test_peers_add_and_remove_sequence(home: Path):
    ops.init_home(
        home,
        CHAIN_ID,
        "tcp://10.168.0.1:1234",
        cosigner=True,
        peers="tcp://10.168.1.2:2222|2,tcp://10.168.1.3:2222|3,tcp://10.168.1.4:2222|4",
        threshold=2,
    )
    for name, op, arg, err, expect in PEER_CASES:
        if err is None:
            ops.mutate_home(home, op, arg)
        else:
            with pytest.raises(err):
                ops.mutate_home(home, op, arg)
        stored = load_config(paths.config_path(home)).cosigner.peers
        assert stored == [_peer(i) for i in expect], name


def test_remove_peer_below_threshold_is_rejected(home: Path):
    ops.init_home(
        home,
        CHAIN_ID,
        "tcp://10.168.0.1:1234",
        cosigner=True,
        peers="tcp://10.168.1.2:2222|2,tcp://10.168.1.3:2222|3,tcp://10.168.1.4:2222|4",
        threshold=3,
    )
    # 3-of-4: two shares left after removing 3 and 4
    with pytest.raises(ThresholdError):
        ops.mutate_home(home, ops.remove_peers, "3,4")
    ops.mutate_home(home, ops.remove_peers, "4")
    assert load_config(paths.config_path(home)).cosigner.peers == [_peer(2), _peer(3)]


def test_add_peers_force_commits_rejected_candidate(cosigner_home: Path, caplog):
    with pytest.raises(DuplicateShareIDError):
        ops.mutate_home(cosigner_home, ops.add_peers, "tcp://10.168.1.9:2222|2")
    with caplog.at_level("WARNING", logger="horcrux.engine.ops"):
        ops.mutate_home(cosigner_home, ops.add_peers, "tcp://10.168.1.9:2222|2", force=True)
    peers = load_config(paths.config_path(cosigner_home)).cosigner.peers
    assert peers[-1] == CosignerPeer(2, "tcp://10.168.1.9:2222")
    assert "--force" in caplog.text


def test_peers_on_single_signer_are_rejected(single_home: Path):
    with pytest.raises(InvariantViolationError):
        ops.mutate_home(single_home, ops.add_peers, "tcp://10.168.1.2:2222|2")


def test_local_share_conflict_from_share_file(cosigner_home: Path):
    paths.share_path(cosigner_home).write_text(json.dumps({"id": 1}), encoding="utf-8")
    with pytest.raises(ShareIDConflictError):
        ops.mutate_home(cosigner_home, ops.add_peers, "tcp://10.168.1.1:2222|1")
    ops.mutate_home(cosigner_home, ops.add_peers, "tcp://10.168.1.4:2222|4")


# ---- chain id --------------------------------------------------------------


def test_set_chain_id_provisions_new_sign_states(cosigner_home: Path):
    ops.mutate_home(cosigner_home, ops.set_chain_id, "horcrux-2")
    assert load_config(paths.config_path(cosigner_home)).chain_id == "horcrux-2"
    assert paths.priv_validator_state_path(cosigner_home, "horcrux-2").exists()
    assert paths.share_sign_state_path(cosigner_home, "horcrux-2").exists()
    # the old chain's state is left alone
    assert paths.priv_validator_state_path(cosigner_home, CHAIN_ID).exists()


def test_set_empty_chain_id_is_rejected(cosigner_home: Path):
    with pytest.raises(InvariantViolationError):
        ops.mutate_home(cosigner_home, ops.set_chain_id, "")
    assert load_config(paths.config_path(cosigner_home)).chain_id == CHAIN_ID


@pytest.mark.parametrize("chain_id", ["../../escaped", "a/b", "..\\escaped", ".."])
def test_set_chain_id_cannot_escape_state_dir(cosigner_home: Path, chain_id: str):
    before = sorted(p for p in cosigner_home.parent.rglob("*"))
    with pytest.raises(InvariantViolationError, match="chain-id"):
        ops.mutate_home(cosigner_home, ops.set_chain_id, chain_id)
    assert sorted(p for p in cosigner_home.parent.rglob("*")) == before
    assert load_config(paths.config_path(cosigner_home)).chain_id == CHAIN_ID


def test_init_with_path_like_chain_id_writes_nothing(home: Path):
    with pytest.raises(InvariantViolationError):
        ops.init_home(home, "../escaped", "tcp://10.168.0.1:1234")
    assert not home.exists()
    assert not (home.parent / "escaped_priv_validator_state.json").exists()


def test_exports_for_signing_runtime(cosigner_home: Path):
    cfg = load_config(paths.config_path(cosigner_home))
    assert [n.address for n in cfg.nodes()] == ["tcp://10.168.0.1:1234"]
    assert [(p.id, p.address) for p in cfg.cosigner_peers()] == [
        (2, "tcp://10.168.1.2:2222"),
        (3, "tcp://10.168.1.3:2222"),
    ]
