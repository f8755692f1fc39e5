#!/usr/bin/env python3
"""CLI subcommand: config, create and edit `<home>/config.yaml`.

    horcrux config init CHAIN_ID CHAIN_NODES [-c -p PEERS -t N -l ADDR --timeout DUR]
    horcrux config nodes add|remove NODES
    horcrux config peers add|remove PEERS
    horcrux config set-chain-id CHAIN_ID
    horcrux config show [--json]
    horcrux config validate
"""

from __future__ import annotations

import argparse
from pathlib import Path

from configs.validate import validate_config_api, validate_config_verbose
from ..engine import ops
from ..errors import ConfigError
from ..io.config import config_to_json, config_to_yaml, read_local_share_id
from ._exit import INVALID, OK
from ._io import eprint_once, print_json, print_text

_NODES_HELP = (
    "comma separated array of chain node addresses i.e.\n"
    "tcp://chain-node-1:1234,tcp://chain-node-2:1234"
)
_PEERS_HELP = (
    "comma separated array of cosigner peers in format tcp://{addr}:{port}|{share-id}\n"
    '(i.e. "tcp://node-1:2222|2,tcp://node-2:2222|3")'
)


def register(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "config",
        help="Commands to configure the horcrux signer",
        description="Commands to configure the horcrux signer",
    )
    sub = p.add_subparsers(dest="config_command", metavar="COMMAND")
    sub.required = True

    # init
    sp = sub.add_parser(
        "init",
        aliases=["i"],
        help="initialize configuration file and home directory if one doesn't already exist",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="initialize configuration file, use flags for cosigner configuration.",
    )
    sp.add_argument("chain_id", metavar="chain-id", help="chain id of the chain to validate")
    sp.add_argument("chain_nodes", metavar="chain-nodes", help=_NODES_HELP)
    sp.add_argument("-c", "--cosigner", action="store_true",
                    help="initialize a cosigner node, requires --peers and --threshold")
    sp.add_argument("-p", "--peers", default="", help=_PEERS_HELP)
    sp.add_argument("-t", "--threshold", type=int, default=0,
                    help="number of signatures required for threshold signature")
    sp.add_argument("-l", "--listen", default=ops.DEFAULT_LISTEN, help="listen address of the signer")
    sp.add_argument("--timeout", default=ops.DEFAULT_TIMEOUT,
                    help="cosigner rpc timeout, a duration string e.g. 1s, 1000ms, 1.5m")
    sp.set_defaults(func=_run_init)

    # nodes add/remove
    nodes = sub.add_parser("nodes", help="Commands to configure the chain nodes")
    nsub = nodes.add_subparsers(dest="nodes_command", metavar="COMMAND")
    nsub.required = True
    sp = nsub.add_parser("add", aliases=["a"], help="add chain node(s) to the configuration")
    sp.add_argument("chain_nodes", metavar="chain-nodes", help=_NODES_HELP)
    sp.set_defaults(func=_run_mutation, op=ops.add_nodes, value_attr="chain_nodes")
    sp = nsub.add_parser("remove", aliases=["r"], help="remove chain node(s) from the configuration")
    sp.add_argument("chain_nodes", metavar="chain-nodes", help=_NODES_HELP)
    sp.set_defaults(func=_run_mutation, op=ops.remove_nodes, value_attr="chain_nodes")

    # peers add/remove
    peers = sub.add_parser("peers", help="Commands to configure the peer nodes")
    psub = peers.add_subparsers(dest="peers_command", metavar="COMMAND")
    psub.required = True
    sp = psub.add_parser("add", aliases=["a"], help="add peer node(s) to the cosigner's configuration")
    sp.add_argument("peers", metavar="peer-nodes", help=_PEERS_HELP)
    sp.add_argument("--force", action="store_true",
                    help="write the peers even if the resulting config fails validation")
    sp.set_defaults(func=_run_mutation, op=ops.add_peers, value_attr="peers")
    sp = psub.add_parser("remove", aliases=["r"], help="remove peer node(s) from the cosigner's configuration")
    sp.add_argument("peers", metavar="peer-nodes",
                    help=_PEERS_HELP + "\nor a comma separated array of share IDs (i.e. \"3,4\")")
    sp.set_defaults(func=_run_mutation, op=ops.remove_peers, value_attr="peers")

    # set-chain-id
    sp = sub.add_parser("set-chain-id", aliases=["id"], help="set the chain ID")
    sp.add_argument("chain_id", metavar="chain-id", help="chain id string i.e. cosmoshub-4")
    sp.set_defaults(func=_run_mutation, op=ops.set_chain_id, value_attr="chain_id")

    # show / validate
    sp = sub.add_parser("show", help="print the stored configuration")
    sp.add_argument("--json", action="store_true", help="JSON output instead of YAML")
    sp.set_defaults(func=_run_show)
    sp = sub.add_parser("validate", help="check the stored configuration")
    sp.set_defaults(func=_run_validate)


def _run_init(ns: argparse.Namespace) -> int:
    ops.init_home(
        ns.home,
        ns.chain_id,
        ns.chain_nodes,
        cosigner=ns.cosigner,
        peers=ns.peers,
        threshold=ns.threshold,
        listen=ns.listen,
        timeout=ns.timeout,
    )
    return OK


def _run_mutation(ns: argparse.Namespace) -> int:
    kwargs = {"force": True} if getattr(ns, "force", False) else {}
    ops.mutate_home(ns.home, ns.op, getattr(ns, ns.value_attr), **kwargs)
    return OK


def _run_show(ns: argparse.Namespace) -> int:
    cfg = ops.load_home(ns.home)
    if ns.json:
        print_json(preencoded=config_to_json(cfg))
    else:
        print_text(config_to_yaml(cfg))
    return OK


def _run_validate(ns: argparse.Namespace) -> int:
    home = Path(ns.home)
    cfg = ops.load_home(home)
    local_id = read_local_share_id(home)
    try:
        _, warnings = validate_config_verbose(cfg, local_share_id=local_id)
    except ConfigError:
        _, errs = validate_config_api(cfg, local_share_id=local_id)
        print_text("CONFIG INVALID\n" + "\n".join(errs))
        return INVALID
    print_text("OK")
    for w in warnings:
        eprint_once(w)
    return OK
