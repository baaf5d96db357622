# MIT License
# Copyright (c) 2025 Hashborn

import argparse
import sys
import json
import requests
import os
import time
from .keystore import KeyStore
from ..protocol.types.delegation import SignedDelegation
from ..protocol.crypto.addresses import is_valid_address
from ..protocol.config.params import get_network

DEFAULT_NODE = "http://localhost:8000"
DEFAULT_VALIDITY_SEC = 3600

def get_node_url(args):
    return args.node or os.environ.get("VOTECHAIN_NODE", DEFAULT_NODE)

def get_keystore(args) -> KeyStore:
    config = get_network(args.network)
    if args.keystore:
        return KeyStore(args.keystore, prefix=config.bech32_prefix_acc)
    return KeyStore(prefix=config.bech32_prefix_acc)

def _get(url: str, path: str) -> dict:
    try:
        resp = requests.get(f"{url}{path}")
    except requests.RequestException as e:
        print(f"Connection error: {e}")
        sys.exit(1)
    if resp.status_code != 200:
        print(f"Error: {resp.text}")
        sys.exit(1)
    return resp.json()

# --- Keys Commands ---
def cmd_keys_add(args):
    ks = get_keystore(args)
    try:
        key = ks.create_key(args.name)
        print(f"Key '{args.name}' created.")
        print(f"Address: {key['address']}")
        print("Important: Private key saved unencrypted. Do not share!")
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

def cmd_keys_import(args):
    ks = get_keystore(args)
    try:
        key = ks.import_key(args.name, args.private_key)
        print(f"Key '{args.name}' imported.")
        print(f"Address: {key['address']}")
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

def cmd_keys_list(args):
    keys = get_keystore(args).list_keys()
    if not keys:
        print("No keys found.")
        return

    print(f"{'Name':<15} {'Address':<45}")
    print("-" * 60)
    for k in keys:
        print(f"{k['name']:<15} {k['address']:<45}")

def cmd_keys_show(args):
    key = get_keystore(args).get_key(args.name)
    if not key:
        print(f"Key '{args.name}' not found.")
        sys.exit(1)
    print(json.dumps({k: v for k, v in key.items() if k != 'private_key'}, indent=2))

# --- Query Commands ---
def cmd_query_status(args):
    print(json.dumps(_get(get_node_url(args), "/status"), indent=2))

def cmd_query_weight(args):
    url = get_node_url(args)
    if args.at is not None:
        data = _get(url, f"/weight/{args.address}/at/{args.at}")
        print(f"Weight at {data['time_index']}: {data['weight']}")
    else:
        data = _get(url, f"/weight/{args.address}")
        print(f"Weight: {data['weight']} (height {data['height']})")

def cmd_query_delegate(args):
    data = _get(get_node_url(args), f"/delegate/{args.address}")
    print(f"Delegate: {data['delegate']}")

def cmd_query_sequence(args):
    data = _get(get_node_url(args), f"/sequence/{args.address}")
    print(f"Sequence: {data['sequence']}")

def cmd_query_checkpoints(args):
    data = _get(get_node_url(args), f"/checkpoints/{args.address}")
    print(f"{'Time-index':<12} {'Weight'}")
    print("-" * 40)
    for cp in data['checkpoints']:
        print(f"{cp['time_index']:<12} {cp['weight']}")

# --- Delegation Commands ---
def build_signed_delegation(args, nonce: int) -> SignedDelegation:
    config = get_network(args.network)
    if not is_valid_address(args.delegatee, config.bech32_prefix_acc):
        print(f"Error: invalid delegatee address {args.delegatee}")
        sys.exit(1)

    expiry = args.expiry if args.expiry is not None else int(time.time()) + DEFAULT_VALIDITY_SEC
    try:
        priv = get_keystore(args).private_key(args.from_name)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    delegation = SignedDelegation(delegatee=args.delegatee, nonce=nonce, expiry=expiry)
    delegation.sign(priv, config)
    return delegation

def cmd_sign_delegation(args):
    """Offline: no node is contacted, so the sequence number must be supplied."""
    delegation = build_signed_delegation(args, args.nonce)
    print(delegation.model_dump_json(indent=2))

def cmd_submit_delegation(args):
    url = get_node_url(args)
    if args.file:
        with open(args.file, "r") as f:
            delegation = SignedDelegation.model_validate_json(f.read())
    else:
        if not args.from_name or not args.delegatee:
            print("Error: either --file or --from and --delegatee are required")
            sys.exit(1)
        key = get_keystore(args).get_key(args.from_name)
        if not key:
            print(f"Key '{args.from_name}' not found.")
            sys.exit(1)
        nonce = args.nonce
        if nonce is None:
            nonce = _get(url, f"/sequence/{key['address']}")['sequence']
        delegation = build_signed_delegation(args, nonce)

    try:
        resp = requests.post(f"{url}/delegate/signed", json=delegation.model_dump())
    except requests.RequestException as e:
        print(f"Connection error: {e}")
        sys.exit(1)
    if resp.status_code != 200:
        print(f"Rejected: {resp.text}")
        sys.exit(1)
    data = resp.json()
    print(f"Delegation accepted: {data['delegator']} -> {data['to_delegate']} ({data['amount']} votes)")

def main():
    parser = argparse.ArgumentParser(description="VoteChain CLI")
    parser.add_argument("--node", help="Node RPC URL")
    parser.add_argument("--network", default=None, help="Network id (devnet/testnet/mainnet)")
    parser.add_argument("--keystore", default=None, help="Keystore directory")

    subparsers = parser.add_subparsers(dest="command")

    # keys
    p_keys = subparsers.add_parser("keys", help="Manage keys")
    sp_keys = p_keys.add_subparsers(dest="subcommand")
    pk_add = sp_keys.add_parser("add", help="Create new key")
    pk_add.add_argument("name", help="Key name")
    pk_import = sp_keys.add_parser("import", help="Import private key")
    pk_import.add_argument("name", help="Key name")
    pk_import.add_argument("--private-key", required=True, help="Private key hex")
    sp_keys.add_parser("list", help="List keys")
    pk_show = sp_keys.add_parser("show", help="Show key details")
    pk_show.add_argument("name", help="Key name")

    # query
    p_query = subparsers.add_parser("query", help="Query ledger state")
    sp_query = p_query.add_subparsers(dest="subcommand")
    sp_query.add_parser("status", help="Node status")
    pq_weight = sp_query.add_parser("weight", help="Current or historical voting weight")
    pq_weight.add_argument("address", help="Account address")
    pq_weight.add_argument("--at", type=int, default=None, help="Past time-index")
    pq_delegate = sp_query.add_parser("delegate", help="Current delegate of an account")
    pq_delegate.add_argument("address", help="Account address")
    pq_sequence = sp_query.add_parser("sequence", help="Next signed-delegation sequence number")
    pq_sequence.add_argument("address", help="Account address")
    pq_cps = sp_query.add_parser("checkpoints", help="Checkpoint history")
    pq_cps.add_argument("address", help="Account address")

    # sign-delegation (offline)
    p_sign = subparsers.add_parser("sign-delegation", help="Sign a delegation offline")
    p_sign.add_argument("delegatee", help="Address to delegate to")
    p_sign.add_argument("--from", dest="from_name", required=True, help="Signer key name")
    p_sign.add_argument("--nonce", type=int, required=True, help="Signer's current sequence number")
    p_sign.add_argument("--expiry", type=int, default=None, help="Unix timestamp (default: now + 1h)")

    # submit-delegation
    p_submit = subparsers.add_parser("submit-delegation", help="Submit a signed delegation to a node")
    p_submit.add_argument("delegatee", nargs="?", help="Address to delegate to")
    p_submit.add_argument("--file", help="JSON produced by sign-delegation")
    p_submit.add_argument("--from", dest="from_name", help="Signer key name")
    p_submit.add_argument("--nonce", type=int, default=None, help="Sequence number (default: fetched from node)")
    p_submit.add_argument("--expiry", type=int, default=None, help="Unix timestamp (default: now + 1h)")

    args = parser.parse_args()

    if args.command == "keys":
        if args.subcommand == "add": cmd_keys_add(args)
        elif args.subcommand == "import": cmd_keys_import(args)
        elif args.subcommand == "list": cmd_keys_list(args)
        elif args.subcommand == "show": cmd_keys_show(args)
        else: p_keys.print_help()

    elif args.command == "query":
        if args.subcommand == "status": cmd_query_status(args)
        elif args.subcommand == "weight": cmd_query_weight(args)
        elif args.subcommand == "delegate": cmd_query_delegate(args)
        elif args.subcommand == "sequence": cmd_query_sequence(args)
        elif args.subcommand == "checkpoints": cmd_query_checkpoints(args)
        else: p_query.print_help()

    elif args.command == "sign-delegation":
        cmd_sign_delegation(args)

    elif args.command == "submit-delegation":
        cmd_submit_delegation(args)

    else:
        parser.print_help()

if __name__ == "__main__":
    main()
