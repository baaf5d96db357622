# MIT License
# Copyright (c) 2025 Hashborn

import argparse
import os
import logging
import asyncio
import json
from uvicorn import Config, Server
from ...protocol.crypto.keys import generate_private_key, public_key_from_private
from ...protocol.crypto.addresses import address_from_pubkey
from ...protocol.config.params import get_network
from ..core.governance import GovernanceLedger
from ..observability.metrics import attach_metrics
from ..storage.db import StorageDB
from ..rpc import api # import module to set globals

logger = logging.getLogger(__name__)

def cmd_init(args):
    """Initialize node: create operator key and a genesis allocation."""
    data_dir = args.datadir
    os.makedirs(data_dir, exist_ok=True)
    config = get_network(args.network)

    key_path = os.path.join(data_dir, "operator_key.hex")
    if not os.path.exists(key_path):
        priv = generate_private_key()
        with open(key_path, "w") as f:
            f.write(priv.hex())
        os.chmod(key_path, 0o600)
        print("Generated new operator key.")
    else:
        print(f"Key already exists at {key_path}")
        with open(key_path, "r") as f:
            priv = bytes.fromhex(f.read().strip())

    addr = address_from_pubkey(public_key_from_private(priv), prefix=config.bech32_prefix_acc)
    print(f"Address: {addr}")

    genesis_path = os.path.join(data_dir, "genesis.json")
    if not os.path.exists(genesis_path):
        with open(genesis_path, "w") as f:
            json.dump({"network": config.network_id, "alloc": {addr: args.units}}, f, indent=2)
        print(f"Genesis allocates {args.units} units to {addr}")

    print(f"\nNode initialized in {data_dir}")

def open_ledger(data_dir: str, network: str) -> tuple:
    """Loads the ledger from data_dir, applying genesis.json on first start."""
    config = get_network(network)
    db = StorageDB(os.path.join(data_dir, "ledger.db"))

    if db.get_meta("height") is not None:
        return GovernanceLedger.load(db, config), db

    ledger = GovernanceLedger(config=config)
    genesis_path = os.path.join(data_dir, "genesis.json")
    if os.path.exists(genesis_path):
        with open(genesis_path, "r") as f:
            data = json.load(f)
        ledger.apply_genesis_allocation(data.get("alloc", {}))
    else:
        logger.warning("No genesis.json found. Starting with no units.")
    ledger.persist(db)
    return ledger, db

async def produce_blocks(ledger: GovernanceLedger, db: StorageDB, block_time_sec: int):
    """Advances the ledger clock once per block and persists the state."""
    while True:
        await asyncio.sleep(block_time_sec)
        height = ledger.advance_block()
        # Off the event loop so RPC requests are served while the state is written
        await asyncio.to_thread(ledger.persist, db)
        logger.debug(f"Block {height} sealed")

async def run_node_async(args):
    data_dir = args.datadir
    os.makedirs(data_dir, exist_ok=True)

    print("Starting VoteChain ledger node...")
    print(f"Data dir: {data_dir}")
    print(f"RPC: {args.host}:{args.port}")

    ledger, db = open_ledger(data_dir, args.network)
    attach_metrics(ledger.bus)

    # Inject into RPC module (global vars)
    api.ledger = ledger

    block_task = asyncio.create_task(produce_blocks(ledger, db, ledger.config.block_time_sec))

    config = Config(app=api.app, host=args.host, port=args.port, log_level="info")
    server = Server(config)
    try:
        await server.serve()
    except asyncio.CancelledError:
        pass
    finally:
        block_task.cancel()
        ledger.persist(db)
        db.close()
        logging.info(f"Ledger persisted at height {ledger.height}")

def cmd_run(args):
    """Wrapper to run async main."""
    try:
        asyncio.run(run_node_async(args))
    except KeyboardInterrupt:
        pass

def main():
    parser = argparse.ArgumentParser(description="VoteChain Ledger Node CLI")
    parser.add_argument("--datadir", default="./.votechain", help="Data directory")
    parser.add_argument("--network", default=os.environ.get("VOTECHAIN_NETWORK", "devnet"), help="Network id")

    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Initialize node configuration")
    init_parser.add_argument("--units", type=int, default=10, help="Units allocated to the operator at genesis")

    run_parser = subparsers.add_parser("run", help="Run the node")
    run_parser.add_argument("--host", default="0.0.0.0", help="RPC Host")
    run_parser.add_argument("--port", type=int, default=8000, help="RPC Port")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s %(levelname)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.command == "init":
        cmd_init(args)
    elif args.command == "run":
        cmd_run(args)

if __name__ == "__main__":
    main()
