# MIT License
# Copyright (c) 2025 Hashborn

import os
from typing import Dict, Optional
from ..crypto.hash import keccak256
from ..crypto.addresses import encode_address

# Domain name bound into every delegation signature
DOMAIN_NAME = "VoteChain Delegation"

# Weight contributed by a single unit transfer
UNIT_WEIGHT = 1

def derive_ledger_address(network_id: str, prefix: str) -> str:
    """Deterministic identity of a ledger instance (the verifyingContract of the signing domain)."""
    return encode_address(keccak256(f"votechain-ledger:{network_id}".encode("utf-8"))[-20:], prefix)

class NetworkConfig:
    def __init__(self,
                 network_id: str,
                 chain_id: int,
                 block_time_sec: int,
                 bech32_prefix_acc: str = "vote",
                 domain_name: str = DOMAIN_NAME,
                 ledger_address: Optional[str] = None,
                 genesis_time: int = 0,
                 version: int = 1):
        self.network_id = network_id
        self.chain_id = chain_id
        self.block_time_sec = block_time_sec
        self.bech32_prefix_acc = bech32_prefix_acc
        self.domain_name = domain_name
        self.ledger_address = ledger_address or derive_ledger_address(network_id, bech32_prefix_acc)
        self.genesis_time = genesis_time
        self.version = version

NETWORKS: Dict[str, NetworkConfig] = {
    "devnet": NetworkConfig(
        network_id="devnet",
        chain_id=31337,
        block_time_sec=5,
    ),
    "testnet": NetworkConfig(
        network_id="testnet",
        chain_id=11155111,
        block_time_sec=12,
    ),
    "mainnet": NetworkConfig(
        network_id="mainnet",
        chain_id=1,
        block_time_sec=12,
    )
}

def get_network(network_id: Optional[str] = None) -> NetworkConfig:
    network_id = network_id or os.environ.get("VOTECHAIN_NETWORK", "devnet")
    if network_id not in NETWORKS:
        raise ValueError(f"Unknown network '{network_id}' (expected one of {', '.join(NETWORKS)})")
    return NETWORKS[network_id]

# Default to devnet unless VOTECHAIN_NETWORK says otherwise
CURRENT_NETWORK = get_network()
