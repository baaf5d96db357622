# MIT License
# Copyright (c) 2025 Hashborn

"""
GovernanceLedger: the aggregate that owns checkpoints, delegates, sequence
numbers and the clock, and the only object callers talk to.

Every mutating entry point runs under one re-entrant lock, so weight moves,
delegate changes, signed delegations and clock advances are totally
ordered and never observed half applied.
"""

from typing import Dict, List, Optional, Union
import threading
import logging
from .clock import BlockClock
from .events import EventBus
from .checkpoints import CheckpointStore
from .delegation import DelegationGraph
from .votes import VoteLedger, UnitRegistry
from .authorization import DelegationAuthorization, SignatureVerifier
from .inventory import InventoryRegistry
from ..storage.db import StorageDB
from ...protocol.types.checkpoint import Checkpoint
from ...protocol.types.common import EventType
from ...protocol.types.delegation import DelegationReceipt
from ...protocol.crypto.hash import sha256, merkle_root
from ...protocol.crypto.addresses import is_valid_address
from ...protocol.config.params import NetworkConfig, CURRENT_NETWORK

logger = logging.getLogger(__name__)


class GovernanceLedger:
    def __init__(self,
                 config: NetworkConfig = CURRENT_NETWORK,
                 clock: Optional[BlockClock] = None,
                 bus: Optional[EventBus] = None,
                 units: Optional[UnitRegistry] = None,
                 verifier: Optional[SignatureVerifier] = None,
                 histories: Dict[str, List[Checkpoint]] = None,
                 delegates: Dict[str, str] = None,
                 sequences: Dict[str, int] = None,
                 owners: Dict[int, str] = None):
        self.config = config
        self._lock = threading.RLock()
        self.bus = bus or EventBus()
        self.clock = clock or BlockClock(
            timestamp=config.genesis_time or None,
            block_time_sec=config.block_time_sec,
        )

        # Without an external registry, host a local one that reports into this ledger
        if units is None:
            units = InventoryRegistry(on_transfer=self.on_transfer, lock=self._lock, owners=owners)
        self.units = units

        self.checkpoints = CheckpointStore(self.clock, self.bus, histories)
        self.graph = DelegationGraph(self.bus, delegates)
        self.votes = VoteLedger(self.checkpoints, self.graph, self.units)
        self.authorization = DelegationAuthorization(
            self.votes, self.clock, config, verifier=verifier, bus=self.bus, sequences=sequences
        )

    @property
    def inventory(self) -> InventoryRegistry:
        if not isinstance(self.units, InventoryRegistry):
            raise AttributeError("Ledger is attached to an external unit registry")
        return self.units

    @property
    def domain_separator(self) -> bytes:
        return self.authorization.domain_separator

    @property
    def height(self) -> int:
        return self.clock.height

    def _require_account(self, account: str) -> str:
        if not is_valid_address(account, self.config.bech32_prefix_acc):
            raise ValueError(f"Invalid account address: {account}")
        return account

    # --- Collaborator hook ---
    def on_transfer(self, from_account: Optional[str], to_account: Optional[str], unit_count: int = 1):
        with self._lock:
            self.votes.on_weight_transfer(from_account, to_account, unit_count)

    # --- Queries ---
    def get_current_weight(self, account: str) -> int:
        with self._lock:
            return self.checkpoints.latest_weight(self._require_account(account))

    def get_weight_as_of(self, account: str, time_index: int) -> int:
        with self._lock:
            return self.checkpoints.weight_as_of(self._require_account(account), time_index)

    def get_delegate(self, account: str) -> str:
        with self._lock:
            return self.graph.delegate_of(self._require_account(account))

    def get_sequence_number(self, account: str) -> int:
        with self._lock:
            return self.authorization.sequence_of(self._require_account(account))

    def num_checkpoints(self, account: str) -> int:
        with self._lock:
            return self.checkpoints.num_checkpoints(self._require_account(account))

    def get_checkpoints(self, account: str) -> List[Checkpoint]:
        with self._lock:
            return self.checkpoints.history(self._require_account(account))

    def votes_to_delegate(self, account: str) -> int:
        with self._lock:
            return self.votes.votes_to_delegate(self._require_account(account))

    # --- Delegation ---
    def delegate(self, caller: str, delegatee: Optional[str]) -> DelegationReceipt:
        """Direct delegation; caller has already been authenticated by the host."""
        with self._lock:
            self._require_account(caller)
            if delegatee:
                self._require_account(delegatee)
            return self.authorization.delegate(caller, delegatee)

    def delegate_by_signature(self, delegatee: str, sequence_number: int, expiry: int,
                              signature: Union[bytes, str]) -> DelegationReceipt:
        if isinstance(signature, str):
            signature = bytes.fromhex(signature[2:] if signature.startswith("0x") else signature)
        with self._lock:
            self._require_account(delegatee)
            return self.authorization.delegate_by_signature(delegatee, sequence_number, expiry, signature)

    # --- Clock ---
    def advance_block(self, blocks: int = 1, seconds: Optional[int] = None) -> int:
        with self._lock:
            height = self.clock.advance(blocks, seconds)
            self.bus.emit(EventType.TIME_ADVANCED.value, height=height, timestamp=self.clock.timestamp)
            return height

    # --- Genesis ---
    def apply_genesis_allocation(self, alloc: Dict[str, int]) -> int:
        """Mints the given unit counts to each account. Returns units minted."""
        count = 0
        with self._lock:
            for address, units in alloc.items():
                self._require_account(address)
                for _ in range(int(units)):
                    self.inventory.mint(address)
                    count += 1
        logger.info(f"Applied genesis allocation: {count} units to {len(alloc)} accounts.")
        return count

    # --- State ---
    def compute_state_root(self) -> str:
        """Merkle root over every account's checkpoints, delegate and sequence number."""
        with self._lock:
            delegates = self.graph.explicit_delegations()
            sequences = self.authorization.sequences()
            accounts = set(self.checkpoints.accounts()) | set(delegates) | set(sequences)

            items = []
            for addr in sorted(accounts):
                history = ",".join(f"{cp.time_index}:{cp.weight}" for cp in self.checkpoints.history(addr))
                leaf_data = (
                    addr
                    + "|" + history
                    + "|" + delegates.get(addr, addr)
                    + "|" + str(sequences.get(addr, 0))
                ).encode("utf-8")
                items.append(sha256(leaf_data))

            if not items:
                return sha256(b"").hex()
            return merkle_root(items).hex()

    def persist(self, db: StorageDB):
        """Writes the full ledger state to db as one transaction."""
        with self._lock:
            histories = {
                account: [(cp.time_index, cp.weight) for cp in self.checkpoints.history(account)]
                for account in self.checkpoints.accounts()
            }
            db.save_state(
                histories,
                self.graph.explicit_delegations(),
                self.authorization.sequences(),
                self.units.owners() if isinstance(self.units, InventoryRegistry) else None,
                {"height": str(self.clock.height), "timestamp": str(self.clock.timestamp)},
            )
            logger.debug(f"Persisted ledger state at height {self.clock.height}")

    @classmethod
    def load(cls, db: StorageDB, config: NetworkConfig = CURRENT_NETWORK, **kwargs) -> 'GovernanceLedger':
        """Restores a ledger previously written with persist()."""
        histories = {
            account: [Checkpoint(time_index=t, weight=w) for t, w in rows]
            for account, rows in db.load_checkpoints().items()
        }
        height = db.get_meta("height")
        timestamp = db.get_meta("timestamp")
        clock = None
        if height is not None:
            clock = BlockClock(
                height=int(height),
                timestamp=int(timestamp) if timestamp is not None else None,
                block_time_sec=config.block_time_sec,
            )
        ledger = cls(
            config=config,
            clock=clock,
            histories=histories,
            delegates=db.load_delegates(),
            sequences=db.load_sequences(),
            owners=db.load_owners(),
            **kwargs
        )
        logger.info(f"Ledger loaded at height {ledger.height} ({len(histories)} accounts with history)")
        return ledger
