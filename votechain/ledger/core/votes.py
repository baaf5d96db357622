# MIT License
# Copyright (c) 2025 Hashborn

"""
Vote ledger: the single place where weight moves between delegates.

A delegate's checkpoint history is the sum of the units held by everyone
currently delegating to it (itself included when self-delegated). It is
never the delegate's own holdings, and delegation does not chain: if A
delegates to B and B delegates to C, A's units count for B only.
"""

from typing import List, Optional, Protocol, Tuple
import logging
from .checkpoints import CheckpointStore
from .delegation import DelegationGraph
from ...protocol.types.arithmetic import add_checked, sub_checked, narrow_to_96
from ...protocol.crypto.addresses import is_null_address

logger = logging.getLogger(__name__)


class UnitRegistry(Protocol):
    """Ownership collaborator: how many units an account holds right now."""

    def units_of(self, account: str) -> int:
        ...


class VoteLedger:
    def __init__(self, checkpoints: CheckpointStore, graph: DelegationGraph, units: UnitRegistry):
        self.checkpoints = checkpoints
        self.graph = graph
        self.units = units

    def votes_to_delegate(self, account: str) -> int:
        """The account's own weight: its unit count, range checked to 96 bits."""
        return narrow_to_96(self.units.units_of(account), "votes to delegate exceeds 96 bits")

    def on_weight_transfer(self, from_account: Optional[str], to_account: Optional[str],
                           unit_count: int = 1) -> None:
        """
        Propagates an ownership change into voting weight.

        from_account is None (or null) on mint, to_account on burn.
        """
        amount = narrow_to_96(unit_count, "amount exceeds 96 bits")
        src = None if is_null_address(from_account) else self.graph.delegate_of(from_account)
        dst = None if is_null_address(to_account) else self.graph.delegate_of(to_account)
        self.move_weight(src, dst, amount)

    def on_delegate_change(self, account: str, new_delegate: Optional[str]) -> Tuple[str, str, int]:
        """
        Re-points account's own weight at new_delegate.

        Returns (previous_delegate, new_delegate, amount moved).
        """
        if is_null_address(new_delegate):
            new_delegate = account

        current = self.graph.delegate_of(account)
        amount = self.votes_to_delegate(account)

        # Validate the move before touching the graph so a failure leaves no trace
        writes = self._plan_move(current, new_delegate, amount)
        self.graph.set_delegate(account, new_delegate)
        self._apply(writes)

        logger.info(f"{account} delegated {amount} from {current} to {new_delegate}")
        return current, new_delegate, amount

    def move_weight(self, src: Optional[str], dst: Optional[str], amount: int) -> None:
        self._apply(self._plan_move(src, dst, amount))

    def _plan_move(self, src: Optional[str], dst: Optional[str], amount: int) -> List[Tuple[str, int]]:
        """
        Computes the checkpoint writes for a move without applying any of
        them. Raises on underflow/overflow, or if the clock is out of range.
        """
        if src == dst or amount == 0:
            return []

        # Time-index must be representable before anything is written
        self.checkpoints.clock.time_index()

        writes: List[Tuple[str, int]] = []
        if src is not None:
            src_old = self.checkpoints.latest_weight(src)
            writes.append((src, sub_checked(src_old, amount, "vote amount underflows")))
        if dst is not None:
            dst_old = self.checkpoints.latest_weight(dst)
            writes.append((dst, add_checked(dst_old, amount, "vote amount overflows")))
        return writes

    def _apply(self, writes: List[Tuple[str, int]]) -> None:
        for account, new_weight in writes:
            self.checkpoints.write_checkpoint(account, new_weight)
