# MIT License
# Copyright (c) 2025 Hashborn

"""
Per-account checkpoint history.

Each account owns an append-only list of Checkpoints, strictly increasing by
time_index. The only mutation besides appending is rewriting the weight of
the latest checkpoint while the clock is still at that checkpoint's
time_index, so an account gains at most one checkpoint per block.
"""

from typing import Dict, List, Optional
import logging
from .clock import BlockClock
from .events import EventBus
from ...protocol.types.checkpoint import Checkpoint, WeightChanged
from ...protocol.types.common import EventType, NotYetDeterminedError
from ...protocol.types.arithmetic import narrow_to_96

logger = logging.getLogger(__name__)


class CheckpointStore:
    def __init__(self, clock: BlockClock, bus: Optional[EventBus] = None,
                 histories: Dict[str, List[Checkpoint]] = None):
        self.clock = clock
        self.bus = bus
        # account -> ordered checkpoints
        self._histories: Dict[str, List[Checkpoint]] = histories if histories is not None else {}

    def num_checkpoints(self, account: str) -> int:
        return len(self._histories.get(account, []))

    def checkpoint(self, account: str, index: int) -> Checkpoint:
        history = self._histories.get(account, [])
        if index < 0 or index >= len(history):
            raise IndexError(f"Checkpoint {index} out of range for {account} ({len(history)} recorded)")
        return history[index]

    def history(self, account: str) -> List[Checkpoint]:
        """Returns a copy of the account's checkpoints, oldest first."""
        return list(self._histories.get(account, []))

    def accounts(self) -> List[str]:
        return list(self._histories.keys())

    def latest_weight(self, account: str) -> int:
        history = self._histories.get(account)
        if not history:
            return 0
        return history[-1].weight

    def weight_as_of(self, account: str, time_index: int) -> int:
        """
        Weight of account at the end of block time_index.

        Only finalized blocks can be queried: time_index must be strictly
        before the current time-index, because the current block may still
        change.
        """
        if time_index < 0:
            raise ValueError("time_index must be non-negative")
        current = self.clock.time_index()
        if time_index >= current:
            raise NotYetDeterminedError(
                f"Time-index {time_index} not yet determined (current is {current})"
            )

        history = self._histories.get(account)
        if not history:
            return 0

        # Most lookups are for recent blocks
        if history[-1].time_index <= time_index:
            return history[-1].weight

        # Query predates any recorded weight
        if history[0].time_index > time_index:
            return 0

        lower = 0
        upper = len(history) - 1
        while upper > lower:
            # Ceiling midpoint so that lower = center always makes progress
            center = upper - (upper - lower) // 2
            cp = history[center]
            if cp.time_index == time_index:
                return cp.weight
            elif cp.time_index < time_index:
                lower = center
            else:
                upper = center - 1
        return history[lower].weight

    def write_checkpoint(self, account: str, new_weight: int) -> Checkpoint:
        """
        Records new_weight for account at the current time-index.

        Coalesces into the latest checkpoint when it was written during the
        same block; otherwise appends.
        """
        time_index = self.clock.time_index()
        new_weight = narrow_to_96(new_weight, "weight exceeds 96 bits")

        history = self._histories.setdefault(account, [])
        previous_weight = history[-1].weight if history else 0

        cp = Checkpoint(time_index=time_index, weight=new_weight)
        if history and history[-1].time_index == time_index:
            history[-1] = cp
        else:
            history.append(cp)

        logger.debug(f"Checkpoint {account}@{time_index}: {previous_weight} -> {new_weight}")

        if self.bus:
            self.bus.emit(
                EventType.WEIGHT_CHANGED.value,
                event=WeightChanged(
                    delegate=account,
                    previous_weight=previous_weight,
                    new_weight=new_weight,
                    time_index=time_index,
                ),
            )
        return cp
