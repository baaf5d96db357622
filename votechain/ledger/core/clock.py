# MIT License
# Copyright (c) 2025 Hashborn

from typing import Optional
import time
import logging
from ...protocol.types.arithmetic import narrow_to_32

logger = logging.getLogger(__name__)

class BlockClock:
    """
    Source of the ledger's notion of "now".

    height is the time-index checkpoints are recorded against; timestamp is
    the wall-clock second used for signature expiry. Both only move forward
    and only through advance().
    """

    def __init__(self, height: int = 1, timestamp: Optional[int] = None, block_time_sec: int = 5):
        if height < 0:
            raise ValueError("height must be non-negative")
        self.height = height
        self.timestamp = int(time.time()) if timestamp is None else timestamp
        self.block_time_sec = block_time_sec

    def time_index(self) -> int:
        """Current time-index, range checked to 32 bits."""
        return narrow_to_32(self.height, "block number exceeds 32 bits")

    def advance(self, blocks: int = 1, seconds: Optional[int] = None) -> int:
        if blocks < 0:
            raise ValueError("Cannot move the clock backwards")
        if seconds is None:
            seconds = blocks * self.block_time_sec
        if seconds < 0:
            raise ValueError("Cannot move the clock backwards")

        self.height += blocks
        self.timestamp += seconds
        logger.debug(f"Clock advanced to height {self.height} (ts={self.timestamp})")
        return self.height
