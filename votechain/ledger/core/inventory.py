# MIT License
# Copyright (c) 2025 Hashborn

"""
Minimal unit ownership registry.

Tracks which account owns which unit id and reports every ownership change
to a transfer hook, one unit per call. Minting policy and enumeration are
left to whatever system embeds the ledger; this registry only keeps counts
and owners honest.
"""

from typing import Callable, Dict, Optional
import threading
import logging
from ...protocol.config.params import UNIT_WEIGHT

logger = logging.getLogger(__name__)

TransferHook = Callable[[Optional[str], Optional[str], int], None]


class InventoryRegistry:
    def __init__(self, on_transfer: Optional[TransferHook] = None, lock=None,
                 owners: Dict[int, str] = None):
        self.on_transfer = on_transfer
        self._lock = lock or threading.RLock()
        self._owners: Dict[int, str] = owners if owners is not None else {}
        self._balances: Dict[str, int] = {}
        for owner in self._owners.values():
            self._balances[owner] = self._balances.get(owner, 0) + 1
        self._next_id = max(self._owners, default=-1) + 1

    def units_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def owner_of(self, unit_id: int) -> str:
        owner = self._owners.get(unit_id)
        if owner is None:
            raise ValueError(f"Unit {unit_id} does not exist")
        return owner

    def owners(self) -> Dict[int, str]:
        return dict(self._owners)

    def total_units(self) -> int:
        return len(self._owners)

    def mint(self, to: str) -> int:
        with self._lock:
            unit_id = self._next_id
            self._move(unit_id, None, to)
            self._next_id += 1
            logger.debug(f"Minted unit {unit_id} to {to}")
            return unit_id

    def burn(self, unit_id: int) -> None:
        with self._lock:
            self._move(unit_id, self.owner_of(unit_id), None)
            logger.debug(f"Burned unit {unit_id}")

    def transfer(self, from_account: str, to_account: str, unit_id: int) -> None:
        with self._lock:
            owner = self.owner_of(unit_id)
            if owner != from_account:
                raise ValueError(f"Unit {unit_id} is owned by {owner}, not {from_account}")
            self._move(unit_id, from_account, to_account)

    def _move(self, unit_id: int, src: Optional[str], dst: Optional[str]) -> None:
        self._set_owner(unit_id, src, dst)
        if not self.on_transfer:
            return
        try:
            self.on_transfer(src, dst, UNIT_WEIGHT)
        except Exception:
            # Ownership and weight change together or not at all
            self._set_owner(unit_id, dst, src)
            raise

    def _set_owner(self, unit_id: int, src: Optional[str], dst: Optional[str]) -> None:
        if src is not None:
            self._balances[src] -= 1
            if self._balances[src] == 0:
                del self._balances[src]
        if dst is not None:
            self._balances[dst] = self._balances.get(dst, 0) + 1
            self._owners[unit_id] = dst
        else:
            self._owners.pop(unit_id, None)
