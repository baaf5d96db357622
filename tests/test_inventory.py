# MIT License
# Copyright (c) 2025 Hashborn

import pytest
from votechain.ledger.core.inventory import InventoryRegistry
from votechain.protocol.crypto.addresses import encode_address

A = encode_address(b'\x01' * 20)
B = encode_address(b'\x02' * 20)


def test_transfer_hook_sees_every_ownership_change():
    calls = []
    inv = InventoryRegistry(on_transfer=lambda src, dst, n: calls.append((src, dst, n)))

    unit = inv.mint(A)
    inv.transfer(A, B, unit)
    inv.burn(unit)

    assert calls == [(None, A, 1), (A, B, 1), (B, None, 1)]
    assert inv.units_of(A) == 0
    assert inv.units_of(B) == 0
    assert inv.total_units() == 0


def test_transfer_requires_owner():
    inv = InventoryRegistry()
    unit = inv.mint(A)

    with pytest.raises(ValueError, match="is owned by"):
        inv.transfer(B, A, unit)
    with pytest.raises(ValueError, match="does not exist"):
        inv.burn(unit + 1)


def test_failed_hook_rolls_back_ownership():
    def hook(src, dst, n):
        if dst == B:
            raise RuntimeError("ledger rejected")

    inv = InventoryRegistry(on_transfer=hook)
    unit = inv.mint(A)

    with pytest.raises(RuntimeError):
        inv.transfer(A, B, unit)
    assert inv.owner_of(unit) == A
    assert inv.units_of(A) == 1
    assert inv.units_of(B) == 0

    with pytest.raises(RuntimeError):
        inv.mint(B)
    assert inv.total_units() == 1


def test_restored_owners_rebuild_balances():
    inv = InventoryRegistry(owners={0: A, 1: A, 5: B})

    assert inv.units_of(A) == 2
    assert inv.units_of(B) == 1
    assert inv.mint(A) == 6
