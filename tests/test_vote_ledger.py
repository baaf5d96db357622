# MIT License
# Copyright (c) 2025 Hashborn

"""
Weight movement and delegation through the GovernanceLedger.
"""

import random
import pytest
from votechain.ledger.core.clock import BlockClock
from votechain.ledger.core.governance import GovernanceLedger
from votechain.protocol.types.common import EventType, WeightOverflowError, WeightUnderflowError
from votechain.protocol.types.arithmetic import UINT96_MAX
from votechain.protocol.crypto.addresses import encode_address, NULL_ACCOUNT
from votechain.protocol.config.params import NETWORKS

GENESIS_TS = 1_700_000_000

A = encode_address(b'\x01' * 20)
B = encode_address(b'\x02' * 20)
C = encode_address(b'\x03' * 20)
D = encode_address(b'\x04' * 20)


@pytest.fixture
def ledger():
    return GovernanceLedger(config=NETWORKS["devnet"], clock=BlockClock(height=1, timestamp=GENESIS_TS))


def mint(ledger, account, count):
    return [ledger.inventory.mint(account) for _ in range(count)]


def test_untouched_account_defaults(ledger):
    assert ledger.get_current_weight(A) == 0
    assert ledger.get_delegate(A) == A
    assert ledger.get_sequence_number(A) == 0
    assert ledger.num_checkpoints(A) == 0


def test_mint_coalesces_within_block(ledger):
    mint(ledger, A, 3)

    assert ledger.get_current_weight(A) == 3
    assert ledger.num_checkpoints(A) == 1
    assert ledger.votes_to_delegate(A) == 3


def test_delegate_moves_own_weight(ledger):
    mint(ledger, A, 3)
    ledger.advance_block()

    receipt = ledger.delegate(A, B)

    assert receipt.amount == 3
    assert receipt.from_delegate == A
    assert ledger.get_delegate(A) == B
    assert ledger.get_current_weight(B) == 3
    # A's history held the weight while self-delegated; it now lives in B's
    assert ledger.get_current_weight(A) == 0
    assert ledger.votes_to_delegate(A) == 3


def test_transfer_moves_one_unit_per_call(ledger):
    units = mint(ledger, A, 3)
    ledger.advance_block()

    ledger.inventory.transfer(A, C, units[0])

    assert ledger.get_current_weight(A) == 2
    assert ledger.get_current_weight(C) == 1
    assert ledger.get_checkpoints(A)[-1].time_index == 2
    assert ledger.get_checkpoints(C)[-1].time_index == 2


def test_transfer_follows_delegates(ledger):
    units = mint(ledger, A, 2)
    ledger.delegate(A, B)
    ledger.delegate(C, D)
    ledger.advance_block()

    ledger.inventory.transfer(A, C, units[0])

    assert ledger.get_current_weight(B) == 1
    assert ledger.get_current_weight(D) == 1
    assert ledger.get_current_weight(C) == 0


def test_burn_removes_weight(ledger):
    units = mint(ledger, A, 2)
    ledger.inventory.burn(units[1])

    assert ledger.get_current_weight(A) == 1
    assert ledger.votes_to_delegate(A) == 1


def test_delegate_to_null_means_self(ledger):
    mint(ledger, A, 2)
    ledger.delegate(A, B)
    assert ledger.get_current_weight(B) == 2

    ledger.delegate(A, NULL_ACCOUNT)
    assert ledger.get_delegate(A) == A
    assert ledger.get_current_weight(A) == 2
    assert ledger.get_current_weight(B) == 0

    ledger.delegate(A, B)
    ledger.delegate(A, None)
    assert ledger.get_delegate(A) == A


def test_redelegating_to_same_delegate_is_noop_for_weight(ledger):
    mint(ledger, A, 2)
    ledger.delegate(A, B)
    before = ledger.num_checkpoints(B)

    ledger.delegate(A, B)

    assert ledger.num_checkpoints(B) == before
    assert ledger.get_current_weight(B) == 2


def test_no_transitive_delegation(ledger):
    mint(ledger, A, 2)
    mint(ledger, B, 5)
    ledger.delegate(A, B)
    ledger.delegate(B, C)

    # B forwards only its own units; A's weight stays with B
    assert ledger.get_current_weight(B) == 2
    assert ledger.get_current_weight(C) == 5


def test_historical_weight_before_delegation(ledger):
    mint(ledger, A, 3)
    ledger.advance_block()
    ledger.delegate(A, B)
    ledger.advance_block()

    assert ledger.get_weight_as_of(B, 1) == 0
    assert ledger.get_weight_as_of(B, 2) == 3
    assert ledger.get_weight_as_of(A, 1) == 3
    assert ledger.get_weight_as_of(A, 2) == 0


def test_delegate_change_emits_events_in_order(ledger):
    mint(ledger, A, 1)
    seen = []
    ledger.bus.subscribe(EventType.DELEGATE_CHANGED.value, lambda event: seen.append(("delegate", event)))
    ledger.bus.subscribe(EventType.WEIGHT_CHANGED.value, lambda event: seen.append(("weight", event)))

    ledger.delegate(A, B)

    assert [kind for kind, _ in seen] == ["delegate", "weight", "weight"]
    assert seen[0][1].from_delegate == A
    assert seen[0][1].to_delegate == B


def test_overflow_leaves_no_trace(ledger):
    ledger.checkpoints.write_checkpoint(B, UINT96_MAX)
    mint(ledger, A, 1)
    snapshot = ledger.compute_state_root()

    with pytest.raises(WeightOverflowError):
        ledger.delegate(A, B)

    assert ledger.get_delegate(A) == A
    assert ledger.get_current_weight(A) == 1
    assert ledger.compute_state_root() == snapshot


def test_underflow_is_rejected(ledger):
    with pytest.raises(WeightUnderflowError):
        ledger.votes.move_weight(A, B, 1)
    assert ledger.num_checkpoints(B) == 0


def test_move_weight_noops(ledger):
    ledger.votes.move_weight(A, A, 5)
    ledger.votes.move_weight(A, B, 0)
    ledger.votes.move_weight(None, None, 3)
    assert ledger.num_checkpoints(A) == 0
    assert ledger.num_checkpoints(B) == 0


def test_invalid_address_rejected(ledger):
    with pytest.raises(ValueError, match="Invalid account address"):
        ledger.get_current_weight("not-an-address")
    with pytest.raises(ValueError):
        ledger.delegate(A, "cosmos1xyz")


def test_random_history_matches_per_block_snapshots(ledger):
    """Every finalized block answers with the weights that held at its end."""
    rng = random.Random(42)
    accounts = [encode_address(bytes([i + 16]) * 20) for i in range(5)]
    snapshots = {}

    for _ in range(30):
        for _ in range(rng.randint(0, 4)):
            action = rng.random()
            owners = ledger.inventory.owners()
            if action < 0.35 or not owners:
                ledger.inventory.mint(rng.choice(accounts))
            elif action < 0.65:
                unit_id = rng.choice(sorted(owners))
                ledger.inventory.transfer(owners[unit_id], rng.choice(accounts), unit_id)
            elif action < 0.75:
                ledger.inventory.burn(rng.choice(sorted(owners)))
            else:
                ledger.delegate(rng.choice(accounts), rng.choice(accounts))
        snapshots[ledger.height] = {acc: ledger.get_current_weight(acc) for acc in accounts}
        ledger.advance_block()

    for height, weights in snapshots.items():
        for acc, weight in weights.items():
            assert ledger.get_weight_as_of(acc, height) == weight

    # Total delegated weight always equals total units outstanding
    total = sum(ledger.get_current_weight(acc) for acc in accounts)
    assert total == ledger.inventory.total_units()
