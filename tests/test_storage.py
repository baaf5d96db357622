# MIT License
# Copyright (c) 2025 Hashborn

import os
import sqlite3
import shutil
import tempfile
import pytest
from votechain.ledger.core.clock import BlockClock
from votechain.ledger.core.governance import GovernanceLedger
from votechain.ledger.storage.db import StorageDB
from votechain.protocol.types.arithmetic import UINT96_MAX
from votechain.protocol.types.delegation import SignedDelegation
from votechain.protocol.crypto.keys import public_key_from_private
from votechain.protocol.crypto.addresses import address_from_pubkey, encode_address
from votechain.protocol.config.params import NETWORKS

CONFIG = NETWORKS["devnet"]
NOW = 1_700_000_000

ALICE_KEY = (0xA11CE).to_bytes(32, 'big')
ALICE = address_from_pubkey(public_key_from_private(ALICE_KEY))
BOB = encode_address(b'\x0b' * 20)
CAROL = encode_address(b'\x0c' * 20)


@pytest.fixture
def db():
    temp_dir = tempfile.mkdtemp()
    db = StorageDB(os.path.join(temp_dir, "ledger.db"))
    yield db
    db.close()
    shutil.rmtree(temp_dir)


def test_persist_and_load_roundtrip(db):
    ledger = GovernanceLedger(config=CONFIG, clock=BlockClock(height=1, timestamp=NOW))
    for _ in range(3):
        ledger.inventory.mint(ALICE)
    ledger.inventory.mint(CAROL)
    ledger.advance_block()

    delegation = SignedDelegation(delegatee=BOB, nonce=0, expiry=NOW + 3600)
    delegation.sign(ALICE_KEY, CONFIG)
    ledger.delegate_by_signature(BOB, 0, NOW + 3600, delegation.signature_bytes())
    ledger.advance_block()
    ledger.persist(db)

    restored = GovernanceLedger.load(db, CONFIG)

    assert restored.height == ledger.height
    assert restored.clock.timestamp == ledger.clock.timestamp
    assert restored.compute_state_root() == ledger.compute_state_root()
    assert restored.get_delegate(ALICE) == BOB
    assert restored.get_sequence_number(ALICE) == 1
    assert restored.get_current_weight(BOB) == 3
    assert restored.get_weight_as_of(ALICE, 1) == 3
    assert restored.get_weight_as_of(ALICE, 2) == 0
    assert restored.votes_to_delegate(ALICE) == 3

    # The restored inventory keeps reporting into the restored ledger
    restored.inventory.mint(ALICE)
    assert restored.get_current_weight(BOB) == 4


def test_large_weights_survive_storage(db):
    ledger = GovernanceLedger(config=CONFIG, clock=BlockClock(height=7, timestamp=NOW))
    ledger.checkpoints.write_checkpoint(BOB, UINT96_MAX)
    ledger.persist(db)

    restored = GovernanceLedger.load(db, CONFIG)
    assert restored.get_current_weight(BOB) == UINT96_MAX


def test_empty_state_root_is_stable():
    a = GovernanceLedger(config=CONFIG, clock=BlockClock(height=1, timestamp=NOW))
    b = GovernanceLedger(config=CONFIG, clock=BlockClock(height=9, timestamp=NOW))
    assert a.compute_state_root() == b.compute_state_root()

    a.inventory.mint(ALICE)
    assert a.compute_state_root() != b.compute_state_root()


def test_failed_save_leaves_previous_state(db):
    ledger = GovernanceLedger(config=CONFIG, clock=BlockClock(height=1, timestamp=NOW))
    ledger.inventory.mint(ALICE)
    ledger.advance_block()
    ledger.persist(db)
    root = ledger.compute_state_root()

    # The owners write fails after checkpoints, delegates and sequences were written
    with pytest.raises(sqlite3.IntegrityError):
        db.save_state(
            {BOB: [(5, 9)]},
            {ALICE: CAROL},
            {ALICE: 4},
            {0: None},
            {"height": "5"},
        )

    restored = GovernanceLedger.load(db, CONFIG)
    assert restored.height == 2
    assert restored.get_current_weight(ALICE) == 1
    assert restored.get_current_weight(BOB) == 0
    assert restored.get_delegate(ALICE) == ALICE
    assert restored.get_sequence_number(ALICE) == 0
    assert restored.compute_state_root() == root
