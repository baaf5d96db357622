# MIT License
# Copyright (c) 2025 Hashborn

import pytest
from votechain.ledger.core.clock import BlockClock
from votechain.ledger.core.events import EventBus
from votechain.ledger.core.governance import GovernanceLedger
from votechain.ledger.observability.metrics import metrics_registry, attach_metrics
from votechain.protocol.types.common import EventType, InvalidSignatureError
from votechain.protocol.crypto.addresses import encode_address
from votechain.protocol.config.params import NETWORKS

A = encode_address(b'\x01' * 20)
B = encode_address(b'\x02' * 20)


def sample(name, labels=None):
    return metrics_registry.get_sample_value(name, labels or {}) or 0


@pytest.fixture
def bus():
    return EventBus()


def test_eventbus_subscribe_and_emit(bus):
    received = []
    bus.subscribe("ping", lambda **data: received.append(data))

    bus.emit("ping", value=1)

    assert received == [{"value": 1}]


def test_eventbus_unsubscribe(bus):
    received = []
    callback = lambda **data: received.append(data)
    bus.subscribe("ping", callback)
    bus.unsubscribe("ping", callback)

    bus.emit("ping", value=1)
    assert received == []


def test_failing_subscriber_does_not_abort_ledger(bus):
    def broken(event):
        raise RuntimeError("observer failure")

    bus.subscribe(EventType.WEIGHT_CHANGED.value, broken)
    ledger = GovernanceLedger(config=NETWORKS["devnet"], clock=BlockClock(height=1, timestamp=0), bus=bus)

    ledger.inventory.mint(A)
    assert ledger.get_current_weight(A) == 1


def test_metrics_follow_ledger_events(bus):
    attach_metrics(bus)
    ledger = GovernanceLedger(config=NETWORKS["devnet"], clock=BlockClock(height=1, timestamp=0), bus=bus)

    writes = sample("votechain_checkpoint_writes_total")
    direct = sample("votechain_delegations_total", {"kind": "DIRECT"})
    rejected = sample("votechain_authorization_rejections_total", {"reason": "invalid_signature"})

    ledger.inventory.mint(A)
    ledger.delegate(A, B)
    with pytest.raises(InvalidSignatureError):
        ledger.delegate_by_signature(B, 0, 10, b"\x00" * 65)
    ledger.advance_block()

    assert sample("votechain_checkpoint_writes_total") == writes + 3
    assert sample("votechain_delegations_total", {"kind": "DIRECT"}) == direct + 1
    assert sample("votechain_authorization_rejections_total", {"reason": "invalid_signature"}) == rejected + 1
    assert sample("votechain_time_index") == 2
