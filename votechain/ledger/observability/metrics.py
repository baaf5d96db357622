# MIT License
# Copyright (c) 2025 Hashborn

"""
Prometheus Metrics Exporter

Metrics are driven by ledger events: attach_metrics() subscribes the
counters below to a ledger's EventBus.

Metrics:
- Checkpoint writes, current time-index
- Delegation changes by kind (direct / signed)
- Rejected signed delegations by reason
- Accounts with checkpoint history
"""

from prometheus_client import Counter, Gauge, CollectorRegistry
from ..core.events import EventBus
from ...protocol.types.common import EventType

# Create registry for metrics
metrics_registry = CollectorRegistry()

# ═══════════════════════════════════════════════════════════════════
# LEDGER METRICS
# ═══════════════════════════════════════════════════════════════════

time_index = Gauge(
    'votechain_time_index',
    'Current time-index (block height)',
    registry=metrics_registry
)

checkpoint_writes_total = Counter(
    'votechain_checkpoint_writes_total',
    'Total checkpoint writes (appends and same-block rewrites)',
    registry=metrics_registry
)

accounts_with_history = Gauge(
    'votechain_accounts_with_history',
    'Number of accounts with at least one checkpoint',
    registry=metrics_registry
)

# ═══════════════════════════════════════════════════════════════════
# DELEGATION METRICS
# ═══════════════════════════════════════════════════════════════════

delegations_total = Counter(
    'votechain_delegations_total',
    'Total delegate changes applied',
    ['kind'],
    registry=metrics_registry
)

authorization_rejections_total = Counter(
    'votechain_authorization_rejections_total',
    'Signed delegations rejected',
    ['reason'],
    registry=metrics_registry
)


# ═══════════════════════════════════════════════════════════════════
# HELPER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════

def _on_weight_changed(event):
    checkpoint_writes_total.inc()

def _on_delegation(receipt):
    delegations_total.labels(kind=receipt.kind.value).inc()

def _on_rejection(reason, signatory=None):
    authorization_rejections_total.labels(reason=reason).inc()

def _on_time_advanced(height, timestamp):
    time_index.set(height)


def attach_metrics(bus: EventBus) -> None:
    """Subscribe metric counters to ledger events."""
    bus.subscribe(EventType.WEIGHT_CHANGED.value, _on_weight_changed)
    bus.subscribe(EventType.DELEGATION_AUTHORIZED.value, _on_delegation)
    bus.subscribe(EventType.AUTHORIZATION_REJECTED.value, _on_rejection)
    bus.subscribe(EventType.TIME_ADVANCED.value, _on_time_advanced)


def update_metrics(ledger):
    """
    Update gauges from ledger state.
    Called when metrics are scraped; counters are event driven.

    Args:
        ledger: GovernanceLedger instance
    """
    time_index.set(ledger.height)
    accounts_with_history.set(len(ledger.checkpoints.accounts()))
