# MIT License
# Copyright (c) 2025 Hashborn

"""
Observability Module

Provides metrics and monitoring for the vote ledger.
"""

from .metrics import metrics_registry, attach_metrics, update_metrics

__all__ = ['metrics_registry', 'attach_metrics', 'update_metrics']
