# MIT License
# Copyright (c) 2025 Hashborn

"""
Event system for ledger notifications.

Provides a simple pub/sub mechanism for weight and delegation changes.
Downstream observers (proposal counting, metrics, indexers) subscribe
here instead of the core knowing about any particular transport.
"""
from typing import Dict, List, Callable, Any, Optional
import logging

logger = logging.getLogger(__name__)


class EventBus:
    """
    Simple event bus for ledger events.

    Events are delivered synchronously in the emitting thread, in
    subscription order. A failing subscriber is logged and skipped; it
    never aborts the ledger operation that emitted the event.
    """

    def __init__(self):
        self.listeners: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: Event name (e.g., 'weight_changed', 'delegate_changed')
            callback: Function to call when event is emitted
        """
        if event_type not in self.listeners:
            self.listeners[event_type] = []

        self.listeners[event_type].append(callback)
        logger.debug(f"Subscribed to event: {event_type}")

    def unsubscribe(self, event_type: str, callback: Callable) -> None:
        if event_type in self.listeners:
            try:
                self.listeners[event_type].remove(callback)
                logger.debug(f"Unsubscribed from event: {event_type}")
            except ValueError:
                logger.warning(f"Callback not found for event: {event_type}")

    def emit(self, event_type: str, **data: Any) -> None:
        """
        Emit an event to all subscribers.

        Args:
            event_type: Event name
            **data: Event data as keyword arguments
        """
        listeners = self.listeners.get(event_type, [])

        if not listeners:
            return

        logger.debug(f"Emitting event: {event_type} to {len(listeners)} listener(s)")

        for callback in list(listeners):
            try:
                callback(**data)
            except Exception as e:
                logger.error(f"Error in event callback for {event_type}: {e}", exc_info=True)

    def clear(self, event_type: Optional[str] = None) -> None:
        """Clear all listeners for an event type, or all listeners if no type specified."""
        if event_type:
            self.listeners.pop(event_type, None)
            logger.debug(f"Cleared listeners for event: {event_type}")
        else:
            self.listeners.clear()
            logger.debug("Cleared all event listeners")
