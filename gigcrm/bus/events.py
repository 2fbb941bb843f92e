"""
Event Bus - Decoupled Module Communication
The booking engine emits lifecycle notifications; listeners (audit trails,
summary caches, the CLI) subscribe without the engine importing them.
"""

from typing import Callable, Dict, List, Any
import logging

logger = logging.getLogger(__name__)


class EventBus:
    """
    Simple event bus for decoupled module communication.
    Modules emit events, other modules register handlers to listen.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {}

    def on(self, event_name: str, handler: Callable):
        """
        Register a handler for an event.

        Args:
            event_name: Name of the event to listen for
            handler: Callable that receives event_data dict
        """
        self._handlers.setdefault(event_name, []).append(handler)
        logger.debug(f"Registered handler for '{event_name}': {getattr(handler, '__name__', handler)}")

    def emit(self, event_name: str, event_data: Dict[str, Any] = None):
        """
        Emit an event to all registered handlers.
        A failing handler is logged and does not stop the others.
        """
        if event_data is None:
            event_data = {}

        logger.debug(f"Emitting '{event_name}' with data: {event_data}")

        for handler in list(self._handlers.get(event_name, [])):
            try:
                handler(event_data)
            except Exception as e:
                logger.error(f"Error in handler {getattr(handler, '__name__', handler)} for '{event_name}': {e}")

    def clear(self):
        """Clear all handlers (useful for testing)."""
        self._handlers.clear()


# Singleton instance
bus = EventBus()


# =============================================================================
# STANDARD EVENTS
# =============================================================================

# Booking lifecycle
EVENT_BOOKING_CREATED = 'booking_created'
EVENT_BOOKING_CONFIRMED = 'booking_confirmed'
EVENT_BOOKING_CANCELLED = 'booking_cancelled'
EVENT_BOOKING_UPDATED = 'booking_updated'

# Catalogue changes
EVENT_VENUE_SAVED = 'venue_saved'
EVENT_VENUE_DELETED = 'venue_deleted'
EVENT_EVENT_UPDATED = 'event_updated'
