"""
Event Bus - Decoupled Module Communication
Modules emit events, other modules listen. No direct imports between modules.

Handlers run synchronously inside emit(). A failing handler is logged and
skipped: listeners are side channels and never fail the operation that emitted.
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
        Register a handler for an event. Registering the same handler twice
        for one event is a no-op.

        Args:
            event_name: Name of the event to listen for
            handler: Callable that receives event_data dict
        """
        handlers = self._handlers.setdefault(event_name, [])
        if handler in handlers:
            return
        handlers.append(handler)
        logger.debug(f"Registered handler for event '{event_name}': {handler.__name__}")

    def emit(self, event_name: str, event_data: Dict[str, Any] = None):
        """
        Emit an event to all registered handlers.

        Args:
            event_name: Name of the event
            event_data: Optional dict of data to pass to handlers
        """
        if event_data is None:
            event_data = {}

        logger.debug(f"Emitting event '{event_name}' with data: {event_data}")

        for handler in self._handlers.get(event_name, []):
            try:
                handler(event_data)
            except Exception as e:
                logger.error(f"Error in handler {handler.__name__} for event '{event_name}': {e}")

    def handlers_for(self, event_name: str) -> List[Callable]:
        return list(self._handlers.get(event_name, []))

    def clear(self):
        """Clear all handlers (useful for testing)."""
        self._handlers.clear()


# Singleton instance
bus = EventBus()


# =============================================================================
# STANDARD EVENTS
# =============================================================================

# Submission workflow events; event_data always carries 'kind' and 'record_id'
EVENT_SUBMISSION_CREATED = 'submission_created'
EVENT_SUBMISSION_STATUS_CHANGED = 'submission_status_changed'
EVENT_SUBMISSION_DELETED = 'submission_deleted'
EVENT_QUESTION_UPVOTED = 'question_upvoted'

# Content library events
EVENT_DOCUMENT_DELETED = 'document_deleted'
