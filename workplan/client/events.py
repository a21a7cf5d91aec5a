"""
Observer registry shared by the client components.

Events emitted:
  changed       - ChangeSet after an ordering mutation, None after a wholesale replace
  replaced      - list of tasks loaded by a sync
  sync_failed   - exception raised by the sync fetch
  notification  - Notification for every user-initiated operation
"""
import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)


class EventHub:
    """Routes client events to registered callbacks."""

    def __init__(self):
        self.subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback for an event type."""
        self.subscribers.setdefault(event_type, []).append(callback)

    def unsubscribe(self, event_type: str, callback: Callable) -> None:
        callbacks = self.subscribers.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event_type: str, *args) -> None:
        """Emit an event to all subscribers. A failing callback does not stop the others."""
        for callback in list(self.subscribers.get(event_type, [])):
            try:
                callback(*args)
            except Exception:
                logger.exception(f"Error in {event_type} callback")
