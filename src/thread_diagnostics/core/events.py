"""Property change notification for diagnostics observers.

A UI panel (or any other listener) subscribes a callback and re-reads the
collection it cares about when notified. Callbacks run synchronously on
the thread that caused the change.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass

from thread_diagnostics.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PropertyChangedEvent:
    """Signals that the named property of ``source`` changed."""

    property_name: str
    source: object | None = None


ChangeCallback = Callable[[PropertyChangedEvent], None]


class ChangeNotifier:
    """Registry of change callbacks.

    Subscribing and unsubscribing are safe from any thread. Notification
    iterates over a copy of the callbacks, so a callback may unsubscribe
    itself or trigger further notifications.
    """

    def __init__(self, source: object | None = None) -> None:
        self._source = source
        self._callbacks: list[ChangeCallback] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: ChangeCallback) -> None:
        """Register ``callback``. Registering the same callback twice is a no-op."""
        with self._lock:
            if callback not in self._callbacks:
                self._callbacks.append(callback)

    def unsubscribe(self, callback: ChangeCallback) -> None:
        """Remove ``callback`` if registered."""
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._callbacks)

    def notify(self, property_name: str) -> None:
        """Invoke every callback with a PropertyChangedEvent.

        A failing callback is logged and does not stop the others.
        """
        with self._lock:
            callbacks = list(self._callbacks)

        event = PropertyChangedEvent(property_name, self._source)
        for callback in callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception("Change observer failed", property_name=property_name)
