"""Change notification bus for persisted ledger state."""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class ChangeNotifier:
    """
    Broadcast of a payload-less "persisted state changed, re-read it" signal.

    Any number of listeners may subscribe. Listeners are called
    synchronously, outside the lock, in subscription order.
    """

    def __init__(self):
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> None:
        """Register a listener; subscribing twice has no effect."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        """Remove a listener if registered."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def notify(self) -> None:
        """Call every listener; a failing listener does not stop the rest."""
        with self._lock:
            listeners = self._listeners.copy()

        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception("Change listener %r failed", listener)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)
