"""
keyed publish/subscribe.
listeners are plain callables, dispatch is synchronous.
"""

import logging
from typing import Any, Callable, Dict, Generic, Hashable, TypeVar

logger = logging.getLogger("linkbubble.events")

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

Listener = Callable[[V], Any]


class EventBus(Generic[K, V]):
    """
    per-topic listener sets kept in registration order.
    dispatch walks a snapshot, so listeners may unsubscribe mid-dispatch.
    """

    def __init__(self):
        # dict keys double as an ordered set
        self._listeners: Dict[K, Dict[Listener, None]] = {}

    def on(self, topic: K, listener: Listener):
        """register listener for topic."""
        self._listeners.setdefault(topic, {})[listener] = None

    def off(self, topic: K, listener: Listener):
        """remove listener for topic; unknown listeners are ignored."""
        listeners = self._listeners.get(topic)
        if not listeners:
            return
        listeners.pop(listener, None)
        if not listeners:
            del self._listeners[topic]

    def dispatch(self, topic: K, value: V):
        """call every listener of topic with value."""
        listeners = self._listeners.get(topic)
        if not listeners:
            return
        for listener in list(listeners):
            try:
                listener(value)
            except Exception as e:
                logger.exception(f"[events] listener for {topic!r} failed: {e}")

    def listener_count(self, topic: K) -> int:
        return len(self._listeners.get(topic, ()))

    def clear(self):
        self._listeners.clear()
