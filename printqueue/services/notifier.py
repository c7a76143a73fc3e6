import threading

from printqueue.common.logs import log_event

QUEUE_UPDATED = "print-queue-updated"


class Notifier:
    """
    Broadcasts QUEUE_UPDATED to whoever is subscribed. Delivery is advisory:
    a missing or failing subscriber never reaches the caller of publish().
    """

    def __init__(self):
        self._subscribers = []
        self._lock = threading.Lock()

    def subscribe(self, callback):
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, payload) -> int:
        with self._lock:
            subscribers = list(self._subscribers)

        delivered = 0
        for callback in subscribers:
            try:
                callback(QUEUE_UPDATED, payload)
                delivered += 1
            except Exception as e:
                log_event("notify_failed", subscriber=getattr(callback, "__name__", repr(callback)), error=str(e))
        return delivered
