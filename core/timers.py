# core/timers.py
import logging
import threading

logger = logging.getLogger(__name__)


class TimerRegistry:
    """
    Keyed, cancellable one-shot timers.

    Scheduling a key that already has a pending timer replaces it, so a key
    never has more than one callback in flight.
    """

    def __init__(self, timer_factory=threading.Timer):
        self._timer_factory = timer_factory
        self._timers = {}
        self._lock = threading.Lock()

    def schedule(self, key, delay_seconds, callback, *args):
        def _fire():
            with self._lock:
                if self._timers.get(key) is not timer:
                    return
                del self._timers[key]
            try:
                callback(*args)
            except Exception:
                logger.exception(f"Timer callback for {key!r} failed")

        timer = self._timer_factory(delay_seconds, _fire)
        timer.daemon = True
        with self._lock:
            previous = self._timers.pop(key, None)
            self._timers[key] = timer
        if previous is not None:
            previous.cancel()
        timer.start()
        return timer

    def cancel(self, key):
        with self._lock:
            timer = self._timers.pop(key, None)
        if timer is None:
            return False
        timer.cancel()
        return True

    def cancel_all(self):
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    def pending(self, key):
        with self._lock:
            return key in self._timers

    def __len__(self):
        with self._lock:
            return len(self._timers)
