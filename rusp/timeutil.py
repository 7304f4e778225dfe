"""Timers, timestamps and millisecond conversions."""

import datetime
import math
import threading
import time


class Timer:
    """A one-shot or periodic timer calling ``handler(*args)`` on expiry."""

    def __init__(self, handler, *args):
        self._handler = handler
        self._args = args
        self._lock = threading.Lock()
        self._pending = None
        self._deadline = None
        self._interval = 0.0

    def start(self, millis, interval_millis=0.0):
        """Arm the timer; a non-positive ``millis`` disarms it."""
        with self._lock:
            self._disarm()
            if millis <= 0:
                return
            self._interval = max(0.0, float(interval_millis))
            self._deadline = time.monotonic() + millis / 1000.0
            self._schedule(millis / 1000.0)

    def remaining(self):
        """Return ``(value_ms, interval_ms)`` still left on the timer."""
        with self._lock:
            if self._deadline is None:
                return (0.0, 0.0)
            value = max(0.0, (self._deadline - time.monotonic()) * 1000.0)
            return (value, self._interval)

    def is_disarmed(self):
        """Tell whether the timer is not armed."""
        with self._lock:
            return self._deadline is None

    def cancel(self):
        """Disarm the timer."""
        with self._lock:
            self._disarm()

    def _schedule(self, delay):
        pending = threading.Timer(delay, self._fire)
        pending.daemon = True
        self._pending = pending
        pending.start()

    def _disarm(self):
        if self._pending is not None:
            self._pending.cancel()
        self._pending = None
        self._deadline = None
        self._interval = 0.0

    def _fire(self):
        with self._lock:
            if self._pending is not threading.current_thread():
                return
            if self._interval > 0:
                self._deadline += self._interval / 1000.0
                self._schedule(max(0.0, self._deadline - time.monotonic()))
            else:
                self._pending = None
                self._deadline = None
        self._handler(*self._args)


def elapsed_ms(start, end):
    """Milliseconds between two ``timestamp()`` values."""
    return (end - start) / 1_000_000.0


def elapsed_now(start):
    """Milliseconds elapsed since a ``timestamp()`` value."""
    return elapsed_ms(start, timestamp())


def to_timespec(millis):
    """Split milliseconds into ``(seconds, nanoseconds)``."""
    return (int(math.floor(millis / 1000.0)), int(math.fmod(millis * 1_000_000.0, 1_000_000_000.0)))


def to_timeval(millis):
    """Split milliseconds into ``(seconds, microseconds)``."""
    return (int(math.floor(millis / 1000.0)), int(math.fmod(millis * 1000.0, 1_000_000.0)))


def timestamp():
    """Monotonic clock reading in nanoseconds."""
    return time.monotonic_ns()


def time_string():
    """Local wall-clock time as ``HH:MM:SS:micros``."""
    now = datetime.datetime.now()
    return f"{now:%H:%M:%S}:{now.microsecond}"