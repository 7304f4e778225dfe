"""Thread-safe collection handing out increasing integer identifiers."""

import threading


class IdList:
    """Stores values under identifiers assigned in insertion order."""

    def __init__(self):
        self._lock = threading.Lock()
        self._items = {}
        self._next_id = 0

    def add(self, value):
        """Store ``value`` and return its new identifier."""
        with self._lock:
            ident = self._next_id
            self._items[ident] = value
            self._next_id += 1
            return ident

    def remove(self, ident):
        """Drop the value stored under ``ident``; unknown identifiers are ignored."""
        with self._lock:
            self._items.pop(ident, None)

    def get(self, ident):
        """Return the value stored under ``ident``, or None."""
        with self._lock:
            return self._items.get(ident)

    def __len__(self):
        with self._lock:
            return len(self._items)

    def __iter__(self):
        with self._lock:
            snapshot = list(self._items.values())
        return iter(snapshot)