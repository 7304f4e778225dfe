"""Bounded, thread-safe byte buffer between the user and the protocol."""

import threading

BUFFSIZE = 65535


class StringBuffer:
    """A bounded FIFO of bytes.

    Besides the stored size it tracks a *user size*: how many leading
    bytes have been released to the reader (for example after a push).
    """

    def __init__(self, capacity=BUFFSIZE):
        if capacity <= 0:
            raise ValueError("Buffer capacity must be positive.")
        self._capacity = capacity
        self._content = bytearray()
        self._user_size = 0
        self._cond = threading.Condition()
        self._insertions = 0
        self._removals = 0

    @property
    def capacity(self):
        """Maximum number of bytes the buffer holds."""
        return self._capacity

    @property
    def size(self):
        """Number of bytes stored."""
        with self._cond:
            return len(self._content)

    @property
    def user_size(self):
        """Number of bytes released to the reader."""
        with self._cond:
            return self._user_size

    def align_user_size(self):
        """Release every stored byte to the reader; return the new user size."""
        with self._cond:
            self._user_size = len(self._content)
            return self._user_size

    def look(self, size):
        """Return up to ``size`` leading bytes without removing them."""
        with self._cond:
            return bytes(self._content[: max(0, size)])

    def read(self, size):
        """Remove and return up to ``size`` leading bytes."""
        with self._cond:
            data = bytes(self._content[: max(0, size)])
            self._discard(len(data))
            return data

    def write(self, data):
        """Append as much of ``data`` as fits; return the number of bytes written."""
        data = bytes(data)
        with self._cond:
            written = min(len(data), self._capacity - len(self._content))
            if written > 0:
                self._content.extend(data[:written])
                self._insertions += 1
                self._cond.notify_all()
            return written

    def pop(self, size):
        """Drop up to ``size`` leading bytes; return how many were dropped."""
        with self._cond:
            popped = min(max(0, size), len(self._content))
            self._discard(popped)
            return popped

    def wait_look_max(self, size):
        """Block until the buffer holds data, then look at up to ``size`` bytes."""
        with self._cond:
            self._cond.wait_for(lambda: len(self._content) > 0)
            return bytes(self._content[: max(0, size)])

    def wait_insertion(self, timeout=None):
        """Wait up to ``timeout`` seconds for a write; tell whether one happened."""
        with self._cond:
            start = self._insertions
            return self._cond.wait_for(lambda: self._insertions != start, timeout)

    def wait_removal(self, timeout=None):
        """Wait up to ``timeout`` seconds for a removal; tell whether one happened."""
        with self._cond:
            start = self._removals
            return self._cond.wait_for(lambda: self._removals != start, timeout)

    def _discard(self, count):
        if count <= 0:
            return
        del self._content[:count]
        self._user_size = max(0, self._user_size - count)
        self._removals += 1
        self._cond.notify_all()