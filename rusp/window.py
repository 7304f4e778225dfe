"""Thread-safe sliding window over sequence numbers."""

import threading

from .seqn import match_sequence_against_window, next_seqn

_WORD = 2**32


class Window:
    """A sliding window with base, end and next-to-send positions."""

    def __init__(self, base, end):
        self._cond = threading.Condition()
        self._base = base
        self._end = end
        self._next = base

    @property
    def base(self):
        with self._cond:
            return self._base

    @property
    def end(self):
        with self._cond:
            return self._end

    @property
    def next(self):
        with self._cond:
            return self._next

    @property
    def space(self):
        """Room left between the next position and the end."""
        with self._cond:
            return (self._end - self._next) % _WORD

    def slide(self, offset):
        """Advance base and end by ``offset`` and wake waiters."""
        with self._cond:
            self._base = next_seqn(self._base, offset)
            self._end = next_seqn(self._end, offset)
            self._cond.notify_all()

    def slide_next(self, offset):
        """Advance the next position by ``offset``."""
        with self._cond:
            self._next = next_seqn(self._next, offset)

    def match(self, value):
        """Locate ``value`` against the window: 0 inside, -1 before, 1 after."""
        with self._cond:
            return match_sequence_against_window(self._base, self._end, value)

    def wait_space(self, space):
        """Block until at least ``space`` units are free."""
        with self._cond:
            self._cond.wait_for(lambda: (self._end - self._next) % _WORD >= space)