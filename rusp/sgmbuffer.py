"""Thread-safe buffer of segments awaiting acknowledgement or delivery."""

import threading

from .segment import Ctrl
from .seqn import is_acked
from .timeutil import elapsed_now, timestamp

NACK = 0
YACK = 1


class BufferedSegment:
    """A buffered segment with its status, retransmission count and timing."""

    def __init__(self, segment, status=NACK):
        self.segment = segment
        self._lock = threading.Lock()
        self._status = status
        self._retrans = 0
        self._time = timestamp()
        self._delay = 0.0
        self._owner = None

    @property
    def status(self):
        """Acknowledgement status (``NACK`` or ``YACK``)."""
        with self._lock:
            return self._status

    @status.setter
    def status(self, value):
        with self._lock:
            self._status = value
            owner = self._owner
        if owner is not None:
            owner._note_status_change()

    @property
    def retrans(self):
        """Number of retransmissions."""
        with self._lock:
            return self._retrans

    @property
    def delay(self):
        """Extra delay, in milliseconds, granted before the next timeout."""
        with self._lock:
            return self._delay

    def elapsed(self):
        """Milliseconds since the segment was buffered or last updated."""
        with self._lock:
            return elapsed_now(self._time)

    def test_attributes(self, status, elapsed):
        """Tell whether the segment has ``status`` and has waited over ``elapsed`` ms."""
        with self._lock:
            return self._status == status and (elapsed_now(self._time) - self._delay) > elapsed

    def update_attributes(self, retrans_offset, delay):
        """Count retransmissions, restart the clock and set the delay."""
        with self._lock:
            self._retrans += retrans_offset
            self._time = timestamp()
            self._delay = delay


class SegmentBuffer:
    """An ordered, thread-safe collection of ``BufferedSegment`` items."""

    def __init__(self):
        self._items = []
        self._cond = threading.Condition()
        self._removals = 0
        self._status_changes = 0

    def add(self, segment, status=NACK):
        """Append a segment; return its buffered element."""
        elem = BufferedSegment(segment, status)
        with self._cond:
            elem._owner = self
            self._items.append(elem)
            self._cond.notify_all()
        return elem

    def remove(self, elem):
        """Remove ``elem`` if it is buffered here."""
        if elem is None:
            return
        with self._cond:
            for index, item in enumerate(self._items):
                if item is elem:
                    del self._items[index]
                    break
            else:
                return
            elem._owner = None
            self._removals += 1
            self._cond.notify_all()

    @property
    def head(self):
        """First buffered element, or None."""
        with self._cond:
            return self._items[0] if self._items else None

    def __len__(self):
        with self._cond:
            return len(self._items)

    def __iter__(self):
        with self._cond:
            snapshot = list(self._items)
        return iter(snapshot)

    def clear(self):
        """Remove every element."""
        with self._cond:
            for item in self._items:
                item._owner = None
            if self._items:
                self._items.clear()
                self._removals += 1
                self._cond.notify_all()

    def wait_empty(self):
        """Block until the buffer is empty."""
        with self._cond:
            self._cond.wait_for(lambda: not self._items)

    def wait_strategic_insertion(self):
        """Block until the buffer holds something and an element's status then changes."""
        with self._cond:
            self._cond.wait_for(lambda: bool(self._items))
            start = self._status_changes
            self._cond.wait_for(lambda: self._status_changes != start)

    def wait_removal(self, timeout=None):
        """Wait up to ``timeout`` seconds for a removal; tell whether one happened."""
        with self._cond:
            start = self._removals
            return self._cond.wait_for(lambda: self._removals != start, timeout)

    def find_seqn(self, seqn):
        """First element whose segment starts at ``seqn``, or None."""
        with self._cond:
            return next((item for item in self._items if item.segment.seqn == seqn), None)

    def find_ackn(self, ackn):
        """First element acknowledged by ``ackn``, or None."""
        with self._cond:
            for item in self._items:
                sgm = item.segment
                if is_acked(sgm.seqn, sgm.plds, ackn) or (
                    sgm.ctrl & Ctrl.FIN and is_acked(sgm.seqn, 1, ackn)
                ):
                    return item
            return None

    def _note_status_change(self):
        with self._cond:
            self._status_changes += 1
            self._cond.notify_all()