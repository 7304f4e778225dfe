"""Sequence number arithmetic."""

import math
import time

from .addresses import address_to_string
from .mathutil import md5_number, random_ul

MAX_SEQN = 4294967295
_WORD = 2**32


def next_seqn(seqn, plds):
    """Sequence number following ``seqn`` after ``plds`` units."""
    return ((seqn + plds) % _WORD) % MAX_SEQN


def lt_seqn(first, second):
    """Tell whether the modular distance from ``first`` to ``second`` is positive.

    On 32-bit unsigned arithmetic this is true whenever the two differ.
    """
    return (second - first) % _WORD > 0


def is_acked(seqn, plds, ackn):
    """Tell whether ``ackn`` acknowledges a segment at ``seqn`` of ``plds`` units."""
    return ackn == next_seqn(seqn, plds)


def match_sequence_against_window(base, end, seqn):
    """Locate ``seqn`` against the window: 0 inside, -1 before, 1 after."""
    if (base < end and base <= seqn < end) or (base > end and (seqn >= base or seqn < end)):
        return 0
    if (base - seqn) % _WORD <= MAX_SEQN // 2:
        return -1
    return 1


def random_sequence(laddr, paddr):
    """Choose an initial sequence number for a pair of endpoints."""
    now_ns = time.time_ns()
    micros = (now_ns // 1_000_000_000) * 1_000_000.0 + (now_ns % 1_000_000_000) / 1000.0
    total = (
        micros / 4.0
        + md5_number(address_to_string(laddr))
        + md5_number(address_to_string(paddr))
        + random_ul()
    )
    return int(math.fmod(total, MAX_SEQN))