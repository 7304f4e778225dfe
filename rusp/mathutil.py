"""Random numbers and MD5-derived integers."""

import hashlib
import random
import time

ULONG_MAX = 2**64 - 1


def random_ul():
    """Return a pseudo-random unsigned long seeded by the current time."""
    now = time.time()
    seconds = int(now)
    micros = int((now - seconds) * 1_000_000)
    return (int(random.random() * seconds) + int(random.random() * micros)) % ULONG_MAX


def random_bit(onprob):
    """Return True with probability ``onprob``."""
    return random.random() < onprob


def md5_number(text):
    """Fold the MD5 digest of ``text`` into an unsigned long.

    The number is made of the leading decimal digit of every digest byte.
    """
    digest = hashlib.md5(text.encode()).digest()
    digits = "".join(str(byte)[0] for byte in digest)
    return int(digits) % ULONG_MAX