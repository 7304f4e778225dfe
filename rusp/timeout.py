"""Retransmission timeout estimation from round-trip samples."""

import threading

EXTRTT_A = 0.875
EXTRTT_B = 0.125
DEVRTT_A = 0.75
DEVRTT_B = 0.25
TIMEO_A = 1
TIMEO_B = 4


class Timeout:
    """Smoothed RTT and deviation, giving a timeout in milliseconds."""

    def __init__(self, sample_rtt):
        self._lock = threading.Lock()
        self._ext_rtt = sample_rtt
        self._dev_rtt = 0.0
        self._value = sample_rtt

    @property
    def value(self):
        """Current timeout in milliseconds."""
        with self._lock:
            return self._value

    @property
    def ext_rtt(self):
        """Estimated round-trip time."""
        with self._lock:
            return self._ext_rtt

    @property
    def dev_rtt(self):
        """Round-trip time deviation."""
        with self._lock:
            return self._dev_rtt

    def update(self, sample_rtt):
        """Fold a new round-trip sample into the estimate."""
        with self._lock:
            self._ext_rtt = EXTRTT_A * self._ext_rtt + EXTRTT_B * sample_rtt
            self._dev_rtt = DEVRTT_A * self._dev_rtt + DEVRTT_B * abs(self._ext_rtt - sample_rtt)
            self._value = TIMEO_A * self._ext_rtt + TIMEO_B * self._dev_rtt