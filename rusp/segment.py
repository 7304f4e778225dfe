"""Protocol segments and their text wire format."""

import dataclasses
import enum
import re

from .addresses import address_to_string
from .seqn import MAX_SEQN
from .timeutil import time_string

HDRF = 4
HDRS = 28
PLDS = 1000
SGMS = HDRS + PLDS

_NUMBER = re.compile(r"\s*([+-]?\d+)")


class Ctrl(enum.IntFlag):
    """Control flags carried in a segment header."""

    NUL = 0
    SYN = 0b00000001
    FIN = 0b00000010
    RST = 0b00000100
    SACK = 0b00001000
    CACK = 0b00010000
    PSH = 0b00100000
    KLV = 0b01000000
    ERR = 0b10000000


def _atoi(field):
    match = _NUMBER.match(field.decode("latin-1"))
    return int(match.group(1)) if match else 0


@dataclasses.dataclass(frozen=True)
class Segment:
    """A segment: control flags, sequence and ack numbers, payload."""

    ctrl: Ctrl = Ctrl.NUL
    seqn: int = 0
    ackn: int = 0
    payload: bytes = b""

    def __post_init__(self):
        if len(self.payload) > PLDS:
            raise ValueError(f"Payload larger than {PLDS} bytes.")
        object.__setattr__(self, "ctrl", Ctrl(int(self.ctrl) & 0xFF))
        object.__setattr__(self, "payload", bytes(self.payload))

    @classmethod
    def create(cls, ctrl, seqn=0, ackn=0, payload=None, plds=None):
        """Build a segment, keeping at most ``plds`` (and ``PLDS``) payload bytes."""
        if payload is None:
            data = b""
        else:
            limit = len(payload) if plds is None else plds
            data = bytes(payload[: max(0, min(limit, PLDS))])
        return cls(ctrl, seqn, ackn, data)

    @property
    def plds(self):
        """Payload size."""
        return len(self.payload)

    def serialize(self):
        """Encode the segment for the wire."""
        header = f"{int(self.ctrl):03d}{self.plds:05d}{self.seqn:010d}{self.ackn:010d}"
        return header.encode("ascii") + self.payload

    @classmethod
    def deserialize(cls, data):
        """Decode a segment read from the wire."""
        data = bytes(data)
        if len(data) < HDRS:
            raise ValueError("Segment shorter than its header.")
        ctrl = _atoi(data[0:3]) & 0xFF
        plds = max(0, min(_atoi(data[3:8]), PLDS))
        seqn = _atoi(data[8:18]) % MAX_SEQN
        ackn = _atoi(data[18:28]) % MAX_SEQN
        return cls(Ctrl(ctrl), seqn, ackn, data[HDRS : HDRS + plds])

    def describe(self):
        """One-line human-readable form."""
        text = self.payload.decode("utf-8", errors="replace")
        return f"ctrl:{int(self.ctrl)} plds:{self.plds} seqn:{self.seqn} ackn:{self.ackn} {text}"


def print_in_segment(addr, segment):
    """Print a received segment."""
    print(f"[<- SGM] {time_string()} src: {address_to_string(addr)} {segment.describe()}")


def print_out_segment(addr, segment):
    """Print a sent segment."""
    print(f"[SGM ->] {time_string()} dst: {address_to_string(addr)} {segment.describe()}")