"""Reliable connections over UDP: handshake, sliding windows, retransmission, teardown."""

import dataclasses
import enum
import threading
import time

from .mathutil import random_bit
from .pool import IdList
from .segment import PLDS, SGMS, Ctrl, Segment, print_in_segment, print_out_segment
from .seqn import lt_seqn, next_seqn
from .sgmbuffer import NACK, YACK, SegmentBuffer
from .sockets import (
    bind_socket,
    close_socket,
    open_socket,
    read_connected,
    read_unconnected,
    select_socket,
    set_connected,
    set_reusable,
    write_connected,
    write_unconnected,
)
from .strbuffer import StringBuffer
from .timeout import Timeout
from .timeutil import elapsed_ms, elapsed_now, timestamp
from .window import Window

SYN_RETR = 5
RETR = 3
WNDS = 4
SAMPLRTT = 1000
MSLTIMEO = 60000
TIMEWTTM = 2 * MSLTIMEO

_WORD = 2**32
_SENDER_POLL = 0.005
_INSERTION_POLL = 0.1


class State(enum.IntEnum):
    """Connection states."""

    CLOSED = 0
    LISTEN = 1
    SYNSND = 2
    SYNRCV = 3
    ESTABL = 4
    FINWT1 = 5
    FINWT2 = 6
    CLOSIN = 7
    CLOSWT = 8
    TIMEWT = 9
    LSTACK = 10


@dataclasses.dataclass
class Settings:
    """Process-wide protocol settings: debug output, drop rate, time-wait length (ms)."""

    debug: bool = False
    drop: float = 0.0
    time_wait: float = TIMEWTTM


SETTINGS = Settings()

_POOL = IdList()


def _debug(message):
    if SETTINGS.debug:
        print(message)


class Connection:
    """One endpoint of a connection, registered in the process-wide pool."""

    def __init__(self):
        self._state = State.CLOSED
        self._state_lock = threading.Lock()
        self._sock_lock = threading.Lock()
        self._stop_sender = threading.Event()
        self._sender = None
        self._receiver = None
        self.sock = None
        self.peer = None
        self.timeout = None
        self.snd_window = None
        self.snd_user_buffer = None
        self.snd_segment_buffer = None
        self.rcv_window = None
        self.rcv_user_buffer = None
        self.rcv_segment_buffer = None
        # Wait (TIMEWTTM microseconds per round) until no connection lingers in time-wait.
        while any(conn.state == State.TIMEWT for conn in _POOL):
            time.sleep(TIMEWTTM / 1_000_000)
        self.connid = _POOL.add(self)

    @property
    def state(self):
        """Current connection state."""
        with self._state_lock:
            return self._state

    @state.setter
    def state(self, value):
        with self._state_lock:
            _debug(f"STATE: {self._state.name} -> {State(value).name}")
            self._state = State(value)

    def setup(self, sock, peer, snd_base, rcv_base, sample_rtt):
        """Attach a socket connected to ``peer`` and start the protocol threads."""
        self.sock = sock
        set_connected(sock, peer)
        self.peer = tuple(peer)
        self.timeout = Timeout(sample_rtt)
        span = PLDS * WNDS
        self.snd_window = Window(snd_base, (snd_base + span) % _WORD)
        self.rcv_window = Window(rcv_base, (rcv_base + span) % _WORD)
        self.snd_user_buffer = StringBuffer()
        self.rcv_user_buffer = StringBuffer()
        self.snd_segment_buffer = SegmentBuffer()
        self.rcv_segment_buffer = SegmentBuffer()
        self._stop_sender.clear()
        self.state = State.ESTABL
        self._sender = threading.Thread(target=self._sender_loop, daemon=True)
        self._receiver = threading.Thread(target=self._receiver_loop, daemon=True)
        self._sender.start()
        self._receiver.start()

    def listen(self, laddr):
        """Bind to ``laddr`` and become a listening connection."""
        if self.state != State.CLOSED:
            raise RuntimeError("Cannot setup listening connection: connection not closed.")
        self.sock = open_socket()
        set_reusable(self.sock)
        bind_socket(self.sock, laddr)
        self.state = State.LISTEN

    def active_open(self, addr):
        """Run the three-way handshake towards ``addr``; return the connection id.

        Raises TimeoutError when the peer never answers correctly.
        """
        if self.state != State.CLOSED:
            raise RuntimeError("Cannot synchronize connection: connection not closed.")
        asock = open_socket()
        syn = Segment.create(Ctrl.SYN)
        wire = syn.serialize()
        for _ in range(SYN_RETR):
            start = timestamp()
            write_unconnected(asock, addr, wire)
            if SETTINGS.debug:
                print_out_segment(addr, syn)
            self.state = State.SYNSND
            if not select_socket(asock, SAMPLRTT):
                continue
            try:
                reply, aaddr = read_unconnected(asock, SGMS)
            except ConnectionError:
                continue
            sample_rtt = elapsed_ms(start, timestamp())
            try:
                synack = Segment.deserialize(reply)
            except ValueError:
                continue
            if SETTINGS.debug:
                print_in_segment(aaddr, synack)
            if synack.ctrl == Ctrl.SYN | Ctrl.SACK and synack.ackn == next_seqn(syn.seqn, 1):
                self.state = State.SYNRCV
                ack = Segment.create(Ctrl.SACK, next_seqn(syn.seqn, 1), next_seqn(synack.seqn, 1))
                write_unconnected(asock, aaddr, ack.serialize())
                if SETTINGS.debug:
                    print_out_segment(aaddr, ack)
                self.setup(asock, aaddr, ack.seqn, ack.ackn, sample_rtt)
                return self.connid
        close_socket(asock)
        self.state = State.CLOSED
        raise TimeoutError("Cannot synchronize connection: no valid answer from peer.")

    def passive_open(self):
        """Wait for a peer's handshake on this listening connection; return the new connection id."""
        while self.state == State.LISTEN:
            data, caddr = read_unconnected(self.sock, SGMS)
            try:
                syn = Segment.deserialize(data)
            except ValueError:
                continue
            if SETTINGS.debug:
                print_in_segment(caddr, syn)
            if syn.ctrl != Ctrl.SYN:
                continue
            self.state = State.SYNRCV
            asock = open_socket()
            synack = Segment.create(Ctrl.SYN | Ctrl.SACK, 10, next_seqn(syn.seqn, 1))
            wire = synack.serialize()
            for _ in range(RETR):
                start = timestamp()
                write_unconnected(asock, caddr, wire)
                if SETTINGS.debug:
                    print_out_segment(caddr, synack)
                self.state = State.SYNSND
                if not select_socket(asock, SAMPLRTT):
                    continue
                try:
                    reply, caddr = read_unconnected(asock, SGMS)
                except ConnectionError:
                    continue
                sample_rtt = elapsed_ms(start, timestamp())
                try:
                    ack = Segment.deserialize(reply)
                except ValueError:
                    continue
                if SETTINGS.debug:
                    print_in_segment(caddr, ack)
                if (
                    ack.ctrl == Ctrl.SACK
                    and ack.seqn == synack.ackn
                    and ack.ackn == next_seqn(synack.seqn, 1)
                ):
                    accepted = Connection()
                    accepted.state = State.SYNSND
                    accepted.setup(asock, caddr, ack.ackn, ack.seqn, sample_rtt)
                    self.state = State.LISTEN
                    return accepted.connid
            close_socket(asock)
            self.state = State.LISTEN
        raise ConnectionError("Connection is not listening.")

    def active_close(self):
        """Start the teardown; return once the peer's FIN has been received."""
        self._send_fin(State.FINWT1)
        self._receiver.join()

    def passive_close(self):
        """Answer the peer's teardown, wait for the last ack and destroy the connection."""
        self._send_fin(State.LSTACK)
        self._receiver.join()
        self.destroy()

    def destroy(self):
        """Release the socket and buffers and drop the connection from the pool."""
        self._stop_sender.set()
        if self.sock is not None:
            close_socket(self.sock)
        for buffer in (self.snd_segment_buffer, self.rcv_segment_buffer):
            if buffer is not None:
                buffer.clear()
        _POOL.remove(self.connid)

    # Threads

    def _sender_loop(self):
        buffer = self.snd_user_buffer
        while not self._stop_sender.is_set():
            if buffer.size == 0:
                buffer.wait_insertion(_INSERTION_POLL)
                continue
            payload = buffer.look(PLDS)
            ctrl = Ctrl.PSH if buffer.size == len(payload) else Ctrl.NUL
            segment = Segment.create(ctrl, self.snd_window.next, 0, payload)
            while self.snd_window.space < segment.plds:
                if self._stop_sender.wait(_SENDER_POLL):
                    return
            self.snd_segment_buffer.add(segment, NACK)
            self._send_segment(segment)
            self.snd_window.slide_next(segment.plds)
            self._log_snd("SND (NXT)")
            buffer.pop(segment.plds)

    def _receiver_loop(self):
        while True:
            try:
                segment = self._receive_segment()
            except ConnectionError:
                self.state = State.CLOSED
                return
            if segment is None:
                if len(self.snd_segment_buffer) > 0:
                    self._retransmit()
                continue
            if segment.ctrl & Ctrl.SACK:
                self._submit_sack(segment.ackn)
            elif segment.ctrl & Ctrl.CACK:
                self._submit_cack(segment.ackn)
            if segment.plds > 0:
                last = (segment.seqn + segment.plds - 1) % _WORD
            else:
                last = segment.seqn
            pure_ack = segment.ctrl in (Ctrl.SACK, Ctrl.CACK) and segment.plds == 0
            position = self.rcv_window.match(last)
            if position == 0:
                self._log_rcv("INSIDE RCVWND")
                if not pure_ack:
                    units = 1 if segment.ctrl & Ctrl.FIN else segment.plds
                    self._send_ack(Ctrl.SACK, next_seqn(segment.seqn, units))
                if segment.seqn == self.rcv_window.base:
                    _debug(f"IS RCVWNDB: {segment.seqn}")
                    if self._process_window_base(segment):
                        return
                    while (elem := self.rcv_segment_buffer.find_seqn(self.rcv_window.base)) is not None:
                        buffered = elem.segment
                        self.rcv_segment_buffer.remove(elem)
                        if self._process_window_base(buffered):
                            return
                elif not pure_ack and self.rcv_segment_buffer.find_seqn(segment.seqn) is None:
                    _debug(f"BUFFERIZED: {segment.seqn}")
                    self.rcv_segment_buffer.add(segment, NACK)
                else:
                    _debug(f"NOT BUFFERIZED: {segment.seqn}")
            elif position == -1:
                self._log_rcv("BEFORE RCVWND")
                if not pure_ack:
                    self._send_ack(Ctrl.CACK, self.rcv_window.base)
            else:
                self._log_rcv("OUTSIDE RCVWND")

    def _time_wait(self):
        start = timestamp()
        while elapsed_now(start) < SETTINGS.time_wait:
            try:
                segment = self._receive_segment()
            except ConnectionError:
                break
            if segment is None:
                continue
            if self.rcv_window.match(segment.seqn) == 0 and segment.ctrl & Ctrl.FIN:
                self._send_ack(Ctrl.SACK, next_seqn(segment.seqn, 1))
        self.state = State.CLOSED
        self.destroy()

    def _start_time_wait(self):
        threading.Thread(target=self._time_wait, daemon=True).start()

    # Protocol steps

    def _send_fin(self, state):
        if self._sender is None or self._receiver is None:
            raise RuntimeError("Cannot close connection: connection not established.")
        self._stop_sender.set()
        self._sender.join()
        fin = Segment.create(Ctrl.FIN, self.snd_window.next)
        self.snd_segment_buffer.add(fin, NACK)
        self.state = state
        # Advance before sending so that a fast acknowledgement already matches.
        self.snd_window.slide_next(1)
        self._send_segment(fin)
        self._log_snd("SND (NXT)")

    def _retransmit(self):
        _debug("RETRANSMISSION")
        for elem in self.snd_segment_buffer:
            if elem.test_attributes(NACK, self.timeout.value):
                elem.update_attributes(1, self.timeout.value)
                self._send_segment(elem.segment)
        _debug("END OF RETRANSMISSION")

    def _process_window_base(self, segment):
        """Apply an in-order segment; tell whether the receiver thread must stop."""
        state = self.state
        ctrl = segment.ctrl
        if state == State.ESTABL:
            if segment.plds != 0:
                self.rcv_user_buffer.write(segment.payload)
                self.rcv_window.slide(segment.plds)
                self._log_rcv("RCV (WND)")
            if ctrl & Ctrl.PSH:
                self.rcv_user_buffer.align_user_size()
            if ctrl & Ctrl.FIN:
                self.rcv_user_buffer.align_user_size()
                self.state = State.CLOSWT
                self.rcv_window.slide(1)
                self._log_rcv("RCV (WND)")
        elif state == State.LSTACK:
            if ctrl & Ctrl.SACK and segment.ackn == self.snd_window.next:
                self.state = State.CLOSED
                return True
        elif state == State.FINWT1:
            nxt = self.snd_window.next
            if ctrl & Ctrl.SACK and segment.ackn == nxt:
                self.state = State.FINWT2
            elif ctrl & (Ctrl.FIN | Ctrl.SACK) and segment.ackn != nxt:
                self.state = State.CLOSIN
                self.rcv_window.slide(1)
                self._log_rcv("RCV (WND)")
            elif ctrl & (Ctrl.FIN | Ctrl.SACK) and segment.ackn == nxt:
                self.state = State.TIMEWT
                self.rcv_window.slide(1)
                self._log_rcv("RCV (WND)")
                self._start_time_wait()
                return True
        elif state == State.FINWT2:
            if ctrl & Ctrl.FIN:
                self.state = State.TIMEWT
                self.rcv_window.slide(1)
                self._log_rcv("RCV (WND)")
                self._start_time_wait()
                return True
        elif state == State.CLOSIN:
            if ctrl & Ctrl.SACK and segment.ackn == self.snd_window.next:
                self.state = State.TIMEWT
                self._start_time_wait()
                return True
        return False

    def _submit_sack(self, ackn):
        acked = self.snd_segment_buffer.find_ackn(ackn)
        if acked is None:
            return
        acked.status = YACK
        _debug(f"SACKED: {acked.segment.seqn}")
        if acked.segment.seqn != self.snd_window.base:
            return
        sample_rtt = acked.elapsed()
        while (head := self.snd_segment_buffer.head) is not None and head.status == YACK:
            sgm = head.segment
            self.snd_segment_buffer.remove(head)
            self.snd_window.slide(1 if sgm.ctrl & Ctrl.FIN else sgm.plds)
            self._log_snd("SND (WND)")
        self.timeout.update(sample_rtt)

    def _submit_cack(self, ackn):
        while (head := self.snd_segment_buffer.head) is not None:
            sgm = head.segment
            if not lt_seqn(sgm.seqn, ackn):
                break
            head.status = YACK
            _debug(f"CACKED: {sgm.seqn}")
            self.snd_segment_buffer.remove(head)
            self.snd_window.slide(1 if sgm.ctrl & Ctrl.FIN else sgm.plds)
            self._log_snd("SND (WND)")

    def _send_ack(self, kind, ackn):
        self._send_segment(Segment.create(kind, self.snd_window.next, ackn))

    # Segment I/O

    def _send_segment(self, segment):
        """Send a segment, piggy-backing an ack; tell whether it went out."""
        if not segment.ctrl & (Ctrl.SACK | Ctrl.CACK):
            segment = dataclasses.replace(
                segment, ctrl=segment.ctrl | Ctrl.SACK, ackn=self.rcv_window.base
            )
        wire = segment.serialize()
        with self._sock_lock:
            try:
                write_connected(self.sock, wire)
            except (OSError, ValueError):
                _debug("Cannot write connected socket: peer disconnected.")
                return False
        if SETTINGS.debug:
            print_out_segment(self.peer, segment)
        return True

    def _receive_segment(self):
        """Next segment, or None on timeout or drop; ConnectionError when the peer is gone."""
        try:
            if not select_socket(self.sock, self.timeout.value):
                return None
            with self._sock_lock:
                data = read_connected(self.sock, SGMS)
        except (OSError, ValueError) as exc:
            _debug("Cannot read connected socket: peer disconnected.")
            raise ConnectionError("Cannot read connected socket: peer disconnected.") from exc
        try:
            segment = Segment.deserialize(data)
        except ValueError:
            return None
        if random_bit(SETTINGS.drop):
            _debug(f"SEGMENT DROPPED: {segment.describe()}")
            return None
        if SETTINGS.debug:
            print_in_segment(self.peer, segment)
        return segment

    # Debug output

    def _log_snd(self, label):
        if SETTINGS.debug:
            wnd = self.snd_window
            print(
                f"{label}: base:{wnd.base} nxt:{wnd.next} end:{wnd.end} "
                f"SNDUSRBUFF:{self.snd_user_buffer.size} SNDSGMBUFF:{len(self.snd_segment_buffer)}"
            )

    def _log_rcv(self, label):
        if SETTINGS.debug:
            wnd = self.rcv_window
            print(
                f"{label}: base:{wnd.base} end:{wnd.end} "
                f"RCVUSRBUFF:{self.rcv_user_buffer.size} RCVSGMBUFF:{len(self.rcv_segment_buffer)}"
            )


def get_connection(connid):
    """Return the pooled connection with id ``connid``, or None."""
    return _POOL.get(connid)