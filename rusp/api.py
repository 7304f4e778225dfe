"""Application interface: connection ids, sending, receiving and settings."""

import enum

from .addresses import create_address
from .connection import SETTINGS, Connection, State, get_connection
from .sockets import socket_local, socket_peer


class Attr(enum.IntEnum):
    """Process-wide attributes readable and writable through the interface."""

    DEBUG = 1
    DROPR = 2


def _lookup(connid):
    conn = get_connection(connid)
    if conn is None:
        raise LookupError(f"Cannot retrieve connection: {connid}.")
    return conn


def _wait_seconds(conn):
    return conn.timeout.value / 1000.0


def listen(port):
    """Open a listening connection on ``port``; return its id."""
    laddr = create_address(None, port)
    conn = Connection()
    try:
        conn.listen(laddr)
    except BaseException:
        conn.destroy()
        raise
    return conn.connid


def accept(lconnid):
    """Wait for a peer on a listening connection; return the new connection id."""
    return _lookup(lconnid).passive_open()


def connect(ip, port):
    """Connect to ``ip:port``; return the connection id.

    Raises TimeoutError when the handshake fails.
    """
    addr = create_address(ip, port)
    conn = Connection()
    try:
        return conn.active_open(addr)
    except BaseException:
        conn.destroy()
        raise


def close(connid):
    """Close a connection in the way its current state calls for."""
    conn = _lookup(connid)
    state = conn.state
    if state == State.LISTEN:
        conn.state = State.CLOSED
        conn.destroy()
    elif state == State.ESTABL:
        conn.active_close()
    elif state == State.CLOSWT:
        conn.passive_close()
    elif state == State.CLOSED:
        conn.destroy()
    else:
        raise RuntimeError(f"Cannot handle connection close: {connid}.")


def send(connid, data):
    """Send ``data`` and wait until it is acknowledged; return the bytes accepted.

    Returns 0 when the connection is not, or stops being, established.
    """
    conn = _lookup(connid)
    data = bytes(data)
    if conn.state != State.ESTABL:
        return 0
    wait = _wait_seconds(conn)
    user_buffer = conn.snd_user_buffer
    needed = min(len(data), user_buffer.capacity)
    while user_buffer.capacity - user_buffer.size < needed:
        if conn.state != State.ESTABL:
            return 0
        user_buffer.wait_removal(wait)
    sent = user_buffer.write(data)
    segment_buffer = conn.snd_segment_buffer
    while user_buffer.size > 0 or len(segment_buffer) > 0:
        if conn.state != State.ESTABL:
            return 0
        segment_buffer.wait_removal(wait)
    return sent


def receive(connid, size):
    """Return up to ``size`` delivered bytes; empty once the connection is not established."""
    conn = _lookup(connid)
    if conn.state != State.ESTABL:
        return b""
    wait = _wait_seconds(conn)
    user_buffer = conn.rcv_user_buffer
    while user_buffer.user_size == 0:
        if conn.state != State.ESTABL:
            return b""
        user_buffer.wait_insertion(wait)
    return user_buffer.read(min(size, user_buffer.user_size))


def local_address(connid):
    """Local ``(ip, port)`` of a connection."""
    return socket_local(_lookup(connid).sock)


def peer_address(connid):
    """Peer ``(ip, port)`` of a connection."""
    return socket_peer(_lookup(connid).sock)


def get_attr(attr):
    """Read an attribute: debug flag as 0/1, or drop rate."""
    attr = Attr(attr)
    if attr is Attr.DEBUG:
        return int(SETTINGS.debug)
    return SETTINGS.drop


def set_attr(attr, value):
    """Write an attribute: debug flag or drop rate."""
    attr = Attr(attr)
    if attr is Attr.DEBUG:
        SETTINGS.debug = bool(value)
    else:
        SETTINGS.drop = float(value)