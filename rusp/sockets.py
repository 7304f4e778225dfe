"""UDP socket helpers."""

import select
import socket
import struct
import sys

from .timeutil import to_timeval

ON_READ = 0b01
ON_WRITE = 0b10


def open_socket():
    """Open an IPv4 UDP socket."""
    return socket.socket(socket.AF_INET, socket.SOCK_DGRAM)


def close_socket(sock):
    """Close a socket."""
    sock.close()


def bind_socket(sock, addr):
    """Bind a socket to an ``(ip, port)`` endpoint."""
    sock.bind(tuple(addr))


def write_unconnected(sock, addr, data):
    """Send a datagram to ``addr``; return the number of bytes sent."""
    data = bytes(data)
    sent = sock.sendto(data, tuple(addr))
    if sent != len(data):
        raise OSError(f"Cannot write unconnected socket: sent {sent} of {len(data)} bytes.")
    return sent


def read_unconnected(sock, size):
    """Receive a datagram; return ``(data, sender_address)``."""
    data, addr = sock.recvfrom(size)
    return data, addr


def write_connected(sock, data):
    """Send a datagram on a connected socket.

    Raises ConnectionRefusedError when the peer has gone away.
    """
    return sock.send(bytes(data))


def read_connected(sock, size):
    """Receive a datagram on a connected socket.

    Raises ConnectionRefusedError when the peer has gone away.
    """
    return sock.recv(size)


def select_socket(sock, millis):
    """Wait up to ``millis`` milliseconds; tell whether the socket is readable."""
    readable, _, _ = select.select([sock], [], [], max(0.0, millis) / 1000.0)
    return bool(readable)


def set_connected(sock, addr):
    """Fix the socket's peer to ``addr``."""
    sock.connect(tuple(addr))


def set_reusable(sock):
    """Allow the socket's local address to be reused."""
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)


def set_timeout(sock, mode, millis):
    """Set kernel read and/or write timeouts, ``mode`` being ON_READ | ON_WRITE."""
    if sys.platform == "win32":
        value = struct.pack("I", int(millis))
    else:
        value = struct.pack("ll", *to_timeval(millis))
    if mode & ON_READ:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVTIMEO, value)
    if mode & ON_WRITE:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_SNDTIMEO, value)


def socket_local(sock):
    """Local ``(ip, port)`` of the socket."""
    return sock.getsockname()


def socket_peer(sock):
    """Peer ``(ip, port)`` of a connected socket."""
    return sock.getpeername()