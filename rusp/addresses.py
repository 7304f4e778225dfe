"""IPv4 endpoint helpers working on ``(ip, port)`` tuples."""

import ipaddress

ANY_ADDRESS = "0.0.0.0"


def create_address(ip, port):
    """Build an ``(ip, port)`` endpoint; ``ip`` of None means any interface."""
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"Error in address to-network translation: {ip}:{port}.")
    if ip is None:
        return (ANY_ADDRESS, port)
    try:
        host = str(ipaddress.IPv4Address(ip))
    except ValueError as exc:
        raise ValueError(f"Error in address to-network translation: {ip}:{port}.") from exc
    return (host, port)


def is_equal_address(first, second):
    """Tell whether two endpoints have the same host and port."""
    return tuple(first[:2]) == tuple(second[:2])


def address_to_string(addr):
    """Render an endpoint as ``ip:port``."""
    ip, port = addr[0], addr[1]
    try:
        host = str(ipaddress.IPv4Address(ip))
    except ValueError as exc:
        raise ValueError("Cannot get address string representation.") from exc
    return f"{host}:{int(port)}"