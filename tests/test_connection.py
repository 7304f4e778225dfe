import dataclasses
import socket
import threading
import time

import pytest

from rusp.addresses import create_address
from rusp.connection import (
    SETTINGS,
    SYN_RETR,
    Connection,
    State,
    get_connection,
)
from rusp.segment import SGMS, Ctrl, Segment
from rusp.sockets import socket_local


@pytest.fixture(autouse=True)
def settings():
    saved = dataclasses.replace(SETTINGS)
    SETTINGS.time_wait = 200
    yield SETTINGS
    SETTINGS.debug = saved.debug
    SETTINGS.drop = saved.drop
    SETTINGS.time_wait = saved.time_wait


def _wait_until(predicate, timeout=10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _listener():
    conn = Connection()
    conn.listen(create_address("127.0.0.1", 0))
    return conn, socket_local(conn.sock)


def _accept_in_thread(listener):
    result = {}

    def run():
        result["connid"] = listener.passive_open()

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return thread, result


def _cleanup(*conns):
    for conn in conns:
        if conn is not None and get_connection(conn.connid) is conn:
            conn.destroy()


@pytest.fixture
def pair():
    listener, addr = _listener()
    thread, result = _accept_in_thread(listener)
    client = Connection()
    client.active_open(addr)
    thread.join(10)
    server = get_connection(result["connid"])
    yield client, server
    _cleanup(client, server, listener)


def test_new_connection_is_closed_and_registered():
    conn = Connection()
    assert conn.state == State.CLOSED
    assert get_connection(conn.connid) is conn
    conn.destroy()
    assert get_connection(conn.connid) is None


def test_connection_ids_increase():
    first = Connection()
    second = Connection()
    try:
        assert second.connid > first.connid
    finally:
        _cleanup(first, second)


def test_listen_changes_state_and_binds():
    conn, addr = _listener()
    try:
        assert conn.state == State.LISTEN
        assert addr[0] == "127.0.0.1"
        assert addr[1] > 0
    finally:
        _cleanup(conn)


def test_listen_twice_raises():
    conn, _ = _listener()
    try:
        with pytest.raises(RuntimeError):
            conn.listen(create_address("127.0.0.1", 0))
    finally:
        _cleanup(conn)


def test_active_open_requires_closed_connection():
    conn, addr = _listener()
    try:
        with pytest.raises(RuntimeError):
            conn.active_open(addr)
    finally:
        _cleanup(conn)


def test_passive_open_requires_listening_connection():
    conn = Connection()
    try:
        with pytest.raises(ConnectionError):
            conn.passive_open()
    finally:
        _cleanup(conn)


def test_close_requires_established_connection():
    conn = Connection()
    try:
        with pytest.raises(RuntimeError):
            conn.active_close()
    finally:
        _cleanup(conn)


def test_state_change_is_printed_in_debug_mode(capsys, settings):
    conn = Connection()
    try:
        settings.debug = True
        conn.state = State.LISTEN
        settings.debug = False
        assert "STATE: CLOSED -> LISTEN" in capsys.readouterr().out
        assert conn.state == State.LISTEN
    finally:
        _cleanup(conn)


def test_active_open_gives_up_after_wrong_answers():
    fake = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    fake.bind(("127.0.0.1", 0))
    fake.settimeout(5)
    received = []

    def answer():
        for _ in range(SYN_RETR):
            data, addr = fake.recvfrom(SGMS)
            received.append(data)
            fake.sendto(Segment.create(Ctrl.SYN | Ctrl.SACK, 0, 999).serialize(), addr)

    responder = threading.Thread(target=answer, daemon=True)
    responder.start()
    conn = Connection()
    try:
        with pytest.raises(TimeoutError):
            conn.active_open(fake.getsockname())
        responder.join(10)
        assert conn.state == State.CLOSED
        assert len(received) == SYN_RETR
        assert all(data == b"0010000000000000000000000000" for data in received)
    finally:
        fake.close()
        _cleanup(conn)


def test_passive_open_handshake_with_raw_client():
    listener, addr = _listener()
    thread, result = _accept_in_thread(listener)
    raw = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    raw.settimeout(5)
    accepted = None
    try:
        raw.sendto(Segment.create(Ctrl.SYN).serialize(), addr)
        data, server_addr = raw.recvfrom(SGMS)
        synack = Segment.deserialize(data)
        assert synack.ctrl == Ctrl.SYN | Ctrl.SACK
        assert synack.seqn == 10
        assert synack.ackn == 1
        raw.sendto(Segment.create(Ctrl.SACK, 1, 11).serialize(), server_addr)
        thread.join(10)
        accepted = get_connection(result["connid"])
        assert accepted.state == State.ESTABL
        assert accepted.snd_window.base == 11
        assert accepted.rcv_window.base == 1
        assert listener.state == State.LISTEN
    finally:
        raw.close()
        _cleanup(accepted, listener)


def test_handshake_sets_matching_windows(pair):
    client, server = pair
    assert client.state == State.ESTABL
    assert server.state == State.ESTABL
    assert client.snd_window.base == server.rcv_window.base
    assert client.rcv_window.base == server.snd_window.base


def test_small_message_is_delivered(pair):
    client, server = pair
    assert client.snd_user_buffer.write(b"hello") == 5
    assert _wait_until(lambda: server.rcv_user_buffer.user_size == 5)
    assert server.rcv_user_buffer.read(5) == b"hello"
    assert _wait_until(lambda: len(client.snd_segment_buffer) == 0)
    assert client.snd_window.base == client.snd_window.next


def test_multi_segment_message_is_delivered_in_order(pair):
    client, server = pair
    payload = bytes(range(256)) * 12
    assert client.snd_user_buffer.write(payload) == len(payload)
    assert _wait_until(lambda: server.rcv_user_buffer.user_size == len(payload))
    assert server.rcv_user_buffer.read(len(payload)) == payload
    assert _wait_until(lambda: client.snd_user_buffer.size == 0)


def test_close_handshake_tears_down_both_ends(pair):
    client, server = pair
    closer = threading.Thread(target=client.active_close, daemon=True)
    closer.start()
    assert _wait_until(lambda: server.state == State.CLOSWT)
    answerer = threading.Thread(target=server.passive_close, daemon=True)
    answerer.start()
    answerer.join(10)
    closer.join(10)
    assert not answerer.is_alive()
    assert not closer.is_alive()
    assert get_connection(server.connid) is None
    assert _wait_until(lambda: get_connection(client.connid) is None)
    assert client.state == State.CLOSED