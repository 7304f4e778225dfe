import pytest

from rusp.segment import (
    HDRS,
    PLDS,
    Ctrl,
    Segment,
    print_in_segment,
    print_out_segment,
)
from rusp.seqn import MAX_SEQN


def test_syn_wire_format():
    assert Segment.create(Ctrl.SYN, 0, 0).serialize() == b"0010000000000000000000000000"


def test_header_length():
    assert len(Segment.create(Ctrl.NUL).serialize()) == HDRS


def test_round_trip_with_payload():
    sgm = Segment.create(Ctrl.PSH | Ctrl.SACK, 1234, 5678, b"hello")
    assert Segment.deserialize(sgm.serialize()) == sgm


def test_round_trip_large_numbers():
    sgm = Segment.create(Ctrl.FIN, MAX_SEQN - 1, MAX_SEQN - 2, b"x" * PLDS)
    back = Segment.deserialize(sgm.serialize())
    assert back == sgm
    assert back.plds == PLDS


def test_create_without_payload_ignores_plds():
    sgm = Segment.create(Ctrl.SACK, 1, 2, None, 50)
    assert sgm.plds == 0
    assert sgm.payload == b""


def test_create_truncates_to_plds():
    sgm = Segment.create(Ctrl.PSH, 1, 0, b"hello world", 5)
    assert sgm.payload == b"hello"


def test_create_truncates_to_max_payload():
    sgm = Segment.create(Ctrl.NUL, 0, 0, b"y" * (PLDS + 500))
    assert sgm.plds == PLDS


def test_direct_construction_rejects_oversized_payload():
    with pytest.raises(ValueError):
        Segment(Ctrl.NUL, 0, 0, b"z" * (PLDS + 1))


def test_deserialize_rejects_short_data():
    with pytest.raises(ValueError):
        Segment.deserialize(b"001")


def test_deserialize_clamps_payload_size():
    data = Segment.create(Ctrl.NUL, 0, 0, b"ab").serialize()
    tampered = data[:3] + b"99999" + data[8:]
    assert Segment.deserialize(tampered).payload == b"ab"


def test_ctrl_flags_preserved():
    sgm = Segment.deserialize(Segment.create(Ctrl.SYN | Ctrl.SACK, 0, 1).serialize())
    assert sgm.ctrl == Ctrl.SYN | Ctrl.SACK
    assert sgm.ctrl & Ctrl.SACK


def test_describe():
    assert Segment.create(Ctrl.PSH, 7, 3, b"hi").describe() == "ctrl:32 plds:2 seqn:7 ackn:3 hi"


def test_print_in_segment(capsys):
    sgm = Segment.create(Ctrl.SYN, 0, 0)
    print_in_segment(("127.0.0.1", 9000), sgm)
    out = capsys.readouterr().out
    assert out.startswith("[<- SGM] ")
    assert "src: 127.0.0.1:9000 " + sgm.describe() in out


def test_print_out_segment(capsys):
    sgm = Segment.create(Ctrl.FIN, 4, 0)
    print_out_segment(("10.0.0.2", 55000), sgm)
    out = capsys.readouterr().out
    assert out.startswith("[SGM ->] ")
    assert "dst: 10.0.0.2:55000 " + sgm.describe() in out