import io
import sys

import pytest

from rusp.stringutil import (
    array_deserialization,
    array_serialization,
    get_user_input,
    split_by_delimiter,
    split_by_section,
    split_by_size,
    split_n_by_delimiter,
)


def test_split_by_delimiter_skips_empty_tokens():
    assert split_by_delimiter("a;;b;c;", ";") == ["a", "b", "c"]


def test_split_by_delimiter_any_character():
    assert split_by_delimiter("a,b;c", ",;") == ["a", "b", "c"]


def test_split_by_delimiter_only_delimiters():
    assert split_by_delimiter(";;;", ";") == []


def test_split_n_keeps_remainder():
    assert split_n_by_delimiter("a;b;c", ";", 2) == ["a", "b;c"]


def test_split_n_pads_with_empty():
    assert split_n_by_delimiter("a", ";", 3) == ["a", "", ""]


def test_split_n_always_returns_count():
    for count in range(1, 6):
        assert len(split_n_by_delimiter("x::y::z", "::", count)) == count


def test_split_n_rejects_zero():
    with pytest.raises(ValueError):
        split_n_by_delimiter("a;b", ";", 0)


def test_split_by_size():
    pieces = split_by_size("abcdefg", 3)
    assert pieces == ["abc", "def", "g"]
    assert "".join(pieces) == "abcdefg"


def test_split_by_size_empty_and_invalid():
    assert split_by_size("", 4) == []
    with pytest.raises(ValueError):
        split_by_size("abc", 0)


def test_split_by_section():
    assert split_by_section("abcdef", [1, 2, 3]) == ["a", "bc", "def"]


def test_serialization_trailing_delimiter():
    assert array_serialization(["x", "y"], ";") == "x;y;"


def test_serialization_round_trip():
    items = ["one", "two", "three"]
    assert array_deserialization(array_serialization(items, ";"), ";") == items


def test_get_user_input(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO("hello world\nnext\n"))
    assert get_user_input("> ") == "hello world"
    assert capsys.readouterr().out == "\n> "


def test_get_user_input_last_line_without_newline(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO("tail"))
    assert get_user_input("> ") == "tail"


def test_get_user_input_eof(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))
    with pytest.raises(EOFError):
        get_user_input("> ")