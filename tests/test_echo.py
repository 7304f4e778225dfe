import pytest

from rusp.apps.echo import (
    PORT,
    echo_service,
    parse_client_arguments,
    parse_server_arguments,
)


def test_server_defaults():
    options = parse_server_arguments([])
    assert options.port == PORT
    assert options.debug is False


def test_server_options():
    options = parse_server_arguments(["-p", "7000", "-d"])
    assert (options.port, options.debug) == (7000, True)


def test_server_bad_option():
    with pytest.raises(SystemExit) as info:
        parse_server_arguments(["-q"])
    assert info.value.code == 1


def test_server_version_exits_successfully():
    with pytest.raises(SystemExit) as info:
        parse_server_arguments(["-v"])
    assert info.value.code == 0


def test_client_defaults():
    options = parse_client_arguments(["127.0.0.1"])
    assert options.address == "127.0.0.1"
    assert options.port == PORT
    assert options.loss == 0.0
    assert options.debug is False


def test_client_options_after_address():
    options = parse_client_arguments(["127.0.0.1", "-l", "0.5", "-p", "9"])
    assert options.loss == 0.5
    assert options.port == 9


def test_client_needs_exactly_one_address():
    with pytest.raises(SystemExit) as info:
        parse_client_arguments(["a", "b"])
    assert "@Usage" in str(info.value.code)


def test_client_invalid_port_is_zero():
    options = parse_client_arguments(["-p", "abc", "host"])
    assert options.port == 0


def test_echo_service_unknown_connection():
    with pytest.raises(LookupError):
        echo_service(-424242)