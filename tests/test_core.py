import pytest

from rusp.lftp.core import (
    Action,
    MenuChoice,
    Message,
    MessageType,
    Session,
    receive_message,
    run_menu,
    send_message,
)


def _answers(*lines):
    feed = iter(lines)
    return lambda text: next(feed)


def test_serialize_wire_format():
    message = Message(MessageType.REQUEST, Action.CHDIR, "docs")
    assert message.serialize() == b"0001docs"


def test_deserialize_fields():
    message = Message.deserialize(b"0107/tmp/file")
    assert message.kind == MessageType.SUCCESS
    assert message.action == Action.RETRF
    assert message.body == "/tmp/file"


@pytest.mark.parametrize("kind", list(MessageType))
@pytest.mark.parametrize("action", list(Action))
def test_round_trip(kind, action):
    message = Message(kind, action, "a;b;c")
    assert Message.deserialize(message.serialize()) == message


def test_round_trip_empty_body():
    message = Message(MessageType.REQUEST, Action.GTCWD, "")
    assert Message.deserialize(message.serialize()) == message


def test_describe():
    assert Message(MessageType.REQUEST, Action.CHDIR, "docs").describe() == "REQ CHDIR docs"
    assert Message(MessageType.BADRQST, Action.MVFIL, "x").describe() == "ERR MVFIL x"


def test_unknown_action_kept_as_number():
    message = Message.deserialize(b"0042body")
    assert message.action == 42
    assert message.describe() == "REQ 42 body"


def test_menu_exit():
    assert run_menu(Session(0), _answers("13")) == (MenuChoice.EXIT, None)


def test_menu_get_cwd_after_invalid_choices():
    choice, message = run_menu(Session(0), _answers("0", "abc", "14", "1"))
    assert choice == MenuChoice.GTCWD
    assert message == Message(MessageType.REQUEST, Action.GTCWD, "")


def test_menu_single_argument():
    choice, message = run_menu(Session(0), _answers("2", "sub"))
    assert choice == MenuChoice.CHDIR
    assert message == Message(MessageType.REQUEST, Action.CHDIR, "sub")


def test_menu_download_maps_to_retrieve():
    choice, message = run_menu(Session(0), _answers("8", "data.bin"))
    assert choice == MenuChoice.DWFILE
    assert message.action == Action.RETRF
    assert message.body == "data.bin"


def test_menu_abort_on_empty_answer():
    assert run_menu(Session(0), _answers("4", "")) == (MenuChoice.ERROR, None)
    assert run_menu(Session(0), _answers("6", "src", "")) == (MenuChoice.ERROR, None)


def test_menu_pair_joined_by_delimiter():
    choice, message = run_menu(Session(0), _answers("11", "a.txt", "b.txt"))
    assert choice == MenuChoice.CPFILE
    assert message == Message(MessageType.REQUEST, Action.CPFIL, "a.txt;b.txt")


def test_menu_upload_retries_until_file_exists(tmp_path):
    existing = tmp_path / "up.txt"
    existing.write_text("content")
    missing = tmp_path / "missing.txt"
    choice, message = run_menu(Session(0), _answers("9", str(missing), str(existing)))
    assert choice == MenuChoice.UPFILE
    assert message == Message(MessageType.REQUEST, Action.STORF, str(existing))


def test_menu_upload_abort():
    assert run_menu(Session(0), _answers("9", "")) == (MenuChoice.ERROR, None)


def test_message_io_unknown_connection():
    with pytest.raises(LookupError):
        receive_message(987654)
    with pytest.raises(LookupError):
        send_message(987654, Message(MessageType.REQUEST, Action.GTCWD, ""))