"""LFTP messages, message I/O over connections, and the client menu."""

import dataclasses
import enum
import re

from .. import api
from ..addresses import address_to_string
from ..fileutil import is_file
from ..stringutil import get_user_input
from ..timeutil import time_string

HDRF = 2
HEAD = 4
BODY = 4096 * 2
MSGS = HEAD + BODY + 1
PDELIM = ";"

_NUMBER = re.compile(r"\s*([+-]?\d+)")


def _atoi(text):
    match = _NUMBER.match(text)
    return int(match.group(1)) if match else 0


class MessageType(enum.IntEnum):
    """Kind of a message: a request or the outcome of one."""

    REQUEST = 0
    SUCCESS = 1
    BADRQST = 2


class Action(enum.IntEnum):
    """Operation a message is about."""

    GTCWD = 0
    CHDIR = 1
    LSDIR = 2
    MKDIR = 3
    RMDIR = 4
    CPDIR = 5
    MVDIR = 6
    RETRF = 7
    STORF = 8
    RMFIL = 9
    CPFIL = 10
    MVFIL = 11


class MenuChoice(enum.IntEnum):
    """Entries of the client menu; ERROR marks an aborted entry."""

    GTCWD = 1
    CHDIR = 2
    LSDIR = 3
    MKDIR = 4
    RMDIR = 5
    CPDIR = 6
    MVDIR = 7
    DWFILE = 8
    UPFILE = 9
    RMFILE = 10
    CPFILE = 11
    MVFILE = 12
    EXIT = 13
    ERROR = -1


_TYPE_NAMES = {MessageType.REQUEST: "REQ", MessageType.SUCCESS: "SUC", MessageType.BADRQST: "ERR"}

_MENU = (
    "Get CWD",
    "Change CWD",
    "List Directory",
    "New Directory",
    "Remove Directory",
    "Copy Directory",
    "Move Directory",
    "Download File",
    "Upload File",
    "Remove File",
    "Copy File",
    "Move File",
    "Exit",
)


def _as_enum(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        return value


@dataclasses.dataclass
class _Options:
    debug: bool = False


OPTIONS = _Options()


@dataclasses.dataclass(frozen=True)
class Message:
    """A message: type, action and a text body."""

    kind: int = MessageType.REQUEST
    action: int = Action.GTCWD
    body: str = ""

    def __post_init__(self):
        object.__setattr__(self, "kind", _as_enum(MessageType, int(self.kind)))
        object.__setattr__(self, "action", _as_enum(Action, int(self.action)))

    def serialize(self):
        """Encode the message for the wire."""
        return f"{int(self.kind):02d}{int(self.action):02d}{self.body}".encode("utf-8")

    @classmethod
    def deserialize(cls, data):
        """Decode a message read from the wire."""
        text = bytes(data).decode("utf-8", errors="replace")
        return cls(_atoi(text[0:2]), _atoi(text[2:4]), text[HEAD:])

    def describe(self):
        """One-line human-readable form."""
        kind = _TYPE_NAMES.get(self.kind, str(int(self.kind)))
        action = self.action.name if isinstance(self.action, Action) else str(self.action)
        return f"{kind} {action} {self.body}"


@dataclasses.dataclass
class Session:
    """Control and data connections of a session with its working directory."""

    ctrlconn: int
    dataconn: int = None
    cwd: str = "."


def _print_message(direction, label, connid, message):
    addr = address_to_string(api.peer_address(connid))
    print(f"{direction} {time_string()} {label}: {addr} {message.describe()}")


def send_message(connid, message):
    """Send a message; return the number of bytes accepted."""
    sent = api.send(connid, message.serialize())
    if OPTIONS.debug:
        _print_message("[MSG ->]", "dst", connid, message)
    return sent


def receive_message(connid):
    """Receive one message, or None once the connection delivers nothing more."""
    data = api.receive(connid, MSGS)
    if not data:
        return None
    message = Message.deserialize(data)
    if OPTIONS.debug:
        _print_message("[<- MSG]", "src", connid, message)
    return message


_SINGLE = {
    MenuChoice.CHDIR: (Action.CHDIR, "[Directory (empty to abort)]>"),
    MenuChoice.LSDIR: (Action.LSDIR, "[Directory (empty to abort)]>"),
    MenuChoice.MKDIR: (Action.MKDIR, "[Directory (empty to abort)]>"),
    MenuChoice.RMDIR: (Action.RMDIR, "[Directory (empty to abort)]>"),
    MenuChoice.DWFILE: (Action.RETRF, "[File (empty to abort)>"),
    MenuChoice.RMFILE: (Action.RMFIL, "[File (empty to abort)]>"),
}

_PAIR = {
    MenuChoice.CPDIR: (Action.CPDIR, "Directory"),
    MenuChoice.MVDIR: (Action.MVDIR, "Directory"),
    MenuChoice.CPFILE: (Action.CPFIL, "File"),
    MenuChoice.MVFILE: (Action.MVFIL, "File"),
}


def run_menu(session, prompt=get_user_input):
    """Show the menu and build a request from the user's answers.

    ``prompt`` shows a text and returns the line typed. Returns
    ``(choice, message)``; the message is None for EXIT and ERROR.
    """
    while True:
        print("\n-------\nMENU\n-------")
        for number, label in enumerate(_MENU, start=1):
            print(f"{number}\t{label}")
        choice = _atoi(prompt("[Your Action]>"))
        if 1 <= choice <= len(_MENU):
            break
    choice = MenuChoice(choice)

    if choice is MenuChoice.EXIT:
        return choice, None
    if choice is MenuChoice.GTCWD:
        return choice, Message(MessageType.REQUEST, Action.GTCWD, "")
    if choice in _SINGLE:
        action, text = _SINGLE[choice]
        answer = prompt(text)
        if not answer:
            return MenuChoice.ERROR, None
        return choice, Message(MessageType.REQUEST, action, answer)
    if choice in _PAIR:
        action, noun = _PAIR[choice]
        source = prompt(f"[Src {noun} (empty to abort)]>")
        if not source:
            return MenuChoice.ERROR, None
        target = prompt(f"[Dst {noun} (empty to abort)]>")
        if not target:
            return MenuChoice.ERROR, None
        return choice, Message(MessageType.REQUEST, action, f"{source}{PDELIM}{target}")
    # Upload: ask until an existing file is named or the user aborts.
    while True:
        answer = prompt("[File (empty to abort)]>")
        if not answer:
            return MenuChoice.ERROR, None
        if is_file(answer):
            return choice, Message(MessageType.REQUEST, Action.STORF, answer)