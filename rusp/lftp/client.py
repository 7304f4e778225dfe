"""LFTP client: menu-driven requests to a server and background file transfers."""

import functools
import getopt
import os
import re
import sys
import threading
import types

from .. import api
from ..addresses import address_to_string
from ..connection import WNDS
from ..fileutil import filename
from ..segment import PLDS
from ..stringutil import array_deserialization
from .core import (
    OPTIONS,
    PDELIM,
    Action,
    MenuChoice,
    MessageType,
    Session,
    receive_message,
    run_menu,
    send_message,
)

PORT = 55000
REPO = "."
LOSS = 0.0
BSIZE = WNDS * PLDS

_INT = re.compile(r"\s*([+-]?\d+)")
_FLOAT = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

_USAGE = "@Usage: lftpc [address] (-p port) (-r repo) (-l loss) (-d)"


def _atoi(text):
    match = _INT.match(text)
    return int(match.group(1)) if match else 0


def _strtod(text):
    match = _FLOAT.match(text)
    return float(match.group(1)) if match else 0.0


def _send_file(connid, path):
    with open(path, "rb") as source:
        for chunk in iter(functools.partial(source.read, BSIZE), b""):
            api.send(connid, chunk)
    api.close(connid)


def _receive_file(connid, path):
    descriptor = os.open(path, os.O_RDWR | os.O_CREAT | os.O_TRUNC, 0o700)
    with open(descriptor, "wb") as target:
        while data := api.receive(connid, BSIZE):
            target.write(data)
    api.close(connid)


def _pair(body):
    params = array_deserialization(body, PDELIM)
    if len(params) < 2:
        raise ValueError(f"Malformed response body: {body!r}.")
    return params[0], params[1]


def _start(target, *args):
    threading.Thread(target=target, args=args, daemon=True).start()


def handle_response(session, response):
    """Act on a server response; print and return the lines shown to the user."""
    lines = []
    if response.kind == MessageType.BADRQST:
        lines.append(f"[BADRQST]>{response.body}")
    elif response.kind == MessageType.SUCCESS:
        action = response.action
        body = response.body
        if action == Action.GTCWD:
            lines.append(f"[ANSWER]>CWD: {body}")
        elif action == Action.CHDIR:
            lines.append(f"[SUCCESS]>CWD: {body}")
        elif action == Action.LSDIR:
            params = array_deserialization(body, PDELIM)
            if params:
                lines.append(f"[SUCCESS]>Listing {params[0]}")
                lines.extend(params[1:])
        elif action == Action.MKDIR:
            lines.append(f"[SUCCESS]>Directory created {body}")
        elif action == Action.RMDIR:
            lines.append(f"[SUCCESS]>Directory removed {body}")
        elif action == Action.CPDIR:
            source, target = _pair(body)
            lines.append(f"[SUCCESS]>Directory {source} copied to {target}")
        elif action == Action.MVDIR:
            source, target = _pair(body)
            lines.append(f"[SUCCESS]>Directory {source} moved to {target}")
        elif action == Action.RETRF:
            connid = api.accept(session.dataconn)
            path = f"{session.cwd}/{filename(body)}"
            _start(_receive_file, connid, path)
            lines.append(f"[SUCCESS]>Downloading {body}")
        elif action == Action.STORF:
            connid = api.accept(session.dataconn)
            _start(_send_file, connid, body)
            lines.append(f"[SUCCESS]>Uploading {body}")
        elif action == Action.RMFIL:
            lines.append(f"[SUCCESS]>File removed {body}")
        elif action == Action.CPFIL:
            source, target = _pair(body)
            lines.append(f"[SUCCESS]>File {source} copied to {target}")
        elif action == Action.MVFIL:
            source, target = _pair(body)
            lines.append(f"[SUCCESS]>File {source} moved to {target}")
    for line in lines:
        print(line)
    return lines


def _print_about():
    print("@App:       LFTP client based on RUSP1.0.")
    print("@Version:   1.0\n")


def parse_arguments(argv):
    """Parse command-line options into a namespace with address, port, repo, loss and debug."""
    options = types.SimpleNamespace(address=None, port=PORT, repo=REPO, loss=LOSS, debug=False)
    try:
        pairs, rest = getopt.gnu_getopt(argv, "vhp:r:l:d")
    except getopt.GetoptError as exc:
        print(f"Bad option {exc.opt}.")
        print("-h for help.\n")
        raise SystemExit(1) from exc
    for flag, value in pairs:
        if flag == "-v":
            _print_about()
            raise SystemExit(0)
        if flag == "-h":
            _print_about()
            print("@Usage:     lftpc [address] (-p port) (-r repo) (-l loss) (-d)")
            print(f"@Opts:      -p port: LFTP server port number. Default ({PORT}) if not specified.")
            print(f"            -r repo: LFTP client repository. Default ({REPO}) if not specified.")
            print(f"            -l loss: Uniform probability of segments loss. Default ({LOSS:f}) if not specified.")
            print("            -d     : Debug mode. Default (0) if not specified.")
            raise SystemExit(0)
        if flag == "-p":
            options.port = _atoi(value)
        elif flag == "-r":
            options.repo = value
        elif flag == "-l":
            options.loss = _strtod(value)
        elif flag == "-d":
            options.debug = True
    if len(rest) != 1:
        raise SystemExit(_USAGE)
    options.address = rest[0]
    return options


def main(argv=None):
    """Run the interactive LFTP client."""
    options = parse_arguments(sys.argv[1:] if argv is None else argv)
    api.set_attr(api.Attr.DROPR, options.loss)
    OPTIONS.debug = options.debug
    session = Session(ctrlconn=api.connect(options.address, options.port), cwd=options.repo)
    session.dataconn = api.listen(options.port + 1)
    print("WELCOME TO FTP CLIENT\n")
    print(f"Running on {address_to_string(api.local_address(session.ctrlconn))}")
    print(f"Connected to {address_to_string(api.peer_address(session.ctrlconn))}")
    while True:
        choice, request = run_menu(session)
        if choice is MenuChoice.EXIT:
            break
        if choice is MenuChoice.ERROR:
            continue
        send_message(session.ctrlconn, request)
        response = receive_message(session.ctrlconn)
        if response is None:
            break
        handle_response(session, response)
    api.close(session.dataconn)
    api.close(session.ctrlconn)
    print("Disconnected")
    return 0