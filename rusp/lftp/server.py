"""LFTP server: answers file-management requests and runs file transfers."""

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
from ..fileutil import (
    change_dir,
    cp_directory,
    cp_file,
    explore_directory,
    filename,
    is_file,
    mk_directory,
    mv_directory,
    mv_file,
    rm_directory,
    rm_file,
)
from ..segment import PLDS
from ..stringutil import array_serialization
from .core import (
    OPTIONS,
    PDELIM,
    Action,
    Message,
    MessageType,
    Session,
    receive_message,
    send_message,
)

PORT = 55000
REPO = "."
BSIZE = WNDS * PLDS

_NUMBER = re.compile(r"\s*([+-]?\d+)")


def _atoi(text):
    match = _NUMBER.match(text)
    return int(match.group(1)) if match else 0


def _reason(exc):
    return exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)


def _send_file(session, path, port):
    peer_ip = api.peer_address(session.ctrlconn)[0]
    connid = api.connect(peer_ip, port + 1)
    with open(path, "rb") as source:
        for chunk in iter(functools.partial(source.read, BSIZE), b""):
            api.send(connid, chunk)
    api.close(connid)


def _receive_file(session, path, port):
    descriptor = os.open(path, os.O_RDWR | os.O_CREAT | os.O_TRUNC, 0o700)
    with open(descriptor, "wb") as target:
        peer_ip = api.peer_address(session.ctrlconn)[0]
        connid = api.connect(peer_ip, port + 1)
        while data := api.receive(connid, BSIZE):
            target.write(data)
    api.close(connid)


_PAIR_OPS = {
    Action.CPDIR: (cp_directory, "copy directory"),
    Action.MVDIR: (mv_directory, "move directory"),
    Action.CPFIL: (cp_file, "copy file"),
    Action.MVFIL: (mv_file, "move file"),
}

_SINGLE_OPS = {
    Action.MKDIR: (mk_directory, "create directory"),
    Action.RMDIR: (rm_directory, "remove directory"),
    Action.RMFIL: (rm_file, "remove file"),
}


def handle_request(session, request, port):
    """Carry out a request.

    Returns ``(response, transfer)``: the response to send back, and a
    callable to run in its own thread after sending it for a file
    transfer, or None.
    """
    action = request.action

    def success(body):
        return Message(MessageType.SUCCESS, action, body), None

    def failure(body):
        return Message(MessageType.BADRQST, action, body), None

    if request.kind != MessageType.REQUEST:
        return failure("Communication error: no request received.")

    cwd = session.cwd
    body = request.body

    if action == Action.GTCWD:
        return success(cwd)

    if action == Action.CHDIR:
        try:
            session.cwd = change_dir(cwd, body)
        except (OSError, ValueError) as exc:
            return failure(f"Cannot change to directory {cwd}/{body}: {_reason(exc)}")
        return success(session.cwd)

    if action == Action.LSDIR:
        path = f"{cwd}/{body}"
        try:
            entries = explore_directory(path)
        except OSError as exc:
            return failure(f"Cannot list directory {path}: {_reason(exc)}")
        return success(f"{cwd}{PDELIM}{array_serialization(entries, PDELIM)}")

    if action in _SINGLE_OPS:
        operation, verb = _SINGLE_OPS[action]
        path = f"{cwd}/{body}"
        try:
            operation(path)
        except OSError as exc:
            return failure(f"Cannot {verb} {path}: {_reason(exc)}")
        return success(path)

    if action in _PAIR_OPS:
        operation, verb = _PAIR_OPS[action]
        source, found, target = body.partition(PDELIM)
        if not found:
            return failure(f"Cannot {verb} {body}: no destination specified")
        source, target = f"{cwd}/{source}", f"{cwd}/{target}"
        try:
            operation(source, target)
        except OSError as exc:
            return failure(f"Cannot {verb} {source} to {target}: {_reason(exc)}")
        return success(f"{source}{PDELIM}{target}")

    if action == Action.RETRF:
        path = f"{cwd}/{body}"
        if not is_file(path):
            return failure(f"Cannot download file {path}: file not present")
        response, _ = success(path)
        return response, functools.partial(_send_file, session, path, port)

    if action == Action.STORF:
        try:
            name = filename(body)
        except ValueError as exc:
            return failure(f"Cannot upload file {body}: {exc}")
        response, _ = success(body)
        return response, functools.partial(_receive_file, session, f"{cwd}/{name}", port)

    return failure(f"Communication error: no valid request received ({int(action)}).")


def serve_session(session, port):
    """Answer requests on the session's control connection until it ends, then close it."""
    while (request := receive_message(session.ctrlconn)) is not None:
        response, transfer = handle_request(session, request, port)
        send_message(session.ctrlconn, response)
        if transfer is not None:
            threading.Thread(target=transfer, daemon=True).start()
    api.close(session.ctrlconn)


def _print_about():
    print("@App:       LFTP server based on RUSP1.0.")
    print("@Version:   1.0\n")


def parse_arguments(argv):
    """Parse command-line options into a namespace with port, repo and debug."""
    options = types.SimpleNamespace(port=PORT, repo=REPO, debug=False)
    try:
        pairs, _ = getopt.gnu_getopt(argv, "vhp:r:d")
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
            print("@Usage:     lftps (-p port) (-r repo) (-d)")
            print(f"@Opts:      -p port: LFTP server port number. Default ({PORT}) if not specified.")
            print(f"            -r repo: LFTP server repository. Default ({REPO}) if not specified.")
            print("            -d     : Debug mode. Default (0) if not specified.")
            raise SystemExit(0)
        if flag == "-p":
            options.port = _atoi(value)
        elif flag == "-r":
            options.repo = value
        elif flag == "-d":
            options.debug = True
    return options


def main(argv=None):
    """Run the LFTP server."""
    options = parse_arguments(sys.argv[1:] if argv is None else argv)
    OPTIONS.debug = options.debug
    lconn = api.listen(options.port)
    print("WELCOME TO FTP SERVER\n")
    print(f"Running on {address_to_string(api.local_address(lconn))}")
    while True:
        try:
            ctrlconn = api.accept(lconn)
        except ConnectionError:
            break
        session = Session(ctrlconn=ctrlconn, cwd=options.repo)
        threading.Thread(target=serve_session, args=(session, options.port), daemon=True).start()
    api.close(lconn)
    print("Shutdown")
    return 0