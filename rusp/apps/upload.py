"""File upload server and client over reliable connections."""

import functools
import getopt
import os
import re
import sys
import threading
import types

from .. import api
from ..addresses import address_to_string
from ..cli import progress_bar
from ..connection import WNDS
from ..fileutil import file_size, is_equal_file
from ..segment import PLDS
from ..timeutil import elapsed_ms, timestamp

PORT = 55000
LOSS = 0.0
BSIZE = WNDS * PLDS

_INT = re.compile(r"\s*([+-]?\d+)")
_FLOAT = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

_CLIENT_USAGE = "@Usage: upc [address] [file] (-p port) (-l loss) (-d)"


def _atoi(text):
    match = _INT.match(text)
    return int(match.group(1)) if match else 0


def _strtod(text):
    match = _FLOAT.match(text)
    return float(match.group(1)) if match else 0.0


def _getopt(argv, spec):
    try:
        return getopt.gnu_getopt(argv, spec)
    except getopt.GetoptError as exc:
        print(f"Bad option {exc.opt}.")
        print("-h for help.\n")
        raise SystemExit(1) from exc


def upload_service(connid, match_file=None):
    """Store what ``connid`` delivers in a file named after the peer; return its name.

    When ``match_file`` is given the stored file is compared with it and
    a mismatch is reported.
    """
    name = address_to_string(api.peer_address(connid))
    descriptor = os.open(name, os.O_RDWR | os.O_CREAT | os.O_TRUNC, 0o700)
    with open(descriptor, "wb") as target:
        while data := api.receive(connid, BSIZE):
            target.write(data)
    api.close(connid)
    if match_file is not None and not is_equal_file(name, match_file):
        print(f"File {name} does not match File {match_file}")
    return name


def send_file(connid, path):
    """Send a file over ``connid``; return ``(size, milliseconds spent sending)``."""
    size = file_size(path)
    sent = 0
    millis = 0.0
    with open(path, "rb") as source:
        for chunk in iter(functools.partial(source.read, BSIZE), b""):
            start = timestamp()
            api.send(connid, chunk)
            millis += elapsed_ms(start, timestamp())
            sent += len(chunk)
            if size > 0:
                progress_bar(sent, size)
    return size, millis


def parse_server_arguments(argv):
    """Parse server options into a namespace with port, match (file or None) and debug."""
    options = types.SimpleNamespace(port=PORT, match=None, debug=False)
    pairs, _ = _getopt(argv, "vhp:m:d")
    for flag, value in pairs:
        if flag == "-v":
            print("@App:       UPLOAD server based on RUSP1.0.")
            print("@Version:   1.0\n")
            raise SystemExit(0)
        if flag == "-h":
            print("@App:       UPLOAD server based on RUSP1.0.")
            print("@Version:   1.0\n")
            print("@Usage:     ups (-p port) (-d)")
            print(f"@Opts:      -p port: UPLOAD server port number. Default ({PORT}) if not specified.")
            print("            -m file: Equality match for all received files. Default (0) if not specified.")
            print("            -d:      Debug mode. Default (0) if not specified.\n")
            raise SystemExit(0)
        if flag == "-p":
            options.port = _atoi(value)
        elif flag == "-m":
            options.match = value
        elif flag == "-d":
            options.debug = True
    return options


def parse_client_arguments(argv):
    """Parse client options into a namespace with address, file, port, loss and debug."""
    options = types.SimpleNamespace(address=None, file=None, port=PORT, loss=LOSS, debug=False)
    pairs, rest = _getopt(argv, "vhp:l:d")
    for flag, value in pairs:
        if flag == "-v":
            print("@App:       UPLOAD client based on RUSP1.0.")
            print("@Version:   1.0\n")
            raise SystemExit(0)
        if flag == "-h":
            print("@App:       UPLOAD client based on RUSP1.0.")
            print("@Version:   1.0\n")
            print("@Usage:     upc [address] [file] (-p port) (-l loss) (-d)")
            print(f"@Opts:      -p port: UPLOAD server port number. Default ({PORT}) if not specified.")
            print(f"            -l loss: Uniform probability of segments loss. Default ({LOSS:f}) if not specified.")
            print("            -d:      Enable debug mode. Default (0) if not specified\n")
            raise SystemExit(0)
        if flag == "-p":
            options.port = _atoi(value)
        elif flag == "-l":
            options.loss = _strtod(value)
        elif flag == "-d":
            options.debug = True
    if len(rest) != 2:
        raise SystemExit(_CLIENT_USAGE)
    options.address, options.file = rest
    return options


def server_main(argv=None):
    """Run the upload server, storing each connection's data in its own thread."""
    options = parse_server_arguments(sys.argv[1:] if argv is None else argv)
    api.set_attr(api.Attr.DEBUG, options.debug)
    lconn = api.listen(options.port)
    print("WELCOME TO FILE STORE SERVER\n")
    print(f"Running on {address_to_string(api.local_address(lconn))}")
    while True:
        try:
            connid = api.accept(lconn)
        except ConnectionError:
            break
        threading.Thread(target=upload_service, args=(connid, options.match), daemon=True).start()
    print("Server Shutdown")
    api.close(lconn)
    return 0


def client_main(argv=None):
    """Upload a file and report the transfer speed."""
    options = parse_client_arguments(sys.argv[1:] if argv is None else argv)
    api.set_attr(api.Attr.DROPR, options.loss)
    api.set_attr(api.Attr.DEBUG, options.debug)
    connid = api.connect(options.address, options.port)
    print("WELCOME TO ECHO CLIENT\n")
    print(f"Running on {address_to_string(api.local_address(connid))}")
    print(f"Connected to {address_to_string(api.peer_address(connid))}")
    print(f"Sending File (size: {file_size(options.file)}): {options.file}")
    size, millis = send_file(connid, options.file)
    print(" OK")
    kilobytes = size / 1000.0
    seconds = millis / 1000.0
    speed = kilobytes * 8.0 / seconds if seconds > 0 else float("inf")
    print(
        f"Sent: {kilobytes:f}KB Droprate: {options.loss * 100.0:f}% "
        f"Time: {seconds:f}s Speed: {speed:f}Kbps"
    )
    api.close(connid)
    return 0