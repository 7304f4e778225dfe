"""Echo server and client over reliable connections."""

import getopt
import re
import sys
import threading
import types

from .. import api
from ..addresses import address_to_string
from ..stringutil import get_user_input

PORT = 55000
LOSS = 0.0
CHUNK = 500

_INT = re.compile(r"\s*([+-]?\d+)")
_FLOAT = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

_CLIENT_USAGE = "@Usage: echoc [address] (-p port) (-l loss) (-d)"


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


def echo_service(connid):
    """Send back everything received on ``connid`` until it ends, then close it."""
    while data := api.receive(connid, CHUNK):
        api.send(connid, data)
    api.close(connid)


def parse_server_arguments(argv):
    """Parse server options into a namespace with port and debug."""
    options = types.SimpleNamespace(port=PORT, debug=False)
    pairs, _ = _getopt(argv, "vhp:d")
    for flag, value in pairs:
        if flag == "-v":
            print("@App:       ECHO server based on RUSP1.0.")
            print("@Version:   1.0\n")
            raise SystemExit(0)
        if flag == "-h":
            print("@App:       ECHO server based on RUSP1.0.")
            print("@Version:   1.0\n")
            print("@Usage:     echos (-p port) (-d)")
            print(f"@Opts:      -p port: ECHO server port number. Default ({PORT}) if not specified.")
            print("            -d:      Debug mode. Default (0) if not specified.\n")
            raise SystemExit(0)
        if flag == "-p":
            options.port = _atoi(value)
        elif flag == "-d":
            options.debug = True
    return options


def parse_client_arguments(argv):
    """Parse client options into a namespace with address, port, loss and debug."""
    options = types.SimpleNamespace(address=None, port=PORT, loss=LOSS, debug=False)
    pairs, rest = _getopt(argv, "vhp:l:d")
    for flag, value in pairs:
        if flag == "-v":
            print("@App:       ECHO client based on RUSP1.0.")
            print("@Version:   1.0\n")
            raise SystemExit(0)
        if flag == "-h":
            print("@App:       ECHO client based on RUSP1.0.")
            print("@Version:   1.0\n")
            print("@Usage:     echoc [address] (-p port) (-l loss) (-d)")
            print(f"@Opts:      -p port: ECHO server port number. Default ({PORT}) if not specified.")
            print(f"            -l loss: Uniform probability of segments loss. Default ({LOSS:f}) if not specified.")
            print("            -d:      Debug mode. Default (0) if not specified\n")
            raise SystemExit(0)
        if flag == "-p":
            options.port = _atoi(value)
        elif flag == "-l":
            options.loss = _strtod(value)
        elif flag == "-d":
            options.debug = True
    if len(rest) != 1:
        raise SystemExit(_CLIENT_USAGE)
    options.address = rest[0]
    return options


def server_main(argv=None):
    """Run the echo server, serving each connection in its own thread."""
    options = parse_server_arguments(sys.argv[1:] if argv is None else argv)
    api.set_attr(api.Attr.DEBUG, options.debug)
    lconn = api.listen(options.port)
    print("WELCOME TO ECHO SERVER\n")
    print(f"Running on {address_to_string(api.local_address(lconn))}")
    while True:
        try:
            connid = api.accept(lconn)
        except ConnectionError:
            break
        threading.Thread(target=echo_service, args=(connid,), daemon=True).start()
    print("Server Shutdown")
    api.close(lconn)
    return 0


def client_main(argv=None):
    """Run the interactive echo client."""
    options = parse_client_arguments(sys.argv[1:] if argv is None else argv)
    api.set_attr(api.Attr.DROPR, options.loss)
    api.set_attr(api.Attr.DEBUG, options.debug)
    connid = api.connect(options.address, options.port)
    print("WELCOME TO ECHO CLIENT\n")
    print(f"Running on {address_to_string(api.local_address(connid))}")
    print(f"Connected to {address_to_string(api.peer_address(connid))}")
    while True:
        text = get_user_input("[INPUT (empty to disconnect)]>")
        if not text:
            break
        api.send(connid, text.encode("utf-8"))
        data = api.receive(connid, CHUNK)
        if not data:
            raise SystemExit("Receiving error!")
        print(f"[RCV] {data.decode('utf-8', errors='replace')}")
    api.close(connid)
    return 0