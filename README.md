# rusp

Reliable, connection-oriented byte streams carried over IPv4 UDP
datagrams, with a few small command-line applications built on top.

## How the protocol works

- Connections open with a three-way handshake (SYN, SYN+ACK, ACK).
  The connecting side retries its SYN up to 5 times, one second apart;
  the listening side answers each handshake from a fresh socket, so
  every accepted connection has its own port.
- Data is cut into segments of at most 1000 bytes and sent through a
  sliding window four segments wide. Segments use a plain-text header
  (`Segment.serialize` / `Segment.deserialize` in `rusp.segment`).
- The receiver answers with selective acknowledgements for segments
  inside its window and cumulative acknowledgements for ones before it;
  out-of-order segments are buffered until the gap is filled.
- Unacknowledged segments are retransmitted after a timeout estimated
  from round-trip samples (`rusp.timeout.Timeout`: smoothed RTT plus
  four times its deviation).
- Closing exchanges FIN segments. The side that closes first ends in a
  time-wait period of `SETTINGS.time_wait` milliseconds (two minutes by
  default, see `rusp.connection.Settings`), during which it still
  acknowledges a repeated FIN. While any connection of the process is
  in time-wait, creating a new connection in that process waits.
- A drop rate can be set to throw away received segments at random,
  to simulate loss.

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Using the protocol

`rusp.api` works on integer connection ids, much as sockets work on
descriptors.

Server side:

```python
from rusp import api

lconn = api.listen(55000)
conn = api.accept(lconn)
data = api.receive(conn, 500)
api.send(conn, data)
api.close(conn)
```

Client side:

```python
from rusp import api

conn = api.connect("127.0.0.1", 55000)
api.send(conn, b"hello")
print(api.receive(conn, 500))
api.close(conn)
```

- `listen(port)` binds a listening connection on all interfaces.
- `accept(lconnid)` blocks until a handshake completes and returns the
  new connection id.
- `connect(ip, port)` raises `TimeoutError` if the handshake fails.
- `send(connid, data)` blocks until the data has been acknowledged and
  returns the number of bytes accepted, or 0 if the connection is not
  (or stops being) established.
- `receive(connid, size)` returns up to `size` delivered bytes, or
  `b""` once the connection is no longer established (for example
  after the peer has closed).
- `close(connid)` closes in the way the connection's state calls for.
- `local_address(connid)` and `peer_address(connid)` return
  `(ip, port)` tuples.
- `get_attr(Attr.DEBUG)` / `set_attr(Attr.DEBUG, value)` read and set
  debug output; `Attr.DROPR` is the simulated drop rate (0.0 to 1.0).
- An unknown connection id raises `LookupError`.

The building blocks live in their own modules: `rusp.segment`,
`rusp.seqn`, `rusp.window`, `rusp.timeout`, `rusp.strbuffer`,
`rusp.sgmbuffer`, `rusp.pool`, `rusp.sockets` and
`rusp.connection`. Helpers used by the applications are in
`rusp.fileutil`, `rusp.stringutil`, `rusp.cli`, `rusp.addresses`,
`rusp.timeutil` and `rusp.mathutil`.

## Commands

All commands accept `-h` for help and `-v` for version information.
The default port is 55000.

### Echo

```
rusp-echos [-p port] [-d]
rusp-echoc ADDRESS [-p port] [-l loss] [-d]
```

The client sends each line you type and prints what the server sends
back. An empty line disconnects. `-l` sets the simulated drop rate and
`-d` turns on debug output.

### Upload

```
rusp-ups [-p port] [-m file] [-d]
rusp-upc ADDRESS FILE [-p port] [-l loss] [-d]
```

The server stores each received stream in the current directory, in a
file named after the peer address (`ip:port`). With `-m`, every stored
file is compared with the given file and a mismatch is reported. The
client shows a progress bar and then prints the size sent, the drop
rate, the time spent sending and the throughput.

### File transfer

```
rusp-lftps [-p port] [-r repo] [-d]
rusp-lftpc ADDRESS [-p port] [-r repo] [-l loss] [-d]
```

The server serves the directory given with `-r` (default `.`). The
client shows a numbered menu to get and change the working directory,
list, create, remove, copy and move directories, download and upload
files, and remove, copy and move files. Paths are relative to the
session's working directory on the server.

File contents travel over a second connection: the client listens on
the control port plus one and the server connects to it. Downloads are
saved in the client's `-r` directory; an upload names a local file,
which the server stores under its file name in the working directory.

### Sample files

```
rusp-samplegen FILENAME SIZE
```

Writes `SIZE` random upper-case letters to `FILENAME`, useful as input
for uploads and transfers.

## What it does not do

- Only IPv4 is supported.
- There is no authentication or encryption; the file-transfer server
  carries out any request it receives, on any path the request names.
- Sequence numbers for a new connection are fixed, not randomised.