# roster

`roster` is an in-memory key-value server that speaks the Redis
serialization protocol (RESP). Redis clients can connect to it and use the
commands listed below.

## Installation

```
pip install .
```

Python 3.11 or later is required. The only runtime dependency is
`python-dotenv`.

## Running the server

```
roster
```

`roster --version` prints the version and exits.

On start the server reads its configuration (see below), binds the listening
socket, prints a banner with the version, the mode (`standalone`), the port,
the address and the process id, and then serves connections on one thread
per available CPU, each thread running its own asyncio event loop on the
shared listening socket. Press Ctrl+C to stop it. If the configuration is
missing or invalid, or the address cannot be bound, it prints an error and
exits with status 1.

### Configuration

The location of the configuration file comes from the `CONFIG_FILE_LOCATION`
environment variable. It may also be set in a `.env` file found from the
current directory; a value in the real environment wins over one in `.env`.

The file may be TOML (`.toml`) or JSON (`.json`); the extension may be left
out of `CONFIG_FILE_LOCATION`, in which case `.toml` and then `.json` are
tried. It must provide:

- `bind_addr`: an IPv4 address with a port, such as `"127.0.0.1:3456"`, or
  a bracketed IPv6 address, such as `"[::1]:3456"`
- `max_connection`: a number from 0 to 65535

```toml
bind_addr = "127.0.0.1:3456"
max_connection = 20
```

Environment variables that start with `ROSTER_` (in any case) are merged into
the settings, with the rest of the name lower-cased and split on `_` into
nested keys. Because of that split they cannot override `bind_addr` or
`max_connection`; set those in the file.

## Supported commands

Command and subcommand names are matched without regard to case.

| Command | Reply |
|---|---|
| `PING [message]` | `PONG`, or the message as a bulk string |
| `SET key value [EX seconds \| PX milliseconds]` | `OK` |
| `GET key` | the stored value, or nil if the key is missing or has expired |
| `HELLO` | a RESP3 map with `server`, `version`, `proto` (3), `id`, `mode`, `role` and `modules` |
| `CLIENT ID` | the id of the current connection (ids start at 0 and only grow) |
| `CLIENT INFO` | `id=… addr=… laddr=… fd=… name=…` for the current connection |
| `CLIENT LIST [TYPE type] [ID id ...]` | one such line for each open connection |
| `CLIENT SETNAME name` | `OK`; the name then shows in `CLIENT INFO` and `CLIENT LIST` |
| `CLIENT GETNAME` | the connection's name, or nil |
| `CLIENT SETINFO LIB-NAME name \| LIB-VER version` | `OK` |
| `CLIENT HELP`, or `CLIENT` alone | the help text for the `CLIENT` subcommands, one line per entry |

Any other command, or an unknown `CLIENT` or `ACL` subcommand, gets the
error reply `ERR unknown command '<name>'`.

A frame that is not valid RESP, or a command with malformed or extra
arguments (for example a `SET` option other than `EX` or `PX`), ends the
connection; the error is logged.

## What the server does not do

- Data lives only in memory; nothing is written to disk.
- `GET` and `SET` are the only key commands. There is no `DEL`, `EXPIRE`,
  `KEYS` or the like, and `SET` knows no `NX`, `XX`, `GET` or `KEEPTTL`.
- Expired keys are removed only when a `GET` finds them.
- `ACL CAT` is recognised but not supported: sending it ends the connection.
- There is no authentication and no replication or clustering. All hash
  slots are served by one store shared by every thread.
- `max_connection` is read and checked but not enforced.
- The `TYPE` and `ID` filters of `CLIENT LIST` are parsed but not applied,
  and `CLIENT SETINFO` does not keep what it is given.
- Logging is not set up by the `roster` command; call
  `roster.instruments.install_logging` to see log output when embedding.

## Using it as a library

### The protocol

`roster.frame` holds the frame types `Simple`, `Error`, `Integer`, `Bulk`,
`Null`, `Array` and `Map`, and the functions to handle them:

```python
from roster.frame import Array, Bulk, check, encode, parse

data = encode(Array([Bulk(b"GET"), Bulk(b"hello")]))
end = check(data, 0)          # position just after the frame
frame, end = parse(data, 0)   # the decoded frame and that same position
```

`check` and `parse` raise `roster.frame.Incomplete` when the buffer does not
yet hold a whole frame, and `roster.frame.FrameError` when the data cannot be
a valid frame. `write_frame(writer, frame)` encodes a frame onto an asyncio
stream writer and drains it.

### Commands

`roster.dispatch.command_from_frame(frame)` turns an array frame into a
command object; `roster.parse.ParseError` is raised for malformed commands.
Every command has `async apply(dst, ctx)`, which writes its reply with
`await dst.write_frame(...)`, and `hash_key()`, the key's hash slot (from
`roster.hashing.crc_hash`, CRC-16/XMODEM modulo 16384) or `None`.

### Running a server in your own program

```python
from roster.server import ServerConfig

handle = ServerConfig(bind_addr=("127.0.0.1", 3456), connections_limit=20).initialize()
print(handle.bind)   # the bound address; port 0 picks a free port
handle.stop()        # or handle.join() to wait
```

`ServerConfig` also takes `threads` to set the number of server threads
(by default one per available CPU) and `listener` to serve an already bound
socket. `roster.instruments.install_logging(level)` installs a process-wide
log handler; its level defaults to the `LOG_LEVEL` environment variable,
then to `ERROR`.