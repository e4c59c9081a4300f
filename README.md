# kvresp

A small in-memory key-value server that speaks the RESP wire protocol, which
Redis clients use. It holds strings, hashes and lists in memory, lets string
keys expire after a given number of seconds, and supports a blocking list pop.
It needs nothing beyond the Python standard library.

## Installing

```
pip install .
```

## Running the server

```
kvresp
```

Options:

- `--address HOST:PORT` – where to listen. The default is `:6379`, which
  listens on port 6379 on every interface.
- `--cleanup-interval SECONDS` – how often expired keys are swept away in the
  background. The default is `1.0`.

Each client is served in its own thread. Any RESP client can connect, for
example `redis-cli`. Stop the server with Ctrl-C.

Requests are RESP arrays; the bulk strings and simple strings in the array
are taken as the command and its arguments. Command names are not case
sensitive. If a request cannot be decoded, the server replies with an error
and closes the connection.

## Commands

| Command | Reply |
| --- | --- |
| `PING [message]` | `PONG`, or the message given |
| `SET key value` | `Ok` |
| `GET key` | the value, or null |
| `MSET key value [key value ...]` | `Ok` |
| `MGET key [key ...]` | an array of values, with null for each missing key |
| `HSET key field value [field value ...]` | `Ok` |
| `HGET key field` | the field's value, or null |
| `HGETALL key` | an array of fields and values, or null |
| `DEL key` | `1` if the key was removed, else `0` |
| `EXISTS key` | `1` or `0` |
| `EXPIRE key seconds` | `1` if the key exists, else `0` |
| `LPUSH key value [value ...]` | the new length of the list |
| `RPUSH key value [value ...]` | the new length of the list |
| `LPOP key` / `RPOP key` | the element, or null |
| `BLPOP key [key ...] timeout` | `[key, element]`, or a null array on timeout |

`DEL`, `EXISTS` and `EXPIRE` apply to string keys only. Strings, hashes and
lists live in separate key spaces. A wrong number of arguments, a negative or
non-numeric `EXPIRE` time, a non-numeric `BLPOP` timeout and an unknown
command each give an error reply.

## What it does not do

Everything is kept in memory only: nothing is written to disk, and all data is
lost when the server stops. There is no authentication, no replication, no
pub/sub and no transactions, and only the commands listed above are known.

## Using it from Python

The store can be used without the network:

```python
from kvresp.store import Store

store = Store()
store.set("greeting", "hello")
store.get("greeting")           # "hello"
store.get("missing")            # None
store.rpush("queue", "a", "b")  # 2
store.lpop("queue")             # "a"
store.expire("greeting", 10)    # True
```

`Store` also has `delete`, `exists`, `hset`, `hget`, `hgetall`, `lpush`,
`rpop`, `purge_expired`, and `start_cleaner(interval)` / `stop_cleaner()` for
the background sweep of expired keys.

`kvresp.commands.execute(args, store)` runs one command and returns the RESP
reply as bytes:

```python
from kvresp.commands import execute

execute(["SET", "k", "v"], store)  # b"+Ok\r\n"
execute(["GET", "k"], store)       # b"$1\r\nv\r\n"
```

`kvresp.resp.RespReader(stream).read_value()` decodes one RESP value from a
binary stream into a `Value`, raising `EOFError` at the end of the stream and
`UnexpectedTypeError` or `InvalidSyntaxError` (both `RespError`) for bad
input. The functions in `kvresp.replies` (`ok`, `simple_string`,
`bulk_string`, `null_bulk_string`, `integer`, `error`, `array`, `null_array`)
encode replies.

To run a server from your own code:

```python
from kvresp.server import Server
from kvresp.store import Store

server = Server(("127.0.0.1", 0), Store())
print(server.server_address())
server.serve_forever()
```

The socket is bound when `Server` is created. Call `server.shutdown()` from
another thread to stop it and close the socket.

## Tests

```
pip install ".[test]"
pytest
```