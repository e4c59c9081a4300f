"""Command dispatch: turns a parsed request into the reply bytes to send."""

from __future__ import annotations

import logging
import queue
import re
from collections.abc import Callable

from kvresp import replies
from kvresp.store import Store

logger = logging.getLogger(__name__)

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


def _parse_int(text: str) -> int | None:
    """Parse a base-10 signed 64-bit integer strictly, or return None."""
    if not _INT_PATTERN.fullmatch(text):
        return None
    number = int(text)
    if not _INT_MIN <= number <= _INT_MAX:
        return None
    return number


def _arity_error(name: str) -> bytes:
    return replies.error(f"wrong no. of arguments for '{name}'")


def _optional_bulk(value: str | None) -> bytes:
    return replies.null_bulk_string() if value is None else replies.bulk_string(value)


def _ping(args: list[str], store: Store) -> bytes:
    if len(args) == 1:
        return replies.simple_string("PONG")
    return replies.bulk_string(args[1])


def _set(args: list[str], store: Store) -> bytes:
    if len(args) != 3:
        return _arity_error("set")
    store.set(args[1], args[2])
    return replies.ok()


def _get(args: list[str], store: Store) -> bytes:
    if len(args) != 2:
        return _arity_error("get")
    return _optional_bulk(store.get(args[1]))


def _mset(args: list[str], store: Store) -> bytes:
    if len(args) % 2 != 1:
        return _arity_error("mset")
    for key, value in zip(args[1::2], args[2::2]):
        store.set(key, value)
    return replies.ok()


def _mget(args: list[str], store: Store) -> bytes:
    if len(args) < 2:
        return _arity_error("mget")
    keys = args[1:]
    body = b"".join(_optional_bulk(store.get(key)) for key in keys)
    return b"*%d\r\n" % len(keys) + body


def _hset(args: list[str], store: Store) -> bytes:
    if len(args) < 4 or len(args) % 2 != 0:
        return _arity_error("hset")
    fields = args[2:]
    store.hset(args[1], dict(zip(fields[::2], fields[1::2])))
    return replies.ok()


def _hget(args: list[str], store: Store) -> bytes:
    if len(args) != 3:
        return _arity_error("hget")
    return _optional_bulk(store.hget(args[1], args[2]))


def _hgetall(args: list[str], store: Store) -> bytes:
    if len(args) != 2:
        return _arity_error("hgetall")
    fields = store.hgetall(args[1])
    if fields is None:
        return replies.null_bulk_string()
    flat = [item for pair in fields.items() for item in pair]
    return replies.array(flat)


def _del(args: list[str], store: Store) -> bytes:
    if len(args) != 2:
        return _arity_error("del")
    return replies.integer(int(store.delete(args[1])))


def _exists(args: list[str], store: Store) -> bytes:
    if len(args) != 2:
        return _arity_error("exists")
    return replies.integer(int(store.exists(args[1])))


def _expire(args: list[str], store: Store) -> bytes:
    if len(args) != 3:
        return _arity_error("expire")
    seconds = _parse_int(args[2])
    if seconds is None or seconds < 0:
        return replies.error("invalid seconds")
    return replies.integer(int(store.expire(args[1], seconds)))


def _lpush(args: list[str], store: Store) -> bytes:
    if len(args) < 3:
        return _arity_error("lpush")
    return replies.integer(store.lpush(args[1], *args[2:]))


def _rpush(args: list[str], store: Store) -> bytes:
    if len(args) < 3:
        return _arity_error("rpush")
    return replies.integer(store.rpush(args[1], *args[2:]))


def _lpop(args: list[str], store: Store) -> bytes:
    if len(args) != 2:
        return _arity_error("lpop")
    return _optional_bulk(store.lpop(args[1]))


def _rpop(args: list[str], store: Store) -> bytes:
    if len(args) != 2:
        return _arity_error("rpop")
    return _optional_bulk(store.rpop(args[1]))


def _blpop(args: list[str], store: Store) -> bytes:
    if len(args) < 2:
        return _arity_error("blpop")
    keys = args[1:-1]
    timeout = _parse_int(args[-1])
    if timeout is None:
        return replies.error("timeout is not an integer")

    for key in keys:
        value = store.lpop(key)
        if value is not None:
            return replies.array([key, value])

    waiter: queue.Queue = queue.Queue(maxsize=1)
    for key in keys:
        store.register_waiter(key, waiter)

    if timeout <= 0:
        return replies.null_array()
    try:
        key, value = waiter.get(timeout=timeout)
    except queue.Empty:
        return replies.null_array()
    return replies.array([key, value])


_HANDLERS: dict[str, Callable[[list[str], Store], bytes]] = {
    "PING": _ping,
    "SET": _set,
    "GET": _get,
    "MSET": _mset,
    "MGET": _mget,
    "HSET": _hset,
    "HGET": _hget,
    "HGETALL": _hgetall,
    "DEL": _del,
    "EXISTS": _exists,
    "EXPIRE": _expire,
    "LPUSH": _lpush,
    "RPUSH": _rpush,
    "LPOP": _lpop,
    "RPOP": _rpop,
    "BLPOP": _blpop,
}


def execute(args: list[str], store: Store) -> bytes:
    """Run one command against the store and return the encoded reply.

    BLPOP may block the calling thread for up to its timeout.
    """
    logger.debug("args: %r", args)
    if not args or not args[0].strip():
        return replies.error("missing command")
    name = args[0].upper()
    handler = _HANDLERS.get(name)
    if handler is None:
        return replies.error(f"unknown command '{name}'")
    return handler(args, store)