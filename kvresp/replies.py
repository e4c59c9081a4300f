"""Encoders for the replies the server sends back to clients."""

from __future__ import annotations

from collections.abc import Iterable

_CRLF = b"\r\n"


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def ok() -> bytes:
    """The acknowledgement sent after a successful write."""
    return b"+Ok\r\n"


def simple_string(text: str) -> bytes:
    """Encode a simple string reply."""
    return b"+" + _encode(text) + _CRLF


def bulk_string(text: str) -> bytes:
    """Encode a length-prefixed bulk string reply."""
    data = _encode(text)
    return b"$%d\r\n" % len(data) + data + _CRLF


def null_bulk_string() -> bytes:
    """Encode the reply for a missing value."""
    return b"$-1\r\n"


def integer(number: int) -> bytes:
    """Encode an integer reply."""
    return b":%d\r\n" % number


def error(message: str) -> bytes:
    """Encode an error reply carrying the ERR prefix."""
    return b"-ERR " + _encode(message) + _CRLF


def array(items: Iterable[str]) -> bytes:
    """Encode an array of bulk strings."""
    encoded = [bulk_string(item) for item in items]
    return b"*%d\r\n" % len(encoded) + b"".join(encoded)


def null_array() -> bytes:
    """Encode the null array reply."""
    return b"*-1\r\n"