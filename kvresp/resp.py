"""Reader for values encoded in the RESP wire protocol."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import BinaryIO, Callable

logger = logging.getLogger(__name__)

STRING = b"+"
ARRAY = b"*"
INTEGER = b":"
BULK = b"$"
ERROR = b"-"

_INT_PATTERN = re.compile(rb"[+-]?[0-9]+")
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


class RespError(Exception):
    """Base class for protocol errors raised while reading a value."""

    base_message = "RESP error"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        text = f"{self.base_message}: {detail}" if detail else self.base_message
        super().__init__(text)


class UnexpectedTypeError(RespError):
    """The leading type byte is not one the protocol defines."""

    base_message = "unexpected RESP type"


class InvalidSyntaxError(RespError):
    """The value is malformed."""

    base_message = "unexpected RESP syntax"


@dataclass
class Value:
    """A decoded RESP value; ``kind`` says which of the fields is meaningful."""

    kind: str
    string: str = ""
    bulk: str = ""
    integer: int = 0
    error: str = ""
    array: list[Value] | None = None


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


class RespReader:
    """Reads RESP values one at a time from a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._handlers: dict[bytes, Callable[[], Value]] = {
            ARRAY: self._read_array,
            BULK: self._read_bulk,
            STRING: self._read_string,
            INTEGER: self._read_integer,
            ERROR: self._read_error,
        }

    def read_value(self) -> Value:
        """Read the next value.

        Raises EOFError when the stream ends, and a RespError subclass when
        the data is not valid RESP.
        """
        marker = self._stream.read(1)
        if not marker:
            raise EOFError("end of stream")
        logger.debug("data type byte: %r", marker)
        handler = self._handlers.get(marker)
        if handler is None:
            raise UnexpectedTypeError()
        return handler()

    def _read_line(self) -> bytes:
        parts: list[bytes] = []
        while True:
            chunk = self._stream.readline()
            if not chunk:
                raise EOFError("end of stream")
            parts.append(chunk)
            if chunk.endswith(b"\r\n"):
                return b"".join(parts)[:-2]

    def _read_int(self) -> int:
        raw = self._read_line()
        if not _INT_PATTERN.fullmatch(raw):
            raise InvalidSyntaxError(f"invalid integer {raw!r}")
        number = int(raw)
        if not _INT_MIN <= number <= _INT_MAX:
            raise InvalidSyntaxError(f"integer out of range {raw!r}")
        return number

    def _read_exact(self, size: int) -> bytes:
        data = bytearray()
        while len(data) < size:
            chunk = self._stream.read(size - len(data))
            if not chunk:
                break
            data += chunk
        return bytes(data)

    def _read_array(self) -> Value:
        length = self._read_int()
        if length < 0:
            return Value(kind="null")
        items = [self.read_value() for _ in range(length)]
        return Value(kind="array", array=items)

    def _read_bulk(self) -> Value:
        length = self._read_int()
        if length < 0:
            return Value(kind="null")
        data = self._read_exact(length)
        if len(data) < length:
            reason = "EOF" if not data else "unexpected EOF"
            raise InvalidSyntaxError(f"failed to read bulk data: {reason}")
        ending = self._read_exact(2)
        if not ending:
            raise InvalidSyntaxError("expected CRLF, got EOF")
        if len(ending) < 2:
            raise InvalidSyntaxError(
                "failed to read CRLF after bulk data: unexpected EOF"
            )
        if ending != b"\r\n":
            raise InvalidSyntaxError("invalid line ending in bulk string")
        return Value(kind="bulk", bulk=_decode(data))

    def _read_string(self) -> Value:
        return Value(kind="string", string=_decode(self._read_line()))

    def _read_integer(self) -> Value:
        return Value(kind="integer", integer=self._read_int())

    def _read_error(self) -> Value:
        return Value(kind="error", error=_decode(self._read_line()))