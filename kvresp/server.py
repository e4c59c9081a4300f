"""TCP server that speaks RESP and runs commands against a shared store."""

from __future__ import annotations

import argparse
import logging
import socketserver
import threading

from kvresp import replies
from kvresp.commands import execute
from kvresp.resp import RespError, RespReader, Value
from kvresp.store import Store

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = ":6379"


def parse_args(value: Value) -> list[str]:
    """Collect the bulk and simple strings of an array value as arguments."""
    args: list[str] = []
    for item in value.array or []:
        if item.kind == "bulk":
            args.append(item.bulk)
        elif item.kind == "string":
            args.append(item.string)
    return args


def _parse_address(address: str | tuple[str, int]) -> tuple[str, int]:
    if isinstance(address, tuple):
        return address
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address {address!r}")
    return host, int(port)


class _PeerHandler(socketserver.StreamRequestHandler):
    server: _TCPServer

    def handle(self) -> None:
        name = "%s:%s" % self.client_address[:2]
        owner = self.server.owner
        owner._add_peer(name)
        reader = RespReader(self.rfile)
        try:
            while True:
                try:
                    value = reader.read_value()
                except (EOFError, RespError) as exc:
                    self._send(replies.error(f"ERR {exc}"))
                    return
                except OSError:
                    return
                args = parse_args(value)
                if not args:
                    self._send(replies.error("Err invalid command"))
                    continue
                logger.info("[Peer %s] executing command: %r", name, args)
                self._send(execute(args, self.server.store))
        finally:
            owner._remove_peer(name)

    def _send(self, data: bytes) -> None:
        try:
            self.wfile.write(data)
        except OSError:
            pass


class _TCPServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, address: tuple[str, int], store: Store, owner: Server) -> None:
        self.store = store
        self.owner = owner
        super().__init__(address, _PeerHandler)


class Server:
    """Listens on an address and serves each client in its own thread.

    The socket is bound when the server is created.
    """

    def __init__(self, address: str | tuple[str, int], store: Store) -> None:
        self.store = store
        self._peers: set[str] = set()
        self._lock = threading.Lock()
        self._serving = False
        self._closed = False
        self._server = _TCPServer(_parse_address(address), store, self)

    def server_address(self) -> tuple[str, int]:
        """The host and port the server is bound to."""
        host, port = self._server.server_address[:2]
        return host, port

    def serve_forever(self) -> None:
        """Accept and serve clients until :meth:`shutdown` is called."""
        with self._lock:
            if self._closed:
                raise RuntimeError("server has been shut down")
            self._serving = True
        logger.info("server listening on %s:%s", *self.server_address())
        try:
            self._server.serve_forever()
        finally:
            with self._lock:
                self._serving = False

    def shutdown(self) -> None:
        """Stop serving and close the listening socket."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            serving = self._serving
        if serving:
            self._server.shutdown()
        self._server.server_close()

    def _add_peer(self, name: str) -> None:
        with self._lock:
            self._peers.add(name)
        logger.info("added peer: %s", name)

    def _remove_peer(self, name: str) -> None:
        with self._lock:
            self._peers.discard(name)
        logger.info("removed peer: %s", name)


def main(argv: list[str] | None = None) -> int:
    """Run the server until interrupted."""
    parser = argparse.ArgumentParser(prog="kvresp", description="In-memory RESP key-value server.")
    parser.add_argument("--address", default=DEFAULT_ADDRESS, help="host:port to listen on")
    parser.add_argument(
        "--cleanup-interval",
        type=float,
        default=1.0,
        help="seconds between sweeps for expired keys",
    )
    options = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    store = Store()
    store.start_cleaner(options.cleanup_interval)
    try:
        try:
            server = Server(options.address, store)
        except (OSError, ValueError) as exc:
            logger.error("cannot listen on %s: %s", options.address, exc)
            return 1
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
        finally:
            server.shutdown()
        return 0
    finally:
        store.stop_cleaner()