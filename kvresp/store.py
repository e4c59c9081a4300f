"""Thread-safe in-memory store for strings, hashes and lists."""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections import deque

logger = logging.getLogger(__name__)


class Store:
    """Keyed storage with expiry for strings and blocking-pop support for lists.

    Waiters registered with :meth:`register_waiter` are ``queue.Queue``
    objects; a left push hands them ``(key, value)`` pairs.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._hashes: dict[str, dict[str, str]] = {}
        self._lists: dict[str, deque[str]] = {}
        self._waiters: dict[str, deque[queue.Queue]] = {}
        self._expiries: dict[str, float] = {}
        self._lock = threading.RLock()
        self._cleaner: threading.Thread | None = None
        self._cleaner_stop = threading.Event()

    def set(self, key: str, value: str) -> None:
        """Store a string value."""
        with self._lock:
            self._data[key] = value

    def get(self, key: str) -> str | None:
        """Return the string stored at key, or None if missing or expired."""
        with self._lock:
            deadline = self._expiries.get(key)
            if deadline is not None and time.monotonic() > deadline:
                self._data.pop(key, None)
                del self._expiries[key]
                return None
            return self._data.get(key)

    def delete(self, key: str) -> bool:
        """Remove a string key; report whether it existed."""
        with self._lock:
            return self._data.pop(key, None) is not None

    def exists(self, key: str) -> bool:
        """Report whether a string key is present."""
        with self._lock:
            return key in self._data

    def expire(self, key: str, seconds: int) -> bool:
        """Set a key to expire after the given number of seconds."""
        with self._lock:
            if key not in self._data:
                return False
            self._expiries[key] = time.monotonic() + seconds
            return True

    def hset(self, key: str, fields: dict[str, str]) -> None:
        """Set fields in the hash stored at key, creating it if needed."""
        with self._lock:
            self._hashes.setdefault(key, {}).update(fields)

    def hget(self, key: str, field: str) -> str | None:
        """Return one field of a hash, or None."""
        with self._lock:
            return self._hashes.get(key, {}).get(field)

    def hgetall(self, key: str) -> dict[str, str] | None:
        """Return a copy of the hash stored at key, or None if there is none."""
        with self._lock:
            stored = self._hashes.get(key)
            return dict(stored) if stored is not None else None

    def lpush(self, key: str, *values: str) -> int:
        """Prepend values one by one and serve waiting poppers; return the length."""
        with self._lock:
            items = self._lists.setdefault(key, deque())
            items.extendleft(values)
            waiters = self._waiters.get(key)
            while items and waiters:
                waiter = waiters.popleft()
                try:
                    waiter.put_nowait((key, items[0]))
                except queue.Full:
                    continue
                items.popleft()
            if not waiters:
                self._waiters.pop(key, None)
            logger.debug("LPUSH %s -> %s", key, list(items))
            return len(items)

    def rpush(self, key: str, *values: str) -> int:
        """Append values to the list at key; return the new length."""
        with self._lock:
            items = self._lists.setdefault(key, deque())
            items.extend(values)
            logger.debug("RPUSH %s -> %s", key, list(items))
            return len(items)

    def lpop(self, key: str) -> str | None:
        """Remove and return the first element of a list, or None."""
        with self._lock:
            items = self._lists.get(key)
            return items.popleft() if items else None

    def rpop(self, key: str) -> str | None:
        """Remove and return the last element of a list, or None."""
        with self._lock:
            items = self._lists.get(key)
            return items.pop() if items else None

    def register_waiter(self, key: str, waiter: queue.Queue) -> None:
        """Queue a waiter to receive the next value left-pushed onto key."""
        with self._lock:
            self._waiters.setdefault(key, deque()).append(waiter)

    def purge_expired(self) -> list[str]:
        """Delete every expired key and return the keys removed."""
        with self._lock:
            now = time.monotonic()
            expired = [key for key, deadline in self._expiries.items() if now > deadline]
            for key in expired:
                self._data.pop(key, None)
                del self._expiries[key]
                logger.info("deleted expired key: %s", key)
            return expired

    def start_cleaner(self, interval: float) -> None:
        """Purge expired keys every ``interval`` seconds in a background thread."""
        if self._cleaner is not None and self._cleaner.is_alive():
            raise RuntimeError("cleaner is already running")
        self._cleaner_stop.clear()
        self._cleaner = threading.Thread(
            target=self._run_cleaner, args=(interval,), daemon=True
        )
        self._cleaner.start()

    def stop_cleaner(self) -> None:
        """Stop the background cleaner, if running, and wait for it."""
        self._cleaner_stop.set()
        if self._cleaner is not None:
            self._cleaner.join()
            self._cleaner = None

    def _run_cleaner(self, interval: float) -> None:
        while not self._cleaner_stop.wait(interval):
            self.purge_expired()