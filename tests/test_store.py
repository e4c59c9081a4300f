import queue
import time
from unittest.mock import patch

import pytest

from kvresp.store import Store


@pytest.fixture
def store():
    return Store()


def test_set_then_get(store):
    store.set("name", "value")
    assert store.get("name") == "value"


def test_get_missing_returns_none(store):
    assert store.get("absent") is None


def test_set_overwrites(store):
    store.set("k", "first")
    store.set("k", "second")
    assert store.get("k") == "second"


def test_delete_reports_presence(store):
    store.set("k", "v")
    assert store.delete("k") is True
    assert store.delete("k") is False
    assert store.get("k") is None


def test_delete_ignores_lists(store):
    store.rpush("items", "a")
    assert store.delete("items") is False
    assert store.lpop("items") == "a"


def test_exists(store):
    assert store.exists("k") is False
    store.set("k", "v")
    assert store.exists("k") is True


def test_expire_missing_key(store):
    assert store.expire("absent", 10) is False


def test_get_honours_expiry(store):
    store.set("k", "v")
    with patch("time.monotonic") as clock:
        clock.return_value = 100.0
        assert store.expire("k", 10) is True
        clock.return_value = 110.0
        assert store.get("k") == "v"
        clock.return_value = 110.5
        assert store.get("k") is None
        assert store.exists("k") is False


def test_purge_expired_returns_removed_keys(store):
    store.set("old", "1")
    store.set("fresh", "2")
    store.set("plain", "3")
    with patch("time.monotonic") as clock:
        clock.return_value = 0.0
        store.expire("old", 5)
        store.expire("fresh", 50)
        clock.return_value = 20.0
        assert store.purge_expired() == ["old"]
        assert store.purge_expired() == []
    assert store.exists("old") is False
    assert store.get("fresh") == "2"
    assert store.get("plain") == "3"


def test_cleaner_removes_expired_keys(store):
    store.set("k", "v")
    store.expire("k", 0)
    store.start_cleaner(0.01)
    try:
        deadline = time.monotonic() + 2.0
        while store.exists("k") and time.monotonic() < deadline:
            time.sleep(0.01)
        assert store.exists("k") is False
    finally:
        store.stop_cleaner()


def test_cleaner_cannot_start_twice(store):
    store.start_cleaner(0.05)
    try:
        with pytest.raises(RuntimeError):
            store.start_cleaner(0.05)
    finally:
        store.stop_cleaner()


def test_hset_and_hget(store):
    store.hset("user", {"name": "alice", "role": "admin"})
    store.hset("user", {"role": "guest"})
    assert store.hget("user", "name") == "alice"
    assert store.hget("user", "role") == "guest"
    assert store.hget("user", "missing") is None
    assert store.hget("nohash", "name") is None


def test_hgetall_returns_copy(store):
    fields = {"a": "1", "b": "2"}
    store.hset("h", fields)
    snapshot = store.hgetall("h")
    assert snapshot == fields
    snapshot["c"] = "3"
    assert store.hgetall("h") == fields


def test_hgetall_missing(store):
    assert store.hgetall("absent") is None


def test_lpush_prepends_each_value(store):
    values = ["a", "b", "c"]
    assert store.lpush("l", *values) == len(values)
    assert [store.lpop("l") for _ in values] == list(reversed(values))
    assert store.lpop("l") is None


def test_rpush_appends(store):
    values = ["a", "b", "c"]
    assert store.rpush("l", *values) == len(values)
    assert store.rpush("l", "d") == len(values) + 1
    assert [store.lpop("l") for _ in range(len(values) + 1)] == values + ["d"]


def test_rpop_takes_from_end(store):
    store.rpush("l", "a", "b")
    assert store.rpop("l") == "b"
    assert store.rpop("l") == "a"
    assert store.rpop("l") is None


def test_pop_from_missing_list(store):
    assert store.lpop("none") is None
    assert store.rpop("none") is None


def test_lpush_serves_waiter(store):
    waiter = queue.Queue(maxsize=1)
    store.register_waiter("l", waiter)
    assert store.lpush("l", "x") == 0
    assert waiter.get_nowait() == ("l", "x")
    assert store.lpop("l") is None


def test_waiters_served_in_registration_order(store):
    first = queue.Queue(maxsize=1)
    second = queue.Queue(maxsize=1)
    store.register_waiter("l", first)
    store.register_waiter("l", second)
    assert store.lpush("l", "a", "b", "c") == 1
    assert first.get_nowait() == ("l", "c")
    assert second.get_nowait() == ("l", "b")
    assert store.lpop("l") == "a"


def test_full_waiter_is_skipped(store):
    served = queue.Queue(maxsize=1)
    served.put(("other", "value"))
    store.register_waiter("l", served)
    assert store.lpush("l", "x") == 1
    assert store.lpop("l") == "x"
    assert served.get_nowait() == ("other", "value")


def test_rpush_does_not_serve_waiters(store):
    waiter = queue.Queue(maxsize=1)
    store.register_waiter("l", waiter)
    store.rpush("l", "x")
    assert waiter.empty()
    assert store.lpop("l") == "x"