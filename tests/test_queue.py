import threading

import pytest

from taskweave.queue import Queue

MIN_LEN = 16


def test_simple_fifo_order():
    q = Queue(False)
    for i in range(MIN_LEN):
        q.put(i)
    for i in range(MIN_LEN):
        assert q.top() == i
        assert q.pop() == i


def test_wrapping():
    q = Queue(False)
    for i in range(MIN_LEN):
        q.put(i)
    for i in range(3):
        q.pop()
        q.put(MIN_LEN + i)
    for i in range(MIN_LEN):
        assert q.top() == i + 3
        q.pop()
    assert len(q) == 0


def test_len():
    q = Queue(False)
    assert len(q) == 0
    for i in range(1000):
        q.put(i)
        assert len(q) == i + 1
    for i in range(1000):
        q.pop()
        assert len(q) == 1000 - i - 1


def test_get():
    q = Queue(False)
    for i in range(200):
        q.put(i)
        for j in range(len(q)):
            assert q.get(j) == j


def test_get_negative():
    q = Queue(False)
    for i in range(200):
        q.put(i)
        for j in range(1, len(q) + 1):
            assert q.get(-j) == len(q) - j


def test_get_out_of_range_raises():
    q = Queue(False)
    q.put(1)
    q.put(2)
    q.put(3)
    with pytest.raises(IndexError):
        q.get(-4)
    with pytest.raises(IndexError):
        q.get(4)


def test_top_on_empty_raises():
    q = Queue(False)
    with pytest.raises(IndexError):
        q.top()
    q.put(1)
    q.pop()
    with pytest.raises(IndexError):
        q.top()


def test_pop_on_empty_raises():
    q = Queue(False)
    with pytest.raises(IndexError):
        q.pop()
    q.put(1)
    q.pop()
    with pytest.raises(IndexError):
        q.pop()


def test_try_pop_returns_default_when_empty():
    q = Queue(True)
    assert q.try_pop("none") == "none"
    q.put("a")
    assert q.try_pop("none") == "a"
    assert len(q) == 0


def test_iteration_is_front_to_back():
    q = Queue(True)
    for value in "abc":
        q.put(value)
    assert list(q) == ["a", "b", "c"]
    assert len(q) == 3


def test_thread_safe_concurrent_puts():
    q = Queue(True)

    def fill(offset):
        for i in range(500):
            q.put(offset + i)

    threads = [threading.Thread(target=fill, args=(k * 1000,)) for k in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(q) == 2000
    assert sorted(q) == sorted(k * 1000 + i for k in range(4) for i in range(500))