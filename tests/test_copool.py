import threading
from unittest import mock

from taskweave.copool import Copool, ObjectPool
from taskweave.queue import Queue

TIMEOUT = 30


def test_pool_runs_every_task():
    pool = Copool(10000)
    total = 2000
    collected = Queue(True)
    lock = threading.Lock()
    done = threading.Event()

    def task():
        with lock:
            collected.put(len(collected))
            if len(collected) == total:
                done.set()

    for _ in range(total):
        pool.go(task)
    assert done.wait(TIMEOUT)
    assert len(collected) == total
    assert sorted(collected.pop() for _ in range(total)) == list(range(total))


def test_panic_handler_receives_exception():
    pool = Copool(10000)
    caught = []
    done = threading.Event()

    def handler(ctx, exc):
        caught.append((ctx, exc))
        done.set()

    returned = pool.set_panic_handler(handler)
    assert returned is pool

    def divide_by_zero():
        n = 0
        return 1 / n

    pool.go(divide_by_zero)
    assert done.wait(TIMEOUT)
    assert len(caught) == 1
    ctx, exc = caught[0]
    assert ctx is None
    assert isinstance(exc, ZeroDivisionError)


def test_ctx_go_passes_context_to_handler():
    pool = Copool(4)
    seen = Queue(True)
    done = threading.Event()

    def handler(ctx, exc):
        seen.put((ctx, str(exc)))
        done.set()

    assert pool.set_panic_handler(handler) is pool

    def fail():
        raise ValueError("boom")

    pool.ctx_go({"request": 7}, fail)
    assert done.wait(TIMEOUT)
    assert len(seen) == 1
    assert seen.pop() == ({"request": 7}, "boom")


def test_pool_keeps_working_after_a_handled_panic():
    pool = Copool(2)
    pool.set_panic_handler(lambda ctx, exc: None)
    done = threading.Event()

    def fail():
        raise RuntimeError("x")

    pool.go(fail)
    pool.go(done.set)
    assert done.wait(TIMEOUT)


def test_sequential_exec_with_single_worker():
    pool = Copool(1)
    total = 10000
    results = Queue(False)
    state = {"idx": 0}
    done = threading.Event()

    def task():
        results.put(state["idx"])
        state["idx"] += 1
        if state["idx"] == total:
            done.set()

    for _ in range(total):
        pool.go(task)
    assert done.wait(TIMEOUT)
    assert len(results) == total
    assert [results.get(i) for i in range(total)] == list(range(total))


def test_unhandled_panic_reports_and_exits(capsys):
    pool = Copool(1)
    exited = threading.Event()
    codes = []

    def fake_exit(code):
        codes.append(code)
        exited.set()

    def fail():
        raise KeyError("missing")

    with mock.patch("os._exit", side_effect=fake_exit):
        pool.go(fail)
        assert exited.wait(TIMEOUT)
    assert codes == [255]
    assert "[panic] copool:" in capsys.readouterr().err


def test_object_pool_reuses_returned_items():
    made = []

    def factory():
        obj = object()
        made.append(obj)
        return obj

    pool = ObjectPool(factory)
    first = pool.get()
    assert made == [first]
    pool.put(first)
    assert pool.get() is first
    second = pool.get()
    assert second is not first
    assert len(made) == 2