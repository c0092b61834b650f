import threading

import pytest

from mipatlas.errors import PrimitiveError, StreamError
from mipatlas.stream_handler import ExecutionStream


@pytest.fixture
def stream():
    s = ExecutionStream("test")
    s.start()
    yield s
    s.stop()


def test_commands_run_in_fifo_order(stream):
    order = []
    for i in range(50):
        stream.enqueue(f"cmd {i}", lambda i=i: order.append(i))
    stream.synchronize()
    assert order == list(range(50))
    assert stream.executed_count == 50


def test_enqueue_does_not_block(stream):
    gate = threading.Event()
    done = []
    stream.enqueue("blocked", gate.wait)
    stream.enqueue("after", lambda: done.append(True))
    assert done == []
    gate.set()
    stream.synchronize()
    assert done == [True]


def test_failure_surfaces_at_synchronize(stream):
    def boom():
        raise RuntimeError("device fault")

    stream.enqueue("boom", boom)
    with pytest.raises(StreamError, match="boom") as excinfo:
        stream.synchronize()
    assert isinstance(excinfo.value, PrimitiveError)
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_commands_after_failure_are_skipped(stream):
    ran = []

    def boom():
        raise RuntimeError("device fault")

    stream.enqueue("boom", boom)
    stream.enqueue("skipped", lambda: ran.append("skipped"))
    with pytest.raises(StreamError):
        stream.synchronize()
    assert ran == []

    # Reported failures are cleared
    stream.enqueue("next", lambda: ran.append("next"))
    stream.synchronize()
    assert ran == ["next"]


def test_wait_idle_keeps_failure_pending(stream):
    def boom():
        raise RuntimeError("device fault")

    stream.enqueue("boom", boom)
    stream.wait_idle()
    with pytest.raises(StreamError):
        stream.synchronize()


def test_enqueue_after_stop_raises():
    s = ExecutionStream("stopped")
    s.start()
    s.stop()
    with pytest.raises(StreamError):
        s.enqueue("late", lambda: None)
