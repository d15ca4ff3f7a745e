import threading

import pytest

from booklend.buffer import BufferClosed, RequestBuffer
from booklend.entities import ITEMS_BUFFER, Request


def test_default_capacity():
    assert RequestBuffer().capacity == ITEMS_BUFFER


def test_invalid_capacity():
    with pytest.raises(ValueError):
        RequestBuffer(0)


def test_fifo_order():
    buf = RequestBuffer(3)
    reqs = [Request("D", "a", 1), Request("R", "b", 2), Request("D", "c", 3)]
    for req in reqs:
        buf.put(req)
    assert len(buf) == 3
    assert [buf.get() for _ in reqs] == reqs
    assert len(buf) == 0


def test_wraps_around_many_times():
    buf = RequestBuffer(2)
    out = []
    for i in range(7):
        buf.put(i)
        out.append(buf.get())
    assert out == list(range(7))


def test_put_blocks_when_full():
    buf = RequestBuffer(1)
    buf.put("first")
    worker = threading.Thread(target=buf.put, args=("second",))
    worker.start()
    worker.join(0.2)
    assert worker.is_alive()
    assert buf.get() == "first"
    worker.join(2)
    assert not worker.is_alive()
    assert buf.get() == "second"


def test_get_blocks_until_put():
    buf = RequestBuffer(2)
    result = []
    worker = threading.Thread(target=lambda: result.append(buf.get()))
    worker.start()
    worker.join(0.2)
    assert worker.is_alive()
    buf.put("item")
    worker.join(2)
    assert result == ["item"]


def test_close_wakes_waiting_consumer():
    buf = RequestBuffer(2)
    outcomes = []

    def consume():
        try:
            outcomes.append(("item", buf.get()))
        except BufferClosed:
            outcomes.append(("closed", None))

    worker = threading.Thread(target=consume)
    worker.start()
    worker.join(0.1)
    assert worker.is_alive()
    buf.close()
    worker.join(2)
    assert not worker.is_alive()
    assert outcomes == [("closed", None)]
    assert buf.closed is True
    assert len(buf) == 0


def test_close_drains_then_raises():
    buf = RequestBuffer(2)
    buf.put("left")
    buf.close()
    assert buf.closed
    assert buf.get() == "left"
    with pytest.raises(BufferClosed):
        buf.get()


def test_put_after_close_raises():
    buf = RequestBuffer(2)
    buf.close()
    with pytest.raises(BufferClosed):
        buf.put("x")