from __future__ import annotations

import asyncio

import pytest

from platehandler.exceptions import PlateHandlerError
from platehandler.models.plate import SpottedPlate
from platehandler.plate_queue import PlateQueue


def _plate(text: str) -> SpottedPlate:
    return SpottedPlate(plate=text, score=0.9, vehicle_type="car")


@pytest.mark.asyncio
async def test_queue_is_fifo() -> None:
    queue = PlateQueue()
    for text in ("AAA", "BBB", "CCC"):
        await queue.submit(_plate(text))

    got = [await queue.get() for _ in range(3)]

    assert [p.plate for p in got if p is not None] == ["AAA", "BBB", "CCC"]


@pytest.mark.asyncio
async def test_submit_suspends_while_full() -> None:
    queue = PlateQueue(maxsize=1)
    await queue.submit(_plate("AAA"))

    blocked = asyncio.create_task(queue.submit(_plate("BBB")))
    await asyncio.sleep(0.01)
    assert not blocked.done()

    assert (await queue.get()) == _plate("AAA")
    await asyncio.wait_for(blocked, timeout=1.0)
    assert (await queue.get()) == _plate("BBB")


@pytest.mark.asyncio
async def test_close_drains_then_reports_end_of_stream() -> None:
    queue = PlateQueue()
    await queue.submit(_plate("AAA"))
    queue.close()

    assert (await queue.get()) == _plate("AAA")
    assert await queue.get() is None
    assert await queue.get() is None
    with pytest.raises(PlateHandlerError):
        await queue.submit(_plate("BBB"))


@pytest.mark.asyncio
async def test_close_on_full_queue_returns_immediately_and_drains() -> None:
    queue = PlateQueue(maxsize=2)
    await queue.submit(_plate("AAA"))
    await queue.submit(_plate("BBB"))

    queue.close()

    assert queue.qsize() == 2
    assert (await queue.get()) == _plate("AAA")
    assert (await queue.get()) == _plate("BBB")
    assert await asyncio.wait_for(queue.get(), timeout=1.0) is None


@pytest.mark.asyncio
async def test_close_wakes_waiting_consumer() -> None:
    queue = PlateQueue()
    waiter = asyncio.create_task(queue.get())
    await asyncio.sleep(0.01)
    assert not waiter.done()

    queue.close()

    assert await asyncio.wait_for(waiter, timeout=1.0) is None
