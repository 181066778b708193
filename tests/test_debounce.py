"""Tests for Debouncer - trailing-edge debounce."""

import asyncio

import pytest

from watchrun_core.debounce import Debouncer


@pytest.mark.asyncio
async def test_burst_collapses_to_one_call():
    calls = []
    debouncer = Debouncer(lambda: calls.append(1), wait_ms=50)

    for _ in range(5):
        debouncer.request()
        await asyncio.sleep(0.01)

    assert calls == []
    await asyncio.sleep(0.15)
    assert calls == [1]
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_spaced_requests_each_fire():
    calls = []
    debouncer = Debouncer(lambda: calls.append(1), wait_ms=30)

    debouncer.request()
    await asyncio.sleep(0.12)
    debouncer.request()
    await asyncio.sleep(0.12)

    assert calls == [1, 1]


@pytest.mark.asyncio
async def test_each_request_restarts_the_wait():
    """Test the call follows the last request, not the first."""
    calls = []
    debouncer = Debouncer(lambda: calls.append(1), wait_ms=100)

    debouncer.request()
    await asyncio.sleep(0.06)
    debouncer.request()
    await asyncio.sleep(0.06)

    # 120ms after the first request, but only 60ms after the second
    assert calls == []
    await asyncio.sleep(0.12)
    assert calls == [1]


@pytest.mark.asyncio
async def test_cancel_drops_pending_call():
    calls = []
    debouncer = Debouncer(lambda: calls.append(1), wait_ms=20)

    debouncer.request()
    assert debouncer.pending
    debouncer.cancel()
    assert not debouncer.pending

    await asyncio.sleep(0.08)
    assert calls == []

    # Cancelling again is harmless
    debouncer.cancel()


@pytest.mark.asyncio
async def test_last_requested_at_tracks_loop_time():
    loop = asyncio.get_running_loop()
    debouncer = Debouncer(lambda: None, wait_ms=20, loop=loop)
    assert debouncer.last_requested_at is None

    before = loop.time()
    debouncer.request()
    assert debouncer.last_requested_at >= before
    debouncer.cancel()
