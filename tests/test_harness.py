import asyncio
import logging

import pytest

import wrr.harness as harness
from wrr.core.selector import WeightedSelector


POOL = [("A", 3), ("B", 2), ("C", 6), ("D", 4), ("E", 1)]


def _single_threaded_counts(calls):
    s = WeightedSelector(POOL)
    out = {}
    for _ in range(calls):
        e = s.next()
        out[e.address] = out.get(e.address, 0) + 1
    return out


@pytest.mark.parametrize("calls", [16 * 500, 10_003])
def test_threaded_run_matches_single_threaded_counts(calls):
    counter = harness.run_threaded(WeightedSelector(POOL), calls, workers=16)
    assert counter.total == calls
    assert counter.counts() == _single_threaded_counts(calls)


def test_threaded_run_full_cycles_match_weights():
    counter = harness.run_threaded(WeightedSelector(POOL), 16 * 1000, workers=32)
    assert counter.counts() == {"A": 3000, "B": 2000, "C": 6000, "D": 4000, "E": 1000}


def test_threaded_run_counts_unavailable():
    counter = harness.run_threaded(WeightedSelector([("a", 0), ("b", 0), ("c", 0)]), 50, workers=4)
    assert counter.total == 0
    assert counter.unavailable == 50


def test_threaded_run_rejects_negative_calls():
    with pytest.raises(ValueError):
        harness.run_threaded(WeightedSelector(POOL), -1)


@pytest.mark.asyncio
async def test_async_run_matches_single_threaded_counts():
    counter = await harness.run_async(WeightedSelector(POOL), 4321, concurrency=50)
    assert counter.counts() == _single_threaded_counts(4321)


@pytest.mark.asyncio
async def test_remote_run_tallies_addresses():
    class FakeResponse:
        def __init__(self, status_code, body=None):
            self.status_code = status_code
            self._body = body

        def raise_for_status(self):
            return None

        def json(self):
            return self._body

    class FakeClient:
        def __init__(self):
            self.replies = [
                FakeResponse(200, {"address": "A", "weight": 1, "seq": 1}),
                FakeResponse(503),
                FakeResponse(200, {"address": "B", "weight": 1, "seq": 2}),
                FakeResponse(200, {"address": "A", "weight": 1, "seq": 3}),
            ]
            self.calls = []

        async def post(self, url, json=None, timeout=None):
            self.calls.append(url)
            return self.replies.pop(0)

    client = FakeClient()
    counter = await harness.run_remote("http://wrr:8000/", 4, concurrency=1, client=client)

    assert counter.counts() == {"A": 2, "B": 1}
    assert counter.unavailable == 1
    assert client.calls == ["http://wrr:8000/next"] * 4


def test_format_report_sorted_by_count():
    s = WeightedSelector(POOL)
    counter = harness.run_threaded(s, 16, workers=1)
    lines = harness.format_report(counter, s.endpoints)

    assert lines[0] == "C (weight 6): 6 calls, 37.50%"
    assert lines[-1] == "E (weight 1): 1 calls, 6.25%"
    assert len(lines) == 5


def test_format_report_includes_unavailable():
    s = WeightedSelector([("a", 0), ("b", 0)])
    counter = harness.run_threaded(s, 3, workers=1)
    assert harness.format_report(counter, s.endpoints) == ["unavailable: 3 calls"]


def test_main_logs_report(caplog):
    caplog.set_level(logging.INFO, logger="wrr.harness")
    rc = harness.main(["--calls", "32", "--workers", "4", "--pool", "a=1,b=3", "--mode", "threads"])

    assert rc == 0
    messages = [r.getMessage() for r in caplog.records if r.name == "wrr.harness"]
    assert "b (weight 3): 24 calls, 75.00%" in messages
    assert "a (weight 1): 8 calls, 25.00%" in messages


def test_main_async_mode(caplog):
    caplog.set_level(logging.INFO, logger="wrr.harness")
    rc = harness.main(["--calls", "10", "--workers", "3", "--pool", "only=2", "--mode", "async"])

    assert rc == 0
    messages = [r.getMessage() for r in caplog.records if r.name == "wrr.harness"]
    assert messages == ["only (weight 2): 10 calls, 100.00%"]


@pytest.mark.asyncio
async def test_async_run_uses_bounded_worker_tasks():
    class TrackingSelector:
        def __init__(self, inner):
            self.inner = inner
            self.tasks = set()

        async def choose(self):
            self.tasks.add(id(asyncio.current_task()))
            return self.inner.next()

    s = TrackingSelector(WeightedSelector(POOL))
    counter = await harness.run_async(s, 1000, concurrency=4)

    assert counter.total == 1000
    assert len(s.tasks) == 4


@pytest.mark.asyncio
async def test_async_run_counts_unavailable_for_zero_pool():
    counter = await harness.run_async(WeightedSelector([("a", 0), ("b", 0)]), 20, concurrency=3)
    assert counter.total == 0
    assert counter.unavailable == 20
