"""
Drive a selector from many concurrent callers and report the resulting
per-endpoint distribution.
"""
from __future__ import annotations

import argparse
import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

import httpx

from wrr import config
from wrr.clients.selector_api import fetch_next
from wrr.core.pool import ORDERS, Endpoint
from wrr.core.selector import WeightedSelector
from wrr.core.stats import SelectionCounter
from wrr.logging_config import get_logger, setup_logging

log = get_logger(__name__)


def _split(calls: int, parts: int) -> list[int]:
    base, extra = divmod(calls, parts)
    return [base + (1 if i < extra else 0) for i in range(parts)]


def run_threaded(selector: WeightedSelector, calls: int, workers: int = 8) -> SelectionCounter:
    if calls < 0:
        raise ValueError("calls must be >= 0")
    workers = max(1, workers)
    counter = SelectionCounter()

    def _work(n: int) -> None:
        for _ in range(n):
            counter.record(selector.next())

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(_work, n) for n in _split(calls, workers) if n > 0]
        for f in futures:
            f.result()

    return counter


async def run_async(selector: WeightedSelector, calls: int, concurrency: int = 100) -> SelectionCounter:
    if calls < 0:
        raise ValueError("calls must be >= 0")
    counter = SelectionCounter()

    async def _work(n: int) -> None:
        for _ in range(n):
            counter.record(await selector.choose())
            await asyncio.sleep(0)

    await asyncio.gather(*[_work(n) for n in _split(calls, max(1, concurrency)) if n > 0])
    return counter


async def run_remote(
    base_url: str,
    calls: int,
    concurrency: int = 20,
    timeout_sec: float = 2.0,
    client: Optional[httpx.AsyncClient] = None,
) -> SelectionCounter:
    if calls < 0:
        raise ValueError("calls must be >= 0")
    counter = SelectionCounter()
    base_url = base_url.rstrip("/")

    async def _work(c, n: int) -> None:
        for _ in range(n):
            body = await fetch_next(c, base_url, timeout_sec=timeout_sec)
            counter.record_address(None if body is None else body["address"])

    async def _drive(c) -> None:
        await asyncio.gather(*[_work(c, n) for n in _split(calls, max(1, concurrency)) if n > 0])

    if client is not None:
        await _drive(client)
        return counter

    async with httpx.AsyncClient(timeout=timeout_sec) as c:
        await _drive(c)
    return counter


def format_report(counter: SelectionCounter, pool: Sequence[Endpoint]) -> list[str]:
    weights = {e.address: e.weight for e in pool}
    lines = []
    for address, n in counter.most_common():
        lines.append(
            f"{address} (weight {weights.get(address, '?')}): {n} calls, {counter.share(address):.2f}%"
        )
    if counter.unavailable:
        lines.append(f"unavailable: {counter.unavailable} calls")
    return lines


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="wrr-harness", description=__doc__)
    p.add_argument("--calls", type=int, default=100_000)
    p.add_argument("--workers", type=int, default=8, help="threads or concurrent tasks")
    p.add_argument("--pool", default=config.WRR_POOL, help="addr=weight,addr=weight")
    p.add_argument("--order", default=config.WRR_ORDER, choices=ORDERS)
    p.add_argument("--mode", default="threads", choices=("threads", "async"))
    p.add_argument("--log-level", default=None)
    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    setup_logging(args.log_level)

    selector = WeightedSelector(config.parse_pool(args.pool), order=args.order)

    if args.mode == "async":
        counter = asyncio.run(run_async(selector, args.calls, args.workers))
    else:
        counter = run_threaded(selector, args.calls, args.workers)

    for line in format_report(counter, selector.endpoints):
        log.info(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
