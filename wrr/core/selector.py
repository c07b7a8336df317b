from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Optional

from .pool import ORDER_INPUT, Endpoint, EndpointLike, build_pool, pool_gcd

log = logging.getLogger(__name__)


class WeightedSelector:
    """
    GCD-stepped weighted round robin over a fixed pool.

    Every call advances a cursor over the pool; each time the cursor wraps,
    the weight threshold drops by the gcd of all weights (and is refilled to
    the max weight once it reaches zero). An endpoint is returned when its
    weight reaches the current threshold.

    Over sum(weights)/gcd consecutive calls each endpoint is chosen exactly
    weight/gcd times. next() returns None when no endpoint has a positive
    weight.
    """

    def __init__(self, entries: Iterable[EndpointLike], order: str = ORDER_INPUT):
        self._endpoints = build_pool(entries, order)
        self._order = order

        weights = [e.weight for e in self._endpoints]
        self._gcd = pool_gcd(weights)
        self._max_weight = max(weights)
        self._count = len(self._endpoints)

        self._last_index = -1
        self._current_weight = 0
        self._lock = threading.Lock()

        log.info(
            "selector ready: %d endpoints, order=%s, gcd=%d, max_weight=%d",
            self._count,
            order,
            self._gcd,
            self._max_weight,
        )

    @property
    def endpoints(self) -> tuple[Endpoint, ...]:
        return self._endpoints

    @property
    def order(self) -> str:
        return self._order

    @property
    def gcd(self) -> int:
        return self._gcd

    @property
    def max_weight(self) -> int:
        return self._max_weight

    @property
    def count(self) -> int:
        return self._count

    @property
    def macro_cycle(self) -> int:
        if self._gcd == 0:
            return 0
        return sum(e.weight for e in self._endpoints) // self._gcd

    def __len__(self) -> int:
        return self._count

    def next(self) -> Optional[Endpoint]:
        with self._lock:
            if self._max_weight == 0:
                log.debug("no endpoint with positive weight")
                return None

            while True:
                self._last_index = (self._last_index + 1) % self._count
                if self._last_index == 0:
                    self._current_weight -= self._gcd
                    if self._current_weight <= 0:
                        self._current_weight = self._max_weight

                candidate = self._endpoints[self._last_index]
                if candidate.weight >= self._current_weight:
                    return candidate

    async def choose(self) -> Optional[Endpoint]:
        return self.next()

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "order": self._order,
                "count": self._count,
                "gcd": self._gcd,
                "max_weight": self._max_weight,
                "macro_cycle": self.macro_cycle,
                "last_index": self._last_index,
                "current_weight": self._current_weight,
            }
