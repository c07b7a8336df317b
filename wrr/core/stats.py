from __future__ import annotations

import threading
from collections import Counter
from typing import Optional

from .pool import Endpoint


class SelectionCounter:
    """Per-address tally of selections, safe to share between threads."""

    def __init__(self):
        self._counts: Counter[str] = Counter()
        self._unavailable = 0
        self._lock = threading.Lock()

    def record(self, endpoint: Optional[Endpoint]) -> None:
        self.record_address(None if endpoint is None else endpoint.address)

    def record_address(self, address: Optional[str]) -> None:
        with self._lock:
            if address is None:
                self._unavailable += 1
            else:
                self._counts[address] += 1

    def counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def get(self, address: str) -> int:
        with self._lock:
            return self._counts.get(address, 0)

    @property
    def total(self) -> int:
        with self._lock:
            return sum(self._counts.values())

    @property
    def unavailable(self) -> int:
        with self._lock:
            return self._unavailable

    def share(self, address: str) -> float:
        with self._lock:
            total = sum(self._counts.values())
            return (self._counts.get(address, 0) / total) * 100.0 if total > 0 else 0.0

    def most_common(self) -> list[tuple[str, int]]:
        with self._lock:
            return self._counts.most_common()

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "total": sum(self._counts.values()),
                "unavailable": self._unavailable,
                "counts": dict(self._counts),
            }

    def reset(self) -> dict:
        with self._lock:
            before = {
                "total": sum(self._counts.values()),
                "unavailable": self._unavailable,
                "counts": dict(self._counts),
            }
            self._counts.clear()
            self._unavailable = 0
            return before
