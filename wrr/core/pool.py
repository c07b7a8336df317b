from __future__ import annotations

import math
from dataclasses import dataclass
from functools import reduce
from typing import Iterable, Union

from .errors import InvalidPoolError, InvalidWeightError

ORDER_INPUT = "input"
ORDER_ASCENDING = "ascending"
ORDERS = (ORDER_INPUT, ORDER_ASCENDING)


@dataclass(frozen=True)
class Endpoint:
    address: str
    weight: int = 1


EndpointLike = Union[Endpoint, tuple]


def _coerce(entry: EndpointLike) -> Endpoint:
    if isinstance(entry, Endpoint):
        address, weight = entry.address, entry.weight
    else:
        try:
            address, weight = entry
        except (TypeError, ValueError):
            raise InvalidPoolError(f"malformed pool entry {entry!r}") from None

    # bool is an int subclass; True/False are not weights
    if isinstance(weight, bool) or not isinstance(weight, int) or weight < 0:
        raise InvalidWeightError(str(address), weight)
    return entry if isinstance(entry, Endpoint) else Endpoint(address=str(address), weight=weight)


def pool_gcd(weights: Iterable[int]) -> int:
    return reduce(math.gcd, weights, 0)


def build_pool(entries: Iterable[EndpointLike], order: str = ORDER_INPUT) -> tuple[Endpoint, ...]:
    """
    Validate entries and return the pool in scan order.

    "input" keeps the caller's order, "ascending" sorts by weight (stable,
    so equal weights keep their relative order).
    """
    if order not in ORDERS:
        raise ValueError(f"unknown order {order!r}, expected one of {ORDERS}")

    pool = [_coerce(e) for e in entries]
    if not pool:
        raise InvalidPoolError("pool must contain at least one endpoint")

    if order == ORDER_ASCENDING:
        pool.sort(key=lambda e: e.weight)
    return tuple(pool)
