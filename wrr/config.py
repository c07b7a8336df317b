from __future__ import annotations

import os

from wrr.core.errors import InvalidPoolError, InvalidWeightError
from wrr.core.pool import Endpoint

DEFAULT_POOL = (
    "192.168.0.100=3,"
    "192.168.0.101=2,"
    "192.168.0.102=6,"
    "192.168.0.103=4,"
    "192.168.0.104=1"
)

WRR_POOL = os.getenv("WRR_POOL", DEFAULT_POOL).strip()
WRR_ORDER = os.getenv("WRR_ORDER", "input").strip().lower()
SIMULATE_MAX_CALLS = int(os.getenv("WRR_SIMULATE_MAX_CALLS", "1000000"))
STREAM_INTERVAL_SEC = float(os.getenv("WRR_STREAM_INTERVAL_SEC", "0.5"))
SERVICE_URL = os.getenv("WRR_SERVICE_URL", "http://wrr:8000").rstrip("/")


def parse_pool(raw: str) -> list[Endpoint]:
    """
    Parse "addr=weight,addr=weight" into endpoints.

    A bare address gets weight 1. Blank items are skipped.
    """
    out: list[Endpoint] = []
    for item in (x.strip() for x in raw.split(",")):
        if not item:
            continue
        address, sep, weight = item.rpartition("=")
        if not sep:
            address, weight = item, "1"
        address = address.strip()
        if not address:
            raise InvalidPoolError(f"missing address in pool entry {item!r}")
        try:
            value = int(weight.strip())
        except ValueError:
            raise InvalidWeightError(address, weight.strip()) from None
        if value < 0:
            raise InvalidWeightError(address, value)
        out.append(Endpoint(address=address, weight=value))

    if not out:
        raise InvalidPoolError("WRR_POOL is empty")
    return out
