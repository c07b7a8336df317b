from __future__ import annotations

from typing import Optional

import httpx


async def fetch_health(client: httpx.AsyncClient, base_url: str) -> dict:
    r = await client.get(f"{base_url}/health")
    r.raise_for_status()
    return r.json()


async def fetch_next(client: httpx.AsyncClient, base_url: str, timeout_sec: float | None = None) -> Optional[dict]:
    """Ask the service for one selection; None when it reports no endpoint available."""
    r = await client.post(f"{base_url}/next", timeout=timeout_sec)
    if r.status_code == 503:
        return None
    r.raise_for_status()
    return r.json()


async def fetch_pool(client: httpx.AsyncClient, base_url: str) -> list:
    r = await client.get(f"{base_url}/pool")
    r.raise_for_status()
    return r.json()


async def reset_stats(client: httpx.AsyncClient, base_url: str) -> dict:
    r = await client.post(f"{base_url}/stats/reset")
    r.raise_for_status()
    return r.json()
