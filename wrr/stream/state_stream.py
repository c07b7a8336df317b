from __future__ import annotations

import asyncio
from typing import Any, Dict

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

router = APIRouter(tags=["stream"])


def _state_snapshot(app) -> Dict[str, Any]:
    rt = app.state.rt

    counts = rt.counter.counts()
    total = sum(counts.values())

    endpoints = []
    for e in rt.selector.endpoints:
        assigned = counts.get(e.address, 0)
        endpoints.append(
            {
                "address": e.address,
                "weight": e.weight,
                "assigned": assigned,
                "assigned_pct": (assigned / total * 100.0) if total > 0 else 0.0,
            }
        )

    return {
        "type": "state",
        "payload": {
            "order": rt.selector.order,
            "total_assigned": total,
            "unavailable": rt.counter.unavailable,
            "endpoints": endpoints,
        },
    }


@router.websocket("/stream")
async def stream(ws: WebSocket):
    await ws.accept()

    interval = float(getattr(ws.app.state, "stream_interval_sec", 0.5))

    try:
        while True:
            await ws.send_json(_state_snapshot(ws.app))
            await asyncio.sleep(interval)
    except WebSocketDisconnect:
        return
