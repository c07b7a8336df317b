from __future__ import annotations

import logging
from dataclasses import dataclass, field
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from fastapi.concurrency import run_in_threadpool

from wrr import config
from wrr.core.selector import WeightedSelector
from wrr.core.stats import SelectionCounter
from wrr.harness import run_threaded
from wrr.logging_config import setup_logging
from wrr.stream.state_stream import router as stream_router

log = logging.getLogger(__name__)


class SelectionResponse(BaseModel):
    address: str
    weight: int
    seq: int


class EndpointView(BaseModel):
    address: str
    weight: int
    assigned: int
    assigned_pct: float
    expected_pct: float


class SelectorView(BaseModel):
    order: str
    count: int
    gcd: int
    max_weight: int
    macro_cycle: int
    last_index: int
    current_weight: int


class StatsView(BaseModel):
    total: int
    unavailable: int
    counts: dict[str, int]


class StatsResetResponse(BaseModel):
    before: StatsView
    after: StatsView


class SimulateRequest(BaseModel):
    calls: int = Field(default=10_000, ge=1)
    workers: int = Field(default=8, ge=1, le=256)


class SimulateResponse(BaseModel):
    calls: int
    workers: int
    unavailable: int
    endpoints: list[EndpointView]


@dataclass
class Runtime:
    selector: WeightedSelector
    counter: SelectionCounter = field(default_factory=SelectionCounter)


def _pct(part: int, total: int) -> float:
    return (part / total) * 100.0 if total > 0 else 0.0


def _endpoint_views(selector: WeightedSelector, counter: SelectionCounter) -> list[EndpointView]:
    counts = counter.counts()
    total = sum(counts.values())
    weight_total = sum(e.weight for e in selector.endpoints)

    return [
        EndpointView(
            address=e.address,
            weight=e.weight,
            assigned=counts.get(e.address, 0),
            assigned_pct=round(_pct(counts.get(e.address, 0), total), 3),
            expected_pct=round(_pct(e.weight, weight_total), 3),
        )
        for e in selector.endpoints
    ]


def build_runtime() -> Runtime:
    pool = config.parse_pool(config.WRR_POOL)
    return Runtime(selector=WeightedSelector(pool, order=config.WRR_ORDER))


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    app.state.rt = build_runtime()
    app.state.stream_interval_sec = config.STREAM_INTERVAL_SEC
    log.info("serving %d endpoints", len(app.state.rt.selector))
    yield


app = FastAPI(title="Weighted Round Robin Selector", version="0.1.0", lifespan=lifespan)
app.include_router(stream_router)


@app.get("/health")
def health():
    return {"status": "ok", "service": "wrr"}


@app.post("/next", response_model=SelectionResponse)
async def next_endpoint():
    rt: Runtime = app.state.rt

    chosen = await rt.selector.choose()
    rt.counter.record(chosen)
    if chosen is None:
        raise HTTPException(status_code=503, detail="No endpoint available")

    return SelectionResponse(address=chosen.address, weight=chosen.weight, seq=rt.counter.total)


@app.get("/pool", response_model=list[EndpointView])
def list_pool():
    rt: Runtime = app.state.rt
    return _endpoint_views(rt.selector, rt.counter)


@app.get("/selector", response_model=SelectorView)
def selector_state():
    rt: Runtime = app.state.rt
    return SelectorView(**rt.selector.snapshot())


@app.post("/stats/reset", response_model=StatsResetResponse)
def reset_stats():
    rt: Runtime = app.state.rt
    before = rt.counter.reset()
    return StatsResetResponse(before=StatsView(**before), after=StatsView(**rt.counter.snapshot()))


@app.post("/simulate", response_model=SimulateResponse)
async def simulate(req: SimulateRequest):
    rt: Runtime = app.state.rt
    if req.calls > config.SIMULATE_MAX_CALLS:
        raise HTTPException(status_code=422, detail=f"calls must be <= {config.SIMULATE_MAX_CALLS}")

    # fresh selector so the live cursor is not advanced
    sim = WeightedSelector(rt.selector.endpoints, order="input")
    counter = await run_in_threadpool(run_threaded, sim, req.calls, req.workers)

    return SimulateResponse(
        calls=req.calls,
        workers=req.workers,
        unavailable=counter.unavailable,
        endpoints=_endpoint_views(sim, counter),
    )
