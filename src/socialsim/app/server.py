from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any, AsyncIterator, Dict, Optional, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from ..sim.core.config import SimulationConfig
from ..sim.core.engine import SocialEngine
from ..sim.types.metrics import StepMetrics

logger = logging.getLogger(__name__)


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1):
        self.config = config
        self.engine = SocialEngine(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._loop())
            logger.info("Simulation loop started (frame_time=%.4fs)", self.config.frame_time)
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def shutdown(self) -> None:
        self.running = False
        if self._loop_task is None:
            return
        self._loop_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._loop_task
        self._loop_task = None
        logger.info("Simulation loop stopped")

    async def reset(self, agent_count: Optional[int] = None) -> None:
        async with self._lock:
            self.engine.reset(agent_count)
        await self._broadcast_snapshot()

    async def advance(self) -> StepMetrics:
        async with self._lock:
            return self.engine.step(self.config.frame_time * self.speed_multiplier)

    async def query(self, fn, *args: Any) -> Any:
        async with self._lock:
            return fn(*args)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.frame_time)
            if not self.running:
                continue
            try:
                metrics = await self.advance()
            except Exception:
                logger.exception("Simulation step failed at tick %d; pausing", self.engine.tick)
                self.running = False
                continue
            if metrics.tick % self.broadcast_interval == 0:
                await self._broadcast_snapshot()

    def snapshot_payload(self) -> Dict[str, Any]:
        snapshot = self.engine.snapshot()
        metrics = self.engine.metrics
        return {
            "tick": snapshot.tick,
            "sim_time": snapshot.sim_time,
            "width": snapshot.width,
            "height": snapshot.height,
            "metrics": asdict(metrics) if metrics is not None else None,
            "agents": snapshot.agents,
        }

    async def _broadcast_snapshot(self) -> None:
        if not self.clients:
            return
        async with self._lock:
            payload = json.dumps(self.snapshot_payload())
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await client.send_text(payload)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            logger.info("Dropping disconnected websocket client")
            self.clients.discard(client)


controller = SimulationController(SimulationConfig())


@asynccontextmanager
async def _lifespan(_app: FastAPI) -> AsyncIterator[None]:
    await controller.start()
    yield
    await controller.shutdown()


app = FastAPI(title="Social Field Simulation", lifespan=_lifespan)


class ParamsPatch(BaseModel):
    """Partial update of the simulation tunables; omitted fields keep their value."""

    # unknown names pass through and are logged by the engine
    model_config = ConfigDict(extra="allow")

    sense_radius: Optional[float] = None
    forget_rate: Optional[float] = None
    match_rate: Optional[float] = None
    crowd_rate: Optional[float] = None
    personal_space: Optional[float] = None
    connect_on: Optional[float] = None
    connect_off: Optional[float] = None
    w_interest: Optional[float] = None
    w_age: Optional[float] = None
    w_gender: Optional[float] = None
    w_mutual: Optional[float] = None
    age_scale: Optional[float] = None
    sep_range: Optional[float] = None
    sep_strength: Optional[float] = None
    friend_attract: Optional[float] = None
    wander_accel: Optional[float] = None
    drag: Optional[float] = None
    max_speed: Optional[float] = None
    restitution: Optional[float] = None
    wander_ttl_min: Optional[float] = None
    wander_ttl_max: Optional[float] = None


def _require_agent(agent_id: str) -> None:
    if controller.engine.get_agent(agent_id) is None:
        raise HTTPException(status_code=404, detail=f"unknown agent {agent_id!r}")


@app.get("/api/status")
async def status() -> JSONResponse:
    stats = await controller.query(controller.engine.get_stats)
    metrics = controller.engine.metrics
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.engine.tick,
            "sim_time": controller.engine.sim_time,
            "speed": controller.speed_multiplier,
            "stats": asdict(stats),
            "metrics": asdict(metrics) if metrics is not None else None,
        }
    )


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    controller.running = True
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    controller.running = False
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation(payload: Optional[dict] = None) -> JSONResponse:
    agent_count = None
    if payload and payload.get("agents") is not None:
        agent_count = int(payload["agents"])
    await controller.reset(agent_count)
    return JSONResponse({"running": controller.running, "population": len(controller.engine.agents)})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.post("/api/control/resize")
async def resize_arena(payload: dict) -> JSONResponse:
    width = float(payload["width"])
    height = float(payload["height"])
    await controller.query(controller.engine.resize, width, height)
    return JSONResponse({"width": width, "height": height})


@app.patch("/api/params")
async def update_params(payload: ParamsPatch) -> JSONResponse:
    await controller.query(controller.engine.update_params, payload.model_dump(exclude_none=True))
    return JSONResponse(asdict(controller.engine.params))


@app.get("/api/agents")
async def list_agents() -> JSONResponse:
    payload = await controller.query(controller.snapshot_payload)
    return JSONResponse(payload)


@app.get("/api/agents/{agent_id}")
async def get_agent(agent_id: str) -> JSONResponse:
    agent = await controller.query(controller.engine.get_agent, agent_id)
    if agent is None:
        raise HTTPException(status_code=404, detail=f"unknown agent {agent_id!r}")
    payload = SocialEngine.agent_payload(agent)
    payload["affinity"] = dict(agent.affinity)
    payload["interest_tags"] = agent.interest_tags()
    return JSONResponse(payload)


@app.get("/api/agents/{agent_id}/contacts")
async def get_contacts(agent_id: str, radius: float = 150.0) -> JSONResponse:
    _require_agent(agent_id)
    sets = await controller.query(controller.engine.get_contact_sets, agent_id, radius)
    return JSONResponse(asdict(sets))


@app.get("/api/agents/{agent_id}/matches")
async def get_matches(agent_id: str, n: int = 5) -> JSONResponse:
    _require_agent(agent_id)
    matches = await controller.query(controller.engine.match_top_n, agent_id, n)
    return JSONResponse([asdict(item) for item in matches])


@app.get("/api/pick")
async def pick(x: float, y: float, radius: Optional[float] = None) -> JSONResponse:
    agent_id = await controller.query(controller.engine.pick_agent, x, y, radius)
    return JSONResponse({"id": agent_id})


@app.get("/api/path")
async def path(start: str, end: str) -> JSONResponse:
    ids = await controller.query(controller.engine.find_path, start, end)
    return JSONResponse({"path": ids, "hops": max(0, len(ids) - 1)})


@app.get("/api/stats")
async def stats() -> JSONResponse:
    result = await controller.query(controller.engine.get_stats)
    return JSONResponse(asdict(result))


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    await controller._broadcast_snapshot()
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        controller.clients.discard(websocket)


__all__ = ["app", "controller", "ParamsPatch", "SimulationController"]
