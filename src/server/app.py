from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections import deque
from typing import Deque, Dict, Optional, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from dispatch import get_algorithm
from simulation import Simulation, SimulationSettings

logger = logging.getLogger(__name__)


class AlgorithmSelection(BaseModel):
    name: str
    options: Dict[str, object] = {}


class SettingsRequest(BaseModel):
    number_of_lanes: int = Field(4, ge=1, le=8)
    number_of_floors: int = Field(10, ge=2, le=30)
    people_flow_rate: float = Field(1.0, ge=0.1, le=10.0)
    elevator_speed: int = Field(5, ge=1, le=10)
    elevator_capacity: int = Field(8, ge=1, le=15)
    seed: Optional[int] = None


class FlowRateUpdate(BaseModel):
    people_flow_rate: float = Field(..., ge=0.1, le=10.0)


class FaultRequest(BaseModel):
    reason: Optional[str] = None


class SimulationManager:
    """Runs one simulation in the background and fans its state out to websocket clients."""

    def __init__(
        self,
        settings: Optional[SimulationSettings] = None,
        ticks_per_frame: int = 5,
        frame_interval: float = 0.1,
        max_results: int = 20,
    ) -> None:
        self.simulation = Simulation(settings)
        self.ticks_per_frame = ticks_per_frame
        self.frame_interval = frame_interval
        self.results: Deque[dict] = deque(maxlen=max_results)
        self.simulation.on_event("result", self.results.append)
        self.clients: Set[WebSocket] = set()
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _run(self) -> None:
        while True:
            async with self._lock:
                for _ in range(self.ticks_per_frame):
                    self.simulation.step()
                payload = self.current_state()
            await self.broadcast(payload)
            await asyncio.sleep(self.frame_interval)

    async def broadcast(self, payload: dict) -> None:
        message = json.dumps(payload)
        disconnected: Set[WebSocket] = set()
        for client in set(self.clients):
            try:
                await client.send_text(message)
            except WebSocketDisconnect:
                disconnected.add(client)
        for client in disconnected:
            await self.unregister(client)

    async def register(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.clients.add(websocket)
        await websocket.send_text(json.dumps(self.current_state()))

    async def unregister(self, websocket: WebSocket) -> None:
        if websocket in self.clients:
            self.clients.remove(websocket)
        with contextlib.suppress(Exception):
            await websocket.close()

    def current_state(self) -> dict:
        return {
            "time": self.simulation.current_time,
            "building": self.simulation.current_state(),
            "statistics": self.simulation.get_statistics().to_dict(),
        }

    async def set_algorithm(self, name: str, options: Dict[str, object]) -> dict:
        async with self._lock:
            if options or self.simulation.manager.get(name) is None:
                self.simulation.register_algorithm(name, get_algorithm(name, **options))
            if not self.simulation.switch_algorithm(name):
                raise ValueError(f"Unknown algorithm '{name}'")
            return self.current_state()

    async def reset(self, request: SettingsRequest) -> dict:
        async with self._lock:
            seed = request.seed if request.seed is not None else self.simulation.settings.seed
            settings = SimulationSettings(
                number_of_lanes=request.number_of_lanes,
                number_of_floors=request.number_of_floors,
                people_flow_rate=request.people_flow_rate,
                elevator_speed=request.elevator_speed,
                elevator_capacity=request.elevator_capacity,
                seed=seed,
            )
            self.simulation.reset(settings)
            return self.current_state()

    async def update_flow_rate(self, flow_rate: float) -> dict:
        async with self._lock:
            self.simulation.update_settings(flow_rate)
            return self.current_state()

    async def trigger_fault(self, elevator_id: int, reason: Optional[str]) -> bool:
        async with self._lock:
            return self.simulation.trigger_elevator_fault(elevator_id, reason)

    async def single_step(self) -> dict:
        async with self._lock:
            self.simulation.request_single_step()
            self.simulation.step()
            return self.current_state()


manager = SimulationManager()
app = FastAPI(title="Elevator Dispatch Simulation API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup() -> None:
    await manager.start()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await manager.stop()


@app.get("/state")
async def get_state() -> dict:
    return manager.current_state()


@app.get("/statistics")
async def get_statistics() -> dict:
    return manager.simulation.get_statistics().to_dict()


@app.get("/algorithms")
async def list_algorithms() -> dict:
    return {
        "current": manager.simulation.manager.current_id,
        "algorithms": manager.simulation.available_algorithms(),
    }


@app.post("/algorithm")
async def set_algorithm(selection: AlgorithmSelection) -> dict:
    try:
        return await manager.set_algorithm(selection.name, selection.options)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.post("/pause")
async def pause() -> dict:
    manager.simulation.pause()
    return manager.current_state()


@app.post("/resume")
async def resume() -> dict:
    manager.simulation.resume()
    return manager.current_state()


@app.post("/step")
async def step() -> dict:
    return await manager.single_step()


@app.post("/reset")
async def reset(request: SettingsRequest) -> dict:
    return await manager.reset(request)


@app.post("/settings/flow")
async def update_flow(update: FlowRateUpdate) -> dict:
    return await manager.update_flow_rate(update.people_flow_rate)


@app.post("/elevators/{elevator_id}/fault")
async def trigger_fault(elevator_id: int, request: FaultRequest) -> dict:
    if not await manager.trigger_fault(elevator_id, request.reason):
        raise HTTPException(status_code=404, detail=f"Elevator {elevator_id} cannot be taken out of service")
    return manager.current_state()


@app.get("/results")
async def get_results() -> list:
    return list(manager.results)


@app.websocket("/ws/stream")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await manager.register(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await manager.unregister(websocket)


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("server.app:app", host="0.0.0.0", port=8000, reload=False)
