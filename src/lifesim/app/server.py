"""FastAPI driver: ticks the simulation on a background task and streams frames over ``/ws``.

Clients acknowledge frames with ``{"type": "ack", "tick": N}``. Unacknowledged
frames are kept in a bounded buffer so a client that reconnects or lags
can catch up, but an absent or silent client never holds more than
``history_capacity`` frames.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections import deque
from contextlib import asynccontextmanager, suppress
from dataclasses import asdict
from pathlib import Path
from typing import Deque, Dict, List, Optional, Tuple

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect

from ..config import SimulationConfig
from ..logging_config import configure_logging
from ..sim.core.simulation import Simulation
from ..sim.types.metrics import TickMetrics
from ..sim.types.snapshot import Snapshot

logger = logging.getLogger(__name__)

DEFAULT_TICKS_PER_SECOND = 60.0
TICK_RATE_BOUNDS = (1.0, 240.0)


def frame_payload(snapshot: Snapshot) -> dict:
    """One websocket frame: the full world plus the latest population sample."""
    return {
        "type": "frame",
        "tick": snapshot.tick,
        "world": asdict(snapshot.world),
        "agents": snapshot.agents,
        "food": snapshot.food,
        "population": snapshot.history[-1] if snapshot.history else None,
        "metrics": None if snapshot.metrics is None else asdict(snapshot.metrics),
    }


class FrameBuffer:
    """Serialized frames awaiting acknowledgement, oldest first.

    Once full, pushing a frame evicts the oldest one.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("frame buffer capacity must be positive")
        self._frames: Deque[Tuple[int, str]] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._frames)

    @property
    def capacity(self) -> int:
        return self._frames.maxlen or 0

    def ticks(self) -> List[int]:
        return [tick for tick, _ in self._frames]

    def push(self, tick: int, text: str) -> None:
        self._frames.append((tick, text))

    def after(self, tick: int) -> List[Tuple[int, str]]:
        return [frame for frame in self._frames if frame[0] > tick]

    def acknowledge(self, tick: int) -> int:
        dropped = 0
        while self._frames and self._frames[0][0] <= tick:
            self._frames.popleft()
            dropped += 1
        return dropped

    def clear(self) -> None:
        self._frames.clear()


def _log_task_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("tick loop %s stopped", task.get_name(), exc_info=exc)


class SimulationController:
    def __init__(
        self,
        config: SimulationConfig,
        *,
        broadcast_every: int = 1,
        ticks_per_second: float = DEFAULT_TICKS_PER_SECOND,
    ):
        self.simulation = Simulation(config)
        self.frames = FrameBuffer(config.history_capacity)
        self.broadcast_every = max(1, broadcast_every)
        self.running = False
        self.ticks_per_second = DEFAULT_TICKS_PER_SECOND
        self.set_rate(ticks_per_second)
        # websocket -> tick of the last frame sent to it
        self._sent: Dict[WebSocket, int] = {}
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    @property
    def tick(self) -> int:
        return self.simulation.tick

    @property
    def client_count(self) -> int:
        return len(self._sent)

    def set_rate(self, ticks_per_second: float) -> float:
        low, high = TICK_RATE_BOUNDS
        self.ticks_per_second = max(low, min(high, float(ticks_per_second)))
        return self.ticks_per_second

    def status(self) -> dict:
        world = self.simulation.world
        metrics = self.simulation.metrics
        return {
            "running": self.running,
            "tick": self.tick,
            "ticks_per_second": self.ticks_per_second,
            "clients": self.client_count,
            "population": {kind.value: count for kind, count in world.population_counts().items()},
            "food": len(world.food),
            "metrics": None if metrics is None else asdict(metrics),
        }

    async def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="lifesim-ticker")
            self._task.add_done_callback(_log_task_failure)
        self.running = True
        logger.info("simulation running from tick %d", self.tick)

    async def stop(self) -> None:
        self.running = False
        logger.info("simulation paused at tick %d", self.tick)

    async def shutdown(self) -> None:
        self.running = False
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    async def step_once(self) -> TickMetrics:
        async with self._lock:
            metrics = self.simulation.step()
        if metrics.tick % self.broadcast_every == 0:
            await self.publish()
        return metrics

    async def reset(self) -> None:
        async with self._lock:
            self.simulation.reset()
        self.frames.clear()
        for client in self._sent:
            self._sent[client] = -1
        await self.publish()

    async def update_params(self, changes: dict) -> dict:
        async with self._lock:
            params = self.simulation.set_params(**changes)
        return params.as_dict()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(1.0 / self.ticks_per_second)
            if self.running:
                await self.step_once()

    async def publish(self) -> None:
        snapshot = self.simulation.snapshot()
        self.frames.push(snapshot.tick, json.dumps(frame_payload(snapshot)))
        for client in list(self._sent):
            await self._flush(client)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._sent[websocket] = -1
        logger.info("client connected (%d total)", self.client_count)
        await self._flush(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        if self._sent.pop(websocket, None) is not None:
            logger.info("client disconnected (%d left)", self.client_count)

    def handle_message(self, text: str) -> None:
        try:
            message = json.loads(text)
        except json.JSONDecodeError:
            logger.debug("ignoring malformed websocket message")
            return
        if not isinstance(message, dict) or message.get("type") != "ack":
            return
        tick = message.get("tick")
        if isinstance(tick, int):
            self.frames.acknowledge(tick)

    async def _flush(self, websocket: WebSocket) -> None:
        last_sent = self._sent.get(websocket)
        if last_sent is None:
            return
        for tick, text in self.frames.after(last_sent):
            try:
                await websocket.send_text(text)
            except (WebSocketDisconnect, RuntimeError):
                self.disconnect(websocket)
                return
            self._sent[websocket] = tick


def _load_config() -> SimulationConfig:
    config_path = os.getenv("LIFESIM_CONFIG")
    if config_path:
        return SimulationConfig.from_yaml(Path(config_path))
    return SimulationConfig()


def create_app(config: Optional[SimulationConfig] = None) -> FastAPI:
    controller = SimulationController(config if config is not None else _load_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(server=True)
        await controller.start()
        try:
            yield
        finally:
            await controller.shutdown()

    app = FastAPI(title="lifesim", lifespan=lifespan)
    app.state.controller = controller

    @app.get("/api/status")
    async def status() -> dict:
        return controller.status()

    @app.post("/api/control/start")
    async def start_simulation() -> dict:
        await controller.start()
        return controller.status()

    @app.post("/api/control/stop")
    async def stop_simulation() -> dict:
        await controller.stop()
        return controller.status()

    @app.post("/api/control/step")
    async def step_simulation() -> dict:
        await controller.step_once()
        return controller.status()

    @app.post("/api/control/reset")
    async def reset_simulation() -> dict:
        await controller.reset()
        return controller.status()

    @app.post("/api/control/speed")
    async def set_speed(payload: dict) -> dict:
        try:
            rate = controller.set_rate(payload.get("ticks_per_second", DEFAULT_TICKS_PER_SECOND))
        except (TypeError, ValueError) as exc:
            raise HTTPException(status_code=400, detail="ticks_per_second must be numeric") from exc
        return {"ticks_per_second": rate}

    @app.get("/api/params")
    async def get_params() -> dict:
        return controller.simulation.params.as_dict()

    @app.post("/api/params")
    async def update_params(payload: dict) -> dict:
        try:
            return await controller.update_params(payload)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    @app.get("/api/history")
    async def history() -> dict:
        return controller.simulation.history.series()

    @app.websocket("/ws")
    async def stream(websocket: WebSocket) -> None:
        await controller.connect(websocket)
        try:
            while True:
                controller.handle_message(await websocket.receive_text())
        except WebSocketDisconnect:
            controller.disconnect(websocket)

    return app


app = create_app()

__all__ = ["FrameBuffer", "SimulationController", "app", "create_app", "frame_payload"]
