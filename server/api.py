"""
server/api.py
=============
FastAPI authority that serves the live grid and accepts control commands.

Start it through the entry point::

    python main.py serve                 # → http://localhost:8000/api/grid/state

Endpoints
---------
``GET  /api/grid/state``                  latest snapshot (camelCase JSON)
``GET  /api/emergency/state``             ``{"emergency": {...} | null}``
``GET  /api/grid/overview``               headline metrics
``POST /api/simulation/mode``             ``{"mode": "FIXED|HEURISTIC|ML|HYBRID"}``
``POST /api/simulation/restart``          ``{"seed": int | null}``
``POST /api/emergency/start``             ``{"laneId"?, "direction"?}``
``POST /api/emergency/stop``
``POST /api/intersections/{id}/timing``   ``{"nsGreenTime"?, "ewGreenTime"?}``
``WS   /ws``                              pushes every new snapshot as
                                          ``{"type": "SIMULATION_UPDATE", "payload": ...}``

Unknown intersections answer 404, rejected values 400 and malformed
bodies 422.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

import uvicorn
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect

from feed.push import UPDATE_TYPE
from feed.schema import EmergencyStartRequest, ModeRequest, RestartRequest, TimingUpdate
from feed.snapshot import encode_emergency, encode_snapshot
from gridsim.sim_bridge import SimBridge

log = logging.getLogger("server")


def create_app(
    bridge: SimBridge,
    manage_bridge: bool = True,
    push_interval_s: float = 0.1,
) -> FastAPI:
    """Build the authority app around *bridge*.

    With *manage_bridge* the bridge thread is started when the app starts
    and stopped when it shuts down.  WebSocket clients on ``/ws`` are
    checked for a newer snapshot every *push_interval_s*.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manage_bridge:
            bridge.start()
        yield
        if manage_bridge:
            bridge.stop()

    app = FastAPI(
        title="Signal Grid Authority",
        description="Live traffic-grid snapshots and control commands.",
        version="1.0",
        lifespan=lifespan,
    )

    @app.get("/api/grid/state")
    def grid_state() -> Dict[str, Any]:
        return encode_snapshot(bridge.get_snapshot())

    @app.get("/api/emergency/state")
    def emergency_state() -> Dict[str, Any]:
        return encode_emergency(bridge.get_snapshot())

    @app.get("/api/grid/overview")
    def grid_overview() -> Dict[str, Any]:
        return bridge.get_overview()

    @app.post("/api/simulation/mode")
    def set_mode(body: ModeRequest) -> Dict[str, Any]:
        bridge.set_mode(body.mode)
        log.info("Controller mode → %s", body.mode.value)
        return {"mode": body.mode.value}

    @app.post("/api/simulation/restart")
    def restart(body: RestartRequest) -> Dict[str, Any]:
        bridge.restart(body.seed)
        return {"restarted": True, "seed": body.seed}

    @app.post("/api/emergency/start")
    def start_emergency(body: EmergencyStartRequest) -> Dict[str, Any]:
        try:
            bridge.start_emergency(body.laneId, body.direction)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return encode_emergency(bridge.get_snapshot())

    @app.post("/api/emergency/stop")
    def stop_emergency() -> Dict[str, Any]:
        bridge.stop_emergency()
        return {"emergency": None}

    @app.post("/api/intersections/{intersection_id}/timing")
    def set_timing(intersection_id: str, body: TimingUpdate) -> Dict[str, Any]:
        try:
            updated = bridge.set_green_durations(
                intersection_id, body.nsGreenTime, body.ewGreenTime,
            )
        except KeyError:
            raise HTTPException(status_code=404, detail=f"unknown intersection {intersection_id}")
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return {
            "id": updated.id,
            "nsGreenTime": updated.ns_green_s,
            "ewGreenTime": updated.ew_green_s,
        }

    @app.websocket("/ws")
    async def push_snapshots(websocket: WebSocket) -> None:
        await websocket.accept()
        log.info("Push client connected")
        last_sent = None
        try:
            while True:
                snapshot = bridge.get_snapshot()
                if last_sent is None or snapshot.timestamp > last_sent:
                    await websocket.send_json({"type": UPDATE_TYPE, "payload": encode_snapshot(snapshot)})
                    last_sent = snapshot.timestamp
                # Client frames are ignored; receiving only detects the disconnect.
                try:
                    message = await asyncio.wait_for(websocket.receive(), timeout=push_interval_s)
                except asyncio.TimeoutError:
                    continue
                if message["type"] == "websocket.disconnect":
                    break
        except WebSocketDisconnect:
            pass
        log.info("Push client disconnected")

    return app


def run_server(bridge: SimBridge, host: str = "0.0.0.0", port: int = 8000) -> None:
    """Serve *bridge* with uvicorn until interrupted."""
    log.info("Grid authority on http://%s:%d", host, port)
    uvicorn.run(create_app(bridge), host=host, port=port, log_config=None)
