"""
REST + WebSocket API for the table tennis scoreboard.
Thin wrappers around MatchService; the engine does all scoring.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from scoreboard import config
from scoreboard.engine.errors import EngineError, InvalidStateError, NothingToUndoError
from scoreboard.engine.schemas import AddPoint, ChooseFirstServer, MatchState, Player, RemovePoint, Side
from scoreboard.engine.telemetry import TelemetryProjection
from scoreboard.persistence import SqliteMatchStore, get_db_path
from scoreboard.services import MatchService, decode_control

logger = logging.getLogger(__name__)

_service: MatchService | None = None


def get_service() -> MatchService:
    """Process-wide service; created and resumed from the configured DB on first use."""
    global _service
    if _service is None:
        _service = MatchService(store=SqliteMatchStore(get_db_path()))
        _service.resume()
    return _service


def set_service(service: MatchService | None) -> None:
    """Install a service (lifespan, tests). Closes the previous one."""
    global _service
    if _service is not None and _service is not service:
        _service.close()
    _service = service


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logging.basicConfig(level=config.LOG_LEVEL)
    get_service()
    yield
    set_service(None)


# ---------- FastAPI app ----------
app = FastAPI(
    title="Table Tennis Scoreboard API",
    description="Best-of-five match scoring with undo, resume, remote control and live telemetry",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Request/Response models ----------


class FirstServerRequest(BaseModel):
    player: int = Field(..., ge=1, le=2, description="Player who serves first in the match")


class PointRequest(BaseModel):
    side: Side = Field(..., description="Display side that won the rally: 'left' or 'right'")


class SettingsUpdateRequest(BaseModel):
    change_sides: bool | None = None
    change_sides_anim: bool | None = None
    player1_name: str | None = Field(None, min_length=1, max_length=100)
    player2_name: str | None = Field(None, min_length=1, max_length=100)


def _match_payload(state: MatchState, projection: TelemetryProjection) -> dict[str, Any]:
    return {
        "state": state.to_dict(),
        "telemetry": projection.to_dict(),
    }


def _engine_error(e: EngineError) -> HTTPException:
    if isinstance(e, (InvalidStateError, NothingToUndoError)):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


# ---------- Match ----------


@app.get("/match")
def get_match() -> dict[str, Any]:
    """Current match state (derived fields included), telemetry projection and settings."""
    state, projection, settings = get_service().snapshot()
    out = _match_payload(state, projection)
    out["settings"] = settings.to_dict()
    return out


@app.post("/match/first-server")
def choose_first_server(req: FirstServerRequest) -> dict[str, Any]:
    try:
        result = get_service().submit_and_project(ChooseFirstServer(Player(req.player)))
    except EngineError as e:
        raise _engine_error(e)
    return _match_payload(*result)


@app.post("/match/points")
def add_point(req: PointRequest) -> dict[str, Any]:
    try:
        result = get_service().submit_and_project(AddPoint(req.side))
    except EngineError as e:
        raise _engine_error(e)
    return _match_payload(*result)


@app.delete("/match/points/last")
def remove_point() -> dict[str, Any]:
    """Undo the last point; reopens the previous set when the current one is empty."""
    try:
        result = get_service().submit_and_project(RemovePoint())
    except EngineError as e:
        raise _engine_error(e)
    return _match_payload(*result)


@app.post("/match/reset")
def reset_match() -> dict[str, Any]:
    return _match_payload(*get_service().reset_and_project())


# ---------- Remote control ----------


@app.post("/control/{name}")
async def control(name: str, request: Request) -> dict[str, Any]:
    """
    Remote control message, same names as the pub/sub control topics
    (point_left, point_right, remove_point, p1_name, p2_name, change_sides,
    change_sides_anim). Body is the raw text payload.
    """
    payload = (await request.body()).decode("utf-8", errors="replace")
    command = decode_control(name, payload)
    if command is None:
        raise HTTPException(status_code=404, detail=f"Unknown control: {name}")
    try:
        result = await run_in_threadpool(get_service().submit_and_project, command)
    except EngineError as e:
        raise _engine_error(e)
    return _match_payload(*result)


# ---------- Settings ----------


@app.get("/settings")
def get_settings() -> dict[str, Any]:
    return get_service().settings.to_dict()


@app.put("/settings")
def update_settings(req: SettingsUpdateRequest) -> dict[str, Any]:
    changes = {k: v for k, v in req.model_dump().items() if v is not None}
    return get_service().update_settings(**changes).to_dict()


# ---------- History ----------


@app.get("/history")
def list_history(limit: int = Query(50, ge=1, le=500)) -> dict[str, Any]:
    service = get_service()
    if service.store is None:
        return {"matches": []}
    return {"matches": [r.to_dict() for r in service.store.list_records(limit=limit)]}


@app.get("/history/{record_id}")
def get_history_record(record_id: str) -> dict[str, Any]:
    service = get_service()
    record = service.store.get_record(record_id) if service.store is not None else None
    if record is None:
        raise HTTPException(status_code=404, detail="Match record not found")
    return record.to_dict()


# ---------- Telemetry ----------
# The engine never schedules pushes: each socket polls the projection every
# TELEMETRY_INTERVAL_SECONDS and sends it only when it changed.


@app.get("/telemetry")
def get_telemetry() -> dict[str, Any]:
    return get_service().projection().to_dict()


@app.websocket("/ws/telemetry")
async def telemetry_socket(websocket: WebSocket) -> None:
    await websocket.accept()
    service = get_service()
    last: dict[str, Any] | None = None
    try:
        while True:
            # The service lock is a threading.Lock; never take it on the event loop.
            projection = await run_in_threadpool(service.projection)
            payload = {"type": "scoreboard", **projection.to_dict()}
            if payload != last:
                await websocket.send_json(payload)
                last = payload
            try:
                # Client messages are ignored; receiving detects disconnects.
                await asyncio.wait_for(websocket.receive_text(), timeout=config.TELEMETRY_INTERVAL_SECONDS)
            except asyncio.TimeoutError:
                pass
    except WebSocketDisconnect:
        logger.debug("Telemetry client disconnected")
