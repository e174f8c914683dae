"""FastAPI backend for the destination arrow: sensor ingest, destination input and state streaming."""
from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from starlette.websockets import WebSocketDisconnect

from common.logging_config import configure_logging
from common.settings import settings
from navigation.reactor import DerivedStateReactor
from presentation import StateBroadcaster, state_payload
from sensors import SensorHub
from session import (
    HEADING_CHANNEL,
    POSITION_CHANNEL,
    EventQueueFullError,
    NavigationSession,
    SessionNotRunningError,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Destination Arrow API",
    description="Distance, bearing and continuous arrow rotation toward a destination",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_origin_regex=r"^https?://(10\.\d+\.\d+\.\d+|192\.168\.\d+\.\d+|172\.(1[6-9]|2\d|3[0-1])\.\d+\.\d+)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)

session: NavigationSession | None = None
sensor_hub: SensorHub | None = None
broadcaster: StateBroadcaster | None = None


class PositionSample(BaseModel):
    latitude: float
    longitude: float
    timestamp: float | None = None


class HeadingSample(BaseModel):
    true_heading: float = Field(..., alias="trueHeading")
    timestamp: float | None = None

    model_config = ConfigDict(populate_by_name=True)


class DestinationRequest(BaseModel):
    # Raw text from the two input fields; parsing happens in the reactor.
    latitude: str | float | None = ""
    longitude: str | float | None = ""


def _destination_text(value) -> str:
    return "" if value is None else str(value)


@asynccontextmanager
async def lifespan(_: FastAPI):
    global session, sensor_hub, broadcaster

    configure_logging()
    sensor_hub = SensorHub()
    broadcaster = StateBroadcaster()
    reactor = DerivedStateReactor()
    reactor.subscribe(broadcaster)
    session = NavigationSession(reactor=reactor)
    session.start()
    session.attach_feed(sensor_hub)

    yield

    await session.shutdown()
    sensor_hub.close()
    session = None
    sensor_hub = None
    broadcaster = None


app.router.lifespan_context = lifespan


def _require_session() -> NavigationSession:
    if not session or not session.is_running:
        raise HTTPException(status_code=503, detail="Navigation session unavailable")
    return session


def _require_hub() -> SensorHub:
    if not sensor_hub:
        raise HTTPException(status_code=503, detail="Sensor hub unavailable")
    return sensor_hub


@app.get("/")
def read_root():
    return {
        "status": "ok",
        "message": "Destination Arrow API is running",
        "endpoints": {
            "position": "/api/sensors/position",
            "heading": "/api/sensors/heading",
            "destination": "/api/destination",
            "state": "/api/state",
            "state_ws": "/api/state/ws",
            "health": "/health",
        },
    }


@app.get("/health")
async def health_check():
    current = _require_session()
    hub = _require_hub()
    return {
        "status": "ok",
        "session": current.status(),
        "sensors": hub.to_dict(),
        "subscribers": broadcaster.subscriber_count if broadcaster else 0,
    }


@app.post("/api/sensors/position", status_code=202)
async def push_position(sample: PositionSample):
    _require_session()
    accepted = _require_hub().push_position(sample.latitude, sample.longitude, sample.timestamp)
    return {"status": "accepted" if accepted else "filtered", "channel": POSITION_CHANNEL}


@app.post("/api/sensors/heading", status_code=202)
async def push_heading(sample: HeadingSample):
    _require_session()
    accepted = _require_hub().push_heading(sample.true_heading, sample.timestamp)
    return {"status": "accepted" if accepted else "filtered", "channel": HEADING_CHANNEL}


@app.put("/api/destination")
async def set_destination(body: DestinationRequest):
    current = _require_session()
    try:
        current.set_destination(_destination_text(body.latitude), _destination_text(body.longitude))
    except EventQueueFullError as exc:
        raise HTTPException(status_code=429, detail=str(exc))
    except SessionNotRunningError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    await current.join()
    return state_payload(current.state)


@app.delete("/api/destination")
async def clear_destination():
    current = _require_session()
    try:
        current.clear_destination()
    except EventQueueFullError as exc:
        raise HTTPException(status_code=429, detail=str(exc))
    except SessionNotRunningError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    await current.join()
    return state_payload(current.state)


@app.get("/api/state")
async def get_state():
    return state_payload(_require_session().state)


async def _forward_states(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        state = await queue.get()
        await websocket.send_json(state_payload(state))


def _handle_client_message(current: NavigationSession, raw: str) -> dict | None:
    """Clients may stream destination edits over the socket; returns an error payload if rejected."""
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        return {"type": "error", "message": "Invalid JSON"}
    if not isinstance(message, dict) or message.get("type") != "destination":
        return {"type": "error", "message": "Unsupported message"}
    latitude, longitude = message.get("latitude"), message.get("longitude")
    try:
        current.set_destination(_destination_text(latitude), _destination_text(longitude))
    except (EventQueueFullError, SessionNotRunningError) as exc:
        return {"type": "error", "message": str(exc)}
    return None


@app.websocket("/api/state/ws")
async def state_ws(websocket: WebSocket):
    if not session or not broadcaster:
        await websocket.close(code=1013)
        return

    current = session
    fanout = broadcaster
    await websocket.accept()
    queue = fanout.open(replay_latest=False)
    sender: asyncio.Task | None = None
    try:
        await websocket.send_json(state_payload(current.state))
        sender = asyncio.create_task(_forward_states(websocket, queue))
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            text = message.get("text")
            if text is None:
                continue
            error = _handle_client_message(current, text)
            if error:
                await websocket.send_json(error)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("State WebSocket failed")
    finally:
        if sender is not None:
            sender.cancel()
            await asyncio.gather(sender, return_exceptions=True)
        fanout.close(queue)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, workers=1, loop="asyncio")
