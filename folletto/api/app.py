"""
FastAPI Application - Real-time transport for browser clients.

Endpoints:
    WS     /ws                     Intent channel (one per browser tab)
    GET    /api/v1/rooms/{code}    Get a room snapshot
    GET    /health                 Health check
    GET    /                       API info

Each websocket gets its own connection id. Intents are JSON objects
(see schemas.py); replies addressed to the caller go back on the same
socket, state changes are broadcast to every socket watching the room.
"""

from typing import Optional, Union
import json
import logging
import os
import uuid

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..engine_core.action import ErrorCode
from .schemas import ErrorResponse, HealthResponse, RoomSnapshot
from .service import GameService, Outcome, error_message

# Environment configuration
FOLLETTO_ENV = os.getenv("FOLLETTO_ENV", "development")
FOLLETTO_LOG_LEVEL = os.getenv("FOLLETTO_LOG_LEVEL", "INFO").upper()
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks which websockets watch which room and fans messages out."""

    def __init__(self):
        self.active_connections: dict[str, list[WebSocket]] = {}
        # id(websocket) -> room code; websockets are not hashable
        self._watching: dict[int, str] = {}

    def room_of(self, websocket: WebSocket) -> Optional[str]:
        return self._watching.get(id(websocket))

    def watch(self, websocket: WebSocket, room_code: str) -> None:
        """Subscribe a websocket to a room, leaving its previous room."""
        if self.room_of(websocket) == room_code:
            return
        self.disconnect(websocket)
        self.active_connections.setdefault(room_code, []).append(websocket)
        self._watching[id(websocket)] = room_code

    def disconnect(self, websocket: WebSocket) -> None:
        room_code = self._watching.pop(id(websocket), None)
        if room_code is None:
            return
        remaining = [c for c in self.active_connections.get(room_code, []) if c is not websocket]
        # Clean up if there are no more connections for this room
        if remaining:
            self.active_connections[room_code] = remaining
        else:
            self.active_connections.pop(room_code, None)

    async def broadcast(self, room_code: str, messages: list[dict]) -> None:
        """Send messages to every websocket watching a room."""
        dead_connections = []
        for connection in list(self.active_connections.get(room_code, [])):
            try:
                for payload in messages:
                    await connection.send_json(payload)
            except Exception:
                dead_connections.append(connection)
        for connection in dead_connections:
            self.disconnect(connection)


def create_app(service: Optional[GameService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional GameService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    logging.basicConfig(level=FOLLETTO_LOG_LEVEL)

    app = FastAPI(
        title="Folletto's Vault API",
        description="Multiplayer dice and coin game - rooms, seats and turns over WebSocket.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    api_service = service or GameService()
    connections = ConnectionManager()
    app.state.service = api_service
    app.state.connections = connections

    async def deliver(websocket: WebSocket, connection_id: str, outcome: Outcome) -> None:
        room_code = api_service.room_of(connection_id)
        if room_code:
            connections.watch(websocket, room_code)
        for payload in outcome.direct:
            await websocket.send_json(payload)
        if outcome.room_code and outcome.broadcast:
            await connections.broadcast(outcome.room_code, outcome.broadcast)

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """
        Intent channel.

        Messages from server:
        - state: Full room snapshot
        - gameOver: Winners and final coins
        - roomCreated: Code of the room this socket created
        - errorMsg: The last intent was rejected
        - pong: Keep-alive reply
        """
        await websocket.accept()
        connection_id = str(uuid.uuid4())
        logger.debug("Connection %s opened", connection_id)

        try:
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(frame.get("code", 1000))
                data = frame.get("text")
                if data is None:
                    await websocket.send_json(error_message(ErrorCode.INVALID_INTENT, "Expected a text frame"))
                    continue
                try:
                    raw = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json(error_message(ErrorCode.INVALID_INTENT, "Invalid JSON"))
                    continue
                outcome = api_service.handle(connection_id, raw)
                await deliver(websocket, connection_id, outcome)
        except WebSocketDisconnect:
            logger.debug("Connection %s closed", connection_id)
        finally:
            connections.disconnect(websocket)
            for outcome in api_service.disconnect(connection_id):
                await connections.broadcast(outcome.room_code, outcome.broadcast)

    # =========================================================================
    # Rooms
    # =========================================================================

    @app.get(
        "/api/v1/rooms/{code}",
        response_model=RoomSnapshot,
        response_model_by_alias=True,
        responses={404: {"model": ErrorResponse, "description": "Room not found"}},
        tags=["Rooms"],
        summary="Get a room snapshot",
    )
    async def get_room(code: str) -> Union[RoomSnapshot, JSONResponse]:
        snapshot = api_service.get_snapshot(code)
        if snapshot is None:
            return JSONResponse(
                status_code=404,
                content=ErrorResponse(
                    error=f"Room {code.upper()} not found",
                    error_code=ErrorCode.ROOM_NOT_FOUND.value,
                ).model_dump(),
            )
        return snapshot

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="folletto",
            version=__version__,
            rooms=len(api_service.manager.store),
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Folletto's Vault API",
            "version": __version__,
            "env": FOLLETTO_ENV,
            "docs": "/api/docs",
            "health": "/health",
            "ws": "/ws",
        }

    return app


# For running directly: uvicorn folletto.api.app:app
app = create_app()
